"""
Conversation orchestration engine.

Addressing, context derivation, session lifecycle, run orchestration, search
escalation and reply dispatch for inbound Slack messages.
"""

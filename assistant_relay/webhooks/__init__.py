"""
Webhook System

Handles incoming Slack Events API webhooks.
"""

from assistant_relay.webhooks.router import router as webhook_router

__all__ = [
    "webhook_router",
]

"""Slack to OpenAI assistant relay with web search escalation."""

__version__ = "0.1.0"

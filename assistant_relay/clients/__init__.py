"""Clients for the external collaborators: Slack, OpenAI and web search."""

from assistant_relay.clients.assistant import AssistantClient
from assistant_relay.clients.search import SearchClient
from assistant_relay.clients.slack import SlackClient

__all__ = [
    "AssistantClient",
    "SearchClient",
    "SlackClient",
]

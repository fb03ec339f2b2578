"""
Conversation domain types.

Parsed Slack message events, reply targets, and the transient assistant run
and search result shapes exchanged between the orchestration components.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SurfaceType(str, Enum):
    """Where a conversation takes place."""

    DIRECT = "direct"  # one-to-one DM
    MULTI_PARTY = "multi_party"  # channels, private groups, group DMs


class RunStatus(str, Enum):
    """Assistant run statuses."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


# Statuses the orchestrator keeps polling through.
PENDING_RUN_STATUSES = frozenset(
    {RunStatus.QUEUED.value, RunStatus.IN_PROGRESS.value, RunStatus.CANCELLING.value}
)

DIRECT_CHANNEL_TYPES = frozenset({"im"})
MULTI_PARTY_CHANNEL_TYPES = frozenset({"channel", "group", "mpim"})


@dataclass
class SlackMessageEvent:
    """Parsed Slack `message` event."""

    user_id: str | None
    channel_id: str
    channel_type: str
    text: str
    ts: str
    thread_ts: str | None = None
    bot_id: str | None = None
    subtype: str | None = None
    team_id: str | None = None
    raw: dict[str, Any] | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SlackMessageEvent | None":
        """Parse an `event_callback` payload; None if it is not a message event."""
        event = payload.get("event") or {}
        if event.get("type") != "message":
            return None

        channel_id = event.get("channel") or ""
        channel_type = event.get("channel_type")
        if not channel_type:
            # DM channel ids start with "D".
            channel_type = "im" if channel_id.startswith("D") else "channel"

        return cls(
            user_id=event.get("user"),
            channel_id=channel_id,
            channel_type=channel_type,
            text=event.get("text") or "",
            ts=event.get("ts") or "",
            thread_ts=event.get("thread_ts"),
            bot_id=event.get("bot_id"),
            subtype=event.get("subtype"),
            team_id=payload.get("team_id"),
            raw=event,
        )

    @property
    def surface_type(self) -> SurfaceType:
        if self.channel_type in DIRECT_CHANNEL_TYPES:
            return SurfaceType.DIRECT
        return SurfaceType.MULTI_PARTY

    @property
    def is_thread_reply(self) -> bool:
        return bool(self.thread_ts) and self.thread_ts != self.ts


@dataclass(frozen=True)
class ReplyTarget:
    """Where a reply is posted. `thread_ts` set means a threaded reply."""

    channel: str
    thread_ts: str | None = None


@dataclass
class AssistantRun:
    """Transient state of one assistant invocation. Never persisted."""

    run_id: str
    session_id: str
    status: str
    last_error: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_RUN_STATUSES


@dataclass
class AssistantMessage:
    """A session message reduced to its primary text block."""

    message_id: str
    role: str
    text: str


@dataclass(frozen=True)
class SearchResult:
    """One web search hit."""

    snippet: str
    link: str


@dataclass
class HandlingOutcome:
    """What happened to one inbound event (for logs, metrics and tests)."""

    outcome: str
    conversation_key: str | None = None
    session_id: str | None = None
    reply: str | None = None
    escalated: bool = False
    delivered: bool = False
    details: dict[str, Any] = field(default_factory=dict)

from __future__ import annotations

from typing import Any

BOT_USER_ID = "UBOT"
MENTION = f"<@{BOT_USER_ID}>"


def make_message_payload(
    *,
    text: str,
    user: str | None = "U1",
    channel: str = "D1",
    channel_type: str | None = "im",
    ts: str = "1700000000.000100",
    thread_ts: str | None = None,
    bot_id: str | None = None,
    subtype: str | None = None,
) -> dict[str, Any]:
    """Build a Slack `event_callback` payload wrapping one message event."""
    event: dict[str, Any] = {
        "type": "message",
        "channel": channel,
        "text": text,
        "ts": ts,
    }
    if user is not None:
        event["user"] = user
    if channel_type is not None:
        event["channel_type"] = channel_type
    if thread_ts is not None:
        event["thread_ts"] = thread_ts
    if bot_id is not None:
        event["bot_id"] = bot_id
    if subtype is not None:
        event["subtype"] = subtype

    return {
        "type": "event_callback",
        "team_id": "T1",
        "api_app_id": "A1",
        "event": event,
        "event_id": "Ev1",
        "event_time": 1700000000,
    }

"""
Slack Events Webhook

Receives Slack Events API callbacks:
- Verifies the request signature before anything else.
- Answers URL verification challenges.
- Acknowledges event callbacks immediately and hands them to the
  conversation handler as a background task.
"""

import hashlib
import hmac
import json
import time
from typing import Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request

from assistant_relay.config import Settings, get_settings
from assistant_relay.conversation.handler import ConversationHandler
from assistant_relay.kernel.errors import UnauthorizedError, ValidationError

logger = structlog.get_logger()

router = APIRouter(prefix="/slack", tags=["Slack"])

# Requests older than this are rejected to prevent replays.
SIGNATURE_MAX_AGE_SECONDS = 300


def verify_slack_signature(
    body: bytes,
    signature: str | None,
    timestamp: str | None,
    signing_secret: str,
    *,
    now: float | None = None,
) -> bool:
    """Verify a Slack request signature (HMAC-SHA256 over `v0:{timestamp}:{body}`)."""
    if not signature or not timestamp or not signing_secret:
        return False

    try:
        req_timestamp = int(timestamp)
    except ValueError:
        return False

    current = int(now if now is not None else time.time())
    if abs(current - req_timestamp) > SIGNATURE_MAX_AGE_SECONDS:
        return False

    # Signed over the raw bytes; the body is untrusted until this passes.
    sig_basestring = b"v0:" + timestamp.encode() + b":" + body
    computed_sig = "v0=" + hmac.new(
        signing_secret.encode(),
        sig_basestring,
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(computed_sig, signature)


def _is_authentic(body: bytes, signature: str | None, timestamp: str | None, settings: Settings) -> bool:
    if not settings.slack_signing_secret:
        if settings.environment in ("development", "test"):
            logger.warning("Slack signing secret not configured, skipping verification")
            return True
        logger.error("Slack signing secret not configured")
        return False
    return verify_slack_signature(body, signature, timestamp, settings.slack_signing_secret)


def get_conversation_handler(request: Request) -> ConversationHandler:
    """The handler built during application startup."""
    return request.app.state.conversation_handler


@router.post("/events")
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    handler: ConversationHandler = Depends(get_conversation_handler),
    x_slack_signature: str | None = Header(None, alias="X-Slack-Signature"),
    x_slack_request_timestamp: str | None = Header(None, alias="X-Slack-Request-Timestamp"),
    x_slack_retry_num: str | None = Header(None, alias="X-Slack-Retry-Num"),
) -> dict[str, Any]:
    """
    Receive a Slack Events API request.

    Processing happens after the acknowledgement is returned, so Slack's
    redelivery timer never depends on assistant latency.
    """
    body = await request.body()

    if not _is_authentic(body, x_slack_signature, x_slack_request_timestamp, settings):
        logger.warning("Invalid Slack signature")
        raise UnauthorizedError(message="Invalid signature", code="slack.invalid_signature")

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ValidationError(
            message="Request body is not valid JSON",
            code="slack.invalid_payload",
            status_code=400,
        ) from e
    if not isinstance(payload, dict):
        raise ValidationError(
            message="Request body must be a JSON object",
            code="slack.invalid_payload",
            status_code=400,
        )

    if payload.get("type") == "url_verification":
        return {"challenge": payload.get("challenge")}

    if payload.get("type") != "event_callback":
        logger.debug("Ignoring Slack payload type", payload_type=payload.get("type"))
        return {"ok": True}

    event = payload.get("event") or {}
    if x_slack_retry_num and settings.slack_ignore_retries:
        logger.info(
            "Ignoring Slack redelivery",
            retry_num=x_slack_retry_num,
            event_id=payload.get("event_id"),
        )
        return {"ok": True}

    logger.info(
        "Slack event received",
        event_type=event.get("type"),
        event_id=payload.get("event_id"),
        team_id=payload.get("team_id"),
    )
    background_tasks.add_task(handler.handle_event, payload)
    return {"ok": True}

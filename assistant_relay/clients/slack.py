"""
Slack Messaging Client

Thin async wrapper over the Slack Web API used to post replies and to look up
thread root messages. SDK failures are translated into `UpstreamError`.
"""

import asyncio
from typing import Any

import aiohttp
import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from assistant_relay.config import Settings
from assistant_relay.kernel.errors import UpstreamError

logger = structlog.get_logger()


class SlackClient:
    """Slack Web API operations needed by the relay."""

    def __init__(self, client: AsyncWebClient):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SlackClient":
        return cls(AsyncWebClient(token=settings.slack_bot_token))

    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ts: str | None = None,
    ) -> dict[str, Any]:
        """Post a message; `thread_ts` turns it into a threaded reply."""
        body: dict[str, Any] = {"channel": channel, "text": text}
        if thread_ts:
            body["thread_ts"] = thread_ts

        try:
            response = await self._client.chat_postMessage(**body)
        except SlackApiError as e:
            raise UpstreamError(
                message="Failed to post Slack message",
                code="slack.post_failed",
                meta={"channel": channel, "error": e.response.get("error")},
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(
                message="Slack unreachable",
                code="slack.unreachable",
                meta={"channel": channel, "error": str(e)},
            ) from e

        if not response.get("ok"):
            raise UpstreamError(
                message="Failed to post Slack message",
                code="slack.post_failed",
                meta={"channel": channel, "error": response.get("error")},
            )

        logger.debug("Slack message posted", channel=channel, threaded=bool(thread_ts))
        return {
            "channel": response.get("channel"),
            "ts": response.get("ts"),
        }

    async def fetch_message(self, channel: str, ts: str) -> dict[str, Any] | None:
        """
        Fetch a single message by timestamp.

        Uses `conversations.replies`, whose first entry is the thread root when
        `ts` is a thread's parent timestamp.
        """
        try:
            response = await self._client.conversations_replies(
                channel=channel,
                ts=ts,
                limit=1,
                inclusive=True,
            )
        except SlackApiError as e:
            raise UpstreamError(
                message="Failed to fetch Slack message",
                code="slack.fetch_failed",
                meta={"channel": channel, "ts": ts, "error": e.response.get("error")},
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(
                message="Slack unreachable",
                code="slack.unreachable",
                meta={"channel": channel, "ts": ts, "error": str(e)},
            ) from e

        messages = response.get("messages") or []
        return messages[0] if messages else None

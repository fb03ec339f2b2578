"""
Unit tests for SlackClient.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from assistant_relay.clients.slack import SlackClient
from assistant_relay.kernel.errors import UpstreamError

pytestmark = pytest.mark.unit


@pytest.fixture
def web_client():
    client = MagicMock()
    client.chat_postMessage = AsyncMock(return_value={"ok": True, "channel": "C1", "ts": "200.000"})
    client.conversations_replies = AsyncMock(
        return_value={"ok": True, "messages": [{"ts": "100.000", "text": "<@UBOT> hi"}]}
    )
    return client


class TestPostMessage:
    @pytest.mark.asyncio
    async def test_threaded_post(self, web_client):
        result = await SlackClient(web_client).post_message("C1", "hello", thread_ts="100.000")

        assert result == {"channel": "C1", "ts": "200.000"}
        web_client.chat_postMessage.assert_awaited_once_with(channel="C1", text="hello", thread_ts="100.000")

    @pytest.mark.asyncio
    async def test_unthreaded_post_omits_thread_ts(self, web_client):
        await SlackClient(web_client).post_message("U1", "hello")

        web_client.chat_postMessage.assert_awaited_once_with(channel="U1", text="hello")

    @pytest.mark.asyncio
    async def test_api_error_is_translated(self, web_client):
        web_client.chat_postMessage.side_effect = SlackApiError(
            "channel_not_found", {"ok": False, "error": "channel_not_found"}
        )

        with pytest.raises(UpstreamError) as exc_info:
            await SlackClient(web_client).post_message("C404", "hello")

        assert exc_info.value.code == "slack.post_failed"
        assert exc_info.value.meta["error"] == "channel_not_found"


class TestFetchMessage:
    @pytest.mark.asyncio
    async def test_returns_first_message(self, web_client):
        message = await SlackClient(web_client).fetch_message("C1", "100.000")

        assert message == {"ts": "100.000", "text": "<@UBOT> hi"}
        web_client.conversations_replies.assert_awaited_once_with(
            channel="C1", ts="100.000", limit=1, inclusive=True
        )

    @pytest.mark.asyncio
    async def test_missing_message_is_none(self, web_client):
        web_client.conversations_replies.return_value = {"ok": True, "messages": []}
        assert await SlackClient(web_client).fetch_message("C1", "100.000") is None

    @pytest.mark.asyncio
    async def test_api_error_is_translated(self, web_client):
        web_client.conversations_replies.side_effect = SlackApiError(
            "thread_not_found", {"ok": False, "error": "thread_not_found"}
        )

        with pytest.raises(UpstreamError) as exc_info:
            await SlackClient(web_client).fetch_message("C1", "100.000")

        assert exc_info.value.code == "slack.fetch_failed"

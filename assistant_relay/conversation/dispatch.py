"""Reply delivery to Slack."""

import structlog

from assistant_relay.clients.slack import SlackClient
from assistant_relay.conversation.models import ReplyTarget
from assistant_relay.kernel.errors import UpstreamError
from assistant_relay.monitoring.metrics import get_metrics

logger = structlog.get_logger()


class ReplyDispatcher:
    """Posts final replies. Delivery failures are logged, never retried or raised."""

    def __init__(self, slack: SlackClient):
        self._slack = slack

    async def dispatch(self, target: ReplyTarget, text: str) -> bool:
        try:
            await self._slack.post_message(target.channel, text, thread_ts=target.thread_ts)
        except UpstreamError as e:
            logger.error(
                "Failed to deliver reply",
                channel=target.channel,
                thread_ts=target.thread_ts,
                error_code=e.code,
                error=e.meta,
            )
            get_metrics().record_reply(False)
            return False

        get_metrics().record_reply(True)
        return True

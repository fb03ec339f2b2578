"""
Addressing Filter

Decides whether an inbound Slack message is directed at the bot:
- Never answer bots (including ourselves), edits, deletions or other
  non-user message subtypes.
- Always answer direct messages.
- In channels, answer new messages that mention the bot and thread replies
  whose thread root mentions the bot.
"""

import re

import structlog

from assistant_relay.clients.slack import SlackClient
from assistant_relay.conversation.models import SlackMessageEvent, SurfaceType
from assistant_relay.kernel.errors import UpstreamError

logger = structlog.get_logger()

# Subtypes that still carry a user's turn. Everything else (message_changed,
# message_deleted, channel_join, bot_message, ...) is ignored.
USER_MESSAGE_SUBTYPES = frozenset({None, "thread_broadcast", "file_share"})


class AddressingFilter:
    """Mention and bot-loop filtering for inbound messages."""

    def __init__(self, bot_user_id: str, slack: SlackClient):
        self.bot_user_id = bot_user_id
        self._slack = slack
        self._token_re = re.compile(rf"<@{re.escape(bot_user_id)}(?:\|[^>]*)?>") if bot_user_id else None

    @property
    def addressing_token(self) -> str:
        return f"<@{self.bot_user_id}>"

    def mentions_bot(self, text: str | None) -> bool:
        if not text or self._token_re is None:
            return False
        return bool(self._token_re.search(text))

    def strip_addressing(self, text: str | None) -> str:
        """Remove every mention of the bot and trim surrounding whitespace."""
        if not text:
            return ""
        if self._token_re is not None:
            text = self._token_re.sub("", text)
        return text.strip()

    def is_from_bot(self, event: SlackMessageEvent) -> bool:
        if event.bot_id or event.subtype == "bot_message":
            return True
        return bool(self.bot_user_id) and event.user_id == self.bot_user_id

    async def should_respond(self, event: SlackMessageEvent) -> bool:
        if event.subtype not in USER_MESSAGE_SUBTYPES:
            logger.debug("Skipping message subtype", subtype=event.subtype)
            return False

        if self.is_from_bot(event):
            logger.debug("Skipping bot message", bot_id=event.bot_id, user_id=event.user_id)
            return False

        if not event.user_id:
            return False

        if event.surface_type == SurfaceType.DIRECT:
            return True

        if event.is_thread_reply:
            return await self._thread_root_mentions_bot(event)

        return self.mentions_bot(event.text)

    async def _thread_root_mentions_bot(self, event: SlackMessageEvent) -> bool:
        """Fail closed: an unreadable thread root counts as not addressed."""
        try:
            root = await self._slack.fetch_message(event.channel_id, event.thread_ts or event.ts)
        except UpstreamError as e:
            logger.warning(
                "Could not fetch thread root, treating as not addressed",
                channel_id=event.channel_id,
                thread_ts=event.thread_ts,
                error_code=e.code,
                error=e.meta,
            )
            return False

        if not root:
            return False
        return self.mentions_bot(root.get("text"))

"""Conversation key derivation and reply targeting."""

from assistant_relay.conversation.models import ReplyTarget, SlackMessageEvent, SurfaceType

KEY_SEPARATOR = "-"
DIRECT_SURFACE_ID = "DM"


class ContextResolver:
    """
    Derives the stable conversation key for an event and where to answer it.

    Slack ids are upper-case alphanumerics, so joining actor and surface with
    `-` cannot collide across distinct pairs.
    """

    @staticmethod
    def conversation_key(actor_id: str, surface_id: str) -> str:
        return f"{actor_id}{KEY_SEPARATOR}{surface_id}"

    @staticmethod
    def surface_id(event: SlackMessageEvent) -> str:
        if event.surface_type == SurfaceType.DIRECT:
            return DIRECT_SURFACE_ID
        return event.channel_id

    def key_for(self, event: SlackMessageEvent) -> str:
        return self.conversation_key(event.user_id or "", self.surface_id(event))

    @staticmethod
    def reply_target(event: SlackMessageEvent) -> ReplyTarget:
        """
        Direct surfaces get a new top-level message to the actor.

        Multi-party surfaces get a threaded reply on the originating channel,
        anchored at the thread root when the message is itself a reply.
        """
        if event.surface_type == SurfaceType.DIRECT:
            return ReplyTarget(channel=event.user_id or event.channel_id)
        return ReplyTarget(channel=event.channel_id, thread_ts=event.thread_ts or event.ts)

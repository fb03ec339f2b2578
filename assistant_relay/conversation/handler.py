"""
Conversation Handler

Single entry point for inbound Slack events:

    event -> AddressingFilter -> ContextResolver -> SessionStore
          -> RunOrchestrator -> SearchEscalator -> ReplyDispatcher

Every failure is contained to the event being handled.
"""

import structlog

from assistant_relay.clients.assistant import AssistantClient
from assistant_relay.clients.search import SearchClient
from assistant_relay.clients.slack import SlackClient
from assistant_relay.config import Settings
from assistant_relay.conversation.addressing import AddressingFilter
from assistant_relay.conversation.context import ContextResolver
from assistant_relay.conversation.dispatch import ReplyDispatcher
from assistant_relay.conversation.escalation import SearchEscalator
from assistant_relay.conversation.models import HandlingOutcome, SlackMessageEvent
from assistant_relay.conversation.runs import RunOrchestrator
from assistant_relay.conversation.sessions import SessionStore
from assistant_relay.kernel.errors import RunTimeoutError, UpstreamError
from assistant_relay.monitoring.metrics import get_metrics
from assistant_relay.storage.kv import KeyValueStore

logger = structlog.get_logger()


class ConversationHandler:
    """Turns one inbound message event into at most one reply."""

    def __init__(
        self,
        *,
        addressing: AddressingFilter,
        context: ContextResolver,
        sessions: SessionStore,
        runs: RunOrchestrator,
        escalator: SearchEscalator,
        dispatcher: ReplyDispatcher,
        fallback_reply: str,
    ):
        self.addressing = addressing
        self.context = context
        self.sessions = sessions
        self.runs = runs
        self.escalator = escalator
        self.dispatcher = dispatcher
        self.fallback_reply = fallback_reply

    async def handle_event(self, payload: dict) -> None:
        """Handle one `event_callback` payload. Never raises."""
        try:
            outcome = await self.process_event(payload)
        except Exception as e:
            logger.exception("Unhandled error while processing Slack event", error=str(e))
            get_metrics().record_event("error")
            return
        finally:
            structlog.contextvars.unbind_contextvars("conversation_key", "event_ts")

        get_metrics().record_event(outcome.outcome)

    async def process_event(self, payload: dict) -> HandlingOutcome:
        event = SlackMessageEvent.from_payload(payload)
        if event is None:
            return HandlingOutcome(outcome="ignored")

        if not await self.addressing.should_respond(event):
            return HandlingOutcome(outcome="not_addressed")

        key = self.context.key_for(event)
        target = self.context.reply_target(event)
        structlog.contextvars.bind_contextvars(conversation_key=key, event_ts=event.ts)

        question = self.addressing.strip_addressing(event.text)
        if not question:
            logger.info("Addressed message has no content, skipping")
            return HandlingOutcome(outcome="empty_message", conversation_key=key)

        logger.info("Handling addressed message", channel_id=event.channel_id, surface=event.surface_type.value)

        outcome = HandlingOutcome(outcome="replied", conversation_key=key)
        try:
            outcome.session_id = await self.sessions.ensure(key)
            reply = await self.runs.run(outcome.session_id, question, event.user_id or "")
        except RunTimeoutError as e:
            logger.error("Assistant run timed out", error=e.meta)
            outcome.outcome = "run_timeout"
            reply = self.fallback_reply
        except UpstreamError as e:
            logger.error("Assistant call failed", error_code=e.code, error=e.meta)
            outcome.outcome = "upstream_error"
            reply = self.fallback_reply
        else:
            if reply is None:
                outcome.outcome = "run_failed"
                return outcome

            if self.escalator.should_escalate(reply):
                outcome.escalated = True
                escalated = await self.escalator.escalate(question)
                if escalated is None:
                    outcome.outcome = "escalation_failed"
                    reply = self.fallback_reply
                else:
                    reply = escalated

        if not reply.strip():
            logger.warning("Assistant produced an empty reply")
            outcome.outcome = "empty_reply"
            return outcome

        outcome.reply = reply
        outcome.delivered = await self.dispatcher.dispatch(target, reply)
        if not outcome.delivered:
            outcome.outcome = "delivery_failed"
        return outcome


def build_conversation_handler(
    settings: Settings,
    *,
    slack: SlackClient,
    assistant: AssistantClient,
    search: SearchClient,
    store: KeyValueStore,
) -> ConversationHandler:
    """Wire the orchestration components from explicit settings and clients."""
    return ConversationHandler(
        addressing=AddressingFilter(settings.slack_bot_user_id, slack),
        context=ContextResolver(),
        sessions=SessionStore(assistant, store),
        runs=RunOrchestrator(
            assistant,
            poll_interval_seconds=settings.run_poll_interval_seconds,
            max_poll_attempts=settings.run_max_poll_attempts,
        ),
        escalator=SearchEscalator(search, assistant),
        dispatcher=ReplyDispatcher(slack),
        fallback_reply=settings.fallback_reply,
    )

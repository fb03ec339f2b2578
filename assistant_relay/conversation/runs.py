"""
Run Orchestrator

Drives one assistant invocation to completion:

    queued -> in_progress -> completed
                          -> cancelling -> cancelled
                          -> failed | expired | incomplete | requires_action

1. Append the user's turn to the session.
2. Start a run with the shared instructions.
3. Poll on a fixed interval while the run is queued, in progress or cancelling.
4. On completion, return the text of the most recent session message.

Any other terminal status yields no reply. Polling is bounded: once the attempt
limit is reached the run is cancelled (best effort) and `RunTimeoutError` is
raised.
"""

import asyncio
import time

import structlog

from assistant_relay.clients.assistant import AssistantClient
from assistant_relay.conversation.models import AssistantRun, RunStatus
from assistant_relay.conversation.prompts import get_run_instructions
from assistant_relay.kernel.errors import RunTimeoutError, UpstreamError
from assistant_relay.monitoring.metrics import get_metrics

logger = structlog.get_logger()


class RunOrchestrator:
    """Appends a user turn, runs the assistant, and extracts its reply."""

    def __init__(
        self,
        assistant: AssistantClient,
        *,
        poll_interval_seconds: float = 1.0,
        max_poll_attempts: int = 120,
    ):
        self._assistant = assistant
        self.poll_interval_seconds = poll_interval_seconds
        self.max_poll_attempts = max_poll_attempts

    async def run(self, session_id: str, text: str, actor_id: str) -> str | None:
        """
        Returns the assistant's reply, or None when the run ended unsuccessfully.

        Raises:
            UpstreamError: an assistant API call failed.
            RunTimeoutError: the run did not finish within the poll limit.
        """
        await self._assistant.append_message(session_id, "user", text)

        started = time.monotonic()
        run = await self._assistant.start_run(session_id, get_run_instructions(actor_id))
        logger.info("Assistant run started", session_id=session_id, run_id=run.run_id)

        run = await self._wait_for_terminal(run)
        get_metrics().record_run(run.status, time.monotonic() - started)

        if run.status != RunStatus.COMPLETED.value:
            logger.warning(
                "Assistant run ended without completing",
                session_id=session_id,
                run_id=run.run_id,
                status=run.status,
                last_error=run.last_error,
            )
            return None

        return await self._latest_reply(session_id, run)

    async def _wait_for_terminal(self, run: AssistantRun) -> AssistantRun:
        attempts = 0
        while run.is_pending:
            if attempts >= self.max_poll_attempts:
                await self._cancel_quietly(run)
                get_metrics().record_run("timeout", attempts * self.poll_interval_seconds)
                raise RunTimeoutError(
                    meta={
                        "session_id": run.session_id,
                        "run_id": run.run_id,
                        "last_status": run.status,
                        "attempts": attempts,
                    }
                )
            await asyncio.sleep(self.poll_interval_seconds)
            attempts += 1
            run = await self._assistant.get_run(run.session_id, run.run_id)
            logger.debug("Polled assistant run", run_id=run.run_id, status=run.status, attempt=attempts)
        return run

    async def _cancel_quietly(self, run: AssistantRun) -> None:
        if run.status == RunStatus.CANCELLING.value:
            return
        try:
            await self._assistant.cancel_run(run.session_id, run.run_id)
        except UpstreamError as e:
            logger.warning("Failed to cancel timed-out run", run_id=run.run_id, error=e.meta)

    async def _latest_reply(self, session_id: str, run: AssistantRun) -> str | None:
        # Only the most recent message matters; older entries are ignored.
        messages = await self._assistant.list_messages(session_id, limit=1)
        if not messages:
            logger.warning("Completed run produced no messages", session_id=session_id, run_id=run.run_id)
            return None
        return messages[0].text

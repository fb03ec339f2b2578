"""
OpenAI Assistant Client

Wraps the OpenAI Assistants (threads/runs) and chat completion APIs behind
the narrow contract the conversation engine depends on. A "session" here is
an OpenAI thread.

SDK errors are translated into `UpstreamError`; a missing thread is reported
as `None` by `get_session` rather than raised.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from openai import APIError, AsyncOpenAI, NotFoundError

from assistant_relay.config import Settings
from assistant_relay.conversation.models import AssistantMessage, AssistantRun
from assistant_relay.conversation.prompts import ASSISTANT_SYSTEM_PROMPT
from assistant_relay.kernel.errors import UpstreamError

logger = structlog.get_logger()


@contextmanager
def _translate_errors(operation: str, **meta: Any) -> Iterator[None]:
    try:
        yield
    except APIError as e:
        raise UpstreamError(
            message=f"OpenAI {operation} failed",
            code="openai.request_failed",
            meta={"operation": operation, "error": str(e), **meta},
        ) from e


def _to_run(run: Any) -> AssistantRun:
    last_error = getattr(run, "last_error", None)
    return AssistantRun(
        run_id=run.id,
        session_id=run.thread_id,
        status=run.status,
        last_error=getattr(last_error, "message", None) if last_error else None,
    )


def _primary_text(message: Any) -> str:
    for block in message.content or []:
        if getattr(block, "type", None) == "text":
            return block.text.value
    return ""


class AssistantClient:
    """OpenAI Assistants operations used by the relay."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        completion_model: str,
        assistant_id: str | None = None,
    ):
        self._client = client
        self.completion_model = completion_model
        self.assistant_id = assistant_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssistantClient":
        return cls(
            AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout_seconds),
            completion_model=settings.completion_model,
            assistant_id=settings.openai_assistant_id,
        )

    async def ensure_assistant(self, settings: Settings) -> str:
        """Reuse the configured assistant, or create one with the shared system prompt."""
        if self.assistant_id:
            with _translate_errors("assistants.retrieve", assistant_id=self.assistant_id):
                assistant = await self._client.beta.assistants.retrieve(self.assistant_id)
            logger.info("Using configured assistant", assistant_id=assistant.id)
            return assistant.id

        with _translate_errors("assistants.create"):
            assistant = await self._client.beta.assistants.create(
                name=settings.assistant_name,
                instructions=ASSISTANT_SYSTEM_PROMPT,
                model=settings.assistant_model,
            )
        self.assistant_id = assistant.id
        logger.info(
            "Created assistant",
            assistant_id=assistant.id,
            name=settings.assistant_name,
            model=settings.assistant_model,
        )
        return assistant.id

    async def create_session(self) -> str:
        with _translate_errors("threads.create"):
            thread = await self._client.beta.threads.create()
        return thread.id

    async def get_session(self, session_id: str) -> str | None:
        """Return the session id if the thread still exists upstream, else None."""
        try:
            thread = await self._client.beta.threads.retrieve(session_id)
        except NotFoundError:
            return None
        except APIError as e:
            raise UpstreamError(
                message="OpenAI threads.retrieve failed",
                code="openai.request_failed",
                meta={"operation": "threads.retrieve", "session_id": session_id, "error": str(e)},
            ) from e
        return thread.id if thread else None

    async def append_message(self, session_id: str, role: str, text: str) -> str:
        with _translate_errors("messages.create", session_id=session_id):
            message = await self._client.beta.threads.messages.create(
                session_id,
                role=role,
                content=text,
            )
        return message.id

    async def start_run(self, session_id: str, instructions: str) -> AssistantRun:
        if not self.assistant_id:
            raise UpstreamError(
                message="No assistant configured",
                code="openai.assistant_missing",
                meta={"session_id": session_id},
            )
        with _translate_errors("runs.create", session_id=session_id):
            run = await self._client.beta.threads.runs.create(
                session_id,
                assistant_id=self.assistant_id,
                instructions=instructions,
            )
        return _to_run(run)

    async def get_run(self, session_id: str, run_id: str) -> AssistantRun:
        with _translate_errors("runs.retrieve", session_id=session_id, run_id=run_id):
            run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=session_id)
        return _to_run(run)

    async def cancel_run(self, session_id: str, run_id: str) -> AssistantRun:
        with _translate_errors("runs.cancel", session_id=session_id, run_id=run_id):
            run = await self._client.beta.threads.runs.cancel(run_id, thread_id=session_id)
        return _to_run(run)

    async def list_messages(self, session_id: str, limit: int = 1) -> list[AssistantMessage]:
        """List session messages, most recent first."""
        with _translate_errors("messages.list", session_id=session_id):
            page = await self._client.beta.threads.messages.list(
                session_id,
                order="desc",
                limit=limit,
            )
        return [
            AssistantMessage(message_id=m.id, role=m.role, text=_primary_text(m))
            for m in page.data
        ]

    async def chat_complete(self, messages: list[dict]) -> str:
        """Single-turn completion outside any session; returns the first choice's text."""
        with _translate_errors("chat.completions.create", model=self.completion_model):
            response = await self._client.chat.completions.create(
                model=self.completion_model,
                messages=messages,
            )
        if not response.choices:
            raise UpstreamError(
                message="OpenAI returned no choices",
                code="openai.empty_completion",
                meta={"model": self.completion_model},
            )
        return response.choices[0].message.content or ""

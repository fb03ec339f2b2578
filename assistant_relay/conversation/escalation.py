"""
Search Escalator

When the assistant answers with the escalation sentinel, search the web for
the user's question and have the model restate what was found as its own
answer, followed by the source links.
"""

import structlog

from assistant_relay.clients.assistant import AssistantClient
from assistant_relay.clients.search import SearchClient
from assistant_relay.conversation.prompts import (
    ESCALATION_SENTINEL,
    NO_SEARCH_RESULTS,
    get_restatement_prompt,
)
from assistant_relay.kernel.errors import UpstreamError
from assistant_relay.monitoring.metrics import get_metrics

logger = structlog.get_logger()


class SearchEscalator:
    """Web search fallback for questions the assistant cannot answer."""

    def __init__(self, search: SearchClient, assistant: AssistantClient):
        self._search = search
        self._assistant = assistant

    @staticmethod
    def should_escalate(reply: str | None) -> bool:
        """Exact match after trimming; a longer reply containing the sentinel does not count."""
        if reply is None:
            return False
        return reply.strip() == ESCALATION_SENTINEL

    async def escalate(self, question: str) -> str | None:
        """
        Answer `question` from a web search.

        Returns None when the search or the completion call fails. A search with
        no results still produces an answer.
        """
        metrics = get_metrics()

        try:
            results = await self._search.search(question)
        except UpstreamError as e:
            logger.error("Web search failed", error_code=e.code, error=e.meta)
            metrics.record_escalation("search_failed")
            return None

        snippets = "\n".join(r.snippet for r in results) if results else NO_SEARCH_RESULTS
        links = "\n".join(r.link for r in results)

        try:
            answer = await self._assistant.chat_complete(get_restatement_prompt(question, snippets))
        except UpstreamError as e:
            logger.error("Restatement completion failed", error_code=e.code, error=e.meta)
            metrics.record_escalation("completion_failed")
            return None

        logger.info("Escalated to web search", result_count=len(results))
        metrics.record_escalation("answered" if results else "no_results")
        return f"{answer.strip()}\n\nSources:\n{links}"

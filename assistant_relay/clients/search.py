"""
Web Search Client

Queries the Google Programmable Search (Custom Search JSON) API and returns a
single page of `{snippet, link}` results.
"""

import httpx
import structlog

from assistant_relay.config import Settings
from assistant_relay.connectors.http import request_with_retry
from assistant_relay.conversation.models import SearchResult
from assistant_relay.kernel.errors import UpstreamError

logger = structlog.get_logger()

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class SearchClient:
    """Google Programmable Search client."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str | None,
        engine_id: str | None,
        result_count: int = 5,
    ):
        self._http = http_client
        self._api_key = api_key
        self._engine_id = engine_id
        self._result_count = result_count

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> "SearchClient":
        return cls(
            http_client,
            api_key=settings.google_api_key,
            engine_id=settings.google_search_engine_id,
            result_count=settings.search_result_count,
        )

    async def search(self, query: str) -> list[SearchResult]:
        """
        Run one search query.

        Returns an empty list when the engine has no results; raises
        `UpstreamError` when the call itself fails.
        """
        if not self._api_key or not self._engine_id:
            raise UpstreamError(
                message="Web search is not configured",
                code="search.not_configured",
            )

        params = {
            "key": self._api_key,
            "cx": self._engine_id,
            "q": query,
            "num": self._result_count,
        }
        try:
            response = await request_with_retry(
                self._http,
                "GET",
                GOOGLE_SEARCH_URL,
                params=params,
                operation="google.search",
            )
        except httpx.HTTPError as e:
            raise UpstreamError(
                message="Web search request failed",
                code="search.request_failed",
                meta={"error": str(e)},
            ) from e

        if response.status_code != 200:
            raise UpstreamError(
                message="Web search returned an error",
                code="search.bad_status",
                meta={"status_code": response.status_code, "body": response.text[:500]},
            )

        items = response.json().get("items") or []
        results = [
            SearchResult(snippet=item.get("snippet", ""), link=item.get("link", ""))
            for item in items
        ]
        logger.debug("Web search completed", result_count=len(results))
        return results

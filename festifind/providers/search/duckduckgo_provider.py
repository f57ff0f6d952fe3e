"""DuckDuckGo web-search provider implementing IWebSearchProvider.

Uses the duckduckgo_search library for free, keyless web searches.  The
synchronous ``DDGS`` client runs in a worker thread so the research loop
stays non-blocking.
"""

from __future__ import annotations

import asyncio

import structlog
from duckduckgo_search import DDGS

from festifind.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from festifind.utils.errors import ResearchError

logger = structlog.get_logger(logger_name=__name__)


class DuckDuckGoSearchProvider(IWebSearchProvider):
    """DuckDuckGo web-search provider.

    Failures (including DuckDuckGo's rate limiting) are raised as
    :class:`ResearchError` so the calling tool can report them to the model.
    """

    def __init__(self, region: str = "wt-wt") -> None:
        self._region = region
        logger.info("duckduckgo_provider_initialized", region=region)

    async def search(self, query: str, num_results: int = 10) -> list[SearchResult]:
        try:
            raw_results = await asyncio.to_thread(self._sync_search, query, num_results)
        except Exception as exc:  # noqa: BLE001 - DDG raises its own exception types
            logger.warning("duckduckgo_search_failed", query=query, error=str(exc))
            raise ResearchError(
                message=f"Search failed for {query!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        results: list[SearchResult] = []
        for item in raw_results or []:
            url = item.get("href", item.get("url", ""))
            if not url:
                continue
            results.append(
                SearchResult(
                    title=item.get("title", ""),
                    url=url,
                    snippet=item.get("body"),
                )
            )

        logger.debug("duckduckgo_search_complete", query=query, result_count=len(results))
        return results

    def _sync_search(self, query: str, max_results: int) -> list[dict]:
        """Run the synchronous DDGS search (called via to_thread)."""
        with DDGS() as ddgs:
            return list(ddgs.text(query, region=self._region, max_results=max_results))

    def get_provider_name(self) -> str:
        return "duckduckgo"

    def is_available(self) -> bool:
        """DuckDuckGo is always available (no API key required)."""
        return True

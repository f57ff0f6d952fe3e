"""Abstract base class for web-search service providers.

Defines the contract for general-purpose web searches used by the
``web_search`` and ``linkedin_search`` tools.  Implementations may wrap
DuckDuckGo, Google, Bing or any other search API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SearchResult:
    """A single web-search result.

    Attributes
    ----------
    title:
        The page title as returned by the search engine.
    url:
        The canonical URL of the result page.
    snippet:
        An optional text excerpt/description from the result.
    """

    title: str
    url: str
    snippet: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


# Concrete implementation: DuckDuckGoSearchProvider (festifind/providers/search/)
class IWebSearchProvider(ABC):
    """Contract for web-search services used during festival research."""

    @abstractmethod
    async def search(self, query: str, num_results: int = 10) -> list[SearchResult]:
        """Execute a web search and return the top results.

        Parameters
        ----------
        query:
            The search query string.
        num_results:
            Maximum number of results to return.

        Returns
        -------
        list[SearchResult]
            Zero or more results ordered by relevance.

        Raises
        ------
        festifind.utils.errors.ResearchError
            If the search backend fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"duckduckgo"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""

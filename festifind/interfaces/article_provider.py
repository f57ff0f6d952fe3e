"""Abstract base class for web-page content providers.

Defines the contract for fetching a festival web page and returning its
readable text plus the outbound links found in the markup.  Used by the
``extract_webpage_data`` tool.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PageContent:
    """Readable content of one fetched web page.

    Attributes
    ----------
    url:
        The URL that was fetched (after redirects).
    title:
        Page title, empty when none could be determined.
    text:
        Main body text with navigation and boilerplate removed.
    links:
        Absolute ``href`` targets found in the page, in document order.
    """

    url: str
    title: str = ""
    text: str = ""
    links: tuple[str, ...] = field(default_factory=tuple)


# Concrete implementation: WebScraperProvider (festifind/providers/article/)
class IArticleProvider(ABC):
    """Contract for fetching and cleaning festival web pages."""

    @abstractmethod
    async def extract_content(self, url: str) -> PageContent:
        """Fetch *url* and return its readable content.

        Raises
        ------
        festifind.utils.errors.ResearchError
            If the page cannot be fetched.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

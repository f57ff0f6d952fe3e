"""Web page provider using httpx, trafilatura and BeautifulSoup.

Fetches raw HTML via httpx, extracts the readable body text with
trafilatura and collects outbound links with BeautifulSoup so that contact
and social links survive boilerplate removal.
"""

from __future__ import annotations

import json
from urllib.parse import urljoin

import httpx
import structlog
import trafilatura
from bs4 import BeautifulSoup

from festifind.interfaces.article_provider import IArticleProvider, PageContent
from festifind.utils.errors import ResearchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; FestiFind/0.1; festival research bot)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
_MAX_TEXT_LENGTH = 20_000


class WebScraperProvider(IArticleProvider):
    """Page extraction backed by httpx + trafilatura + BeautifulSoup."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    async def extract_content(self, url: str) -> PageContent:
        """Fetch *url* and return its main text, title and links."""
        try:
            response = await self._client.get(
                url,
                headers=_DEFAULT_HEADERS,
                timeout=_DEFAULT_TIMEOUT,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ResearchError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ResearchError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ResearchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        html = response.text
        final_url = str(response.url)
        soup = BeautifulSoup(html, "html.parser")

        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text:
            # Landing pages are often too thin for trafilatura; fall back to
            # the visible text of the document.
            logger.debug("trafilatura_extraction_empty", url=final_url)
            text = soup.get_text(separator="\n", strip=True)

        title = self._extract_title(html, soup)
        links = self._extract_links(soup, final_url)

        logger.info(
            "page_extracted",
            url=final_url,
            title=title,
            text_length=len(text),
            link_count=len(links),
        )
        return PageContent(
            url=final_url,
            title=title,
            text=text[:_MAX_TEXT_LENGTH],
            links=links,
        )

    @staticmethod
    def _extract_title(html: str, soup: BeautifulSoup) -> str:
        metadata = trafilatura.extract(html, output_format="json", with_metadata=True)
        if metadata:
            try:
                title = json.loads(metadata).get("title")
            except (json.JSONDecodeError, AttributeError):
                logger.debug("metadata_parse_failed")
            else:
                if title:
                    return title
        if soup.title and soup.title.string:
            return soup.title.string.strip()
        return ""

    @staticmethod
    def _extract_links(soup: BeautifulSoup, base_url: str) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or href.startswith(("#", "javascript:")):
                continue
            seen.setdefault(urljoin(base_url, href), None)
        return tuple(seen)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "web_scraper"

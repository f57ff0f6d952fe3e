"""Unit tests for search and article provider adapters."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from festifind.providers.article.web_scraper_provider import WebScraperProvider
from festifind.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from festifind.utils.errors import ResearchError


# ======================================================================
# DuckDuckGo Search Provider
# ======================================================================


def _mock_ddgs(results=None, error: Exception | None = None) -> MagicMock:
    mock_ddgs = MagicMock()
    mock_ddgs.__enter__ = MagicMock(return_value=mock_ddgs)
    mock_ddgs.__exit__ = MagicMock(return_value=False)
    if error is not None:
        mock_ddgs.text = MagicMock(side_effect=error)
    else:
        mock_ddgs.text = MagicMock(return_value=results or [])
    return mock_ddgs


class TestDuckDuckGoSearchProvider:
    def test_get_provider_name(self) -> None:
        assert DuckDuckGoSearchProvider().get_provider_name() == "duckduckgo"

    def test_is_available(self) -> None:
        assert DuckDuckGoSearchProvider().is_available() is True

    @pytest.mark.asyncio
    async def test_search_success(self) -> None:
        mock_results = [
            {
                "title": "Lowlands Festival",
                "href": "https://lowlands.nl",
                "body": "Three days of music in Biddinghuizen",
            },
            {"title": "Lowlands - Wikipedia", "url": "https://nl.wikipedia.org/wiki/Lowlands_(festival)"},
            {"title": "no url"},
        ]
        mock_ddgs = _mock_ddgs(mock_results)

        with patch("festifind.providers.search.duckduckgo_provider.DDGS", return_value=mock_ddgs):
            provider = DuckDuckGoSearchProvider(region="nl-nl")
            results = await provider.search("Lowlands festival", num_results=5)

        assert [r.url for r in results] == [
            "https://lowlands.nl",
            "https://nl.wikipedia.org/wiki/Lowlands_(festival)",
        ]
        assert results[0].snippet == "Three days of music in Biddinghuizen"
        assert results[1].snippet is None
        mock_ddgs.text.assert_called_once_with("Lowlands festival", region="nl-nl", max_results=5)

    @pytest.mark.asyncio
    async def test_search_empty_results(self) -> None:
        with patch("festifind.providers.search.duckduckgo_provider.DDGS", return_value=_mock_ddgs([])):
            results = await DuckDuckGoSearchProvider().search("nothing matches this")
        assert results == []

    @pytest.mark.asyncio
    async def test_search_error_raises_research_error(self) -> None:
        mock_ddgs = _mock_ddgs(error=RuntimeError("202 Ratelimit"))

        with patch("festifind.providers.search.duckduckgo_provider.DDGS", return_value=mock_ddgs):
            with pytest.raises(ResearchError, match="Ratelimit") as exc_info:
                await DuckDuckGoSearchProvider().search("Lowlands")

        assert exc_info.value.provider_name == "duckduckgo"


# ======================================================================
# Web Scraper Provider
# ======================================================================

_HTML = """
<html>
  <head><title>Lowlands 2025 | Info</title></head>
  <body>
    <nav><a href="#top">Top</a><a href="javascript:void(0)">Menu</a></nav>
    <article>
      <h1>Lowlands 2025</h1>
      <p>Lowlands takes place from 15 to 17 August 2025 at Walibi Holland in Biddinghuizen.
      The festival is organized by Mojo Concerts and welcomes 55,000 visitors every year.</p>
      <p>Contact the press office for accreditation and interview requests during the festival.</p>
    </article>
    <footer>
      <a href="/contact">Contact</a>
      <a href="mailto:info@lowlands.nl">Mail</a>
      <a href="https://www.instagram.com/lowlandsfestival/">Instagram</a>
      <a href="/contact">Contact again</a>
    </footer>
  </body>
</html>
"""


def _scraper(handler) -> WebScraperProvider:
    return WebScraperProvider(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestWebScraperProvider:
    def test_get_provider_name(self) -> None:
        assert _scraper(lambda r: httpx.Response(200)).get_provider_name() == "web_scraper"

    @pytest.mark.asyncio
    async def test_extract_content(self) -> None:
        provider = _scraper(lambda request: httpx.Response(200, text=_HTML))

        page = await provider.extract_content("https://lowlands.nl/info")

        assert page.url == "https://lowlands.nl/info"
        assert "Lowlands 2025" in page.title
        assert "Mojo Concerts" in page.text
        assert page.links == (
            "https://lowlands.nl/contact",
            "mailto:info@lowlands.nl",
            "https://www.instagram.com/lowlandsfestival/",
        )

    @pytest.mark.asyncio
    async def test_thin_page_falls_back_to_visible_text(self) -> None:
        html = "<html><head><title>Soon</title></head><body><p>Tickets soon</p></body></html>"
        provider = _scraper(lambda request: httpx.Response(200, text=html))

        with patch("festifind.providers.article.web_scraper_provider.trafilatura.extract", return_value=None):
            page = await provider.extract_content("https://fest.example")

        assert page.title == "Soon"
        assert "Tickets soon" in page.text

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        provider = _scraper(lambda request: httpx.Response(404))
        with pytest.raises(ResearchError, match="HTTP 404"):
            await provider.extract_content("https://fest.example/missing")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ResearchError, match="Timeout fetching"):
            await _scraper(handler).extract_content("https://fest.example")

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ResearchError) as exc_info:
            await _scraper(handler).extract_content("https://fest.example")
        assert exc_info.value.provider_name == "web_scraper"

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        await WebScraperProvider(http_client=client).aclose()
        assert client.is_closed is False
        await client.aclose()

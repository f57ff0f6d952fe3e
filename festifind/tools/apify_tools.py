"""Research tools backed by hosted Apify actors.

Registered only when ``APIFY_API_TOKEN`` is configured.  Each tool starts an
actor through :class:`~festifind.providers.apify.apify_client.ApifyClient`,
waits for it, and trims the dataset items to what the model needs.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from festifind.models.research import ToolKind
from festifind.providers.apify.apify_client import APIFY_ACTORS, ActorRun, ApifyClient
from festifind.tools.registry import ToolDefinition
from festifind.tools.schema import (
    ArraySchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    OptionalSchema,
    StringSchema,
)
from festifind.utils.errors import FestiFindError

logger = structlog.get_logger(logger_name=__name__)

_MAX_TEXT = 5000

_CRAWL_GLOBS = {
    "faq": "*faq*",
    "about": "*about*",
    "contact": "*contact*",
    "lineup": "*lineup*",
    "tickets": "*ticket*",
}


def _item_url(item: dict[str, Any]) -> str | None:
    return item.get("url") or item.get("link")


def _organic_results(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten Google-search dataset items into individual result dicts.

    The scraper emits one item per results page with an ``organicResults``
    list; items without that key are already individual results.
    """
    results: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item.get("organicResults"), list):
            results.extend(item["organicResults"])
        else:
            results.append(item)
    return results


def _unfinished(tool: str, run: ActorRun) -> str:
    return json.dumps(
        {
            "success": False,
            "error": f"{tool} actor run {run.id} ended with status {run.status}",
            "results": [],
        }
    )


def _failure(tool: str, exc: FestiFindError) -> str:
    logger.warning("apify_tool_failed", tool=tool, error=str(exc))
    return json.dumps({"success": False, "error": str(exc), "results": []})


def build_apify_tools(client: ApifyClient) -> list[ToolDefinition]:
    """Return the Apify-backed tools bound to *client*."""

    async def linkedin_company_search(tool_input: dict[str, Any]) -> str:
        company = tool_input["company_name"]
        max_results = tool_input["max_results"]
        query = f'site:linkedin.com/company "{company}" {tool_input.get("country") or ""}'.strip()
        try:
            run, items = await client.run_actor(
                APIFY_ACTORS["GOOGLE_SEARCH_SCRAPER"],
                {"queries": query, "maxPagesPerQuery": 1, "resultsPerPage": max_results},
                wait_for_finish=60,
            )
        except FestiFindError as exc:
            return _failure("linkedin_company_search", exc)
        if not run.succeeded:
            return _unfinished("linkedin_company_search", run)

        companies = [
            {
                "name": r.get("title") or r.get("name") or company,
                "url": _item_url(r),
                "description": r.get("description") or r.get("snippet"),
            }
            for r in _organic_results(items)
            if "linkedin.com/company" in (_item_url(r) or "")
        ][:max_results]
        return json.dumps(
            {
                "success": True,
                "query": company,
                "result_count": len(companies),
                "results": companies,
            }
        )

    async def google_search(tool_input: dict[str, Any]) -> str:
        query = tool_input["query"]
        search_type = tool_input["search_type"]
        max_results = tool_input["max_results"]
        language = tool_input["language"]
        search_query = f"{query} nieuws OR news" if search_type == "news" else query

        actor_input: dict[str, Any] = {
            "queries": search_query,
            "maxPagesPerQuery": -(-max_results // 10),
            "resultsPerPage": min(max_results, 10),
            "languageCode": language,
        }
        if language == "nl":
            actor_input["countryCode"] = "nl"

        try:
            run, items = await client.run_actor(
                APIFY_ACTORS["GOOGLE_SEARCH_SCRAPER"], actor_input, wait_for_finish=60
            )
        except FestiFindError as exc:
            return _failure("google_search", exc)
        if not run.succeeded:
            return _unfinished("google_search", run)

        results = [
            {
                "title": r.get("title"),
                "url": _item_url(r),
                "description": r.get("description") or r.get("snippet"),
                "displayed_url": r.get("displayedUrl"),
            }
            for r in _organic_results(items)[:max_results]
        ]
        return json.dumps(
            {
                "success": True,
                "query": query,
                "search_type": search_type,
                "result_count": len(results),
                "results": results,
            }
        )

    async def website_content_crawler(tool_input: dict[str, Any]) -> str:
        start_urls = tool_input["start_urls"]
        content = tool_input["extract_content"]
        globs = [] if "all" in content else [_CRAWL_GLOBS[c] for c in content]
        try:
            run, items = await client.run_actor(
                APIFY_ACTORS["WEBSITE_CONTENT_CRAWLER"],
                {
                    "startUrls": [{"url": u} for u in start_urls],
                    "maxCrawlPages": tool_input["max_pages"],
                    "crawlerType": "cheerio",
                    "includeUrlGlobs": globs,
                },
                wait_for_finish=120,
                timeout=180,
            )
        except FestiFindError as exc:
            return _failure("website_content_crawler", exc)
        if not run.succeeded:
            return _unfinished("website_content_crawler", run)

        pages = [
            {
                "url": item.get("url"),
                "title": (item.get("metadata") or {}).get("title") or item.get("title"),
                "text": (item.get("text") or "")[:_MAX_TEXT],
                "markdown": (item.get("markdown") or "")[:_MAX_TEXT],
            }
            for item in items
        ]
        return json.dumps({"success": True, "pages_extracted": len(pages), "results": pages})

    async def rag_web_browser(tool_input: dict[str, Any]) -> str:
        query = tool_input["query"]
        try:
            run, items = await client.run_actor(
                APIFY_ACTORS["RAG_WEB_BROWSER"],
                {
                    "query": query,
                    "maxResults": tool_input["max_results"],
                    "outputFormats": tool_input["output_formats"],
                },
                wait_for_finish=120,
            )
        except FestiFindError as exc:
            return _failure("rag_web_browser", exc)
        if not run.succeeded:
            return _unfinished("rag_web_browser", run)

        return json.dumps(
            {"success": True, "query": query, "pages_extracted": len(items), "results": items},
            default=str,
        )

    return [
        ToolDefinition(
            name="linkedin_company_search",
            description=(
                "Search LinkedIn for company pages related to a festival using a "
                "hosted Google scraper restricted to linkedin.com/company. Best for "
                "finding the official organizer company."
            ),
            input_schema=ObjectSchema(
                {
                    "company_name": StringSchema("Festival or company name", min_length=1),
                    "country": OptionalSchema(StringSchema("Country filter, e.g. 'Netherlands'")),
                    "max_results": OptionalSchema(
                        NumberSchema("Maximum company results", minimum=1, maximum=10, integer=True),
                        default=3,
                    ),
                }
            ),
            run=linkedin_company_search,
            kind=ToolKind.LINKEDIN_SEARCH,
        ),
        ToolDefinition(
            name="google_search",
            description=(
                "Search Google for news articles, reviews and general information "
                "about a festival. Best for recent news and press coverage."
            ),
            input_schema=ObjectSchema(
                {
                    "query": StringSchema("Search query", min_length=1),
                    "search_type": OptionalSchema(
                        EnumSchema(("general", "news", "images"), "Type of search"),
                        default="general",
                    ),
                    "max_results": OptionalSchema(
                        NumberSchema("Maximum results", minimum=1, maximum=50, integer=True),
                        default=10,
                    ),
                    "language": OptionalSchema(
                        StringSchema("Language code, e.g. 'nl' or 'en'"), default="nl"
                    ),
                }
            ),
            run=google_search,
            kind=ToolKind.WEB_SEARCH,
        ),
        ToolDefinition(
            name="website_content_crawler",
            description=(
                "Crawl a festival website and extract FAQ, about, contact, lineup "
                "and ticket pages as text."
            ),
            input_schema=ObjectSchema(
                {
                    "start_urls": ArraySchema(
                        StringSchema(format="url"), "URLs to start crawling from", min_items=1
                    ),
                    "max_pages": OptionalSchema(
                        NumberSchema("Maximum pages to crawl", minimum=1, maximum=50, integer=True),
                        default=10,
                    ),
                    "extract_content": OptionalSchema(
                        ArraySchema(
                            EnumSchema(("faq", "about", "contact", "lineup", "tickets", "all")),
                            "Page types to prioritize",
                            min_items=1,
                        ),
                        default=["all"],
                    ),
                }
            ),
            run=website_content_crawler,
            kind=ToolKind.PAGE_EXTRACTOR,
        ),
        ToolDefinition(
            name="rag_web_browser",
            description=(
                "Search the web and extract the content of the top result pages in "
                "one step. Best for complex questions that need both search and reading."
            ),
            input_schema=ObjectSchema(
                {
                    "query": StringSchema("Search query or URL to browse", min_length=1),
                    "max_results": OptionalSchema(
                        NumberSchema("Pages to extract", minimum=1, maximum=5, integer=True),
                        default=3,
                    ),
                    "output_formats": OptionalSchema(
                        ArraySchema(EnumSchema(("markdown", "text", "html")), min_items=1),
                        default=["markdown"],
                    ),
                }
            ),
            run=rag_web_browser,
            kind=ToolKind.PAGE_EXTRACTOR,
        ),
    ]

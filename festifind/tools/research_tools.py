"""Built-in research tools offered to the model.

Five capabilities cover the basic festival-research workflow:

    web_search             -- general / news / social web search
    linkedin_search        -- site-restricted search for LinkedIn pages
    extract_webpage_data   -- fetch a page and pull contact / event fields
    validate_linkedin_url  -- classify and standardize a LinkedIn URL
    synthesize_findings    -- summarize findings by confidence tier

The two pure tools are module-level definitions; the three that need a
network collaborator are built by factories so the composition root
(``festifind/main.py``) can inject the provider, and tests can inject fakes.

Every tool returns JSON text.  Backend failures are caught here and returned
as ``{"success": false, "error": ...}`` so the model can adjust its plan.
"""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import quote_plus

import structlog
from rapidfuzz import fuzz

from festifind.interfaces.article_provider import IArticleProvider
from festifind.interfaces.web_search_provider import IWebSearchProvider
from festifind.models.research import ToolKind
from festifind.services.page_extractor import EXTRACTABLE_FIELDS, extract_fields
from festifind.tools.registry import ToolDefinition
from festifind.tools.schema import (
    AnySchema,
    ArraySchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    OptionalSchema,
    StringSchema,
)
from festifind.utils.confidence import (
    HIGH_CONFIDENCE_THRESHOLD,
    calculate_confidence,
)
from festifind.utils.errors import FestiFindError

logger = structlog.get_logger(logger_name=__name__)

MEDIUM_CONFIDENCE_THRESHOLD = 0.5

_SEARCH_TYPE_SUFFIX = {
    "general": "",
    "news": " news",
    "social": " (instagram OR facebook OR tiktok)",
}

_LINKEDIN_PATHS = {
    "company": "company",
    "people": "in",
    "events": "events",
}

_LINKEDIN_SEARCH_URLS = {
    "company": "https://www.linkedin.com/search/results/companies/?keywords={}",
    "people": "https://www.linkedin.com/search/results/people/?keywords={}",
    "events": "https://www.linkedin.com/search/results/events/?keywords={}",
}

# profile type -> (URL pattern, path segment used in the standardized URL)
LINKEDIN_URL_PATTERNS: dict[str, tuple[re.Pattern[str], str]] = {
    "company": (re.compile(r"linkedin\.com/company/([^/?#\s]+)", re.IGNORECASE), "company"),
    "person": (re.compile(r"linkedin\.com/in/([^/?#\s]+)", re.IGNORECASE), "in"),
    "event": (re.compile(r"linkedin\.com/events/([^/?#\s]+)", re.IGNORECASE), "events"),
}


def _to_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, default=str)


def _failure(error: FestiFindError, **extra: Any) -> str:
    return _to_json({"success": False, "error": str(error), **extra})


def name_similarity(name: str, candidate: str) -> float:
    """Fuzzy match of a festival name against a page title, 0.0-1.0."""
    return fuzz.token_set_ratio(name.lower(), candidate.lower()) / 100.0


# ======================================================================
# validate_linkedin_url
# ======================================================================


def classify_linkedin_url(url: str) -> tuple[str | None, str | None]:
    """Return ``(profile_type, profile_id)`` for *url*, or ``(None, None)``."""
    for profile_type, (pattern, _segment) in LINKEDIN_URL_PATTERNS.items():
        match = pattern.search(url)
        if match:
            return profile_type, match.group(1)
    return None, None


def standardize_linkedin_url(profile_type: str, profile_id: str) -> str:
    segment = LINKEDIN_URL_PATTERNS[profile_type][1]
    return f"https://www.linkedin.com/{segment}/{profile_id}"


async def _validate_linkedin_url(tool_input: dict[str, Any]) -> str:
    url = tool_input["linkedin_url"].strip()
    expected = tool_input.get("expected_type")
    detected, profile_id = classify_linkedin_url(url)
    return _to_json(
        {
            "is_valid": detected is not None,
            "url": url,
            "detected_type": detected,
            "profile_id": profile_id,
            "matches_expected": detected == expected if expected else True,
            "standardized_url": (
                standardize_linkedin_url(detected, profile_id) if detected and profile_id else None
            ),
        }
    )


validate_linkedin_url_tool = ToolDefinition(
    name="validate_linkedin_url",
    description=(
        "Validate a LinkedIn URL and extract profile information. Use this to "
        "verify LinkedIn profiles are correct before reporting them."
    ),
    input_schema=ObjectSchema(
        {
            "linkedin_url": StringSchema("LinkedIn URL to validate", min_length=1),
            "expected_type": OptionalSchema(
                EnumSchema(("company", "person", "event"), "Profile type the URL should point to")
            ),
        }
    ),
    run=_validate_linkedin_url,
    kind=ToolKind.URL_VALIDATOR,
)


# ======================================================================
# synthesize_findings
# ======================================================================


async def _synthesize_findings(tool_input: dict[str, Any]) -> str:
    findings = tool_input["findings"]
    scores = [float(f["confidence"]) for f in findings]
    high = [s for s in scores if s >= HIGH_CONFIDENCE_THRESHOLD]
    medium = [s for s in scores if MEDIUM_CONFIDENCE_THRESHOLD <= s < HIGH_CONFIDENCE_THRESHOLD]

    recommendations = [
        "High-confidence data ready for import"
        if high
        else "Need more research for reliable data"
    ]
    if medium:
        recommendations.append("Some findings need manual verification")

    return _to_json(
        {
            "festival_name": tool_input["festival_name"],
            "summary": {
                "total_findings": len(findings),
                "high_confidence_count": len(high),
                "medium_confidence_count": len(medium),
                "average_confidence": round(calculate_confidence(scores), 3) if scores else None,
                "sources": sorted({f["source"] for f in findings}),
            },
            "recommendations": recommendations,
            "output_format": tool_input["output_format"],
        }
    )


synthesize_findings_tool = ToolDefinition(
    name="synthesize_findings",
    description=(
        "Synthesize and summarize research findings into a coherent report. "
        "Use this as the final step to compile all discovered information."
    ),
    input_schema=ObjectSchema(
        {
            "festival_name": StringSchema("Festival the findings belong to"),
            "findings": ArraySchema(
                ObjectSchema(
                    {
                        "source": StringSchema("Tool or site the finding came from"),
                        "data": OptionalSchema(AnySchema("The finding's content")),
                        "confidence": NumberSchema("Confidence 0-1", minimum=0, maximum=1),
                    }
                ),
                "Findings gathered so far",
            ),
            "output_format": OptionalSchema(
                EnumSchema(("summary", "detailed", "json"), "Report style"),
                default="summary",
            ),
        }
    ),
    run=_synthesize_findings,
    kind=ToolKind.OTHER,
)


# ======================================================================
# web_search
# ======================================================================


def make_web_search_tool(search_provider: IWebSearchProvider) -> ToolDefinition:
    """Build the ``web_search`` tool around *search_provider*."""

    async def run(tool_input: dict[str, Any]) -> str:
        query = tool_input["query"]
        search_type = tool_input["search_type"]
        full_query = query + _SEARCH_TYPE_SUFFIX[search_type]
        try:
            results = await search_provider.search(full_query, num_results=tool_input["max_results"])
        except FestiFindError as exc:
            logger.warning("web_search_failed", query=full_query, error=str(exc))
            return _failure(exc, query=query, results=[])

        return _to_json(
            {
                "success": True,
                "query": query,
                "search_type": search_type,
                "provider": search_provider.get_provider_name(),
                "result_count": len(results),
                "results": [r.to_dict() for r in results],
            }
        )

    return ToolDefinition(
        name="web_search",
        description=(
            "Search the web for information about a festival, including official "
            "website, social media and news articles. Use this to find initial "
            "information about a festival."
        ),
        input_schema=ObjectSchema(
            {
                "query": StringSchema("Search query to find festival information", min_length=1),
                "search_type": OptionalSchema(
                    EnumSchema(("general", "news", "social"), "Kind of search"),
                    default="general",
                ),
                "max_results": OptionalSchema(
                    NumberSchema("Maximum results to return", minimum=1, maximum=20, integer=True),
                    default=8,
                ),
            }
        ),
        run=run,
        kind=ToolKind.WEB_SEARCH,
    )


# ======================================================================
# linkedin_search
# ======================================================================


def make_linkedin_search_tool(search_provider: IWebSearchProvider) -> ToolDefinition:
    """Build the ``linkedin_search`` tool around *search_provider*.

    LinkedIn's own search needs a login, so the tool runs a site-restricted
    web search and returns the LinkedIn search URL alongside the hits.
    """

    async def run(tool_input: dict[str, Any]) -> str:
        festival_name = tool_input["festival_name"]
        target = tool_input["search_target"]
        keywords = tool_input.get("additional_keywords") or ""

        people_terms = keywords or "organizer"
        linkedin_keywords = f"{festival_name} {people_terms}" if target == "people" else festival_name
        search_url = _LINKEDIN_SEARCH_URLS[target].format(quote_plus(linkedin_keywords))

        path = _LINKEDIN_PATHS[target]
        query = f'site:linkedin.com/{path} "{festival_name}" {keywords}'.strip()
        try:
            results = await search_provider.search(query, num_results=10)
        except FestiFindError as exc:
            logger.warning("linkedin_search_failed", festival=festival_name, error=str(exc))
            return _failure(exc, search_url=search_url, results=[])

        hits = [
            {**r.to_dict(), "name_match": round(name_similarity(festival_name, r.title), 2)}
            for r in results
            if f"linkedin.com/{path}/" in r.url.lower()
        ]
        hits.sort(key=lambda hit: hit["name_match"], reverse=True)
        return _to_json(
            {
                "success": True,
                "festival_name": festival_name,
                "search_target": target,
                "search_url": search_url,
                "result_count": len(hits),
                "results": hits,
                "suggested_actions": [
                    "Validate each candidate URL with validate_linkedin_url",
                    "Look for organizer profiles that mention the festival",
                    "Check event pages that link to the company",
                ],
            }
        )

    return ToolDefinition(
        name="linkedin_search",
        description=(
            "Search LinkedIn for festival company pages, organizer profiles, or "
            "event pages. Use this to find professional connections and business "
            "information."
        ),
        input_schema=ObjectSchema(
            {
                "festival_name": StringSchema("Name of the festival to search for", min_length=1),
                "search_target": EnumSchema(
                    ("company", "people", "events"), "Type of LinkedIn entity to search for"
                ),
                "additional_keywords": OptionalSchema(
                    StringSchema("Additional keywords to refine the search")
                ),
            }
        ),
        run=run,
        kind=ToolKind.LINKEDIN_SEARCH,
    )


# ======================================================================
# extract_webpage_data
# ======================================================================


def make_extract_webpage_tool(article_provider: IArticleProvider) -> ToolDefinition:
    """Build the ``extract_webpage_data`` tool around *article_provider*."""

    async def run(tool_input: dict[str, Any]) -> str:
        url = tool_input["url"]
        fields = list(dict.fromkeys(tool_input["extract_fields"]))
        try:
            page = await article_provider.extract_content(url)
        except FestiFindError as exc:
            logger.warning("webpage_extract_failed", url=url, error=str(exc))
            return _failure(exc, url=url)

        return _to_json(
            {
                "success": True,
                "url": page.url,
                "title": page.title,
                "requested_fields": fields,
                "extracted": extract_fields(page, fields),
            }
        )

    return ToolDefinition(
        name="extract_webpage_data",
        description=(
            "Extract structured information from a festival website including "
            "contact details, dates, location and organizer information."
        ),
        input_schema=ObjectSchema(
            {
                "url": StringSchema("URL of the webpage to extract data from", format="url"),
                "extract_fields": ArraySchema(
                    EnumSchema(EXTRACTABLE_FIELDS),
                    "Fields to extract from the page",
                    min_items=1,
                ),
            }
        ),
        run=run,
        kind=ToolKind.PAGE_EXTRACTOR,
    )


def build_default_tools(
    search_provider: IWebSearchProvider,
    article_provider: IArticleProvider,
) -> list[ToolDefinition]:
    """The five built-in tools, in the order they are offered to the model."""
    return [
        make_web_search_tool(search_provider),
        make_linkedin_search_tool(search_provider),
        make_extract_webpage_tool(article_provider),
        validate_linkedin_url_tool,
        synthesize_findings_tool,
    ]

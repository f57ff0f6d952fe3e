"""Shared pytest fixtures for the FestiFind test suite."""

from __future__ import annotations

import json
from typing import Any

import pytest

from festifind.interfaces.article_provider import IArticleProvider, PageContent
from festifind.interfaces.llm_provider import (
    ChatMessage,
    ILLMProvider,
    ModelTurn,
    TextBlock,
    ToolSpec,
    ToolUseBlock,
)
from festifind.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from festifind.models.research import ResearchQuery, TargetInfo, ToolKind
from festifind.tools.registry import ToolDefinition
from festifind.tools.schema import ObjectSchema, OptionalSchema, StringSchema

# ---------------------------------------------------------------------------
# Fakes for the external collaborators
# ---------------------------------------------------------------------------


class ScriptedLLMProvider(ILLMProvider):
    """LLM stand-in that replays a fixed list of turns.

    Each script entry is a :class:`ModelTurn` to return or an exception to
    raise.  Once the script runs out, ``fallback`` is returned forever
    (``None`` means "end the conversation" with an empty text turn).
    Every call's arguments are recorded in ``calls``.
    """

    def __init__(self, script: list[ModelTurn | Exception], fallback: ModelTurn | None = None) -> None:
        self._script = list(script)
        self._fallback = fallback
        self.calls: list[dict[str, Any]] = []

    async def create_turn(
        self,
        *,
        system_prompt: str,
        messages: list[ChatMessage],
        tools: list[ToolSpec],
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> ModelTurn:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": list(messages),
                "tools": list(tools),
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self._script:
            step = self._script.pop(0)
        elif self._fallback is not None:
            step = self._fallback
        else:
            step = ModelTurn(content=(TextBlock("Done."),), stop_reason="end_turn")
        if isinstance(step, Exception):
            raise step
        return step

    def get_provider_name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return True


class FakeSearchProvider(IWebSearchProvider):
    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.queries: list[tuple[str, int]] = []

    async def search(self, query: str, num_results: int = 10) -> list[SearchResult]:
        self.queries.append((query, num_results))
        if self.error is not None:
            raise self.error
        return self.results[:num_results]

    def get_provider_name(self) -> str:
        return "fake_search"

    def is_available(self) -> bool:
        return True


class FakeArticleProvider(IArticleProvider):
    def __init__(self, page: PageContent | None = None, error: Exception | None = None) -> None:
        self.page = page
        self.error = error
        self.urls: list[str] = []

    async def extract_content(self, url: str) -> PageContent:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.page or PageContent(url=url)

    def get_provider_name(self) -> str:
        return "fake_article"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def tool_use(name: str, tool_input: dict[str, Any] | None = None, call_id: str | None = None) -> ToolUseBlock:
    return ToolUseBlock(id=call_id or f"call_{name}", name=name, input=tool_input or {})


def turn(*blocks: TextBlock | ToolUseBlock) -> ModelTurn:
    stop = "tool_use" if any(isinstance(b, ToolUseBlock) for b in blocks) else "end_turn"
    return ModelTurn(content=tuple(blocks), stop_reason=stop)


def static_tool(
    name: str,
    payload: Any,
    kind: ToolKind = ToolKind.OTHER,
) -> ToolDefinition:
    """A tool with an optional ``q`` string input that always returns *payload*.

    Strings are returned as-is; anything else is JSON-encoded.  An
    exception instance is raised instead.
    """

    async def run(tool_input: dict[str, Any]) -> str:
        if isinstance(payload, Exception):
            raise payload
        return payload if isinstance(payload, str) else json.dumps(payload)

    return ToolDefinition(
        name=name,
        description=f"Test tool {name}",
        input_schema=ObjectSchema({"q": OptionalSchema(StringSchema("query"))}),
        run=run,
        kind=kind,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_query() -> ResearchQuery:
    return ResearchQuery(
        festival_id="fest-42",
        festival_name="Lowlands",
        target_info=[TargetInfo.LINKEDIN_COMPANY, TargetInfo.CONTACT_EMAILS],
    )


@pytest.fixture
def festival_page() -> PageContent:
    return PageContent(
        url="https://lowlands.nl/info",
        title="Lowlands 2025 - Info",
        text=(
            "Lowlands festival takes place 15-17 August 2025 in Biddinghuizen.\n"
            "Location: Walibi Holland, Spijkweg 30, Biddinghuizen\n"
            "Organized by: Mojo Concerts\n"
            "Tickets: weekend tickets cost €285,00 including camping.\n"
            "Press enquiries: press@lowlands.nl or call +31 20 123 4567.\n"
        ),
        links=(
            "mailto:info@lowlands.nl",
            "https://www.instagram.com/lowlandsfestival/",
            "https://www.facebook.com/lowlandsfestival",
            "https://www.linkedin.com/company/mojo-concerts/",
            "https://tickets.lowlands.nl/shop",
        ),
    )

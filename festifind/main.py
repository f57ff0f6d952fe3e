"""FestiFind composition root.

Wires the LLM provider, the research tools and the orchestrator config
together.  Configuration comes from ``.env`` / environment variables
(:class:`Settings`) and ``config/config.yaml`` (:func:`load_config`).

Used by the CLI (``festifind/cli/research.py``) and by any caller that wants
a ready-to-run :class:`ResearchOrchestrator`::

    async with build_orchestrator() as orchestrator:
        result = await orchestrator.find_linkedin("Lowlands")
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import httpx
import structlog

from festifind.config.loader import load_config
from festifind.config.settings import Settings
from festifind.interfaces.llm_provider import ILLMProvider
from festifind.pipeline.orchestrator import OrchestratorConfig, ResearchOrchestrator
from festifind.providers.apify.apify_client import ApifyClient
from festifind.providers.article.web_scraper_provider import WebScraperProvider
from festifind.providers.llm.anthropic_provider import AnthropicLLMProvider
from festifind.providers.llm.openai_provider import OpenAILLMProvider
from festifind.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from festifind.tools.apify_tools import build_apify_tools
from festifind.tools.registry import ToolDefinition
from festifind.tools.research_tools import build_default_tools
from festifind.utils.errors import ConfigurationError
from festifind.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# LLM provider selection
# ---------------------------------------------------------------------------


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the LLM provider that drives the research loop.

    ``LLM_PROVIDER`` forces a choice; when it is empty the first provider
    with an API key wins.  Priority order: Anthropic -> OpenAI.

    Raises
    ------
    ConfigurationError
        If the chosen provider has no API key, the name is unknown, or no
        provider is configured at all.
    """
    choice = app_settings.llm_provider.strip().lower()

    if choice == "anthropic":
        if not app_settings.anthropic_api_key:
            raise ConfigurationError(message="LLM_PROVIDER=anthropic but ANTHROPIC_API_KEY is not set")
        return AnthropicLLMProvider(settings=app_settings)
    if choice == "openai":
        if not app_settings.openai_api_key:
            raise ConfigurationError(message="LLM_PROVIDER=openai but OPENAI_API_KEY is not set")
        return OpenAILLMProvider(settings=app_settings)
    if choice:
        raise ConfigurationError(message=f"Unknown LLM_PROVIDER: {choice!r}")

    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    raise ConfigurationError(
        message="No LLM provider configured; set ANTHROPIC_API_KEY or OPENAI_API_KEY"
    )


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def build_tools(
    app_settings: Settings,
    tools_config: dict[str, Any] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> list[ToolDefinition]:
    """Built-in research tools, plus the Apify tools when a token is set.

    *http_client* is shared by the page fetcher and the Apify client; the
    caller owns it and closes it.  Without one each provider opens its own.
    """
    tools_config = tools_config or {}
    region = (tools_config.get("search") or {}).get("region", "wt-wt")

    tools = build_default_tools(
        search_provider=DuckDuckGoSearchProvider(region=region),
        article_provider=WebScraperProvider(http_client=http_client),
    )
    if app_settings.apify_api_token:
        apify = ApifyClient(api_token=app_settings.apify_api_token, http_client=http_client)
        tools.extend(build_apify_tools(apify))
    return tools


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


def build_orchestrator(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
    overrides: dict[str, Any] | None = None,
) -> ResearchOrchestrator:
    """Construct a fully wired :class:`ResearchOrchestrator`.

    The returned orchestrator owns the shared HTTP client used by the
    tools; release it with ``await orchestrator.aclose()`` (or use the
    orchestrator as an async context manager).

    Parameters
    ----------
    custom_settings:
        Application settings.  Read from the environment if not provided.
    config_path:
        YAML file holding the ``orchestrator`` and ``tools`` sections.
    overrides:
        Values that replace keys of the ``orchestrator`` section, e.g. the
        CLI's ``--max-iterations``.
    """
    s = custom_settings or Settings()
    config = load_config(config_path, settings=s)

    llm = build_llm_provider(s)

    orchestrator_section = dict(config.get("orchestrator") or {})
    orchestrator_section.update({k: v for k, v in (overrides or {}).items() if v is not None})
    orchestrator_config = OrchestratorConfig.from_mapping(orchestrator_section)

    # -- Shared HTTP client (closed by ResearchOrchestrator.aclose) --
    http_client = httpx.AsyncClient(timeout=30.0)
    tools = build_tools(s, config.get("tools"), http_client=http_client)
    orchestrator_config = replace(orchestrator_config, tools=tuple(tools))

    _logger.info(
        "orchestrator_built",
        llm_provider=llm.get_provider_name(),
        model=orchestrator_config.model,
        tools=[t.name for t in tools],
        max_iterations=orchestrator_config.max_iterations,
    )
    return ResearchOrchestrator(
        llm_provider=llm,
        config=orchestrator_config,
        resources=[http_client],
    )

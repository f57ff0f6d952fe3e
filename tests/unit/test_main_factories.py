"""Unit tests for factory functions in festifind/main.py.

Tests LLM provider selection, tool assembly and build_orchestrator wiring,
all with SDK clients mocked so no real network calls or API keys are
required.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from festifind.config.loader import load_config
from festifind.config.settings import Settings
from festifind.main import build_llm_provider, build_orchestrator, build_tools
from festifind.pipeline.orchestrator import DEFAULT_MODEL
from festifind.providers.llm.anthropic_provider import AnthropicLLMProvider
from festifind.providers.llm.openai_provider import OpenAILLMProvider
from festifind.utils.errors import ConfigurationError


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(**overrides) -> Settings:
    """Build a Settings instance with every key empty unless overridden."""
    defaults = {
        "anthropic_api_key": "",
        "openai_api_key": "",
        "openai_base_url": "",
        "llm_provider": "",
        "apify_api_token": "",
        "app_env": "test",
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture(autouse=True)
def _no_sdk_clients():
    """Keep provider constructors from building real SDK clients."""
    with patch("festifind.providers.llm.anthropic_provider.anthropic.AsyncAnthropic"), patch(
        "festifind.providers.llm.openai_provider.openai.AsyncOpenAI"
    ):
        yield


# ======================================================================
# build_llm_provider
# ======================================================================


class TestBuildLLMProvider:
    """Provider priority order: Anthropic -> OpenAI, unless LLM_PROVIDER forces one."""

    def test_anthropic_priority(self) -> None:
        provider = build_llm_provider(_settings(anthropic_api_key="a", openai_api_key="o"))
        assert isinstance(provider, AnthropicLLMProvider)

    def test_openai_fallback(self) -> None:
        provider = build_llm_provider(_settings(openai_api_key="o"))
        assert isinstance(provider, OpenAILLMProvider)

    def test_forced_openai(self) -> None:
        provider = build_llm_provider(
            _settings(llm_provider="OpenAI", anthropic_api_key="a", openai_api_key="o")
        )
        assert isinstance(provider, OpenAILLMProvider)

    def test_forced_provider_without_key(self) -> None:
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            build_llm_provider(_settings(llm_provider="anthropic", openai_api_key="o"))

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown LLM_PROVIDER"):
            build_llm_provider(_settings(llm_provider="ollama", anthropic_api_key="a"))

    def test_nothing_configured(self) -> None:
        with pytest.raises(ConfigurationError, match="No LLM provider configured"):
            build_llm_provider(_settings())


# ======================================================================
# build_tools
# ======================================================================


class TestBuildTools:
    def test_default_tools_only(self) -> None:
        names = [t.name for t in build_tools(_settings())]
        assert names == [
            "web_search",
            "linkedin_search",
            "extract_webpage_data",
            "validate_linkedin_url",
            "synthesize_findings",
        ]

    def test_apify_tools_added_with_token(self) -> None:
        names = [t.name for t in build_tools(_settings(apify_api_token="apify_api_x"))]
        assert names[-4:] == [
            "linkedin_company_search",
            "google_search",
            "website_content_crawler",
            "rag_web_browser",
        ]
        assert len(names) == 9

    def test_search_region_from_config(self) -> None:
        with patch("festifind.main.DuckDuckGoSearchProvider") as ddg:
            build_tools(_settings(), {"search": {"region": "nl-nl"}})
        ddg.assert_called_once_with(region="nl-nl")


# ======================================================================
# load_config / build_orchestrator
# ======================================================================


class TestLoadConfig:
    def test_missing_file_yields_env_values(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings(openai_api_key="o"))
        assert config["llm"]["available_providers"] == ["openai"]
        assert config["tools"]["apify_enabled"] is False
        assert config["app"]["env"] == "test"

    def test_yaml_merged_with_env(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("app:\n  name: FestiFind\norchestrator:\n  max_iterations: 4\n")
        config = load_config(str(path), settings=_settings())
        assert config["app"] == {"name": "FestiFind", "env": "test"}
        assert config["orchestrator"] == {"max_iterations": 4}

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("orchestrator: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(path), settings=_settings())

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), settings=_settings())


class TestBuildOrchestrator:
    def test_wires_config_and_tools(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "orchestrator:\n"
            "  max_iterations: 6\n"
            "  temperature: 0.2\n"
            "  timeout_seconds: 120\n"
            "  parallel_tool_calls: true\n"
        )

        orchestrator = build_orchestrator(
            custom_settings=_settings(anthropic_api_key="a"),
            config_path=str(path),
        )

        config = orchestrator.config
        assert config.model == DEFAULT_MODEL
        assert config.max_iterations == 6
        assert config.temperature == 0.2
        assert config.timeout_seconds == 120.0
        assert config.parallel_tool_calls is True
        assert "validate_linkedin_url" in orchestrator.registry
        assert len(orchestrator.registry) == 5

    def test_overrides_win_and_none_is_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("orchestrator:\n  max_iterations: 6\n  model: claude-x\n")

        orchestrator = build_orchestrator(
            custom_settings=_settings(openai_api_key="o"),
            config_path=str(path),
            overrides={"max_iterations": 2, "model": None},
        )

        assert orchestrator.config.max_iterations == 2
        assert orchestrator.config.model == "claude-x"

    def test_invalid_orchestrator_value(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("orchestrator:\n  max_iterations: 0\n")
        with pytest.raises(ConfigurationError):
            build_orchestrator(custom_settings=_settings(anthropic_api_key="a"), config_path=str(path))

    @pytest.mark.asyncio
    async def test_shared_http_client_closed_by_orchestrator(self, tmp_path: Path) -> None:
        with patch("festifind.main.WebScraperProvider") as scraper, patch(
            "festifind.main.ApifyClient"
        ) as apify:
            orchestrator = build_orchestrator(
                custom_settings=_settings(anthropic_api_key="a", apify_api_token="apify_api_x"),
                config_path=str(tmp_path / "absent.yaml"),
            )

        http_client = scraper.call_args.kwargs["http_client"]
        assert isinstance(http_client, httpx.AsyncClient)
        assert apify.call_args.kwargs["http_client"] is http_client
        assert http_client.is_closed is False

        await orchestrator.aclose()

        assert http_client.is_closed is True

    def test_repo_config_file_loads(self) -> None:
        repo_config = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        orchestrator = build_orchestrator(
            custom_settings=_settings(anthropic_api_key="a"),
            config_path=str(repo_config),
        )
        assert orchestrator.config.max_iterations == 10
        assert orchestrator.config.timeout_seconds == 300.0

"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. Environment variables, e.g. ``ANTHROPIC_API_KEY=sk-ant-...``
  2. A ``.env`` file in the working directory (local development)

Field ``anthropic_api_key`` maps to env var ``ANTHROPIC_API_KEY``; defaults
apply when neither source sets a value.  Orchestrator tuning (model,
iteration cap, timeouts) lives in ``config/config.yaml``; see
:mod:`festifind.config.loader`.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FestiFind application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM Providers ===
    # Empty string = "not configured".
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (TogetherAI, Groq, ...)
    # "anthropic", "openai", or "" to pick the first provider with a key.
    llm_provider: str = ""

    # === Scraping services ===
    apify_api_token: str = ""

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        return providers

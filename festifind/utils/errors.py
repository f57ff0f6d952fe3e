"""Custom exception hierarchy for FestiFind.

All application exceptions inherit from :class:`FestiFindError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "anthropic", "apify", "duckduckgo") caused the failure.

The hierarchy is organized by where the failure happens:

    FestiFindError  (base -- catch-all for any FestiFind error)
    +-- QueryValidationError     (caller supplied an invalid research query)
    +-- DuplicateToolError       (two tools registered under one name)
    +-- ToolInputError           (tool input does not match its schema)
    +-- ResearchError            (web search, page fetch, scraping)
    +-- ConfigurationError       (startup / missing config)
    +-- LLMError                 (any LLM API call failure)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- ProviderUnavailableError (external service down / unreachable)

Only :class:`QueryValidationError` ever escapes
:meth:`ResearchOrchestrator.research`; everything else is folded into the
returned result or into a tool's error payload.
"""


class FestiFindError(Exception):
    """Base exception for all FestiFind errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[apify] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller / registration errors
# ---------------------------------------------------------------------------

class QueryValidationError(FestiFindError, ValueError):
    """Raised when a research query fails validation, before any work begins."""

    def __init__(
        self,
        message: str = "Invalid research query",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DuplicateToolError(FestiFindError):
    """Raised when a tool name is registered twice in one registry."""

    def __init__(
        self,
        message: str = "Tool already registered",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ToolInputError(FestiFindError):
    """Raised when a tool's input does not match its declared schema.

    The tool executor catches this and returns it to the model as an
    error payload; it never crosses the executor boundary.
    """

    def __init__(
        self,
        message: str = "Tool input does not match schema",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Research errors
# ---------------------------------------------------------------------------

class ResearchError(FestiFindError):
    """Raised when a research tool's backend fails (web search, page fetch, scraping)."""

    def __init__(
        self,
        message: str = "Research request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(FestiFindError):
    """Raised when an external service or provider is unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(FestiFindError):
    """Raised when an API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(FestiFindError):
    """Raised when an LLM API call fails or returns an unparseable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(FestiFindError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

"""Utility modules for FestiFind.

- **confidence** -- heuristic scoring of tool results and the
  human-readable level mapping used in reports.
- **errors** -- domain exception hierarchy rooted at FestiFindError.
- **logging** -- structlog setup with a console/JSON dual renderer.
"""

from festifind.utils.confidence import (
    DEFAULT_CONFIDENCE,
    HIGH_CONFIDENCE_THRESHOLD,
    ConfidenceLevel,
    calculate_confidence,
    confidence_to_level,
    estimate_confidence,
    score_payload,
)
from festifind.utils.errors import (
    ConfigurationError,
    DuplicateToolError,
    FestiFindError,
    LLMError,
    ProviderUnavailableError,
    QueryValidationError,
    RateLimitError,
    ResearchError,
    ToolInputError,
)
from festifind.utils.logging import configure_logging, get_logger

__all__ = [
    "DEFAULT_CONFIDENCE",
    "HIGH_CONFIDENCE_THRESHOLD",
    "ConfidenceLevel",
    "ConfigurationError",
    "DuplicateToolError",
    "FestiFindError",
    "LLMError",
    "ProviderUnavailableError",
    "QueryValidationError",
    "RateLimitError",
    "ResearchError",
    "ToolInputError",
    "calculate_confidence",
    "confidence_to_level",
    "configure_logging",
    "estimate_confidence",
    "get_logger",
    "score_payload",
]

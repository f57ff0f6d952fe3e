"""Confidence scoring utilities for research findings.

Every tool call the orchestrator makes becomes a :class:`Finding` with a
numeric confidence score (0.0--1.0).  This module provides:

1. **estimate_confidence** -- the heuristic rule table that scores a
   successful tool payload by the *kind* of tool that produced it.
2. **score_payload** -- the entry point the orchestrator uses; applies the
   rule table to successful payloads and the default score to error
   payloads and non-object data.
3. **calculate_confidence** -- weighted average of several scores, used
   when summarizing a batch of findings.
4. **confidence_to_level** -- maps a numeric score to a human-readable tier
   for reports and logs.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from festifind.models.research import ToolKind

DEFAULT_CONFIDENCE = 0.5
HIGH_CONFIDENCE_THRESHOLD = 0.8

# Rule table, evaluated top to bottom; first match wins.  Validated facts
# must keep outranking raw search hits, and unvalidated LinkedIn hits must
# stay below plain web search, because high-confidence filtering at
# HIGH_CONFIDENCE_THRESHOLD relies on this order.
VALIDATED_URL_CONFIDENCE = 0.95
EXTRACTED_PAGE_CONFIDENCE = 0.85
WEB_SEARCH_CONFIDENCE = 0.70
LINKEDIN_SEARCH_CONFIDENCE = 0.60


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers."""

    VERY_LOW = "very_low"    # < 0.2
    LOW = "low"              # 0.2 - 0.4
    MEDIUM = "medium"        # 0.4 - 0.6
    HIGH = "high"            # 0.6 - 0.8
    VERY_HIGH = "very_high"  # >= 0.8


def estimate_confidence(kind: ToolKind, payload: dict[str, Any]) -> float:
    """Score a successfully returned tool payload.

    Args:
        kind: Role of the tool that produced the payload.
        payload: The tool's decoded JSON object.

    Returns:
        One of the fixed rule-table scores.
    """
    if kind is ToolKind.URL_VALIDATOR and payload.get("is_valid"):
        return VALIDATED_URL_CONFIDENCE
    if kind is ToolKind.PAGE_EXTRACTOR and payload.get("success"):
        return EXTRACTED_PAGE_CONFIDENCE
    if kind is ToolKind.WEB_SEARCH:
        return WEB_SEARCH_CONFIDENCE
    if kind is ToolKind.LINKEDIN_SEARCH:
        return LINKEDIN_SEARCH_CONFIDENCE
    return DEFAULT_CONFIDENCE


def is_error_payload(data: Any) -> bool:
    """Return ``True`` when *data* is a tool error payload (``{"error": ...}``)."""
    return isinstance(data, dict) and bool(data.get("error"))


def score_payload(kind: ToolKind, data: Any) -> float:
    """Confidence for a tool result as recorded in a Finding.

    Error payloads and anything that is not a JSON object get
    :data:`DEFAULT_CONFIDENCE`; everything else goes through
    :func:`estimate_confidence`.
    """
    if not isinstance(data, dict) or is_error_payload(data):
        return DEFAULT_CONFIDENCE
    return estimate_confidence(kind, data)


def calculate_confidence(
    scores: list[float],
    weights: list[float] | None = None,
) -> float:
    """Compute a weighted average confidence score.

    Args:
        scores: Individual confidence scores, each in [0.0, 1.0].
        weights: Optional weights for each score. Defaults to equal weighting.

    Returns:
        Weighted average clamped to [0.0, 1.0].

    Raises:
        ValueError: If scores is empty or lengths of scores and weights differ.
    """
    if not scores:
        raise ValueError("scores must not be empty")

    if weights is None:
        weights = [1.0] * len(scores)

    if len(scores) != len(weights):
        raise ValueError("scores and weights must have the same length")

    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0

    weighted_sum = sum(s * w for s, w in zip(scores, weights, strict=True))
    return max(0.0, min(1.0, weighted_sum / total_weight))


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a human-readable level.

    Thresholds are evenly spaced at 0.2 intervals.
    """
    if score < 0.2:
        return ConfidenceLevel.VERY_LOW
    if score < 0.4:
        return ConfidenceLevel.LOW
    if score < 0.6:
        return ConfidenceLevel.MEDIUM
    if score < 0.8:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.VERY_HIGH

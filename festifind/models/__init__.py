"""Pydantic models for research queries, findings, results and events."""

from festifind.models.events import (
    CompleteEvent,
    ErrorEvent,
    FindingEvent,
    OrchestratorEvent,
    StartEvent,
    ThinkingEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from festifind.models.research import (
    Finding,
    LinkedInProfileRef,
    LinkedInProfileType,
    Priority,
    ResearchQuery,
    ResearchResult,
    ResearchStatus,
    TargetInfo,
    ToolKind,
)

__all__ = [
    "CompleteEvent",
    "ErrorEvent",
    "Finding",
    "FindingEvent",
    "LinkedInProfileRef",
    "LinkedInProfileType",
    "OrchestratorEvent",
    "Priority",
    "ResearchQuery",
    "ResearchResult",
    "ResearchStatus",
    "StartEvent",
    "TargetInfo",
    "ThinkingEvent",
    "ToolCallEvent",
    "ToolKind",
    "ToolResultEvent",
]

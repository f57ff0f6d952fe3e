"""Progress events broadcast by the research orchestrator.

Each event is a small frozen model tagged by a ``type`` literal; the
:data:`OrchestratorEvent` union is discriminated on that tag so a listener
(or a JSON consumer such as an SSE route) can dispatch on ``event.type``.

Order within one run:
    start -> (thinking | tool_call -> tool_result -> finding)* -> complete | error
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from festifind.models.research import Finding, ResearchQuery, ResearchResult


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class StartEvent(_Event):
    type: Literal["start"] = "start"
    query: ResearchQuery


class ThinkingEvent(_Event):
    """Narrative text from the model; never stored as a finding."""

    type: Literal["thinking"] = "thinking"
    content: str


class ToolCallEvent(_Event):
    type: Literal["tool_call"] = "tool_call"
    tool: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultEvent(_Event):
    type: Literal["tool_result"] = "tool_result"
    tool: str
    result: str


class FindingEvent(_Event):
    type: Literal["finding"] = "finding"
    finding: Finding


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"
    result: ResearchResult


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    error: str


OrchestratorEvent = Annotated[
    Union[  # noqa: UP007
        StartEvent,
        ThinkingEvent,
        ToolCallEvent,
        ToolResultEvent,
        FindingEvent,
        CompleteEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

"""Research orchestration: the conversation loop and its event emitter."""

from festifind.pipeline.event_emitter import EventEmitter
from festifind.pipeline.orchestrator import (
    OrchestratorConfig,
    ResearchOrchestrator,
    build_research_prompt,
)

__all__ = [
    "EventEmitter",
    "OrchestratorConfig",
    "ResearchOrchestrator",
    "build_research_prompt",
]

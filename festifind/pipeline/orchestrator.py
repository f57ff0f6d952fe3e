"""Multi-step, tool-calling research loop for one festival.

The orchestrator drives a language model through repeated turns.  Each turn
the model sees the full transcript plus every registered tool and answers
with narrative text and/or tool requests:

    query --> seed prompt --> [model turn --> run requested tools --> feed results back]*
                                                    |
                                                    +--> Finding (scored) per tool call

The loop ends when a turn requests no tools (natural stop) or after
``max_iterations`` turns; both produce a COMPLETED result.  Any exception
from the model collaborator (or an expired deadline) produces a FAILED
result that still carries every finding gathered so far.  The loop never
retries.

Tool failures never end the loop: the registry turns them into
``{"error": ...}`` payloads, which are recorded as default-confidence
findings and shown to the model so it can adjust.

Each :meth:`ResearchOrchestrator.research` call keeps its transcript and
findings in a private :class:`_ResearchRun`, so concurrent calls on one
orchestrator share only the read-only registry and the event emitter.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from festifind.interfaces.llm_provider import (
    ChatMessage,
    ILLMProvider,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
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
from festifind.pipeline.event_emitter import EventEmitter
from festifind.tools.registry import ToolDefinition, ToolRegistry
from festifind.utils.confidence import score_payload
from festifind.utils.errors import ConfigurationError, QueryValidationError
from festifind.utils.logging import get_logger

DEFAULT_MODEL = "claude-sonnet-4-20250514"

RESEARCH_SYSTEM_PROMPT = """You are an expert research assistant specialized in gathering information about music festivals and events. Your goal is to find accurate, verifiable information efficiently.

## Your Capabilities
- Search the web for festival information
- Find LinkedIn company pages and organizer profiles
- Extract structured data from websites
- Validate and verify discovered information
- Synthesize findings into actionable insights

## Research Strategy
1. Start with a web search to find the festival's official presence
2. Look for LinkedIn company pages and key organizer profiles
3. Extract contact information and social media links
4. Validate all discovered URLs and data
5. Synthesize findings with confidence scores

## Quality Standards
- Only report information you can verify
- Prioritize official sources over secondary sources
- Flag any inconsistencies or potential errors

## Output Format
Always provide structured findings that can be imported into a database.
For LinkedIn profiles, run every URL through validate_linkedin_url before reporting it."""

_TARGET_DESCRIPTIONS = {
    TargetInfo.LINKEDIN_COMPANY: "LinkedIn company page of the organizing company",
    TargetInfo.LINKEDIN_ORGANIZERS: "LinkedIn profiles of the key organizers",
    TargetInfo.CONTACT_EMAILS: "contact email addresses",
    TargetInfo.SOCIAL_MEDIA: "official social media accounts",
    TargetInfo.VENUE_DETAILS: "venue name, address and capacity",
    TargetInfo.TICKET_PRICING: "ticket prices and sales channels",
    TargetInfo.ARTIST_LINEUP: "current artist lineup",
    TargetInfo.SPONSORSHIP_INFO: "sponsors and partnership opportunities",
}


def build_research_prompt(query: ResearchQuery) -> str:
    """Render the first user message of a research transcript."""
    lines = [
        "Please research the following festival and gather the requested information:",
        "",
        f"**Festival Name:** {query.festival_name}",
    ]
    if query.festival_id:
        lines.append(f"**Festival ID:** {query.festival_id}")
    lines += ["", "**Information to gather:**"]
    lines += [f"- {t.value.replace('_', ' ')}: {_TARGET_DESCRIPTIONS[t]}" for t in query.target_info]
    lines += [
        "",
        f"**Research depth:** {query.max_depth} levels (follow links up to this depth)",
        f"**Priority:** {query.priority.value}",
        "",
        "Please use the available tools to:",
        "1. Search for the festival's official online presence",
        "2. Find LinkedIn profiles for the organization and key people",
        "3. Extract and validate any discovered information",
        "4. Synthesize your findings into a structured report",
        "",
        "Start by searching for the festival's web presence, then proceed to "
        "gather the specific information requested.",
    ]
    return "\n".join(lines)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Tuning for the conversation loop.

    ``enable_streaming`` is advisory; turns are always awaited whole.
    ``tools`` seeds the registry when the orchestrator is not handed one.
    ``timeout_seconds`` bounds the whole loop (``None`` = no deadline).
    With ``parallel_tool_calls`` the tool requests of one turn run
    concurrently; results are still recorded in requested order.
    """

    model: str = DEFAULT_MODEL
    max_tokens: int = 4096
    temperature: float = 0.7
    max_iterations: int = 10
    enable_streaming: bool = True
    tools: tuple[ToolDefinition, ...] = ()
    timeout_seconds: float | None = None
    parallel_tool_calls: bool = False
    system_prompt: str = RESEARCH_SYSTEM_PROMPT

    def __post_init__(self) -> None:
        if not self.model:
            raise ConfigurationError(message="model must not be empty")
        if self.max_tokens < 1:
            raise ConfigurationError(message=f"max_tokens must be >= 1, got {self.max_tokens}")
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                message=f"temperature must be within [0, 2], got {self.temperature}"
            )
        if self.max_iterations < 1:
            raise ConfigurationError(
                message=f"max_iterations must be >= 1, got {self.max_iterations}"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError(
                message=f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )
        # Accept any iterable of tools but store an immutable tuple.
        object.__setattr__(self, "tools", tuple(self.tools))

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None,
        tools: Iterable[ToolDefinition] = (),
    ) -> OrchestratorConfig:
        """Build a config from the ``orchestrator`` section of ``config.yaml``.

        Unknown keys are ignored; missing or null keys keep their defaults.
        """
        data = data or {}
        kwargs: dict[str, Any] = {}
        for key, cast in (
            ("model", str),
            ("max_tokens", int),
            ("temperature", float),
            ("max_iterations", int),
            ("enable_streaming", bool),
            ("timeout_seconds", float),
            ("parallel_tool_calls", bool),
            ("system_prompt", str),
        ):
            if data.get(key) is not None:
                try:
                    kwargs[key] = cast(data[key])
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(
                        message=f"orchestrator.{key}: cannot convert {data[key]!r} to {cast.__name__}"
                    ) from exc
        return cls(tools=tuple(tools), **kwargs)


def profile_from_validation(
    kind: ToolKind,
    data: Any,
    festival_name: str,
) -> LinkedInProfileRef | None:
    """LinkedIn reference for a URL-validator payload that reported a valid URL."""
    if kind is not ToolKind.URL_VALIDATOR or not isinstance(data, dict) or not data.get("is_valid"):
        return None
    url = data.get("standardized_url") or data.get("url")
    if not url:
        return None
    try:
        profile_type = LinkedInProfileType(data.get("detected_type"))
    except ValueError:
        return None
    return LinkedInProfileRef(url=url, type=profile_type, name=festival_name)


@dataclass
class _ResearchRun:
    """Mutable state of one research() call; never shared between calls."""

    query: ResearchQuery
    messages: list[ChatMessage] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    profiles: list[LinkedInProfileRef] = field(default_factory=list)
    iterations: int = 0


class ResearchOrchestrator:
    """Runs the research loop against an injected LLM provider.

    The tool registry comes from *registry* when given, otherwise it is
    built from ``config.tools``.  Subscribe to progress with
    :meth:`on_event`.

    *resources* are objects with an async ``aclose()`` (typically the
    shared ``httpx.AsyncClient`` behind the tools) that :meth:`aclose`
    releases.  The orchestrator is also an async context manager.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        config: OrchestratorConfig | None = None,
        registry: ToolRegistry | None = None,
        resources: Iterable[Any] = (),
    ) -> None:
        self._llm = llm_provider
        self._resources = list(resources)
        self._config = config or OrchestratorConfig()
        self._registry = registry if registry is not None else ToolRegistry(self._config.tools)
        self._emitter = EventEmitter()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def on_event(self, handler: Callable[[OrchestratorEvent], None]) -> Callable[[], None]:
        """Subscribe *handler* to every event; returns an unsubscribe function."""
        return self._emitter.on_event(handler)

    async def aclose(self) -> None:
        """Release the owned *resources*; safe to call more than once."""
        resources, self._resources = self._resources, []
        for resource in resources:
            await resource.aclose()
        if resources:
            self._logger.debug("orchestrator_closed", resources=len(resources))

    async def __aenter__(self) -> ResearchOrchestrator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def research(self, query: ResearchQuery | Mapping[str, Any]) -> ResearchResult:
        """Research one festival and return the outcome.

        Raises
        ------
        QueryValidationError
            If *query* is invalid.  Raised before any event, model turn or
            tool run.  Every other failure is reported in the result.
        """
        validated = self._coerce_query(query)
        run = _ResearchRun(query=validated)
        log = self._logger.bind(
            festival_name=validated.festival_name,
            festival_id=validated.festival_id,
        )

        self._emitter.emit(StartEvent(query=validated))
        log.info(
            "research_start",
            targets=[t.value for t in validated.target_info],
            model=self._config.model,
            tools=self._registry.names,
        )

        try:
            finished = await self._run_with_deadline(run)
        except Exception as exc:
            return self._fail(run, str(exc) or type(exc).__name__, log)
        if not finished:
            return self._fail(
                run, f"Research timed out after {self._config.timeout_seconds:g}s", log
            )

        result = ResearchResult(
            festival_id=validated.festival_id,
            festival_name=validated.festival_name,
            findings=list(run.findings),
            linkedin_profiles=list(run.profiles) or None,
            status=ResearchStatus.COMPLETED,
            iterations=run.iterations,
        )
        log.info(
            "research_complete",
            iterations=run.iterations,
            findings=len(result.findings),
            linkedin_profiles=len(run.profiles),
        )
        self._emitter.emit(CompleteEvent(result=result))
        return result

    async def find_linkedin(
        self,
        festival_name: str,
        festival_id: str | None = None,
    ) -> ResearchResult:
        """Shortcut for a quick, high-priority LinkedIn-only research run."""
        return await self.research(
            {
                "festival_id": festival_id,
                "festival_name": festival_name,
                "target_info": [TargetInfo.LINKEDIN_COMPANY, TargetInfo.LINKEDIN_ORGANIZERS],
                "max_depth": 2,
                "priority": Priority.HIGH,
            }
        )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_query(query: ResearchQuery | Mapping[str, Any]) -> ResearchQuery:
        if isinstance(query, ResearchQuery):
            return query
        if not isinstance(query, Mapping):
            raise QueryValidationError(
                message=f"Research query must be a ResearchQuery or a mapping, got {type(query).__name__}"
            )
        try:
            return ResearchQuery.model_validate(dict(query))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'query'}: {err['msg']}"
                for err in exc.errors()
            )
            raise QueryValidationError(message=f"Invalid research query: {problems}") from exc

    async def _run_with_deadline(self, run: _ResearchRun) -> bool:
        """Run the loop; ``False`` when ``timeout_seconds`` expired first.

        Exceptions raised inside the loop propagate unchanged, including a
        ``TimeoutError`` from the model collaborator itself.
        """
        timeout = self._config.timeout_seconds
        if timeout is None:
            await self._run_loop(run)
            return True

        task = asyncio.ensure_future(self._run_loop(run))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            return False
        task.result()
        return True

    async def _run_loop(self, run: _ResearchRun) -> None:
        run.messages.append(ChatMessage(role="user", content=build_research_prompt(run.query)))
        tools = self._registry.model_tools()

        while run.iterations < self._config.max_iterations:
            run.iterations += 1
            turn = await self._llm.create_turn(
                system_prompt=self._config.system_prompt,
                messages=list(run.messages),
                tools=tools,
                model=self._config.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            )
            tool_uses = turn.tool_uses
            self._logger.debug(
                "model_turn",
                iteration=run.iterations,
                stop_reason=turn.stop_reason,
                tool_calls=[t.name for t in tool_uses],
            )
            run.messages.append(ChatMessage(role="assistant", content=turn.content))

            if self._config.parallel_tool_calls:
                for block in turn.content:
                    if isinstance(block, TextBlock):
                        self._emit_thinking(block)
                results = await self._run_tools_concurrently(run, tool_uses)
            else:
                results = []
                for block in turn.content:
                    if isinstance(block, TextBlock):
                        self._emit_thinking(block)
                    else:
                        results.append(await self._invoke_tool(run, block))

            if not tool_uses:
                return
            run.messages.append(ChatMessage(role="user", content=tuple(results)))

        self._logger.info("max_iterations_reached", max_iterations=self._config.max_iterations)

    def _emit_thinking(self, block: TextBlock) -> None:
        if block.text.strip():
            self._emitter.emit(ThinkingEvent(content=block.text))

    async def _invoke_tool(self, run: _ResearchRun, block: ToolUseBlock) -> ToolResultBlock:
        self._emitter.emit(ToolCallEvent(tool=block.name, input=block.input))
        raw = await self._registry.execute(block.name, block.input)
        return self._record(run, block, raw)

    async def _run_tools_concurrently(
        self,
        run: _ResearchRun,
        blocks: list[ToolUseBlock],
    ) -> list[ToolResultBlock]:
        for block in blocks:
            self._emitter.emit(ToolCallEvent(tool=block.name, input=block.input))
        raws = await asyncio.gather(*(self._registry.execute(b.name, b.input) for b in blocks))
        return [self._record(run, block, raw) for block, raw in zip(blocks, raws)]

    def _record(self, run: _ResearchRun, block: ToolUseBlock, raw: str) -> ToolResultBlock:
        self._emitter.emit(ToolResultEvent(tool=block.name, result=raw))

        kind = self._registry.kind_of(block.name)
        finding = self._build_finding(block.name, kind, raw)
        run.findings.append(finding)
        self._emitter.emit(FindingEvent(finding=finding))

        profile = profile_from_validation(kind, finding.data, run.query.festival_name)
        if profile is not None:
            run.profiles.append(profile)

        return ToolResultBlock(tool_use_id=block.id, content=raw)

    @staticmethod
    def _build_finding(tool_name: str, kind: ToolKind, raw: str) -> Finding:
        try:
            data: Any = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            data = raw
        return Finding(
            type=tool_name,
            data=data,
            confidence=score_payload(kind, data),
            source=tool_name,
        )

    def _fail(
        self,
        run: _ResearchRun,
        message: str,
        log: structlog.BoundLogger,
    ) -> ResearchResult:
        log.error(
            "research_failed",
            error=message,
            iterations=run.iterations,
            findings=len(run.findings),
        )
        result = ResearchResult(
            festival_id=run.query.festival_id,
            festival_name=run.query.festival_name,
            findings=list(run.findings),
            linkedin_profiles=list(run.profiles) or None,
            status=ResearchStatus.FAILED,
            error=message,
            iterations=run.iterations,
        )
        self._emitter.emit(ErrorEvent(error=message))
        return result

"""Tool registry and executor for the research orchestrator.

The registry holds the fixed set of capabilities the model may invoke and
runs one of them by name.  :meth:`ToolRegistry.execute` never raises: every
failure path (unknown tool, bad input, an exception inside ``run``) comes
back as a JSON ``{"error": ...}`` string, which the orchestrator records as a
low-confidence finding and feeds back to the model.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import structlog

from festifind.interfaces.llm_provider import ToolSpec
from festifind.models.research import ToolKind
from festifind.tools.schema import ObjectSchema
from festifind.utils.errors import DuplicateToolError, ToolInputError
from festifind.utils.logging import get_logger

ToolRunner = Callable[[dict[str, Any]], Awaitable[str]]


@dataclass(frozen=True)
class ToolDefinition:
    """A capability the research agent may invoke.

    Attributes
    ----------
    name:
        Unique key the model uses to call the tool.
    description:
        Capability text shown verbatim to the model.
    input_schema:
        Shape of the expected input; rendered for the model and used to
        validate the model's arguments.
    run:
        Async callable returning JSON text.  Tools are expected to catch
        their own failures and return ``{"error": ...}``; the registry
        guards against the ones that slip through.
    kind:
        Role of the tool, used for confidence scoring.
    """

    name: str
    description: str
    input_schema: ObjectSchema
    run: ToolRunner = field(compare=False)
    kind: ToolKind = ToolKind.OTHER

    def to_spec(self) -> ToolSpec:
        return ToolSpec(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema.to_json_schema(),
        )


def error_payload(message: str) -> str:
    """Encode *message* as the standard tool error payload."""
    return json.dumps({"error": message})


class ToolRegistry:
    """Name -> tool mapping with a never-throwing executor.

    Tools are immutable once registered.  After construction the registry
    is only read, so one instance can be shared by concurrent research runs.
    """

    def __init__(self, tools: Iterable[ToolDefinition] = ()) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._specs: dict[str, ToolSpec] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)
        for tool in tools:
            self.register(tool)

    # ------------------------------------------------------------------
    # Registration / lookup
    # ------------------------------------------------------------------

    def register(self, tool: ToolDefinition) -> None:
        """Add *tool*; raises :class:`DuplicateToolError` on a repeated name."""
        if tool.name in self._tools:
            raise DuplicateToolError(message=f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        # The model-facing schema is rendered once, here.
        self._specs[tool.name] = tool.to_spec()
        self._logger.debug("tool_registered", tool=tool.name, kind=tool.kind.value)

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def kind_of(self, name: str) -> ToolKind:
        tool = self._tools.get(name)
        return tool.kind if tool else ToolKind.OTHER

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def model_tools(self) -> list[ToolSpec]:
        """Every registered tool in the format handed to the LLM provider."""
        return list(self._specs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, name: str, tool_input: Any) -> str:
        """Run tool *name* with *tool_input* and return its JSON text.

        Returns an ``{"error": ...}`` payload instead of raising when the
        tool is unknown, the input fails validation, or ``run`` raises.
        """
        tool = self._tools.get(name)
        if tool is None:
            self._logger.warning("unknown_tool_requested", tool=name)
            return error_payload(f"Unknown tool: {name}")

        try:
            validated = tool.input_schema.validate(tool_input if tool_input is not None else {})
        except ToolInputError as exc:
            self._logger.warning("tool_input_invalid", tool=name, error=str(exc))
            return error_payload(f"Invalid input for {name}: {exc}")

        try:
            result = await tool.run(validated)
        except Exception as exc:
            self._logger.warning(
                "tool_run_failed",
                tool=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return error_payload(str(exc) or type(exc).__name__)

        if not isinstance(result, str):
            result = json.dumps(result, default=str)

        self._logger.debug("tool_executed", tool=name, result_length=len(result))
        return result

"""Unit tests for ToolRegistry: registration, lookup and the never-throwing executor."""

from __future__ import annotations

import json
from typing import Any

import pytest

from festifind.models.research import ToolKind
from festifind.tools.registry import ToolDefinition, ToolRegistry, error_payload
from festifind.tools.schema import NumberSchema, ObjectSchema, StringSchema
from festifind.utils.errors import DuplicateToolError
from tests.conftest import static_tool


def _echo_tool(name: str = "echo") -> ToolDefinition:
    async def run(tool_input: dict[str, Any]) -> str:
        return json.dumps({"success": True, "echo": tool_input})

    return ToolDefinition(
        name=name,
        description="Echo the input",
        input_schema=ObjectSchema(
            {"text": StringSchema("Text"), "count": NumberSchema(minimum=1, integer=True)}
        ),
        run=run,
        kind=ToolKind.WEB_SEARCH,
    )


# ======================================================================
# Registration
# ======================================================================


class TestRegistration:
    def test_register_and_lookup(self) -> None:
        tool = _echo_tool()
        registry = ToolRegistry([tool])

        assert registry.get("echo") is tool
        assert "echo" in registry
        assert len(registry) == 1
        assert registry.names == ["echo"]
        assert list(registry) == [tool]
        assert registry.kind_of("echo") is ToolKind.WEB_SEARCH

    def test_duplicate_name_rejected(self) -> None:
        registry = ToolRegistry([_echo_tool()])
        with pytest.raises(DuplicateToolError, match="Tool already registered: echo"):
            registry.register(_echo_tool())
        assert len(registry) == 1

    def test_unknown_lookup_is_none_and_other_kind(self) -> None:
        registry = ToolRegistry()
        assert registry.get("missing") is None
        assert registry.get("missing") is None
        assert registry.kind_of("missing") is ToolKind.OTHER
        assert "missing" not in registry

    def test_model_tools_render_schema(self) -> None:
        registry = ToolRegistry([_echo_tool(), static_tool("other", {})])
        specs = registry.model_tools()

        assert [s.name for s in specs] == ["echo", "other"]
        assert specs[0].description == "Echo the input"
        assert specs[0].input_schema["type"] == "object"
        assert specs[0].input_schema["required"] == ["text", "count"]


# ======================================================================
# Execution
# ======================================================================


class TestExecute:
    @pytest.mark.asyncio
    async def test_success_returns_tool_output(self) -> None:
        registry = ToolRegistry([_echo_tool()])
        raw = await registry.execute("echo", {"text": "hi", "count": 2})
        assert json.loads(raw) == {"success": True, "echo": {"text": "hi", "count": 2}}

    @pytest.mark.asyncio
    async def test_unknown_tool(self) -> None:
        registry = ToolRegistry()
        raw = await registry.execute("nonexistent_tool", {})
        assert json.loads(raw) == {"error": "Unknown tool: nonexistent_tool"}

    @pytest.mark.asyncio
    async def test_unknown_tool_is_idempotent(self) -> None:
        registry = ToolRegistry([_echo_tool()])
        first = await registry.execute("nope", {"a": 1})
        second = await registry.execute("nope", {"a": 1})
        assert first == second
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_invalid_input_is_reported_not_raised(self) -> None:
        registry = ToolRegistry([_echo_tool()])
        raw = await registry.execute("echo", {"text": "hi"})
        error = json.loads(raw)["error"]
        assert error.startswith("Invalid input for echo:")
        assert "input.count" in error

    @pytest.mark.asyncio
    async def test_none_input_treated_as_empty_object(self) -> None:
        registry = ToolRegistry([static_tool("plain", {"ok": True})])
        assert json.loads(await registry.execute("plain", None)) == {"ok": True}

    @pytest.mark.asyncio
    async def test_exception_in_run_becomes_error_payload(self) -> None:
        registry = ToolRegistry([static_tool("boom", RuntimeError("backend exploded"))])
        raw = await registry.execute("boom", {})
        assert json.loads(raw) == {"error": "backend exploded"}

    @pytest.mark.asyncio
    async def test_exception_without_message_uses_type_name(self) -> None:
        registry = ToolRegistry([static_tool("boom", KeyError())])
        raw = await registry.execute("boom", {})
        assert json.loads(raw) == {"error": "KeyError"}

    @pytest.mark.asyncio
    async def test_non_string_result_is_json_encoded(self) -> None:
        async def run(tool_input: dict[str, Any]) -> Any:
            return {"success": True, "n": 3}

        tool = ToolDefinition("dicty", "returns a dict", ObjectSchema({}), run)
        raw = await ToolRegistry([tool]).execute("dicty", {})
        assert json.loads(raw) == {"success": True, "n": 3}

    @pytest.mark.parametrize(
        "tool_input",
        [None, {}, {"text": 1, "count": 1}, [1, 2], "string", {"text": "x", "count": 0}],
    )
    @pytest.mark.asyncio
    async def test_never_raises(self, tool_input: Any) -> None:
        registry = ToolRegistry([_echo_tool(), static_tool("boom", ValueError("bad"))])
        for name in ("echo", "boom", "missing"):
            raw = await registry.execute(name, tool_input)
            assert isinstance(raw, str)

    def test_error_payload_shape(self) -> None:
        assert json.loads(error_payload("oops")) == {"error": "oops"}

"""Tagged-variant input schemas for research tools.

A tool's input shape is declared once, at definition time, as a tree of the
small schema types below.  The same tree serves two purposes:

* :meth:`Schema.to_json_schema` renders the model-facing JSON-schema that
  LLM tool-calling APIs expect.
* :meth:`Schema.validate` checks (and normalizes) the input a model sends
  back before the tool runs; defaults are filled in and a
  :class:`~festifind.utils.errors.ToolInputError` names the offending path.

Example::

    ObjectSchema({
        "query": StringSchema("Search query"),
        "search_type": OptionalSchema(
            EnumSchema(("general", "news"), "Kind of search"), default="general"
        ),
    })
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from festifind.utils.errors import ToolInputError

_MISSING = object()


class Schema(ABC):
    """Base class for all schema variants."""

    description: str | None

    @abstractmethod
    def to_json_schema(self) -> dict[str, Any]:
        """Render this node as a JSON-schema fragment."""

    @abstractmethod
    def validate(self, value: Any, path: str = "input") -> Any:
        """Return the normalized *value* or raise :class:`ToolInputError`."""

    def _with_description(self, fragment: dict[str, Any]) -> dict[str, Any]:
        if self.description:
            fragment["description"] = self.description
        return fragment


@dataclass(frozen=True)
class StringSchema(Schema):
    description: str | None = None
    format: str | None = None  # only "url" is checked
    min_length: int | None = None

    def to_json_schema(self) -> dict[str, Any]:
        fragment: dict[str, Any] = {"type": "string"}
        if self.format == "url":
            fragment["format"] = "uri"
        if self.min_length is not None:
            fragment["minLength"] = self.min_length
        return self._with_description(fragment)

    def validate(self, value: Any, path: str = "input") -> str:
        if not isinstance(value, str):
            raise ToolInputError(f"{path}: expected string, got {type(value).__name__}")
        if self.min_length is not None and len(value) < self.min_length:
            raise ToolInputError(f"{path}: must be at least {self.min_length} characters")
        if self.format == "url":
            parsed = urlparse(value)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ToolInputError(f"{path}: not a valid http(s) URL: {value!r}")
        return value


@dataclass(frozen=True)
class NumberSchema(Schema):
    description: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    integer: bool = False

    def to_json_schema(self) -> dict[str, Any]:
        fragment: dict[str, Any] = {"type": "integer" if self.integer else "number"}
        if self.minimum is not None:
            fragment["minimum"] = self.minimum
        if self.maximum is not None:
            fragment["maximum"] = self.maximum
        return self._with_description(fragment)

    def validate(self, value: Any, path: str = "input") -> int | float:
        # bool is an int subclass; a model sending true for a count is a mistake.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ToolInputError(f"{path}: expected number, got {type(value).__name__}")
        if isinstance(value, float) and not math.isfinite(value):
            raise ToolInputError(f"{path}: must be finite")
        if self.integer:
            if isinstance(value, float) and not value.is_integer():
                raise ToolInputError(f"{path}: expected integer, got {value}")
            value = int(value)
        if self.minimum is not None and value < self.minimum:
            raise ToolInputError(f"{path}: must be >= {self.minimum}")
        if self.maximum is not None and value > self.maximum:
            raise ToolInputError(f"{path}: must be <= {self.maximum}")
        return value


@dataclass(frozen=True)
class BooleanSchema(Schema):
    description: str | None = None

    def to_json_schema(self) -> dict[str, Any]:
        return self._with_description({"type": "boolean"})

    def validate(self, value: Any, path: str = "input") -> bool:
        if not isinstance(value, bool):
            raise ToolInputError(f"{path}: expected boolean, got {type(value).__name__}")
        return value


@dataclass(frozen=True)
class EnumSchema(Schema):
    options: tuple[str, ...]
    description: str | None = None

    def to_json_schema(self) -> dict[str, Any]:
        return self._with_description({"type": "string", "enum": list(self.options)})

    def validate(self, value: Any, path: str = "input") -> str:
        if value not in self.options:
            allowed = ", ".join(self.options)
            raise ToolInputError(f"{path}: {value!r} is not one of: {allowed}")
        return value


@dataclass(frozen=True)
class AnySchema(Schema):
    """Accepts any JSON value unchanged."""

    description: str | None = None

    def to_json_schema(self) -> dict[str, Any]:
        return self._with_description({})

    def validate(self, value: Any, path: str = "input") -> Any:
        return value


@dataclass(frozen=True)
class ArraySchema(Schema):
    items: Schema
    description: str | None = None
    min_items: int | None = None
    max_items: int | None = None

    def to_json_schema(self) -> dict[str, Any]:
        fragment: dict[str, Any] = {"type": "array", "items": self.items.to_json_schema()}
        if self.min_items is not None:
            fragment["minItems"] = self.min_items
        if self.max_items is not None:
            fragment["maxItems"] = self.max_items
        return self._with_description(fragment)

    def validate(self, value: Any, path: str = "input") -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise ToolInputError(f"{path}: expected array, got {type(value).__name__}")
        if self.min_items is not None and len(value) < self.min_items:
            raise ToolInputError(f"{path}: needs at least {self.min_items} item(s)")
        if self.max_items is not None and len(value) > self.max_items:
            raise ToolInputError(f"{path}: allows at most {self.max_items} item(s)")
        return [self.items.validate(item, f"{path}[{idx}]") for idx, item in enumerate(value)]


@dataclass(frozen=True)
class OptionalSchema(Schema):
    """Wraps another schema; the property may be omitted (or null).

    When ``default`` is given, an omitted value is replaced by it.
    """

    inner: Schema
    default: Any = _MISSING

    @property
    def description(self) -> str | None:  # type: ignore[override]
        return self.inner.description

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING

    def to_json_schema(self) -> dict[str, Any]:
        fragment = self.inner.to_json_schema()
        if self.has_default:
            fragment["default"] = self.default
        return fragment

    def validate(self, value: Any, path: str = "input") -> Any:
        if value is None:
            return self.default if self.has_default else None
        return self.inner.validate(value, path)


@dataclass(frozen=True)
class ObjectSchema(Schema):
    properties: dict[str, Schema] = field(default_factory=dict)
    description: str | None = None

    @property
    def required(self) -> list[str]:
        return [name for name, prop in self.properties.items() if not isinstance(prop, OptionalSchema)]

    def to_json_schema(self) -> dict[str, Any]:
        fragment: dict[str, Any] = {
            "type": "object",
            "properties": {name: prop.to_json_schema() for name, prop in self.properties.items()},
        }
        if self.required:
            fragment["required"] = self.required
        return self._with_description(fragment)

    def validate(self, value: Any, path: str = "input") -> dict[str, Any]:
        if not isinstance(value, dict):
            raise ToolInputError(f"{path}: expected object, got {type(value).__name__}")

        normalized: dict[str, Any] = {}
        for name, prop in self.properties.items():
            child_path = f"{path}.{name}"
            if name not in value or value[name] is None:
                if isinstance(prop, OptionalSchema):
                    resolved = prop.validate(None, child_path)
                    if resolved is not None:
                        normalized[name] = resolved
                    continue
                raise ToolInputError(f"{child_path}: required property is missing")
            normalized[name] = prop.validate(value[name], child_path)

        # Unknown keys are passed through untouched; models add extras freely.
        for name, extra in value.items():
            if name not in self.properties:
                normalized[name] = extra
        return normalized

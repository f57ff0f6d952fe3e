"""Abstract base class for tool-calling LLM providers.

Defines the contract for the language model that plans each research step.
The orchestrator keeps its transcript in the provider-neutral types below;
each concrete adapter translates them to and from its own SDK format, so the
conversation loop never touches ``anthropic`` or ``openai`` objects directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Union


# ---------------------------------------------------------------------------
# Transcript content blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextBlock:
    """Narrative text produced by the model (or a plain user prompt)."""

    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    """A request from the model to invoke one tool.

    ``id`` is the provider's call identifier; the matching
    :class:`ToolResultBlock` must echo it back.
    """

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultBlock:
    """The raw string a tool returned, sent back to the model."""

    tool_use_id: str
    content: str


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]  # noqa: UP007


@dataclass(frozen=True)
class ChatMessage:
    """One transcript entry.

    ``content`` is either a plain string or an ordered tuple of blocks.
    Assistant messages carry text and tool-use blocks; user messages carry
    either the initial prompt or the tool-result blocks of one turn.
    """

    role: Literal["user", "assistant"]
    content: str | tuple[ContentBlock, ...]


@dataclass(frozen=True)
class ToolSpec:
    """A tool as advertised to the model: name, description, JSON-schema."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass(frozen=True)
class ModelTurn:
    """The model's response to one request.

    Attributes
    ----------
    content:
        Text and tool-use blocks in the order the model produced them.
    stop_reason:
        Provider-reported reason the turn ended (``"end_turn"``,
        ``"tool_use"``, ``"stop"``, ``"tool_calls"``, ...), if any.
    """

    content: tuple[TextBlock | ToolUseBlock, ...] = ()
    stop_reason: str | None = None

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content if isinstance(block, TextBlock))


# Concrete implementations: AnthropicLLMProvider, OpenAILLMProvider
# Located in: festifind/providers/llm/
class ILLMProvider(ABC):
    """Contract for the model that drives the research loop."""

    @abstractmethod
    async def create_turn(
        self,
        *,
        system_prompt: str,
        messages: list[ChatMessage],
        tools: list[ToolSpec],
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> ModelTurn:
        """Ask the model for its next step.

        Parameters
        ----------
        system_prompt:
            Instructions that frame the research task.
        messages:
            The full running transcript, oldest first.
        tools:
            Every tool the model may call this turn.
        model:
            Provider-specific model identifier.
        max_tokens:
            Upper bound on the number of tokens in the response.
        temperature:
            Sampling temperature.

        Returns
        -------
        ModelTurn
            The response's text and tool-use blocks.

        Raises
        ------
        festifind.utils.errors.LLMError
            If the API call fails or returns an unusable response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured (no network call)."""

"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`
using the Claude Messages API with tool use.

Translation notes:
    - The system prompt is a top-level parameter, not a message.
    - Assistant turns are replayed as lists of ``text`` / ``tool_use`` blocks.
    - Tool results go back inside a *user* message as ``tool_result`` blocks
      whose ``tool_use_id`` matches the request.
"""

from __future__ import annotations

from typing import Any

import anthropic
import structlog

from festifind.config.settings import Settings
from festifind.interfaces.llm_provider import (
    ChatMessage,
    ILLMProvider,
    ModelTurn,
    TextBlock,
    ToolResultBlock,
    ToolSpec,
    ToolUseBlock,
)
from festifind.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


def _block_to_anthropic(block: TextBlock | ToolUseBlock | ToolResultBlock) -> dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    return {"type": "tool_result", "tool_use_id": block.tool_use_id, "content": block.content}


def to_anthropic_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert the neutral transcript into Messages API ``messages``."""
    converted: list[dict[str, Any]] = []
    for message in messages:
        if isinstance(message.content, str):
            converted.append({"role": message.role, "content": message.content})
        else:
            converted.append(
                {"role": message.role, "content": [_block_to_anthropic(b) for b in message.content]}
            )
    return converted


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None) -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._client = client or anthropic.AsyncAnthropic(api_key=self._api_key)

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
        request: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system_prompt,
            "messages": to_anthropic_messages(messages),
        }
        if tools:
            request["tools"] = [
                {"name": t.name, "description": t.description, "input_schema": t.input_schema}
                for t in tools
            ]

        try:
            response = await self._client.messages.create(**request)
        except anthropic.RateLimitError as exc:
            raise RateLimitError(
                message=f"Anthropic rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        blocks: list[TextBlock | ToolUseBlock] = []
        for block in response.content:
            if block.type == "text":
                blocks.append(TextBlock(block.text))
            elif block.type == "tool_use":
                blocks.append(ToolUseBlock(id=block.id, name=block.name, input=dict(block.input or {})))

        logger.info(
            "anthropic_turn",
            model=model,
            stop_reason=response.stop_reason,
            tool_calls=sum(1 for b in blocks if isinstance(b, ToolUseBlock)),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return ModelTurn(content=tuple(blocks), stop_reason=response.stop_reason)

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "anthropic"

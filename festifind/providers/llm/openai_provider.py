"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider` with
chat-completions function calling.  When ``openai_base_url`` is configured
the client targets that endpoint instead, so any OpenAI-compatible host
(TogetherAI, Groq, Fireworks, ...) can drive the research loop.

Translation notes:
    - The system prompt becomes the first ``system`` message.
    - Assistant tool requests become ``tool_calls`` with JSON-encoded
      ``arguments``; each tool result is its own ``role="tool"`` message.
"""

from __future__ import annotations

import json
from typing import Any

import openai
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

DEFAULT_OPENAI_MODEL = "gpt-4o"


def to_openai_messages(system_prompt: str, messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert the neutral transcript into chat-completions ``messages``."""
    converted: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for message in messages:
        if isinstance(message.content, str):
            converted.append({"role": message.role, "content": message.content})
            continue

        if message.role == "assistant":
            text = "\n".join(b.text for b in message.content if isinstance(b, TextBlock))
            entry: dict[str, Any] = {"role": "assistant", "content": text or None}
            calls = [
                {
                    "id": b.id,
                    "type": "function",
                    "function": {"name": b.name, "arguments": json.dumps(b.input)},
                }
                for b in message.content
                if isinstance(b, ToolUseBlock)
            ]
            if calls:
                entry["tool_calls"] = calls
            converted.append(entry)
            continue

        texts: list[str] = []
        for block in message.content:
            if isinstance(block, ToolResultBlock):
                converted.append(
                    {"role": "tool", "tool_call_id": block.tool_use_id, "content": block.content}
                )
            elif isinstance(block, TextBlock):
                texts.append(block.text)
        if texts:
            converted.append({"role": "user", "content": "\n".join(texts)})
    return converted


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible API.

    The orchestrator passes its configured model name on every call; a
    Claude model id is swapped for :data:`DEFAULT_OPENAI_MODEL` so that the
    default configuration still works when only an OpenAI key is present.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        if client is None:
            client_kwargs: dict[str, Any] = {"api_key": self._api_key, "timeout": 60.0}
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)
        self._client = client

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
        if model.startswith("claude"):
            model = DEFAULT_OPENAI_MODEL

        request: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": to_openai_messages(system_prompt, messages),
        }
        if tools:
            request["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.input_schema,
                    },
                }
                for t in tools
            ]

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"OpenAI rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"OpenAI API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            raise LLMError(message="OpenAI returned no choices", provider_name=self.get_provider_name())

        choice = response.choices[0]
        blocks: list[TextBlock | ToolUseBlock] = []
        if choice.message.content:
            blocks.append(TextBlock(choice.message.content))
        for call in choice.message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError as exc:
                raise LLMError(
                    message=f"Malformed arguments for tool {call.function.name}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            if not isinstance(arguments, dict):
                raise LLMError(
                    message=f"Tool arguments for {call.function.name} are not an object",
                    provider_name=self.get_provider_name(),
                )
            blocks.append(ToolUseBlock(id=call.id, name=call.function.name, input=arguments))

        logger.info(
            "openai_turn",
            model=model,
            finish_reason=choice.finish_reason,
            tool_calls=sum(1 for b in blocks if isinstance(b, ToolUseBlock)),
            total_tokens=getattr(response.usage, "total_tokens", None),
        )
        return ModelTurn(content=tuple(blocks), stop_reason=choice.finish_reason)

    def is_available(self) -> bool:
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "openai"

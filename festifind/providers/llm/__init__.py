"""LLM provider adapters.

Two concrete implementations of ILLMProvider (festifind/interfaces/llm_provider.py):
    - AnthropicLLMProvider — Claude via the Messages API with tool use
    - OpenAILLMProvider    — chat-completions function calling (also any
                             OpenAI-compatible endpoint)

main.py picks one based on ``LLM_PROVIDER`` or the configured API keys.
"""

from festifind.providers.llm.anthropic_provider import AnthropicLLMProvider
from festifind.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]

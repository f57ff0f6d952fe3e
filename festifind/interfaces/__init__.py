"""Abstract interfaces for every external collaborator of the orchestrator.

Concrete adapters live in ``festifind/providers/`` and are wired together in
``festifind/main.py``:

    Interface             ->  Concrete implementations
    ---------------------------------------------------------------
    ILLMProvider          ->  AnthropicLLMProvider, OpenAILLMProvider
    IWebSearchProvider    ->  DuckDuckGoSearchProvider
    IArticleProvider      ->  WebScraperProvider
"""

from festifind.interfaces.article_provider import IArticleProvider, PageContent
from festifind.interfaces.llm_provider import (
    ChatMessage,
    ILLMProvider,
    ModelTurn,
    TextBlock,
    ToolResultBlock,
    ToolSpec,
    ToolUseBlock,
)
from festifind.interfaces.web_search_provider import IWebSearchProvider, SearchResult

__all__ = [
    "ChatMessage",
    "IArticleProvider",
    "ILLMProvider",
    "IWebSearchProvider",
    "ModelTurn",
    "PageContent",
    "SearchResult",
    "TextBlock",
    "ToolResultBlock",
    "ToolSpec",
    "ToolUseBlock",
]

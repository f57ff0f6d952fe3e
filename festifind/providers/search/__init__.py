from festifind.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider

__all__ = ["DuckDuckGoSearchProvider"]

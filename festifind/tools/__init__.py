"""Research tools: input schemas, the registry/executor and the tool sets."""

from festifind.tools.apify_tools import build_apify_tools
from festifind.tools.registry import ToolDefinition, ToolRegistry, error_payload
from festifind.tools.research_tools import (
    build_default_tools,
    make_extract_webpage_tool,
    make_linkedin_search_tool,
    make_web_search_tool,
    synthesize_findings_tool,
    validate_linkedin_url_tool,
)

__all__ = [
    "ToolDefinition",
    "ToolRegistry",
    "build_apify_tools",
    "build_default_tools",
    "error_payload",
    "make_extract_webpage_tool",
    "make_linkedin_search_tool",
    "make_web_search_tool",
    "synthesize_findings_tool",
    "validate_linkedin_url_tool",
]

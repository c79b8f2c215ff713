"""Success/error envelopes for tool results."""

import json
from typing import Any

from mcp.types import CallToolResult, TextContent


def _text(result: dict) -> TextContent:
    return TextContent(type="text", text=json.dumps(result, indent=2, default=str))


def success_result(payload: dict) -> CallToolResult:
    """Wrap a shaped payload as {"success": true, **payload}."""
    return CallToolResult(content=[_text({"success": True, **payload})])


def error_result(message: str, **details: Any) -> CallToolResult:
    """Wrap a failure as {"success": false, "error": message, **details}, flagged as an error."""
    return CallToolResult(content=[_text({"success": False, "error": message, **details})], isError=True)

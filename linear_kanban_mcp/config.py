"""
Configuration for the Linear Kanban MCP server.

All settings come from the process environment and are read once at import.
"""

import os
import sys

SERVER_NAME = "linear-kanban-mcp"
SERVER_VERSION = "1.0.0"

LINEAR_API_KEY = os.getenv("LINEAR_API_KEY", "")
LINEAR_API_URL = os.getenv("LINEAR_API_URL", "https://api.linear.app/graphql")
REQUEST_TIMEOUT = float(os.getenv("LINEAR_REQUEST_TIMEOUT", "30"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

INVALID_KEYS = ["SET_YOUR_API_KEY_HERE", "YOUR_API_KEY", "PLACEHOLDER", "", "null", "None", "undefined"]


def validate_api_key(api_key: str = None) -> str:
    """
    Validate the Linear API key configuration.

    Raises SystemExit if the key is missing or still a placeholder. The MCP
    server itself never calls this: without a key every upstream call fails
    with an authentication error reported through the normal envelope.
    Standalone scripts call it to fail fast instead.

    Returns:
        str: The validated API key
    """
    key = LINEAR_API_KEY if api_key is None else api_key
    if not key or key in INVALID_KEYS:
        print("Error: LINEAR_API_KEY environment variable is required", file=sys.stderr)
        sys.exit(1)
    return key

"""Model tools — schema and dispatch."""

from .schema import TOOL_SCHEMA, TOOL_NAMES
from .dispatcher import ToolDispatcher, ToolResult, FileChange

__all__ = ["TOOL_SCHEMA", "TOOL_NAMES", "ToolDispatcher", "ToolResult", "FileChange"]

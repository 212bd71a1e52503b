"""
Tool dispatcher — executes one model tool call against the repository.

Every failure is folded into a :class:`ToolResult` with ``success=False``;
nothing raised by the repository escapes :meth:`ToolDispatcher.execute`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..editing.safe_edit import SafeEditApplier
from ..errors import RemoteCoderError, UnknownToolError
from ..llm.base import ToolCall
from ..repo.base import RepositoryAccessor, normalize_path
from .schema import CREATE_FILE, READ_FILE, SEARCH_FILES, STR_REPLACE, TOOL_SCHEMA

logger = logging.getLogger(__name__)

_REQUIRED_INPUTS: dict[str, tuple[str, ...]] = {
    tool["name"]: tuple(tool["input_schema"]["required"]) for tool in TOOL_SCHEMA
}


@dataclass
class ToolResult:
    success: bool
    result: Any = None
    error: Optional[str] = None


@dataclass
class FileChange:
    """A mutation the turn made to the repository."""
    path: str
    action: str  # "create" | "edit" | "delete"
    diff: Optional[str] = None


class ToolDispatcher:
    """Routes tool calls to the repository accessor or the edit applier."""

    def __init__(self, accessor: RepositoryAccessor, branch: str = "main") -> None:
        self._accessor = accessor
        self._branch = branch
        self._editor = SafeEditApplier(accessor, branch)
        self._handlers = {
            READ_FILE: self._read_file,
            STR_REPLACE: self._str_replace,
            CREATE_FILE: self._create_file,
            SEARCH_FILES: self._search_files,
        }

    def execute(self, call: ToolCall) -> tuple[ToolResult, Optional[FileChange]]:
        """Run *call*; returns its result and the change it made, if any."""
        try:
            handler = self._handler_for(call.name)
        except UnknownToolError as exc:
            logger.warning("[Tools] Model requested unknown tool %r", call.name)
            return ToolResult(False, error=str(exc)), None

        missing = [key for key in _REQUIRED_INPUTS[call.name]
                   if not isinstance(call.input.get(key), str)]
        if missing:
            return ToolResult(
                False, error=f"Missing required input for {call.name}: {', '.join(missing)}"), None

        try:
            result, change = handler(call.input)
        except RemoteCoderError as exc:
            logger.warning("[Tools] %s failed: %s", call.name, exc)
            return ToolResult(False, error=str(exc)), None
        except Exception as exc:
            logger.error("[Tools] %s raised unexpectedly: %s", call.name, exc)
            return ToolResult(False, error=str(exc) or exc.__class__.__name__), None

        status = "ok" if result.success else f"failed ({result.error})"
        logger.info("[Tools] %s %s: %s", call.name, call.input.get("path", ""), status)
        return result, change

    def _handler_for(self, name: str):
        try:
            return self._handlers[name]
        except KeyError:
            raise UnknownToolError(name) from None

    # ── Handlers ──

    def _read_file(self, args: dict) -> tuple[ToolResult, None]:
        record = self._accessor.get_file(normalize_path(args["path"]), self._branch)
        return ToolResult(True, result=record.content), None

    def _str_replace(self, args: dict) -> tuple[ToolResult, Optional[FileChange]]:
        path = normalize_path(args["path"])
        edit = self._editor.apply(path, args["old_str"], args["new_str"])
        if not edit.success:
            return ToolResult(False, error=edit.error), None
        return ToolResult(True), FileChange(path=path, action="edit", diff=edit.diff)

    def _create_file(self, args: dict) -> tuple[ToolResult, FileChange]:
        path = normalize_path(args["path"])
        self._accessor.write_file(path, args["content"], f"Create {path}", self._branch)
        return ToolResult(True), FileChange(path=path, action="create")

    def _search_files(self, args: dict) -> tuple[ToolResult, None]:
        return ToolResult(True, result=self._accessor.search(args["query"])), None

"""
Safe edit applier — unique-string replacement against a remote file.

The file is always re-read immediately before the edit and written back with
the revision we just read as a precondition, so a concurrent remote change
makes the write fail instead of being silently overwritten.
"""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from enum import Enum

from ..errors import (
    AmbiguousEditError, EditTargetMissingError, NotFoundError,
    RemoteUnavailableError, RepositoryError, RevisionConflictError,
)
from ..repo.base import RepositoryAccessor

logger = logging.getLogger(__name__)


class EditOutcome(str, Enum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    REVISION_CONFLICT = "revision_conflict"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass
class EditResult:
    """Result of a single :meth:`SafeEditApplier.apply` call."""
    outcome: EditOutcome
    path: str
    error: str = ""
    diff: str = ""

    @property
    def success(self) -> bool:
        return self.outcome is EditOutcome.APPLIED


def snippet_diff(path: str, old: str, new: str) -> str:
    """Unified diff of the replaced snippet."""
    diff = difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
        lineterm="",
    )
    return "\n".join(line.rstrip("\n") for line in diff)


def replace_unique(path: str, content: str, old: str, new: str) -> str:
    """Replace the single occurrence of *old* in *content*.

    Raises :class:`EditTargetMissingError` or :class:`AmbiguousEditError`
    unless *old* occurs exactly once.
    """
    occurrences = content.count(old)
    if occurrences == 0:
        raise EditTargetMissingError(path)
    if occurrences > 1:
        raise AmbiguousEditError(path, occurrences)
    return content.replace(old, new, 1)


class SafeEditApplier:
    """Applies ``str_replace`` edits with an exactly-once precondition."""

    def __init__(self, accessor: RepositoryAccessor, branch: str = "main") -> None:
        self._accessor = accessor
        self._branch = branch

    def apply(self, path: str, old: str, new: str) -> EditResult:
        if not old:
            return EditResult(EditOutcome.INVALID, path,
                              error="old_str must not be empty")

        try:
            record = self._accessor.get_file(path, self._branch)
        except NotFoundError:
            return EditResult(EditOutcome.NOT_FOUND, path,
                              error=f"File not found: {path}")
        except RemoteUnavailableError as exc:
            return EditResult(EditOutcome.REMOTE_UNAVAILABLE, path, error=str(exc))
        except RepositoryError as exc:
            return EditResult(EditOutcome.FAILED, path, error=str(exc))

        try:
            updated = replace_unique(path, record.content, old, new)
        except EditTargetMissingError as exc:
            return EditResult(EditOutcome.NOT_FOUND, path, error=str(exc))
        except AmbiguousEditError as exc:
            return EditResult(EditOutcome.AMBIGUOUS, path, error=str(exc))

        try:
            self._accessor.write_file(path, updated, f"Edit {path}", self._branch,
                                      expected_revision=record.revision)
        except RevisionConflictError as exc:
            logger.warning("[Edit] Revision conflict on %s (expected %s)",
                           path, record.revision)
            return EditResult(EditOutcome.REVISION_CONFLICT, path, error=str(exc))
        except RemoteUnavailableError as exc:
            return EditResult(EditOutcome.REMOTE_UNAVAILABLE, path, error=str(exc))
        except RepositoryError as exc:
            return EditResult(EditOutcome.FAILED, path, error=str(exc))

        logger.info("[Edit] Replaced 1 occurrence in %s", path)
        return EditResult(EditOutcome.APPLIED, path, diff=snippet_diff(path, old, new))

"""
Repository access — records, the accessor interface, and tree helpers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

FILE = "file"
DIR = "dir"


def normalize_path(path: str) -> str:
    """Canonical repo path: forward slashes, no leading ``/``, ``.``/``..`` folded."""
    resolved: list[str] = []
    for part in path.replace("\\", "/").split("/"):
        if part == "..":
            if resolved:
                resolved.pop()
        elif part not in (".", ""):
            resolved.append(part)
    return "/".join(resolved)


@dataclass
class FileRecord:
    """A file's content at a specific remote revision (blob SHA)."""
    path: str
    content: str
    revision: str = ""


@dataclass
class TreeNode:
    path: str
    kind: str = FILE
    children: list["TreeNode"] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def is_dir(self) -> bool:
        return self.kind == DIR


def build_tree(entries: Iterable[tuple[str, str]]) -> list[TreeNode]:
    """Nest flat ``(path, kind)`` entries into a forest of :class:`TreeNode`.

    Entries are sorted by path first so that every directory is seen before
    its contents.  A node whose parent was never listed goes to the root.
    """
    roots: list[TreeNode] = []
    by_path: dict[str, TreeNode] = {}

    for path, kind in sorted(entries, key=lambda e: e[0]):
        node = TreeNode(path=path, kind=kind)
        by_path[path] = node

        parent_path = path.rsplit("/", 1)[0] if "/" in path else ""
        parent = by_path.get(parent_path) if parent_path else None
        if parent is not None and parent.is_dir:
            parent.children.append(node)
        else:
            roots.append(node)

    return roots


def format_tree(tree: list[TreeNode], indent: str = "") -> str:
    """Render a tree as an indented listing, one entry per line."""
    lines: list[str] = []
    for node in tree:
        icon = "📁" if node.is_dir else "📄"
        lines.append(f"{indent}{icon} {node.name}\n")
        if node.children:
            lines.append(format_tree(node.children, indent + "  "))
    return "".join(lines)


class RepositoryAccessor(ABC):
    """Remote repository operations consumed by the core.

    Implementations raise :class:`~remote_coder.errors.NotFoundError`,
    :class:`~remote_coder.errors.RevisionConflictError` and
    :class:`~remote_coder.errors.RemoteUnavailableError`; anything else is a
    :class:`~remote_coder.errors.RepositoryError`.
    """

    @abstractmethod
    def get_tree(self, branch: str) -> list[TreeNode]:
        """Full file tree of *branch*."""

    @abstractmethod
    def get_file(self, path: str, branch: str) -> FileRecord:
        """Content and revision of one regular file."""

    @abstractmethod
    def write_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        expected_revision: Optional[str] = None,
    ) -> None:
        """Create or update *path*.

        When *expected_revision* is given the write only succeeds if the
        remote file is still at that revision.
        """

    @abstractmethod
    def search(self, term: str) -> list[str]:
        """Paths of files whose content matches *term*."""

"""Remote repository access."""

from .base import (
    FileRecord, TreeNode, RepositoryAccessor,
    build_tree, format_tree, normalize_path,
)
from .github import GitHubAccessor

__all__ = [
    "FileRecord", "TreeNode", "RepositoryAccessor",
    "build_tree", "format_tree", "normalize_path",
    "GitHubAccessor",
]

"""Safe remote file editing."""

from .safe_edit import SafeEditApplier, EditResult, EditOutcome, snippet_diff

__all__ = ["SafeEditApplier", "EditResult", "EditOutcome", "snippet_diff"]

"""Context assembly — seed selection and import-graph expansion."""

from .imports import extract_references, resolve_relative
from .loader import ContextLoader, LoadedContext, candidate_paths
from .relevance import RelevanceSelector, extract_keywords

__all__ = [
    "extract_references", "resolve_relative",
    "ContextLoader", "LoadedContext", "candidate_paths",
    "RelevanceSelector", "extract_keywords",
]

"""
Relevance selector — turns a free-text request into a handful of seed paths
by pulling keywords out of the text and running them through repository
search.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor

from ..repo.base import RepositoryAccessor

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 3
MAX_SEEDS = 5

# Nouns that usually name a code structure the user wants touched
_CODE_TERM_RE = re.compile(
    r"\b(component|function|api|route|service|util|hook|type|interface"
    r"|class|module|page|layout)\b",
    re.IGNORECASE,
)
# checkout.ts, price-table.tsx, settings.json
_FILE_REF_RE = re.compile(r"[\w-]+\.(?:tsx|ts|jsx|js|css|json|py)\b", re.IGNORECASE)
# CheckoutForm, useCartState
_COMPOUND_IDENT_RE = re.compile(r"\b[a-zA-Z][a-z0-9]+(?:[A-Z][a-z0-9]+)+\b")
# Checkout (but not the first word of a sentence or line)
_CAPITALIZED_RE = re.compile(r"(?<![.!?]\s)(?<!\n)(?<!^)\b[A-Z][a-z0-9]{2,}\b")


def _code_terms(text: str) -> list[str]:
    return [m.group(0) for m in _CODE_TERM_RE.finditer(text)]


def _file_refs(text: str) -> list[str]:
    return [m.group(0) for m in _FILE_REF_RE.finditer(text)]


def _identifiers(text: str) -> list[str]:
    """Compound identifiers plus mid-sentence capitalized words, in text order."""
    text = text.strip()
    hits = [(m.start(), m.group(0)) for m in _COMPOUND_IDENT_RE.finditer(text)]
    covered = [(m.start(), m.end()) for m in _COMPOUND_IDENT_RE.finditer(text)]
    for m in _CAPITALIZED_RE.finditer(text):
        if not any(start <= m.start() < end for start, end in covered):
            hits.append((m.start(), m.group(0)))
    hits.sort(key=lambda h: h[0])
    return [word for _pos, word in hits]


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Search terms for *text*: code terms, then file names, then identifiers.

    Duplicates are dropped keeping the first occurrence; at most *limit*
    keywords are returned.
    """
    keywords: list[str] = []
    for word in _code_terms(text) + _file_refs(text) + _identifiers(text):
        if word not in keywords:
            keywords.append(word)
    return keywords[:limit]


class RelevanceSelector:
    """Chooses seed paths for a request via repository search."""

    def __init__(
        self,
        accessor: RepositoryAccessor,
        max_keywords: int = MAX_KEYWORDS,
        max_seeds: int = MAX_SEEDS,
    ) -> None:
        self._accessor = accessor
        self._max_keywords = max_keywords
        self._max_seeds = max_seeds

    def select_seeds(self, text: str) -> list[str]:
        keywords = extract_keywords(text, self._max_keywords)
        if not keywords:
            logger.info("[Relevance] No keywords in request; no seed files")
            return []

        logger.info("[Relevance] Searching for %s", keywords)
        with ThreadPoolExecutor(max_workers=len(keywords)) as pool:
            # map() keeps keyword order regardless of completion order
            results = list(pool.map(self._search, keywords))

        seeds: list[str] = []
        for paths in results:
            for path in paths:
                if path not in seeds:
                    seeds.append(path)
        seeds = seeds[:self._max_seeds]
        logger.info("[Relevance] Seed files: %s", seeds)
        return seeds

    def _search(self, keyword: str) -> list[str]:
        try:
            return list(self._accessor.search(keyword))
        except Exception as exc:
            logger.warning("[Relevance] Search for %r failed: %s", keyword, exc)
            return []

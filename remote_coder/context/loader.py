"""
Context loader — pulls seed files and their local imports from the remote
repository, breadth-first, up to a fixed depth.

Fetches run on a thread pool.  Each ``load()`` call owns a fresh
:class:`_LookupCache`, so every candidate spelling is requested at most once
per load, and a fresh :class:`_VisitedSet` of resolved files, so a file
reached through several imports (or a cycle) is loaded once.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional

from ..errors import NotFoundError
from ..repo.base import FileRecord, RepositoryAccessor, format_tree, normalize_path
from .imports import extract_references

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")
INDEX_SUFFIXES = ("/index.ts", "/index.tsx", "/index.js")

DEFAULT_MAX_DEPTH = 2


def candidate_paths(path: str) -> list[str]:
    """Spellings tried for an import target, highest priority first."""
    return ([path]
            + [path + suffix for suffix in SOURCE_SUFFIXES]
            + [path + suffix for suffix in INDEX_SUFFIXES])


class Lookup(NamedTuple):
    """Outcome of fetching one candidate spelling."""
    found: bool
    record: Optional[FileRecord] = None


NOT_FOUND = Lookup(False)


@dataclass
class LoadedContext:
    """Files pulled in for a turn plus the rendered repository tree."""
    tree: str = ""
    files: list[FileRecord] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def sorted_files(self) -> list[FileRecord]:
        """Files ordered by path, for reproducible prompts."""
        return sorted(self.files, key=lambda f: f.path)


class _VisitedSet:
    """Resolved files already taken by some branch of one traversal."""

    def __init__(self) -> None:
        self._paths: set[str] = set()
        self._lock = threading.Lock()

    def claim(self, path: str) -> bool:
        """Atomically mark *path* visited; False if someone got there first."""
        with self._lock:
            if path in self._paths:
                return False
            self._paths.add(path)
            return True

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._paths


@dataclass
class _PendingLookup:
    lookup: Lookup = NOT_FOUND
    done: threading.Event = field(default_factory=threading.Event)


class _LookupCache:
    """One fetch per candidate spelling; later askers share its outcome.

    The first caller for a spelling fetches it; concurrent callers block
    until that fetch finishes.  The owner fetches right after registering,
    so a waiter never waits on queued work.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _PendingLookup] = {}
        self._lock = threading.Lock()

    def get(self, candidate: str, fetch: Callable[[str], Lookup]) -> Lookup:
        with self._lock:
            entry = self._entries.get(candidate)
            owner = entry is None
            if owner:
                entry = self._entries[candidate] = _PendingLookup()
        if owner:
            try:
                entry.lookup = fetch(candidate)
            finally:
                entry.done.set()
        else:
            entry.done.wait()
        return entry.lookup


class ContextLoader:
    """Bounded-depth import expansion over a remote repository.

    Parameters
    ----------
    accessor:
        Repository capability used for tree and file fetches.
    branch:
        Branch to read from.
    max_workers:
        Size of the fetch thread pool.
    max_depth:
        Default expansion depth; seeds are depth 0.
    """

    def __init__(
        self,
        accessor: RepositoryAccessor,
        branch: str = "main",
        max_workers: int = 8,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._accessor = accessor
        self._branch = branch
        self._max_workers = max(1, max_workers)
        self._max_depth = max_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, seeds: list[str], max_depth: Optional[int] = None) -> LoadedContext:
        """Fetch *seeds* and everything they import, up to *max_depth* hops."""
        depth_limit = self._max_depth if max_depth is None else max_depth
        files = self.load_files(seeds, depth_limit)
        return LoadedContext(tree=self.render_tree(), files=files)

    def load_files(self, seeds: list[str], max_depth: int) -> list[FileRecord]:
        """Expansion without the tree fetch; files in completion order."""
        visited = _VisitedSet()
        lookups = _LookupCache()
        scheduled: set[str] = set()
        files: list[FileRecord] = []

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            pending: dict[Future, int] = {}

            def schedule(path: str, depth: int) -> None:
                if path and path not in scheduled and path not in visited:
                    scheduled.add(path)
                    pending[pool.submit(self._resolve, path, visited, lookups)] = depth

            for seed in seeds:
                schedule(normalize_path(seed), 0)

            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    depth = pending.pop(future)
                    lookup = future.result()
                    if not lookup.found:
                        continue

                    record = lookup.record
                    files.append(record)
                    if depth >= max_depth:
                        continue

                    for ref in extract_references(record.content, record.path):
                        schedule(ref, depth + 1)

        logger.info("[Loader] Loaded %d file(s) from %d seed(s), depth %d",
                    len(files), len(seeds), max_depth)
        return files

    def render_tree(self) -> str:
        """Rendered tree of the branch; empty if the tree cannot be fetched."""
        try:
            return format_tree(self._accessor.get_tree(self._branch))
        except Exception as exc:
            logger.warning("[Loader] Could not fetch tree for %s: %s", self._branch, exc)
            return ""

    # ------------------------------------------------------------------
    # Candidate lookup (runs on worker threads)
    # ------------------------------------------------------------------

    def _resolve(self, path: str, visited: _VisitedSet, lookups: _LookupCache) -> Lookup:
        """Try each spelling of *path* in order; stop at the first hit.

        A missing spelling only rules out that spelling.  A hit on a file
        that another branch already took means this branch adds nothing.
        """
        for candidate in candidate_paths(path):
            lookup = lookups.get(candidate, self._fetch_candidate)
            if not lookup.found:
                continue
            if visited.claim(lookup.record.path):
                return lookup
            return NOT_FOUND
        logger.debug("[Loader] No file for %s", path)
        return NOT_FOUND

    def _fetch_candidate(self, candidate: str) -> Lookup:
        try:
            return Lookup(True, self._accessor.get_file(candidate, self._branch))
        except NotFoundError:
            return NOT_FOUND
        except Exception as exc:
            logger.debug("[Loader] Fetch of %s failed: %s", candidate, exc)
            return NOT_FOUND

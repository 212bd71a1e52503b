"""
Shared fakes for the repository and model capabilities.

FakeRepo keeps files in a dict, counts every get_file call per path and
bumps a file's revision on each write so revision preconditions can be
exercised.  FakeModel replays scripted responses.
"""

from __future__ import annotations

import threading
from collections import Counter

import pytest

from remote_coder.errors import NotFoundError, RemoteUnavailableError, RevisionConflictError
from remote_coder.llm.base import ModelClient, ModelResponse, ToolCall
from remote_coder.repo.base import DIR, FILE, FileRecord, RepositoryAccessor, build_tree
from remote_coder.usage import Usage


class FakeRepo(RepositoryAccessor):

    def __init__(self, files: dict[str, str] | None = None,
                 search_results: dict[str, list[str]] | None = None):
        self.files = dict(files or {})
        self.revisions = {path: 1 for path in self.files}
        self.search_results = dict(search_results or {})
        self.failing_searches: set[str] = set()
        self.failing_paths: set[str] = set()
        self.fetches: Counter = Counter()
        self.writes: list[tuple[str, str, str | None]] = []
        self.searches: list[str] = []
        self._lock = threading.Lock()

    def get_tree(self, branch: str):
        entries: set[tuple[str, str]] = set()
        for path in self.files:
            parts = path.split("/")
            for i in range(1, len(parts)):
                entries.add(("/".join(parts[:i]), DIR))
            entries.add((path, FILE))
        return build_tree(entries)

    def get_file(self, path: str, branch: str) -> FileRecord:
        with self._lock:
            self.fetches[path] += 1
        if path in self.failing_paths:
            raise RemoteUnavailableError(f"timeout reading {path}")
        if path not in self.files:
            raise NotFoundError(path)
        return FileRecord(path, self.files[path], f"rev-{self.revisions[path]}")

    def write_file(self, path, content, message, branch, expected_revision=None):
        with self._lock:
            if expected_revision is not None:
                current = f"rev-{self.revisions.get(path, 0)}"
                if current != expected_revision:
                    raise RevisionConflictError(path)
            self.files[path] = content
            self.revisions[path] = self.revisions.get(path, 0) + 1
            self.writes.append((path, message, expected_revision))

    def search(self, term: str) -> list[str]:
        with self._lock:
            self.searches.append(term)
        if term in self.failing_searches:
            raise RemoteUnavailableError(f"search for {term} failed")
        return list(self.search_results.get(term, []))


class FakeModel(ModelClient):
    """Returns queued responses in order and remembers what it was sent."""

    def __init__(self, responses: list[ModelResponse], model: str = "claude-sonnet-4-5-20250929"):
        super().__init__(model, max_retries=1, retry_delay=0)
        self._responses = list(responses)
        self.calls: list[dict] = []

    def _send(self, messages, system_prompt, context, tools):
        self.calls.append({
            "messages": [dict(m) for m in messages],
            "system_prompt": system_prompt,
            "context": context,
            "tools": tools,
        })
        if not self._responses:
            raise RuntimeError("no scripted response left")
        return self._responses.pop(0)


def text_response(text: str, input_tokens: int = 0, output_tokens: int = 0) -> ModelResponse:
    return ModelResponse(text=text, usage=Usage(input_tokens=input_tokens,
                                                output_tokens=output_tokens))


def tool_response(text: str, calls: list[tuple[str, dict]],
                  input_tokens: int = 0, output_tokens: int = 0) -> ModelResponse:
    return ModelResponse(
        text=text,
        tool_calls=[ToolCall(id=f"toolu_{i}", name=name, input=args)
                    for i, (name, args) in enumerate(calls)],
        usage=Usage(input_tokens=input_tokens, output_tokens=output_tokens),
    )


@pytest.fixture
def make_repo():
    return FakeRepo


@pytest.fixture
def make_model():
    return FakeModel


@pytest.fixture(name="text_response")
def _text_response_fixture():
    return text_response


@pytest.fixture(name="tool_response")
def _tool_response_fixture():
    return tool_response

"""Tests for the GitHub accessor. HTTP is mocked at the session level."""

import base64
from unittest.mock import MagicMock

import pytest
import requests

from remote_coder.errors import (
    NotFoundError, RemoteUnavailableError, RepositoryError, RevisionConflictError,
)
from remote_coder.editing.safe_edit import EditOutcome, SafeEditApplier
from remote_coder.llm.base import ToolCall
from remote_coder.repo.github import GitHubAccessor
from remote_coder.tools.dispatcher import ToolDispatcher


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload if payload is not None else {}
    resp.content = b"x" if payload is not None else b""
    resp.text = ""
    return resp


@pytest.fixture
def session():
    s = MagicMock(spec=requests.Session)
    s.headers = {}
    return s


@pytest.fixture
def gh(session):
    return GitHubAccessor("tok", "acme", "shop", timeout=5, session=session)


def test_auth_headers(gh, session):
    assert session.headers["Authorization"] == "Bearer tok"
    assert session.headers["Accept"] == "application/vnd.github+json"


class TestGetFile:

    def test_decodes_content_and_revision(self, gh, session):
        encoded = base64.b64encode("const x = 1;\n".encode()).decode()
        session.request.return_value = _response(200, {
            "type": "file", "content": encoded, "sha": "abc123",
        })
        record = gh.get_file("src/app.ts", "dev")

        assert record.path == "src/app.ts"
        assert record.content == "const x = 1;\n"
        assert record.revision == "abc123"
        method, url = session.request.call_args.args
        assert method == "GET"
        assert url == "https://api.github.com/repos/acme/shop/contents/src/app.ts"
        assert session.request.call_args.kwargs["params"] == {"ref": "dev"}
        assert session.request.call_args.kwargs["timeout"] == 5

    def test_404_is_not_found(self, gh, session):
        session.request.return_value = _response(404, {"message": "Not Found"})
        with pytest.raises(NotFoundError):
            gh.get_file("src/missing.ts", "main")

    def test_directory_is_not_found(self, gh, session):
        session.request.return_value = _response(200, [{"type": "file", "path": "src/a.ts"}])
        with pytest.raises(NotFoundError):
            gh.get_file("src", "main")

    def test_timeout_is_remote_unavailable(self, gh, session):
        session.request.side_effect = requests.Timeout("slow")
        with pytest.raises(RemoteUnavailableError):
            gh.get_file("src/app.ts", "main")

    def test_connection_error_is_remote_unavailable(self, gh, session):
        session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(RemoteUnavailableError):
            gh.get_file("src/app.ts", "main")

    def test_5xx_is_remote_unavailable(self, gh, session):
        session.request.return_value = _response(502, {"message": "Bad gateway"})
        with pytest.raises(RemoteUnavailableError):
            gh.get_file("src/app.ts", "main")

    def test_403_is_repository_error(self, gh, session):
        session.request.return_value = _response(403, {"message": "rate limited"})
        with pytest.raises(RepositoryError, match="rate limited"):
            gh.get_file("src/app.ts", "main")


class TestWriteFile:

    def test_sends_base64_and_revision(self, gh, session):
        session.request.return_value = _response(200, {"content": {}})
        gh.write_file("src/app.ts", "new\n", "Edit src/app.ts", "dev", expected_revision="abc")

        method, url = session.request.call_args.args
        payload = session.request.call_args.kwargs["json"]
        assert method == "PUT"
        assert url.endswith("/repos/acme/shop/contents/src/app.ts")
        assert payload["message"] == "Edit src/app.ts"
        assert payload["branch"] == "dev"
        assert payload["sha"] == "abc"
        assert base64.b64decode(payload["content"]).decode() == "new\n"

    def test_create_omits_sha(self, gh, session):
        session.request.return_value = _response(201, {"content": {}})
        gh.write_file("src/new.ts", "x", "Create src/new.ts", "main")
        assert "sha" not in session.request.call_args.kwargs["json"]

    def test_409_is_revision_conflict(self, gh, session):
        session.request.return_value = _response(409, {"message": "does not match"})
        with pytest.raises(RevisionConflictError):
            gh.write_file("src/app.ts", "x", "Edit", "main", expected_revision="old")


class TestTreeAndSearch:

    def test_get_tree(self, gh, session):
        session.request.side_effect = [
            _response(200, {"commit": {"sha": "deadbeef"}}),
            _response(200, {"tree": [
                {"path": "src/app.ts", "type": "blob"},
                {"path": "src", "type": "tree"},
                {"path": "vendor/lib", "type": "commit"},
            ]}),
        ]
        tree = gh.get_tree("main")

        assert [n.path for n in tree] == ["src"]
        assert [n.path for n in tree[0].children] == ["src/app.ts"]
        tree_call = session.request.call_args_list[1]
        assert tree_call.args[1].endswith("/git/trees/deadbeef")
        assert tree_call.kwargs["params"] == {"recursive": "1"}

    def test_search(self, gh, session):
        session.request.return_value = _response(200, {"items": [
            {"path": "src/checkout.ts"}, {"path": "src/cart.ts"},
        ]})
        assert gh.search("Checkout") == ["src/checkout.ts", "src/cart.ts"]

        params = session.request.call_args.kwargs["params"]
        assert params["q"] == "Checkout repo:acme/shop"
        assert params["per_page"] == 20


class TestNonUtf8Content:

    LATIN1 = b"caf\xe9 = 1\nprice = 2\n"

    def _latin1_reply(self):
        return _response(200, {
            "type": "file", "content": base64.b64encode(self.LATIN1).decode(), "sha": "s1",
        })

    def test_read_refuses_lossy_decode(self, gh, session):
        session.request.return_value = self._latin1_reply()
        with pytest.raises(RepositoryError, match="not UTF-8"):
            gh.get_file("x.py", "main")

    def test_edit_never_writes_back(self, gh, session):
        session.request.return_value = self._latin1_reply()
        result = SafeEditApplier(gh).apply("x.py", "price = 2", "price = 3")

        assert result.success is False
        assert result.outcome is EditOutcome.FAILED
        assert "not UTF-8" in result.error
        methods = [c.args[0] for c in session.request.call_args_list]
        assert "PUT" not in methods

    def test_read_file_tool_reports_failure(self, gh, session):
        session.request.return_value = self._latin1_reply()
        result, change = ToolDispatcher(gh).execute(
            ToolCall("toolu_1", "read_file", {"path": "x.py"}))
        assert result.success is False
        assert "not UTF-8" in result.error
        assert change is None


class TestMalformedPayloads:

    def test_branch_without_commit(self, gh, session):
        session.request.return_value = _response(200, {"name": "main"})
        with pytest.raises(RepositoryError, match="branch payload"):
            gh.get_tree("main")

    def test_tree_entry_without_path(self, gh, session):
        session.request.side_effect = [
            _response(200, {"commit": {"sha": "deadbeef"}}),
            _response(200, {"tree": [{"type": "blob"}]}),
        ]
        with pytest.raises(RepositoryError, match="tree payload"):
            gh.get_tree("main")

    def test_non_json_body(self, gh, session):
        resp = _response(200, {})
        resp.json.side_effect = ValueError("Expecting value")
        session.request.return_value = resp
        with pytest.raises(RepositoryError, match="non-JSON"):
            gh.search("Checkout")

    def test_invalid_base64(self, gh, session):
        session.request.return_value = _response(200, {
            "type": "file", "content": "abc", "sha": "s1",
        })
        with pytest.raises(RepositoryError, match="decode"):
            gh.get_file("x.py", "main")

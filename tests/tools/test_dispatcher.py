"""Tests for tool-call dispatch."""

import pytest

from remote_coder.errors import UnknownToolError
from remote_coder.llm.base import ToolCall
from remote_coder.tools.dispatcher import ToolDispatcher
from remote_coder.tools.schema import TOOL_NAMES, TOOL_SCHEMA


@pytest.fixture
def repo(make_repo):
    return make_repo(
        {"src/app.ts": "const x = 1;\nconst y = 1;\n"},
        search_results={"useCart": ["src/hooks/useCart.ts"]},
    )


def _call(name, **args):
    return ToolCall(id="toolu_1", name=name, input=args)


def test_schema_names_match_handlers(repo):
    assert [tool["name"] for tool in TOOL_SCHEMA] == list(TOOL_NAMES)
    dispatcher = ToolDispatcher(repo)
    for name in TOOL_NAMES:
        assert name in dispatcher._handlers


def test_read_file(repo):
    result, change = ToolDispatcher(repo).execute(_call("read_file", path="src/app.ts"))
    assert result.success is True
    assert result.result == "const x = 1;\nconst y = 1;\n"
    assert change is None


def test_read_missing_file(repo):
    result, change = ToolDispatcher(repo).execute(_call("read_file", path="src/nope.ts"))
    assert result.success is False
    assert "src/nope.ts" in result.error
    assert change is None


def test_read_normalizes_path(repo):
    result, _ = ToolDispatcher(repo).execute(_call("read_file", path="/src/./app.ts"))
    assert result.success is True


def test_str_replace_success_records_edit(repo):
    result, change = ToolDispatcher(repo).execute(
        _call("str_replace", path="src/app.ts", old_str="const x = 1;", new_str="const x = 2;"))
    assert result.success is True
    assert change.path == "src/app.ts"
    assert change.action == "edit"
    assert "+const x = 2;" in change.diff
    assert repo.files["src/app.ts"].startswith("const x = 2;")


def test_str_replace_ambiguous_produces_no_change(repo):
    result, change = ToolDispatcher(repo).execute(
        _call("str_replace", path="src/app.ts", old_str="= 1;", new_str="= 3;"))
    assert result.success is False
    assert "2 times" in result.error
    assert change is None


def test_create_file(repo):
    result, change = ToolDispatcher(repo, branch="feature").execute(
        _call("create_file", path="src/new.ts", content="export {};\n"))
    assert result.success is True
    assert change.path == "src/new.ts"
    assert change.action == "create"
    assert repo.files["src/new.ts"] == "export {};\n"
    assert repo.writes[-1] == ("src/new.ts", "Create src/new.ts", None)


def test_search_files(repo):
    result, change = ToolDispatcher(repo).execute(_call("search_files", query="useCart"))
    assert result.success is True
    assert result.result == ["src/hooks/useCart.ts"]
    assert change is None


def test_search_failure_is_a_tool_failure(repo):
    repo.failing_searches.add("boom")
    result, _ = ToolDispatcher(repo).execute(_call("search_files", query="boom"))
    assert result.success is False
    assert "boom" in result.error


def test_unknown_tool(repo):
    result, change = ToolDispatcher(repo).execute(_call("delete_everything", path="/"))
    assert result.success is False
    assert result.error == "Unknown tool: delete_everything"
    assert change is None


def test_handler_lookup_rejects_unknown_name(repo):
    with pytest.raises(UnknownToolError) as excinfo:
        ToolDispatcher(repo)._handler_for("delete_everything")
    assert excinfo.value.name == "delete_everything"


def test_missing_input_reported(repo):
    result, change = ToolDispatcher(repo).execute(_call("str_replace", path="src/app.ts"))
    assert result.success is False
    assert "old_str" in result.error
    assert "new_str" in result.error
    assert change is None


def test_unexpected_exception_is_contained(repo):
    def explode(path, branch):
        raise ValueError("bad base64")

    repo.get_file = explode
    result, _ = ToolDispatcher(repo).execute(_call("read_file", path="src/app.ts"))
    assert result.success is False
    assert result.error == "bad base64"

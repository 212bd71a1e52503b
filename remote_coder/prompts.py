"""
Prompt text and code-context assembly.
"""

from __future__ import annotations

from .repo.base import FileRecord

CODING_SYSTEM_PROMPT = """\
You are an expert software engineer helping with a codebase. You have access to tools to read and edit files.

IMPORTANT RULES:
1. Use str_replace for edits - never rewrite entire files
2. The old_str must be UNIQUE and EXACT (including whitespace)
3. If you need to see more files, use read_file
4. Always explain what you're doing before making changes
5. Make minimal, focused changes

WORKFLOW:
1. Analyze the request
2. Identify which files need to change
3. Request additional files if needed
4. Make changes using str_replace or create_file
5. Explain what was changed and why

If a str_replace fails because the string wasn't unique, try using a larger context string that includes more surrounding code."""

SUMMARY_INSTRUCTION = "Please summarize what was done."

_FENCE_LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "jsx",
    "py": "python",
    "json": "json",
    "css": "css",
    "html": "html",
    "md": "markdown",
}


def fence_language(path: str) -> str:
    """Code-fence language tag for *path* (falls back to the bare extension)."""
    name = path.rsplit("/", 1)[-1]
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return _FENCE_LANGUAGES.get(ext, ext)


def format_file(record: FileRecord) -> str:
    return f"### {record.path}\n```{fence_language(record.path)}\n{record.content}\n```\n\n"


def build_code_context(tree: str, files: list[FileRecord],
                       max_chars: int | None = None) -> str:
    """Render the tree and file contents into the model's context block.

    Files are inlined in the given order until *max_chars* would be
    exceeded; the rest are listed by path so the model can read them on
    demand.
    """
    context = f"## Repository Structure\n```\n{tree}\n```\n\n"
    context += "## Loaded Files\n\n"

    omitted: list[str] = []
    for record in files:
        block = format_file(record)
        if max_chars is not None and len(context) + len(block) > max_chars:
            omitted.append(record.path)
            continue
        context += block

    if omitted:
        context += "## Files Not Shown\n"
        context += "".join(f"- {path}\n" for path in omitted)
        context += "\n"

    context += "\nIf you need to see other files, use the read_file tool.\n"
    return context


def format_tool_summary(lines: list[str]) -> str:
    """Follow-up user message reporting tool outcomes back to the model."""
    return "Tool results:\n" + "\n".join(lines) + f"\n\n{SUMMARY_INSTRUCTION}"

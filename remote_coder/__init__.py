"""
remote_coder — converse with a language model that reads and edits files in
a remote repository through unique-string replacements.

Example usage::

    from remote_coder import Config, GitHubAccessor, TurnRunner, create_client

    cfg = Config.load()
    accessor = GitHubAccessor(cfg.GITHUB_TOKEN, "acme", "shop")
    runner = TurnRunner(create_client(cfg), accessor, branch="main")
    result = runner.run_turn("fix the Checkout bug")
    print(result.text)
    print(result.changes)
"""

from .config import Config
from .errors import (
    RemoteCoderError, RepositoryError, NotFoundError, RevisionConflictError,
    RemoteUnavailableError, EditTargetMissingError, AmbiguousEditError, UnknownToolError,
)
from .llm import AnthropicClient, LLMError, ModelClient, create_client
from .repo import GitHubAccessor, RepositoryAccessor
from .tools import FileChange, ToolResult
from .turn import TurnResult, TurnRunner, run_turn
from .usage import Usage, UsageAccumulator, UsageLedger

__all__ = [
    "Config",
    "RemoteCoderError", "RepositoryError", "NotFoundError", "RevisionConflictError",
    "RemoteUnavailableError", "EditTargetMissingError", "AmbiguousEditError",
    "UnknownToolError",
    "AnthropicClient", "LLMError", "ModelClient", "create_client",
    "GitHubAccessor", "RepositoryAccessor",
    "FileChange", "ToolResult",
    "TurnResult", "TurnRunner", "run_turn",
    "Usage", "UsageAccumulator", "UsageLedger",
]

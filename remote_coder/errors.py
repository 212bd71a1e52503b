"""
Failure taxonomy shared by the repository, editing and tool layers.

Everything here is recoverable inside a turn: callers catch these, log them
and fold them into partial results.  Only :class:`~remote_coder.llm.base.LLMError`
is allowed to abort a turn.
"""


class RemoteCoderError(Exception):
    """Base class for all remote_coder failures."""


class RepositoryError(RemoteCoderError):
    """A repository operation failed for a reason not covered below."""


class NotFoundError(RepositoryError):
    """The path does not exist on the branch (or is not a regular file)."""

    def __init__(self, path: str, message: str = ""):
        self.path = path
        super().__init__(message or f"File not found: {path}")


class RevisionConflictError(RepositoryError):
    """The remote file changed between our read and our write."""

    def __init__(self, path: str, message: str = ""):
        self.path = path
        super().__init__(
            message or f"{path} was modified remotely; re-read it and retry the edit")


class RemoteUnavailableError(RepositoryError):
    """Transient transport failure: timeout, connection error, 5xx."""


class EditTargetMissingError(RemoteCoderError):
    """The replacement target does not occur in the file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"String not found in {path}. Make sure the string is unique and exact.")


class AmbiguousEditError(RemoteCoderError):
    """The replacement target occurs more than once in the file."""

    def __init__(self, path: str, occurrences: int):
        self.path = path
        self.occurrences = occurrences
        super().__init__(
            f"String found {occurrences} times in {path}. "
            f"It must be unique for safe replacement.")


class UnknownToolError(RemoteCoderError):
    """The model asked for a tool we do not provide."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")

from __future__ import annotations

from typing import Sequence


class PrsearchError(Exception):
    """Base class for errors reported to the user as readable text."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ResolverError(PrsearchError):
    """Raised when the changed-file set of a repository cannot be resolved."""


class NoWorkspaceError(ResolverError):
    def __init__(self, message: str = "No workspace is open.") -> None:
        super().__init__(message)


class NoRepositoryError(ResolverError):
    def __init__(self, path: object = None) -> None:
        if path is None:
            message = "No git repository found."
        else:
            message = f"No git repository found at {path}."
        super().__init__(message)
        self.path = path


class NoDefaultBranchError(ResolverError):
    def __init__(self, candidates: Sequence[str]) -> None:
        names = " or ".join(candidates)
        super().__init__(f"No local {names} branch found.")
        self.candidates = tuple(candidates)


class QueryFailedError(ResolverError):
    """A git query exited non-zero or could not be started."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        stderr: str = "",
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        shown = " ".join(self.command)
        if returncode is None:
            message = f"Failed to run `{shown}`"
        else:
            message = f"`{shown}` exited with code {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class FileOpenError(PrsearchError):
    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Could not open {path}: {reason}")
        self.path = path
        self.reason = reason

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from ..errors import NoDefaultBranchError, NoRepositoryError, NoWorkspaceError, QueryFailedError
from .git import GitClient
from .session_log import log_info

# Tried in order; the first local branch that exists wins.
DEFAULT_BRANCH_CANDIDATES: Tuple[str, ...] = ("main", "master")


@dataclass(frozen=True)
class ChangeSet:
    """Files changed on the current branch since its merge base, plus untracked files."""

    root: Path
    current_branch: str
    default_branch: str
    merge_base: str
    files: Tuple[str, ...]


def union_paths(*groups: Iterable[str]) -> Tuple[str, ...]:
    """Concatenate path groups keeping the first occurrence of each path."""
    ordered: dict[str, None] = {}
    for group in groups:
        for path in group:
            ordered.setdefault(path, None)
    return tuple(ordered)


class ChangeSetResolver:
    """Computes the candidate file list for one invocation."""

    def __init__(
        self,
        git: Optional[GitClient] = None,
        *,
        executable: str = "git",
        branch_candidates: Sequence[str] = DEFAULT_BRANCH_CANDIDATES,
    ) -> None:
        self.git = git
        self.executable = executable
        self.branch_candidates = tuple(branch_candidates)

    async def resolve(self, cwd: Path | str | None) -> ChangeSet:
        workspace = self._workspace(cwd)
        probe = self.git.with_cwd(workspace) if self.git else GitClient(
            workspace, executable=self.executable
        )
        root = await self._repository_root(probe)
        git = probe.with_cwd(root)

        (current, default), untracked = await asyncio.gather(
            self._branches(git),
            git.untracked_files(),
        )
        base = await git.merge_base(default, current)
        records = await git.diff_name_status(base, current)
        changed = [record.path for record in records if not record.deleted]
        files = union_paths(changed, untracked)
        log_info(
            "resolver",
            "resolver.result",
            {
                "root": str(root),
                "current_branch": current,
                "default_branch": default,
                "merge_base": base,
                "changed": len(changed),
                "untracked": len(untracked),
                "files": len(files),
            },
        )
        return ChangeSet(
            root=root,
            current_branch=current,
            default_branch=default,
            merge_base=base,
            files=files,
        )

    async def detect_default_branch(self, git: GitClient) -> str:
        for name in self.branch_candidates:
            if await git.branch_exists(name):
                return name
        raise NoDefaultBranchError(self.branch_candidates)

    def _workspace(self, cwd: Path | str | None) -> Path:
        if cwd is None or str(cwd) == "":
            raise NoWorkspaceError()
        path = Path(cwd).expanduser()
        if not path.is_dir():
            raise NoWorkspaceError(f"Workspace directory not found: {path}")
        return path

    async def _repository_root(self, git: GitClient) -> Path:
        try:
            return await git.show_toplevel()
        except QueryFailedError as exc:
            if exc.returncode is None:
                raise
            raise NoRepositoryError(git.cwd) from exc

    async def _branches(self, git: GitClient) -> Tuple[str, str]:
        # HEAD before main/master: an unresolvable HEAD is a query failure.
        current = await git.current_branch()
        default = await self.detect_default_branch(git)
        return current, default


async def resolve_changed_files(
    cwd: Path | str | None,
    *,
    git: Optional[GitClient] = None,
    executable: str = "git",
) -> ChangeSet:
    """Resolve the changed and untracked files of the repository enclosing ``cwd``."""
    return await ChangeSetResolver(git, executable=executable).resolve(cwd)

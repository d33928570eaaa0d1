from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..errors import QueryFailedError
from .session_log import log_query

STATUS_DELETED = "D"


@dataclass(frozen=True)
class ChangeRecord:
    status: str
    path: str

    @property
    def deleted(self) -> bool:
        return self.status == STATUS_DELETED


@dataclass(frozen=True)
class QueryResult:
    returncode: int
    stdout: str
    stderr: str


def parse_name_status(output: str) -> List[ChangeRecord]:
    """Parse NUL-separated `git diff --name-status -z` output.

    Renames and copies carry two paths; the destination is kept.
    """
    fields = output.split("\0")
    records: List[ChangeRecord] = []
    idx = 0
    while idx < len(fields):
        raw_status = fields[idx].strip()
        idx += 1
        if not raw_status:
            continue
        status = raw_status[0]
        width = 2 if status in {"R", "C"} else 1
        paths = fields[idx : idx + width]
        idx += width
        if len(paths) < width or not paths[-1]:
            break
        records.append(ChangeRecord(status=status, path=paths[-1]))
    return records


def parse_path_list(output: str) -> List[str]:
    return [item for item in output.split("\0") if item.strip()]


class GitClient:
    """Runs git queries in a working directory."""

    def __init__(self, cwd: Path, *, executable: str = "git") -> None:
        self.cwd = cwd
        self.executable = executable

    def with_cwd(self, cwd: Path) -> "GitClient":
        return GitClient(cwd, executable=self.executable)

    async def run(self, *args: str) -> QueryResult:
        command = [self.executable, *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as exc:
            log_query("git", command=command, returncode=None, stderr=str(exc))
            raise QueryFailedError(command, None, str(exc)) from exc
        result = QueryResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=(stdout or b"").decode("utf-8", errors="replace"),
            stderr=(stderr or b"").decode("utf-8", errors="replace"),
        )
        log_query("git", command=command, returncode=result.returncode, stderr=result.stderr)
        return result

    async def query(self, *args: str) -> str:
        """Run a query and return stdout, raising QueryFailedError on a non-zero exit."""
        result = await self.run(*args)
        if result.returncode != 0:
            raise QueryFailedError([self.executable, *args], result.returncode, result.stderr)
        return result.stdout

    async def show_toplevel(self) -> Path:
        output = await self.query("rev-parse", "--show-toplevel")
        return Path(output.strip())

    async def branch_exists(self, name: str) -> bool:
        result = await self.run("rev-parse", "--verify", "--quiet", f"refs/heads/{name}")
        return result.returncode == 0

    async def current_branch(self) -> str:
        output = await self.query("rev-parse", "--abbrev-ref", "HEAD")
        return output.strip()

    async def merge_base(self, left: str, right: str) -> str:
        output = await self.query("merge-base", left, right)
        return output.strip()

    async def diff_name_status(self, base: str, tip: str) -> List[ChangeRecord]:
        output = await self.query("diff", "--name-status", "-z", base, tip, "--")
        return parse_name_status(output)

    async def untracked_files(self) -> List[str]:
        output = await self.query("ls-files", "--others", "--exclude-standard", "-z")
        return parse_path_list(output)

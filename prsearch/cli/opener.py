from __future__ import annotations

import asyncio
import shlex
from pathlib import Path

from ..errors import FileOpenError


def editor_command(editor: str, path: Path) -> list[str]:
    parts = shlex.split(editor)
    if not parts:
        raise FileOpenError(path, "no editor configured")
    return [*parts, str(path)]


async def open_file(root: Path, relative: str, editor: str | None) -> Path:
    """Open ``relative`` (joined to ``root``) in ``editor`` and return its absolute path.

    Without an editor nothing is launched; the caller shows the path instead.
    """
    full_path = root / relative
    if not full_path.is_file():
        raise FileOpenError(relative, "the file no longer exists")
    if not editor:
        return full_path
    command = editor_command(editor, full_path)
    try:
        proc = await asyncio.create_subprocess_exec(*command)
    except FileNotFoundError as exc:
        raise FileOpenError(relative, f"editor not found: {command[0]}") from exc
    except PermissionError as exc:
        raise FileOpenError(relative, f"editor is not executable: {command[0]}") from exc
    code = await proc.wait()
    if code != 0:
        raise FileOpenError(relative, f"editor exited with code {code}")
    return full_path

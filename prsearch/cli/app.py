from __future__ import annotations

import argparse
import asyncio
import errno
import locale
from contextlib import suppress
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from rich.console import Console
from rich.panel import Panel

from ..config import ConfigManager
from ..config.paths import PrsearchPaths
from ..core.changes import ChangeSet, ChangeSetResolver
from ..core.ranking import rank, split_keywords
from ..core.session_log import (
    LOG_LEVELS,
    SessionLogger,
    log_error,
    log_exception,
    set_active_logger,
)
from ..errors import FileOpenError, PrsearchError
from .opener import open_file
from .picker import FilePicker

EXIT_CODE_OK = 0
EXIT_CODE_ERROR = 1

RESOLVE_STATUS = "Collecting changed files"

PickerFactory = Callable[..., FilePicker]


def _current_directory() -> Path | None:
    try:
        return Path.cwd()
    except FileNotFoundError:
        return None


class PrsearchCLI:
    """Resolves the branch's changed files and lets the user pick one to open."""

    def __init__(
        self,
        root: Path | None = None,
        console: Console | None = None,
        *,
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
        resolver: ChangeSetResolver | None = None,
        picker_factory: PickerFactory | None = None,
    ) -> None:
        self.console = console or Console()
        self.root = root
        self.paths = PrsearchPaths(root or Path("."))
        self.config_manager = ConfigManager(self.paths, console=self.console, environ=environ)
        self.settings = self.config_manager.load_settings(overrides)
        self.session_logger = SessionLogger(self.paths, self.settings.debug)
        set_active_logger(self.session_logger)
        self.resolver = resolver or ChangeSetResolver(executable=self.settings.git)
        self.picker_factory = picker_factory or FilePicker

    async def resolve(self) -> ChangeSet:
        with self.console.status(RESOLVE_STATUS, spinner="dots"):
            return await self.resolver.resolve(self.root)

    async def run(self) -> int:
        """Interactive session: pick a changed file and open it."""
        try:
            change_set = await self.resolve()
        except PrsearchError as exc:
            return self._report_error("Changed files", exc)
        if not change_set.files:
            self._report_empty(change_set)
            return EXIT_CODE_OK

        self.session_logger.start_interaction(
            "picker", summary=f"{len(change_set.files)} candidate files"
        )
        picker = self.picker_factory(
            change_set.files,
            title=self._picker_title(change_set),
            limit=self.settings.max_results,
        )
        selected = await picker.run()
        if selected is None:
            self.session_logger.end_interaction("picker", status="cancelled")
            return EXIT_CODE_OK
        self.session_logger.log_selection("picker", query=picker.state.query, path=selected)

        try:
            full_path = await open_file(change_set.root, selected, self.settings.editor)
        except FileOpenError as exc:
            self.session_logger.end_interaction("picker", status="error")
            return self._report_error("Open file", exc)
        if not self.settings.editor:
            self._print_path(str(full_path))
        self.session_logger.end_interaction("picker", status="opened")
        return EXIT_CODE_OK

    async def run_query(self, text: str) -> int:
        """Print the candidate files ranked against ``text``, one per line."""
        try:
            change_set = await self.resolve()
        except PrsearchError as exc:
            return self._report_error("Changed files", exc)
        for path in rank(change_set.files, split_keywords(text)):
            self._print_path(path)
        return EXIT_CODE_OK

    async def run_list(self) -> int:
        return await self.run_query("")

    def _picker_title(self, change_set: ChangeSet) -> str:
        return (
            f"{change_set.current_branch} vs {change_set.default_branch} "
            f"({len(change_set.files)} files)"
        )

    def _print_path(self, path: str) -> None:
        self.console.print(path, markup=False, highlight=False, soft_wrap=True)

    def _report_empty(self, change_set: ChangeSet) -> None:
        self.console.print(
            Panel(
                f"No changed files found on {change_set.current_branch} "
                f"since its merge base with {change_set.default_branch}.",
                title="prsearch",
                border_style="yellow",
            )
        )

    def _report_error(self, title: str, exc: PrsearchError) -> int:
        log_error("cli", "error", {"type": type(exc).__name__, "message": exc.message})
        self.console.print(Panel(exc.message, title=title, border_style="red"))
        return EXIT_CODE_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prsearch",
        description="Fuzzy-search and open files changed on the current branch",
    )
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "-C",
        "--directory",
        type=Path,
        help="Run as if started in this directory",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-q",
        "--query",
        help="Print files ranked against QUERY instead of opening the picker",
    )
    mode.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="Print the changed and untracked files and exit",
    )
    parser.add_argument("--editor", help="Command used to open the selected file")
    parser.add_argument(
        "--max-results",
        type=int,
        help="Maximum number of files shown in the picker",
    )
    parser.add_argument(
        "--debug",
        nargs="?",
        const="all",
        metavar="LEVEL",
        help=f"Write a session log (all, session, {', '.join(LOG_LEVELS)})",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        from prsearch import __version__

        print(f"prsearch {__version__}")
        return
    if args.max_results is not None and args.max_results <= 0:
        parser.error("--max-results must be a positive integer")

    # Path ties in the ranking follow the user's collation order.
    with suppress(locale.Error):
        locale.setlocale(locale.LC_COLLATE, "")

    root = args.directory if args.directory is not None else _current_directory()
    overrides = {
        "editor": args.editor,
        "max_results": args.max_results,
        "debug": args.debug,
    }
    try:
        cli = PrsearchCLI(root, overrides=overrides)
        if args.query is not None:
            code = asyncio.run(cli.run_query(args.query))
        elif args.list:
            code = asyncio.run(cli.run_list())
        else:
            code = asyncio.run(cli.run())
        raise SystemExit(code)
    except BrokenPipeError:
        return
    except KeyboardInterrupt:
        return
    except OSError as exc:
        if exc.errno == errno.EPIPE:
            return
        log_exception("cli", exc)
        raise
    except Exception as exc:
        log_exception("cli", exc)
        raise


if __name__ == "__main__":
    main()

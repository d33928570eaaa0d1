from __future__ import annotations

import json
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from ..config.paths import PrsearchPaths

LOG_LEVELS = ("error", "warn", "info", "debug")
LOG_LEVEL_PRIORITY = {level: idx for idx, level in enumerate(LOG_LEVELS)}
LOG_TYPE_SESSION = "session"
_OFF_VALUES = {"", "none", "null", "off", "false", "0", "no", "n"}
_ON_VALUES = {"true", "1", "yes", "y", "on", "all"}


@dataclass(frozen=True)
class LogSelection:
    enabled_types: frozenset[str]
    enabled_levels: frozenset[str]


def resolve_debug_config(raw: Any) -> LogSelection:
    enabled_types: set[str] = set()
    enabled_levels: set[str] = set()

    def enable_all() -> None:
        enabled_types.add(LOG_TYPE_SESSION)
        enabled_levels.update(LOG_LEVELS)

    def handle_token(token: str) -> None:
        if token in _ON_VALUES:
            enable_all()
            return
        if token in _OFF_VALUES:
            return
        if token == LOG_TYPE_SESSION:
            enabled_types.add(LOG_TYPE_SESSION)
            return
        if token in LOG_LEVEL_PRIORITY:
            # A level enables itself and every more severe level.
            enabled_levels.update(LOG_LEVELS[: LOG_LEVEL_PRIORITY[token] + 1])

    if raw is None or raw is False:
        return LogSelection(frozenset(), frozenset())
    if raw is True:
        enable_all()
    elif isinstance(raw, str):
        for token in raw.replace(",", " ").split() or [""]:
            handle_token(token.strip().lower())
    elif isinstance(raw, (list, tuple, set)):
        for item in raw:
            if isinstance(item, str) and item.strip():
                handle_token(item.strip().lower())
    return LogSelection(frozenset(enabled_types), frozenset(enabled_levels))


class SessionLogger:
    """Write Markdown logs when debug logging is enabled."""

    def __init__(self, paths: PrsearchPaths, debug_config: Any) -> None:
        self.paths = paths
        self._session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._started_at = datetime.now(timezone.utc)
        self._path: Path | None = None
        self._header = ""
        self._interaction_counter = 0
        self._active_interaction_id: int | None = None
        self.enabled = False
        self._enabled_types: set[str] = set()
        self._enabled_levels: set[str] = set()
        self.configure(debug_config)

    def configure(self, debug_config: Any) -> None:
        selection = resolve_debug_config(debug_config)
        self._enabled_types = set(selection.enabled_types)
        self._enabled_levels = set(selection.enabled_levels)
        self.enabled = bool(self._enabled_types or self._enabled_levels)

    def close(self) -> None:
        self.enabled = False

    def start_interaction(self, source: str, *, summary: str | None = None) -> int | None:
        if not self._session_enabled():
            return None
        self._interaction_counter += 1
        self._active_interaction_id = self._interaction_counter
        self._write(
            {
                "source": source,
                "event": "session.interaction.start",
                "type": LOG_TYPE_SESSION,
                "interaction_id": self._active_interaction_id,
                "content": {"summary": summary},
            }
        )
        return self._active_interaction_id

    def end_interaction(self, source: str, *, status: str | None = None) -> None:
        if not self._session_enabled() or self._active_interaction_id is None:
            self._active_interaction_id = None
            return
        self._write(
            {
                "source": source,
                "event": "session.interaction.end",
                "type": LOG_TYPE_SESSION,
                "interaction_id": self._active_interaction_id,
                "content": {"status": status},
            }
        )
        self._active_interaction_id = None

    def log_query(
        self,
        source: str,
        *,
        command: Sequence[str],
        returncode: int | None,
        stderr: str = "",
    ) -> None:
        self.log_level(
            source,
            "debug",
            "git.query",
            {
                "command": list(command),
                "returncode": returncode,
                "stderr": stderr.strip() or None,
            },
        )

    def log_selection(self, source: str, *, query: str, path: str | None) -> None:
        if not self._session_enabled():
            return
        self._write(
            {
                "source": source,
                "event": "picker.accept",
                "type": LOG_TYPE_SESSION,
                "content": {"query": query, "path": path},
            }
        )

    def log_level(self, source: str, level: str, event: str, content: Any | None = None) -> None:
        if not self._level_enabled(level):
            return
        self._write(
            {
                "source": source,
                "event": event,
                "level": level,
                "content": content,
            }
        )

    def log_exception(self, source: str, exc: BaseException) -> None:
        if not self._level_enabled("error"):
            return
        location = None
        tb = exc.__traceback__
        if tb is not None:
            frames = traceback.extract_tb(tb)
            if frames:
                last = frames[-1]
                location = f"{last.filename}:{last.lineno} in {last.name}"
        trace_text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.log_level(
            source,
            "error",
            "exception",
            {
                "type": type(exc).__name__,
                "message": str(exc),
                "location": location,
                "traceback": trace_text,
            },
        )

    def _session_enabled(self) -> bool:
        return self.enabled and LOG_TYPE_SESSION in self._enabled_types

    def _level_enabled(self, level: str) -> bool:
        return self.enabled and level in self._enabled_levels

    def _ensure_path(self) -> None:
        if self._path is not None or not self.enabled:
            return
        logs_dir = self.paths.logs_dir
        logs_dir.mkdir(parents=True, exist_ok=True)
        self._path = logs_dir / f"prsearch_session_{self._session_id}.md"
        self._header = self._header_text()
        if not self._path.exists():
            self._path.write_text(self._header, encoding="utf-8")
            return
        existing = self._path.read_text(encoding="utf-8")
        if not existing.startswith(self._header):
            self._path.write_text(self._header + existing, encoding="utf-8")

    def _header_text(self) -> str:
        return (
            "# prsearch Session Log\n\n"
            f"- Session: {self._session_id}\n"
            f"- Started: {self._started_at.isoformat()}\n"
            f"- Workspace: {self.paths.root}\n\n"
            "---\n\n"
        )

    def _write(self, payload: dict[str, Any]) -> None:
        if not self.enabled:
            return
        try:
            self._ensure_path()
            if self._path is None:
                return
            timestamp = datetime.now(timezone.utc).isoformat()
            source = str(payload.get("source", ""))
            event = str(payload.get("event", ""))
            log_type = str(
                payload.get("type") or payload.get("level") or LOG_TYPE_SESSION
            )
            interaction_id = payload.get("interaction_id", self._active_interaction_id)
            header = f"## {timestamp} · {log_type}/{source} · {event}"
            if interaction_id is not None:
                header = f"{header} · interaction {interaction_id}"
            entry = f"{header}\n{self._format_content_block(payload.get('content', ''))}\n\n"
            self._prepend_entry(entry)
        except OSError:
            # An unwritable log directory turns logging off for the session.
            self.close()

    def _prepend_entry(self, entry: str) -> None:
        if self._path is None:
            return
        existing = self._path.read_text(encoding="utf-8")
        header = self._header or ""
        if header and existing.startswith(header):
            content = f"{header}{entry}{existing[len(header):]}"
        else:
            content = f"{header}{entry}{existing}"
        self._path.write_text(content, encoding="utf-8")

    def _format_content_block(self, content: Any) -> str:
        if isinstance(content, (dict, list)):
            body = json.dumps(content, indent=2, ensure_ascii=False)
            language = "json"
        else:
            body = "" if content is None else str(content)
            language = "markdown"
        body = body.rstrip()
        return f"```{language}\n{body}\n```"


_ACTIVE_LOGGER: SessionLogger | None = None


def set_active_logger(logger: SessionLogger | None) -> None:
    global _ACTIVE_LOGGER
    _ACTIVE_LOGGER = logger


def log_exception(source: str, exc: BaseException) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_exception(source, exc)


def log_query(
    source: str,
    *,
    command: Sequence[str],
    returncode: int | None,
    stderr: str = "",
) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_query(source, command=command, returncode=returncode, stderr=stderr)


def log_error(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "error", event, content)


def log_info(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "info", event, content)

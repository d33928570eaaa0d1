from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from rich.console import Console

from .paths import PrsearchPaths


DEFAULT_CONFIG: Dict[str, Any] = {
    "debug": None,
    "editor": None,
    "git": "git",
    "max_results": 200,
}
EDITOR_ENV_VARS = ("PRSEARCH_EDITOR", "VISUAL", "EDITOR")


@dataclass
class PrsearchSettings:
    debug: Any
    editor: Optional[str]
    git: str
    max_results: int


class ConfigManager:
    """Merges built-in defaults, environment variables and command-line overrides."""

    def __init__(
        self,
        paths: PrsearchPaths,
        console: Optional[Console] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.paths = paths
        self.console = console or Console()
        self.environ = os.environ if environ is None else environ

    def load_settings(self, overrides: Optional[Dict[str, Any]] = None) -> PrsearchSettings:
        """Return settings; non-None overrides win over the environment."""
        merged = self._merge_dicts(DEFAULT_CONFIG, self._env_settings())
        cleaned = {key: value for key, value in (overrides or {}).items() if value is not None}
        merged = self._merge_dicts(merged, cleaned)
        return PrsearchSettings(
            debug=merged.get("debug"),
            editor=merged.get("editor") or None,
            git=merged.get("git") or DEFAULT_CONFIG["git"],
            max_results=self._positive_int(merged.get("max_results"), "max_results"),
        )

    def _env_settings(self) -> Dict[str, Any]:
        settings: Dict[str, Any] = {}
        debug = self.environ.get("PRSEARCH_DEBUG")
        if debug:
            settings["debug"] = debug
        for name in EDITOR_ENV_VARS:
            value = (self.environ.get(name) or "").strip()
            if value:
                settings["editor"] = value
                break
        git = (self.environ.get("PRSEARCH_GIT") or "").strip()
        if git:
            settings["git"] = git
        max_results = self.environ.get("PRSEARCH_MAX_RESULTS")
        if max_results:
            settings["max_results"] = max_results
        return settings

    def _merge_dicts(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged: Dict[str, Any] = dict(base)
        merged.update(override)
        return merged

    def _positive_int(self, value: Any, key: str) -> int:
        default = DEFAULT_CONFIG[key]
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            self.console.print(
                f"[yellow]Ignoring {key}={value!r}: expected an integer. Using {default}.[/yellow]"
            )
            return default
        if parsed <= 0:
            self.console.print(
                f"[yellow]Ignoring {key}={value!r}: expected a positive integer. Using {default}.[/yellow]"
            )
            return default
        return parsed

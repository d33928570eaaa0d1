"""Configuration package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .manager import ConfigManager, PrsearchSettings
    from .paths import PrsearchPaths

__all__ = ["ConfigManager", "PrsearchSettings", "PrsearchPaths"]


def __getattr__(name: str) -> Any:
    if name in {"ConfigManager", "PrsearchSettings"}:
        from .manager import ConfigManager, PrsearchSettings

        return {"ConfigManager": ConfigManager, "PrsearchSettings": PrsearchSettings}[name]
    if name == "PrsearchPaths":
        from .paths import PrsearchPaths

        return PrsearchPaths
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

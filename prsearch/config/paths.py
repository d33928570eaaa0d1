from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PrsearchPaths:
    """Centralizes filesystem paths used by prsearch."""

    root: Path
    home: Path = field(default_factory=Path.home)

    @property
    def global_dir(self) -> Path:
        return self.home / ".prsearch"

    @property
    def logs_dir(self) -> Path:
        return self.global_dir / "logs"

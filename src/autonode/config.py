"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

DEFAULT_DB_PATH = Path(".autonode") / "autonode.db"
DEFAULT_PLACEHOLDER = "_No matching notes yet._"

LinkStyle = Literal["wiki", "markdown"]


@dataclass(slots=True)
class AppConfig:
    vault_path: Path | None = None
    db_path: Path | None = None
    debounce_delay: float = 0.5
    startup_delay: float = 0.1
    placeholder: str = DEFAULT_PLACEHOLDER
    link_style: LinkStyle = "wiki"

    def __post_init__(self) -> None:
        if self.vault_path is None:
            self.vault_path = Path.cwd()
        if self.db_path is None:
            self.db_path = DEFAULT_DB_PATH
        if self.link_style not in ("wiki", "markdown"):
            raise ValueError(f"Unknown link style: {self.link_style}")

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        """Return the settings database path, relative paths anchored at the vault."""
        if self.db_path is None:
            self.db_path = DEFAULT_DB_PATH
        base = base_dir if base_dir is not None else self.vault_path
        if Path(self.db_path).is_absolute() or base is None:
            return Path(self.db_path)
        return Path(base) / self.db_path

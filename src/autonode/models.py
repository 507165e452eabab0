"""Core auto-node data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Literal, Optional

from autonode.errors import ConfigurationError

ChangeKind = Literal["created", "modified", "deleted", "renamed"]


@dataclass(frozen=True, slots=True)
class MatchRule:
    """Keyword rule deciding which notes an auto-node links to."""

    keyword: str
    case_sensitive: bool = False
    match_whole_word: bool = False

    def validate(self) -> "MatchRule":
        if not self.keyword or not self.keyword.strip():
            raise ConfigurationError("Auto-node keyword must not be empty")
        return self


@dataclass(frozen=True, slots=True)
class AutoNodeRecord:
    """A managed note and the rule used to fill its generated section."""

    path: str
    rule: MatchRule


@dataclass(frozen=True, slots=True)
class DocumentRef:
    """Vault-relative reference to a markdown note (posix separators)."""

    path: str

    @property
    def title(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lstrip(".").lower()


@dataclass(slots=True)
class Document:
    """Snapshot of a note used for keyword matching."""

    path: str
    title: str
    body: str

    @classmethod
    def from_ref(cls, ref: DocumentRef, body: str) -> "Document":
        return cls(path=ref.path, title=ref.title, body=body)


@dataclass(slots=True)
class Settings:
    """Persisted plugin state."""

    nodes: Dict[str, AutoNodeRecord] = field(default_factory=dict)
    schema_version: int = 1


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    kind: ChangeKind
    path: str
    old_path: Optional[str] = None

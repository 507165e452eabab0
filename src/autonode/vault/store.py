"""Document store abstraction and the filesystem vault implementation."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol
from urllib.parse import quote

from autonode.config import LinkStyle
from autonode.errors import ConflictError, DocumentReadError, DocumentWriteError, NotFoundError
from autonode.models import DocumentRef, MatchRule
from autonode.utils.files import iter_markdown_paths
from autonode.vault.frontmatter import read_declared_config

LOGGER = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Narrow interface the sync engine needs from a note store."""

    def list_documents(self) -> List[DocumentRef]: ...

    def read(self, ref: DocumentRef) -> str: ...

    def write(self, ref: DocumentRef, text: str) -> None: ...

    def get_declared_config(self, ref: DocumentRef) -> Optional[MatchRule]: ...

    def link_to(self, target: DocumentRef, source: DocumentRef) -> str: ...


class FileSystemVault:
    """Markdown notes stored as UTF-8 files below a root directory."""

    def __init__(self, root: Path, *, link_style: LinkStyle = "wiki") -> None:
        self.root = Path(root)
        self.link_style = link_style
        self._stem_counts: Counter[str] | None = None

    def _absolute(self, ref: DocumentRef) -> Path:
        full_path = (self.root / ref.path).resolve()
        if not full_path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes vault root: {ref.path}")
        return full_path

    def ref_for(self, path: Path | str) -> DocumentRef:
        """Reference for an absolute or vault-relative path."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self.root)
            except ValueError:
                candidate = candidate.resolve().relative_to(self.root.resolve())
        return DocumentRef(candidate.as_posix())

    def list_documents(self) -> List[DocumentRef]:
        """Every markdown note below the root; links that leave the vault are skipped."""
        root = self.root.resolve()
        refs: List[DocumentRef] = []
        for path in iter_markdown_paths(self.root):
            if not path.resolve().is_relative_to(root):
                LOGGER.warning("Skipping %s; it points outside the vault", path)
                continue
            refs.append(self.ref_for(path))
        self._stem_counts = Counter(ref.title.casefold() for ref in refs)
        return refs

    def exists(self, ref: DocumentRef) -> bool:
        return self._absolute(ref).is_file()

    def read(self, ref: DocumentRef) -> str:
        try:
            return self._absolute(ref).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise DocumentReadError(ref.path, str(exc)) from exc

    def write(self, ref: DocumentRef, text: str) -> None:
        path = self._absolute(ref)
        if not path.exists():
            raise NotFoundError(f"Note not found: {ref.path}")
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise DocumentWriteError(ref.path, str(exc)) from exc

    def create(self, ref: DocumentRef, text: str) -> None:
        path = self._absolute(ref)
        if path.exists():
            raise ConflictError(f"File '{ref.path}' already exists.")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise DocumentWriteError(ref.path, str(exc)) from exc

    def get_declared_config(self, ref: DocumentRef) -> Optional[MatchRule]:
        """Rule declared in the note's frontmatter; None for a missing note.

        Raises DocumentReadError when the note exists but cannot be read, so
        callers can tell "no declaration" apart from "unreadable".
        """
        if not self.exists(ref):
            return None
        return read_declared_config(self.read(ref))

    def link_to(self, target: DocumentRef, source: DocumentRef) -> str:
        """Shortest unambiguous link from ``source`` to ``target``."""
        if self.link_style == "markdown":
            return f"[{target.title}]({quote(self._relative_link(target, source))})"

        if self._stem_counts is None:
            self.list_documents()
        if (self._stem_counts or Counter())[target.title.casefold()] <= 1:
            return f"[[{target.title}]]"
        return f"[[{PurePosixPath(target.path).with_suffix('').as_posix()}]]"

    @staticmethod
    def _relative_link(target: DocumentRef, source: DocumentRef) -> str:
        source_dir = PurePosixPath(source.path).parent
        target_path = PurePosixPath(target.path)
        if source_dir == PurePosixPath("."):
            return target_path.as_posix()
        try:
            return target_path.relative_to(source_dir).as_posix()
        except ValueError:
            ups = len(source_dir.parts)
            return "/".join([".."] * ups + [target_path.as_posix()])

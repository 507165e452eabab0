"""Utility helpers for working with vault files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def iter_markdown_paths(root: Path) -> Iterator[Path]:
    """Yield markdown notes under root, skipping hidden folders like .obsidian."""
    if not root.is_dir():
        return
    for item in sorted(root.rglob("*")):
        if item.is_file() and item.suffix.lower() == ".md" and not _is_hidden(item, root):
            yield item


def is_markdown(path: str | bytes) -> bool:
    if isinstance(path, bytes):
        return path.lower().endswith(b".md")
    return path.lower().endswith(".md")

"""Text helpers for ordering, flag parsing and note names."""

from __future__ import annotations

import unicodedata
from typing import Any, Iterable, List, Optional

TRUTHY_STRINGS = ("true", "yes", "1")


def sort_key(value: str) -> tuple[str, str]:
    """Case- and accent-insensitive ordering key.

    Strings that only differ by case or accents compare equal on the first
    element; the raw string breaks the tie so ordering stays deterministic.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), value


def sorted_casefold(values: Iterable[str]) -> List[str]:
    return sorted(values, key=sort_key)


def parse_boolean(value: Any) -> bool:
    """Interpret a frontmatter flag; unknown types count as false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, int):
        return value == 1
    return False


def is_yes(answer: Optional[str]) -> bool:
    return answer.strip().lower().startswith("y") if answer else False


def ensure_markdown_extension(name: str) -> str:
    return name if name.lower().endswith(".md") else f"{name}.md"


def normalize_note_path(name: str) -> str:
    """Vault-relative posix path for a user supplied note name."""
    cleaned = name.strip().replace("\\", "/")
    parts = [part for part in cleaned.split("/") if part and part != "."]
    return ensure_markdown_extension("/".join(parts)) if parts else ""

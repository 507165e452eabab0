"""Rewrite the generated region of an auto-node without touching user content."""

from __future__ import annotations

import logging
import re

LOGGER = logging.getLogger(__name__)

MARKER_START = "<!-- auto-node:start -->"
MARKER_END = "<!-- auto-node:end -->"
INTRO_HEADING = "## Auto-node"
INTRO_BLOCK = (
    f"{INTRO_HEADING}\n"
    "\n"
    "Links between the auto-node markers are regenerated whenever the vault changes. "
    "Anything outside them is left alone."
)

_START_RE = re.compile(r"<!--\s*auto-node\s*:\s*start\s*-->", re.IGNORECASE)
_END_RE = re.compile(r"<!--\s*auto-node\s*:\s*end\s*-->", re.IGNORECASE)
# A single-line annotation runs to the last "-->" on its line, so keywords
# containing "-->" are replaced whole. Legacy annotations may span lines;
# those never run past another comment opener.
_KEYWORD_RE = re.compile(
    r"<!--\s*auto-?node\s+keyword\s*:"
    r"(?:(?:(?!<!--)[^\n])*-->(?=[ \t]*\r?$)|(?:(?!<!--)[\s\S])*?-->)",
    re.IGNORECASE | re.MULTILINE,
)
_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_INTRO_RE = re.compile(rf"^{re.escape(INTRO_HEADING)}[ \t]*$", re.MULTILINE)


def keyword_annotation(keyword: str) -> str:
    return f"<!-- Auto-node keyword: {keyword} -->"


def normalize_markers(text: str, keyword: str) -> str:
    """Canonicalize marker comments and the keyword annotation."""
    text = _START_RE.sub(MARKER_START, text)
    text = _END_RE.sub(MARKER_END, text)
    annotation = keyword_annotation(keyword)
    return _KEYWORD_RE.sub(lambda _match: annotation, text)


def ensure_intro_section(text: str) -> str:
    """Insert the intro block right after the frontmatter unless its heading exists."""
    if _INTRO_RE.search(text):
        return text

    match = _FRONTMATTER_RE.match(text)
    head = match.group(0) if match else ""
    rest = text[len(head):].lstrip("\n")
    if head and not head.endswith("\n"):
        head += "\n"
    prefix = f"{head}\n" if head else ""
    return f"{prefix}{INTRO_BLOCK}\n\n{rest}"


def _append_marker_pair(text: str, keyword: str) -> str:
    lines = [text.rstrip(), ""]
    if not _KEYWORD_RE.search(text):
        lines.append(keyword_annotation(keyword))
    lines.extend([MARKER_START, MARKER_END, ""])
    return "\n".join(lines)


def merge(current: str, generated: str, keyword: str) -> str:
    """Return ``current`` with the generated region replaced by ``generated``.

    Calling it again with the same body yields the same text. When the
    markers are out of order the input is returned untouched.
    """
    text = ensure_intro_section(normalize_markers(current, keyword))

    if MARKER_START not in text or MARKER_END not in text:
        text = _append_marker_pair(text, keyword)

    start = text.find(MARKER_START)
    end = text.find(MARKER_END, start + len(MARKER_START)) if start != -1 else -1
    if start == -1 or end == -1:
        LOGGER.warning("Auto-node markers out of order; leaving note unchanged")
        return current

    before = text[: start + len(MARKER_START)]
    after = text[end:]
    body = generated.strip("\n")
    return f"{before}\n\n{body}\n\n{after}".rstrip() + "\n"

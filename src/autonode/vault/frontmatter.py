"""Declared auto-node configuration stored in a note's frontmatter."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional

import frontmatter
import yaml

from autonode.models import MatchRule
from autonode.sync.merger import INTRO_BLOCK, MARKER_END, MARKER_START, keyword_annotation
from autonode.utils.text import parse_boolean

LOGGER = logging.getLogger(__name__)

KEYWORD_KEYS = ("autoNodeKeyword", "autonodekeyword", "auto-node-keyword")
FLAG_KEY = "autoNode"
CASE_SENSITIVE_KEY = "autoNodeCaseSensitive"
WHOLE_WORD_KEY = "autoNodeMatchWholeWord"
MANAGED_KEYS = frozenset((FLAG_KEY, CASE_SENSITIVE_KEY, WHOLE_WORD_KEY, *KEYWORD_KEYS))
COLLECTING_PLACEHOLDER = "_Collecting links..._"

_BLOCK_RE = re.compile(r"\A---[ \t]*\n(?P<inner>(?:.*?\n)?)---[ \t]*(?:\n|\Z)", re.DOTALL)
_KEY_RE = re.compile(r"^(?P<key>[^\s:#][^:]*?)\s*:")


def rule_from_metadata(metadata: Mapping[str, Any]) -> Optional[MatchRule]:
    """Build a rule from parsed frontmatter, or None when no keyword is declared."""
    keyword = next((metadata[key] for key in KEYWORD_KEYS if metadata.get(key) is not None), None)
    if keyword is None or not str(keyword).strip():
        return None
    return MatchRule(
        keyword=str(keyword),
        case_sensitive=parse_boolean(metadata.get(CASE_SENSITIVE_KEY)),
        match_whole_word=parse_boolean(metadata.get(WHOLE_WORD_KEY)),
    )


def read_declared_config(text: str) -> Optional[MatchRule]:
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError) as exc:
        LOGGER.debug("Ignoring unparsable frontmatter: %s", exc)
        return None
    return rule_from_metadata(post.metadata or {})


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def render_config_lines(rule: MatchRule) -> List[str]:
    """Known keys in their fixed order."""
    return [
        f"{FLAG_KEY}: true",
        f"autoNodeKeyword: {rule.keyword}",
        f"{CASE_SENSITIVE_KEY}: {_format_bool(rule.case_sensitive)}",
        f"{WHOLE_WORD_KEY}: {_format_bool(rule.match_whole_word)}",
    ]


def _unmanaged_lines(inner: str) -> List[str]:
    kept: List[str] = []
    skipping = False
    for line in inner.splitlines():
        key_match = _KEY_RE.match(line)
        if key_match:
            skipping = key_match.group("key").strip() in MANAGED_KEYS
        elif line and not line[0].isspace() and not line.startswith("- "):
            skipping = False
        if not skipping:
            kept.append(line)
    return kept


def write_declared_config(text: str, rule: MatchRule) -> str:
    """Set the rule in the frontmatter, keeping unrelated keys verbatim."""
    config_lines = render_config_lines(rule)
    match = _BLOCK_RE.match(text)
    if match is None:
        block = "\n".join(["---", *config_lines, "---"])
        body = text.lstrip("\n")
        return f"{block}\n\n{body}" if body.strip() else f"{block}\n"

    kept = _unmanaged_lines(match.group("inner"))
    block = "\n".join(["---", *config_lines, *kept, "---"])
    return f"{block}\n{text[match.end():]}"


def remove_declared_config(text: str) -> str:
    """Drop the auto-node keys; an emptied frontmatter block is removed."""
    match = _BLOCK_RE.match(text)
    if match is None:
        return text
    kept = _unmanaged_lines(match.group("inner"))
    rest = text[match.end():]
    if not any(line.strip() for line in kept):
        return rest.lstrip("\n")
    block = "\n".join(["---", *kept, "---"])
    return f"{block}\n{rest}"


def build_initial_content(rule: MatchRule) -> str:
    return "\n".join(
        [
            "---",
            *render_config_lines(rule),
            "---",
            "",
            INTRO_BLOCK,
            "",
            keyword_annotation(rule.keyword),
            MARKER_START,
            COLLECTING_PLACEHOLDER,
            MARKER_END,
            "",
        ]
    )

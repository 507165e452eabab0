"""Keyword matching against a note's body, title and path."""

from __future__ import annotations

import re
from typing import Optional

from autonode.models import Document, MatchRule


def _whole_word_pattern(rule: MatchRule) -> re.Pattern[str]:
    flags = 0 if rule.case_sensitive else re.IGNORECASE
    return re.compile(rf"\b{re.escape(rule.keyword)}\b", flags)


def matches(document: Document, rule: MatchRule, pattern: Optional[re.Pattern[str]] = None) -> bool:
    """Return True when the rule's keyword occurs in the body, title or path.

    Each field is tested on its own, so the keyword has to appear inside a
    single field. Word boundaries follow the ``re`` module's Unicode rules.
    A precompiled whole-word ``pattern`` may be passed to skip compilation.
    """
    haystacks = (document.body, document.title, document.path)

    if rule.match_whole_word:
        pattern = pattern or _whole_word_pattern(rule)
        return any(pattern.search(haystack) for haystack in haystacks)

    if rule.case_sensitive:
        return any(rule.keyword in haystack for haystack in haystacks)

    keyword = rule.keyword.lower()
    return any(keyword in haystack.lower() for haystack in haystacks)


class KeywordMatcher:
    """Callable wrapper caching compiled whole-word patterns per rule."""

    def __init__(self) -> None:
        self._patterns: dict[MatchRule, re.Pattern[str]] = {}

    def __call__(self, document: Document, rule: MatchRule) -> bool:
        if not rule.match_whole_word:
            return matches(document, rule)
        pattern = self._patterns.get(rule)
        if pattern is None:
            pattern = self._patterns[rule] = _whole_word_pattern(rule)
        return matches(document, rule, pattern)

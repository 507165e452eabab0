"""Tests for keyword matching."""

from __future__ import annotations

import re

import pytest

from autonode.models import Document, MatchRule
from autonode.sync.matcher import KeywordMatcher, matches


def doc(body: str, path: str = "notes/plain.md") -> Document:
    return Document(path=path, title=path.rsplit("/", 1)[-1].removesuffix(".md"), body=body)


class TestSubstringMode:
    """Test substring matching."""

    def test_body_match(self) -> None:
        assert matches(doc("alpha info"), MatchRule("alpha"))

    def test_no_match(self) -> None:
        assert not matches(doc("nothing here"), MatchRule("alpha"))

    def test_inside_word(self) -> None:
        """Substring mode matches inside longer words."""
        assert matches(doc("concatenate"), MatchRule("cat"))

    def test_title_match(self) -> None:
        """The note title counts even when the body does not mention the keyword."""
        assert matches(doc("unrelated", path="Alpha Centauri.md"), MatchRule("alpha"))

    def test_path_match(self) -> None:
        """Folder names in the path count."""
        assert matches(doc("unrelated", path="alpha/notes.md"), MatchRule("alpha"))

    def test_case_sensitive(self) -> None:
        rule = MatchRule("Alpha", case_sensitive=True)

        assert matches(doc("Alpha"), rule)
        assert not matches(doc("alpha"), rule)

    @pytest.mark.parametrize("body", ["Alpha Info", "ALPHA INFO", "alpha info"])
    def test_case_insensitive_ignores_body_case(self, body: str) -> None:
        """Uniformly changing body case never changes the outcome."""
        rule = MatchRule("aLpHa")
        assert matches(doc(body), rule)
        assert matches(doc(body.upper()), rule) == matches(doc(body.lower()), rule)


class TestWholeWordMode:
    """Test whole-word matching."""

    def test_rejects_inside_word(self) -> None:
        assert not matches(doc("concatenate"), MatchRule("cat", match_whole_word=True))

    def test_accepts_word(self) -> None:
        assert matches(doc("a cat sat"), MatchRule("cat", match_whole_word=True))

    def test_case_insensitive_flag(self) -> None:
        assert matches(doc("A CAT sat"), MatchRule("cat", match_whole_word=True))

    def test_case_sensitive_flag(self) -> None:
        rule = MatchRule("cat", case_sensitive=True, match_whole_word=True)
        assert not matches(doc("A CAT sat"), rule)

    def test_keyword_is_literal(self) -> None:
        """Regex metacharacters in the keyword are escaped."""
        rule = MatchRule("a.b", match_whole_word=True)

        assert matches(doc("see a.b now"), rule)
        assert not matches(doc("see axb now"), rule)

    def test_path_is_checked(self) -> None:
        rule = MatchRule("cat", match_whole_word=True)
        assert matches(doc("nothing", path="pets/cat.md"), rule)

    def test_fields_checked_independently(self) -> None:
        """The keyword must appear inside a single field."""
        rule = MatchRule("cat", match_whole_word=True)
        assert not matches(doc("ca", path="t.md"), rule)


class TestKeywordMatcher:
    """Test the caching matcher wrapper."""

    @pytest.mark.parametrize(
        "body,rule",
        [
            ("a cat sat", MatchRule("cat", match_whole_word=True)),
            ("concatenate", MatchRule("cat", match_whole_word=True)),
            ("concatenate", MatchRule("cat")),
            ("CAT", MatchRule("cat", case_sensitive=True)),
        ],
    )
    def test_agrees_with_matches(self, body: str, rule: MatchRule) -> None:
        matcher = KeywordMatcher()
        assert matcher(doc(body), rule) == matches(doc(body), rule)

    def test_reuses_compiled_pattern(self) -> None:
        matcher = KeywordMatcher()
        rule = MatchRule("cat", match_whole_word=True)

        matcher(doc("cat"), rule)
        matcher(doc("dog"), rule)

        assert list(matcher._patterns) == [rule]

    def test_cached_pattern_is_searched(self) -> None:
        """The cached pattern drives the search, so a swapped-in pattern is honoured."""
        matcher = KeywordMatcher()
        rule = MatchRule("cat", match_whole_word=True)
        matcher._patterns[rule] = re.compile(r"\bdog\b")

        assert matcher(doc("a dog barks"), rule) is True
        assert matcher(doc("a cat sat"), rule) is False

    def test_precompiled_pattern_argument(self) -> None:
        rule = MatchRule("cat", match_whole_word=True)
        assert matches(doc("one cat"), rule, re.compile(r"\bcat\b")) is True

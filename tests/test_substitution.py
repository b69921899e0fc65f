"""
Tests for the longest-match-first substitution engine.
"""

from unittest.mock import patch

import pytest

from textreplace.core.errors import AllocationError
from textreplace.core.pairs import PatternTable
from textreplace.core.substitution import LineResult, apply


def table_of(*tokens):
    return PatternTable.from_tokens(list(tokens))


class TestExamples:
    """Reference examples."""

    def test_repeated_pattern(self):
        assert apply("foofoo", table_of("foo", "bar")) == LineResult("barbar", True)

    def test_longest_match_wins(self):
        assert apply("abc", table_of("ab", "X", "a", "Y")) == LineResult("Xc", True)

    def test_deletion(self):
        assert apply("axbxc", table_of("x", "")) == LineResult("abc", True)

    def test_no_match(self):
        assert apply("hello", table_of("z", "Q")) == LineResult("hello", False)


class TestLongestMatch:
    """Longer patterns win over their prefixes at the same position."""

    @pytest.mark.parametrize("tokens", [
        ("a", "Y", "ab", "X"),
        ("ab", "X", "a", "Y"),
    ])
    def test_order_of_arguments_does_not_matter(self, tokens):
        """Longest match is chosen whichever order the pairs were given in."""
        assert apply("ab", table_of(*tokens)).text == "X"

    def test_three_nested_prefixes(self):
        table = table_of("a", "1", "ab", "2", "abc", "3")

        assert apply("abcabxa", table).text == "32x1"

    def test_cursor_advances_by_source_length(self):
        """Replacement text is never rescanned."""
        table = table_of("a", "aa", "b", "a")

        assert apply("ab", table).text == "aaa"

    def test_equal_length_tie_uses_argument_order(self):
        """Same source given twice: the first one wins."""
        table = table_of("ab", "first", "ab", "second")

        assert apply("ab", table).text == "first"

    def test_expansion(self):
        table = table_of("x", "longer text")

        assert apply("-x-", table) == LineResult("-longer text-", True)

    def test_overlapping_occurrences_consume_left_to_right(self):
        assert apply("aaa", table_of("aa", "B")).text == "Ba"


class TestEdgeCases:
    """Edge cases of the scan."""

    def test_empty_pattern_never_applied(self):
        """An empty from-string must not loop or insert text."""
        table = table_of("", "boom", "q", "Q")

        assert apply("abc", table) == LineResult("abc", False)
        assert apply("aqb", table) == LineResult("aQb", True)

    def test_only_empty_pattern(self):
        assert apply("text", table_of("", "x")) == LineResult("text", False)

    def test_empty_line(self):
        assert apply("", table_of("a", "b")) == LineResult("", False)

    def test_identity_replacement_counts_as_change(self):
        """A matching pair marks the line changed even if the text is equal."""
        assert apply("abc", table_of("b", "b")) == LineResult("abc", True)

    def test_match_at_end_of_line(self):
        assert apply("xxab", table_of("ab", "!")).text == "xx!"

    def test_partial_match_at_end_is_copied(self):
        assert apply("xxa", table_of("ab", "!")) == LineResult("xxa", False)

    def test_unicode_text(self):
        table = table_of("é", "e", "ß", "ss")

        assert apply("Straße café", table).text == "Strasse cafe"

    def test_memory_error_becomes_allocation_error(self):
        table = table_of("a", "b")

        with patch("textreplace.core.substitution._scan", side_effect=MemoryError):
            with pytest.raises(AllocationError):
                apply("a", table)


class TestProperties:
    """Algebraic properties of replacement."""

    def test_no_op_returns_same_line(self):
        line = "nothing to see here"
        result = apply(line, table_of("zzz", "y", "qq", "r"))

        assert result.text == line
        assert result.changed is False

    def test_round_trip(self):
        """Replacing A with B and then B with A restores the line."""
        line = "say hello, hello world"
        forward = apply(line, table_of("hello", "HOLA"))
        back = apply(forward.text, table_of("HOLA", "hello"))

        assert forward.changed
        assert back.text == line

    def test_deterministic(self):
        table = table_of("ab", "1", "ba", "2", "a", "3")
        line = "abababbaab"

        assert apply(line, table) == apply(line, table)

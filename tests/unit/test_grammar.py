"""
Unit tests for the quoting grammar.

Tests cover:
- Plain / backtick / caret decision procedure
- Caret id collision avoidance
- Forced format validation
"""

import pytest

from tagtab.core.grammar import (
    caret_terminates,
    check_format,
    choose_caret_id,
    choose_format,
    embedded_tags,
    encode_field,
    needs_quoting,
)
from tagtab.exceptions import MalformedQuoteError, QuoteIdExhaustedError
from tagtab.models import FieldFormat, QuoteStyle


class TestDecision:
    """Tests for choosing a field's encoding."""

    @pytest.mark.parametrize("text", ["", "plain", "with space", "*", "@", "ünïcødé"])
    def test_plain_text_is_unquoted(self, text):
        assert choose_format(text, "\t") == FieldFormat.plain()
        assert encode_field(text) == text

    @pytest.mark.parametrize("text", ["a\tb", "a\nb", "a\rb", "^lead", "mid^dle"])
    def test_special_runes_use_backticks(self, text):
        assert choose_format(text, "\t").style == QuoteStyle.BACKTICK
        assert encode_field(text) == f"`{text}`"

    def test_custom_delimiter(self):
        """Only the configured delimiter forces quoting."""
        assert needs_quoting("a,b", ",")
        assert not needs_quoting("a\tb", ",")

    def test_backtick_uses_caret_tag(self):
        assert encode_field("has `tick`") == "^^has `tick`^^"

    def test_scenario_string(self):
        """Pre-existing ^1^ and ^^ tags push the id to 2."""
        text = "^1^^`foo\nbar`"
        assert encode_field(text) == f"^2^{text}^2^"


class TestCaretIds:
    """Tests for collision avoidance."""

    def test_embedded_tags_overlap(self):
        assert embedded_tags("^1^2^") == {"1", "2"}
        assert embedded_tags("^^") == {""}
        assert embedded_tags("^abc^") == set()

    def test_tags_longer_than_nine_digits_are_ignored(self):
        assert embedded_tags("^1234567890^") == set()
        assert embedded_tags("^123456789^") == {"123456789"}

    def test_empty_id_first(self):
        assert choose_caret_id("`") == ""

    def test_skips_taken_ids(self):
        assert choose_caret_id("`^^^1^^2^") == "3"

    def test_never_picks_an_embedded_tag(self, tricky_strings):
        for text in tricky_strings:
            if "`" not in text:
                continue
            tag = choose_caret_id(text)
            assert tag not in embedded_tags(text)
            assert caret_terminates(text, tag)

    def test_trailing_caret_cannot_close_early(self):
        """'a`^' + '^^' would close one rune early, so the empty id is rejected."""
        assert not caret_terminates("a`^", "")
        assert choose_caret_id("a`^") == "1"

    def test_exhausted(self):
        text = "`" + "".join(f"^{n or ''}^" for n in range(1000))

        with pytest.raises(QuoteIdExhaustedError) as exc_info:
            choose_caret_id(text)

        assert exc_info.value.recoverable is False
        assert exc_info.value.limit == 999


class TestForcedFormats:
    """Tests for check_format."""

    def test_plain_rejects_special_text(self):
        with pytest.raises(MalformedQuoteError):
            check_format("a\tb", FieldFormat.plain(), "\t")

    def test_backtick_rejects_backtick(self):
        with pytest.raises(MalformedQuoteError):
            check_format("a`b", FieldFormat.backtick(), "\t")

    def test_caret_rejects_colliding_id(self):
        with pytest.raises(MalformedQuoteError):
            check_format("x^1^y", FieldFormat.caret("1"), "\t")

    def test_valid_forced_formats(self):
        check_format("foo", FieldFormat.plain(), "\t")
        check_format("a\tb", FieldFormat.backtick(), "\t")
        check_format("a`b", FieldFormat.caret("7"), "\t")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Tests for diagnostic classification
===================================

Covers:
- Blank and empty text
- Literal suppression of benign ffmpeg lines
- The header-missing offset rule
- Malformed offsets
- Custom rule sets

Run with:
    pytest tests/test_diagnostics.py -v
"""
import logging

import pytest

from aviscan.diagnostics import (
    DEFAULT_RULES,
    HEADER_MISSING_PATTERN,
    LAST_MESSAGE_REPEATED,
    NON_MONOTONIC_DTS_WARNING,
    DiagnosticClassifier,
    LiteralSuppressionRule,
    OffsetConditionedRule,
)

DTS_LINE = (
    "[avi @ 0x5581c6e3c2c0] Application provided invalid, non monotonically "
    "increasing dts to muxer in stream 0: 12 >= 12"
)
REPEATED_LINE = "    Last message repeated 3 times"


@pytest.fixture
def classifier():
    return DiagnosticClassifier()


class TestBlankInput:
    """Empty or whitespace-only diagnostics always pass."""

    @pytest.mark.parametrize("text", ["", "\n", "\r\n\r\n", "   \n\t\n", "\n\n\n"])
    def test_blank_text_passes(self, classifier, text):
        """No lines means no errors."""
        assert classifier.classify(text) is True
        assert classifier.error_lines(text) == []

    def test_blank_lines_between_benign_lines_are_dropped(self, classifier):
        """Blank lines never become error lines."""
        text = f"\n{DTS_LINE}\n\n  \n{REPEATED_LINE}\n"
        assert classifier.classify(text) is True


class TestLiteralSuppression:
    """Known-benign substrings are discarded wherever they appear."""

    def test_non_monotonic_dts_is_benign(self, classifier):
        assert classifier.classify(DTS_LINE) is True

    def test_last_message_repeated_is_benign(self, classifier):
        assert classifier.classify(REPEATED_LINE) is True

    def test_benign_lines_do_not_mask_real_errors(self, classifier):
        """A real error still fails the file when benign lines surround it."""
        text = "\n".join([DTS_LINE, "[mpeg4 @ 0x1] ac-tex damaged at 3 7", REPEATED_LINE])

        assert classifier.classify(text) is False
        assert classifier.error_lines(text) == ["[mpeg4 @ 0x1] ac-tex damaged at 3 7"]

    def test_substring_match_is_case_sensitive(self, classifier):
        """Only the exact ffmpeg wording is suppressed."""
        assert classifier.classify("last message repeated 2 times") is False

    def test_windows_line_endings(self, classifier):
        """CRLF output is split the same way as LF output."""
        text = f"{DTS_LINE}\r\n{REPEATED_LINE}\r\n"
        assert classifier.classify(text) is True

    def test_only_newlines_split_lines(self, classifier):
        """Form feeds and other separators inside a line do not split it."""
        text = f"[mpeg4 @ 0x1] bad\x0cframe\n{DTS_LINE}\x1c{REPEATED_LINE}\n"
        assert classifier.error_lines(text) == ["[mpeg4 @ 0x1] bad\x0cframe"]


class TestHeaderMissingRule:
    """'header missing' is fatal only at offset zero."""

    def test_offset_zero_fails(self, classifier):
        assert classifier.classify("[mp3float @ 0] header missing") is False

    def test_hex_zero_with_prefix_fails(self, classifier):
        assert classifier.classify("[mp3float @ 0x0] Header missing") is False

    def test_nonzero_offset_passes(self, classifier):
        assert classifier.classify("[mp3float @ 1a3] header missing") is True

    def test_ffmpeg_pointer_format_passes(self, classifier):
        """ffmpeg prints context pointers such as 0x55d5c3a0."""
        assert classifier.classify("[mp3float @ 0x55d5c3a0] Header missing") is True

    def test_bracketed_offset_without_at_sign_passes(self, classifier):
        assert classifier.classify("[abc123] header missing") is True

    def test_bracketed_codec_name_is_not_an_offset(self, classifier):
        """A bare tag without digits is a codec name, so the line is kept."""
        assert classifier.classify("[aac] header missing") is False
        assert HEADER_MISSING_PATTERN.search("[aac] header missing") is None

    def test_match_is_case_insensitive(self, classifier):
        assert classifier.classify("[MP3 @ 00000200ABCDEF10] HEADER MISSING") is True

    def test_offset_zero_line_is_retained(self, classifier):
        text = "[mp3 @ 1f] header missing\n[mp3 @ 0] header missing"
        assert classifier.error_lines(text) == ["[mp3 @ 0] header missing"]

    def test_pattern_captures_offset(self):
        match = HEADER_MISSING_PATTERN.search("[mp3float @ 0x7f] Header missing")
        assert match is not None
        assert match.group(1) == "0x7f"


class TestMalformedOffset:
    """An offset that is not hex fails the file instead of raising."""

    def test_unparsable_offset_fails(self, classifier):
        assert classifier.classify("[mp3 @ zz] header missing") is False

    def test_unparsable_offset_is_logged(self, classifier, caplog):
        with caplog.at_level(logging.WARNING, logger="aviscan.diagnostics"):
            classifier.error_lines("[mp3 @ xyz] header missing")

        assert "Unparsable offset" in caplog.text

    def test_unparsable_offset_does_not_stop_classification(self, classifier):
        text = "[mp3 @ zz] header missing\n[h264 @ 0x1] corrupt frame"
        assert classifier.error_lines(text) == [
            "[mp3 @ zz] header missing",
            "[h264 @ 0x1] corrupt frame",
        ]


class TestRuleSet:
    """Rules are independent predicates and can be swapped out."""

    def test_default_rules_cover_both_kinds(self):
        literals = [r for r in DEFAULT_RULES if isinstance(r, LiteralSuppressionRule)]
        offsets = [r for r in DEFAULT_RULES if isinstance(r, OffsetConditionedRule)]

        assert {r.substring for r in literals} == {
            NON_MONOTONIC_DTS_WARNING,
            LAST_MESSAGE_REPEATED,
        }
        assert len(offsets) == 1

    def test_literal_rule(self):
        rule = LiteralSuppressionRule("harmless")
        assert rule.is_benign("something harmless happened")
        assert not rule.is_benign("something bad happened")

    def test_offset_rule_threshold(self):
        rule = OffsetConditionedRule(HEADER_MISSING_PATTERN, minimum_offset=0x100)
        assert not rule.is_benign("[mp3 @ ff] header missing")
        assert rule.is_benign("[mp3 @ 100] header missing")

    def test_offset_rule_ignores_other_lines(self):
        rule = OffsetConditionedRule(HEADER_MISSING_PATTERN)
        assert not rule.is_benign("[mp3 @ 0x10] invalid frame size")

    def test_empty_rule_set_keeps_everything(self):
        classifier = DiagnosticClassifier(rules=[])
        assert classifier.error_lines(DTS_LINE) == [DTS_LINE]

    def test_rule_order_does_not_change_outcome(self):
        text = "\n".join([DTS_LINE, REPEATED_LINE, "[mp3 @ 2] header missing"])
        forward = DiagnosticClassifier(rules=DEFAULT_RULES)
        backward = DiagnosticClassifier(rules=tuple(reversed(DEFAULT_RULES)))

        assert forward.classify(text) == backward.classify(text) is True

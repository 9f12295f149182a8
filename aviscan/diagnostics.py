"""
Diagnostic Classification
=========================

Decides whether the diagnostic text ffmpeg printed for one file indicates
corruption.

ffmpeg is run with ``-v error`` so every line it prints is nominally an
error, but a few of them show up on files that play back fine. Those are
filtered out by an ordered set of rules; whatever survives is treated as a
real error and fails the file.

Two rule kinds exist:
- LiteralSuppressionRule: the line contains a fixed substring.
- OffsetConditionedRule: the line matches a pattern with a hex offset, and
  the offset satisfies a numeric condition.

Usage:
    from aviscan.diagnostics import DiagnosticClassifier

    classifier = DiagnosticClassifier()
    if classifier.classify(stderr_text):
        print("OK")
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Union

# Module logger
_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Emitted when remuxing AVIs with B-frames; harmless for playback
NON_MONOTONIC_DTS_WARNING = (
    "Application provided invalid, non monotonically increasing dts to muxer"
)

# Continuation marker for a line that was already reported
LAST_MESSAGE_REPEATED = "Last message repeated"

# Matches "[mp3float @ 0x55d5c] Header missing" and "[abc123] header missing".
# The bare bracket form needs at least one digit so codec tags such as
# "[aac] header missing" are not read as offsets.
HEADER_MISSING_PATTERN = re.compile(
    r"(?:@ |\[(?=[a-z]*\d))([a-z\d]+)\] header missing",
    re.IGNORECASE,
)


# =============================================================================
# Rules
# =============================================================================

@dataclass(frozen=True)
class LiteralSuppressionRule:
    """
    A line is benign whenever it contains ``substring``.

    Attributes:
        substring: Literal text to look for (case-sensitive)
        name: Short identifier used in debug logging
    """
    substring: str
    name: str = "literal"

    def is_benign(self, line: str) -> bool:
        return self.substring in line


@dataclass(frozen=True)
class OffsetConditionedRule:
    """
    A line is benign when it matches ``pattern`` and the hex offset captured
    by the pattern's first group is at least ``minimum_offset``.

    An offset that cannot be parsed never makes a line benign; the line is
    kept as an error and a warning is logged.

    Attributes:
        pattern: Compiled regex whose group 1 captures a hex offset
        minimum_offset: Smallest offset considered benign
        name: Short identifier used in debug logging
    """
    pattern: re.Pattern[str]
    minimum_offset: int = 1
    name: str = "offset"

    def is_benign(self, line: str) -> bool:
        match = self.pattern.search(line)
        if not match:
            return False

        captured = match.group(1)
        try:
            offset = int(captured, 16)
        except ValueError:
            _logger.warning(
                "Unparsable offset %r in diagnostic line, keeping it as an error: %s",
                captured, line
            )
            return False

        return offset >= self.minimum_offset


DiagnosticRule = Union[LiteralSuppressionRule, OffsetConditionedRule]


DEFAULT_RULES: tuple[DiagnosticRule, ...] = (
    LiteralSuppressionRule(NON_MONOTONIC_DTS_WARNING, name="non-monotonic-dts"),
    LiteralSuppressionRule(LAST_MESSAGE_REPEATED, name="last-message-repeated"),
    # A missing header past the start of the stream still plays back;
    # at offset 0 the file is unreadable.
    OffsetConditionedRule(HEADER_MISSING_PATTERN, minimum_offset=1, name="header-missing"),
)


# =============================================================================
# Classifier
# =============================================================================

class DiagnosticClassifier:
    """
    Binary pass/fail classification of ffmpeg diagnostic text.

    A text passes iff no non-blank line survives the rule set. Empty text
    trivially passes.
    """

    def __init__(self, rules: tuple[DiagnosticRule, ...] | list[DiagnosticRule] | None = None):
        self.rules: tuple[DiagnosticRule, ...] = (
            tuple(rules) if rules is not None else DEFAULT_RULES
        )

    def is_benign(self, line: str) -> bool:
        """Return True if any rule covers ``line``."""
        for rule in self.rules:
            if rule.is_benign(line):
                _logger.debug("Suppressed by %s: %s", rule.name, line)
                return True
        return False

    def error_lines(self, raw_text: str) -> list[str]:
        """
        Return the lines of ``raw_text`` not covered by any rule, in order.

        Args:
            raw_text: Diagnostic stream contents, any line-ending convention

        Returns:
            Retained error lines (blank lines are never retained)
        """
        if not raw_text or raw_text.isspace():
            return []

        errors = []
        for line in raw_text.replace("\r\n", "\n").split("\n"):
            if not line.strip():
                continue
            if self.is_benign(line):
                continue
            errors.append(line)

        return errors

    def classify(self, raw_text: str) -> bool:
        """Return True if ``raw_text`` carries no corruption signal."""
        return not self.error_lines(raw_text)

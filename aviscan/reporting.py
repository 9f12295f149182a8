"""
Transcript Output
=================

Everything the scanner prints goes to the console and to a log file named
after the run's start time, e.g. ``log-18-10-2026-03-45-12.txt``. Both sinks
receive identical text; only the console gets color.

The Transcript is a context manager: the log file is opened on entry and
closed on exit, whatever happens in between.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import IO

import colorama

from aviscan.exceptions import ConfigurationError
from aviscan.models import DirectoryTally, ValidationOutcome

_logger = logging.getLogger(__name__)

# dd-MM-yyyy-hh-mm-ss, 12-hour clock
LOG_TIMESTAMP_FORMAT = "%d-%m-%Y-%I-%M-%S"

STATUS_COLORS = {
    "OK": colorama.Fore.GREEN,
    "FAIL": colorama.Fore.RED,
}


def log_file_name(started_at: datetime) -> str:
    return f"log-{started_at.strftime(LOG_TIMESTAMP_FORMAT)}.txt"


def printable(text: str) -> str:
    """
    Replace undecodable filename bytes with backslash escapes.

    On POSIX, names that are not valid UTF-8 arrive as str with lone
    surrogates (PEP 383); those are written as e.g. ``\\xe9``.
    """
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


class Transcript:
    """
    Tee of console output into a timestamped log file.

    Usage:
        with Transcript(log_dir=Path(".")) as transcript:
            transcript.scan_started(root)
            ...
            transcript.done()
    """

    def __init__(
        self,
        log_dir: str | Path = ".",
        console: IO[str] | None = None,
        use_color: bool = True,
        started_at: datetime | None = None,
    ):
        self.started_at = started_at or datetime.now()
        self.log_path = Path(log_dir) / log_file_name(self.started_at)
        self._console = console if console is not None else sys.stdout
        self._use_color = use_color
        self._log_file: IO[str] | None = None

    def __enter__(self) -> Transcript:
        if self._use_color:
            colorama.just_fix_windows_console()
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_file = open(
                self.log_path, "w", encoding="utf-8", errors="backslashreplace"
            )
        except OSError as e:
            raise ConfigurationError(
                f"Cannot write log file {self.log_path}: {e}"
            ) from e
        _logger.debug("Writing transcript to %s", self.log_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None

    # -------------------------------------------------------------------------
    # Low-level output
    # -------------------------------------------------------------------------

    def write(self, text: str, color: str | None = None) -> None:
        """Write ``text`` to both sinks without a trailing newline."""
        text = printable(text)
        if color and self._use_color:
            self._console.write(f"{color}{text}{colorama.Style.RESET_ALL}")
        else:
            self._console.write(text)
        self._console.flush()

        if self._log_file is not None:
            self._log_file.write(text)
            self._log_file.flush()

    def write_line(self, text: str = "", color: str | None = None) -> None:
        self.write(text, color)
        self.write("\n")

    # -------------------------------------------------------------------------
    # Scan events
    # -------------------------------------------------------------------------

    def scan_started(self, root: str | Path) -> None:
        self.write_line(f"Starting scan of AVI files within '{root}'")
        self.write_line()

    def directory_header(self, directory: str | Path) -> None:
        self.write_line(f"[{directory}]")

    def file_result(
        self,
        relative_path: str | Path,
        outcome: ValidationOutcome,
        show_errors: bool = False,
        timeout_seconds: int | None = None,
    ) -> None:
        self.write(f"{relative_path} -- ")
        self.write_line(outcome.label, STATUS_COLORS[outcome.label])

        if show_errors and not outcome.passed:
            if outcome.timed_out:
                self.write_line(f"    (timed out after {timeout_seconds} seconds)")
            for line in outcome.diagnostic_lines:
                self.write_line(f"    {line}")

    def directory_totals(self, tally: DirectoryTally) -> None:
        self.write_line(
            f"[Totals: {tally.success_count} success(es), {tally.failure_count} failure(s)]"
        )
        self.write_line()

    def done(self) -> None:
        self.write_line("Done!")


def relative_display_path(file_path: Path, root: Path) -> str:
    """Path of ``file_path`` relative to ``root`` for the per-file line."""
    try:
        return str(file_path.relative_to(root))
    except ValueError:
        return os.path.relpath(file_path, root)

"""Data classes for validation results and per-directory tallies."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RawDiagnostics:
    """
    What one ffmpeg run produced.

    Attributes:
        text: Everything the validator wrote to stderr, newline-joined
        timed_out: True if the process was killed for exceeding its budget
        exit_code: Process exit code, None when killed (informational only)
        duration_seconds: Wall-clock time of the run
    """
    text: str = ""
    timed_out: bool = False
    exit_code: int | None = None
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Final verdict for one candidate file.

    Attributes:
        passed: True if no corruption signal remained
        diagnostic_lines: Retained error lines (empty when passed or timed out)
        timed_out: True if the verdict was forced by a timeout
    """
    passed: bool
    diagnostic_lines: tuple[str, ...] = ()
    timed_out: bool = False

    @classmethod
    def from_timeout(cls) -> ValidationOutcome:
        return cls(passed=False, timed_out=True)

    @classmethod
    def from_error_lines(cls, error_lines: list[str]) -> ValidationOutcome:
        return cls(passed=not error_lines, diagnostic_lines=tuple(error_lines))

    @property
    def label(self) -> str:
        return "OK" if self.passed else "FAIL"


@dataclass(frozen=True)
class DirectoryTally:
    """Success/failure counts for the files directly inside one directory."""
    success_count: int = 0
    failure_count: int = 0

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


class ResultAggregator:
    """
    In-memory counters for the directory currently being scanned.

    The walker creates one on entering a directory, so counts never leak
    into siblings or parents.
    """

    def __init__(self):
        self._successes = 0
        self._failures = 0

    def reset(self) -> None:
        self._successes = 0
        self._failures = 0

    def record_success(self) -> None:
        self._successes += 1

    def record_failure(self) -> None:
        self._failures += 1

    def record(self, outcome: ValidationOutcome) -> None:
        if outcome.passed:
            self.record_success()
        else:
            self.record_failure()

    def report(self) -> DirectoryTally:
        return DirectoryTally(success_count=self._successes, failure_count=self._failures)


@dataclass(frozen=True)
class DirectoryReport:
    """Tally for one directory that contained at least one candidate file."""
    directory: Path
    tally: DirectoryTally


@dataclass
class ScanSummary:
    """
    The result of a complete scan.

    Attributes:
        root: Scanned directory
        directories: One report per directory with candidate files, in scan order
    """
    root: Path
    directories: list[DirectoryReport] = field(default_factory=list)

    @property
    def files_scanned(self) -> int:
        return sum(report.tally.total for report in self.directories)

    @property
    def total_successes(self) -> int:
        return sum(report.tally.success_count for report in self.directories)

    @property
    def total_failures(self) -> int:
        return sum(report.tally.failure_count for report in self.directories)

"""
Directory Walker
================

Depth-first, pre-order traversal of the scan root.

For every directory: validate each AVI file directly inside it, print the
directory's totals, then recurse into its subdirectories. Directories
without AVI files print nothing but are still descended into.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from aviscan.config import TARGET_EXTENSION, ScanConfig
from aviscan.diagnostics import DiagnosticClassifier
from aviscan.models import (
    DirectoryReport,
    ResultAggregator,
    ScanSummary,
    ValidationOutcome,
)
from aviscan.reporting import Transcript, relative_display_path
from aviscan.runner import ValidationRunner

_logger = logging.getLogger(__name__)


def is_candidate_file(entry: os.DirEntry) -> bool:
    """Check if a directory entry is a regular file with the target extension."""
    if not entry.name.lower().endswith(TARGET_EXTENSION):
        return False
    try:
        return entry.is_file()
    except OSError:
        return False


class DirectoryWalker:
    """Scans a directory tree, one file at a time."""

    def __init__(
        self,
        root: str | Path,
        runner: ValidationRunner,
        classifier: DiagnosticClassifier,
        transcript: Transcript,
        config: ScanConfig | None = None,
    ):
        self.root = Path(root)
        self.runner = runner
        self.classifier = classifier
        self.transcript = transcript
        self.config = config or ScanConfig()

    def walk(self) -> ScanSummary:
        """Scan the whole tree and return per-directory tallies in scan order."""
        summary = ScanSummary(root=self.root)
        self._scan_directory(self.root, summary)

        _logger.info(
            "Scanned %d file(s) in %d director(ies): %d success(es), %d failure(s)",
            summary.files_scanned, len(summary.directories),
            summary.total_successes, summary.total_failures
        )
        return summary

    def check_file(self, file_path: Path) -> ValidationOutcome:
        """Run the validator on one file and classify what it printed."""
        raw = self.runner.validate(file_path, self.config.timeout_seconds)
        if raw.timed_out:
            return ValidationOutcome.from_timeout()

        errors = self.classifier.error_lines(raw.text)
        if errors:
            _logger.debug("%s: %d error line(s): %s", file_path, len(errors), errors)
        return ValidationOutcome.from_error_lines(errors)

    def _scan_directory(self, directory: Path, summary: ScanSummary) -> None:
        entries = self._list_entries(directory)
        if entries is None:
            return

        files = [Path(e.path) for e in entries if is_candidate_file(e)]
        subdirectories = [Path(e.path) for e in entries if self._is_descendable(e)]

        if files:
            aggregator = ResultAggregator()
            self.transcript.directory_header(directory)
            for file_path in files:
                outcome = self.check_file(file_path)
                aggregator.record(outcome)
                self.transcript.file_result(
                    relative_display_path(file_path, self.root),
                    outcome,
                    show_errors=self.config.show_errors,
                    timeout_seconds=self.config.timeout_seconds,
                )

            tally = aggregator.report()
            self.transcript.directory_totals(tally)
            summary.directories.append(DirectoryReport(directory=directory, tally=tally))

        for subdirectory in subdirectories:
            self._scan_directory(subdirectory, summary)

    def _list_entries(self, directory: Path) -> list[os.DirEntry] | None:
        """List ``directory``, or return None if it cannot be read."""
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            _logger.warning("Skipping unreadable directory %s: %s", directory, e)
            return None

        if self.config.sort_entries:
            entries.sort(key=lambda e: (e.name.lower(), e.name))
        return entries

    def _is_descendable(self, entry: os.DirEntry) -> bool:
        try:
            if entry.is_symlink() and not self.config.follow_symlinks:
                return False
            return entry.is_dir()
        except OSError:
            return False

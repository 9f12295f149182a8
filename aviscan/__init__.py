"""
AVI Scan
========

Batch integrity checking of AVI files with ffmpeg.

Every AVI file under a folder is remuxed into ffmpeg's null muxer; the
error output is filtered for known-benign lines and anything left over
marks the file as corrupt.
"""

__version__ = "1.0.0"

from aviscan.diagnostics import DEFAULT_RULES, DiagnosticClassifier
from aviscan.models import (
    DirectoryTally,
    RawDiagnostics,
    ResultAggregator,
    ScanSummary,
    ValidationOutcome,
)
from aviscan.runner import ValidationRunner
from aviscan.walker import DirectoryWalker

__all__ = [
    "__version__",
    "DEFAULT_RULES",
    "DiagnosticClassifier",
    "DirectoryTally",
    "DirectoryWalker",
    "RawDiagnostics",
    "ResultAggregator",
    "ScanSummary",
    "ValidationOutcome",
    "ValidationRunner",
]

"""
AVI Scan Exceptions
===================

Error taxonomy for the scanner.

Only run-level problems are modelled as exceptions. Per-file problems
(timeouts, residual diagnostics, malformed offsets) are folded into the
file's ValidationOutcome and never escape the walker.

Exit codes:
- ConfigurationError: 1
- ValidatorUnavailableError: 2
"""


class AviScanError(Exception):
    """Base exception for scanner errors."""

    exit_code: int = 1


class ConfigurationError(AviScanError):
    """Raised when the scan cannot start because of bad input or settings."""

    exit_code = 1


class ValidatorUnavailableError(AviScanError):
    """Raised when the external validator cannot be found or spawned."""

    exit_code = 2

    def __init__(self, executable: str, message: str | None = None):
        self.executable = executable
        if message is None:
            message = (
                f"Validator executable not found or not runnable: {executable}. "
                "Ensure ffmpeg is installed and in the system's PATH, "
                "or pass --ffmpeg."
            )
        super().__init__(message)

"""
Validation Runner
=================

Runs ffmpeg against a single file and collects its diagnostic stream.

ffmpeg is asked to remux the file into the null muxer with error-only
verbosity, so it decodes the container without writing anything and only
reports problems on stderr.

Each validation:
1. Spawns ffmpeg with a fixed argument template
2. Drains stderr in fixed-size chunks in a background task
3. Races process exit against the timeout
4. Kills and reaps the process if it is still running, on every exit path

Usage:
    from aviscan.runner import ValidationRunner

    runner = ValidationRunner(ffmpeg_path="ffmpeg", default_timeout=10)
    raw = runner.validate("movie.avi")

    if raw.timed_out:
        print("ffmpeg hung")
    else:
        print(raw.text)
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil
import time
from pathlib import Path

from aviscan.config import DEFAULT_FFMPEG, DEFAULT_TIMEOUT_SECONDS
from aviscan.exceptions import ValidatorUnavailableError
from aviscan.models import RawDiagnostics

# Module logger
_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Arguments following "-i <file>": error-only output, stream copy, null sink
VALIDATION_ARGS: tuple[str, ...] = ("-v", "error", "-c", "copy", "-f", "null", "-")

# Bytes requested from the stderr pipe per read
READ_CHUNK_SIZE = 65_536


class ValidationRunner:
    """
    Executes ffmpeg once per file under a time budget.

    The validator's exit code is recorded but never used to judge the file;
    only the stderr text (or a timeout) matters.
    """

    def __init__(
        self,
        ffmpeg_path: str = DEFAULT_FFMPEG,
        default_timeout: int = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the ValidationRunner.

        Args:
            ffmpeg_path: Validator executable, bare name or path
            default_timeout: Seconds allowed per file when validate() gets none
        """
        self.ffmpeg_path = ffmpeg_path
        self.default_timeout = default_timeout

    def build_command(self, file_path: str | Path) -> list[str]:
        return [self.ffmpeg_path, "-i", str(file_path), *VALIDATION_ARGS]

    def ensure_available(self) -> str:
        """
        Resolve the ffmpeg executable before any file is scanned.

        Returns:
            Absolute path of the executable

        Raises:
            ValidatorUnavailableError: If it cannot be found or is not executable
        """
        resolved = shutil.which(self.ffmpeg_path)
        if resolved is None:
            raise ValidatorUnavailableError(self.ffmpeg_path)
        _logger.debug("Using validator at %s", resolved)
        return resolved

    def validate(
        self,
        file_path: str | Path,
        timeout_seconds: int | None = None,
    ) -> RawDiagnostics:
        """
        Validate one file, blocking until ffmpeg exits or the timeout passes.

        Args:
            file_path: File to hand to ffmpeg
            timeout_seconds: Budget in seconds (uses default if not specified)

        Returns:
            RawDiagnostics with the stderr text, or timed_out=True and no text

        Raises:
            ValidatorUnavailableError: If ffmpeg cannot be spawned
        """
        return asyncio.run(self.validate_async(file_path, timeout_seconds))

    async def validate_async(
        self,
        file_path: str | Path,
        timeout_seconds: int | None = None,
    ) -> RawDiagnostics:
        """Coroutine behind validate(); usable from an existing event loop."""
        timeout = self.default_timeout if timeout_seconds is None else timeout_seconds
        command = self.build_command(file_path)
        _logger.debug("Executing validator: %s (timeout=%ds)", command, timeout)

        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ValidatorUnavailableError(self.ffmpeg_path) from e

        chunks: list[bytes] = []
        drain = asyncio.create_task(_drain_chunks(process.stderr, chunks))
        timed_out = False
        try:
            try:
                await asyncio.wait_for(process.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                timed_out = True
            else:
                await drain
        finally:
            await _terminate(process)
            if not drain.done():
                drain.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await drain

        duration = time.monotonic() - start

        if timed_out:
            _logger.warning(
                "Validator timed out after %ds on %s; process killed",
                timeout, file_path
            )
            return RawDiagnostics(timed_out=True, duration_seconds=duration)

        text = b"".join(chunks).decode("utf-8", errors="replace")

        _logger.debug(
            "Validator finished: exit_code=%s, duration=%.2fs, %d stderr line(s)",
            process.returncode, duration, len(text.splitlines())
        )
        return RawDiagnostics(
            text=text,
            exit_code=process.returncode,
            duration_seconds=duration,
        )


async def _drain_chunks(stream: asyncio.StreamReader, chunks: list[bytes]) -> None:
    """Append raw reads of ``stream`` to ``chunks`` until EOF. Lines of any length are accepted."""
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            return
        chunks.append(chunk)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill ``process`` if it is still running, then reap it."""
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()

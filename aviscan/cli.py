"""CLI argument parsing and wiring for AVI Scan."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from aviscan import __version__
from aviscan.config import load_config
from aviscan.diagnostics import DiagnosticClassifier
from aviscan.exceptions import AviScanError, ConfigurationError
from aviscan.reporting import Transcript
from aviscan.runner import ValidationRunner
from aviscan.walker import DirectoryWalker

_logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INTERRUPTED = 130

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser():
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="aviscan",
        description=(
            "AVI Scan - Recursively check AVI files for corruption by remuxing "
            "them with ffmpeg and inspecting its error output."
        ),
        epilog="Example: aviscan /media/videos --timeout 30 --show-errors",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Folder to scan (subfolders are included).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file.",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        dest="timeout_seconds",
        help="Seconds ffmpeg may spend on one file before it counts as FAIL (default: 10).",
    )
    parser.add_argument(
        "--ffmpeg",
        default=None,
        dest="ffmpeg_path",
        help="ffmpeg executable to use (default: ffmpeg from PATH).",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        type=Path,
        help="Directory for the log-<timestamp>.txt transcript (default: current directory).",
    )
    parser.add_argument(
        "--no-color",
        action="store_false",
        dest="color",
        default=None,
        help="Disable OK/FAIL coloring on the console.",
    )
    parser.add_argument(
        "--no-sort",
        action="store_false",
        dest="sort_entries",
        default=None,
        help="Use the filesystem's native enumeration order instead of sorting by name.",
    )
    parser.add_argument(
        "--show-errors",
        action="store_true",
        default=None,
        help="Print the retained ffmpeg error lines under each failed file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging on stderr.",
    )
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def run_scan(args) -> int:
    """
    Run a scan from parsed arguments.

    Returns:
        Process exit code

    Raises:
        AviScanError: On configuration problems or a missing validator
    """
    if args.root is None:
        raise ConfigurationError("Specify the folder you want to scan as the argument")

    root = Path(args.root)
    if not root.is_dir():
        raise ConfigurationError(f"Specified scan directory does not exist: {args.root}")

    config = load_config(args.config).with_overrides(
        ffmpeg_path=args.ffmpeg_path,
        timeout_seconds=args.timeout_seconds,
        log_dir=args.log_dir,
        color=args.color,
        sort_entries=args.sort_entries,
        show_errors=args.show_errors,
    )

    runner = ValidationRunner(
        ffmpeg_path=config.ffmpeg_path,
        default_timeout=config.timeout_seconds,
    )
    runner.ensure_available()

    with Transcript(log_dir=config.log_dir, use_color=config.color) as transcript:
        transcript.scan_started(args.root)
        walker = DirectoryWalker(
            root,
            runner=runner,
            classifier=DiagnosticClassifier(),
            transcript=transcript,
            config=config,
        )
        walker.walk()
        transcript.done()

    return EXIT_OK


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        exit_code = run_scan(args)
    except AviScanError as e:
        print(str(e), file=sys.stderr)
        exit_code = e.exit_code
    except KeyboardInterrupt:
        print("Scan interrupted", file=sys.stderr)
        exit_code = EXIT_INTERRUPTED

    sys.exit(exit_code)

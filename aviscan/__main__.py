"""Allow running as ``python -m aviscan``."""

from aviscan.cli import main

main()

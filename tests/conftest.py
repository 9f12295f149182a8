"""Shared fixtures: a fake ffmpeg executable driven by the input file's content."""
import io
import stat
import sys
from pathlib import Path

import pytest

from aviscan.reporting import Transcript

# Behaviour of the fake validator, keyed on the content of the "-i" file:
# - starts with HANG: record own pid in <file>.pid and sleep
# - anything else: echo the content to stderr verbatim
FAKE_FFMPEG_SOURCE = '''\
import os
import sys
import time

path = sys.argv[sys.argv.index("-i") + 1]
with open(path, "r", encoding="utf-8") as f:
    content = f.read()

sys.stdout.write("stdout is not diagnostics\\n")
sys.stdout.flush()

if content.startswith("HANG"):
    with open(path + ".pid", "w") as f:
        f.write(str(os.getpid()))
    time.sleep(60)

sys.stderr.write(content)
sys.exit(1 if content else 0)
'''


@pytest.fixture
def fake_ffmpeg(tmp_path) -> str:
    """Path of an executable script standing in for ffmpeg."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "ffmpeg"
    script.write_text(f"#!{sys.executable}\n{FAKE_FFMPEG_SOURCE}", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(script)


@pytest.fixture
def scan_root(tmp_path) -> Path:
    root = tmp_path / "videos"
    root.mkdir()
    return root


@pytest.fixture
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def transcript(tmp_path, console):
    log_dir = tmp_path / "logs"
    with Transcript(log_dir=log_dir, console=console, use_color=False) as t:
        yield t

"""Pytest configuration for ffthumbs tests.

Sets up sys.path so that ``import ffthumbs`` works when running pytest
from the project root without installing the package, and provides a
fake ffmpeg executable for process level tests.
"""

import os
import stat
import sys

import pytest

# Add project root to sys.path so `ffthumbs` is importable
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


# Behaviour is picked from the input name: "fail" exits 1, "slow" sleeps a
# bit, "hang" sleeps long enough to be cancelled. Every run appends its
# arguments and start/end times to $FAKE_FFMPEG_LOG when set.
FAKE_FFMPEG = """\
#!{python}
import json
import os
import sys
import time

args = sys.argv[1:]
if "-version" in args:
    print(os.environ.get("FAKE_FFMPEG_VERSION", "ffmpeg version 6.1.1 Copyright (c) 2000-2023"))
    sys.exit(0)

src = args[args.index("-i") + 1] if "-i" in args else ""
started = time.time()

if "fail" in src:
    sys.stderr.write("[in#0] Error opening input: No such file or directory\\n")
    sys.exit(1)
if "slow" in src:
    time.sleep(0.3)
if "hang" in src:
    time.sleep(30)

if "-progress" in args:
    for speed, out_time, progress in (
        ("0.5x", "00:00:01.000000", "continue"),
        ("1.5x", "00:00:02.000000", "end"),
    ):
        print("frame=10")
        print("out_time=" + out_time)
        print("speed=" + speed)
        print("progress=" + progress, flush=True)

log = os.environ.get("FAKE_FFMPEG_LOG")
if log:
    with open(log, "a") as f:
        f.write(json.dumps({{"args": args, "start": started, "end": time.time()}}) + "\\n")
sys.exit(0)
"""


@pytest.fixture
def fake_ffmpeg(tmp_path):
    """Path to an executable script that behaves like a tiny ffmpeg."""
    if sys.platform == "win32":
        pytest.skip("fake ffmpeg script needs a POSIX shebang")

    path = tmp_path / "ffmpeg"
    path.write_text(FAKE_FFMPEG.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def ffmpeg_log(tmp_path, monkeypatch):
    """File the fake ffmpeg appends one JSON line per run to."""
    log = tmp_path / "runs.jsonl"
    monkeypatch.setenv("FAKE_FFMPEG_LOG", str(log))
    return log

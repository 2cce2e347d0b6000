"""Shared fixtures for repository tests."""

import tempfile
import time
from pathlib import Path
from typing import Callable, Iterator

import pytest

from minivcs.version_control import VersionControl

# Pause before writing so a file's mtime lands clearly after the previous
# commit's timestamp, whatever the filesystem clock granularity
MTIME_GAP_SECONDS = 0.05


def _write(path: Path, data: bytes = b"") -> Path:
    time.sleep(MTIME_GAP_SECONDS)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.fixture
def repo_root() -> Iterator[Path]:
    """Empty working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def vc(repo_root: Path) -> VersionControl:
    """Initialised repository in ``repo_root``."""
    version_control = VersionControl(repo_root)
    version_control.init()
    return version_control


@pytest.fixture
def write() -> Callable[..., Path]:
    """Write bytes to a file after a short pause."""
    return _write

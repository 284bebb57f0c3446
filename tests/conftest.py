"""Shared test fixtures for lifeblood manager tests."""

import io
import os
import sys
import zipfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lifeblood_manager.core.metadata import write_metadata

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX scripts and signals")


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


def make_version_dir(
    base: Path,
    commit_id: str,
    date: datetime | None,
    meta_commit: str | None = None,
    with_viewer: bool = False,
) -> Path:
    """Create a version directory with an optional metadata file."""
    path = base / commit_id
    path.mkdir()
    if date is not None:
        write_metadata(path / "meta.info", meta_commit or commit_id, date)
    if with_viewer:
        (path / "lifeblood_viewer").mkdir()
    return path


@pytest.fixture
def u_struct1(tmp_path: Path) -> Path:
    """Base dir with three versions sorting as hash2, hash1, hash3 and current -> hash2."""
    base = tmp_path / "u_struct1"
    base.mkdir()
    make_version_dir(base, "hash1", datetime(2023, 2, 1, 10, 0, 0, tzinfo=UTC))
    make_version_dir(base, "hash2", datetime(2023, 1, 15, 8, 30, 0, tzinfo=UTC))
    make_version_dir(base, "hash3", datetime(2023, 3, 20, 18, 45, 12, tzinfo=UTC))
    os.symlink("hash2", base / "current")
    return base


@pytest.fixture
def l_struct1(tmp_path: Path) -> Path:
    """Base dir holding small programs for launch tests.

    - proc_exit_clean: exits 0 after ~2 seconds
    - proc_exit_1: exits 1 after ~2 seconds
    - proc_exit_arg: exits with its first argument after ~2 seconds
    """
    base = tmp_path / "l_struct1"
    base.mkdir()
    scripts = {
        "proc_exit_clean": "sleep 2\nexit 0\n",
        "proc_exit_1": "sleep 2\nexit 1\n",
        "proc_exit_arg": 'sleep 2\nexit "$1"\n',
    }
    for name, body in scripts.items():
        script = base / name
        script.write_text(f"#!/bin/sh\n{body}")
        script.chmod(0o755)
    return base


def make_release_zip(
    commit: str = "0123456789abcdef0123456789abcdef01234567",
    date: tuple[int, int, int, int, int, int] = (2023, 5, 6, 7, 8, 10),
    root: str = "lifeblood-dev",
    with_viewer: bool = True,
    extra_top_level: bool = False,
) -> bytes:
    """Build an in-memory release archive shaped like a branch download."""
    setup_cfg = (
        "[metadata]\n"
        "name = lifeblood\n"
        "\n"
        "[options]\n"
        "install_requires =\n"
        "    grandalf~=0.7\n"
        "    PySide2~=5.15\n"
        "    lifeblood==0.1.0\n"
        "\n"
        "[options.packages.find]\n"
    )
    viewer_cfg = "[options]\ninstall_requires=\n    imgui[glfw]\n    lifeblood\n[extras]\n"

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.comment = commit.encode()
        zf.writestr(zipfile.ZipInfo(f"{root}/", date_time=date), "")
        zf.writestr(f"{root}/entry.py", "print('entry')\n")
        zf.writestr(f"{root}/src/lifeblood/__init__.py", "")
        zf.writestr(f"{root}/pkg_lifeblood/setup.cfg", setup_cfg)
        if with_viewer:
            zf.writestr(f"{root}/src/lifeblood_viewer/__init__.py", "")
            zf.writestr(f"{root}/pkg_lifeblood_viewer/setup.cfg", viewer_cfg)
        if extra_top_level:
            zf.writestr("stray.txt", "oops")
    return buf.getvalue()


@pytest.fixture
def release_zip() -> Callable[..., bytes]:
    """Factory for release archive bytes."""
    return make_release_zip

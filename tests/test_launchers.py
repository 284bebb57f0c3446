"""Tests for launcher shim scripts."""

import os
import subprocess
from pathlib import Path

from lifeblood_manager.services.launchers import (
    launcher_path,
    render_launcher,
    write_launchers,
)

from .conftest import posix_only


@posix_only
class TestPosixLaunchers:
    """Tests for POSIX shims."""

    def test_render_main(self) -> None:
        """Main shim execs the current venv python with the entry point."""
        script = render_launcher()
        assert script.startswith("#!/bin/sh\n")
        assert 'exec "$cwd/current/venv/bin/python" "$cwd/current/entry.py" "$@"' in script

    def test_render_viewer_arg(self) -> None:
        """Viewer shim passes its fixed argument first."""
        assert '"$cwd/current/entry.py" viewer "$@"' in render_launcher("viewer")

    def test_write_sets_exec_bits(self, tmp_path: Path) -> None:
        """Shims are executable."""
        written = write_launchers(tmp_path, with_viewer=True)
        assert written == [tmp_path / "lifeblood", tmp_path / "lifeblood_viewer"]
        for path in written:
            assert os.access(path, os.X_OK)

    def test_no_viewer(self, tmp_path: Path) -> None:
        """Viewer shim is only written when requested."""
        write_launchers(tmp_path, with_viewer=False)
        assert launcher_path(tmp_path, "lifeblood").exists()
        assert not launcher_path(tmp_path, "lifeblood_viewer").exists()

    def test_shim_runs_current_and_forwards_status(self, tmp_path: Path) -> None:
        """Shim resolves 'current' at run time and propagates the exit code."""
        for name, code in [("v1", 3), ("v2", 5)]:
            bindir = tmp_path / name / "venv" / "bin"
            bindir.mkdir(parents=True)
            fake_python = bindir / "python"
            # exits with a per-version code plus the number of forwarded args
            fake_python.write_text(f'#!/bin/sh\nshift\nexit $(( {code} + $# ))\n')
            fake_python.chmod(0o755)
            (tmp_path / name / "entry.py").write_text("")

        shim = write_launchers(tmp_path, with_viewer=False)[0]

        os.symlink("v1", tmp_path / "current")
        assert subprocess.run([str(shim)]).returncode == 3
        os.remove(tmp_path / "current")
        os.symlink("v2", tmp_path / "current")
        assert subprocess.run([str(shim), "a", "b"]).returncode == 7

"""Tests for interpreter discovery and venv provisioning."""

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from lifeblood_manager.errors import InstallError, InterpreterNotFoundError, SubprocessError
from lifeblood_manager.services.python_env import (
    ensure_venv,
    find_python_command,
    parse_requirements,
    pip_install,
    python_candidates,
    venv_python,
    write_requirements_from_descriptor,
)

SETUP_CFG = """[metadata]
name = lifeblood

[options]
packages = find:
install_requires =
    grandalf~=0.7
    PyYAML>=5.0
    lifeblood_common

[options.entry_points]
console_scripts =
    lifeblood = lifeblood.launch:console_entry_point
"""


class TestParseRequirements:
    """Tests for setup.cfg requirement extraction."""

    def test_collects_until_blank_line(self) -> None:
        """Requirements end at the first blank line; self-deps are dropped."""
        assert parse_requirements(SETUP_CFG) == ["grandalf~=0.7", "PyYAML>=5.0"]

    def test_stops_at_section_header(self) -> None:
        """A new section ends the list."""
        text = "install_requires=\n    a\n    b\n[options.extras]\n    c\n"
        assert parse_requirements(text) == ["a", "b"]

    def test_marker_without_spaces(self) -> None:
        """'install_requires=' is recognized."""
        assert parse_requirements("install_requires=\nfoo==1\n") == ["foo==1"]

    def test_no_marker(self) -> None:
        """No marker means no requirements."""
        assert parse_requirements("[metadata]\nname = x\n") == []

    def test_inline_value_is_not_a_marker(self) -> None:
        """Only a bare marker line starts the list."""
        assert parse_requirements("install_requires = foo\n    bar\n") == []

    def test_lines_kept_verbatim(self) -> None:
        """Specifiers keep markers and extras."""
        text = 'install_requires =\n    numpy; python_version >= "3.8"\n    imgui[glfw]\n'
        assert parse_requirements(text) == ['numpy; python_version >= "3.8"', "imgui[glfw]"]

    def test_write_requirements_file(self, tmp_path: Path) -> None:
        """Requirements are written one per line."""
        descriptor = tmp_path / "setup.cfg"
        descriptor.write_text(SETUP_CFG)
        reqs_path = tmp_path / "requirements.txt"

        write_requirements_from_descriptor(descriptor, reqs_path)
        assert reqs_path.read_text() == "grandalf~=0.7\nPyYAML>=5.0\n"

    def test_missing_descriptor(self, tmp_path: Path) -> None:
        """Missing setup.cfg is an install error."""
        with pytest.raises(InstallError, match="failed to open setup.cfg"):
            write_requirements_from_descriptor(tmp_path / "setup.cfg", tmp_path / "r.txt")


class TestFindPythonCommand:
    """Tests for interpreter discovery."""

    def test_candidates_default(self) -> None:
        """Without override both default names are tried."""
        assert python_candidates() == ["python", "python3"]

    def test_candidates_override(self) -> None:
        """Override replaces defaults."""
        assert python_candidates("/opt/py/bin/python3.11") == ["/opt/py/bin/python3.11"]

    def test_finds_running_interpreter(self) -> None:
        """The current interpreter passes the probe."""
        assert find_python_command(sys.executable) == sys.executable

    def test_skips_missing_commands(self) -> None:
        """Commands that cannot run are skipped."""
        ok = MagicMock(returncode=0)
        with patch(
            "lifeblood_manager.services.python_env.subprocess.run",
            side_effect=[FileNotFoundError("python"), ok],
        ):
            assert find_python_command() == "python3"

    def test_nonzero_version_exit_still_counts(self) -> None:
        """Exit status of --version is not checked."""
        with patch(
            "lifeblood_manager.services.python_env.subprocess.run",
            return_value=MagicMock(returncode=2),
        ):
            assert find_python_command() == "python"

    def test_nothing_found(self) -> None:
        """No runnable candidate raises."""
        with pytest.raises(InterpreterNotFoundError, match="python binary not found"):
            find_python_command("/definitely/not/a/python")


class TestVenv:
    """Tests for venv creation and pip runs."""

    def test_existing_venv_is_kept(self, tmp_path: Path) -> None:
        """venv creation is skipped if the dir exists."""
        (tmp_path / "venv").mkdir()
        with patch("lifeblood_manager.services.python_env.subprocess.run") as mock_run:
            assert ensure_venv(tmp_path, "python") is False
        mock_run.assert_not_called()

    def test_creates_venv(self, tmp_path: Path) -> None:
        """Interpreter is run in venv mode inside the install dir."""
        with patch(
            "lifeblood_manager.services.python_env.subprocess.run",
            return_value=MagicMock(returncode=0),
        ) as mock_run:
            assert ensure_venv(tmp_path, "python3") is True

        args, kwargs = mock_run.call_args
        assert args[0] == ["python3", "-m", "venv", "venv"]
        assert kwargs["cwd"] == tmp_path

    def test_venv_failure_carries_exit_code(self, tmp_path: Path) -> None:
        """Non-zero exit is a subprocess error with the code."""
        with (
            patch(
                "lifeblood_manager.services.python_env.subprocess.run",
                return_value=MagicMock(returncode=3),
            ),
            pytest.raises(SubprocessError) as exc_info,
        ):
            ensure_venv(tmp_path, "python")
        assert exc_info.value.returncode == 3

    def test_pip_install_uses_venv_python(self, tmp_path: Path) -> None:
        """pip runs through the venv interpreter."""
        reqs = tmp_path / "requirements.txt"
        with patch(
            "lifeblood_manager.services.python_env.subprocess.run",
            return_value=MagicMock(returncode=0),
        ) as mock_run:
            pip_install(tmp_path, reqs)

        cmd = mock_run.call_args[0][0]
        assert cmd == [str(venv_python(tmp_path)), "-m", "pip", "install", "-r", str(reqs)]

    def test_pip_failure(self, tmp_path: Path) -> None:
        """pip exit status is reported."""
        with (
            patch(
                "lifeblood_manager.services.python_env.subprocess.run",
                return_value=MagicMock(returncode=1),
            ),
            pytest.raises(SubprocessError, match="pip exited with status: 1"),
        ):
            pip_install(tmp_path, tmp_path / "requirements.txt")

    def test_pip_timeout(self, tmp_path: Path) -> None:
        """Timeouts are subprocess errors without a code."""
        with (
            patch(
                "lifeblood_manager.services.python_env.subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="pip", timeout=1),
            ),
            pytest.raises(SubprocessError) as exc_info,
        ):
            pip_install(tmp_path, tmp_path / "requirements.txt")
        assert exc_info.value.returncode is None

"""Isolated Python environments for installed versions.

Covers interpreter discovery, dependency list extraction from the package's
setup.cfg, venv creation and pip installs.
"""

import logging
import subprocess
import sys
from pathlib import Path

from ..constants import (
    DEFAULT_PYTHON_COMMANDS,
    PACKAGE_NAME,
    PIP_TIMEOUT,
    PYTHON_PROBE_TIMEOUT,
    REQUIREMENTS_MARKER,
    VENV_DIR,
    VENV_TIMEOUT,
    WINDOWS_COMMAND_NOT_FOUND,
)
from ..errors import InstallError, InterpreterNotFoundError, SubprocessError

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Interpreter discovery
# ----------------------------------------------------------------------


def python_candidates(override: str | None = None) -> list[str]:
    """Interpreter commands to try, in order."""
    if override:
        return [override]
    return list(DEFAULT_PYTHON_COMMANDS)


def probe_python(command: str) -> bool:
    """Check that an interpreter command can actually be run.

    The exit status of ``--version`` is not checked, except for the
    Windows "command not found" code.
    """
    try:
        result = subprocess.run(
            [command, "--version"],
            capture_output=True,
            timeout=PYTHON_PROBE_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Interpreter probe of {command!r} failed: {e}")
        return False
    if sys.platform == "win32" and result.returncode == WINDOWS_COMMAND_NOT_FOUND:
        return False
    return True


def find_python_command(override: str | None = None) -> str:
    """Find a usable Python interpreter.

    Args:
        override: Explicit interpreter command (from PYTHON_BIN or config)

    Returns:
        First candidate command that runs

    Raises:
        InterpreterNotFoundError: If no candidate can be run
    """
    candidates = python_candidates(override)
    for command in candidates:
        if probe_python(command):
            logger.info(f"Using python: {command}")
            return command
    raise InterpreterNotFoundError(f"python binary not found (tried: {', '.join(candidates)})")


# ----------------------------------------------------------------------
# Requirements
# ----------------------------------------------------------------------


def _is_marker_line(line: str) -> bool:
    if not line.endswith("="):
        return False
    return line[:-1].rstrip() == REQUIREMENTS_MARKER


def parse_requirements(text: str, skip_prefix: str = PACKAGE_NAME) -> list[str]:
    """Extract install requirements from setup.cfg text.

    Finds the ``install_requires =`` line and collects the following lines
    until a blank line or a new section header. Requirements on the package
    itself (starting with skip_prefix) are dropped.

    Args:
        text: Contents of setup.cfg
        skip_prefix: Prefix of requirements to drop

    Returns:
        Requirement specifiers, verbatim
    """
    reqs: list[str] = []
    found_start = False
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not found_start:
            found_start = _is_marker_line(line)
            continue
        if not line or line.startswith("["):
            break
        if skip_prefix and line.startswith(skip_prefix):
            continue
        reqs.append(line)
    return reqs


def write_requirements_from_descriptor(descriptor: Path, requirements_path: Path) -> list[str]:
    """Derive a requirements file from a package's setup.cfg.

    Raises:
        InstallError: If the descriptor cannot be read or the file written
    """
    try:
        text = descriptor.read_text()
    except OSError as e:
        raise InstallError(f"failed to open {descriptor.name}: {e}") from e
    reqs = parse_requirements(text)
    try:
        requirements_path.write_text("".join(f"{req}\n" for req in reqs))
    except OSError as e:
        raise InstallError(f"failed to write {requirements_path}: {e}") from e
    logger.debug(f"{requirements_path.name}: {reqs}")
    return reqs


# ----------------------------------------------------------------------
# Virtual environment
# ----------------------------------------------------------------------


def venv_python(install_dir: Path) -> Path:
    """Path of the interpreter inside an installation's venv."""
    if sys.platform == "win32":
        return install_dir / VENV_DIR / "Scripts" / "python.exe"
    return install_dir / VENV_DIR / "bin" / "python"


def _run(cmd: list[str], cwd: Path, timeout: int, what: str) -> None:
    """Run a provisioning command, raising on non-zero exit."""
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, cwd=cwd, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise SubprocessError(f"{what} timed out after {timeout} seconds") from e
    except OSError as e:
        raise SubprocessError(f"error running {what}: {e}") from e
    if result.returncode != 0:
        raise SubprocessError(
            f"{what} exited with status: {result.returncode}", returncode=result.returncode
        )


def ensure_venv(install_dir: Path, python_command: str) -> bool:
    """Create the venv of an installation unless it already exists.

    Returns:
        True if a venv was created, False if one was already present

    Raises:
        SubprocessError: If venv creation fails
    """
    if (install_dir / VENV_DIR).exists():
        logger.debug(f"venv already present in {install_dir}, skipping")
        return False
    logger.info(f"Creating venv in {install_dir}")
    _run([python_command, "-m", "venv", VENV_DIR], install_dir, VENV_TIMEOUT, "python")
    return True


def pip_install(install_dir: Path, requirements_path: Path) -> None:
    """Install a requirements file into an installation's venv.

    Raises:
        SubprocessError: If pip exits with non-zero status
    """
    logger.info(f"Installing {requirements_path.name} into venv")
    _run(
        [str(venv_python(install_dir)), "-m", "pip", "install", "-r", str(requirements_path)],
        install_dir,
        PIP_TIMEOUT,
        "pip",
    )

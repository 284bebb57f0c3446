"""Launcher shim scripts.

Shims live at the base path and always run whatever version 'current'
points to at run time, so they stay valid across version switches.
"""

import stat
import sys
from pathlib import Path

from ..constants import CURRENT_LINK, ENTRY_POINT_FILE, PACKAGE_NAME, VENV_DIR, VIEWER_NAME

VIEWER_ENTRY_ARG = "viewer"

_POSIX_TEMPLATE = """#!/bin/sh
cwd=`dirname \\`readlink -f $0\\``
exec "$cwd/{current}/{venv}/bin/python" "$cwd/{current}/{entry}"{entry_arg} "$@"
"""

_WINDOWS_TEMPLATE = """@echo off
"%~dp0{current}\\{venv}\\Scripts\\python.exe" "%~dp0{current}\\{entry}"{entry_arg} %*
"""


def is_windows() -> bool:
    return sys.platform == "win32"


def launcher_path(base_path: Path, name: str) -> Path:
    """Get the shim path for a launcher name on this platform."""
    if is_windows():
        return base_path / f"{name}.cmd"
    return base_path / name


def launcher_file_names() -> list[str]:
    """File names of all shims this platform may have at a base path."""
    return [launcher_path(Path(), name).name for name in (PACKAGE_NAME, VIEWER_NAME)]


def render_launcher(entry_arg: str = "") -> str:
    """Render shim script contents for this platform.

    Args:
        entry_arg: Fixed argument passed to the entry point before the
            caller's arguments (empty for the main package)
    """
    template = _WINDOWS_TEMPLATE if is_windows() else _POSIX_TEMPLATE
    return template.format(
        current=CURRENT_LINK,
        venv=VENV_DIR,
        entry=ENTRY_POINT_FILE,
        entry_arg=f" {entry_arg}" if entry_arg else "",
    )


def write_launcher(path: Path, entry_arg: str = "") -> Path:
    """Write (or rewrite) an executable shim script.

    Args:
        path: Shim path as returned by launcher_path()
        entry_arg: Fixed argument passed to the entry point

    Returns:
        Path of the written shim
    """
    path.write_text(render_launcher(entry_arg), newline="\n" if not is_windows() else None)
    if not is_windows():
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def write_launchers(base_path: Path, with_viewer: bool) -> list[Path]:
    """Write the main shim and, optionally, the viewer shim."""
    written = [write_launcher(launcher_path(base_path, PACKAGE_NAME))]
    if with_viewer:
        written.append(write_launcher(launcher_path(base_path, VIEWER_NAME), VIEWER_ENTRY_ARG))
    return written

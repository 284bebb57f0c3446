"""External integrations for lifeblood manager.

This package provides interfaces to the outside world:
- download: release archive download over HTTP
- archive: zip identity and extraction
- python_env: interpreter discovery, venv and pip
- launchers: launcher shim scripts
- process: managed child processes
"""

from .archive import extract_archive, read_archive_identity
from .download import archive_url, download_archive
from .launchers import launcher_path, write_launchers
from .process import (
    ConsoleEventStop,
    PosixSignalStop,
    ProcessHandle,
    StopStrategy,
    default_stop_strategy,
)
from .python_env import (
    ensure_venv,
    find_python_command,
    parse_requirements,
    pip_install,
    venv_python,
)

__all__ = [
    "ConsoleEventStop",
    "PosixSignalStop",
    "ProcessHandle",
    "StopStrategy",
    "archive_url",
    "default_stop_strategy",
    "download_archive",
    "ensure_venv",
    "extract_archive",
    "find_python_command",
    "launcher_path",
    "parse_requirements",
    "pip_install",
    "read_archive_identity",
    "venv_python",
    "write_launchers",
]

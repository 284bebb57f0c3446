"""Core logic for lifeblood manager.

- metadata: per-version metadata marker files
- version_store: installed versions and the current pointer
- installer: download/extract/install pipeline
- launch_controller: one command's process lifecycle against a store
"""

from .installer import Installer
from .launch_controller import InstallLocationObserver, LaunchController
from .metadata import read_metadata, write_metadata
from .version_store import VersionStore, load_installed_version

__all__ = [
    "InstallLocationObserver",
    "Installer",
    "LaunchController",
    "VersionStore",
    "load_installed_version",
    "read_metadata",
    "write_metadata",
]

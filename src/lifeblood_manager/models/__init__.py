"""Pydantic data models for lifeblood manager.

- InstalledVersion: one installed copy of the package
- ExitStatus: final status of a managed process
"""

from .process import ExitStatus
from .version import InstalledVersion

__all__ = ["ExitStatus", "InstalledVersion"]

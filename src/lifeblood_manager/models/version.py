"""Installed version model.

One installed copy of the package lives in a directory named after its
commit identity under the store's base path.
"""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class InstalledVersion(BaseModel):
    """A single installed version.

    Attributes:
        path: Directory holding the installed files.
        commit_id: Source identity; always equal to the directory name.
        install_date: When the source snapshot was produced (UTC).
        has_viewer: Whether the companion viewer tree is installed.
        display_name: Optional user-chosen name.
    """

    path: Path = Field(description="Directory holding the installed files")
    commit_id: str = Field(description="Source identity, equal to the directory name")
    install_date: datetime = Field(description="Production date of the source snapshot (UTC)")
    has_viewer: bool = Field(default=False, description="Companion viewer is installed")
    display_name: str | None = Field(default=None, description="User-chosen display name")

    @property
    def nice_name(self) -> str:
        """Name to show to humans."""
        return self.display_name or self.commit_id

"""Process exit status model."""

import sys

from pydantic import BaseModel, Field


class ExitStatus(BaseModel):
    """Final status of a managed process.

    Attributes:
        returncode: Raw return code as reported by subprocess. Negative
            values mean the process was killed by that signal (POSIX).
    """

    model_config = {"frozen": True}

    returncode: int = Field(description="Raw subprocess return code")

    @property
    def code(self) -> int | None:
        """Exit code, or None if the process was terminated by a signal."""
        if self.signal is not None:
            return None
        return self.returncode

    @property
    def signal(self) -> int | None:
        """Terminating signal number on POSIX, otherwise None."""
        if sys.platform != "win32" and self.returncode < 0:
            return -self.returncode
        return None

    @property
    def success(self) -> bool:
        return self.returncode == 0

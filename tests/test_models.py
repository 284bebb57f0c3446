"""Tests for data models."""

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from lifeblood_manager.models import ExitStatus, InstalledVersion


class TestInstalledVersion:
    """Tests for InstalledVersion."""

    def test_nice_name_defaults_to_commit(self) -> None:
        """Without a display name the identity is shown."""
        ver = InstalledVersion(
            path=Path("/b/abc"), commit_id="abc", install_date=datetime(2023, 1, 1, tzinfo=UTC)
        )
        assert ver.nice_name == "abc"
        assert not ver.has_viewer

    def test_nice_name_uses_display_name(self) -> None:
        """Display name wins when set."""
        ver = InstalledVersion(
            path=Path("/b/abc"),
            commit_id="abc",
            install_date=datetime(2023, 1, 1, tzinfo=UTC),
            display_name="stable",
        )
        assert ver.nice_name == "stable"

    def test_requires_identity(self) -> None:
        """Missing fields are rejected."""
        with pytest.raises(ValidationError):
            InstalledVersion(path=Path("/b/abc"), install_date=datetime.now(UTC))  # type: ignore[call-arg]


class TestExitStatus:
    """Tests for ExitStatus."""

    def test_clean_exit(self) -> None:
        status = ExitStatus(returncode=0)
        assert status.success
        assert status.code == 0
        assert status.signal is None

    def test_error_exit(self) -> None:
        status = ExitStatus(returncode=3)
        assert not status.success
        assert status.code == 3

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal codes")
    def test_signalled(self) -> None:
        """Negative return codes are signals, with no exit code."""
        status = ExitStatus(returncode=-15)
        assert status.code is None
        assert status.signal == 15
        assert not status.success

    def test_frozen(self) -> None:
        """Statuses cannot change after creation."""
        status = ExitStatus(returncode=0)
        with pytest.raises(ValidationError):
            status.returncode = 1  # type: ignore[misc]

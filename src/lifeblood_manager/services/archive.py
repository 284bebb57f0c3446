"""Release archive inspection and extraction."""

import logging
import zipfile
from datetime import UTC, datetime
from pathlib import Path

from ..constants import COMMIT_ID_LENGTH
from ..errors import ArchiveError

logger = logging.getLogger(__name__)


def read_archive_identity(archive: Path) -> tuple[str, datetime]:
    """Get the identity and production date of a release archive.

    The identity is the leading part of the zip comment (the source commit
    hash); the date is the modification time of the first entry.

    Args:
        archive: Path to the zip archive

    Returns:
        Tuple of (identity, production date in UTC)

    Raises:
        ArchiveError: If the archive is unreadable, has no usable comment
            or is empty
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            comment = zf.comment.decode("utf-8", errors="replace").strip()
            entries = zf.infolist()
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"failed to read back zip file: {e}") from e

    if len(comment) < COMMIT_ID_LENGTH:
        raise ArchiveError(f"zip comment {comment!r} does not hold a commit identity")
    if not entries:
        raise ArchiveError("zip file empty?")

    commit_id = comment[:COMMIT_ID_LENGTH]
    if not (commit_id.isascii() and commit_id.isalnum()):
        raise ArchiveError(f"zip comment identity {commit_id!r} is not a plain commit hash")
    date = datetime(*entries[0].date_time, tzinfo=UTC)
    logger.debug(f"Archive {archive.name}: commit {commit_id}, date {date}")
    return commit_id, date


def extract_archive(archive: Path, dest: Path) -> Path:
    """Extract an archive and return its single top-level directory.

    Args:
        archive: Path to the zip archive
        dest: Empty directory to extract into

    Returns:
        Path to the archive's root folder inside dest

    Raises:
        ArchiveError: If extraction fails or the archive does not contain
            exactly one top-level directory
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"unzip failed: {e}") from e

    top_level = list(dest.iterdir())
    if len(top_level) != 1 or not top_level[0].is_dir():
        raise ArchiveError(
            f"expected a single directory in the archive, found: {sorted(p.name for p in top_level)}"
        )
    return top_level[0]

"""Metadata marker file for installed versions.

The marker is a small line-oriented text file:

    1                       format version
    <commit id>             identity, equal to the version's directory name
    2023-04-01T12:30:00Z    production date, ISO 8601 in UTC
    <display name>          optional, written only when a version was renamed
"""

from datetime import UTC, datetime
from pathlib import Path

from ..constants import METADATA_FORMAT_VERSION
from ..errors import InvalidMetadataError, MetadataError, UnsupportedMetadataError


def format_date(date: datetime) -> str:
    """Format a date as ISO 8601 UTC with a 'Z' suffix."""
    if date.tzinfo is None:
        date = date.replace(tzinfo=UTC)
    return date.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_date(text: str) -> datetime:
    """Parse a date written by format_date. Naive dates are taken as UTC.

    Raises:
        InvalidMetadataError: If text is not a valid ISO 8601 date
    """
    try:
        date = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidMetadataError(f"incorrect date format in metadata: {text!r}") from e
    if date.tzinfo is None:
        return date.replace(tzinfo=UTC)
    return date.astimezone(UTC)


def write_metadata(
    path: Path, commit_id: str, date: datetime, display_name: str | None = None
) -> None:
    """Write a metadata marker file.

    Args:
        path: Path of the marker file
        commit_id: Version identity
        date: Production date of the version
        display_name: Optional display name

    Raises:
        MetadataError: If the file cannot be written
    """
    lines = [METADATA_FORMAT_VERSION, commit_id, format_date(date)]
    if display_name:
        lines.append(display_name)
    try:
        path.write_text("\n".join(lines) + "\n")
    except OSError as e:
        raise MetadataError(f"failed to write metadata file {path}: {e}") from e


def read_metadata(path: Path) -> tuple[str, datetime, str | None]:
    """Read back a metadata marker file.

    Args:
        path: Path of the marker file

    Returns:
        Tuple of (commit id, production date, display name or None)

    Raises:
        MetadataError: If the file cannot be read
        UnsupportedMetadataError: If the format version is unknown
        InvalidMetadataError: If the identity or date is missing or corrupt
    """
    try:
        lines = path.read_text().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataError(f"failed to read metadata file {path}: {e}") from e

    version = lines[0].strip() if lines else ""
    if version != METADATA_FORMAT_VERSION:
        raise UnsupportedMetadataError(f"unknown metadata format version: {version!r}")
    if len(lines) < 3:
        raise InvalidMetadataError(f"metadata file {path} is truncated")

    commit_id = lines[1].strip()
    if not commit_id:
        raise InvalidMetadataError(f"metadata file {path} has an empty identity")
    date = parse_date(lines[2].strip())
    display_name = lines[3].strip() if len(lines) > 3 else ""
    return commit_id, date, display_name or None

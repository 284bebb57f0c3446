"""Store of side-by-side installed versions.

A store is a base directory holding one subdirectory per installed version
plus a 'current' symlink pointing at the selected one:

    <base>/<commit id>/meta.info
    <base>/current -> <commit id>

Versions are always kept sorted ascending by production date.
"""

import bisect
import logging
import threading
from collections.abc import Iterator
from datetime import UTC, datetime
from operator import attrgetter
from pathlib import Path

from ..constants import BACKUP_PREFIX, CURRENT_LINK, METADATA_FILE, VIEWER_NAME
from ..errors import (
    CurrentLinkError,
    MetadataError,
    NoSuchVersionError,
    StoreAccessError,
    VersionMismatchError,
)
from ..models import InstalledVersion
from ..services.launchers import launcher_file_names
from .metadata import read_metadata, write_metadata

logger = logging.getLogger(__name__)


def _creation_date(path: Path) -> datetime:
    """Get the creation time of a path, falling back to ctime."""
    st = path.stat()
    timestamp = getattr(st, "st_birthtime", st.st_ctime)
    return datetime.fromtimestamp(timestamp, tz=UTC)


def load_installed_version(path: Path) -> InstalledVersion:
    """Probe a directory as an installed version.

    Unreadable metadata is not fatal: the directory's creation time is used
    as the version date instead.

    Args:
        path: Candidate version directory

    Returns:
        InstalledVersion for the directory

    Raises:
        StoreAccessError: If path is not a readable directory
        VersionMismatchError: If metadata names a different identity
    """
    if not path.is_dir():
        raise StoreAccessError(f"{path} is not a directory")

    commit_id = path.name
    display_name = None
    try:
        meta_commit, date, display_name = read_metadata(path / METADATA_FILE)
    except MetadataError as e:
        logger.warning(f"Failed to read metadata of {path} ({e}), using dir creation time")
        try:
            date = _creation_date(path)
        except OSError as stat_error:
            raise StoreAccessError(f"cannot stat {path}: {stat_error}") from stat_error
    else:
        if meta_commit != commit_id:
            raise VersionMismatchError(
                f"identity {meta_commit!r} in {METADATA_FILE} does not match dir name {commit_id!r}"
            )

    return InstalledVersion(
        path=path,
        commit_id=commit_id,
        install_date=date,
        has_viewer=(path / VIEWER_NAME).exists(),
        display_name=display_name,
    )


class VersionStore:
    """Installed versions under one base path and the current pointer.

    The store does no locking of its own; callers sharing a store between
    threads hold ``store.lock`` around mutating operations.
    """

    def __init__(
        self,
        base_path: Path,
        versions: list[InstalledVersion] | None = None,
        current_index: int | None = None,
        tainted: bool = False,
    ) -> None:
        self._base_path = base_path
        self._versions: list[InstalledVersion] = []
        self._current_index: int | None = None
        self._tainted = tainted
        self.lock = threading.RLock()
        for ver in versions or []:
            self.insert_sorted(ver)
        if current_index is not None:
            self._check_index(current_index)
            self._current_index = current_index

    @classmethod
    def scan(cls, base_path: Path) -> "VersionStore":
        """Construct a store by scanning a base directory.

        Entries that are neither the 'current' link nor valid version
        directories are skipped with a notice.

        Args:
            base_path: Root directory of the installations

        Returns:
            Scanned VersionStore

        Raises:
            StoreAccessError: If base_path is missing, not a dir or unreadable
        """
        if not base_path.exists():
            raise StoreAccessError(f"base path {base_path} does not exist")
        if not base_path.is_dir():
            raise StoreAccessError(f"base path {base_path} is not a directory")
        base_path = base_path.resolve()

        try:
            entries = sorted(base_path.iterdir())
        except OSError as e:
            raise StoreAccessError(f"failed to scan {base_path}: {e}") from e

        store = cls(base_path)
        current_target: Path | None = None
        known_files = set(launcher_file_names())

        for entry in entries:
            if entry.is_symlink() and entry.name == CURRENT_LINK:
                try:
                    target = entry.readlink()
                except OSError:
                    logger.info(f"Thought {entry} is a link, but cannot read it, skipping")
                    continue
                if not target.is_absolute():
                    target = entry.parent / target
                current_target = target.resolve()
            elif entry.is_dir():
                if entry.name.startswith(BACKUP_PREFIX):
                    logger.debug(f"Skipping backup dir {entry}")
                    continue
                try:
                    version = load_installed_version(entry)
                except (StoreAccessError, VersionMismatchError) as e:
                    logger.info(f"'{entry}' does not look like a version: {e}")
                    store._tainted = True
                    continue
                store.insert_sorted(version)
            elif entry.name in known_files:
                continue
            else:
                logger.info(f"Skipping {entry}")
                store._tainted = True

        logger.debug(f"Current link target: {current_target}")
        if current_target is not None:
            for i, ver in enumerate(store._versions):
                if ver.path.resolve() == current_target:
                    store._current_index = i
                    break
        return store

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def base_path(self) -> Path:
        return self._base_path

    @property
    def versions(self) -> tuple[InstalledVersion, ...]:
        return tuple(self._versions)

    @property
    def version_count(self) -> int:
        return len(self._versions)

    @property
    def current_index(self) -> int | None:
        """Index of the current version, or None if unset."""
        return self._current_index

    @property
    def current_version(self) -> InstalledVersion | None:
        if self._current_index is None:
            return None
        return self._versions[self._current_index]

    @property
    def is_base_path_tainted(self) -> bool:
        """True if the base path holds entries unrelated to installations."""
        return self._tainted

    def version(self, i: int) -> InstalledVersion:
        """Get version by index.

        Raises:
            NoSuchVersionError: If there is no version at index i
        """
        self._check_index(i)
        return self._versions[i]

    def iter_versions(self) -> Iterator[InstalledVersion]:
        return iter(self._versions)

    def index_of(self, commit_id: str) -> int | None:
        """Find the index of a version by identity."""
        for i, ver in enumerate(self._versions):
            if ver.commit_id == commit_id:
                return i
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def switch_current(self, i: int) -> None:
        """Point the 'current' link at version i.

        The link target is relative to the base path when possible. The
        current index only changes once the new link exists.

        Raises:
            NoSuchVersionError: If there is no version at index i
            CurrentLinkError: If the old link cannot be removed or the new
                one cannot be created
        """
        ver = self.version(i)
        link = self._base_path / CURRENT_LINK

        if link.is_symlink() or link.exists():
            try:
                link.unlink()
            except OSError as e:
                raise CurrentLinkError(f"failed to remove '{CURRENT_LINK}' link: {e}") from e

        try:
            target = ver.path.relative_to(self._base_path)
        except ValueError:
            target = ver.path

        # TODO: restore the previous link if creating the new one fails
        try:
            link.symlink_to(target, target_is_directory=True)
        except OSError as e:
            raise CurrentLinkError(f"failed to create '{CURRENT_LINK}' link: {e}") from e

        logger.info(f"Current version is now {ver.commit_id}")
        self._current_index = i

    def insert_sorted(self, version: InstalledVersion) -> int:
        """Insert a version keeping the list sorted by date.

        Versions with equal dates keep their insertion order. The current
        index is not touched; see register().

        Returns:
            Index the version was inserted at
        """
        idx = bisect.bisect_right(
            self._versions, version.install_date, key=attrgetter("install_date")
        )
        self._versions.insert(idx, version)
        return idx

    def register(self, version: InstalledVersion) -> int:
        """Add a newly installed version and keep the current index valid.

        A version with the same identity is replaced. If the new entry lands
        at or before the current version, the current index moves up by one.

        Returns:
            Index of the registered version
        """
        with self.lock:
            was_current = False
            existing = self.index_of(version.commit_id)
            if existing is not None:
                del self._versions[existing]
                if self._current_index is not None:
                    if existing == self._current_index:
                        was_current = True
                        self._current_index = None
                    elif existing < self._current_index:
                        self._current_index -= 1

            idx = self.insert_sorted(version)
            if was_current:
                self._current_index = idx
            elif self._current_index is not None and idx <= self._current_index:
                self._current_index += 1
            return idx

    def rename_version(self, i: int, name: str) -> None:
        """Set the display name of version i, persisting it to metadata.

        An empty name resets the display name to the identity.

        Raises:
            NoSuchVersionError: If there is no version at index i
            MetadataError: If the metadata file cannot be written
        """
        ver = self.version(i)
        name = " ".join(name.split())
        write_metadata(ver.path / METADATA_FILE, ver.commit_id, ver.install_date, name or None)
        self._versions[i] = ver.model_copy(update={"display_name": name or None})

    def _check_index(self, i: int) -> None:
        if not 0 <= i < len(self._versions):
            raise NoSuchVersionError(f"no version with index {i}")

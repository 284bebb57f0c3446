"""Download and install new versions into a store.

Pipeline for one install:

1. download the branch archive into a temporary staging dir
2. read commit identity and production date from the archive
3. return the existing index if that commit is already installed
4. extract; the archive must hold a single root folder
5. lay out modules and entry point in <base>/<commit>
6. derive requirements files from the packages' setup.cfg
7. create the venv (if missing) and pip install the requirements
8. (re)write the launcher shims at the base path
9. write the metadata marker
10. register the version in the store

Staging files are always removed. If steps 5-7 fail, the half-built
destination is removed and a previously existing one restored.
"""

import logging
import shutil
import tempfile
from pathlib import Path

from ..constants import (
    ARCHIVE_SOURCE_DIR,
    BACKUP_PREFIX,
    DEFAULT_BRANCH,
    DOWNLOAD_CONNECT_TIMEOUT,
    ENTRY_POINT_FILE,
    METADATA_FILE,
    PACKAGE_DESCRIPTOR_DIR,
    PACKAGE_DESCRIPTOR_FILE,
    PACKAGE_NAME,
    REQUIREMENTS_FILE,
    VIEWER_DESCRIPTOR_DIR,
    VIEWER_NAME,
    VIEWER_REQUIREMENTS_FILE,
)
from ..errors import InstallError
from ..models import InstalledVersion
from ..services.archive import extract_archive, read_archive_identity
from ..services.download import archive_url, download_archive
from ..services.launchers import write_launchers
from ..services.python_env import (
    ensure_venv,
    find_python_command,
    pip_install,
    write_requirements_from_descriptor,
)
from .metadata import write_metadata
from .version_store import VersionStore

logger = logging.getLogger(__name__)


class Installer:
    """Installs new versions of the package into a VersionStore.

    Args:
        store: Store receiving the new versions
        python_override: Interpreter to create venvs with; probed for
            when not given
        connect_timeout: Download connect timeout in seconds
    """

    def __init__(
        self,
        store: VersionStore,
        python_override: str | None = None,
        connect_timeout: float = DOWNLOAD_CONNECT_TIMEOUT,
    ) -> None:
        self.store = store
        self.python_override = python_override
        self.connect_timeout = connect_timeout

    def download_new_version(
        self,
        branch: str = DEFAULT_BRANCH,
        install_viewer: bool = True,
        python_command: str | None = None,
    ) -> int:
        """Download the latest commit of a branch and install it.

        Args:
            branch: Branch to download
            install_viewer: Also install the companion viewer
            python_command: Interpreter to use as-is, skipping discovery

        Returns:
            Index of the installed (or already present) version

        Raises:
            DownloadError: If the archive cannot be downloaded
            ArchiveError: If the archive is unusable
            InterpreterNotFoundError: If no interpreter can be found
            InstallError: If laying out files fails
            SubprocessError: If venv creation or pip fails
        """
        base_path = self.store.base_path
        with tempfile.TemporaryDirectory(prefix="lifeblood-manager-") as tmp:
            staging = Path(tmp)
            archive = download_archive(
                archive_url(branch), staging / "archive.zip", connect_timeout=self.connect_timeout
            )
            commit_id, date = read_archive_identity(archive)

            existing = self.store.index_of(commit_id)
            if existing is not None and (
                self.store.version(existing).has_viewer or not install_viewer
            ):
                logger.info(f"Latest commit {commit_id} already downloaded")
                return existing

            python = python_command or find_python_command(self.python_override)

            unpack_dir = staging / "unpacked"
            unpack_dir.mkdir()
            source_root = extract_archive(archive, unpack_dir)

            dest_dir = base_path / commit_id
            self._install(source_root, dest_dir, install_viewer, python)

        try:
            write_launchers(base_path, install_viewer)
        except OSError as e:
            raise InstallError(f"failed to write launcher scripts: {e}") from e
        write_metadata(dest_dir / METADATA_FILE, commit_id, date)

        version = InstalledVersion(
            path=dest_dir,
            commit_id=commit_id,
            install_date=date,
            has_viewer=install_viewer,
        )
        index = self.store.register(version)
        logger.info(f"Installed {commit_id} as version {index}")
        return index

    def _install(
        self, source_root: Path, dest_dir: Path, install_viewer: bool, python_command: str
    ) -> None:
        """Lay out files and provision the venv, restoring on failure."""
        backup: Path | None = None
        if dest_dir.exists():
            backup = dest_dir.with_name(f"{BACKUP_PREFIX}{dest_dir.name}")
            try:
                _remove(backup)
                dest_dir.rename(backup)
            except OSError as e:
                raise InstallError(f"failed to move existing {dest_dir.name} aside: {e}") from e
            logger.info(f"Existing {dest_dir.name} moved aside to {backup.name}")

        try:
            try:
                dest_dir.mkdir()
            except OSError as e:
                raise InstallError(f"failed to create destination dir: {e}") from e

            requirement_files = self._lay_out(source_root, dest_dir, install_viewer)
            ensure_venv(dest_dir, python_command)
            for requirements in requirement_files:
                pip_install(dest_dir, requirements)
        except Exception:
            logger.warning(f"Installation into {dest_dir} failed, cleaning up")
            _restore(dest_dir, backup)
            raise

        if backup is not None:
            try:
                _remove(backup)
            except OSError as e:
                logger.warning(f"Failed to remove temporary dir {backup}, please remove it: {e}")

    def _lay_out(self, source_root: Path, dest_dir: Path, install_viewer: bool) -> list[Path]:
        """Copy modules and entry point, write requirements files.

        Returns:
            Requirements files to install, main package first
        """
        modules = [PACKAGE_NAME]
        descriptors = [(PACKAGE_DESCRIPTOR_DIR, REQUIREMENTS_FILE)]
        if install_viewer:
            modules.append(VIEWER_NAME)
            descriptors.append((VIEWER_DESCRIPTOR_DIR, VIEWER_REQUIREMENTS_FILE))

        try:
            for module in modules:
                shutil.copytree(
                    source_root / ARCHIVE_SOURCE_DIR / module,
                    dest_dir / module,
                    dirs_exist_ok=True,
                )
            shutil.copy2(source_root / ENTRY_POINT_FILE, dest_dir / ENTRY_POINT_FILE)
        except (OSError, shutil.Error) as e:
            raise InstallError(f"failed to copy unzipped contents: {e}") from e

        requirement_files = []
        for descriptor_dir, requirements_name in descriptors:
            requirements = dest_dir / requirements_name
            write_requirements_from_descriptor(
                source_root / descriptor_dir / PACKAGE_DESCRIPTOR_FILE, requirements
            )
            requirement_files.append(requirements)
        return requirement_files


def _remove(path: Path) -> None:
    """Remove a file or directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _restore(dest_dir: Path, backup: Path | None) -> None:
    """Remove a half-built destination and put the backup back.

    Failures are only logged so the original install error reaches the caller.
    """
    try:
        _remove(dest_dir)
        if backup is not None:
            backup.rename(dest_dir)
    except OSError as e:
        logger.error(f"Failed to restore {dest_dir} from {backup}: {e}")

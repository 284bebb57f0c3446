"""Errors raised by lifeblood manager."""


class ManagerError(Exception):
    """Base exception for all manager errors."""


# Access errors


class StoreAccessError(ManagerError):
    """Raised when the base path is missing, not a directory or unreadable."""


class CurrentLinkError(ManagerError):
    """Raised when the 'current' link cannot be removed or created."""


# Format errors


class MetadataError(ManagerError):
    """Raised when a metadata marker file cannot be read."""


class UnsupportedMetadataError(MetadataError):
    """Raised when a metadata file declares an unknown format version."""


class InvalidMetadataError(MetadataError):
    """Raised when a metadata file holds corrupt data."""


class VersionMismatchError(ManagerError):
    """Raised when the identity in metadata does not match the directory name."""


# Transport and archive errors


class DownloadError(ManagerError):
    """Raised when a release archive cannot be downloaded."""


class ArchiveError(ManagerError):
    """Raised when a release archive is corrupt, empty or badly shaped."""


class InstallError(ManagerError):
    """Raised when laying out a new installation fails."""


# Subprocess errors


class SubprocessError(ManagerError):
    """Raised when an interpreter or package installer run fails.

    Attributes:
        returncode: Exit code of the failed process, or None if it never ran.
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class InterpreterNotFoundError(SubprocessError):
    """Raised when no usable Python interpreter can be found."""


# State errors


class StateError(ManagerError):
    """Raised when an operation is invalid in the current state."""


class NoSuchVersionError(StateError):
    """Raised when a version index does not exist."""


class ProcessAlreadyRunningError(StateError):
    """Raised when starting a process while one is still active."""


class NoProcessError(StateError):
    """Raised when waiting on a controller with no active process."""


class NoInstallationError(StateError):
    """Raised when a controller has no installation store set."""

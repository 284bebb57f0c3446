"""Launch control for one logical command.

A LaunchController ties a command (label, executable, arguments) to an
installation store and owns at most one running ProcessHandle for it.
"""

import logging
from collections.abc import Sequence
from typing import Protocol

from ..constants import STOP_POLL_ATTEMPTS, STOP_POLL_INTERVAL
from ..errors import NoInstallationError, NoProcessError, ProcessAlreadyRunningError
from ..models import ExitStatus
from ..services.process import ProcessHandle, StopStrategy
from .version_store import VersionStore

logger = logging.getLogger(__name__)


class InstallLocationObserver(Protocol):
    """Receives notice when a controller's installation store changes."""

    def install_location_changed(
        self, controller: "LaunchController", previous: VersionStore | None
    ) -> None:
        """Called after the store was swapped; previous is the old store."""
        ...


class LaunchController:
    """Starts, polls and stops one command against an installation store.

    The controller reads the store but does not manage its lifetime. It does
    not stop a running process when the store changes; observers decide.
    """

    def __init__(
        self,
        store: VersionStore | None,
        label: str,
        command: str,
        args: Sequence[str] = (),
        observer: InstallLocationObserver | None = None,
        stop_strategy: StopStrategy | None = None,
    ) -> None:
        self._store = store
        self._label = label
        self._command = command
        self._args = tuple(args)
        self._observer = observer
        self._stop_strategy = stop_strategy
        self._process: ProcessHandle | None = None
        self._last_status: ExitStatus | None = None

    @property
    def command_label(self) -> str:
        return self._label

    @property
    def command(self) -> str:
        return self._command

    @property
    def args(self) -> tuple[str, ...]:
        return self._args

    @property
    def store(self) -> VersionStore | None:
        return self._store

    @property
    def process(self) -> ProcessHandle | None:
        """Active process handle, if any."""
        return self._process

    @property
    def is_current_installation_set(self) -> bool:
        return self._store is not None

    @property
    def is_process_running(self) -> bool:
        return self._process is not None

    @property
    def last_exit_status(self) -> ExitStatus | None:
        return self._last_status

    @property
    def last_exit_code(self) -> int | None:
        """Exit code of the last finished run (None if signalled or never run)."""
        if self._last_status is None:
            return None
        return self._last_status.code

    def set_observer(self, observer: InstallLocationObserver | None) -> None:
        self._observer = observer

    def install_location_changed(self, store: VersionStore | None) -> None:
        """Swap the installation store and notify the observer."""
        previous = self._store
        self._store = store
        logger.debug(
            f"{self._label}: installation changed "
            f"{previous.base_path if previous else None} -> {store.base_path if store else None}"
        )
        if self._observer is not None:
            self._observer.install_location_changed(self, previous)

    def start(self) -> ProcessHandle:
        """Start the command in the store's base path.

        Raises:
            ProcessAlreadyRunningError: If a process is already active
            NoInstallationError: If no installation store is set
            SubprocessError: If the process cannot be started
        """
        if self._process is not None:
            raise ProcessAlreadyRunningError(f"{self._label} is already running")
        if self._store is None:
            raise NoInstallationError(f"{self._label}: no installation set")

        with self._store.lock:
            install_path = self._store.base_path
        self._process = ProcessHandle.spawn(
            install_path, self._command, self._args, stop_strategy=self._stop_strategy
        )
        return self._process

    def _active(self) -> ProcessHandle:
        if self._process is None:
            raise NoProcessError(f"{self._label} has no running process")
        return self._process

    def _finished(self, status: ExitStatus) -> ExitStatus:
        logger.info(f"{self._label} finished with {status.returncode}")
        self._process = None
        self._last_status = status
        return status

    def try_wait(self) -> ExitStatus | None:
        """Poll the active process; clears it once finished.

        Raises:
            NoProcessError: If there is no active process
        """
        status = self._active().try_wait()
        if status is None:
            return None
        return self._finished(status)

    def wait(self) -> ExitStatus:
        """Block until the active process exits; clears it.

        Raises:
            NoProcessError: If there is no active process
        """
        return self._finished(self._active().wait())

    def stop(self) -> None:
        """Request a graceful stop of the active process.

        Raises:
            NoProcessError: If there is no active process
            OSError: If the stop request cannot be delivered
        """
        self._active().request_graceful_stop()

    def close(
        self,
        poll_interval: float = STOP_POLL_INTERVAL,
        max_polls: int = STOP_POLL_ATTEMPTS,
    ) -> ExitStatus | None:
        """Stop and release the active process, if any (see ProcessHandle.close)."""
        if self._process is None:
            return None
        return self._finished(self._process.close(poll_interval, max_polls))

"""Managed child processes.

A ProcessHandle owns one spawned process bound to an installation path.
Closing the handle (explicitly or by leaving its ``with`` block) guarantees
the process is gone: a graceful stop is requested first, the process is
polled for a bounded time, and then it is force-killed. Callers that drop a
running handle without closing it leak the process.
"""

import logging
import os
import signal
import subprocess
import sys
import time
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol

from ..constants import STOP_POLL_ATTEMPTS, STOP_POLL_INTERVAL
from ..errors import SubprocessError
from ..models import ExitStatus

logger = logging.getLogger(__name__)


class StopStrategy(Protocol):
    """Platform capability to request a cooperative stop of a child."""

    def popen_kwargs(self) -> dict[str, Any]:
        """Extra Popen arguments needed for request_stop to work."""
        ...

    def request_stop(self, process: subprocess.Popen) -> None:
        """Ask the process to exit without waiting for it."""
        ...


class PosixSignalStop:
    """Send SIGTERM to the child's pid."""

    def popen_kwargs(self) -> dict[str, Any]:
        return {}

    def request_stop(self, process: subprocess.Popen) -> None:
        os.kill(process.pid, signal.SIGTERM)


class ConsoleEventStop:
    """Send a console break event to the child's process group (Windows).

    The child is started in its own process group so that its pid doubles
    as the group id.
    """

    def popen_kwargs(self) -> dict[str, Any]:
        return {
            "creationflags": getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0x00000200),
            "stdin": subprocess.DEVNULL,
        }

    def request_stop(self, process: subprocess.Popen) -> None:
        os.kill(process.pid, signal.CTRL_BREAK_EVENT)  # type: ignore[attr-defined]


def default_stop_strategy() -> StopStrategy:
    """Get the stop strategy for this platform."""
    if sys.platform == "win32":
        return ConsoleEventStop()
    return PosixSignalStop()


def _resolve_program(install_path: Path, executable: str) -> str:
    """Make path-like executables relative to the installation."""
    if "/" in executable or os.sep in executable:
        return str(install_path / executable)
    return executable


class ProcessHandle:
    """One spawned process bound to an installation path.

    States: running -> exited. Once exited, the status is cached and every
    later try_wait()/wait()/close() returns the same value.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        bound_path: Path,
        stop_strategy: StopStrategy | None = None,
    ) -> None:
        self._process = process
        self._bound_path = bound_path
        self._stop_strategy = stop_strategy or default_stop_strategy()
        self._status: ExitStatus | None = None

    @classmethod
    def spawn(
        cls,
        install_path: Path,
        executable: str,
        args: Sequence[str] = (),
        stop_strategy: StopStrategy | None = None,
    ) -> "ProcessHandle":
        """Start a process with its working directory set to install_path.

        Args:
            install_path: Installation directory the process runs against
            executable: Program to run; path-like values are resolved
                against install_path
            args: Arguments for the program
            stop_strategy: Graceful stop implementation (platform default
                if omitted)

        Raises:
            SubprocessError: If the process cannot be started
        """
        strategy = stop_strategy or default_stop_strategy()
        cmd = [_resolve_program(install_path, executable), *args]
        logger.info(f"Starting {executable!r} in {install_path}")
        logger.debug(f"Command: {cmd}")
        try:
            process = subprocess.Popen(cmd, cwd=install_path, **strategy.popen_kwargs())
        except OSError as e:
            raise SubprocessError(f"failed to start {executable!r}: {e}") from e
        return cls(process, install_path, strategy)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def bound_path(self) -> Path:
        """Installation path the process was started against."""
        return self._bound_path

    @property
    def exit_status(self) -> ExitStatus | None:
        return self._status

    @property
    def is_running(self) -> bool:
        return self.try_wait() is None

    def _finish(self, returncode: int) -> ExitStatus:
        if self._status is None:
            self._status = ExitStatus(returncode=returncode)
            logger.debug(f"Process {self.pid} exited with {returncode}")
        return self._status

    def try_wait(self) -> ExitStatus | None:
        """Poll without blocking.

        Returns:
            None while running, the final ExitStatus afterwards
        """
        if self._status is not None:
            return self._status
        returncode = self._process.poll()
        if returncode is None:
            return None
        return self._finish(returncode)

    def wait(self, timeout: float | None = None) -> ExitStatus:
        """Block until the process exits.

        Raises:
            subprocess.TimeoutExpired: If timeout elapses first
        """
        if self._status is not None:
            return self._status
        return self._finish(self._process.wait(timeout=timeout))

    def request_graceful_stop(self) -> None:
        """Ask the process to stop without waiting. No-op once exited.

        Raises:
            OSError: If the stop request cannot be delivered
        """
        if self.try_wait() is not None:
            return
        logger.info(f"Requesting process {self.pid} to stop")
        self._stop_strategy.request_stop(self._process)

    def kill(self) -> ExitStatus:
        """Force-kill the process and reap it."""
        status = self.try_wait()
        if status is not None:
            return status
        logger.warning(f"Killing process {self.pid}")
        try:
            self._process.kill()
        except ProcessLookupError:
            pass
        return self.wait()

    def close(
        self,
        poll_interval: float = STOP_POLL_INTERVAL,
        max_polls: int = STOP_POLL_ATTEMPTS,
    ) -> ExitStatus:
        """Terminate and release the process.

        Requests a graceful stop, polls up to max_polls times every
        poll_interval seconds, then kills. A graceful stop that cannot be
        delivered goes straight to kill. Blocks for at most
        poll_interval * max_polls seconds plus the kill.

        Returns:
            Final ExitStatus of the process
        """
        status = self.try_wait()
        if status is not None:
            return status

        try:
            self.request_graceful_stop()
        except OSError as e:
            logger.warning(f"Failed to send stop request to process {self.pid}: {e}")
            return self.kill()

        for attempt in range(max_polls):
            time.sleep(poll_interval)
            status = self.try_wait()
            if status is not None:
                logger.info(f"Process {self.pid} stopped after {attempt + 1} polls")
                return status
            logger.debug(f"Process {self.pid} still running ({attempt + 1}/{max_polls})")

        logger.warning(f"Process {self.pid} did not stop in {poll_interval * max_polls}s")
        return self.kill()

    def __enter__(self) -> "ProcessHandle":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

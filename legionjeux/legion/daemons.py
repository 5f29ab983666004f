"""Registry and lifecycle management of supervised daemon processes."""

from __future__ import annotations

import contextlib
import os
import select
import shutil
import signal
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

LOGFILE_DIR = "logs"
LOG_VERSIONS = 7
DAEMONS_DIR = "daemons"
PATH_ENV_VAR = "PATH"
CHILD_TIMEOUT = 1.0
SYNC_FD = 3


class DaemonStatus(Enum):
    """Lifecycle states of a daemon."""

    UNKNOWN = 0
    INACTIVE = 1
    STARTING = 2
    ACTIVE = 3
    STOPPING = 4
    EXITED = 5
    CRASHED = 6

    def __str__(self) -> str:
        return self.name.lower()


class LegionError(Exception):
    """Raised when a daemon command cannot be carried out."""


@dataclass(eq=False)
class Daemon:
    """A registered daemon: its name, command, status and process id."""

    name: str
    exe: str
    args: str = ""
    status: DaemonStatus = DaemonStatus.INACTIVE
    pid: int = 0
    process: subprocess.Popen | None = field(default=None, init=False, repr=False)

    def status_line(self) -> str:
        """The tab-separated line shown by the status commands."""
        return f"{self.name}\t{self.pid}\t{self.status}"


class Supervisor:
    """Starts, stops and rotates the logs of registered daemons."""

    def __init__(
        self,
        log_dir: str | os.PathLike = LOGFILE_DIR,
        daemons_dir: str | os.PathLike = DAEMONS_DIR,
        timeout: float = CHILD_TIMEOUT,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.daemons_dir = Path(daemons_dir)
        self.timeout = timeout
        self._daemons: dict[str, Daemon] = {}

    def _lookup(self, name: str) -> Daemon:
        try:
            return self._daemons[name]
        except KeyError:
            raise LegionError(f"Daemon {name} is not registered.") from None

    def log_path(self, name: str, version: int | str = 0) -> Path:
        """The path of one version of a daemon's log file."""
        return self.log_dir / f"{name}.log.{version}"

    def register(self, name: str, exe: str, args: str = "") -> Daemon:
        """Register a new, inactive daemon."""
        if name in self._daemons:
            raise LegionError(f"Daemon {name} is already registered.")
        daemon = Daemon(name, exe, args or "")
        self._daemons[name] = daemon
        return daemon

    def unregister(self, name: str) -> None:
        """Forget an inactive daemon."""
        daemon = self._daemons.get(name)
        if daemon is None or daemon.status is not DaemonStatus.INACTIVE:
            raise LegionError(f"Daemon {name} is not registered.")
        del self._daemons[name]

    def status(self, name: str) -> Daemon:
        """The registered daemon called name."""
        return self._lookup(name)

    def status_all(self) -> list[Daemon]:
        """All daemons, most recently registered first."""
        return list(reversed(self._daemons.values()))

    def start(self, name: str, version: int | str = 0) -> Daemon:
        """Launch an inactive daemon and wait for its synchronisation byte."""
        daemon = self._lookup(name)
        if daemon.status is not DaemonStatus.INACTIVE:
            raise LegionError(f"Daemon {name} is not inactive.")

        self.log_dir.mkdir(parents=True, exist_ok=True)
        daemon.status = DaemonStatus.STARTING

        inherited_path = os.environ.get(PATH_ENV_VAR)
        if inherited_path is None:
            daemon.status = DaemonStatus.INACTIVE
            raise LegionError("Child has no PATH")
        search_path = os.pathsep.join([str(self.daemons_dir), inherited_path])
        executable = shutil.which(daemon.exe, path=search_path)
        if executable is None:
            daemon.status = DaemonStatus.INACTIVE
            raise LegionError(f"Error executing daemon {daemon.exe}")

        read_fd, write_fd = os.pipe()

        def _child_setup() -> None:
            os.dup2(write_fd, SYNC_FD)
            os.setpgid(0, 0)

        try:
            with open(self.log_path(name, version), "ab") as log_file:
                process = subprocess.Popen(
                    [daemon.args or daemon.exe],
                    executable=os.path.abspath(executable),
                    stdin=subprocess.DEVNULL,
                    stdout=log_file,
                    env={PATH_ENV_VAR: search_path},
                    pass_fds=(SYNC_FD,),
                    preexec_fn=_child_setup,
                )
        except OSError as exc:
            os.close(read_fd)
            os.close(write_fd)
            daemon.status = DaemonStatus.INACTIVE
            raise LegionError(f"Error executing daemon {name}: {exc}") from exc

        os.close(write_fd)
        try:
            ready, _, _ = select.select([read_fd], [], [], self.timeout)
            synced = bool(ready) and os.read(read_fd, 1) != b""
        finally:
            os.close(read_fd)

        if not synced:
            with contextlib.suppress(OSError):
                process.kill()
            process.wait()
            daemon.status = DaemonStatus.CRASHED
            raise LegionError(f"Daemon {name} did not synchronise in time.")

        daemon.process = process
        daemon.pid = process.pid
        daemon.status = DaemonStatus.ACTIVE
        return daemon

    def stop(self, name: str) -> Daemon:
        """Stop an active daemon, or reset one that has exited or crashed."""
        daemon = self._lookup(name)
        if daemon.status in (DaemonStatus.EXITED, DaemonStatus.CRASHED):
            daemon.status = DaemonStatus.INACTIVE
            return daemon
        if daemon.status is not DaemonStatus.ACTIVE or daemon.process is None:
            raise LegionError(f"Daemon {name} is not active.")

        daemon.status = DaemonStatus.STOPPING
        process = daemon.process
        try:
            os.kill(process.pid, signal.SIGTERM)
        except OSError as exc:
            raise LegionError(f"Unable to send SIGTERM to daemon {name}.") from exc

        try:
            process.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            with contextlib.suppress(OSError):
                process.kill()
            process.wait()
            daemon.status = DaemonStatus.CRASHED
            raise LegionError(f"Daemon {name} killed with SIGKILL.") from None

        daemon.status = DaemonStatus.EXITED
        return daemon

    def _restart(self, name: str, version: int) -> Daemon:
        with contextlib.suppress(LegionError):
            self.stop(name)
        with contextlib.suppress(LegionError):
            self.stop(name)
        return self.start(name, version)

    def logrotate(self, name: str) -> Daemon:
        """Move the daemon's output to a fresh log file and restart it."""
        daemon = self._lookup(name)
        if daemon.status is not DaemonStatus.ACTIVE:
            raise LegionError("Daemon not started")

        self.log_dir.mkdir(parents=True, exist_ok=True)
        oldest = self.log_path(name, LOG_VERSIONS - 1)
        if oldest.exists():
            oldest.unlink()
            for version in range(LOG_VERSIONS - 2, -1, -1):
                try:
                    os.rename(self.log_path(name, version), self.log_path(name, version + 1))
                except OSError as exc:
                    raise LegionError("Unable to logrotate files") from exc
            return self._restart(name, 0)

        version = 0
        while self.log_path(name, version).exists():
            version += 1
        return self._restart(name, version)

    def shutdown(self) -> None:
        """Stop every active daemon and forget them all."""
        for daemon in self.status_all():
            if daemon.status is DaemonStatus.ACTIVE:
                with contextlib.suppress(LegionError):
                    self.stop(daemon.name)
        self._daemons.clear()
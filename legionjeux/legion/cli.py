"""Interactive command interpreter for the daemon supervisor."""

from __future__ import annotations

import contextlib
import signal
import sys
import threading
from typing import Callable, Iterator, TextIO

from legionjeux.legion.daemons import LegionError, Supervisor

PROMPT = "legion> "

HELP_TEXT = (
    "Available commands:\n"
    "help (0 args) Print this help message\n"
    "quit (0 args) Quit the program\n"
    "register (0 args) Register a daemon\n"
    "unregister (1 args) Unregister a daemon\n"
    "status (1 args) Show the status of a daemon\n"
    "status-all (0 args) Show the status of all daemons\n"
    "start (1 args) Start a daemon\n"
    "stop (1 args) Stop a daemon\n"
    "logrotate (1 args) Rotate log files for a daemon\n"
)

_ARITY = {
    "unregister": 1,
    "status": 1,
    "status-all": 0,
    "start": 1,
    "stop": 1,
    "logrotate": 1,
}


def split_fields(line: str) -> list[str]:
    """Split a command line into fields.

    Fields are separated by spaces.  A field that starts with a single quote
    runs up to the next single quote (or the end of the line) and may contain
    spaces; the quotes are not part of it.  Empty fields are dropped.  A field
    that starts with '<' makes the whole line be ignored, and an empty list
    is returned.
    """
    text = line.split("\n", 1)[0]
    length = len(text)
    fields: list[str] = []
    pos = 0
    while pos < length:
        char = text[pos]
        if char == "<":
            return []
        if char == "'":
            end = text.find("'", pos + 1)
            if end == -1:
                end = length
            fields.append(text[pos + 1:end])
            pos = end
            while pos < length and text[pos] == "'":
                pos += 1
        else:
            end = text.find(" ", pos)
            if end == -1:
                end = length
            fields.append(text[pos:end])
            pos = end
        while pos < length and text[pos] == " ":
            pos += 1
    return [field for field in fields if field]


class Cli:
    """Reads commands and carries them out against a Supervisor."""

    def __init__(self, supervisor: Supervisor | None = None, out: TextIO | None = None) -> None:
        self.supervisor = supervisor if supervisor is not None else Supervisor()
        self.out = out if out is not None else sys.stdout
        self.running = True
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "help": self._help,
            "quit": self._quit_command,
            "register": self._register,
            "unregister": self._unregister,
            "status": self._status,
            "status-all": self._status_all,
            "start": self._start,
            "stop": self._stop,
            "logrotate": self._logrotate,
        }

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def _fail(self, command: str) -> None:
        self._write(f"Error executing command: {command} \n")

    def execute(self, line: str) -> None:
        """Carry out one command line."""
        fields = split_fields(line)
        if not fields:
            return
        command = fields[0]
        handler = self._commands.get(command)
        if handler is None:
            self._write(f"Unrecognized command: {command} \n")
            self._fail(command)
            return
        required = _ARITY.get(command)
        if required is not None and len(fields) - 1 != required:
            self._write(
                f"Wrong number of args (given: {len(fields) - 1}, "
                f"required: {required}) for command '{command}' \n"
            )
            self._fail(command)
            return
        handler(fields)

    def run(self, stream: TextIO) -> None:
        """Prompt for and execute commands until quit or end of input."""
        while self.running:
            self._write(PROMPT)
            line = stream.readline()
            if not line:
                return
            self.execute(line)

    def _quit(self) -> None:
        self.running = False
        self.supervisor.shutdown()

    def _help(self, fields: list[str]) -> None:
        self._write(HELP_TEXT)

    def _quit_command(self, fields: list[str]) -> None:
        self._quit()

    def _register(self, fields: list[str]) -> None:
        command = fields[0]
        if len(fields) < 3:
            self._write("Usage: register <daemon> <cmd-and-args> \n")
            self._fail(command)
            return
        name, exe = fields[1], fields[2]
        try:
            self.supervisor.register(name, exe, " ".join(fields[3:]))
        except LegionError as exc:
            self._write(f"{exc}\n")
            self._fail(command)

    def _unregister(self, fields: list[str]) -> None:
        try:
            self.supervisor.unregister(fields[1])
        except LegionError:
            self._write(f"Daemon {fields[1]} is not registered.\n")
            self._fail(fields[0])

    def _status(self, fields: list[str]) -> None:
        try:
            daemon = self.supervisor.status(fields[1])
        except LegionError:
            self._fail(fields[0])
            return
        self._write(daemon.status_line() + "\n")

    def _status_all(self, fields: list[str]) -> None:
        for daemon in self.supervisor.status_all():
            self._write(daemon.status_line() + "\n")

    def _lifecycle(self, fields: list[str], action: Callable[[str], object]) -> None:
        try:
            action(fields[1])
        except LegionError:
            self._fail(fields[0])

    def _start(self, fields: list[str]) -> None:
        self._lifecycle(fields, self.supervisor.start)

    def _stop(self, fields: list[str]) -> None:
        self._lifecycle(fields, self.supervisor.stop)

    def _logrotate(self, fields: list[str]) -> None:
        self._lifecycle(fields, self.supervisor.logrotate)


@contextlib.contextmanager
def _quit_on_signals(cli: Cli) -> Iterator[None]:
    """Make interrupt and terminal-stop signals quit the interpreter."""
    signums = [
        signum
        for signum in (signal.SIGINT, getattr(signal, "SIGTSTP", None))
        if signum is not None
    ]

    def handler(signum: int, frame: object) -> None:
        cli._quit()
        raise SystemExit(0)

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in signums:
            previous[signum] = signal.signal(signum, handler)
    try:
        yield
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


def run_cli(stream: TextIO | None, out: TextIO | None) -> None:
    """Run the interpreter on the given input and output streams."""
    if stream is None or out is None:
        return
    cli = Cli(Supervisor(), out)
    with _quit_on_signals(cli):
        cli.run(stream)


def main(argv: list[str] | None = None) -> int:
    """Entry point: interpret commands from standard input."""
    run_cli(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
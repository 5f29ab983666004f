# legionjeux

This package holds two small tools:

- **legion** is a supervisor for long-running daemon programs. You drive it
  from an interactive command line.
- **jeux** holds the core pieces of a two-player game server: a tic-tac-toe
  game, Elo-rated players, a player registry and a binary packet protocol.

legion runs on POSIX systems only. It starts each daemon in its own process
group and hands it a pipe on file descriptor 3.

## Installation

```
pip install .
```

To run the tests, install the test extra and then run pytest:

```
pip install .[test]
pytest
```

## legion

Start the supervisor:

```
legion
```

You can also run it as `python -m legionjeux.legion.cli`.

It prints the prompt `legion> ` and reads commands from standard input. It
stops at end of input or on `quit`. SIGINT and SIGTSTP (Ctrl-C, Ctrl-Z) also
make it quit.

| command | args | meaning |
|---|---|---|
| `help` | 0 | print the list of commands |
| `quit` | 0 | stop every active daemon, forget all daemons and exit |
| `register <daemon> <cmd> [args...]` | 2 or more | register a daemon |
| `unregister <daemon>` | 1 | remove an inactive daemon |
| `status <daemon>` | 1 | show the daemon's name, pid and status |
| `status-all` | 0 | show every registered daemon, newest first |
| `start <daemon>` | 1 | start an inactive daemon |
| `stop <daemon>` | 1 | stop an active daemon; an exited or crashed one is reset to inactive |
| `logrotate <daemon>` | 1 | move an active daemon to a new log file and restart it |

The status lines are separated by tabs, for example `lazy	4242	active`. The
possible statuses are:

- `unknown`
- `inactive`
- `starting`
- `active`
- `stopping`
- `exited`
- `crashed`

If a command fails, legion prints `Error executing command: <command>`.

### Quoting

Fields on a command line are separated by spaces. A field that begins with a
single quote runs up to the next single quote, or to the end of the line if
there is none. That field may contain spaces. The quotes themselves are not
part of the field.

If any field begins with `<`, the whole line is ignored.

### How daemons are run

- legion looks for the executable in `daemons/` first and then in `PATH`.
- The daemon runs in its own process group, with only `PATH` in its
  environment.
- The daemon's standard output is appended to `logs/<name>.log.<n>`. The
  `logs/` directory is created if needed.
- The daemon must write one byte on file descriptor 3 within the timeout, which
  is one second by default. If it does not, legion kills it and marks it
  `crashed`.
- `stop` sends SIGTERM and waits for the timeout. If the daemon has not exited
  by then, legion sends SIGKILL and marks it `crashed`.

### Log rotation

`logrotate` starts the daemon again on the lowest log version that does not
exist yet. If version 6 already exists, the rotation works like this:

1. Version 6 is deleted.
2. Versions 0 to 5 are each renamed one number up.
3. The daemon is restarted on version 0.

### Using the supervisor from Python

This example assumes an executable called `lazy` in `daemons/` or on `PATH`:

```python
from legionjeux.legion.daemons import Supervisor

sup = Supervisor("logs", "daemons", 1.0)
sup.register("lazy", "lazy", "")
sup.start("lazy", 0)
print(sup.status("lazy").status_line())
print(sup.log_path("lazy", 0))
sup.stop("lazy")
sup.shutdown()
```

Errors are raised as `LegionError`. `Cli(supervisor, out).execute(line)` runs a
single command line and writes its output to `out`.

## jeux

```python
from legionjeux.jeux.game import Game, GameRole
from legionjeux.jeux.player import post_result
from legionjeux.jeux.player_registry import PlayerRegistry

game = Game()
move = game.parse_move(GameRole.FIRST, "5")
game.apply_move(move)
print(move.unparse())        # 5<-X
print(game.unparse_state())
print(game.is_over(), game.winner())

registry = PlayerRegistry()
alice = registry.register("alice")
bob = registry.register("bob")
post_result(alice, bob, 1)   # 0 draw, 1 first player won, otherwise second
print(alice.rating, bob.rating)
```

### The game

- Squares are numbered 1 to 9.
- A move is written as `5` or `5<-X`.
- `Game.parse_move`, `apply_move` and `resign` raise `GameError` when the move
  or resignation is not allowed.
- Every player starts with a rating of 1500.

### The packet protocol

`legionjeux.jeux.protocol` frames packets as a fixed 16-byte header followed by
an optional payload. All header fields are in network byte order. They are:

- type
- invitation id
- role
- payload size
- timestamp seconds
- timestamp nanoseconds

The module provides:

- `PacketHeader.pack` and `PacketHeader.unpack` convert a header to and from
  bytes.
- `PacketHeader.now` stamps a header with the current monotonic time.
- `send_packet(sock, header, payload)` and `recv_packet(sock)` carry packets
  over a connected socket.
- `PacketType` lists the packet kinds.
- Failures raise `ProtocolError`.

## What the package does not do

The jeux part is not a server. This package has none of the following:

- a network listener
- a per-connection service loop
- a registry of connected clients
- invitations, or a way to match players into games
- a client program

Those would have to be built on top of the game, player, registry and protocol
pieces described above. Players and ratings are held in memory only, and
nothing is stored on disk.
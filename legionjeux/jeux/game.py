"""Tic-tac-toe game state, moves and their textual forms."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum

BOARD_SIZE = 9

_LINES = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class GameRole(IntEnum):
    """Roles of the two players; NONE stands for no player."""

    NONE = 0
    FIRST = 1
    SECOND = 2

    @property
    def letter(self) -> str:
        return "X" if self is GameRole.FIRST else "O"

    @property
    def opponent(self) -> GameRole:
        return GameRole.SECOND if self is GameRole.FIRST else GameRole.FIRST


class GameError(Exception):
    """Raised when a move, parse or resignation is not allowed."""


@dataclass(frozen=True)
class GameMove:
    """A move: a board square numbered 1 to 9 and the role that takes it."""

    index: int
    role: GameRole

    def unparse(self) -> str:
        """Describe the move in the form that parse_move reads back."""
        return f"{self.index}<-{GameRole(self.role).letter}"

    def __str__(self) -> str:
        return self.unparse()


class Game:
    """A two-player game with alternating moves, safe to share between threads."""

    def __init__(self) -> None:
        self._board = [" "] * BOARD_SIZE
        self._to_move = GameRole.FIRST
        self._winner = GameRole.NONE
        self._terminated = False
        self._moves_made = 0
        self._lock = threading.Lock()

    def apply_move(self, move: GameMove) -> None:
        """Place a move on the board; raise GameError if it is illegal."""
        with self._lock:
            if self._terminated:
                raise GameError("game is over")
            if not 1 <= move.index <= BOARD_SIZE or self._board[move.index - 1] != " ":
                raise GameError(f"square {move.index} is not available")
            role = GameRole.FIRST if move.role == GameRole.FIRST else GameRole.SECOND
            self._board[move.index - 1] = role.letter
            self._to_move = role.opponent
            self._moves_made += 1

    def resign(self, role: GameRole) -> None:
        """Resign on behalf of a role; the opponent becomes the winner."""
        with self._lock:
            if self._terminated:
                raise GameError("game has already terminated")
            self._winner = (
                GameRole.SECOND if role == GameRole.FIRST else GameRole.FIRST
            )
            self._terminated = True

    def unparse_state(self) -> str:
        """Render the board and whose turn it is."""
        with self._lock:
            rows = ["|".join(self._board[start:start + 3]) for start in (0, 3, 6)]
            text = "\n-----\n".join(rows) + "\n"
            if self._to_move in (GameRole.FIRST, GameRole.SECOND):
                text += f"{self._to_move.letter} to move\n"
            return text

    def is_over(self) -> bool:
        """Report whether the game has ended, recording the winner if so."""
        with self._lock:
            if self._terminated:
                return True
            if self._moves_made == BOARD_SIZE:
                self._winner = GameRole.NONE
                self._terminated = True
                return True
            for a, b, c in _LINES:
                mark = self._board[a]
                if mark != " " and mark == self._board[b] == self._board[c]:
                    self._winner = GameRole.FIRST if mark == "X" else GameRole.SECOND
                    self._terminated = True
                    return True
            return False

    def winner(self) -> GameRole:
        """The winning role, or NONE while undecided or on a draw."""
        with self._lock:
            return self._winner

    def parse_move(self, role: GameRole, text: str) -> GameMove:
        """Read a move such as "5" or "5<-X"; raise GameError if it cannot be read."""
        with self._lock:
            if role != GameRole.NONE and self._to_move != role:
                raise GameError(f"it is not {GameRole(role).name}'s turn")
            if not text or not "1" <= text[0] <= "9":
                raise GameError(f"invalid move: {text!r}")
            index = int(text[0])
            move_role = self._to_move
            if len(text) == 4:
                if text[3] == "X":
                    move_role = GameRole.FIRST
                elif text[3] == "O":
                    move_role = GameRole.SECOND
            return GameMove(index, move_role)
"""Players known to the game server and the rating update after a game."""

from __future__ import annotations

import threading

INITIAL_RATING = 1500
_K_FACTOR = 32
_SCALE = 400


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division that rounds toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


class Player:
    """A user of the server: a fixed name and a rating that changes after games."""

    __slots__ = ("_name", "_rating", "_lock")

    def __init__(self, name: str) -> None:
        self._name = str(name)
        self._rating = INITIAL_RATING
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        """The player's username."""
        return self._name

    @property
    def rating(self) -> int:
        """The player's current rating."""
        with self._lock:
            return self._rating

    def _set_rating(self, value: int) -> None:
        with self._lock:
            self._rating = value

    def __repr__(self) -> str:
        return f"Player(name={self._name!r}, rating={self.rating})"


def _expected(own: int, other: int) -> float:
    return 1.0 / (1.0 + 10.0 ** _trunc_div(other - own, _SCALE))


def post_result(player1: Player, player2: Player, result: int) -> None:
    """Update both ratings after a game.

    result is 0 for a draw, 1 if player1 won, and anything else if player2 won.
    """
    if result == 0:
        score1, score2 = 0.5, 0.5
    elif result == 1:
        score1, score2 = 1.0, 0.0
    else:
        score1, score2 = 0.0, 1.0

    rating1 = player1.rating
    rating2 = player2.rating
    expected1 = _expected(rating1, rating2)
    expected2 = _expected(rating2, rating1)

    player1._set_rating(int(rating1 + _K_FACTOR * (score1 - expected1)))
    player2._set_rating(int(rating2 + _K_FACTOR * (score2 - expected2)))
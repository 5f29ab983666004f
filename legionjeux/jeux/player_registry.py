"""A thread-safe mapping from usernames to players that lasts as long as the server."""

from __future__ import annotations

import threading

from legionjeux.jeux.player import Player


class PlayerRegistry:
    """Keeps one Player per username, creating it on first registration."""

    def __init__(self) -> None:
        self._players: dict[str, Player] = {}
        self._lock = threading.Lock()

    def register(self, name: str) -> Player:
        """Return the player registered under name, creating it if needed."""
        with self._lock:
            player = self._players.get(name)
            if player is None:
                player = Player(name)
                self._players[name] = player
            return player

    def get(self, name: str) -> Player | None:
        """Return the player registered under name, or None."""
        with self._lock:
            return self._players.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._players)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._players
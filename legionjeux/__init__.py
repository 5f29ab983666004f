"""Daemon supervision and the core pieces of a two-player game server."""

__version__ = "0.1.0"
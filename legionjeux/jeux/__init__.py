"""Tic-tac-toe game, rated players, player registry and packet protocol."""
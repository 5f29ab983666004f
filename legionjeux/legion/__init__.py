"""Daemon supervisor and its command-line interface."""
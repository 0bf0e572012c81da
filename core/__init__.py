"""Shared helpers for the backup and health command-line tools."""

__version__ = "1.0.0"

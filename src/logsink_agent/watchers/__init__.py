"""Watcher implementations used by the logsink agent."""

from .file import FileSinkWatcher  # noqa: F401

__all__ = ["FileSinkWatcher"]

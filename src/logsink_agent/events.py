"""Event primitives published by sink watchers."""

from __future__ import annotations

from dataclasses import dataclass

from logsink.sinks import AnySink


@dataclass(frozen=True)
class SinkUpsert:
    """A sink was created or changed.

    The event carries the complete declaration; it replaces whatever the
    registry held for the same identity.
    """

    sink: AnySink


@dataclass(frozen=True)
class SinkDelete:
    """Signals that a sink should be removed entirely."""

    sink: AnySink

"""Apply sink events to the registry."""

from __future__ import annotations

from typing import Optional

from logsink.registry import SinkRegistry
from logsink.sinks import ClusterLogSink, LogSink

from .events import SinkDelete, SinkUpsert
from .writer import ConfigWriter, RenderResult


class SinkEventHandler:
    """Dispatch sink events to the registry and refresh the output file."""

    def __init__(
        self,
        registry: SinkRegistry,
        writer: Optional[ConfigWriter] = None,
    ) -> None:
        self._registry = registry
        self._writer = writer

    @property
    def registry(self) -> SinkRegistry:
        return self._registry

    def handle(self, event: SinkUpsert | SinkDelete) -> Optional[RenderResult]:
        if isinstance(event, SinkUpsert):
            self._on_upsert(event)
        elif isinstance(event, SinkDelete):
            self._on_delete(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event)!r}")

        if self._writer is None:
            return None
        return self._writer.sync()

    def _on_upsert(self, event: SinkUpsert) -> None:
        sink = event.sink
        if isinstance(sink, ClusterLogSink):
            self._registry.upsert_cluster_sink(sink)
        elif isinstance(sink, LogSink):
            self._registry.upsert_sink(sink)
        else:
            raise TypeError(f"Unsupported sink type: {type(sink)!r}")

    def _on_delete(self, event: SinkDelete) -> None:
        sink = event.sink
        if isinstance(sink, ClusterLogSink):
            self._registry.delete_cluster_sink(sink)
        elif isinstance(sink, LogSink):
            self._registry.delete_sink(sink)
        else:
            raise TypeError(f"Unsupported sink type: {type(sink)!r}")

"""File-based sink watcher."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event, Thread
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from logsink.sinks import AnySink, ManifestError, identity, sink_from_manifest

from ..events import SinkDelete, SinkUpsert
from ..handler import SinkEventHandler

LOG = logging.getLogger(__name__)

Identity = Tuple[str, str]


def _documents(payload: Iterable[Any]) -> List[Any]:
    docs: List[Any] = []
    for doc in payload:
        if doc is None:
            continue
        if isinstance(doc, list):
            docs.extend(doc)
        elif isinstance(doc, dict) and "items" in doc:
            items = doc["items"] or []
            if not isinstance(items, list):
                raise ValueError("sinks file 'items' must be a list")
            docs.extend(items)
        else:
            docs.append(doc)
    return docs


def _extract_state(payload: Iterable[Any]) -> Dict[Identity, AnySink]:
    state: Dict[Identity, AnySink] = {}
    for doc in _documents(payload):
        try:
            sink = sink_from_manifest(doc)
        except ManifestError as exc:
            LOG.warning("skipping invalid sink manifest: %s", exc)
            continue
        state[identity(sink)] = sink
    return state


class FileSinkWatcher(Thread):
    """Poll a YAML (or JSON) sinks file and publish sink events."""

    def __init__(
        self,
        handler: SinkEventHandler,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._handler = handler
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._state: Dict[Identity, AnySink] = {}

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> None:
        if not self._path.exists():
            LOG.debug("sinks file %s does not exist yet", self._path)
            return

        try:
            payload = list(yaml.safe_load_all(self._path.read_text()))
        except yaml.YAMLError as exc:
            LOG.warning("failed to parse sinks file %s: %s", self._path, exc)
            return

        try:
            desired = _extract_state(payload)
        except ValueError as exc:
            LOG.warning("invalid sinks file %s: %s", self._path, exc)
            return

        for key, sink in desired.items():
            if self._state.get(key) != sink:
                LOG.debug("%s %s updated", *key)
                self._handler.handle(SinkUpsert(sink))

        for key in [k for k in self._state if k not in desired]:
            LOG.debug("%s %s removed", *key)
            self._handler.handle(SinkDelete(self._state[key]))

        self._state = desired

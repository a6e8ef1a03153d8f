"""Write rendered output configuration to disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from logsink.registry import SinkRegistry

LOG = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Result of a render + write cycle."""

    config_text: str
    output_path: Path
    changed: bool


class ConfigWriter:
    """Persist :meth:`SinkRegistry.render` output for the forwarder.

    The file is only rewritten when the rendered text differs from the last
    write, so anything reloading fluent-bit on file changes does not fire for
    no-op updates.
    """

    def __init__(self, registry: SinkRegistry, output_path: Path) -> None:
        self._registry = registry
        self._output_path = Path(output_path)
        self._last_text: Optional[str] = None

    @property
    def output_path(self) -> Path:
        return self._output_path

    def sync(self) -> RenderResult:
        text = self._registry.render()
        if text == self._last_text:
            LOG.debug("output configuration unchanged")
            return RenderResult(text, self._output_path, changed=False)

        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._output_path.with_name(self._output_path.name + ".tmp")
        tmp_path.write_text(text)
        tmp_path.replace(self._output_path)
        self._last_text = text
        LOG.info("Rendered fluent-bit outputs to %s", self._output_path)
        return RenderResult(text, self._output_path, changed=True)

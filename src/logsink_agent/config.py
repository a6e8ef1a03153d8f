"""YAML configuration loader for the logsink agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

import yaml

DEFAULT_OUTPUT_PATH = Path("/fluent-bit/etc/outputs.conf")


@dataclass
class RendererConfig:
    stats_addr: str
    output_path: Path = DEFAULT_OUTPUT_PATH


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0


@dataclass
class AgentConfig:
    renderer: RendererConfig
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_renderer(section: dict) -> RendererConfig:
    if not isinstance(section, dict):
        raise ValueError("'renderer' section must be a mapping")
    stats_addr = section.get("stats_addr")
    if not stats_addr:
        raise ValueError("Configuration missing 'renderer.stats_addr'")

    return RendererConfig(
        stats_addr=str(stats_addr),
        output_path=Path(section.get("output_path", DEFAULT_OUTPUT_PATH)),
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("each watcher entry must be a mapping")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 5.0))),
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    renderer_section = data.get("renderer")
    if renderer_section is None:
        raise ValueError("Configuration missing 'renderer' section")
    renderer = _parse_renderer(renderer_section)

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return AgentConfig(renderer=renderer, watchers=watchers)

#!/usr/bin/env python3
"""Render fluent-bit output configuration from a sinks manifest file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from threading import Event

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from logsink.registry import SinkRegistry  # noqa: E402
from logsink_agent.handler import SinkEventHandler  # noqa: E402
from logsink_agent.watchers import FileSinkWatcher  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--sinks",
        type=Path,
        default=Path("deploy/sinks.yaml"),
        help="Path to a YAML/JSON file holding LogSink and ClusterLogSink manifests",
    )
    parser.add_argument(
        "--stats-addr",
        default="127.0.0.1:5000",
        help="Stats address embedded in the rendered outputs",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the configuration here instead of stdout",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    registry = SinkRegistry(args.stats_addr)
    watcher = FileSinkWatcher(
        handler=SinkEventHandler(registry),
        path=args.sinks,
        interval=0,
        stop_event=Event(),
    )
    watcher.poll()

    if not len(registry):
        LOG.warning("No sinks loaded from %s (check the manifest)", args.sinks)

    rendered = registry.render()
    if registry.dropped_webhooks:
        LOG.warning("%d webhook sinks dropped due to malformed urls", registry.dropped_webhooks)

    if args.output is None:
        sys.stdout.write(rendered)
        return

    args.output.write_text(rendered)
    LOG.info("Rendered config written to %s", args.output)


if __name__ == "__main__":
    main()

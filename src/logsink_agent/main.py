"""Entry point for the standalone logsink agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from logsink.registry import SinkRegistry

from .config import load_config
from .handler import SinkEventHandler
from .watchers import FileSinkWatcher
from .writer import ConfigWriter

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the logsink agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/logsink/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Poll every watcher once, write the configuration and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)

    registry = SinkRegistry(config.renderer.stats_addr)
    writer = ConfigWriter(registry, config.renderer.output_path)
    handler = SinkEventHandler(registry, writer)

    # Write the null output right away so the forwarder can start.
    writer.sync()

    stop_event = Event()

    watchers = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type == "file":
            watcher = FileSinkWatcher(
                handler=handler,
                path=watcher_cfg.path,
                interval=watcher_cfg.interval,
                stop_event=stop_event,
            )
        else:
            raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")
        # Perform an initial poll so we react immediately
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged inside watcher
            LOG.exception("initial poll failed for watcher %s", watcher_cfg.path)
        watchers.append(watcher)

    if args.once:
        LOG.info("rendered %d sinks, exiting", len(registry))
        return 0

    for watcher in watchers:
        watcher.start()

    if not watchers:
        LOG.warning("no watchers configured; agent will idle")

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()

    LOG.info("logsink agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

from pathlib import Path

import pytest

from logsink import LogSink, SinkRegistry, SinkSpec
from logsink.fluentbit import null_stanza
from logsink_agent.events import SinkDelete, SinkUpsert
from logsink_agent.handler import SinkEventHandler
from logsink_agent.writer import ConfigWriter


def build_handler(tmp_path: Path) -> SinkEventHandler:
    registry = SinkRegistry("127.0.0.1:5000")
    writer = ConfigWriter(registry, tmp_path / "fluent-bit" / "outputs.conf")
    return SinkEventHandler(registry, writer)


def test_writer_writes_null_config(tmp_path: Path):
    registry = SinkRegistry("127.0.0.1:5000")
    writer = ConfigWriter(registry, tmp_path / "outputs.conf")

    result = writer.sync()

    assert result.changed is True
    assert result.output_path.read_text() == null_stanza("127.0.0.1:5000")


def test_writer_skips_unchanged_output(tmp_path: Path):
    registry = SinkRegistry("127.0.0.1:5000")
    writer = ConfigWriter(registry, tmp_path / "outputs.conf")

    writer.sync()
    second = writer.sync()

    assert second.changed is False


def test_handler_applies_events(tmp_path: Path):
    handler = build_handler(tmp_path)
    sink = LogSink("hook", "ns1", SinkSpec(type="webhook", url="https://example.com/in"))

    result = handler.handle(SinkUpsert(sink))

    assert result is not None
    assert result.changed is True
    assert "    Match *_ns1_*\n" in result.output_path.read_text()

    result = handler.handle(SinkDelete(sink))
    assert result.output_path.read_text() == null_stanza("127.0.0.1:5000")


def test_handler_without_writer_returns_none():
    registry = SinkRegistry("127.0.0.1:5000")
    handler = SinkEventHandler(registry)
    sink = LogSink("s", "ns1", SinkSpec(type="syslog", host="h", port=514))

    assert handler.handle(SinkUpsert(sink)) is None
    assert registry.sinks() == [sink]


def test_handler_rejects_unknown_events(tmp_path: Path):
    handler = build_handler(tmp_path)

    with pytest.raises(TypeError):
        handler.handle("not an event")  # type: ignore[arg-type]

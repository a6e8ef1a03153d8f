from pathlib import Path

import pytest

from logsink_agent.config import DEFAULT_OUTPUT_PATH, load_config


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
renderer:
  stats_addr: 127.0.0.1:5000
  output_path: /var/lib/fluent-bit/outputs.conf
watchers:
  - type: file
    path: /etc/logsink/sinks.yaml
    interval: 2
  - type: file
    path: /etc/logsink/cluster-sinks.yaml
    poll_interval: 1.5
"""
    )

    cfg = load_config(config_path)

    assert cfg.renderer.stats_addr == "127.0.0.1:5000"
    assert cfg.renderer.output_path == Path("/var/lib/fluent-bit/outputs.conf")
    assert len(cfg.watchers) == 2
    watcher = cfg.watchers[0]
    assert watcher.type == "file"
    assert watcher.path == Path("/etc/logsink/sinks.yaml")
    assert watcher.interval == pytest.approx(2.0)

    second = cfg.watchers[1]
    assert second.interval == pytest.approx(1.5)


def test_load_config_defaults(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("renderer:\n  stats_addr: 0.0.0.0:2020\n")

    cfg = load_config(config_path)

    assert cfg.renderer.output_path == DEFAULT_OUTPUT_PATH
    assert list(cfg.watchers) == []


@pytest.mark.parametrize(
    "content",
    [
        "- just a list\n",
        "watchers: []\n",
        "renderer:\n  output_path: /tmp/out.conf\n",
        "renderer:\n  stats_addr: a:1\nwatchers: {}\n",
        "renderer:\n  stats_addr: a:1\nwatchers:\n  - file\n",
    ],
)
def test_load_config_rejects_invalid(tmp_path: Path, content: str):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(content)

    with pytest.raises(ValueError):
        load_config(config_path)

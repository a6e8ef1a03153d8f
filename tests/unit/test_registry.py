from threading import Thread

from logsink import ClusterLogSink, LogSink, SinkRegistry, SinkSpec
from logsink.fluentbit import null_stanza

STATS_ADDR = "127.0.0.1:5000"


def syslog_sink(name: str, namespace: str, host: str = "logs.example.com") -> LogSink:
    return LogSink(
        name=name,
        namespace=namespace,
        spec=SinkSpec(type="syslog", host=host, port=514),
    )


def webhook_sink(name: str, namespace: str, url: str) -> LogSink:
    return LogSink(name=name, namespace=namespace, spec=SinkSpec(type="webhook", url=url))


def cluster_webhook(name: str, url: str) -> ClusterLogSink:
    return ClusterLogSink(name=name, spec=SinkSpec(type="webhook", url=url))


def test_empty_registry_renders_null_stanza():
    registry = SinkRegistry(STATS_ADDR)

    assert registry.render() == null_stanza(STATS_ADDR)
    assert str(registry) == registry.render()


def test_render_is_stable():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(syslog_sink("a", "ns1"))
    registry.upsert_sink(webhook_sink("w", "ns1", "https://example.com/path"))
    registry.upsert_cluster_sink(cluster_webhook("cw", "http://collector:8080"))

    assert registry.render() == registry.render()


def test_upsert_then_delete_restores_output():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(syslog_sink("a", "ns1"))
    before = registry.render()

    sink = syslog_sink("b", "ns2")
    registry.upsert_sink(sink)
    assert registry.render() != before

    registry.delete_sink(sink)
    assert registry.render() == before


def test_upsert_replaces_by_identity():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(syslog_sink("a", "ns1", host="old.example.com"))
    registry.upsert_sink(syslog_sink("a", "ns1", host="new.example.com"))

    rendered = registry.render()

    assert len(registry) == 1
    assert "new.example.com:514" in rendered
    assert "old.example.com" not in rendered


def test_same_name_in_different_namespaces_are_distinct():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(syslog_sink("a", "ns1"))
    registry.upsert_sink(syslog_sink("a", "ns2"))

    assert len(registry.sinks()) == 2


def test_delete_missing_is_noop():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(syslog_sink("a", "ns1"))
    before = registry.render()

    registry.delete_sink(syslog_sink("missing", "ns1"))
    registry.delete_cluster_sink(cluster_webhook("missing", "http://x"))

    assert registry.render() == before


def test_delete_by_key():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(syslog_sink("a", "ns1"))
    registry.upsert_cluster_sink(cluster_webhook("cw", "http://collector"))

    registry.delete_sink_key("ns1", "a")
    registry.delete_cluster_sink_key("cw")

    assert len(registry) == 0
    assert registry.render() == null_stanza(STATS_ADDR)


def test_syslog_sorting_ignores_insertion_order():
    first = SinkRegistry(STATS_ADDR)
    first.upsert_sink(syslog_sink("x", "b"))
    first.upsert_sink(syslog_sink("y", "a"))

    second = SinkRegistry(STATS_ADDR)
    second.upsert_sink(syslog_sink("y", "a"))
    second.upsert_sink(syslog_sink("x", "b"))

    rendered = first.render()
    assert rendered == second.render()
    assert rendered.index('"namespace":"a"') < rendered.index('"namespace":"b"')


def test_syslog_stanza_precedes_webhooks():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(webhook_sink("w", "ns1", "https://example.com/path"))
    registry.upsert_sink(syslog_sink("a", "ns1"))

    rendered = registry.render()

    assert rendered.index("Name syslog") < rendered.index("Name http")


def test_webhook_only_registry_has_no_syslog_stanza():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(webhook_sink("w", "ns1", "https://example.com/path"))

    rendered = registry.render()

    assert "Name syslog" not in rendered
    assert "Name null" not in rendered
    assert "    Match *_ns1_*\n" in rendered
    assert "    Host example.com\n" in rendered
    assert "    Port 443\n" in rendered
    assert "    URI /path\n" in rendered
    assert "    tls On\n" in rendered


def test_cluster_webhook_matches_everything():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_cluster_sink(cluster_webhook("cw", "http://example.com"))

    rendered = registry.render()

    assert "    Match *\n" in rendered
    assert "    Port 80\n" in rendered
    assert "    URI /\n" in rendered
    assert "tls On" not in rendered


def test_malformed_webhook_does_not_abort_render():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(webhook_sink("bad", "ns1", "://bad"))
    registry.upsert_sink(webhook_sink("good", "ns2", "http://example.com"))

    rendered = registry.render()

    assert rendered.count("[OUTPUT]") == 1
    assert "    Match *_ns2_*\n" in rendered
    assert registry.dropped_webhooks == 1


def test_unknown_type_is_not_rendered():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_sink(
        LogSink(name="k", namespace="ns1", spec=SinkSpec(type="kafka", host="k", port=9092))
    )

    assert registry.render() == ""


def test_cluster_syslog_sinks_render_without_namespace():
    registry = SinkRegistry(STATS_ADDR)
    registry.upsert_cluster_sink(
        ClusterLogSink(name="c1", spec=SinkSpec(type="syslog", host="h", port=514))
    )

    rendered = registry.render()

    assert '    Sinks []\n' in rendered
    assert '    ClusterSinks [{"addr":"h:514","name":"c1"}]\n' in rendered


def test_concurrent_mutations():
    registry = SinkRegistry(STATS_ADDR)

    def worker(namespace: str) -> None:
        for i in range(50):
            registry.upsert_sink(syslog_sink(f"s{i}", namespace))
            registry.render()

    threads = [Thread(target=worker, args=(f"ns{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 200
    assert registry.render().count('"addr"') == 200

"""Sink declarations and identity helpers.

These dataclasses mirror the ``LogSink`` / ``ClusterLogSink`` custom resources
closely enough for rendering purposes without pulling in a Kubernetes client.
Only the fields the renderer needs are kept; status and object metadata other
than identity are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Union

# Neither namespaces nor object names may contain ``|``, so joining identity
# parts with it cannot produce colliding keys.
KEY_SEPARATOR = "|"

LOG_SINK_KIND = "LogSink"
CLUSTER_LOG_SINK_KIND = "ClusterLogSink"


class SinkType(str, Enum):
    """Sink types understood by the renderer.

    Declarations may carry any other string as their type; those are kept in
    the registry but never rendered.
    """

    SYSLOG = "syslog"
    WEBHOOK = "webhook"


class ManifestError(ValueError):
    """Raised when a manifest cannot be turned into a sink declaration."""


@dataclass(frozen=True)
class SinkSpec:
    """Destination description shared by both sink kinds.

    Attributes
    ----------
    type:
        ``"syslog"`` or ``"webhook"``.
    host, port:
        Syslog endpoint.  Only meaningful for syslog sinks.
    enable_tls:
        Whether the syslog connection is wrapped in TLS.
    insecure_skip_verify:
        Skip certificate verification when ``enable_tls`` is set.
    url:
        Absolute URL of a webhook sink.
    """

    type: str
    host: str = ""
    port: int = 0
    enable_tls: bool = False
    insecure_skip_verify: bool = False
    url: str = ""


@dataclass(frozen=True)
class LogSink:
    """Namespaced sink; only receives logs from its own namespace."""

    name: str
    namespace: str
    spec: SinkSpec


@dataclass(frozen=True)
class ClusterLogSink:
    """Cluster-wide sink receiving logs from every namespace."""

    name: str
    spec: SinkSpec
    cluster_name: str = ""


AnySink = Union[LogSink, ClusterLogSink]


def sink_key(sink: LogSink) -> str:
    return namespaced_key(sink.namespace, sink.name)


def cluster_sink_key(sink: ClusterLogSink) -> str:
    return cluster_key(sink.cluster_name, sink.name)


def namespaced_key(namespace: str, name: str) -> str:
    return f"{namespace}{KEY_SEPARATOR}{name}"


def cluster_key(cluster_name: str, name: str) -> str:
    return f"{cluster_name}{KEY_SEPARATOR}{name}"


def _flag(spec: Mapping[str, Any], *names: str) -> bool:
    for name in names:
        if name in spec:
            return bool(spec[name])
    return False


def _parse_spec(section: Any) -> SinkSpec:
    if not isinstance(section, Mapping):
        raise ManifestError("sink 'spec' must be a mapping")

    port_raw = section.get("port", 0)
    try:
        port = int(port_raw)
    except (TypeError, ValueError):
        raise ManifestError(f"sink port {port_raw!r} is not an integer") from None

    return SinkSpec(
        type=str(section.get("type", "")),
        host=str(section.get("host", "")),
        port=port,
        enable_tls=_flag(section, "enable_tls", "enableTLS"),
        insecure_skip_verify=_flag(
            section, "insecure_skip_verify", "insecureSkipVerify"
        ),
        url=str(section.get("url", "")),
    )


def sink_from_manifest(doc: Any) -> AnySink:
    """Build a declaration from a Kubernetes-style resource mapping.

    Only structure is checked here.  Host, port range and URL syntax are left
    to whoever produced the manifest, the same way the API server admission
    would.
    """

    if not isinstance(doc, Mapping):
        raise ManifestError("sink manifest must be a mapping")

    metadata = doc.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise ManifestError("sink 'metadata' must be a mapping")
    name = metadata.get("name")
    if not name:
        raise ManifestError("sink manifest missing 'metadata.name'")

    spec = _parse_spec(doc.get("spec", {}))
    kind = doc.get("kind", LOG_SINK_KIND)
    if kind == LOG_SINK_KIND:
        return LogSink(
            name=str(name),
            namespace=str(metadata.get("namespace") or ""),
            spec=spec,
        )
    if kind == CLUSTER_LOG_SINK_KIND:
        return ClusterLogSink(
            name=str(name),
            spec=spec,
            cluster_name=str(metadata.get("clusterName") or ""),
        )
    raise ManifestError(f"unsupported sink kind '{kind}'")


def identity(sink: AnySink) -> tuple[str, str]:
    """Return ``(kind, key)`` uniquely identifying ``sink``."""

    if isinstance(sink, ClusterLogSink):
        return CLUSTER_LOG_SINK_KIND, cluster_sink_key(sink)
    return LOG_SINK_KIND, sink_key(sink)

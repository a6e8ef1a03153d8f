"""fluent-bit ``[OUTPUT]`` stanza builders."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import unquote, urlsplit

from .sinks import ClusterLogSink, LogSink, SinkType

LOG = logging.getLogger(__name__)

INDENT = "    "
EMPTY_JSON_ARRAY = "[]"
DEFAULT_NAMESPACE = "default"
DEFAULT_PORTS = {"https": "443", "http": "80"}
TLS_DIRECTIVE = "tls On"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# ASCII characters allowed in a host besides letters and digits; non-ASCII
# bytes pass through.
_HOST_CHARS = frozenset("-._~!$&'()*+,;=:[]<>\"%")


def _stanza(lines: Iterable[str]) -> str:
    body = [f"{INDENT}{line}" for line in lines]
    return "\n".join(["", "[OUTPUT]", *body]) + "\n"


def null_stanza(stats_addr: str) -> str:
    """Placeholder output so the forwarder always has something to load."""

    return _stanza(["Name null", "Match *", f"StatsAddr {stats_addr}"])


def canonical_namespace(namespace: str) -> str:
    return namespace or DEFAULT_NAMESPACE


@dataclass(frozen=True)
class SyslogRecord:
    """One entry of the ``Sinks`` / ``ClusterSinks`` arrays."""

    addr: str
    name: str = ""
    namespace: str = ""
    tls: Optional[bool] = None  # None: plain TCP, otherwise insecure_skip_verify

    def to_dict(self) -> Dict[str, Any]:
        # Empty values are omitted, the plugin treats a missing key as unset.
        record: Dict[str, Any] = {"addr": self.addr}
        if self.namespace:
            record["namespace"] = self.namespace
        if self.tls is not None:
            record["tls"] = {"insecure_skip_verify": True} if self.tls else {}
        if self.name:
            record["name"] = self.name
        return record

    def sort_key(self) -> Tuple[str, str]:
        return self.namespace, self.name


def _tls_setting(enable_tls: bool, insecure_skip_verify: bool) -> Optional[bool]:
    if not enable_tls:
        return None
    return insecure_skip_verify


def syslog_record(sink: LogSink) -> SyslogRecord:
    spec = sink.spec
    return SyslogRecord(
        addr=f"{spec.host}:{spec.port}",
        namespace=canonical_namespace(sink.namespace),
        tls=_tls_setting(spec.enable_tls, spec.insecure_skip_verify),
        name=sink.name,
    )


def cluster_syslog_record(sink: ClusterLogSink) -> SyslogRecord:
    spec = sink.spec
    return SyslogRecord(
        addr=f"{spec.host}:{spec.port}",
        tls=_tls_setting(spec.enable_tls, spec.insecure_skip_verify),
        name=sink.name,
    )


def encode_records(records: Sequence[SyslogRecord]) -> str:
    """Serialize ``records`` as a compact JSON array.

    Raises ``TypeError`` or ``ValueError`` when a record holds something JSON
    cannot represent.
    """

    return json.dumps(
        [record.to_dict() for record in records],
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


@dataclass(frozen=True)
class ParsedURL:
    scheme: str
    host: str
    port: str
    path: str


def _split_netloc(netloc: str) -> Tuple[str, str]:
    hostport = netloc.rpartition("@")[2]
    if hostport.startswith("["):
        host, _, rest = hostport[1:].partition("]")
        return host, rest[1:] if rest.startswith(":") else ""
    host, _, port = hostport.partition(":")
    return host, port


def parse_url(raw: str) -> ParsedURL:
    """Parse ``raw`` into the pieces an HTTP stanza needs.

    Raises ``ValueError`` for control characters, a missing scheme in front
    of ``:``, malformed IPv6 literals, invalid host characters, bad percent
    escapes and ports that are not ASCII digits.
    """

    if _CONTROL_CHARS.search(raw):
        raise ValueError("invalid control character in URL")
    if raw.startswith(":"):
        raise ValueError("missing protocol scheme")

    parts = urlsplit(raw)
    host, port = _split_netloc(parts.netloc)
    if port and not (port.isascii() and port.isdigit()):
        raise ValueError(f"invalid port {port!r}")
    if _BAD_ESCAPE.search(host):
        raise ValueError("invalid URL escape in host")
    if _BAD_ESCAPE.search(parts.path):
        raise ValueError("invalid URL escape in path")
    for char in host:
        if char.isascii() and not char.isalnum() and char not in _HOST_CHARS:
            raise ValueError(f"invalid character {char!r} in host name")

    return ParsedURL(
        scheme=parts.scheme,
        host=unquote(host),
        port=port,
        path=unquote(parts.path),
    )


def http_stanza(namespace: str, url: str, is_cluster: bool) -> str:
    """Render one HTTP output for a webhook sink.

    Returns an empty string when ``url`` does not parse; the sink is simply
    left out of the configuration.
    """

    try:
        parsed = parse_url(url)
    except ValueError as exc:
        LOG.warning("dropping webhook sink with malformed url %r: %s", url, exc)
        return ""

    port = parsed.port or DEFAULT_PORTS.get(parsed.scheme, "")
    path = parsed.path or "/"
    match = "*" if is_cluster else f"*_{namespace}_*"
    extras = TLS_DIRECTIVE if parsed.scheme == "https" else ""

    return _stanza(
        [
            "Name http",
            f"Match {match}",
            "Format json",
            f"Host {parsed.host}",
            f"Port {port}",
            f"URI {path}",
            extras,
        ]
    )


class StanzaRenderer:
    """Render the syslog and webhook outputs for a set of sink declarations.

    The renderer itself holds no sink state; it only keeps counters for the
    degraded paths (arrays that failed to serialize, webhooks dropped because
    of an unparseable URL) so callers can surface them.
    """

    def __init__(self, stats_addr: str) -> None:
        self._stats_addr = stats_addr
        self.serialization_failures = 0
        self.dropped_webhooks = 0

    @property
    def stats_addr(self) -> str:
        return self._stats_addr

    def render(
        self,
        sinks: Sequence[LogSink],
        cluster_sinks: Sequence[ClusterLogSink],
    ) -> str:
        if not sinks and not cluster_sinks:
            return null_stanza(self._stats_addr)
        return self.syslog_stanza(sinks, cluster_sinks) + self.webhook_stanzas(
            sinks, cluster_sinks
        )

    # ------------------------------------------------------------------
    # syslog
    # ------------------------------------------------------------------
    def syslog_stanza(
        self,
        sinks: Iterable[LogSink],
        cluster_sinks: Iterable[ClusterLogSink],
    ) -> str:
        records = sorted(
            (syslog_record(s) for s in sinks if s.spec.type == SinkType.SYSLOG),
            key=SyslogRecord.sort_key,
        )
        cluster_records = sorted(
            (
                cluster_syslog_record(s)
                for s in cluster_sinks
                if s.spec.type == SinkType.SYSLOG
            ),
            key=lambda record: record.name,
        )
        if not records and not cluster_records:
            return ""

        return _stanza(
            [
                "Name syslog",
                "Match *",
                f"StatsAddr {self._stats_addr}",
                f"Sinks {self._encode(records, 'sinks')}",
                f"ClusterSinks {self._encode(cluster_records, 'cluster sinks')}",
            ]
        )

    def _encode(self, records: Sequence[SyslogRecord], label: str) -> str:
        try:
            return encode_records(records)
        except (TypeError, ValueError) as exc:
            self.serialization_failures += 1
            LOG.warning("unable to marshal %s: %s", label, exc)
            return EMPTY_JSON_ARRAY

    # ------------------------------------------------------------------
    # webhook
    # ------------------------------------------------------------------
    def webhook_stanzas(
        self,
        sinks: Iterable[LogSink],
        cluster_sinks: Iterable[ClusterLogSink],
    ) -> str:
        # Emitted in registry order; no sort is applied here.
        targets: List[Tuple[str, str, bool]] = [
            (s.namespace, s.spec.url, False)
            for s in sinks
            if s.spec.type == SinkType.WEBHOOK
        ]
        targets.extend(
            ("", s.spec.url, True)
            for s in cluster_sinks
            if s.spec.type == SinkType.WEBHOOK
        )

        stanzas = []
        for namespace, url, is_cluster in targets:
            stanza = http_stanza(namespace, url, is_cluster)
            if not stanza:
                self.dropped_webhooks += 1
                continue
            stanzas.append(stanza)
        return "".join(stanzas)

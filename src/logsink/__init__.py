"""Fluent-bit sink configuration registry.

This package keeps track of the ``LogSink`` and ``ClusterLogSink`` resources
observed in the cluster and turns them into the ``[OUTPUT]`` stanzas consumed
by the fluent-bit forwarder.  It is deliberately free of Kubernetes client
dependencies: whatever watches the API server feeds declarations into a
:class:`logsink.registry.SinkRegistry` and asks it for the rendered text.

The package focuses on:

* describing sink declarations as small immutable dataclasses;
* keying them by identity so later updates replace earlier ones;
* rendering syslog and HTTP output stanzas deterministically so an unchanged
  registry always produces the same bytes.
"""

from .registry import SinkRegistry  # noqa: F401
from .sinks import ClusterLogSink, LogSink, SinkSpec, SinkType  # noqa: F401

__all__ = [
    "ClusterLogSink",
    "LogSink",
    "SinkRegistry",
    "SinkSpec",
    "SinkType",
]

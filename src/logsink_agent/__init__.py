"""logsink agent runtime helpers."""

from .config import AgentConfig, load_config  # noqa: F401

__all__ = [
    "AgentConfig",
    "load_config",
]

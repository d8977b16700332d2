"""Core layer: logging, exceptions, configuration loading, and metrics.

Depends on nothing else in relayfeed and is used by every other layer.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][relayfeed.core.logger.Logger].
    StructuredFormatter: Root-handler formatter unifying ``Logger`` output
        with plain ``logging`` calls.
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
        See [MetricsServer][relayfeed.core.metrics.MetricsServer].
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][relayfeed.core.yaml.load_yaml].
"""

from .exceptions import (
    ConfigurationError,
    ConnectivityError,
    NoOpenRelay,
    ProtocolError,
    ProtocolParseError,
    PublishingError,
    RelayfeedError,
    SignerError,
    SignerUnavailable,
    ValidationRejected,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import MetricsConfig, MetricsServer
from .yaml import load_yaml


__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NoOpenRelay",
    "ProtocolError",
    "ProtocolParseError",
    "PublishingError",
    "RelayfeedError",
    "SignerError",
    "SignerUnavailable",
    "StructuredFormatter",
    "ValidationRejected",
    "format_kv_pairs",
    "load_yaml",
]

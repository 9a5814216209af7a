"""Alert Contract — data structures shared by client, discovery and check."""

from src.contracts.alert import AlertRecord, PageEnvelope
from src.contracts.check import CheckViolation, CheckWindow, MetricSample, StatusResult
from src.contracts.enums import ExpectedState, Severity, StateCheckMode, severity_label
from src.contracts.errors import ConfigError, ExtensionError, PaginationError, TransportError
from src.contracts.target import TARGET_TYPE, Target

__all__ = [
    "TARGET_TYPE",
    "AlertRecord",
    "CheckViolation",
    "CheckWindow",
    "ConfigError",
    "ExpectedState",
    "ExtensionError",
    "MetricSample",
    "PageEnvelope",
    "PaginationError",
    "Severity",
    "StateCheckMode",
    "StatusResult",
    "Target",
    "TransportError",
    "severity_label",
]

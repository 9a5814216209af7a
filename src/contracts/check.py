"""Check window state and the values produced by a status tick."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from src.contracts.enums import ExpectedState, StateCheckMode

METRIC_ID = "splunk.alert.metric.id"
METRIC_LABEL = "splunk.alert.metric.label"
METRIC_STATE = "splunk.alert.metric.severity"
METRIC_TOOLTIP = "splunk.alert.metric.tooltip"
METRIC_TRIGGER_TIME = "splunk.alert.metric.triggerTime"


@dataclass(slots=True)
class CheckWindow:
    """Mutable state of one check instance.

    Invariants
    ──────────
      success_latched       — once True, never reset
      captured_trigger_time — set at most once (first observation)
    """

    target_id: str
    target_name: str
    fired_alerts_url: str
    window_start: datetime
    window_end: datetime
    expected_state: ExpectedState
    mode: StateCheckMode
    check_new_alerts_only: bool = False
    success_latched: bool = False
    captured_trigger_time: int | None = None


@dataclass(frozen=True, slots=True)
class CheckViolation:
    """The expected temporal condition was not met.  Returned, never raised."""

    title: str
    status: str = "failed"


@dataclass(frozen=True, slots=True)
class MetricSample:
    name: str
    metric: dict[str, str]
    timestamp: datetime
    value: float = 0.0


@dataclass(slots=True)
class StatusResult:
    completed: bool
    violation: CheckViolation | None = None
    metrics: list[MetricSample] = field(default_factory=list)

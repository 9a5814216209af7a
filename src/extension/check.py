"""Check — did an alert fire within a time window?

Lifecycle (driven by the host)
──────────────────────────────
  prepare — validate target + parameters, open the window [now, now + duration]
  start   — no-op
  status  — called every ``STATUS_CALL_INTERVAL_SEC`` until completed

State check modes
─────────────────
  allTheTime   — every tick must match the expected state; a mismatch is
                 reported immediately, even before the window ends
  atLeastOnce  — one matching tick latches success for the rest of the
                 window; failure is reported only once the window is over
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from src.contracts.alert import AlertRecord
from src.contracts.check import (
    METRIC_ID,
    METRIC_LABEL,
    METRIC_STATE,
    METRIC_TOOLTIP,
    METRIC_TRIGGER_TIME,
    CheckViolation,
    CheckWindow,
    MetricSample,
    StatusResult,
)
from src.contracts.enums import ExpectedState, StateCheckMode
from src.contracts.errors import ConfigError
from src.contracts.target import ATTRIBUTE_ID, ATTRIBUTE_NAME, ATTRIBUTE_URL, first_value
from src.shared.config_loader import parse_bool
from src.shared.timefmt import rfc3339, utc_now
from src.splunk.client import FiredAlertSource

log = logging.getLogger(__name__)

STATUS_CALL_INTERVAL_SEC = 1.0
DEFAULT_DURATION_MS = 30_000


# ═══════════════════════════════════════════════════════════════════════════
#  Parameter parsing
# ═══════════════════════════════════════════════════════════════════════════


def _to_duration(value: Any) -> timedelta:
    if value is None or value == "":
        return timedelta(milliseconds=DEFAULT_DURATION_MS)
    try:
        ms = int(float(value))
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigError(f"duration must be a number of milliseconds, got {value!r}") from exc
    if ms < 0:
        raise ConfigError(f"duration must not be negative, got {ms}")
    try:
        return timedelta(milliseconds=ms)
    except OverflowError as exc:
        raise ConfigError(f"duration is too large, got {ms}") from exc


def _to_enum(enum_cls, value: Any, param: str):
    text = "" if value is None else str(value).strip()
    if not text:
        raise ConfigError(f"{param} parameter is missing")
    try:
        return enum_cls(text)
    except ValueError as exc:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ConfigError(f"{param} must be one of {allowed}, got {text!r}") from exc


def open_window(
    target_attributes: dict[str, list[str]],
    config: dict[str, Any],
    now: datetime,
) -> CheckWindow:
    """Validate the prepare request and build a fresh CheckWindow."""
    alert_id = first_value(target_attributes, ATTRIBUTE_ID)
    if not alert_id:
        raise ConfigError("target is missing the id attribute")
    url = first_value(target_attributes, ATTRIBUTE_URL)
    if not url:
        raise ConfigError("target is missing the fired alert url attribute")

    expected_state = _to_enum(ExpectedState, config.get("expectedState"), "expectedState")
    mode = _to_enum(StateCheckMode, config.get("stateCheckMode"), "stateCheckMode")
    duration = _to_duration(config.get("duration"))
    try:
        window_end = now + duration
    except OverflowError as exc:
        raise ConfigError(f"duration is too large, got {duration}") from exc

    return CheckWindow(
        target_id=alert_id,
        target_name=first_value(target_attributes, ATTRIBUTE_NAME) or alert_id,
        fired_alerts_url=url,
        window_start=now,
        window_end=window_end,
        expected_state=expected_state,
        mode=mode,
        check_new_alerts_only=parse_bool("checkNewAlertsOnly", config.get("checkNewAlertsOnly")),
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Evaluation
# ═══════════════════════════════════════════════════════════════════════════


def check_fired_alerts(
    window: CheckWindow,
    client: FiredAlertSource,
    now: datetime | None = None,
) -> StatusResult:
    """Run one status tick against *window*.

    A ``TransportError`` from the client propagates before the window is
    touched, so the host can simply call again on its next tick.
    """
    now = now or utc_now()
    fired = client.list_fired_alerts(window.fired_alerts_url)

    if window.check_new_alerts_only:
        start = int(window.window_start.timestamp())
        fired = [a for a in fired if a.trigger_time > start]

    completed = now > window.window_end
    if window.mode is StateCheckMode.ALL_THE_TIME:
        violation = _check_all_the_time(window, fired)
    else:
        violation = _check_at_least_once(window, completed, fired)

    if violation is not None:
        log.info("Check %s: %s", window.target_id, violation.title)

    return StatusResult(
        completed=completed,
        violation=violation,
        metrics=[to_metric(window.target_name, fired, now)],
    )


def _not_fired_title(name: str, trigger_time: int) -> str:
    return f'Alert "{name}" should not have been fired but was at {rfc3339(trigger_time)}.'


def _check_all_the_time(window: CheckWindow, fired: list[AlertRecord]) -> CheckViolation | None:
    if window.expected_state is ExpectedState.NOT_FIRED and fired:
        return CheckViolation(_not_fired_title(window.target_name, fired[0].trigger_time))

    if window.expected_state is ExpectedState.FIRED and not fired:
        return CheckViolation(
            f'Alert "{window.target_name}" should have been fired all the time but was not.'
        )

    return None


def _check_at_least_once(
    window: CheckWindow,
    completed: bool,
    fired: list[AlertRecord],
) -> CheckViolation | None:
    expects_fired = window.expected_state is ExpectedState.FIRED
    if expects_fired == bool(fired):
        window.success_latched = True

    if not expects_fired and fired and window.captured_trigger_time is None:
        window.captured_trigger_time = fired[0].trigger_time

    if not completed or window.success_latched:
        return None

    if expects_fired:
        return CheckViolation(f'Alert "{window.target_name}" should have been fired but was not.')
    return CheckViolation(_not_fired_title(window.target_name, window.captured_trigger_time or 0))


def to_metric(alert_name: str, fired: list[AlertRecord], now: datetime) -> MetricSample:
    """One state-over-time sample; empty strings when nothing fired."""
    state = tooltip = trigger_time = ""
    if fired:
        trigger_time = rfc3339(fired[0].trigger_time)
        tooltip = f'Splunk Alert "{alert_name}" fired at {trigger_time}'
        state = "success"

    return MetricSample(
        name=f"Splunk Alert {alert_name}",
        metric={
            METRIC_ID: alert_name,
            METRIC_LABEL: alert_name,
            METRIC_STATE: state,
            METRIC_TOOLTIP: tooltip,
            METRIC_TRIGGER_TIME: trigger_time,
        },
        timestamp=now,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Action instance
# ═══════════════════════════════════════════════════════════════════════════


class AlertCheck:
    """One check instance; owns exactly one CheckWindow."""

    def __init__(self, client: FiredAlertSource):
        self.client = client
        self.window: CheckWindow | None = None

    def prepare(
        self,
        target_attributes: dict[str, list[str]],
        config: dict[str, Any],
        now: datetime | None = None,
    ) -> CheckWindow:
        self.window = open_window(target_attributes, config, now or utc_now())
        log.debug("Check action state: %s", self.window)
        return self.window

    def start(self) -> None:
        self._require_window()

    def status(self, now: datetime | None = None) -> StatusResult:
        return check_fired_alerts(self._require_window(), self.client, now)

    def _require_window(self) -> CheckWindow:
        if self.window is None:
            raise ConfigError("check has not been prepared")
        return self.window

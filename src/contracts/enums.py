"""Canonical enumerations for alert records and check parameters."""

from __future__ import annotations

from enum import Enum, IntEnum


class Severity(IntEnum):
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    SEVERE = 5
    FATAL = 6


def severity_label(ordinal: int) -> str:
    """Render a Splunk severity ordinal; anything outside 1..6 is "Unknown"."""
    try:
        return Severity(ordinal).name.title()
    except ValueError:
        return "Unknown"


class ExpectedState(str, Enum):
    FIRED = "alertFired"
    NOT_FIRED = "alertNotFired"


class StateCheckMode(str, Enum):
    AT_LEAST_ONCE = "atLeastOnce"
    ALL_THE_TIME = "allTheTime"

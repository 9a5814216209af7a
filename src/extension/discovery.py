"""Discovery — tracked alerts → Targets.

Each cycle asks the client for all tracked alerts and projects every
record onto a Target with a fixed attribute set, minus the configured
excludes.  A failed fetch yields an empty list together with the error;
``TargetCache`` decides whether to keep serving the previous list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.contracts.alert import AlertRecord
from src.contracts.enums import severity_label
from src.contracts.errors import TransportError
from src.contracts.target import (
    ATTRIBUTE_AUTHOR,
    ATTRIBUTE_ID,
    ATTRIBUTE_NAME,
    ATTRIBUTE_SEVERITY,
    ATTRIBUTE_URL,
    Target,
)
from src.splunk.client import TrackedAlertSource

log = logging.getLogger(__name__)

REFRESH_INTERVAL_SEC = 60


@dataclass(slots=True)
class DiscoveryResult:
    targets: list[Target]
    error: TransportError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def to_target(alert: AlertRecord) -> Target:
    return Target(
        id=alert.id,
        label=alert.name,
        attributes={
            ATTRIBUTE_ID: [alert.id],
            ATTRIBUTE_NAME: [alert.name],
            ATTRIBUTE_AUTHOR: [alert.author],
            ATTRIBUTE_SEVERITY: [severity_label(alert.severity)],
            ATTRIBUTE_URL: [alert.fired_alerts_url],
        },
    )


def _is_excluded(key: str, excludes: list[str]) -> bool:
    for pattern in excludes:
        if pattern.endswith("*"):
            if key.startswith(pattern[:-1]):
                return True
        elif key == pattern:
            return True
    return False


def apply_attribute_excludes(targets: list[Target], excludes: list[str]) -> list[Target]:
    """Drop attribute keys listed in *excludes* from every target (in place).

    An entry ending with ``*`` excludes all keys starting with that prefix.
    """
    if not excludes:
        return targets
    for target in targets:
        target.attributes = {
            k: v for k, v in target.attributes.items() if not _is_excluded(k, excludes)
        }
    return targets


class AlertDiscovery:
    """One discovery cycle per ``discover()`` call."""

    def __init__(self, client: TrackedAlertSource, attribute_excludes: list[str] | None = None):
        self.client = client
        self.attribute_excludes = list(attribute_excludes or [])

    def discover(self) -> DiscoveryResult:
        try:
            alerts = self.client.list_tracked_alerts()
        except TransportError as exc:
            log.warning("Failed to retrieve alerts: %s", exc)
            return DiscoveryResult(targets=[], error=exc)

        targets = apply_attribute_excludes(
            [to_target(a) for a in alerts], self.attribute_excludes
        )
        log.info("Discovered %d alert targets", len(targets))
        return DiscoveryResult(targets=targets)


class TargetCache:
    """Keeps the last successfully discovered target list.

    The host calls ``refresh()`` every ``REFRESH_INTERVAL_SEC``; readers
    call ``targets()`` at any time.
    """

    def __init__(self, discovery: AlertDiscovery):
        self.discovery = discovery
        self._targets: list[Target] = []
        self.last_result: DiscoveryResult | None = None

    def refresh(self) -> DiscoveryResult:
        result = self.discovery.discover()
        self.last_result = result
        if result.ok:
            self._targets = result.targets
        else:
            log.warning("Discovery failed — serving %d cached targets", len(self._targets))
        return result

    def targets(self) -> list[Target]:
        return list(self._targets)

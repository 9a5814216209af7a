"""Discovery target derived from a tracked alert."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

TARGET_TYPE = "com.steadybit.extension_splunk_platform.alert"

ATTRIBUTE_ID = "splunk.alert.id"
ATTRIBUTE_NAME = "splunk.alert.name"
ATTRIBUTE_AUTHOR = "splunk.alert.author"
ATTRIBUTE_SEVERITY = "splunk.alert.severity"
ATTRIBUTE_URL = "splunk.alert.url"

# attribute key -> (label one, label other)
ATTRIBUTE_LABELS: dict[str, tuple[str, str]] = {
    ATTRIBUTE_ID: ("ID", "IDs"),
    ATTRIBUTE_NAME: ("Name", "Names"),
    ATTRIBUTE_AUTHOR: ("Author", "Authors"),
    ATTRIBUTE_SEVERITY: ("Severity", "Severities"),
    ATTRIBUTE_URL: ("Fired Alert Url", "Fired Alert Urls"),
}


@dataclass(slots=True)
class Target:
    """An addressable alert, rebuilt from scratch on every discovery cycle."""

    id: str
    label: str
    attributes: dict[str, list[str]] = field(default_factory=dict)
    target_type: str = TARGET_TYPE

    def to_dict(self) -> dict:
        return asdict(self)


def first_value(attributes: dict[str, list[str]], key: str, default: str = "") -> str:
    """Return the first value of attribute *key*, or *default*."""
    values = attributes.get(key) or []
    return values[0] if values else default

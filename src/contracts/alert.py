"""Alert records as returned by the Splunk REST API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class AlertRecord:
    """One ``entry`` of a saved-search or fired-alert collection."""

    id: str
    name: str
    author: str = ""
    severity: int = 0  # 1..6, see contracts.enums.Severity
    trigger_time: int = 0  # epoch seconds, 0 = never fired
    fired_alerts_url: str = ""

    @classmethod
    def from_json(cls, entry: dict[str, Any]) -> AlertRecord:
        """Build a record from a decoded ``entry`` object.

        Missing keys fall back to empty values.  A severity or trigger
        time that is not an integer raises ``ValueError``/``TypeError``.
        """
        content = entry.get("content") or {}
        links = entry.get("links") or {}
        return cls(
            id=str(entry.get("id", "")),
            name=str(entry.get("name", "")),
            author=str(entry.get("author", "")),
            severity=int(content.get("alert.severity") or 0),
            trigger_time=int(content.get("trigger_time") or 0),
            fired_alerts_url=str(links.get("alerts", "")),
        )


@dataclass(frozen=True, slots=True)
class PageEnvelope:
    """One page of a paginated collection.

    ``total`` is the server's size of the whole collection as of this page.
    """

    total: int
    per_page: int
    offset: int
    entries: list[AlertRecord] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> PageEnvelope:
        paging = payload.get("paging") or {}
        return cls(
            total=int(paging.get("total", 0)),
            per_page=int(paging.get("perPage", 0)),
            offset=int(paging.get("offset", 0)),
            entries=[AlertRecord.from_json(e) for e in payload.get("entry") or []],
        )

"""Shared fixtures for Splunk alert extension tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from src.contracts.alert import AlertRecord
from src.contracts.check import CheckWindow
from src.contracts.enums import ExpectedState, StateCheckMode
from src.contracts.target import ATTRIBUTE_ID, ATTRIBUTE_NAME, ATTRIBUTE_URL
from src.shared.config_loader import Settings
from src.splunk.client import SplunkClient

BASE_URL = "https://splunk.test:8089"
TOKEN = "test-token"
FIRED_URL = "/servicesNS/nobody/search/alerts/disk_full"

# 2000-01-01T00:00:00Z
Y2K = 946684800

# ── Helpers: records, windows, targets ──────────────────────────────────


def make_record(
    *,
    id: str = "alert-1",
    name: str = "Alert Name",
    author: str = "admin",
    severity: int = 3,
    trigger_time: int = 0,
    fired_alerts_url: str = FIRED_URL,
) -> AlertRecord:
    return AlertRecord(
        id=id,
        name=name,
        author=author,
        severity=severity,
        trigger_time=trigger_time,
        fired_alerts_url=fired_alerts_url,
    )


def make_entry(
    *,
    id: str = "alert-1",
    name: str = "Alert Name",
    author: str = "admin",
    severity: int = 3,
    trigger_time: int = 0,
    fired_alerts_url: str = FIRED_URL,
) -> dict:
    """Raw Splunk JSON ``entry`` object."""
    return {
        "id": id,
        "name": name,
        "author": author,
        "content": {"alert.severity": severity, "trigger_time": trigger_time},
        "links": {"alerts": fired_alerts_url},
    }


def make_window(
    *,
    expected_state: ExpectedState = ExpectedState.FIRED,
    mode: StateCheckMode = StateCheckMode.AT_LEAST_ONCE,
    start: datetime | None = None,
    end: datetime | None = None,
    check_new_alerts_only: bool = False,
    name: str = "Alert Name",
) -> CheckWindow:
    """Window running from one minute ago to one minute ahead by default."""
    now = datetime.now(UTC).replace(microsecond=0)
    return CheckWindow(
        target_id="alertId",
        target_name=name,
        fired_alerts_url="http://example.com/alertId",
        window_start=start or now - timedelta(minutes=1),
        window_end=end or now + timedelta(minutes=1),
        expected_state=expected_state,
        mode=mode,
        check_new_alerts_only=check_new_alerts_only,
    )


def target_attributes(
    *,
    id: str | None = "id",
    name: str | None = "name",
    url: str | None = "url",
) -> dict[str, list[str]]:
    attrs = {}
    if id is not None:
        attrs[ATTRIBUTE_ID] = [id]
    if name is not None:
        attrs[ATTRIBUTE_NAME] = [name]
    if url is not None:
        attrs[ATTRIBUTE_URL] = [url]
    return attrs


# ── In-memory client stand-in ───────────────────────────────────────────


class FakeSplunk:
    """Returns a canned list (or raises a fixed error) for both queries."""

    def __init__(self, response: list[AlertRecord] | None = None, error: Exception | None = None):
        self.response = list(response or [])
        self.error = error
        self.calls: list[str | None] = []

    def list_tracked_alerts(self) -> list[AlertRecord]:
        self.calls.append(None)
        if self.error is not None:
            raise self.error
        return list(self.response)

    def list_fired_alerts(self, url: str) -> list[AlertRecord]:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return list(self.response)


# ── Simulated Splunk REST API ───────────────────────────────────────────


class SplunkApi:
    """httpx.MockTransport handler serving paginated collections.

    ``collections`` maps a URL path to its list of entry dicts.  Pages are
    cut with the request's ``offset``/``count``; ``total`` defaults to the
    collection length but can be overridden per path to simulate a server
    that never delivers what it announced.
    """

    def __init__(self) -> None:
        self.collections: dict[str, list[dict]] = {}
        self.totals: dict[str, int] = {}
        self.status_code = 200
        self.body: bytes | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200 or self.body is not None:
            return httpx.Response(self.status_code, content=self.body or b"boom")

        path = request.url.path
        if path not in self.collections:
            return httpx.Response(404, json={"messages": [{"type": "ERROR", "text": "not found"}]})

        items = self.collections[path]
        offset = int(request.url.params.get("offset", "0"))
        count = int(request.url.params.get("count", "30"))
        return httpx.Response(
            200,
            json={
                "paging": {
                    "total": self.totals.get(path, len(items)),
                    "perPage": count,
                    "offset": offset,
                },
                "entry": items[offset:offset + count],
            },
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides) -> Settings:
    values = {"api_base_url": BASE_URL + "/", "access_token": TOKEN}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def splunk_api() -> SplunkApi:
    return SplunkApi()


@pytest.fixture
def client(splunk_api):
    c = SplunkClient(make_settings(), transport=splunk_api.transport())
    yield c
    c.close()

"""Paginated Splunk REST client.

Both queries page through a collection 30 entries at a time, using the
number of entries received so far as the next ``offset``, until the
``paging.total`` announced by the first page is reached.  Any failure
aborts the whole call with ``TransportError``; there is no retry here,
the caller's scheduler owns that.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from src.contracts.alert import AlertRecord, PageEnvelope
from src.contracts.errors import PaginationError, TransportError
from src.shared.config_loader import Settings

log = logging.getLogger(__name__)

PAGE_SIZE = 30
SAVED_SEARCHES_PATH = "/services/saved/searches"
TRACKED_ALERTS_FILTER = "alert.track=1"


class TrackedAlertSource(Protocol):
    def list_tracked_alerts(self) -> list[AlertRecord]: ...


class FiredAlertSource(Protocol):
    def list_fired_alerts(self, url: str) -> list[AlertRecord]: ...


class SplunkClient:
    """Authenticated client; configured once, safe to share between callers."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._max_pages = settings.max_pages
        self._http = httpx.Client(
            base_url=settings.api_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {settings.access_token}",
                "Content-Type": "application/json",
            },
            verify=not settings.insecure_skip_verify,
            timeout=settings.request_timeout_sec,
            transport=transport,
        )
        if settings.insecure_skip_verify:
            log.warning("TLS certificate verification is disabled for %s", settings.api_base_url)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> SplunkClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── public API ──────────────────────────────────────────────────────

    def list_tracked_alerts(self) -> list[AlertRecord]:
        """Return every saved search configured for alert tracking."""
        return self._query(SAVED_SEARCHES_PATH, {"search": TRACKED_ALERTS_FILTER})

    def list_fired_alerts(self, url: str) -> list[AlertRecord]:
        """Return all fired-alert events under *url* (an alert's ``links.alerts``)."""
        return self._query(url)

    # ── internals ───────────────────────────────────────────────────────

    def _query(self, url: str, params: dict[str, str] | None = None) -> list[AlertRecord]:
        entries: list[AlertRecord] = []
        total: int | None = None
        pages = 0

        while total is None or len(entries) < total:
            if pages >= self._max_pages:
                raise PaginationError(
                    f"gave up on {url} after {pages} pages: "
                    f"{len(entries)} of {total} entries received"
                )
            page = self._fetch_page(url, params, offset=len(entries))
            pages += 1
            if total is None:
                total = page.total
            entries.extend(page.entries)
            if not page.entries and len(entries) < total:
                raise PaginationError(
                    f"empty page from {url} at offset {len(entries)}, "
                    f"expected {total} entries"
                )

        log.debug("Fetched %d entries from %s in %d page(s)", len(entries), url, pages)
        return entries

    def _fetch_page(
        self,
        url: str,
        params: dict[str, str] | None,
        offset: int,
    ) -> PageEnvelope:
        query = dict(params or {})
        query.update({"count": str(PAGE_SIZE), "offset": str(offset), "output_mode": "json"})

        try:
            response = self._http.get(url, params=query)
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to retrieve alerts from Splunk: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                f"unexpected status code {response.status_code}. full response: {response.text}",
                status_code=response.status_code,
            )

        try:
            page = PageEnvelope.from_json(response.json())
        except (ValueError, TypeError, AttributeError) as exc:
            raise TransportError(f"failed to decode Splunk response from {url}: {exc}") from exc

        log.debug(
            "Splunk response (offset: %d): total=%d entries=%d",
            offset, page.total, len(page.entries),
        )
        return page

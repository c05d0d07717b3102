"""HTTPS client for the vendor's usage-summary and usage-events endpoints."""

import logging
import time
from typing import Any

import requests

from cursor_meter.config import Settings, settings as default_settings
from cursor_meter.errors import AuthError, HttpError, ParseError, TransportError
from cursor_meter.models import (
    UsageEvent,
    UsageEventsPage,
    UsageSummary,
    parse_events_page,
    parse_summary,
)

logger = logging.getLogger(__name__)

SUMMARY_PATH = "/api/usage-summary"
EVENTS_PATH = "/api/dashboard/get-filtered-usage-events"
BODY_PREFIX_LEN = 100
DAY_MS = 24 * 60 * 60 * 1000


class CursorUsageClient:
    """Performs the two fixed requests, presenting the token as a session cookie."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or default_settings

    def _cookie(self, token: str) -> str:
        return f"{self._settings.session_cookie}={token}"

    def _check(self, resp: requests.Response, path: str) -> Any:
        if resp.status_code in (401, 403):
            logger.error("Authentication rejected on %s (HTTP %s)", path, resp.status_code)
            raise AuthError(resp.status_code, resp.text[:BODY_PREFIX_LEN])
        if not 200 <= resp.status_code < 300:
            logger.error("HTTP error %s on %s: %s", resp.status_code, path, resp.text[:BODY_PREFIX_LEN])
            raise HttpError(resp.status_code, resp.text[:BODY_PREFIX_LEN])
        try:
            return resp.json()
        except ValueError as exc:
            logger.error("Failed to parse response from %s: %s", path, exc)
            raise ParseError(f"Failed to parse response: {exc}") from exc

    def fetch_summary(self, token: str) -> UsageSummary:
        logger.debug("Fetching usage summary...")
        try:
            resp = requests.get(
                self._settings.base_url + SUMMARY_PATH,
                headers={
                    "accept": "*/*",
                    "Cookie": self._cookie(token),
                    "referer": self._settings.billing_referer,
                },
                timeout=self._settings.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Usage summary request failed: %s", exc)
            raise TransportError(str(exc)) from exc
        return parse_summary(self._check(resp, SUMMARY_PATH))

    def fetch_events_page(
        self,
        token: str,
        start: int | None = None,
        end: int | None = None,
        page_size: int = 1,
    ) -> UsageEventsPage:
        """Fetch one page of usage events; the window defaults to the last week."""
        if end is None:
            end = int(time.time() * 1000)
        if start is None:
            start = end - self._settings.event_window_days * DAY_MS
        body = {
            "teamId": 0,
            "startDate": str(start),
            "endDate": str(end),
            "page": 1,
            "pageSize": page_size,
        }
        logger.debug("Fetching usage events (pageSize=%s)...", page_size)
        try:
            resp = requests.post(
                self._settings.base_url + EVENTS_PATH,
                json=body,
                headers={
                    "accept": "*/*",
                    "content-type": "application/json",
                    "origin": self._settings.origin,
                    "referer": self._settings.usage_referer,
                    "Cookie": self._cookie(token),
                },
                timeout=self._settings.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Usage events request failed: %s", exc)
            raise TransportError(str(exc)) from exc
        return parse_events_page(self._check(resp, EVENTS_PATH))

    def fetch_last_events(
        self,
        token: str,
        start: int | None = None,
        end: int | None = None,
        page_size: int = 1,
    ) -> list[UsageEvent]:
        return self.fetch_events_page(token, start, end, page_size).events

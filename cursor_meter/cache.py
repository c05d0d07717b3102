"""Single-entry time-limited cache for the most recent usage event."""

import logging
import time
from typing import Callable

from cursor_meter.client import CursorUsageClient
from cursor_meter.credentials import CredentialProvider
from cursor_meter.errors import CursorMeterError
from cursor_meter.formatting import REFRESH_FAILED
from cursor_meter.models import UsageEvent

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 5 * 60


class EventCache:
    """Holds the latest UsageEvent and the time it was fetched.

    A failed fetch keeps the previous entry. A fetch that succeeds but returns
    nothing usable also keeps it, and sets ``error`` so the view can say so.
    """

    def __init__(
        self,
        client: CursorUsageClient,
        credentials: CredentialProvider,
        ttl: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._credentials = credentials
        self._ttl = ttl
        self._clock = clock
        self.cached: UsageEvent | None = None
        self.fetched_at: float = 0.0
        self.error: str = ""

    def is_fresh(self) -> bool:
        return self.cached is not None and (self._clock() - self.fetched_at) < self._ttl

    def get_or_fetch(self, force: bool = False, token: str | None = None) -> UsageEvent | None:
        if not force and self.is_fresh():
            return self.cached

        if token is None:
            token = self._credentials.get_token()
        if not token:
            return self.cached

        now = self._clock()
        try:
            events = self._client.fetch_last_events(token, page_size=1)
        except CursorMeterError as exc:
            logger.warning("Failed to fetch last usage event: %s", exc)
            return self.cached

        if not events:
            logger.warning("Usage events response was empty")
            self.error = REFRESH_FAILED
            return self.cached
        event = events[0]
        if not event.is_well_formed:
            logger.warning("Last usage event has no numeric tokenUsage.totalCents")
            self.error = REFRESH_FAILED
            return self.cached

        self.cached = event
        self.fetched_at = now
        self.error = ""
        return event

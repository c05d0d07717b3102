"""Refresh orchestration: triggers, timers, fetch workers and display state."""

import logging
from typing import Callable, Protocol

from PySide6.QtCore import QObject, QThread, QTimer, Signal

from cursor_meter.cache import EventCache
from cursor_meter.client import CursorUsageClient
from cursor_meter.config import Settings, settings as default_settings
from cursor_meter.credentials import CredentialProvider
from cursor_meter.errors import AuthError, CursorMeterError, FetchResult, attempt
from cursor_meter.formatting import (
    NO_TOKEN,
    REFRESH_FAILED,
    DisplayState,
    event_tooltip,
    render_summary,
    status_text,
)

logger = logging.getLogger(__name__)

AUTH_WARNING = "Authentication failed. Please re-enter your token."
TOKEN_UPDATED = "Token updated successfully!"
WORKER_WAIT_MS = 5000


class StatusView(Protocol):
    def set_text(self, text: str) -> None: ...
    def set_tooltip(self, tooltip: str) -> None: ...
    def warn(self, message: str) -> None: ...
    def inform(self, message: str) -> None: ...


class FetchWorker(QThread):
    """Runs one blocking job off the UI thread and hands back its FetchResult."""

    done = Signal(object)

    def __init__(self, job: Callable[[], FetchResult], parent=None):
        super().__init__(parent)
        self._job = job

    def run(self):
        try:
            result = self._job()
        except Exception as exc:
            logger.exception("Fetch worker crashed")
            result = FetchResult.failure(CursorMeterError(str(exc)))
        self.done.emit(result)


class RefreshOrchestrator(QObject):
    """Owns the status widget state, both timers and the event cache.

    Every trigger funnels into ``refresh()``. Only one summary fetch and one
    event fetch run at a time; a trigger that arrives while one is in flight
    is folded into a single follow-up run.
    """

    def __init__(
        self,
        view: StatusView,
        credentials: CredentialProvider,
        client: CursorUsageClient,
        cache: EventCache,
        settings: Settings | None = None,
        background: bool = True,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        cfg = settings or default_settings
        self._view = view
        self._credentials = credentials
        self._client = client
        self._cache = cache
        self._background = background
        self._event_delay_ms = int(cfg.event_delay_s * 1000)

        self.state = DisplayState()
        self._closed = False
        self._summary_busy = False
        self._summary_pending = False
        self._event_busy = False
        self._event_pending = False
        self._event_timers: list[QTimer] = []
        self._workers: list[FetchWorker] = []

        self._refresh_timer = QTimer(self)
        self._refresh_timer.setInterval(cfg.refresh_interval_s * 1000)
        self._refresh_timer.timeout.connect(self.refresh)

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(int(cfg.debounce_s * 1000))
        self._debounce_timer.timeout.connect(self.refresh)

    # -- lifecycle ---------------------------------------------------------

    def activate(self):
        logger.info("Activating...")
        self._closed = False
        self._update_tooltip()
        self.refresh()
        self.arm_refresh_timer()
        logger.info("Activated")

    def deactivate(self):
        self._closed = True
        self._refresh_timer.stop()
        self._debounce_timer.stop()
        for timer in self._event_timers:
            timer.stop()
            timer.deleteLater()
        self._event_timers.clear()
        for worker in list(self._workers):
            worker.quit()
            if not worker.wait(WORKER_WAIT_MS):
                logger.warning("Fetch worker still running after %d ms", WORKER_WAIT_MS)
        logger.info("Deactivated")

    def arm_refresh_timer(self):
        # QTimer.start() on a running timer cancels and reschedules it.
        self._refresh_timer.start()

    # -- triggers ----------------------------------------------------------

    def refresh_command(self):
        self.refresh()
        self.refresh_last_event(force=True)

    def set_token_command(self):
        token = self._credentials.set_token()
        if token:
            self._view.inform(TOKEN_UPDATED)
            self.refresh()

    def document_changed(self):
        self._debounce_timer.start()
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(self._event_delay_ms)
        timer.timeout.connect(self._on_event_timer)
        self._event_timers.append(timer)
        timer.start()

    def document_saved(self):
        self.refresh()
        self.refresh_last_event(force=True)

    def _on_event_timer(self):
        timer = self.sender()
        if timer in self._event_timers:
            self._event_timers.remove(timer)
            timer.deleteLater()
        self.refresh_last_event(force=True)

    # -- summary -----------------------------------------------------------

    def refresh(self):
        if self._summary_busy:
            self._summary_pending = True
            return
        token = self._credentials.get_token()
        if not token:
            self._set_state(DisplayState.error(NO_TOKEN))
            return
        self._summary_busy = True
        logger.debug("Refreshing usage summary")
        self._run(lambda: attempt(self._client.fetch_summary, token), self._on_summary)

    def _on_summary(self, result: FetchResult):
        self._summary_busy = False
        if self._closed:
            return
        if result.ok:
            state = render_summary(result.value)
            logger.info("Usage: %s", state.text or state.reason)
        else:
            logger.error("Failed to refresh usage: %s", result.error)
            state = DisplayState.error(REFRESH_FAILED)
            if isinstance(result.error, AuthError):
                self._summary_pending = False
                self._credentials.clear_token()
                self._view.warn(AUTH_WARNING)
        self._set_state(state)
        if self._summary_pending:
            self._summary_pending = False
            self.refresh()

    # -- last event --------------------------------------------------------

    def refresh_last_event(self, force: bool = False):
        if self._event_busy:
            self._event_pending = True
            return
        if not force and self._cache.is_fresh():
            self._update_tooltip()
            return
        token = self._credentials.get_token()
        if not token:
            return
        self._event_busy = True
        logger.debug("Fetching last usage event (force=%s)", force)
        self._run(
            lambda: FetchResult.success(self._cache.get_or_fetch(force, token=token)),
            self._on_event,
        )

    def _on_event(self, result: FetchResult):
        self._event_busy = False
        if self._closed:
            return
        if not result.ok:
            logger.warning("Failed to fetch last usage event: %s", result.error)
        self._update_tooltip()
        if self._event_pending:
            self._event_pending = False
            self.refresh_last_event(force=True)

    # -- helpers -----------------------------------------------------------

    def _run(self, job: Callable[[], FetchResult], callback: Callable[[FetchResult], None]):
        if not self._background:
            callback(job())
            return
        worker = FetchWorker(job, parent=self)
        worker.done.connect(callback)
        worker.finished.connect(self._forget_worker)
        self._workers.append(worker)
        worker.start()

    def _forget_worker(self):
        worker = self.sender()
        if worker in self._workers:
            self._workers.remove(worker)
        worker.deleteLater()

    def _set_state(self, state: DisplayState):
        self.state = state
        self._view.set_text(status_text(state))
        self._update_tooltip()

    def _update_tooltip(self):
        self._view.set_tooltip(event_tooltip(self._cache.cached, self._cache.error))

"""Periodic re-validation of the registry snapshot."""

import logging
import threading
from collections.abc import Callable
from datetime import timedelta

from command_library.cache.capabilities import RefreshableRegistryCache
from command_library.core.time.abc import Time

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_DELAY = timedelta(seconds=2)


class BackgroundRefresher:
    """Daemon thread that calls `refresh_fn` whenever the registry snapshot is stale.

    The stop event doubles as the cancellation token: it is checked at every
    wakeup and never interrupts a refresh in progress. Refresh failures are
    logged and swallowed.
    """

    def __init__(
        self,
        store: RefreshableRegistryCache,
        refresh_fn: Callable[[], None],
        time: Time,
        *,
        interval: timedelta,
        initial_delay: timedelta = DEFAULT_INITIAL_DELAY,
    ) -> None:
        self._store = store
        self._refresh_fn = refresh_fn
        self._time = time
        self._interval = interval
        self._initial_delay = initial_delay
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. No-op when caching or refresh is disabled."""
        if not self._store.background_refresh_enabled():
            logger.debug("Background refresh disabled")
            return
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="command-library-cache-refresh", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> bool:
        """Re-validate the registry snapshot once.

        Returns:
            True if `refresh_fn` ran and succeeded, False otherwise
        """
        started = self._time.now()
        refreshed = False
        try:
            if self._store.registry_needs_refresh():
                self._refresh_fn()
                refreshed = True
            else:
                self._store.mark_registry_checked()
        except Exception as e:
            logger.warning("Background cache refresh failed: %s", e)
        self._store.record_refresh(started, self._time.now())
        return refreshed

    def _run(self) -> None:
        if self._stop_event.wait(self._initial_delay.total_seconds()):
            return
        while True:
            self.run_once()
            if self._stop_event.wait(self._interval.total_seconds()):
                return

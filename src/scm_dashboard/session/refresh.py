"""
Manual and timer-driven refresh of live data.

Refreshes only run while the session shows live data. Manual and automatic
refreshes are tracked separately; a request that overlaps one of the same
kind already in flight is skipped.
"""

import logging
import threading
from datetime import datetime
from typing import Optional

from .data_session import DashboardSession, DataMode

logger = logging.getLogger(__name__)


class RefreshController:
    """
    Drives refreshes for a DashboardSession.

    Args:
        session: Session to refresh
        interval: Seconds between automatic refreshes (default: session config)
    """

    def __init__(self, session: DashboardSession, interval: Optional[float] = None):
        self.session = session
        self.interval = interval if interval is not None else session.config.auto_refresh_interval
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")

        self.last_refreshed: Optional[datetime] = None
        self.is_refreshing = False
        self.is_auto_refreshing = False

        self._flag_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def refresh(self, auto: bool = False) -> bool:
        """
        Reload live data from the configured sheets.

        Returns:
            True if the refresh ran and loaded without errors
        """
        if self.session.data_mode != DataMode.LIVE:
            logger.debug("Refresh skipped: session is not in live mode")
            return False

        with self._flag_lock:
            if auto and self.is_auto_refreshing:
                logger.debug("Auto-refresh skipped: previous auto-refresh still running")
                return False
            if not auto and self.is_refreshing:
                logger.debug("Refresh skipped: previous manual refresh still running")
                return False
            if auto:
                self.is_auto_refreshing = True
            else:
                self.is_refreshing = True

        try:
            success = self.session.load_from_sheets(initial=False, background=auto)
            if success:
                self.last_refreshed = self.session.clock()
                logger.info(f"{'Auto-refresh' if auto else 'Refresh'} completed at {self.last_refreshed}")
            else:
                logger.warning(f"{'Auto-refresh' if auto else 'Refresh'} finished with errors")
            return success
        finally:
            with self._flag_lock:
                if auto:
                    self.is_auto_refreshing = False
                else:
                    self.is_refreshing = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background refresh loop."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="scm-auto-refresh", daemon=True)
        self._thread.start()
        logger.info(f"Auto-refresh started (every {self.interval:g}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background refresh loop and wait for it to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Auto-refresh stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.refresh(auto=True)
            except Exception:
                logger.exception("Auto-refresh failed")

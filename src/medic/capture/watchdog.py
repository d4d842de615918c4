"""Wall-clock preview-load timeout."""

from __future__ import annotations

import asyncio
import time

from medic.capture.models import ErrorContext, TimeoutPhase, TimeoutPreviewError
from medic.capture.monitor import ErrorMonitor
from medic.shared.infrastructure.config import settings
from medic.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class LoadWatchdog:
    """Captures a ``timeout`` error if the preview does not report loaded in time.

    ``arm()`` must be called from a running event loop. ``mark_loaded()``
    cancels the pending timer; calling it after expiry is a no-op.
    """

    def __init__(
        self,
        monitor: ErrorMonitor,
        context: ErrorContext,
        timeout_ms: int | None = None,
    ) -> None:
        self._monitor = monitor
        self._context = context
        self._timeout_ms = timeout_ms if timeout_ms is not None else settings.preview_timeout_ms
        self._handle: asyncio.TimerHandle | None = None
        self._started_at = 0.0
        self.error: TimeoutPreviewError | None = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def expired(self) -> bool:
        return self.error is not None

    def arm(self) -> None:
        """Start (or restart) the load timer."""
        self.cancel()
        self.error = None
        self._started_at = time.monotonic()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._timeout_ms / 1000, self._expire)

    def mark_loaded(self) -> bool:
        """Report a successful load. Returns True if a pending timer was cancelled."""
        cancelled = self.cancel()
        if cancelled:
            logger.debug(
                "preview_loaded",
                elapsed_ms=int((time.monotonic() - self._started_at) * 1000),
            )
        return cancelled

    def cancel(self) -> bool:
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _expire(self) -> None:
        self._handle = None
        elapsed = int((time.monotonic() - self._started_at) * 1000)
        logger.warning("preview_load_timeout", timeout_ms=self._timeout_ms, elapsed_ms=elapsed)
        self.error = self._monitor.capture_timeout_error(
            f"Preview failed to load within {self._timeout_ms}ms",
            self._context.bundled_code,
            self._context,
            duration_ms=elapsed,
            timeout_phase=TimeoutPhase.LOAD,
        )

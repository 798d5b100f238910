from typing import Any, Callable, Optional

import structlog

from startmenu.core.ports import Scheduler


class Debouncer:
    """
    Runs `callback` once, `delay_ms` after the last call to `arm()`.

    Each arm bumps a generation counter and the scheduled timeout only fires
    if its generation is still current, so a timeout that was cancelled (or
    replaced by a later arm) never runs the callback even if the scheduler
    delivers it anyway.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay_ms: int,
        callback: Callable[[], None],
        logger: Any = None,
    ):
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self.callback = callback
        self.logger = logger or structlog.get_logger(__name__)
        self._handle: Optional[Any] = None
        self._generation = 0
        self._closed = False

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def arm(self) -> None:
        """Starts the quiet period, restarting it if one is already running."""
        if self._closed:
            return
        self.cancel()
        self._generation += 1
        generation = self._generation
        self._handle = self.scheduler.timeout_add(
            self.delay_ms, lambda: self._fire(generation)
        )

    def cancel(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._generation += 1
        self.scheduler.source_remove(handle)

    def close(self) -> None:
        self.cancel()
        self._closed = True

    def _fire(self, generation: int) -> None:
        if self._closed or generation != self._generation:
            return
        self._handle = None
        self.callback()

from typing import Any, Callable, Optional

import structlog

from startmenu.core.ports import (
    QUALIFYING_KINDS,
    ChangeKind,
    FileWatch,
    FileWatchFactory,
    Scheduler,
)
from startmenu.store.errors import WatchSetupError
from startmenu.store.models import RELOAD_DELAY_MS
from startmenu.sync.debounce import Debouncer


class FileChangeNotifier:
    """
    Watches one file and calls `on_expire` once per burst of completed writes.

    Only CREATED and CHANGES_DONE events count; plain CHANGED events arrive
    while a write is still in progress. When `on_event` is given, qualifying
    events are handed to it instead of arming the timer directly, so a caller
    can decide whether to arm (see SyncCoordinator).
    """

    def __init__(
        self,
        path: str,
        watch_factory: FileWatchFactory,
        scheduler: Scheduler,
        on_expire: Callable[[], None],
        on_event: Optional[Callable[[ChangeKind], None]] = None,
        delay_ms: int = RELOAD_DELAY_MS,
        logger: Any = None,
    ):
        self.path = str(path)
        self.watch_factory = watch_factory
        self.on_event = on_event
        self.logger = logger or structlog.get_logger(__name__)
        self.debouncer = Debouncer(scheduler, delay_ms, on_expire, self.logger)
        self._watch: Optional[FileWatch] = None
        self.degraded = False
        self.closed = False

    @property
    def watching(self) -> bool:
        return self._watch is not None

    def start(self) -> bool:
        """
        Starts watching. If the watch cannot be created the notifier stays
        usable without live reload.
        Returns:
            True if the file is being watched.
        """
        if self.closed or self._watch is not None:
            return self._watch is not None
        try:
            self._watch = self._create_watch()
        except WatchSetupError as e:
            self.degraded = True
            self.logger.error(f"{e}. Live reload is disabled.")
            return False
        self.logger.debug(f"Watching {self.path} for changes.")
        return True

    def _create_watch(self) -> FileWatch:
        try:
            return self.watch_factory.watch_file(self.path, self._on_change)
        except Exception as e:
            raise WatchSetupError(f"Cannot watch {self.path}: {e}") from e

    def _on_change(self, kind: ChangeKind) -> None:
        if self.closed or kind not in QUALIFYING_KINDS:
            return
        if self.on_event is not None:
            self.on_event(kind)
        else:
            self.debouncer.arm()

    def arm(self) -> None:
        if not self.closed:
            self.debouncer.arm()

    def cancel(self) -> None:
        self.debouncer.cancel()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.debouncer.close()
        if self._watch is not None:
            watch, self._watch = self._watch, None
            watch.cancel()

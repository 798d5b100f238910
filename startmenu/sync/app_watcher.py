import os
from typing import Any, Callable, List, Sequence

import structlog

from startmenu.core.ports import AppRegistry, ChangeKind, FileWatch, FileWatchFactory, Scheduler
from startmenu.store.models import RELOAD_DELAY_MS
from startmenu.sync.debounce import Debouncer
from startmenu.sync.subscriptions import Subscription

DEFAULT_APPLICATION_DIRS = (
    os.path.expanduser("~/.local/share/applications"),
    "/usr/share/applications",
)


class AppListWatcher:
    """Refreshes the registry when desktop files are installed or removed."""

    def __init__(
        self,
        registry: AppRegistry,
        watch_factory: FileWatchFactory,
        scheduler: Scheduler,
        directories: Sequence[str] = DEFAULT_APPLICATION_DIRS,
        delay_ms: int = RELOAD_DELAY_MS,
        logger: Any = None,
    ):
        self.registry = registry
        self.watch_factory = watch_factory
        self.directories = [str(d) for d in directories]
        self.logger = logger or structlog.get_logger(__name__)
        self.debouncer = Debouncer(scheduler, delay_ms, self._refresh, self.logger)
        self._watches: List[FileWatch] = []
        self._listeners: List[Callable[[], None]] = []
        self.closed = False

    @property
    def watched_count(self) -> int:
        return len(self._watches)

    def start(self) -> int:
        """
        Watches every directory that can be watched; the others are skipped.
        Returns:
            The number of directories being watched.
        """
        for directory in self.directories:
            if not os.path.isdir(directory):
                self.logger.debug(f"Application directory {directory} does not exist.")
                continue
            try:
                watch = self.watch_factory.watch_directory(directory, self._on_change)
            except Exception as e:
                self.logger.warning(f"Cannot watch application directory {directory}: {e}")
                continue
            self._watches.append(watch)
        return len(self._watches)

    def subscribe(self, listener: Callable[[], None]) -> Subscription:
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(release)

    def _on_change(self, kind: ChangeKind) -> None:
        if not self.closed:
            self.debouncer.arm()

    def _refresh(self) -> None:
        self.logger.info("Installed applications changed, refreshing app list.")
        self.registry.refresh()
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                self.logger.error(f"Error in app list listener: {e}", exc_info=True)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.debouncer.close()
        while self._watches:
            self._watches.pop().cancel()
        self._listeners.clear()

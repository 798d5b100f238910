import enum
from typing import Any, Callable, List, Optional, Sequence

import structlog

from startmenu.core.ports import ChangeKind, FileWatchFactory, Scheduler
from startmenu.store.categories import CategoryStore
from startmenu.store.icons import IconAssetIndex
from startmenu.store.models import RELOAD_DELAY_MS
from startmenu.sync.notifier import FileChangeNotifier
from startmenu.sync.subscriptions import Subscription


class SyncState(enum.Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RELOADING = "reloading"


class SyncCoordinator:
    """
    Keeps one surface's CategoryStore and icon indexes in step with the
    categories file and the icon directories.

        IDLE -- foreign change --> DEBOUNCING -- quiet period --> RELOADING --> IDLE

    A change event is foreign if the file no longer holds the bytes this
    store last read or wrote, or if an icon directory differs from its last
    scan. Every icon edit is followed by a save, so the save's event carries
    icon-only changes to the other surface while our own saves leave the
    state untouched. Events that arrive while reloading are remembered and
    re-arm the debounce once the reload is done.
    """

    def __init__(
        self,
        store: CategoryStore,
        icon_indexes: Sequence[IconAssetIndex],
        watch_factory: FileWatchFactory,
        scheduler: Scheduler,
        delay_ms: int = RELOAD_DELAY_MS,
        logger: Any = None,
    ):
        self.store = store
        self.icon_indexes = list(icon_indexes)
        self.logger = logger or structlog.get_logger(__name__)
        self.state = SyncState.IDLE
        self._pending = False
        self._listeners: List[Callable[[], None]] = []
        self.notifier = FileChangeNotifier(
            store.path,
            watch_factory,
            scheduler,
            on_expire=self._on_quiet,
            on_event=self._on_event,
            delay_ms=delay_ms,
            logger=self.logger,
        )
        self.reload_count = 0

    @property
    def live(self) -> bool:
        return self.notifier.watching

    def start(self) -> bool:
        return self.notifier.start()

    def subscribe(self, listener: Callable[[], None]) -> Subscription:
        """Registers a callback run after every reload from disk."""
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(release)

    def save(self) -> None:
        """
        Saves the store. The change events this write produces are recognized
        as our own, so the state stays IDLE.
        Raises:
            StoreWriteError: If the file cannot be written.
        """
        self.store.save()

    def is_current(self) -> bool:
        """True if neither the categories file nor any icon directory changed behind our back."""
        return self.store.is_current() and all(
            index.is_current() for index in self.icon_indexes
        )

    def _on_event(self, kind: ChangeKind) -> None:
        if self.state is SyncState.RELOADING:
            self._pending = True
            return
        if self.is_current():
            self.logger.debug(
                f"Ignoring change event for {self.store.path}: content unchanged."
            )
            return
        self.state = SyncState.DEBOUNCING
        self.notifier.arm()

    def _on_quiet(self) -> None:
        if self.is_current():
            self.state = SyncState.IDLE
            return
        self.logger.info(
            f"Categories file changed on disk, reloading {self.store.path} and icons."
        )
        self.state = SyncState.RELOADING
        self._pending = False
        try:
            self.store.load()
            for index in self.icon_indexes:
                index.scan()
            self.reload_count += 1
            for listener in list(self._listeners):
                try:
                    listener()
                except Exception as e:
                    self.logger.error(f"Error in reload listener: {e}", exc_info=True)
        finally:
            self.state = SyncState.IDLE
        if self._pending and not self.notifier.closed:
            self._pending = False
            if not self.is_current():
                self.state = SyncState.DEBOUNCING
                self.notifier.arm()

    def close(self) -> None:
        self.notifier.close()
        self._listeners.clear()
        self._pending = False
        self.state = SyncState.IDLE

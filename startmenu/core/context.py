"""Runtime dependencies of one surface, assembled at startup."""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import structlog

from startmenu.core.ports import AppRegistry, FileWatchFactory, Notifier, Scheduler
from startmenu.shared.path_handler import MenuPaths
from startmenu.store.categories import CategoryStore
from startmenu.store.icons import IconAssetIndex
from startmenu.store.models import MAX_RECENTS, RELOAD_DELAY_MS
from startmenu.store.recents import RecentsStore
from startmenu.sync.app_watcher import DEFAULT_APPLICATION_DIRS, AppListWatcher
from startmenu.sync.coordinator import SyncCoordinator
from startmenu.sync.subscriptions import SubscriptionSet

POPUP = "popup"
EDITOR = "editor"
SURFACES = (POPUP, EDITOR)


@dataclass(frozen=True)
class MenuSettings:
    data_dir: str = ""
    max_recents: int = MAX_RECENTS
    reload_delay_ms: int = RELOAD_DELAY_MS
    watch_application_dirs: bool = True
    application_dirs: Sequence[str] = field(default=DEFAULT_APPLICATION_DIRS)
    panel_icon: str = "start-here-symbolic"
    icon_scale: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_config(cls, config: Any, application_dirs: Optional[Sequence[str]] = None) -> "MenuSettings":
        """Reads the settings from a ConfigHandler, falling back to the defaults."""
        defaults = cls()

        def get(path: List[str], default: Any, kind: type) -> Any:
            value = config.get_root_setting(path, default)
            try:
                return kind(value)
            except (TypeError, ValueError):
                return default

        max_recents = get(["storage", "max_recents"], defaults.max_recents, int)
        delay = get(["sync", "reload_delay_ms"], defaults.reload_delay_ms, int)
        return cls(
            data_dir=get(["storage", "data_dir"], defaults.data_dir, str),
            max_recents=max_recents if max_recents > 0 else defaults.max_recents,
            reload_delay_ms=delay if delay >= 0 else defaults.reload_delay_ms,
            watch_application_dirs=get(
                ["sync", "watch_application_dirs"], True, bool
            ),
            application_dirs=tuple(application_dirs or defaults.application_dirs),
            panel_icon=get(["popup", "panel_icon"], defaults.panel_icon, str),
            icon_scale=get(["popup", "icon_scale"], defaults.icon_scale, float),
            log_level=get(["logging", "level"], defaults.log_level, str),
        )


class MenuContext:
    """
    Everything one surface needs: its stores, icon indexes, watchers and
    the runtime collaborators. Only the popup has a recents store.
    """

    def __init__(
        self,
        surface: str,
        paths: MenuPaths,
        scheduler: Scheduler,
        watch_factory: FileWatchFactory,
        registry: AppRegistry,
        notifier: Notifier,
        settings: Optional[MenuSettings] = None,
        logger: Any = None,
    ):
        if surface not in SURFACES:
            raise ValueError(f"Unknown surface '{surface}'")
        self.surface = surface
        self.paths = paths
        self.scheduler = scheduler
        self.watch_factory = watch_factory
        self.registry = registry
        self.notifier = notifier
        self.settings = settings or MenuSettings()
        self.logger = logger or structlog.get_logger(__name__)

        self.category_icons = IconAssetIndex(paths.category_icons_dir, self.logger)
        self.app_icons = IconAssetIndex(paths.app_icons_dir, self.logger)
        self.categories = CategoryStore(
            paths.categories_file, self.category_icons, self.logger
        )
        self.recents: Optional[RecentsStore] = None
        if surface == POPUP:
            self.recents = RecentsStore(
                paths.recents_file, self.settings.max_recents, logger=self.logger
            )
        self.coordinator = SyncCoordinator(
            self.categories,
            [self.category_icons, self.app_icons],
            watch_factory,
            scheduler,
            delay_ms=self.settings.reload_delay_ms,
            logger=self.logger,
        )
        self.app_watcher = AppListWatcher(
            registry,
            watch_factory,
            scheduler,
            directories=self.settings.application_dirs,
            delay_ms=self.settings.reload_delay_ms,
            logger=self.logger,
        )
        self.subscriptions = SubscriptionSet(self.logger)
        self.subscriptions.add(self.app_watcher.close)
        self.subscriptions.add(self.coordinator.close)
        self.started = False
        self.closed = False

    def start(self) -> None:
        """Loads the stores and indexes and starts watching for changes."""
        if self.started or self.closed:
            return
        self.started = True
        self.category_icons.scan()
        self.app_icons.scan()
        self.categories.load()
        if self.recents is not None:
            self.recents.load()
        self.coordinator.start()
        if self.settings.watch_application_dirs:
            self.app_watcher.start()

    def report(self, title: str, error: Exception) -> None:
        """Logs an error and shows it to the user as a desktop notification."""
        self.logger.error(f"{title}: {error}")
        self.notifier.notify_send(title, str(error), icon="dialog-error")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.subscriptions.release_all()
        self.logger.debug(f"Closed {self.surface} context.")

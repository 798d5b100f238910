from typing import Any, Dict, List, Optional

import structlog
from gi.repository import Gio  # pyright: ignore

from startmenu.shared.command_runner import CommandRunner
from startmenu.store.models import desktop_id


class DesktopAppRegistry:
    """Installed applications as Gio.DesktopAppInfo, cached until refresh()."""

    def __init__(self, runner: CommandRunner, logger: Any = None):
        self.runner = runner
        self.logger = logger or structlog.get_logger(__name__)
        self._apps: Dict[str, Gio.AppInfo] = {}
        self.refresh()

    def refresh(self) -> None:
        apps = {}
        for app in Gio.AppInfo.get_all():
            app_id = app.get_id()
            if app_id and app_id not in apps:
                apps[app_id] = app
        self._apps = apps
        self.logger.debug(f"Found {len(apps)} installed applications.")

    def list_apps(self) -> List[Gio.AppInfo]:
        return list(self._apps.values())

    def lookup(self, app_id: str) -> Optional[Gio.AppInfo]:
        app_id = desktop_id(app_id)
        app = self._apps.get(app_id)
        if app is None:
            app = Gio.DesktopAppInfo.new(app_id)
        return app

    def app_id(self, app: Gio.AppInfo) -> str:
        return app.get_id() or ""

    def should_show(self, app: Gio.AppInfo) -> bool:
        return bool(app.should_show())

    def display_name(self, app: Gio.AppInfo) -> str:
        return app.get_display_name() or app.get_name() or self.app_id(app)

    def icon(self, app: Gio.AppInfo) -> Optional[Gio.Icon]:
        return app.get_icon()

    def launch(self, app_id: str) -> None:
        self.runner.launch_desktop_id(app_id)

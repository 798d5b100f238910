from typing import Any, Optional

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gio, Gtk  # pyright: ignore

from startmenu.core.context import EDITOR, POPUP, MenuContext, MenuSettings
from startmenu.shared.app_registry import DesktopAppRegistry
from startmenu.shared.command_runner import CommandRunner
from startmenu.shared.glib_backend import GioFileWatchFactory, GLibScheduler
from startmenu.shared.notify_send import Notifier
from startmenu.shared.path_handler import PathHandler

APPLICATION_IDS = {
    POPUP: "org.startmenu.Popup",
    EDITOR: "org.startmenu.Editor",
}


def build_context(
    surface: str,
    settings: MenuSettings,
    path_handler: PathHandler,
    logger: Any,
) -> MenuContext:
    """Wires the GLib/Gio runtime collaborators into a context for `surface`."""
    runner = CommandRunner(logger)
    return MenuContext(
        surface,
        path_handler.menu_paths(settings.data_dir or None),
        scheduler=GLibScheduler(),
        watch_factory=GioFileWatchFactory(),
        registry=DesktopAppRegistry(runner, logger),
        notifier=Notifier(logger),
        settings=settings,
        logger=logger,
    )


class StartMenuApplication(Gtk.Application):
    def __init__(self, surface: str, context_factory):
        super().__init__(
            application_id=APPLICATION_IDS[surface],
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS,
        )
        self.surface = surface
        self.context_factory = context_factory
        self.context: Optional[MenuContext] = None
        self.window: Optional[Gtk.Window] = None

    def do_activate(self):
        if self.window is not None:
            self.window.present()
            return
        self.context = self.context_factory()
        if self.surface == POPUP:
            from startmenu.ui.popup import PopupWindow

            self.context.start()
            self.window = PopupWindow(self, self.context)
        else:
            from startmenu.ui.editor_window import EditorWindow

            self.window = EditorWindow(self, self.context)
        self.window.present()

    def do_shutdown(self):
        if self.context is not None:
            self.context.close()
        Gtk.Application.do_shutdown(self)

from typing import List

from gi.repository import Gtk  # pyright: ignore

from startmenu.core.context import MenuContext
from startmenu.menu.launcher import (
    ENTRY_ALL_APPS,
    ENTRY_RECENTS,
    ENTRY_SEARCH,
    AppRow,
    LauncherMenu,
    MenuEntry,
)
from startmenu.ui.widgets import BASE_ICON_SIZE, clear_list_box, icon_image, labelled_row


class PopupWindow(Gtk.ApplicationWindow):
    """A panel button whose popover lists categories on the left and apps on the right."""

    def __init__(self, application: Gtk.Application, context: MenuContext):
        super().__init__(application=application, title="Start Menu")
        self.context = context
        self.menu = LauncherMenu(context)
        self.logger = context.logger
        self.icon_size = int(BASE_ICON_SIZE * context.settings.icon_scale)
        self.search_entry = None
        self._entries: List[MenuEntry] = []
        self._rows: List[AppRow] = []

        self.menubutton_launcher = Gtk.MenuButton()
        self.menubutton_launcher.set_icon_name(context.settings.panel_icon)
        self.menubutton_launcher.add_css_class("startmenu-button")
        self.popover_launcher = Gtk.Popover()
        self.popover_launcher.set_has_arrow(False)
        self.popover_launcher.add_css_class("startmenu-popover")
        self.menubutton_launcher.set_popover(self.popover_launcher)
        self.set_child(self.menubutton_launcher)

        main_box = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 6)
        self.categories_column = Gtk.Box.new(Gtk.Orientation.VERTICAL, 0)
        self.categories_list = Gtk.ListBox()
        self.categories_list.set_selection_mode(Gtk.SelectionMode.SINGLE)
        self.categories_column.append(self.categories_list)
        main_box.append(self.categories_column)

        self.apps_list = Gtk.ListBox()
        self.apps_list.set_activate_on_single_click(True)
        scrolled_window = Gtk.ScrolledWindow()
        scrolled_window.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)
        scrolled_window.set_min_content_height(self.icon_size * 10)
        scrolled_window.set_min_content_width(self.icon_size * 8)
        scrolled_window.set_child(self.apps_list)
        main_box.append(scrolled_window)
        self.popover_launcher.set_child(main_box)

        subs = context.subscriptions
        subs.connect(self.categories_list, "row-selected", self.on_category_selected)
        subs.connect(self.apps_list, "row-activated", self.on_app_activated)
        subs.connect(self.popover_launcher, "notify::visible", self.on_popover_visible)
        subs.adopt(context.coordinator.subscribe(self.rebuild))
        subs.adopt(context.app_watcher.subscribe(self.rebuild))
        self.rebuild()

    def rebuild(self) -> None:
        """Recreates the category column from the current store."""
        self.logger.debug("Rebuilding popup categories.")
        clear_list_box(self.categories_list)
        clear_list_box(self.apps_list)
        if self.search_entry is not None:
            self.categories_column.remove(self.search_entry)
            self.search_entry = None
        self._entries = self.menu.entries()
        for entry in self._entries:
            if entry.kind == ENTRY_SEARCH:
                self._add_search_entry()
                continue
            image = icon_image(
                self.icon_size, entry.icon_path, icon_name="folder-symbolic"
            )
            row = labelled_row(image, entry.label, "startmenu-category")
            self.categories_list.append(row)

    def _add_search_entry(self) -> None:
        self.search_entry = Gtk.SearchEntry.new()
        self.search_entry.set_placeholder_text("Search for an app...")
        self.search_entry.connect("search-changed", self.on_search_changed)
        self.search_entry.connect("activate", self.on_search_activated)
        self.categories_column.append(self.search_entry)

    def _show_rows(self, rows: List[AppRow]) -> None:
        clear_list_box(self.apps_list)
        self._rows = rows
        for app_row in rows:
            image = icon_image(
                self.icon_size, app_row.custom_icon_path, self.context.registry.icon(app_row.app)
            )
            self.apps_list.append(labelled_row(image, app_row.label, "startmenu-app"))

    def _entry_for_row(self, row: Gtk.ListBoxRow):
        visible = [e for e in self._entries if e.kind != ENTRY_SEARCH]
        index = row.get_index()
        return visible[index] if 0 <= index < len(visible) else None

    def on_category_selected(self, list_box, row) -> None:
        if row is None:
            return
        entry = self._entry_for_row(row)
        if entry is None:
            return
        if self.search_entry is not None:
            self.search_entry.set_text("")
        if entry.kind == ENTRY_ALL_APPS:
            self._show_rows(self.menu.search(""))
        elif entry.kind == ENTRY_RECENTS:
            self._show_rows(self.menu.recent_apps())
        else:
            self._show_rows(self.menu.apps_for(entry.name))

    def on_search_changed(self, entry: Gtk.SearchEntry) -> None:
        text = entry.get_text()
        if not text.strip():
            clear_list_box(self.apps_list)
            self._rows = []
            return
        self.categories_list.unselect_all()
        self._show_rows(self.menu.search(text))

    def on_search_activated(self, entry: Gtk.SearchEntry) -> None:
        if self._rows:
            self._launch(self._rows[0])

    def on_app_activated(self, list_box, row) -> None:
        index = row.get_index()
        if 0 <= index < len(self._rows):
            self._launch(self._rows[index])

    def _launch(self, app_row: AppRow) -> None:
        self.menu.launch(app_row.id)
        self.popover_launcher.popdown()

    def on_popover_visible(self, popover, _pspec) -> None:
        if not popover.get_visible():
            return
        self.categories_list.unselect_all()
        clear_list_box(self.apps_list)
        self._rows = []
        if self.search_entry is not None:
            self.search_entry.set_text("")
            self.context.scheduler.idle_add(self.search_entry.grab_focus)

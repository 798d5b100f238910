from typing import Any, Dict, List, Optional

from gi.repository import Gdk, Gtk  # pyright: ignore

from startmenu.core.context import MenuContext
from startmenu.menu.editor import CategoryEditor
from startmenu.store.models import ALL_APPS_CATEGORY, SEARCH_APP_CATEGORY
from startmenu.ui.widgets import (
    BASE_ICON_SIZE,
    choose_image,
    clear_list_box,
    icon_image,
    labelled_row,
)


class EditorWindow(Gtk.ApplicationWindow):
    """Preferences window for creating, editing and ordering categories."""

    def __init__(self, application: Gtk.Application, context: MenuContext):
        super().__init__(application=application, title="Start Menu Categories")
        self.set_default_size(720, 560)
        self.context = context
        self.editor = CategoryEditor(context)
        self.logger = context.logger
        self.category_icon_source: Optional[str] = None
        self._app_rows: Dict[str, Gtk.Label] = {}
        self._apps: List[Any] = []
        self._special_checks: Dict[str, Gtk.CheckButton] = {}
        self._syncing_checks = False

        root = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 12)
        for side in ("start", "end", "top", "bottom"):
            getattr(root, f"set_margin_{side}")(12)
        self.set_child(root)
        root.append(self._build_category_form())
        root.append(self._build_category_list())

        subs = context.subscriptions
        subs.adopt(context.coordinator.subscribe(self.on_store_reloaded))
        subs.adopt(context.app_watcher.subscribe(self.fill_apps_list))
        self.editor.start()
        self.fill_apps_list()
        self.refresh_categories()
        context.scheduler.idle_add(self.category_entry.grab_focus)

    def _build_category_form(self) -> Gtk.Box:
        form = Gtk.Box.new(Gtk.Orientation.VERTICAL, 6)
        form.props.hexpand = True
        header = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 6)
        self.category_icon_button = Gtk.Button(has_frame=False)
        self.category_icon_button.set_child(self._generic_category_icon())
        subs = self.context.subscriptions
        subs.connect(self.category_icon_button, "clicked", self.on_category_icon_clicked)
        header.append(self.category_icon_button)
        self.category_entry = Gtk.Entry(placeholder_text="Category name", hexpand=True)
        subs.connect(self.category_entry, "changed", self.on_category_entry_changed)
        header.append(self.category_entry)
        form.append(header)

        self.app_filter_entry = Gtk.SearchEntry(placeholder_text="Filter applications")
        subs.connect(self.app_filter_entry, "search-changed", self.on_app_filter_changed)
        form.append(self.app_filter_entry)

        self.apps_list = Gtk.ListBox()
        self.apps_list.set_selection_mode(Gtk.SelectionMode.NONE)
        self.apps_list.set_sensitive(False)
        subs.connect(self.apps_list, "row-activated", self.on_app_row_activated)
        gesture = Gtk.GestureClick.new()
        gesture.set_button(Gdk.BUTTON_SECONDARY)
        subs.connect(gesture, "pressed", self.on_apps_list_right_click)
        self.apps_list.add_controller(gesture)
        scrolled = Gtk.ScrolledWindow(vexpand=True)
        scrolled.set_child(self.apps_list)
        form.append(scrolled)

        self.add_button = Gtk.Button(label="Add Category")
        self.add_button.set_sensitive(False)
        subs.connect(self.add_button, "clicked", self.on_add_clicked)
        form.append(self.add_button)
        return form

    def _build_category_list(self) -> Gtk.Box:
        column = Gtk.Box.new(Gtk.Orientation.VERTICAL, 6)
        subs = self.context.subscriptions
        self.categories_list = Gtk.ListBox()
        subs.connect(self.categories_list, "row-activated", self.on_category_row_activated)
        scrolled = Gtk.ScrolledWindow(vexpand=True)
        scrolled.set_min_content_width(220)
        scrolled.set_child(self.categories_list)
        column.append(scrolled)

        buttons = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 6)
        for icon_name, handler in (
            ("go-up-symbolic", lambda *_: self.on_move_clicked(-1)),
            ("go-down-symbolic", lambda *_: self.on_move_clicked(1)),
            ("user-trash-symbolic", self.on_remove_clicked),
        ):
            button = Gtk.Button.new_from_icon_name(icon_name)
            subs.connect(button, "clicked", handler)
            buttons.append(button)
        column.append(buttons)

        for name, label in (
            (ALL_APPS_CATEGORY, "Show the 'All apps' entry"),
            (SEARCH_APP_CATEGORY, "Show the search entry"),
        ):
            check = Gtk.CheckButton(label=label)
            subs.connect(check, "toggled", self.on_special_toggled, name)
            self._special_checks[name] = check
            column.append(check)
        return column

    def _generic_category_icon(self) -> Gtk.Image:
        return icon_image(BASE_ICON_SIZE, icon_name="folder-symbolic")

    def fill_apps_list(self) -> None:
        clear_list_box(self.apps_list)
        self._app_rows.clear()
        self._apps = self.editor.available_apps()
        registry = self.context.registry
        for app in self._apps:
            app_id = registry.app_id(app)
            image = icon_image(
                BASE_ICON_SIZE,
                self.context.app_icons.path_for(app_id),
                registry.icon(app),
            )
            row = labelled_row(image, self.editor.app_label(app), "startmenu-editor-app")
            rank_label = Gtk.Label.new(self._rank_text(app_id))
            row.append(rank_label)
            self._app_rows[app_id] = rank_label
            self.apps_list.append(row)
        self.on_app_filter_changed(self.app_filter_entry)

    def _rank_text(self, app_id: str) -> str:
        rank = self.editor.selection.rank(app_id)
        return str(rank) if rank else ""

    def _update_rank_labels(self) -> None:
        for app_id, label in self._app_rows.items():
            label.set_label(self._rank_text(app_id))
        self._update_add_button()

    def _update_add_button(self) -> None:
        has_name = bool(self.category_entry.get_text().strip())
        self.add_button.set_sensitive(has_name and len(self.editor.selection) > 0)
        self.add_button.set_label(
            "Update Category" if self.editor.selected_category else "Add Category"
        )

    def refresh_categories(self) -> None:
        clear_list_box(self.categories_list)
        self._listed = self.editor.listed()
        for category in self._listed:
            image = icon_image(
                BASE_ICON_SIZE,
                self.context.category_icons.path_for(category.name),
                icon_name="folder-symbolic",
            )
            self.categories_list.append(
                labelled_row(image, category.name, "startmenu-editor-category")
            )
        self._syncing_checks = True
        for name, check in self._special_checks.items():
            check.set_active(name in self.context.categories)
        self._syncing_checks = False

    def _reset_form(self) -> None:
        self.editor.clear_selection()
        self.category_icon_source = None
        self.category_icon_button.set_child(self._generic_category_icon())
        self.category_entry.set_text("")
        self.categories_list.unselect_all()
        self._update_rank_labels()

    def on_store_reloaded(self) -> None:
        if self.editor.selected_category not in self.context.categories:
            self._reset_form()
        self.refresh_categories()

    def on_category_entry_changed(self, entry: Gtk.Entry) -> None:
        has_text = bool(entry.get_text().strip())
        self.apps_list.set_sensitive(has_text)
        if not has_text and self.editor.selected_category is None:
            self.editor.selection.clear()
            self._update_rank_labels()
        self._update_add_button()

    def on_app_filter_changed(self, entry: Gtk.SearchEntry) -> None:
        text = entry.get_text().strip().lower()
        row = self.apps_list.get_first_child()
        for app in self._apps:
            if row is None:
                break
            row.set_visible(not text or text in self.editor.app_label(app).lower())
            row = row.get_next_sibling()

    def on_app_row_activated(self, list_box, row) -> None:
        index = row.get_index()
        if 0 <= index < len(self._apps):
            self.editor.toggle_app(self.context.registry.app_id(self._apps[index]))
            self._update_rank_labels()

    def on_apps_list_right_click(self, gesture, n_press, x, y) -> None:
        row = self.apps_list.get_row_at_y(int(y))
        if row is not None and 0 <= row.get_index() < len(self._apps):
            self.show_edit_app_dialog(self._apps[row.get_index()])

    def show_edit_app_dialog(self, app: Any) -> None:
        """Lets the user rename an app or give it a custom icon."""
        app_id = self.context.registry.app_id(app)
        dialog = Gtk.Window(transient_for=self, modal=True, title="Edit Application")
        box = Gtk.Box.new(Gtk.Orientation.VERTICAL, 8)
        for side in ("start", "end", "top", "bottom"):
            getattr(box, f"set_margin_{side}")(16)
        row = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 4)
        chosen = {"icon": None}
        icon_button = Gtk.Button(has_frame=False)
        icon_button.set_child(
            icon_image(
                BASE_ICON_SIZE,
                self.context.app_icons.path_for(app_id),
                self.context.registry.icon(app),
            )
        )

        def on_icon_chosen(path: str) -> None:
            chosen["icon"] = path
            icon_button.set_child(icon_image(BASE_ICON_SIZE, path))

        icon_button.connect("clicked", lambda *_: choose_image(dialog, on_icon_chosen))
        entry = Gtk.Entry(placeholder_text="Enter a new name...", hexpand=True)
        entry.set_text(self.editor.app_label(app))
        row.append(icon_button)
        row.append(entry)
        box.append(row)

        actions = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 6)
        actions.set_halign(Gtk.Align.END)
        reset_button = Gtk.Button(label="_Reset", use_underline=True)
        save_button = Gtk.Button(label="_Save", use_underline=True)
        actions.append(reset_button)
        actions.append(save_button)
        box.append(actions)
        dialog.set_child(box)

        def on_reset(*_):
            self.editor.reset_app(app_id)
            dialog.destroy()
            self.fill_apps_list()

        def on_save(*_):
            self.editor.set_app_override(app_id, entry.get_text(), chosen["icon"])
            dialog.destroy()
            self.fill_apps_list()

        reset_button.connect("clicked", on_reset)
        save_button.connect("clicked", on_save)
        dialog.present()

    def on_category_icon_clicked(self, button) -> None:
        def on_chosen(path: str) -> None:
            self.category_icon_source = path
            self.category_icon_button.set_child(icon_image(BASE_ICON_SIZE, path))

        choose_image(self, on_chosen)

    def on_category_row_activated(self, list_box, row) -> None:
        index = row.get_index()
        if not 0 <= index < len(self._listed):
            return
        category = self._listed[index]
        if category.rank is None:
            list_box.unselect_row(row)
            return
        if not self.editor.select_category(category.name):
            self._reset_form()
            return
        self.category_icon_source = None
        self.category_entry.set_text(category.name)
        self.category_icon_button.set_child(
            icon_image(
                BASE_ICON_SIZE,
                self.context.category_icons.path_for(category.name),
                icon_name="folder-symbolic",
            )
        )
        self.fill_apps_list()
        self._update_rank_labels()

    def on_add_clicked(self, button) -> None:
        if self.editor.commit(self.category_entry.get_text(), self.category_icon_source):
            self._reset_form()
            self.app_filter_entry.set_text("")
            self.fill_apps_list()
        self.refresh_categories()

    def _selected_name(self) -> Optional[str]:
        row = self.categories_list.get_selected_row()
        if row is None or not 0 <= row.get_index() < len(self._listed):
            return None
        return self._listed[row.get_index()].name

    def on_move_clicked(self, delta: int) -> None:
        name = self._selected_name()
        if name and self.editor.move(name, delta):
            self.refresh_categories()
            for index, category in enumerate(self._listed):
                if category.name == name:
                    self.categories_list.select_row(
                        self.categories_list.get_row_at_index(index)
                    )

    def on_remove_clicked(self, button) -> None:
        name = self._selected_name()
        if name and self.editor.remove(name):
            self._reset_form()
            self.refresh_categories()

    def on_special_toggled(self, check: Gtk.CheckButton, name: str) -> None:
        if self._syncing_checks:
            return
        self.editor.set_special(name, check.get_active())
        self.refresh_categories()

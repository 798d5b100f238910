from typing import Any, Dict, List, Optional

from startmenu.core.context import MenuContext
from startmenu.store.errors import StartMenuError
from startmenu.store.models import AppEntry, Category, desktop_id


class SelectionTable:
    """
    The apps picked for the category being edited and the order they were
    picked in. Ranks stay 1..N: removing an app shifts the later ones down.
    """

    def __init__(self):
        self._ranks: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._ranks)

    def __contains__(self, app_id: str) -> bool:
        return app_id in self._ranks

    def rank(self, app_id: str) -> int:
        """0 when the app is not selected."""
        return self._ranks.get(app_id, 0)

    def toggle(self, app_id: str) -> int:
        """
        Selects the app at the end, or deselects it.
        Returns:
            The app's new rank, 0 if it was deselected.
        """
        current = self._ranks.pop(app_id, 0)
        if current == 0:
            self._ranks[app_id] = len(self._ranks) + 1
            return self._ranks[app_id]
        for other, rank in self._ranks.items():
            if rank > current:
                self._ranks[other] = rank - 1
        return 0

    def load(self, apps: List[AppEntry]) -> None:
        self._ranks = {
            app.id: rank
            for rank, app in enumerate(sorted(apps, key=lambda a: a.rank), start=1)
        }

    def selected(self) -> List[str]:
        return sorted(self._ranks, key=self._ranks.__getitem__)

    def clear(self) -> None:
        self._ranks.clear()


class CategoryEditor:
    """
    State behind the editor window. Store failures are reported to the user
    and the in-memory categories stay as they are.
    """

    def __init__(self, context: MenuContext):
        self.context = context
        self.registry = context.registry
        self.store = context.categories
        self.logger = context.logger
        self.selection = SelectionTable()
        self.selected_category: Optional[str] = None
        self.name_overrides: Dict[str, str] = {}
        self.icon_overrides: Dict[str, str] = {}

    def start(self) -> None:
        """Drops apps that are no longer installed and saves if anything changed."""
        self.context.start()
        if self.store.prune_uninstalled(self.is_installed):
            self._save()

    def is_installed(self, app_id: str) -> bool:
        return self.registry.lookup(desktop_id(app_id)) is not None

    def _save(self) -> bool:
        try:
            self.context.coordinator.save()
        except StartMenuError as e:
            self.context.report("Could not save categories", e)
            return False
        return True

    def available_apps(self) -> List[Any]:
        """Apps that can be added to a category, sorted by display name."""
        apps = [a for a in self.registry.list_apps() if self.registry.should_show(a)]
        return sorted(apps, key=lambda a: self.registry.display_name(a).lower())

    def app_label(self, app: Any) -> str:
        app_id = self.registry.app_id(app)
        return self.name_overrides.get(app_id) or self.registry.display_name(app)

    def listed(self) -> List[Category]:
        """Categories shown in the editor list: ranked ones by rank, the special ones last."""
        return self.store.ordered()

    def select_category(self, name: str) -> bool:
        """
        Loads a category's apps into the selection. Selecting the category
        that is already selected clears the selection instead.
        Returns:
            True if a category is now selected.
        """
        if name == self.selected_category or name not in self.store:
            self.clear_selection()
            return False
        category = self.store.get(name)
        self.selected_category = name
        self.selection.load(category.apps)
        self.name_overrides = {
            app.id: app.name
            for app in category.apps
            if app.name and app.name != self._default_name(app.id)
        }
        self.icon_overrides.clear()
        return True

    def clear_selection(self) -> None:
        self.selected_category = None
        self.selection.clear()
        self.name_overrides.clear()
        self.icon_overrides.clear()

    def toggle_app(self, app_id: str) -> int:
        return self.selection.toggle(app_id)

    def set_app_override(
        self, app_id: str, name: Optional[str] = None, icon_source: Optional[str] = None
    ) -> None:
        """Stores a custom display name and/or icon, applied on commit."""
        if name and name.strip():
            self.name_overrides[app_id] = name.strip()
        if icon_source:
            self.icon_overrides[app_id] = icon_source

    def reset_app(self, app_id: str) -> None:
        """
        Drops the app's custom name and deletes its custom icon. A deleted
        icon is followed by a save so the popup picks it up.
        """
        self.name_overrides.pop(app_id, None)
        self.icon_overrides.pop(app_id, None)
        try:
            removed = self.context.app_icons.remove(app_id)
        except StartMenuError as e:
            self.context.report("Could not remove app icon", e)
            return
        if removed:
            self._save()

    def _default_name(self, app_id: str) -> str:
        app = self.registry.lookup(desktop_id(app_id))
        return self.registry.display_name(app) if app is not None else app_id

    def _entry_for(self, app_id: str, rank: int) -> AppEntry:
        name = self.name_overrides.get(app_id) or self._default_name(app_id)
        return AppEntry(id=app_id, name=name, rank=rank)

    def commit(self, name: str, icon_source: Optional[str] = None) -> bool:
        """
        Saves the selected apps as category `name`. When a category is
        selected it is updated in place (and renamed if `name` differs),
        otherwise a new category is added at the end.
        Returns:
            True if the category was stored. A failed save is reported separately.
        """
        name = name.strip()
        if not name:
            self.logger.warning("Refusing to save a category without a name.")
            return False
        if not len(self.selection):
            self.logger.warning(f"Refusing to save category '{name}' without apps.")
            return False
        for app_id in self.selection.selected():
            source = self.icon_overrides.get(app_id)
            if not source:
                continue
            try:
                self.context.app_icons.copy_and_register(app_id, source)
            except StartMenuError as e:
                self.context.report(f"Could not set icon for {app_id}", e)
        apps = [
            self._entry_for(app_id, self.selection.rank(app_id))
            for app_id in self.selection.selected()
        ]
        try:
            self.store.upsert(
                Category(name=name, apps=apps),
                previous_name=self.selected_category,
                icon_source=icon_source,
            )
        except (StartMenuError, ValueError) as e:
            self.context.report(f"Could not save category '{name}'", e)
            return False
        self._save()
        self.clear_selection()
        return True

    def remove(self, name: str) -> bool:
        try:
            removed = self.store.remove(name)
        except StartMenuError as e:
            self.context.report(f"Could not remove the icon of '{name}'", e)
            removed = True
        if not removed:
            return False
        if self.selected_category == name:
            self.clear_selection()
        self._save()
        return True

    def move(self, name: str, delta: int) -> bool:
        if not self.store.reorder(name, delta):
            return False
        self._save()
        return True

    def set_special(
        self, name: str, enabled: bool, icon_source: Optional[str] = None
    ) -> bool:
        try:
            changed = self.store.set_special(name, enabled, icon_source)
        except StartMenuError as e:
            self.context.report(f"Could not update '{name}'", e)
            return False
        if not changed:
            return False
        self._save()
        return True

from dataclasses import dataclass
from typing import Any, List, Optional

from startmenu.core.context import MenuContext
from startmenu.store.errors import LaunchError, StoreWriteError
from startmenu.store.models import (
    ALL_APPS_CATEGORY,
    RECENTS_CATEGORY,
    SEARCH_APP_CATEGORY,
    SPECIAL_CATEGORIES,
    desktop_id,
)

ALL_APPS_LABEL = "Show all applications"

ENTRY_CATEGORY = "category"
ENTRY_ALL_APPS = "all-apps"
ENTRY_RECENTS = "recents"
ENTRY_SEARCH = "search"


@dataclass(frozen=True)
class MenuEntry:
    """One row of the popup's left column."""

    kind: str
    name: str
    label: str
    icon_path: Optional[str] = None


@dataclass(frozen=True)
class AppRow:
    """An application ready to be shown: the registry object plus what to display."""

    id: str
    label: str
    app: Any
    custom_icon_path: Optional[str] = None


class LauncherMenu:
    """What the popup shows, computed from the stores and the app registry."""

    def __init__(self, context: MenuContext):
        self.context = context
        self.registry = context.registry
        self.logger = context.logger

    def entries(self) -> List[MenuEntry]:
        """
        Ranked categories in rank order, then 'All apps' when enabled, then
        the recent apps, then the search entry when 'Search app' is enabled.
        """
        store = self.context.categories
        icons = self.context.category_icons
        entries = [
            MenuEntry(ENTRY_CATEGORY, c.name, c.name, icons.path_for(c.name))
            for c in store.ordered()
            if c.name not in SPECIAL_CATEGORIES
        ]
        if ALL_APPS_CATEGORY in store:
            entries.append(
                MenuEntry(
                    ENTRY_ALL_APPS,
                    ALL_APPS_CATEGORY,
                    ALL_APPS_LABEL,
                    icons.path_for(ALL_APPS_CATEGORY),
                )
            )
        entries.append(
            MenuEntry(
                ENTRY_RECENTS,
                RECENTS_CATEGORY,
                RECENTS_CATEGORY,
                icons.path_for(RECENTS_CATEGORY),
            )
        )
        if SEARCH_APP_CATEGORY in store:
            entries.append(
                MenuEntry(ENTRY_SEARCH, SEARCH_APP_CATEGORY, SEARCH_APP_CATEGORY)
            )
        return entries

    def _row(self, app_id: str, label: Optional[str] = None) -> Optional[AppRow]:
        app = self.registry.lookup(desktop_id(app_id))
        if app is None or not self.registry.should_show(app):
            return None
        return AppRow(
            id=desktop_id(app_id),
            label=label or self.registry.display_name(app),
            app=app,
            custom_icon_path=self.context.app_icons.path_for(app_id),
        )

    def apps_for(self, name: str) -> List[AppRow]:
        """Apps of a category in rank order, skipping uninstalled and hidden ones."""
        category = self.context.categories.get(name)
        if category is None:
            return []
        rows = []
        for entry in category.sorted_apps():
            row = self._row(entry.id, entry.name)
            if row is not None:
                rows.append(row)
        return rows

    def recent_apps(self) -> List[AppRow]:
        recents = self.context.recents
        if recents is None:
            return []
        rows = []
        for app_id in recents.ids():
            row = self._row(app_id)
            if row is not None:
                rows.append(row)
        return rows

    def search(self, text: str) -> List[AppRow]:
        """
        Shown apps whose display name contains `text`, ignoring case.
        Each app id appears once.
        """
        needle = text.strip().lower()
        rows = []
        seen = set()
        for app in self.registry.list_apps():
            app_id = self.registry.app_id(app)
            if not app_id or app_id in seen or not self.registry.should_show(app):
                continue
            name = self.registry.display_name(app)
            if needle not in name.lower():
                continue
            seen.add(app_id)
            rows.append(AppRow(id=app_id, label=name, app=app))
        return rows

    def launch(self, app_id: str) -> bool:
        """
        Records the app in recent apps and starts it. Failures are reported
        to the user, never raised.
        Returns:
            True if the app was started.
        """
        app_id = desktop_id(app_id)
        recents = self.context.recents
        if recents is not None and recents.bump(app_id):
            try:
                recents.save()
            except StoreWriteError as e:
                self.context.report("Could not save recent apps", e)
        try:
            self.registry.launch(app_id)
        except LaunchError as e:
            self.context.report(f"Could not launch app: {app_id}", e)
            return False
        return True

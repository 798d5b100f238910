from startmenu.store.errors import (
    AssetIOError,
    LaunchError,
    StartMenuError,
    StoreParseError,
    StoreReadError,
    StoreWriteError,
    WatchSetupError,
)
from startmenu.store.models import AppEntry, Category, RecentEntry
from startmenu.store.icons import IconAssetIndex
from startmenu.store.categories import CategoryStore
from startmenu.store.recents import RecentsStore

__all__ = [
    "AppEntry",
    "AssetIOError",
    "Category",
    "CategoryStore",
    "IconAssetIndex",
    "LaunchError",
    "RecentEntry",
    "RecentsStore",
    "StartMenuError",
    "StoreParseError",
    "StoreReadError",
    "StoreWriteError",
    "WatchSetupError",
]

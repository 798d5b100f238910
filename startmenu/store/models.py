from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ALL_APPS_CATEGORY = "All apps"
SEARCH_APP_CATEGORY = "Search app"
RECENTS_CATEGORY = "Recent apps"
SPECIAL_CATEGORIES = frozenset({ALL_APPS_CATEGORY, SEARCH_APP_CATEGORY})

MAX_RECENTS = 15
RELOAD_DELAY_MS = 500
ALLOWED_IMAGE_EXTENSIONS = ("jpeg", "jpg", "png", "bmp", "webp", "ico", "svg")


def desktop_id(app_id: str) -> str:
    """Returns the desktop file id for an app id, appending '.desktop' if missing."""
    return app_id if app_id.endswith(".desktop") else f"{app_id}.desktop"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class AppEntry:
    """An application placed inside a category, with its display name and position."""

    id: str
    name: str
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "rank": self.rank}

    @classmethod
    def from_dict(cls, data: Any, position: int) -> "AppEntry":
        """
        Builds an entry from a decoded record.
        Args:
            data: The decoded JSON value.
            position: Zero-based index inside the category, used when 'rank' is absent.
        Raises:
            ValueError: If the record is not an object or has an invalid id/name/rank.
        """
        if not isinstance(data, dict):
            raise ValueError(f"app entry at position {position} is not an object")
        app_id = data.get("id")
        if not isinstance(app_id, str) or not app_id:
            raise ValueError(f"app entry at position {position} has no id")
        name = data.get("name", app_id)
        if not isinstance(name, str):
            raise ValueError(f"app entry '{app_id}' has a non-string name")
        rank = data.get("rank", position + 1)
        if not _is_int(rank):
            raise ValueError(f"app entry '{app_id}' has a non-integer rank")
        return cls(id=app_id, name=name, rank=rank)


@dataclass
class Category:
    """
    A named bucket of applications. Categories with rank None are the special
    'All apps' / 'Search app' entries and stay out of the rank sequence.
    """

    name: str
    rank: Optional[int] = None
    apps: List[AppEntry] = field(default_factory=list)

    @property
    def is_ranked(self) -> bool:
        return self.rank is not None

    def sorted_apps(self) -> List[AppEntry]:
        return sorted(self.apps, key=lambda app: app.rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rank": self.rank,
            "apps": [app.to_dict() for app in self.apps],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Category":
        if not isinstance(data, dict):
            raise ValueError("category record is not an object")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("category record has no name")
        rank = data.get("rank")
        if rank is not None and not _is_int(rank):
            raise ValueError(f"category '{name}' has a non-integer rank")
        apps = data.get("apps") or []
        if not isinstance(apps, list):
            raise ValueError(f"category '{name}' has a non-list 'apps' field")
        return cls(
            name=name,
            rank=rank,
            apps=[AppEntry.from_dict(app, i) for i, app in enumerate(apps)],
        )


@dataclass(frozen=True)
class RecentEntry:
    """A launched application and the time (ms since epoch) it was launched."""

    id: str
    ts: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "ts": self.ts}

    @classmethod
    def from_dict(cls, data: Any) -> "RecentEntry":
        if not isinstance(data, dict):
            raise ValueError("recent record is not an object")
        app_id = data.get("id")
        if not isinstance(app_id, str) or not app_id:
            raise ValueError("recent record has no string id")
        ts = data.get("ts", 0)
        if not _is_int(ts):
            raise ValueError(f"recent record '{app_id}' has a non-integer timestamp")
        return cls(id=app_id, ts=ts)


def renumber_apps(apps: List[AppEntry]) -> List[AppEntry]:
    """Returns the entries ordered by rank with ranks rewritten to 1..M."""
    ordered = sorted(apps, key=lambda app: app.rank)
    return [
        AppEntry(id=app.id, name=app.name, rank=index)
        for index, app in enumerate(ordered, start=1)
    ]

from typing import Any, Callable, Dict, Iterator, List, Optional

import structlog

from startmenu.store import jsonl
from startmenu.store.errors import AssetIOError, StoreParseError, StoreReadError
from startmenu.store.icons import IconAssetIndex
from startmenu.store.models import SPECIAL_CATEGORIES, Category, renumber_apps


class CategoryStore:
    """
    The user's categories, keyed by name in insertion order, persisted as one
    JSON object per line.

    Ranked categories always carry ranks 1..N without gaps; the special
    'All apps' and 'Search app' categories have rank None and are left out of
    that sequence. Every mutation keeps this invariant, and app entries inside
    a category are kept at ranks 1..M the same way.
    """

    def __init__(
        self,
        path: str,
        icons: Optional[IconAssetIndex] = None,
        logger: Any = None,
    ):
        self.path = str(path)
        self.icons = icons
        self.logger = logger or structlog.get_logger(__name__)
        self._categories: Dict[str, Category] = {}
        self._digest: Optional[str] = None

    def __contains__(self, name: str) -> bool:
        return name in self._categories

    def __len__(self) -> int:
        return len(self._categories)

    def __iter__(self) -> Iterator[Category]:
        return iter(list(self._categories.values()))

    def get(self, name: str) -> Optional[Category]:
        return self._categories.get(name)

    def names(self) -> List[str]:
        return list(self._categories)

    def ranked(self) -> List[Category]:
        """Ranked categories ordered by (rank, name)."""
        return sorted(
            (c for c in self._categories.values() if c.rank is not None),
            key=lambda c: (c.rank, c.name),
        )

    def ordered(self) -> List[Category]:
        """All categories: ranked ones first in rank order, then the unranked in insertion order."""
        unranked = [c for c in self._categories.values() if c.rank is None]
        return self.ranked() + unranked

    def _normalize(self) -> None:
        for rank, category in enumerate(self.ranked(), start=1):
            category.rank = rank

    def load(self) -> List[StoreParseError]:
        """
        Replaces the in-memory categories with the content of the file.
        A missing file gives an empty store. A line that cannot be decoded
        is skipped and logged; the others are kept.
        Returns:
            The parse errors of the skipped lines.
        """
        try:
            data = jsonl.read_bytes(self.path)
        except StoreReadError as e:
            if e.missing:
                self.logger.info(f"No categories file at {self.path}, starting empty.")
            else:
                self.logger.error(f"Failed to read categories: {e}")
            self._categories = {}
            self._digest = None
            return []
        records, errors = jsonl.decode_lines(self.path, data)
        categories: Dict[str, Category] = {}
        for line_number, record in records:
            try:
                category = Category.from_dict(record)
            except ValueError as e:
                errors.append(StoreParseError(self.path, line_number, str(e)))
                continue
            category.apps = renumber_apps(category.apps)
            categories[category.name] = category
        for error in errors:
            self.logger.warning(f"Skipping malformed category line: {error}")
        self._categories = categories
        self._normalize()
        self._digest = jsonl.content_digest(data)
        self.logger.debug(f"Loaded {len(categories)} categories from {self.path}.")
        return errors

    def save(self) -> None:
        """
        Writes every category as one line, in insertion order.
        Raises:
            StoreWriteError: If the file cannot be replaced.
        """
        payload = jsonl.encode_lines(c.to_dict() for c in self._categories.values())
        jsonl.write_atomic(self.path, payload)
        self._digest = jsonl.content_digest(payload)
        self.logger.debug(f"Saved {len(self._categories)} categories to {self.path}.")

    def is_current(self) -> bool:
        """True if the file on disk holds exactly what this store last read or wrote."""
        return jsonl.file_digest(self.path) == self._digest

    def upsert(
        self,
        category: Category,
        previous_name: Optional[str] = None,
        icon_source: Optional[str] = None,
    ) -> Category:
        """
        Inserts a new category or replaces an existing one in place.
        Args:
            category: The category to store. Its app entries are re-ranked 1..M
                in their current rank order.
            previous_name: Name of the category being edited, if it is renamed.
            icon_source: A newly chosen icon file for the category.
        Returns:
            The stored category.
        Raises:
            ValueError: If a rename would overwrite another category.
            AssetIOError: If the icon could not be copied or renamed. The
                categories are unchanged in that case.
        """
        old_name = previous_name or category.name
        renamed = old_name != category.name
        if renamed and category.name in self._categories:
            raise ValueError(f"A category named '{category.name}' already exists")
        existing = self._categories.get(old_name)

        if self.icons is not None:
            if icon_source:
                self.icons.copy_and_register(category.name, icon_source)
                if renamed:
                    try:
                        self.icons.remove(old_name)
                    except AssetIOError:
                        self.icons.remove(category.name)
                        raise
            elif renamed:
                self.icons.rename(old_name, category.name)

        if existing is not None:
            rank = existing.rank
        elif category.name in SPECIAL_CATEGORIES:
            rank = None
        else:
            rank = max((c.rank for c in self.ranked()), default=0) + 1
        stored = Category(
            name=category.name, rank=rank, apps=renumber_apps(category.apps)
        )

        if existing is not None and renamed:
            self._categories = {
                (stored.name if key == old_name else key): (
                    stored if key == old_name else value
                )
                for key, value in self._categories.items()
            }
        else:
            self._categories[stored.name] = stored
        self._normalize()
        self.logger.info(
            f"{'Updated' if existing is not None else 'Added'} category '{stored.name}'."
        )
        return stored

    def remove(self, name: str) -> bool:
        """
        Deletes a category, closes the rank gap it leaves and deletes its icon.
        Returns:
            False if there is no such category.
        Raises:
            AssetIOError: If the icon exists but cannot be deleted. The
                category is already gone from the store at that point.
        """
        if self._categories.pop(name, None) is None:
            return False
        self._normalize()
        self.logger.info(f"Removed category '{name}'.")
        if self.icons is not None and name in self.icons:
            self.icons.remove(name)
        return True

    def reorder(self, name: str, direction: int) -> bool:
        """
        Swaps a ranked category with its neighbour: -1 moves it up, +1 down.
        Returns:
            False when nothing moved (first/last position, unknown or unranked category).
        """
        if direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or 1, not {direction}")
        ranked = self.ranked()
        position = next((i for i, c in enumerate(ranked) if c.name == name), None)
        if position is None:
            return False
        target = position + direction
        if target < 0 or target >= len(ranked):
            return False
        ranked[position], ranked[target] = ranked[target], ranked[position]
        for rank, category in enumerate(ranked, start=1):
            category.rank = rank
        return True

    def prune_uninstalled(self, is_installed: Callable[[str], bool]) -> bool:
        """
        Drops app entries whose id fails `is_installed` and re-ranks the rest.
        Returns:
            True if any category changed.
        """
        changed = False
        for category in self._categories.values():
            kept = renumber_apps([a for a in category.apps if is_installed(a.id)])
            if kept != category.apps:
                dropped = len(category.apps) - len(kept)
                if dropped:
                    self.logger.info(
                        f"Dropped {dropped} uninstalled app(s) from '{category.name}'."
                    )
                category.apps = kept
                changed = True
        return changed

    def set_special(
        self, name: str, enabled: bool, icon_source: Optional[str] = None
    ) -> bool:
        """
        Adds or removes one of the special unranked categories.
        Disabling leaves its icon in place so re-enabling restores it.
        Returns:
            True if the store or the special category's icon changed.
        """
        if name not in SPECIAL_CATEGORIES:
            raise ValueError(f"'{name}' is not a special category")
        if not enabled:
            return self._categories.pop(name, None) is not None
        icon_changed = False
        if icon_source and self.icons is not None:
            self.icons.copy_and_register(name, icon_source)
            icon_changed = True
        if name in self._categories:
            return icon_changed
        self._categories[name] = Category(name=name, rank=None, apps=[])
        return True

import time
from typing import Any, Callable, List, Optional

import structlog

from startmenu.store import jsonl
from startmenu.store.errors import StoreParseError, StoreReadError
from startmenu.store.models import MAX_RECENTS, RecentEntry


def _now_ms() -> int:
    return int(time.time() * 1000)


class RecentsStore:
    """
    Most recently launched applications, newest first, at most `capacity`
    entries and each desktop id at most once. Only the popup writes this file.
    """

    def __init__(
        self,
        path: str,
        capacity: int = MAX_RECENTS,
        clock: Optional[Callable[[], int]] = None,
        logger: Any = None,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.path = str(path)
        self.capacity = capacity
        self.clock = clock or _now_ms
        self.logger = logger or structlog.get_logger(__name__)
        self._entries: List[RecentEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> List[RecentEntry]:
        return list(self._entries)

    def ids(self) -> List[str]:
        return [entry.id for entry in self._entries]

    def load(self) -> List[StoreParseError]:
        try:
            data = jsonl.read_bytes(self.path)
        except StoreReadError as e:
            if not e.missing:
                self.logger.error(f"Failed to read recent apps: {e}")
            self._entries = []
            return []
        records, errors = jsonl.decode_lines(self.path, data)
        entries: List[RecentEntry] = []
        seen = set()
        for line_number, record in records:
            try:
                entry = RecentEntry.from_dict(record)
            except ValueError as e:
                errors.append(StoreParseError(self.path, line_number, str(e)))
                continue
            if entry.id in seen:
                continue
            seen.add(entry.id)
            entries.append(entry)
        for error in errors:
            self.logger.warning(f"Skipping malformed recent app line: {error}")
        self._entries = entries[: self.capacity]
        return errors

    def bump(self, app_id: str) -> bool:
        """
        Moves `app_id` to the front, dropping its older occurrence and the
        oldest entries beyond capacity.
        Returns:
            False if the id is not a desktop file id and was not recorded.
        """
        if not app_id.endswith(".desktop"):
            self.logger.debug(f"Not recording '{app_id}' in recent apps.")
            return False
        entries = [entry for entry in self._entries if entry.id != app_id]
        entries.insert(0, RecentEntry(id=app_id, ts=self.clock()))
        self._entries = entries[: self.capacity]
        return True

    def save(self) -> None:
        """
        Raises:
            StoreWriteError: If the file cannot be replaced.
        """
        payload = jsonl.encode_lines(entry.to_dict() for entry in self._entries)
        jsonl.write_atomic(self.path, payload)

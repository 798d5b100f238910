"""
Collaborators the start menu depends on but does not implement itself.

The GTK runtime provides GLib/Gio backed implementations in
`startmenu.shared.glib_backend` and `startmenu.shared.app_registry`;
tests provide in-memory fakes.
"""

import enum
from typing import Any, Callable, Iterable, Optional, Protocol


class ChangeKind(enum.Enum):
    CREATED = "created"
    CHANGES_DONE = "changes-done"
    CHANGED = "changed"
    ATTRIBUTE_CHANGED = "attribute-changed"
    DELETED = "deleted"
    OTHER = "other"


# A writer that finished (or a file that appeared by rename) is the only
# point where the content is complete.
QUALIFYING_KINDS = frozenset({ChangeKind.CREATED, ChangeKind.CHANGES_DONE})


class Scheduler(Protocol):
    def timeout_add(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        """Runs `callback` once after `delay_ms`; returns a handle for source_remove."""
        ...

    def source_remove(self, handle: Any) -> None: ...

    def idle_add(self, callback: Callable[[], None]) -> Any: ...


class FileWatch(Protocol):
    def cancel(self) -> None: ...


class FileWatchFactory(Protocol):
    def watch_file(
        self, path: str, callback: Callable[[ChangeKind], None]
    ) -> FileWatch:
        """
        Raises:
            OSError or any backend error if the path cannot be watched.
        """
        ...

    def watch_directory(
        self, path: str, callback: Callable[[ChangeKind], None]
    ) -> FileWatch: ...


class AppRegistry(Protocol):
    def list_apps(self) -> Iterable[Any]: ...

    def lookup(self, app_id: str) -> Optional[Any]: ...

    def app_id(self, app: Any) -> str: ...

    def should_show(self, app: Any) -> bool: ...

    def display_name(self, app: Any) -> str: ...

    def icon(self, app: Any) -> Optional[Any]: ...

    def launch(self, app_id: str) -> None:
        """
        Raises:
            LaunchError: If the application could not be started.
        """
        ...

    def refresh(self) -> None: ...


class Notifier(Protocol):
    def notify_send(self, title: str, message: str, icon: str = "", **kwargs) -> None: ...

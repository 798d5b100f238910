from typing import Any, Callable

from gi.repository import Gio, GLib  # pyright: ignore

from startmenu.core.ports import ChangeKind

_EVENT_KINDS = {
    Gio.FileMonitorEvent.CHANGES_DONE_HINT: ChangeKind.CHANGES_DONE,
    Gio.FileMonitorEvent.CREATED: ChangeKind.CREATED,
    # An atomic save renames the temporary file over the target.
    Gio.FileMonitorEvent.MOVED_IN: ChangeKind.CREATED,
    Gio.FileMonitorEvent.RENAMED: ChangeKind.CREATED,
    Gio.FileMonitorEvent.MOVED: ChangeKind.CREATED,
    Gio.FileMonitorEvent.CHANGED: ChangeKind.CHANGED,
    Gio.FileMonitorEvent.ATTRIBUTE_CHANGED: ChangeKind.ATTRIBUTE_CHANGED,
    Gio.FileMonitorEvent.DELETED: ChangeKind.DELETED,
    Gio.FileMonitorEvent.MOVED_OUT: ChangeKind.DELETED,
}


def change_kind(event_type: Gio.FileMonitorEvent) -> ChangeKind:
    return _EVENT_KINDS.get(event_type, ChangeKind.OTHER)


class GLibScheduler:
    """One-shot timeouts and idle callbacks on the default GLib main context."""

    def timeout_add(self, delay_ms: int, callback: Callable[[], None]) -> int:
        def run_once():
            callback()
            return GLib.SOURCE_REMOVE

        return GLib.timeout_add(delay_ms, run_once)

    def source_remove(self, handle: int) -> None:
        GLib.source_remove(handle)

    def idle_add(self, callback: Callable[[], None]) -> int:
        def run_once():
            callback()
            return GLib.SOURCE_REMOVE

        return GLib.idle_add(run_once)


class GioFileWatch:
    def __init__(self, monitor: Gio.FileMonitor, callback: Callable[[ChangeKind], None]):
        self.monitor = monitor
        self.callback = callback
        self.handler_id = monitor.connect("changed", self._on_changed)

    def _on_changed(
        self,
        monitor: Gio.FileMonitor,
        file: Gio.File,
        other_file: Any,
        event_type: Gio.FileMonitorEvent,
    ) -> None:
        self.callback(change_kind(event_type))

    def cancel(self) -> None:
        if self.monitor is None:
            return
        self.monitor.disconnect(self.handler_id)
        self.monitor.cancel()
        self.monitor = None


class GioFileWatchFactory:
    def watch_file(self, path: str, callback: Callable[[ChangeKind], None]) -> GioFileWatch:
        gio_file = Gio.File.new_for_path(path)
        monitor = gio_file.monitor_file(Gio.FileMonitorFlags.NONE, None)
        return GioFileWatch(monitor, callback)

    def watch_directory(
        self, path: str, callback: Callable[[ChangeKind], None]
    ) -> GioFileWatch:
        gio_file = Gio.File.new_for_path(path)
        monitor = gio_file.monitor_directory(Gio.FileMonitorFlags.NONE, None)
        return GioFileWatch(monitor, callback)

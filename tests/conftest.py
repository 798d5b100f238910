from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import pytest

from startmenu.core.context import MenuContext, MenuSettings
from startmenu.core.ports import ChangeKind
from startmenu.shared.path_handler import MenuPaths
from startmenu.store.errors import LaunchError


class RecordingLogger:
    def __init__(self):
        self.records = []

    def _record(self, level, message, *args, **kwargs):
        self.records.append((level, str(message)))

    def debug(self, message, *args, **kwargs):
        self._record("debug", message)

    def info(self, message, *args, **kwargs):
        self._record("info", message)

    def warning(self, message, *args, **kwargs):
        self._record("warning", message)

    def error(self, message, *args, **kwargs):
        self._record("error", message)

    def messages(self, level=None):
        return [m for lvl, m in self.records if level is None or lvl == level]


class FakeScheduler:
    """Timers fire only when the test advances the clock."""

    def __init__(self):
        self.now = 0
        self._next_handle = 1
        self.timers: Dict[int, tuple] = {}
        self.idle: List[Callable] = []
        self.removed: List[int] = []

    def timeout_add(self, delay_ms, callback):
        handle = self._next_handle
        self._next_handle += 1
        self.timers[handle] = (self.now + delay_ms, callback)
        return handle

    def source_remove(self, handle):
        self.removed.append(handle)
        self.timers.pop(handle, None)

    def idle_add(self, callback):
        self.idle.append(callback)
        return len(self.idle)

    def pending(self):
        return len(self.timers)

    def advance(self, ms):
        self.now += ms
        while True:
            due = sorted(
                (when, handle) for handle, (when, _) in self.timers.items()
                if when <= self.now
            )
            if not due:
                return
            _, handle = due[0]
            _, callback = self.timers.pop(handle)
            callback()


class FakeWatch:
    def __init__(self, factory, path, callback):
        self.factory = factory
        self.path = path
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeWatchFactory:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.watches: List[FakeWatch] = []

    def _watch(self, path, callback):
        if str(path) in self.failing:
            raise OSError(f"cannot watch {path}")
        watch = FakeWatch(self, str(path), callback)
        self.watches.append(watch)
        return watch

    def watch_file(self, path, callback):
        return self._watch(path, callback)

    def watch_directory(self, path, callback):
        return self._watch(path, callback)

    def emit(self, path, kind=ChangeKind.CHANGES_DONE):
        for watch in self.watches:
            if watch.path == str(path) and not watch.cancelled:
                watch.callback(kind)


@dataclass
class FakeApp:
    id: str
    name: str
    show: bool = True
    icon: Optional[str] = None


class FakeRegistry:
    def __init__(self, apps=()):
        self.apps = {app.id: app for app in apps}
        self.launched: List[str] = []
        self.refreshed = 0
        self.fail_launch = False

    def list_apps(self):
        return list(self.apps.values())

    def lookup(self, app_id):
        return self.apps.get(app_id)

    def app_id(self, app):
        return app.id

    def should_show(self, app):
        return app.show

    def display_name(self, app):
        return app.name

    def icon(self, app):
        return app.icon

    def launch(self, app_id):
        if self.fail_launch:
            raise LaunchError(f"cannot start {app_id}")
        self.launched.append(app_id)

    def refresh(self):
        self.refreshed += 1


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def notify_send(self, title, message, icon="", **kwargs):
        self.sent.append((title, message))


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def watch_factory():
    return FakeWatchFactory()


@pytest.fixture
def registry():
    return FakeRegistry(
        [
            FakeApp("firefox.desktop", "Firefox"),
            FakeApp("gimp.desktop", "GIMP"),
            FakeApp("code.desktop", "Visual Studio Code"),
            FakeApp("hidden.desktop", "Hidden Helper", show=False),
        ]
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def paths(tmp_path):
    return MenuPaths(str(tmp_path / "data"))


@pytest.fixture
def make_context(paths, scheduler, watch_factory, registry, notifier, logger, tmp_path):
    contexts = []

    def factory(surface="popup", **settings):
        settings.setdefault("application_dirs", (str(tmp_path / "applications"),))
        context = MenuContext(
            surface,
            paths,
            scheduler=scheduler,
            watch_factory=watch_factory,
            registry=registry,
            notifier=notifier,
            settings=MenuSettings(**settings),
            logger=logger,
        )
        contexts.append(context)
        return context

    yield factory
    for context in contexts:
        context.close()

import os

from startmenu.menu.launcher import (
    ALL_APPS_LABEL,
    ENTRY_ALL_APPS,
    ENTRY_CATEGORY,
    ENTRY_RECENTS,
    ENTRY_SEARCH,
    LauncherMenu,
)
from startmenu.store.models import (
    ALL_APPS_CATEGORY,
    SEARCH_APP_CATEGORY,
    AppEntry,
    Category,
)
from tests.conftest import FakeApp


def _popup(make_context, setup=None):
    context = make_context("popup")
    if setup is not None:
        setup(context)
    context.start()
    return context, LauncherMenu(context)


def _seed(context):
    store = context.categories
    store.upsert(Category("Play", apps=[AppEntry("gimp.desktop", "GIMP", 1)]))
    store.upsert(
        Category(
            "Work",
            apps=[
                AppEntry("code", "My Editor", 2),
                AppEntry("firefox.desktop", "Firefox", 1),
                AppEntry("removed.desktop", "Removed", 3),
                AppEntry("hidden.desktop", "Hidden", 4),
            ],
        )
    )
    store.set_special(SEARCH_APP_CATEGORY, True)
    store.set_special(ALL_APPS_CATEGORY, True)
    store.reorder("Work", -1)
    store.save()


def test_entries_order(make_context):
    context, menu = _popup(make_context, _seed)

    entries = menu.entries()

    assert [(e.kind, e.label) for e in entries] == [
        (ENTRY_CATEGORY, "Work"),
        (ENTRY_CATEGORY, "Play"),
        (ENTRY_ALL_APPS, ALL_APPS_LABEL),
        (ENTRY_RECENTS, "Recent apps"),
        (ENTRY_SEARCH, SEARCH_APP_CATEGORY),
    ]


def test_entries_without_specials(make_context):
    context, menu = _popup(make_context)
    assert [e.kind for e in menu.entries()] == [ENTRY_RECENTS]


def test_entries_use_custom_category_icon(make_context, paths):
    def setup(context):
        os.makedirs(paths.category_icons_dir)
        with open(os.path.join(paths.category_icons_dir, "Work.png"), "wb") as f:
            f.write(b"png")
        context.categories.upsert(Category("Work"))
        context.categories.save()

    context, menu = _popup(make_context, setup)

    assert menu.entries()[0].icon_path.endswith("Work.png")


def test_apps_for_skips_uninstalled_and_hidden(make_context, paths):
    def setup(context):
        _seed(context)
        os.makedirs(paths.app_icons_dir)
        with open(os.path.join(paths.app_icons_dir, "firefox.desktop.svg"), "wb") as f:
            f.write(b"<svg/>")

    context, menu = _popup(make_context, setup)

    rows = menu.apps_for("Work")

    assert [(r.id, r.label) for r in rows] == [
        ("firefox.desktop", "Firefox"),
        ("code.desktop", "My Editor"),
    ]
    assert rows[0].custom_icon_path.endswith("firefox.desktop.svg")
    assert rows[1].custom_icon_path is None
    assert menu.apps_for("Nope") == []


def test_search_is_case_insensitive_substring(make_context, registry):
    registry.apps["firefox-dup"] = FakeApp("firefox.desktop", "Firefox")
    context, menu = _popup(make_context)

    assert [r.id for r in menu.search("FIRE")] == ["firefox.desktop"]
    assert [r.id for r in menu.search("o")] == ["firefox.desktop", "code.desktop"]
    assert len(menu.search("")) == 3
    assert menu.search("helper") == []


def test_launch_records_recent_and_starts_app(make_context, registry, paths):
    context, menu = _popup(make_context)

    assert menu.launch("gimp") is True
    assert menu.launch("firefox.desktop") is True
    menu.launch("gimp.desktop")

    assert registry.launched == ["gimp.desktop", "firefox.desktop", "gimp.desktop"]
    assert context.recents.ids() == ["gimp.desktop", "firefox.desktop"]
    assert [r.id for r in menu.recent_apps()] == ["gimp.desktop", "firefox.desktop"]
    with open(paths.recents_file, "rb") as f:
        assert len(f.read().splitlines()) == 2


def test_launch_failure_is_reported(make_context, registry, notifier):
    registry.fail_launch = True
    context, menu = _popup(make_context)

    assert menu.launch("gimp.desktop") is False

    assert notifier.sent[0][0] == "Could not launch app: gimp.desktop"
    assert context.recents.ids() == ["gimp.desktop"]


def test_recents_write_failure_is_reported(make_context, registry, notifier, monkeypatch):
    from startmenu.store import jsonl

    context, menu = _popup(make_context)

    def failing_replace(src, dst):
        raise OSError(13, "Permission denied")

    monkeypatch.setattr(jsonl.os, "replace", failing_replace)

    assert menu.launch("gimp.desktop") is True
    assert registry.launched == ["gimp.desktop"]
    assert notifier.sent[0][0] == "Could not save recent apps"


def test_recent_apps_skip_uninstalled(make_context, registry):
    context, menu = _popup(make_context)
    context.recents.bump("removed.desktop")
    context.recents.bump("firefox.desktop")

    assert [r.id for r in menu.recent_apps()] == ["firefox.desktop"]

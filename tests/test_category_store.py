import orjson
import pytest

from startmenu.store.categories import CategoryStore
from startmenu.store.errors import AssetIOError
from startmenu.store.icons import IconAssetIndex
from startmenu.store.models import ALL_APPS_CATEGORY, SEARCH_APP_CATEGORY, AppEntry, Category


def _store(tmp_path, logger, with_icons=True):
    icons = IconAssetIndex(str(tmp_path / "icons"), logger) if with_icons else None
    return CategoryStore(str(tmp_path / "categories.jsonl"), icons, logger)


def _apps(*ids):
    return [AppEntry(id=i, name=i.split(".")[0].title(), rank=n) for n, i in enumerate(ids, 1)]


def _ranks(store):
    return {c.name: c.rank for c in store}


def _write_lines(path, records):
    path.write_bytes(b"".join(orjson.dumps(r) + b"\n" for r in records))


def test_missing_file_loads_empty(tmp_path, logger):
    store = _store(tmp_path, logger)
    assert store.load() == []
    assert len(store) == 0


def test_upsert_new_categories_get_dense_ranks(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop")))
    store.upsert(Category("Play", apps=[]))
    store.upsert(Category("Tools", apps=[]))

    assert _ranks(store) == {"Work": 1, "Play": 2, "Tools": 3}


def test_upsert_renumbers_app_entries_in_rank_order(tmp_path, logger):
    store = _store(tmp_path, logger)
    apps = [
        AppEntry("b.desktop", "B", 7),
        AppEntry("a.desktop", "A", 3),
        AppEntry("c.desktop", "C", 10),
    ]

    stored = store.upsert(Category("Work", apps=apps))

    assert [(a.id, a.rank) for a in stored.apps] == [
        ("a.desktop", 1),
        ("b.desktop", 2),
        ("c.desktop", 3),
    ]


def test_update_keeps_rank_and_position(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work"))
    store.upsert(Category("Play"))
    store.upsert(Category("Tools"))

    store.upsert(Category("Games", apps=_apps("g.desktop")), previous_name="Play")

    assert store.names() == ["Work", "Games", "Tools"]
    assert _ranks(store) == {"Work": 1, "Games": 2, "Tools": 3}
    assert "Play" not in store


def test_rename_onto_existing_name_is_rejected(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work"))
    store.upsert(Category("Play"))

    with pytest.raises(ValueError):
        store.upsert(Category("Work"), previous_name="Play")
    assert store.names() == ["Work", "Play"]


def test_rename_migrates_icon(tmp_path, logger):
    store = _store(tmp_path, logger)
    (tmp_path / "icons").mkdir()
    (tmp_path / "icons" / "Work.png").write_bytes(b"png")
    store.icons.scan()
    store.upsert(Category("Work"))

    store.upsert(Category("Jobs"), previous_name="Work")

    assert store.icons.as_dict() == {"Jobs": "png"}


def test_new_icon_on_rename_replaces_old_asset(tmp_path, logger):
    store = _store(tmp_path, logger)
    (tmp_path / "icons").mkdir()
    (tmp_path / "icons" / "Work.png").write_bytes(b"png")
    source = tmp_path / "chosen.svg"
    source.write_bytes(b"<svg/>")
    store.icons.scan()
    store.upsert(Category("Work"))

    store.upsert(Category("Jobs"), previous_name="Work", icon_source=str(source))

    assert store.icons.as_dict() == {"Jobs": "svg"}


def test_asset_failure_leaves_store_unchanged(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop")))

    with pytest.raises(AssetIOError):
        store.upsert(
            Category("Jobs"), previous_name="Work", icon_source=str(tmp_path / "missing.png")
        )

    assert store.names() == ["Work"]
    assert [a.id for a in store.get("Work").apps] == ["a.desktop"]


def test_failed_old_icon_removal_drops_the_new_copy(tmp_path, logger, monkeypatch):
    from startmenu.store import icons as icons_module

    store = _store(tmp_path, logger)
    (tmp_path / "icons").mkdir()
    (tmp_path / "icons" / "Work.png").write_bytes(b"png")
    source = tmp_path / "chosen.svg"
    source.write_bytes(b"<svg/>")
    store.icons.scan()
    store.upsert(Category("Work"))
    real_remove = icons_module.os.remove

    def remove(path):
        if path.endswith("Work.png"):
            raise PermissionError(13, "Permission denied", path)
        real_remove(path)

    monkeypatch.setattr(icons_module.os, "remove", remove)

    with pytest.raises(AssetIOError):
        store.upsert(Category("Jobs"), previous_name="Work", icon_source=str(source))

    assert store.names() == ["Work"]
    assert store.icons.as_dict() == {"Work": "png"}
    assert not (tmp_path / "icons" / "Jobs.svg").exists()


def test_remove_renormalizes_ranks(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop")))
    store.upsert(Category("Play"))

    assert store.remove("Work") is True

    assert [c.to_dict() for c in store] == [{"name": "Play", "rank": 1, "apps": []}]


def test_remove_deletes_icon(tmp_path, logger):
    store = _store(tmp_path, logger)
    (tmp_path / "icons").mkdir()
    (tmp_path / "icons" / "Work.png").write_bytes(b"png")
    store.icons.scan()
    store.upsert(Category("Work"))

    store.remove("Work")

    assert not (tmp_path / "icons" / "Work.png").exists()


def test_remove_unknown_returns_false(tmp_path, logger):
    store = _store(tmp_path, logger)
    assert store.remove("Nope") is False


def test_reorder_swaps_neighbours(tmp_path, logger):
    store = _store(tmp_path, logger)
    for name in ["Work", "Play", "Tools"]:
        store.upsert(Category(name))

    assert store.reorder("Tools", -1) is True

    assert [c.name for c in store.ranked()] == ["Work", "Tools", "Play"]
    assert _ranks(store) == {"Work": 1, "Tools": 2, "Play": 3}


def test_reorder_boundaries_and_unranked_are_noops(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work"))
    store.upsert(Category("Play"))
    store.set_special(ALL_APPS_CATEGORY, True)

    assert store.reorder("Work", -1) is False
    assert store.reorder("Play", 1) is False
    assert store.reorder(ALL_APPS_CATEGORY, 1) is False
    assert store.reorder("Nope", 1) is False
    assert _ranks(store) == {"Work": 1, "Play": 2, ALL_APPS_CATEGORY: None}


def test_reorder_rejects_other_directions(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work"))
    with pytest.raises(ValueError):
        store.reorder("Work", 2)


def test_prune_uninstalled_empties_category(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop")))

    changed = store.prune_uninstalled(lambda app_id: app_id != "a.desktop")

    assert changed is True
    assert store.get("Work").apps == []
    assert store.get("Work").rank == 1


def test_prune_uninstalled_renumbers_survivors(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop", "b.desktop", "c.desktop")))

    store.prune_uninstalled(lambda app_id: app_id != "b.desktop")

    assert [(a.id, a.rank) for a in store.get("Work").apps] == [
        ("a.desktop", 1),
        ("c.desktop", 2),
    ]


def test_prune_uninstalled_nothing_to_do(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop")))
    assert store.prune_uninstalled(lambda app_id: True) is False


def test_special_categories_stay_unranked(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work"))

    assert store.set_special(SEARCH_APP_CATEGORY, True) is True
    assert store.set_special(SEARCH_APP_CATEGORY, True) is False
    store.upsert(Category("Play"))

    assert _ranks(store) == {"Work": 1, SEARCH_APP_CATEGORY: None, "Play": 2}
    assert [c.name for c in store.ordered()] == ["Work", "Play", SEARCH_APP_CATEGORY]
    assert store.set_special(SEARCH_APP_CATEGORY, False) is True
    assert SEARCH_APP_CATEGORY not in store


def test_set_special_new_icon_on_enabled_special_is_a_change(tmp_path, logger):
    store = _store(tmp_path, logger)
    source = tmp_path / "all.png"
    source.write_bytes(b"png")
    store.set_special(ALL_APPS_CATEGORY, True)

    assert store.set_special(ALL_APPS_CATEGORY, True, icon_source=str(source)) is True
    assert store.icons.extension(ALL_APPS_CATEGORY) == "png"


def test_set_special_rejects_ordinary_names(tmp_path, logger):
    store = _store(tmp_path, logger)
    with pytest.raises(ValueError):
        store.set_special("Work", True)


def test_save_load_round_trip(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work", apps=_apps("a.desktop", "b.desktop")))
    store.set_special(ALL_APPS_CATEGORY, True)
    store.upsert(Category("Play", apps=_apps("g.desktop")))
    store.save()

    other = _store(tmp_path, logger)
    assert other.load() == []

    assert [c.to_dict() for c in other] == [c.to_dict() for c in store]
    assert (tmp_path / "categories.jsonl").read_bytes().endswith(b"\n")


def test_load_skips_malformed_lines_and_normalizes(tmp_path, logger):
    path = tmp_path / "categories.jsonl"
    path.write_bytes(
        b'{"name": "Work", "rank": 4, "apps": [{"id": "a.desktop", "name": "A", "rank": 5}]}\n'
        b"{broken\n"
        b'{"rank": 1}\n'
        b'{"name": "Play", "rank": 9, "apps": []}\n'
    )
    store = _store(tmp_path, logger)

    errors = store.load()

    assert [e.line_number for e in errors] == [2, 3]
    assert _ranks(store) == {"Work": 1, "Play": 2}
    assert store.get("Work").apps[0].rank == 1
    assert len(logger.messages("warning")) == 2


def test_load_orders_rank_ties_by_name(tmp_path, logger):
    path = tmp_path / "categories.jsonl"
    _write_lines(
        path,
        [
            {"name": "Zed", "rank": 1, "apps": []},
            {"name": "Alpha", "rank": 1, "apps": []},
        ],
    )
    store = _store(tmp_path, logger)
    store.load()

    assert [c.name for c in store.ranked()] == ["Alpha", "Zed"]
    assert _ranks(store) == {"Zed": 2, "Alpha": 1}


def test_app_entries_default_name_and_rank(tmp_path, logger):
    path = tmp_path / "categories.jsonl"
    _write_lines(path, [{"name": "Work", "rank": 1, "apps": [{"id": "x.desktop"}, {"id": "y.desktop"}]}])
    store = _store(tmp_path, logger)
    store.load()

    assert [a.to_dict() for a in store.get("Work").apps] == [
        {"id": "x.desktop", "name": "x.desktop", "rank": 1},
        {"id": "y.desktop", "name": "y.desktop", "rank": 2},
    ]


def test_is_current_detects_foreign_writes(tmp_path, logger):
    store = _store(tmp_path, logger)
    store.upsert(Category("Work"))
    store.save()
    assert store.is_current() is True

    other = _store(tmp_path, logger)
    other.load()
    other.upsert(Category("Play"))
    other.save()

    assert store.is_current() is False
    assert other.is_current() is True

"""
Tests for serverview.core.preferences.

Covers:
- InMemoryPreferenceStore / JsonFilePreferenceStore get/set/delete
- load_sort_order defaults and malformed-value fallback
- save_sort_order overwrite semantics
"""

import json

import pytest

from serverview.core.errors import PreferenceStoreError
from serverview.core.ordering import DEFAULT_SORT_ORDER, SortOrder
from serverview.core.preferences import (
    SORT_ORDER_KEY,
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PreferenceStore,
    load_sort_order,
    save_sort_order,
)


class TestInMemoryPreferenceStore:
    def test_get_set_delete(self):
        store = InMemoryPreferenceStore()
        assert store.get("k") is None
        store.set("k", "v")
        assert store.get("k") == "v"
        store.delete("k")
        assert store.get("k") is None

    def test_protocol(self):
        assert isinstance(InMemoryPreferenceStore(), PreferenceStore)
        assert isinstance(JsonFilePreferenceStore("x.json"), PreferenceStore)


class TestJsonFilePreferenceStore:
    def test_missing_file_reads_empty(self, tmp_path):
        store = JsonFilePreferenceStore(tmp_path / "prefs.json")
        assert store.get("k") is None

    def test_set_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "nested" / "prefs.json"
        store = JsonFilePreferenceStore(path)
        store.set("k", "v")
        assert json.loads(path.read_text()) == {"k": "v"}

    def test_set_overwrites_and_keeps_other_keys(self, tmp_path):
        store = JsonFilePreferenceStore(tmp_path / "prefs.json")
        store.set("a", "1")
        store.set("b", "2")
        store.set("a", "3")
        assert store.get("a") == "3"
        assert store.get("b") == "2"

    def test_delete(self, tmp_path):
        store = JsonFilePreferenceStore(tmp_path / "prefs.json")
        store.set("a", "1")
        store.delete("a")
        store.delete("missing")
        assert store.get("a") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        assert JsonFilePreferenceStore(path).get("a") is None

    def test_non_object_file_reads_empty(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("[1, 2]")
        assert JsonFilePreferenceStore(path).get("a") is None

    def test_undecodable_file_reads_empty(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_bytes(b"\xff\xfe{garbage")
        assert JsonFilePreferenceStore(path).get(SORT_ORDER_KEY) is None

    def test_set_replaces_undecodable_file(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_bytes(b"\xff\xfe{garbage")
        store = JsonFilePreferenceStore(path)
        store.set("a", "1")
        assert json.loads(path.read_text()) == {"a": "1"}

    def test_failed_replace_leaves_no_temp_file(self, tmp_path, monkeypatch):
        def refuse(src, dst):
            raise PermissionError("rename refused")

        monkeypatch.setattr("serverview.core.preferences.os.replace", refuse)
        store = JsonFilePreferenceStore(tmp_path / "prefs.json")
        for _ in range(3):
            with pytest.raises(PreferenceStoreError):
                store.set("a", "1")
        assert list(tmp_path.glob("*.tmp")) == []
        assert not (tmp_path / "prefs.json").exists()

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = JsonFilePreferenceStore(blocker / "prefs.json")
        with pytest.raises(PreferenceStoreError):
            store.set("a", "1")


class TestLoadSortOrder:
    def test_absent_uses_default(self):
        assert load_sort_order(InMemoryPreferenceStore()) == DEFAULT_SORT_ORDER

    def test_valid_value(self):
        store = InMemoryPreferenceStore({SORT_ORDER_KEY: '["name", "-"]'})
        assert load_sort_order(store) == SortOrder("name", "-")

    @pytest.mark.parametrize("raw", ["garbage", "[]", '["name"]', '["name", "?"]', '{"key": "name"}'])
    def test_malformed_uses_default(self, raw):
        store = InMemoryPreferenceStore({SORT_ORDER_KEY: raw})
        assert load_sort_order(store) == DEFAULT_SORT_ORDER

    def test_unreadable_store_uses_default(self):
        class BrokenStore(InMemoryPreferenceStore):
            def get(self, key):
                raise PreferenceStoreError("disk gone")

        assert load_sort_order(BrokenStore()) == DEFAULT_SORT_ORDER

    def test_undecodable_file_uses_default(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_bytes(b"\xff\xfe{garbage")
        assert load_sort_order(JsonFilePreferenceStore(path)) == DEFAULT_SORT_ORDER


class TestSaveSortOrder:
    def test_writes_json_pair(self):
        store = InMemoryPreferenceStore()
        save_sort_order(store, SortOrder("players", "-"))
        assert store.get(SORT_ORDER_KEY) == '["players", "-"]'

    def test_overwrites(self):
        store = InMemoryPreferenceStore()
        save_sort_order(store, SortOrder("players", "-"))
        save_sort_order(store, SortOrder("name", "+"))
        assert store.get(SORT_ORDER_KEY) == '["name", "+"]'
        assert store.writes == 2

    def test_file_round_trip(self, tmp_path):
        store = JsonFilePreferenceStore(tmp_path / "prefs.json")
        save_sort_order(store, SortOrder("name", "-"))
        assert load_sort_order(JsonFilePreferenceStore(tmp_path / "prefs.json")) == SortOrder("name", "-")

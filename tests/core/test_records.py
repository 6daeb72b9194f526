"""
Tests for serverview.core.records.

Covers:
- strip_colors and stripped_name derivation
- category_value singular / pluralized-list resolution
- ServerRecord.get_sortable projections
- ServerRecord.update notifications
- ServerRecord.from_dict parsing and RecordError cases
"""

import pytest

from serverview.core.errors import ErrorCategory, RecordError
from serverview.core.records import (
    PING_UNKNOWN,
    Record,
    ServerRecord,
    category_value,
    field_text,
    sortable_value,
    strip_colors,
)


class TestStripColors:
    def test_removes_codes(self):
        assert strip_colors("^1Red ^2Green^7") == "Red Green"

    def test_leaves_plain_carets(self):
        assert strip_colors("a^b") == "a^b"

    def test_stripped_name_derived(self):
        assert ServerRecord(address="x", name="^3Yellow").stripped_name == "Yellow"

    def test_explicit_stripped_name_kept(self):
        rec = ServerRecord(address="x", name="^3Yellow", stripped_name="Custom")
        assert rec.stripped_name == "Custom"


class TestCategoryValue:
    def test_singular(self):
        rec = ServerRecord(address="x", data={"gametype": "Race"})
        assert category_value(rec, "gametype") == "Race"

    def test_plural_list(self):
        rec = ServerRecord(address="x", data={"tags": ["pvp", "vanilla"]})
        assert category_value(rec, "tag") == ["pvp", "vanilla"]

    def test_plural_tuple_normalized_to_list(self):
        rec = ServerRecord(address="x", data={"tags": ("pvp",)})
        assert category_value(rec, "tag") == ["pvp"]

    def test_plural_scalar_ignored(self):
        rec = ServerRecord(address="x", data={"tags": "pvp"})
        assert category_value(rec, "tag") is None

    def test_singular_wins_over_plural(self):
        rec = ServerRecord(address="x", data={"tag": "one", "tags": ["two"]})
        assert category_value(rec, "tag") == "one"

    def test_none_value_treated_as_absent(self):
        rec = ServerRecord(address="x", data={"tag": None, "tags": ["two"]})
        assert category_value(rec, "tag") == ["two"]

    def test_absent(self):
        assert category_value(ServerRecord(address="x"), "tag") is None


class TestFieldText:
    def test_bool(self):
        assert field_text(True) == "true"
        assert field_text(False) == "false"

    def test_integral_float(self):
        assert field_text(48.0) == "48"

    def test_other(self):
        assert field_text(1.5) == "1.5"
        assert field_text("x") == "x"


class TestSortable:
    def test_builtin_keys(self):
        rec = ServerRecord(address="x", name="^1Zed", current_players=3, max_players=10, ping=42)
        assert sortable_value(rec, "name") == "zed"
        assert sortable_value(rec, "players") == 3
        assert sortable_value(rec, "max_players") == 10
        assert sortable_value(rec, "ping") == 42

    def test_category_keys(self):
        rec = ServerRecord(address="x", data={"gametype": "Race", "build": 2802, "tags": ["b", "A"]})
        assert sortable_value(rec, "gametype") == "race"
        assert sortable_value(rec, "build") == 2802
        assert sortable_value(rec, "tag") == "b, a"
        assert sortable_value(rec, "missing") == ""

    def test_satisfies_record_protocol(self):
        assert isinstance(ServerRecord(address="x"), Record)


class TestUpdate:
    def test_update_emits(self):
        rec = ServerRecord(address="x")
        calls = []
        rec.on_changed.subscribe(lambda: calls.append(1))
        rec.update(ping=12, current_players=4)
        assert rec.ping == 12
        assert rec.current_players == 4
        assert calls == [1]

    def test_update_name_restrips(self):
        rec = ServerRecord(address="x", name="Old")
        rec.update(name="^2New")
        assert rec.stripped_name == "New"

    def test_unknown_field(self):
        rec = ServerRecord(address="x")
        with pytest.raises(RecordError):
            rec.update(bogus=1)

    @pytest.mark.parametrize("key", ["get_sortable", "update", "to_dict", "on_changed"])
    def test_methods_and_emitter_are_not_fields(self, key):
        rec = ServerRecord(address="x")
        calls = []
        rec.on_changed.subscribe(lambda: calls.append(1))
        with pytest.raises(RecordError):
            rec.update(**{key: 1})
        assert rec.get_sortable("ping") == PING_UNKNOWN
        assert calls == []

    def test_rejected_update_changes_nothing(self):
        rec = ServerRecord(address="x", ping=40)
        with pytest.raises(RecordError):
            rec.update(ping=10, bogus=1)
        assert rec.ping == 40

    def test_identity_equality(self):
        assert ServerRecord(address="x") != ServerRecord(address="x")


class TestFromDict:
    def test_short_keys(self):
        rec = ServerRecord.from_dict(
            {"address": "a1", "name": "^1Alpha", "players": 3, "max_players": 8, "ping": 30,
             "tags": ["rp"]}
        )
        assert rec.address == "a1"
        assert rec.stripped_name == "Alpha"
        assert (rec.current_players, rec.max_players, rec.ping) == (3, 8, 30)
        assert rec.data == {"tags": ["rp"]}

    def test_server_info_keys(self):
        rec = ServerRecord.from_dict(
            {"EndPoint": "1.2.3.4:30120", "hostname": "Beta", "clients": 7, "sv_maxclients": 64,
             "data": {"gametype": "Race"}}
        )
        assert rec.address == "1.2.3.4:30120"
        assert rec.name == "Beta"
        assert (rec.current_players, rec.max_players) == (7, 64)
        assert rec.ping == PING_UNKNOWN
        assert rec.data == {"gametype": "Race"}

    def test_missing_address(self):
        with pytest.raises(RecordError) as exc_info:
            ServerRecord.from_dict({"name": "x"})
        assert exc_info.value.category is ErrorCategory.RECORD

    def test_non_mapping(self):
        with pytest.raises(RecordError):
            ServerRecord.from_dict(["a1"])

    def test_non_numeric_count(self):
        with pytest.raises(RecordError) as exc_info:
            ServerRecord.from_dict({"address": "a1", "players": "many"})
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_to_dict(self):
        rec = ServerRecord(address="a1", name="A", current_players=1, max_players=2, ping=3)
        assert rec.to_dict() == {
            "address": "a1", "name": "A", "players": 1, "max_players": 2, "ping": 3, "data": {},
        }

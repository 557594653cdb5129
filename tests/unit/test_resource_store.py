"""Resource store tests"""
from unittest.mock import Mock

import pytest

from sheetdesk.helpers.resource_store import ResourceStore
from sheetdesk.helpers.transform import to_view_models
from tests.conftest import make_record


@pytest.mark.unit
class TestResourceStore:

    def test_set_all_is_capped(self):
        store = ResourceStore(max_items=2)
        store.set_all(to_view_models([make_record(str(i)) for i in range(1, 6)]))

        assert [item.id for item in store] == ["1", "2"]

    def test_replace_keeps_position(self, store):
        updated = store.get("2").with_resource(name="fixed.csv")

        assert store.replace(updated) is True
        assert [item.id for item in store] == ["1", "2", "3"]
        assert store.get("2").name == "fixed.csv"

    def test_unknown_ids_are_ignored(self, store):
        stranger = to_view_models([make_record("99")])[0]

        assert store.replace(stranger) is False
        assert store.remove("99") is False
        assert len(store) == 3

    def test_listeners_see_every_change(self, store):
        listener = Mock()
        unsubscribe = store.subscribe(listener)
        version = store.version

        store.remove("1")
        store.replace(store.get("2").with_resource(name="b.csv"))
        unsubscribe()
        store.remove("3")

        assert listener.call_count == 2
        assert store.version == version + 3

    def test_items_is_a_copy(self, store):
        store.items.clear()
        assert len(store) == 3

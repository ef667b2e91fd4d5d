"""
test_models.py — item/list model, wire mapping and ordering helpers
"""

import re

import pytest

from supportlist.models import (
    DEFAULT_LIST_TITLE,
    LIST_D_TAG,
    ItemStatus,
    SupportList,
    TodoItem,
    generate_item_id,
    move_item,
    move_item_before,
    sort_items,
)


def _items():
    return [
        TodoItem(id="c1", title="Claimed one", status=ItemStatus.CLAIMED, order=0),
        TodoItem(id="p2", title="Pending two", status=ItemStatus.PENDING, order=1),
        TodoItem(id="d0", title="Done", status=ItemStatus.COMPLETE, order=0),
        TodoItem(id="p0", title="Pending zero", status=ItemStatus.PENDING, order=0),
        TodoItem(id="p1", title="Pending one", status=ItemStatus.PENDING, order=2),
    ]


def _ids(items):
    return [i.id for i in items]


class TestTodoItem:
    def test_to_dict_omits_absent_fields(self):
        item = TodoItem(id="a", title="Pack boxes")
        assert item.to_dict() == {"id": "a", "title": "Pack boxes", "status": "pending", "order": 0}

    def test_to_dict_uses_wire_names(self):
        item = TodoItem(id="a", title="t", status=ItemStatus.CLAIMED, order=2,
                        claimed_by="Bob", note="n", encrypted=False)
        assert item.to_dict() == {
            "id": "a", "title": "t", "status": "claimed", "order": 2,
            "claimedBy": "Bob", "note": "n", "encrypted": False,
        }

    def test_from_dict_roundtrip(self):
        item = TodoItem(id="a", title="t", status=ItemStatus.COMPLETE, order=4,
                        claimed_by="Bob", note="n", encrypted=True)
        assert TodoItem.from_dict(item.to_dict()) == item

    def test_from_dict_unknown_status_falls_back(self, caplog):
        item = TodoItem.from_dict({"id": "a", "title": "t", "status": "archived"})
        assert item.status == ItemStatus.PENDING
        assert "Unknown item status" in caplog.text

    def test_from_dict_tolerates_missing_fields(self):
        item = TodoItem.from_dict({"id": 7})
        assert item.id == "7"
        assert item.title == ""
        assert item.order == 0
        assert item.encrypted is None

    def test_from_dict_empty_strings_become_absent(self):
        item = TodoItem.from_dict({"id": "a", "title": "t", "note": "", "claimedBy": ""})
        assert item.note is None and item.claimed_by is None

    def test_with_updates_shallow_merge(self):
        item = TodoItem(id="a", title="t", note="keep")
        updated = item.with_updates(status="claimed", claimed_by="Bob", id="other")
        assert updated.id == "a"
        assert updated.status == ItemStatus.CLAIMED
        assert updated.claimed_by == "Bob"
        assert updated.note == "keep"
        assert item.status == ItemStatus.PENDING


class TestSupportList:
    def test_to_dict_has_six_snapshot_fields(self):
        lst = SupportList(title="T", owner_pubkey="o", guest_pubkey="g",
                          items=[TodoItem(id="a", title="x")], created_at=1, updated_at=2)
        assert set(lst.to_dict()) == {"title", "items", "ownerPubkey", "guestPubkey",
                                      "createdAt", "updatedAt"}

    def test_from_dict_defaults(self):
        lst = SupportList.from_dict({}, "signer")
        assert lst.title == DEFAULT_LIST_TITLE
        assert lst.items == []
        assert lst.owner_pubkey == "signer"
        assert lst.guest_pubkey is None
        assert lst.id == LIST_D_TAG

    def test_from_dict_skips_malformed_items(self):
        lst = SupportList.from_dict({"items": [{"id": "a", "title": "ok"}, "junk", {"title": "no id"}]}, "s")
        assert _ids(lst.items) == ["a"]

    def test_from_dict_rejects_non_array_items(self):
        with pytest.raises(ValueError):
            SupportList.from_dict({"items": {"id": "a"}}, "s")

    def test_find_item(self):
        lst = SupportList(title="T", owner_pubkey="o", guest_pubkey="g", items=_items())
        assert lst.find_item("d0").title == "Done"
        assert lst.find_item("missing") is None

    def test_touched_is_strictly_increasing(self):
        lst = SupportList(title="T", owner_pubkey="o", guest_pubkey="g", updated_at=10**15)
        once = lst.touched([])
        twice = once.touched([])
        assert once.updated_at == 10**15 + 1
        assert twice.updated_at == 10**15 + 2
        assert lst.updated_at == 10**15


def test_generate_item_id_unique_and_base36():
    ids = {generate_item_id() for _ in range(500)}
    assert len(ids) == 500
    assert all(re.fullmatch(r"[0-9a-z]+", i) for i in ids)


def test_sort_items_groups_by_status_then_order():
    assert _ids(sort_items(_items())) == ["p0", "p2", "p1", "c1", "d0"]


def test_move_item_up_renumbers_group():
    moved = move_item(_items(), "p2", -1)
    assert _ids(moved) == ["p2", "p0", "p1", "c1", "d0"]
    assert [i.order for i in moved[:3]] == [0, 1, 2]


def test_move_item_down():
    moved = move_item(_items(), "p0", 1)
    assert _ids(moved) == ["p2", "p0", "p1", "c1", "d0"]


def test_move_item_other_group_first_group_after():
    items = _items() + [TodoItem(id="c2", title="c2", status=ItemStatus.CLAIMED, order=1)]
    moved = move_item(items, "c2", -1)
    assert _ids(moved) == ["c2", "c1", "p0", "p2", "p1", "d0"]
    assert [i.order for i in moved[:2]] == [0, 1]


@pytest.mark.parametrize("item_id,offset", [("p0", -1), ("p1", 1), ("d0", 1), ("missing", 1)])
def test_move_item_out_of_range_is_noop(item_id, offset):
    assert _ids(move_item(_items(), item_id, offset)) == _ids(sort_items(_items()))


def test_move_item_before_drag_and_drop():
    moved = move_item_before(_items(), "p1", "p0")
    assert _ids(moved) == ["p1", "p0", "p2", "c1", "d0"]
    assert [i.order for i in moved[:3]] == [0, 1, 2]


def test_move_item_before_across_groups_is_noop():
    assert _ids(move_item_before(_items(), "p1", "c1")) == _ids(sort_items(_items()))
    assert _ids(move_item_before(_items(), "p1", "p1")) == _ids(sort_items(_items()))

"""
test_snapshot.py — snapshot content codec
"""

import json

from supportlist.models import ItemStatus, SupportList, TodoItem
from supportlist.snapshot import deserialize_snapshot, serialize_snapshot


def _list():
    return SupportList(
        title="Moving day",
        owner_pubkey="aa" * 32,
        guest_pubkey="bb" * 32,
        items=[TodoItem(id="a", title="ENC:xyz", status=ItemStatus.CLAIMED, order=0, encrypted=True)],
        created_at=1700000000000,
        updated_at=1700000001000,
    )


def test_serialize_is_deterministic_json():
    a = serialize_snapshot(_list())
    b = serialize_snapshot(_list())
    assert a == b
    data = json.loads(a)
    assert list(data) == sorted(data)
    assert data["items"][0]["title"] == "ENC:xyz"


def test_roundtrip():
    restored = deserialize_snapshot(serialize_snapshot(_list()), "ignored")
    assert restored == _list()


def test_missing_fields_use_defaults():
    restored = deserialize_snapshot(json.dumps({"items": [{"id": "a", "title": "t"}]}), "signer")
    assert restored.title == "Support List"
    assert restored.owner_pubkey == "signer"
    assert restored.items[0].title == "t"


def test_missing_items_defaults_to_empty():
    assert deserialize_snapshot('{"title": "x"}', "s").items == []


def test_unusable_content_returns_none():
    assert deserialize_snapshot("not json", "s") is None
    assert deserialize_snapshot("[1, 2]", "s") is None
    assert deserialize_snapshot('"text"', "s") is None
    assert deserialize_snapshot('{"items": 5}', "s") is None
    assert deserialize_snapshot(None, "s") is None

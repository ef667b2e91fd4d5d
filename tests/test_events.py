"""
test_events.py — event ids, signing, tags and ordering
"""

from supportlist.canonical_json import canonical_dumps
from supportlist.events import (
    LIST_KIND,
    build_list_event,
    compute_event_id,
    dedupe_events,
    event_sort_key,
    list_tags,
    sign_event,
    tag_values,
    verify_event,
)
from supportlist.identity import Identity

OWNER = Identity.generate()
GUEST = Identity.generate()


def _event(**kwargs):
    params = dict(content='{"title":"x"}', identity=OWNER, guest_id=GUEST.public_id,
                  owner_id=OWNER.public_id, created_at=1700000000)
    params.update(kwargs)
    return build_list_event(**params)


def test_build_list_event_shape():
    event = _event()
    assert event["kind"] == LIST_KIND
    assert event["pubkey"] == OWNER.public_id
    assert event["created_at"] == 1700000000
    assert event["tags"] == [["d", "support-list"], ["p", GUEST.public_id], ["p", OWNER.public_id]]
    assert event["id"] == compute_event_id(event)
    assert verify_event(event)


def test_list_tags_skip_unknown_or_duplicate_owner():
    assert list_tags("support-list", "g", None) == [["d", "support-list"], ["p", "g"]]
    assert list_tags("support-list", "g", "g") == [["d", "support-list"], ["p", "g"]]


def test_event_id_commits_to_content():
    a = _event()
    b = _event(content='{"title":"y"}')
    assert a["id"] != b["id"]


def test_sign_event_copies():
    unsigned = {"kind": LIST_KIND, "content": "", "tags": [], "created_at": 1, "sig": "old"}
    signed = sign_event(unsigned, GUEST)
    assert unsigned["sig"] == "old"
    assert "pubkey" not in unsigned
    assert signed["pubkey"] == GUEST.public_id
    assert verify_event(signed)


def test_verify_rejects_tampering():
    event = _event()
    for field, value in [("content", "{}"), ("created_at", 1), ("pubkey", GUEST.public_id),
                         ("tags", []), ("kind", 1)]:
        tampered = dict(event)
        tampered[field] = value
        assert not verify_event(tampered), field


def test_verify_rejects_recomputed_id_with_foreign_signature():
    event = _event()
    forged = dict(event, content="{}")
    forged["id"] = compute_event_id(forged)
    assert not verify_event(forged)


def test_verify_never_raises():
    assert verify_event({}) is False
    assert verify_event("event") is False
    bad = dict(_event(), created_at=float("nan"))
    assert verify_event(bad) is False
    assert verify_event(dict(_event(), sig=None)) is False


def test_id_matches_canonical_commitment():
    import hashlib
    event = _event()
    commitment = [0, event["pubkey"], event["created_at"], event["kind"], event["tags"], event["content"]]
    assert event["id"] == hashlib.sha256(canonical_dumps(commitment).encode()).hexdigest()


def test_event_sort_key_newest_first_then_id():
    events = [
        {"id": "b", "created_at": 5},
        {"id": "a", "created_at": 5},
        {"id": "c", "created_at": 9},
        {"id": "d"},
    ]
    assert [e["id"] for e in sorted(events, key=event_sort_key)] == ["c", "a", "b", "d"]


def test_dedupe_events_keeps_first():
    a = {"id": "1", "n": 1}
    b = {"id": "1", "n": 2}
    c = {"id": "2"}
    assert dedupe_events([a, b, c]) == [a, c]


def test_tag_values():
    event = _event()
    assert tag_values(event, "p") == [GUEST.public_id, OWNER.public_id]
    assert tag_values({"tags": [["d"], "junk", ["d", "x"]]}, "d") == ["x"]

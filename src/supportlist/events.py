"""
events.py — Signed list events

Event shape (relay wire format):
  {
    "id":         sha256 hex of canonical [0, pubkey, created_at, kind, tags, content],
    "pubkey":     signer's public id,
    "created_at": unix seconds,
    "kind":       30078 (application data),
    "tags":       [["d", "support-list"], ["p", guest_id], ["p", owner_id]],
    "content":    serialized snapshot,
    "sig":        hex DER ECDSA over the id bytes
  }

Events are immutable once published. Later events supersede earlier ones;
nothing is ever deleted.
"""

from __future__ import annotations
import logging
import time
from typing import Any, Dict, List, Optional, Set, Tuple

from .canonical_json import canonical_digest
from .identity import Identity, verify_signature

logger = logging.getLogger(__name__)

LIST_KIND = 30078
D_TAG = "d"
P_TAG = "p"

_REQUIRED_FIELDS = ("id", "pubkey", "created_at", "kind", "tags", "content", "sig")


def _now_seconds() -> int:
    return int(time.time())


def _commitment(event: Dict[str, Any]) -> List[Any]:
    return [0, event["pubkey"], event["created_at"], event["kind"], event["tags"], event["content"]]


def compute_event_id(event: Dict[str, Any]) -> str:
    """Content-addressed event id (hex)."""
    return canonical_digest(_commitment(event)).hex()


def sign_event(event: Dict[str, Any], identity: Identity) -> Dict[str, Any]:
    """
    Sign an unsigned event dict.

    Sets ``pubkey``, computes ``id`` and attaches ``sig``. Returns a new dict.
    """
    event = dict(event)  # shallow copy
    event["pubkey"] = identity.public_id
    event.pop("sig", None)
    event["id"] = compute_event_id(event)
    event["sig"] = identity.sign_digest(bytes.fromhex(event["id"]))
    return event


def verify_event(event: Dict[str, Any]) -> bool:
    """
    Check that the id matches the content and the signature matches the id.

    Returns False for anything malformed; never raises.
    """
    if not isinstance(event, dict):
        return False
    for name in _REQUIRED_FIELDS:
        if name not in event:
            return False
    try:
        expected = compute_event_id(event)
    except (TypeError, ValueError):
        return False
    if event["id"] != expected:
        return False
    return verify_signature(event["pubkey"], bytes.fromhex(expected), str(event["sig"]))


def list_tags(d_tag: str, guest_id: str, owner_id: Optional[str]) -> List[List[str]]:
    """Discovery tag plus one participant tag per known participant."""
    tags = [[D_TAG, d_tag], [P_TAG, guest_id]]
    if owner_id and owner_id != guest_id:
        tags.append([P_TAG, owner_id])
    return tags


def build_list_event(
    content: str,
    identity: Identity,
    guest_id: str,
    owner_id: Optional[str],
    created_at: Optional[int] = None,
    kind: int = LIST_KIND,
    d_tag: str = "support-list",
) -> Dict[str, Any]:
    """Build and sign the event carrying one snapshot."""
    unsigned = {
        "kind": kind,
        "content": content,
        "tags": list_tags(d_tag, guest_id, owner_id),
        "created_at": created_at if created_at is not None else _now_seconds(),
    }
    return sign_event(unsigned, identity)


def event_sort_key(event: Dict[str, Any]) -> Tuple[int, str]:
    """Newest first; equal timestamps ordered by ascending id."""
    created_at = event.get("created_at")
    if not isinstance(created_at, int):
        created_at = 0
    return (-created_at, str(event.get("id") or ""))


def dedupe_events(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop repeated event ids, keeping the first copy seen."""
    seen: Set[str] = set()
    unique: List[Dict[str, Any]] = []
    for event in events:
        eid = event.get("id")
        if eid is not None:
            if eid in seen:
                continue
            seen.add(eid)
        unique.append(event)
    return unique


def tag_values(event: Dict[str, Any], name: str) -> List[str]:
    values: List[str] = []
    for tag in event.get("tags") or []:
        if isinstance(tag, list) and len(tag) >= 2 and tag[0] == name:
            values.append(tag[1])
    return values

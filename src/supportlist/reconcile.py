"""
reconcile.py — Multi-writer list reconciliation

Rebuilds one current list from the unordered, duplicate-prone set of
snapshot events published by the owner and the guest.

Process:
  1. Dedupe by event id; drop events with a bad id or signature
  2. Sort newest first. Equal timestamps fall back to the snapshot's
     updatedAt (newest first), then to ascending event id
  3. Parse every snapshot; unparseable events are dropped
  4. Partition: owner events (signer == declared ownerPubkey) vs guest events
  5. The newest owner event is authoritative for structure: which items
     exist, their order and their base field values
  6. Decrypt the items of every usable event with the viewer's secret and
     that event's declared owner as counterparty
  7. Per authoritative item, scan all events newest to oldest:
       note, claimedBy  first non-empty value wins
       status           first value other than "pending" wins
     falling back to the authoritative item's own value

The merge is a heuristic, not a CRDT: a newer "pending" never overrides an
older claim, and a field cleared by one party reappears if the other party
still carries it in an older snapshot.

Guest events alone never establish that a list exists.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from .envelope import decrypt_item
from .errors import ListNotFoundError, SnapshotParseError
from .events import dedupe_events, event_sort_key, verify_event
from .identity import Identity
from .models import ItemStatus, SupportList, TodoItem
from .snapshot import deserialize_snapshot

logger = logging.getLogger(__name__)

_UNPARSEABLE = "unparseable snapshot"


@dataclass
class ParsedEvent:
    """A usable event with its parsed snapshot."""
    event: Dict[str, Any]
    snapshot: SupportList

    @property
    def is_owner_event(self) -> bool:
        return self.event.get("pubkey") == self.snapshot.owner_pubkey


@dataclass
class ReconcileResult:
    """Result of reconciling one list's events."""
    support_list: SupportList
    authoritative_event_id: str
    events_considered: int
    events_dropped: int
    owner_event_count: int = 0
    guest_event_count: int = 0
    dropped_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authoritative_event_id": self.authoritative_event_id,
            "events_considered": self.events_considered,
            "events_dropped": self.events_dropped,
            "owner_event_count": self.owner_event_count,
            "guest_event_count": self.guest_event_count,
            "dropped_reasons": self.dropped_reasons,
            "item_count": len(self.support_list.items),
        }


def _recency_key(parsed: ParsedEvent) -> Tuple[int, int, str]:
    newest_first, event_id = event_sort_key(parsed.event)
    updated_at = parsed.snapshot.updated_at
    if not isinstance(updated_at, int) or isinstance(updated_at, bool):
        updated_at = 0
    return (newest_first, -updated_at, event_id)


def parse_events(
    events: List[Dict[str, Any]],
    verify_signatures: bool = True,
) -> Tuple[List[ParsedEvent], List[str]]:
    """
    Dedupe, verify, parse and sort newest first.

    Returns (usable events newest first, reasons for every dropped event).
    """
    dropped: List[str] = []
    candidates: List[Dict[str, Any]] = []

    for event in dedupe_events(events):
        if verify_signatures and not verify_event(event):
            dropped.append(f"bad id or signature: {event.get('id')}")
            continue
        candidates.append(event)

    parsed: List[ParsedEvent] = []
    for event in candidates:
        content = event.get("content")
        signer = event.get("pubkey")
        snapshot = None
        if isinstance(content, str) and isinstance(signer, str):
            snapshot = deserialize_snapshot(content, signer)
        if snapshot is None:
            dropped.append(f"{_UNPARSEABLE}: {event.get('id')}")
            continue
        parsed.append(ParsedEvent(event=event, snapshot=snapshot))

    parsed.sort(key=_recency_key)

    for reason in dropped:
        logger.debug("Dropped event (%s)", reason)
    return parsed, dropped


def decrypt_snapshot_items(
    snapshot: SupportList,
    viewer: Identity,
    counterparty: Optional[str] = None,
) -> List[TodoItem]:
    """Decrypt every item of one snapshot against its declared owner."""
    peer = snapshot.owner_pubkey or counterparty
    if not peer:
        return list(snapshot.items)
    return [decrypt_item(item, viewer, peer) for item in snapshot.items]


def merge_item(base: TodoItem, scan: List[List[TodoItem]]) -> TodoItem:
    """
    Merge one authoritative item with every event's copy of it.

    ``scan`` holds each event's decrypted items, newest event first.
    """
    status: Optional[ItemStatus] = None
    note: Optional[str] = None
    claimed_by: Optional[str] = None

    for items in scan:
        candidate = next((i for i in items if i.id == base.id), None)
        if candidate is None:
            continue
        if note is None and candidate.note:
            note = candidate.note
        if claimed_by is None and candidate.claimed_by:
            claimed_by = candidate.claimed_by
        if status is None and candidate.status != ItemStatus.PENDING:
            status = candidate.status
        if status is not None and note is not None and claimed_by is not None:
            break

    return replace(
        base,
        status=status if status is not None else base.status,
        note=note if note is not None else base.note,
        claimed_by=claimed_by if claimed_by is not None else base.claimed_by,
    )


def reconcile_events(
    events: List[Dict[str, Any]],
    viewer: Identity,
    verify_signatures: bool = True,
) -> ReconcileResult:
    """
    Reconcile every snapshot event of one list into the current list.

    Args:
        events: Raw events from the relay query (any order, duplicates ok).
        viewer: The guest identity; its secret decrypts both parties' items.
        verify_signatures: Drop events whose id or signature does not verify.

    Returns:
        ReconcileResult with the merged, decrypted list.

    Raises:
        ListNotFoundError: no events, or no usable owner event.
        SnapshotParseError: events exist but none could be parsed.
    """
    if not events:
        raise ListNotFoundError("relay returned no events")

    parsed, dropped = parse_events(events, verify_signatures=verify_signatures)

    if not parsed and any(r.startswith(_UNPARSEABLE) for r in dropped):
        raise SnapshotParseError(f"all {len(dropped)} event(s) were unusable")

    owner_events = [p for p in parsed if p.is_owner_event]
    guest_count = len(parsed) - len(owner_events)

    if not owner_events:
        raise ListNotFoundError(
            f"{len(parsed)} usable event(s), none signed by the list owner"
        )

    authoritative_index = next(i for i, p in enumerate(parsed) if p.is_owner_event)
    authoritative = parsed[authoritative_index]
    owner_id = authoritative.snapshot.owner_pubkey

    scan = [decrypt_snapshot_items(p.snapshot, viewer, owner_id) for p in parsed]
    base_items = scan[authoritative_index]

    merged = [merge_item(item, scan) for item in base_items]

    logger.info(
        "Reconciled list from %d event(s) (%d owner, %d guest, %d dropped)",
        len(parsed), len(owner_events), guest_count, len(dropped),
    )

    return ReconcileResult(
        support_list=replace(authoritative.snapshot, items=merged),
        authoritative_event_id=str(authoritative.event.get("id")),
        events_considered=len(parsed),
        events_dropped=len(dropped),
        owner_event_count=len(owner_events),
        guest_event_count=guest_count,
        dropped_reasons=dropped,
    )

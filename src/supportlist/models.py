"""
models.py — Support List data model

TodoItem and SupportList mirror the wire shape of a snapshot: camelCase
keys on the wire, absent optional fields omitted rather than null.

Ordering: the display order is fixed by status first (pending, claimed,
complete) and by ``order`` only inside a status group.
"""

from __future__ import annotations
import logging
import secrets
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LIST_D_TAG = "support-list"
DEFAULT_LIST_TITLE = "Support List"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class ItemStatus(str, Enum):
    PENDING = "pending"
    CLAIMED = "claimed"
    COMPLETE = "complete"


STATUS_DISPLAY_ORDER = (ItemStatus.PENDING, ItemStatus.CLAIMED, ItemStatus.COMPLETE)


def now_ms() -> int:
    return int(time.time() * 1000)


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_item_id() -> str:
    """Random base36 prefix followed by the base36 millisecond clock."""
    return _base36(secrets.randbits(52)) + _base36(now_ms())


@dataclass
class TodoItem:
    """One task in a list. ``id`` is the join key across snapshots."""
    id: str
    title: str
    status: ItemStatus = ItemStatus.PENDING
    order: int = 0
    claimed_by: Optional[str] = None
    note: Optional[str] = None
    encrypted: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "order": self.order,
        }
        if self.claimed_by is not None:
            data["claimedBy"] = self.claimed_by
        if self.note is not None:
            data["note"] = self.note
        if self.encrypted is not None:
            data["encrypted"] = self.encrypted
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TodoItem":
        raw_status = data.get("status")
        try:
            status = ItemStatus(raw_status)
        except ValueError:
            logger.warning("Unknown item status %r for item %r; treating as pending",
                           raw_status, data.get("id"))
            status = ItemStatus.PENDING
        order = data.get("order")
        encrypted = data.get("encrypted")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            status=status,
            order=order if isinstance(order, int) and not isinstance(order, bool) else 0,
            claimed_by=data.get("claimedBy") or None,
            note=data.get("note") or None,
            encrypted=encrypted if isinstance(encrypted, bool) else None,
        )

    def with_updates(self, **changes: Any) -> "TodoItem":
        """Shallow-merge ``changes`` into a copy. ``id`` cannot change."""
        changes.pop("id", None)
        if "status" in changes:
            changes["status"] = ItemStatus(changes["status"])
        return replace(self, **changes)


@dataclass
class SupportList:
    """A full list snapshot. Each publish replaces the publisher's prior one."""
    title: str
    owner_pubkey: str
    guest_pubkey: Optional[str]
    items: List[TodoItem] = field(default_factory=list)
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    id: str = LIST_D_TAG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "items": [item.to_dict() for item in self.items],
            "ownerPubkey": self.owner_pubkey,
            "guestPubkey": self.guest_pubkey,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], fallback_owner_pubkey: str) -> "SupportList":
        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise ValueError("items must be a JSON array")
        items: List[TodoItem] = []
        for raw in raw_items:
            if not isinstance(raw, dict) or not raw.get("id"):
                logger.debug("Skipping malformed item %r", raw)
                continue
            items.append(TodoItem.from_dict(raw))
        return cls(
            title=data.get("title") or DEFAULT_LIST_TITLE,
            owner_pubkey=data.get("ownerPubkey") or fallback_owner_pubkey,
            guest_pubkey=data.get("guestPubkey"),
            items=items,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def find_item(self, item_id: str) -> Optional[TodoItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def touched(self, items: List[TodoItem]) -> "SupportList":
        """
        Copy with ``items`` replaced and ``updated_at`` advanced.

        ``updated_at`` is strictly increasing per writer even within one
        millisecond, so a writer's own snapshots always order correctly.
        """
        previous = self.updated_at if isinstance(self.updated_at, int) else 0
        return replace(self, items=list(items), updated_at=max(now_ms(), previous + 1))


# ---------------------------------------------------------------------------
# Ordering helpers
# ---------------------------------------------------------------------------

def sort_items(items: List[TodoItem]) -> List[TodoItem]:
    """Pending, then claimed, then complete; ``order`` ascending inside each."""
    result: List[TodoItem] = []
    for status in STATUS_DISPLAY_ORDER:
        group = [i for i in items if i.status == status]
        result.extend(sorted(group, key=lambda i: i.order))
    return result


def _regroup(items: List[TodoItem], status: ItemStatus, group: List[TodoItem]) -> List[TodoItem]:
    renumbered = [replace(item, order=index) for index, item in enumerate(group)]
    others = [i for i in sort_items(items) if i.status != status]
    return renumbered + others


def move_item(items: List[TodoItem], item_id: str, offset: int) -> List[TodoItem]:
    """
    Move an item ``offset`` places inside its status group (-1 up, +1 down).

    Returns the full sequence with the group renumbered densely. Moving past
    either end of the group, or an unknown id, returns the sorted sequence.
    """
    ordered = sort_items(items)
    target = next((i for i in ordered if i.id == item_id), None)
    if target is None:
        return ordered
    group = [i for i in ordered if i.status == target.status]
    index = group.index(target)
    new_index = index + offset
    if new_index < 0 or new_index >= len(group):
        return ordered
    group[index], group[new_index] = group[new_index], group[index]
    return _regroup(items, target.status, group)


def move_item_before(items: List[TodoItem], dragged_id: str, target_id: str) -> List[TodoItem]:
    """Drag-and-drop: place ``dragged_id`` at ``target_id``'s position in the same group."""
    ordered = sort_items(items)
    dragged = next((i for i in ordered if i.id == dragged_id), None)
    target = next((i for i in ordered if i.id == target_id), None)
    if dragged is None or target is None or dragged is target or dragged.status != target.status:
        return ordered
    group = [i for i in ordered if i.status == dragged.status]
    target_index = group.index(target)
    group.remove(dragged)
    group.insert(target_index, dragged)
    return _regroup(items, dragged.status, group)

"""
session.py — List session and publish pipeline

A ListSession is the explicit context for one open list: the relay, the
guest identity (always present, it is the link), the owner identity (only
when the owner authenticated) and the last confirmed list state.

Every mutation builds a complete new snapshot from the confirmed state,
encrypts each item for the other participant, signs and publishes it. The
confirmed state is replaced only after the publish returns, so a failed or
cancelled publish leaves the previous state in place. Mutations run one at
a time under an asyncio.Lock.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import SupportListConfig
from .envelope import encrypt_item
from .errors import (
    InvalidOwnerKeyError,
    InvalidSecretError,
    ListNotFoundError,
    OwnerKeyRequiredError,
    PublishError,
    QueryError,
    SupportListError,
)
from .events import build_list_event
from .identity import Identity
from .models import (
    ItemStatus,
    SupportList,
    TodoItem,
    now_ms,
    generate_item_id,
)
from .reconcile import ReconcileResult, reconcile_events
from .snapshot import serialize_snapshot
from .transport import Transport, build_list_query

logger = logging.getLogger(__name__)


class Role(str, Enum):
    OWNER = "owner"
    GUEST = "guest"


@dataclass
class PublishedSnapshot:
    """What a successful publish produced."""
    event: Dict[str, Any]
    support_list: SupportList


def _encrypted_items(
    items: List[TodoItem], sender: Identity, recipient_id: Optional[str],
) -> List[TodoItem]:
    if not recipient_id:
        logger.warning("No counterparty key known; publishing items unencrypted")
        return [replace(item, encrypted=False) for item in items]
    return [encrypt_item(item, sender, recipient_id) for item in items]


class ListSession:
    """One open list, seen by the guest and optionally the owner."""

    def __init__(
        self,
        transport: Transport,
        guest: Identity,
        owner: Optional[Identity] = None,
        config: Optional[SupportListConfig] = None,
    ):
        self.transport = transport
        self.guest = guest
        self.config = config or SupportListConfig()
        self._owner = owner
        self._list: Optional[SupportList] = None
        self._lock = asyncio.Lock()
        self.last_result: Optional[ReconcileResult] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def support_list(self) -> Optional[SupportList]:
        """Last confirmed (loaded or successfully published) state."""
        return self._list

    @property
    def owner(self) -> Optional[Identity]:
        return self._owner

    @property
    def is_owner(self) -> bool:
        return self._owner is not None

    @property
    def role(self) -> Role:
        return Role.OWNER if self.is_owner else Role.GUEST

    def require_list(self) -> SupportList:
        """Confirmed state, or ListNotFoundError before the first load."""
        if self._list is None:
            raise ListNotFoundError("list has not been loaded")
        return self._list

    def _require_owner(self, action: str) -> None:
        if self._owner is None:
            raise OwnerKeyRequiredError(f"{action} changes list structure")

    # ------------------------------------------------------------------
    # Creation and loading
    # ------------------------------------------------------------------

    @classmethod
    async def create(
        cls,
        title: str,
        transport: Transport,
        config: Optional[SupportListConfig] = None,
    ) -> "ListSession":
        """Generate both identities and publish the initial empty list."""
        owner = Identity.generate()
        guest = Identity.generate()
        session = cls(transport, guest, owner=owner, config=config)
        now = now_ms()
        initial = SupportList(
            title=title.strip() or "Support List",
            owner_pubkey=owner.public_id,
            guest_pubkey=guest.public_id,
            items=[],
            created_at=now,
            updated_at=now,
        )
        async with session._lock:
            published = await session.publish_snapshot(initial, Role.OWNER)
            session._list = published.support_list
        logger.info("Created list %r", initial.title)
        return session

    async def load(self) -> SupportList:
        """
        Query the relay and reconcile.

        Waits for any in-flight mutation, so the reloaded state always
        includes the last confirmed publish.

        Raises:
            QueryError: the relay query failed.
            ListNotFoundError: no usable owner snapshot exists.
        """
        filters = build_list_query(self.guest.public_id, self.config)
        async with self._lock:
            try:
                events = await self.transport.query(filters)
            except SupportListError:
                raise
            except Exception as err:
                logger.error("Failed to load list: %s", err)
                raise QueryError(str(err)) from err

            result = reconcile_events(
                events, self.guest, verify_signatures=self.config.verify_signatures,
            )
            loaded = result.support_list

            if self._owner is not None and self._owner.public_id != loaded.owner_pubkey:
                logger.warning("Supplied owner key does not own this list; continuing as guest")
                self._owner = None

            self._list = loaded
            self.last_result = result
        return loaded

    def authenticate_owner(self, secret: str) -> None:
        """
        Switch to the owner role.

        Raises InvalidOwnerKeyError, leaving the session unchanged, when the
        secret cannot be decoded or does not own the loaded list.
        """
        try:
            candidate = Identity.from_secret(secret)
        except InvalidSecretError as err:
            raise InvalidOwnerKeyError(err.context) from err
        current = self._list
        if current is None or candidate.public_id != current.owner_pubkey:
            raise InvalidOwnerKeyError("key does not match the list owner")
        self._owner = candidate

    # ------------------------------------------------------------------
    # Publish pipeline
    # ------------------------------------------------------------------

    def _sender(self, role: Role) -> Identity:
        if role == Role.OWNER:
            if self._owner is None:
                raise OwnerKeyRequiredError("publishing as owner")
            return self._owner
        return self.guest

    async def publish_snapshot(self, support_list: SupportList, role: Role) -> PublishedSnapshot:
        """
        Encrypt, sign and publish a full snapshot as ``role``.

        Does not touch the confirmed state; callers adopt the returned
        ``support_list`` once this returns.

        Raises:
            OwnerKeyRequiredError: ``role`` is owner but no owner key is held.
            PublishError: the relay rejected or failed the publish.
        """
        sender = self._sender(role)
        if not support_list.guest_pubkey:
            # Snapshots written before guestPubkey existed; the session holds it.
            support_list = replace(support_list, guest_pubkey=self.guest.public_id)
        if sender.public_id == support_list.owner_pubkey:
            recipient_id = support_list.guest_pubkey
        else:
            recipient_id = support_list.owner_pubkey

        stored = _encrypted_items(support_list.items, sender, recipient_id)
        content = serialize_snapshot(replace(support_list, items=stored))
        event = build_list_event(
            content,
            sender,
            guest_id=self.guest.public_id,
            owner_id=support_list.owner_pubkey,
            kind=self.config.event_kind,
            d_tag=self.config.d_tag,
        )

        try:
            await self.transport.publish(event)
        except SupportListError:
            raise
        except Exception as err:
            logger.error("Failed to save list: %s", err)
            raise PublishError(str(err)) from err

        local_items = [
            replace(item, encrypted=enc.encrypted)
            for item, enc in zip(support_list.items, stored)
        ]
        logger.debug("Published %s snapshot %s", role.value, event["id"])
        return PublishedSnapshot(event=event, support_list=replace(support_list, items=local_items))

    async def _commit(self, items: List[TodoItem], role: Role) -> SupportList:
        current = self.require_list()
        published = await self.publish_snapshot(current.touched(items), role)
        self._list = published.support_list
        return published.support_list

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_item(self, title: str) -> TodoItem:
        """Append a pending item. Owner only."""
        self._require_owner("adding an item")
        async with self._lock:
            current = self.require_list()
            item = TodoItem(
                id=generate_item_id(),
                title=title,
                status=ItemStatus.PENDING,
                order=len(current.items),
            )
            updated = await self._commit(current.items + [item], Role.OWNER)
        return updated.find_item(item.id) or item

    async def update_item(self, item_id: str, **updates: Any) -> SupportList:
        """
        Shallow-merge field updates into one item and publish.

        Publishes as owner when the session holds the owner key, otherwise
        as guest. An unknown ``item_id`` changes nothing but still publishes
        a fresh snapshot.
        """
        async with self._lock:
            return await self._update_locked(item_id, updates)

    async def _update_locked(self, item_id: str, updates: Dict[str, Any]) -> SupportList:
        # Caller holds self._lock.
        current = self.require_list()
        items = [
            item.with_updates(**updates) if item.id == item_id else item
            for item in current.items
        ]
        return await self._commit(items, self.role)

    async def set_status(
        self,
        item_id: str,
        status: ItemStatus,
        claimed_by: Optional[str] = None,
    ) -> SupportList:
        """
        Move an item between pending, claimed and complete.

        Claiming records ``claimed_by``; other moves keep whoever claimed the
        item in the state confirmed when this mutation runs.
        """
        status = ItemStatus(status)
        async with self._lock:
            item = self.require_list().find_item(item_id)
            name = item.claimed_by if item is not None else None
            if status == ItemStatus.CLAIMED:
                name = (claimed_by or "").strip() or None
            return await self._update_locked(item_id, {"status": status, "claimed_by": name})

    async def set_note(self, item_id: str, note: Optional[str]) -> SupportList:
        """Attach a note to an item; blank text clears it."""
        cleaned = (note or "").strip() or None
        return await self.update_item(item_id, note=cleaned)

    async def delete_item(self, item_id: str) -> SupportList:
        """Remove an item. Owner only."""
        self._require_owner("deleting an item")
        async with self._lock:
            current = self.require_list()
            items = [item for item in current.items if item.id != item_id]
            return await self._commit(items, Role.OWNER)

    async def reorder_items(self, items: List[TodoItem]) -> SupportList:
        """
        Replace the whole item sequence. Owner only.

        The caller supplies ``order`` values dense within each status group
        (see models.move_item / models.move_item_before).
        """
        self._require_owner("reordering items")
        async with self._lock:
            self.require_list()
            return await self._commit(list(items), Role.OWNER)

"""Support List client-side sync engine.

Two participants (owner and guest) publish full snapshots of one task list
to a shared append-only event log. This package rebuilds the current list
from those snapshots, encrypts the sensitive item fields between the two
participants, and republishes after each local change.

Example:
    import asyncio
    from supportlist import InMemoryRelay, ListSession

    async def demo():
        relay = InMemoryRelay()
        owner_view = await ListSession.create("Moving day", relay)
        await owner_view.add_item("Pack boxes")

        guest_view = ListSession(relay, owner_view.guest)
        await guest_view.load()
        item = guest_view.support_list.items[0]
        await guest_view.set_status(item.id, "claimed", claimed_by="Bob")

    asyncio.run(demo())
"""

from .canonical_json import canonical_dumps, canonical_hash
from .config import SupportListConfig, load_config
from .envelope import (
    DECRYPT_FAILED_TITLE,
    ENCRYPTED_PREFIX,
    conversation_key,
    decrypt_item,
    encrypt_item,
)
from .errors import (
    InvalidOwnerKeyError,
    InvalidSecretError,
    ItemNotFoundError,
    ListNotFoundError,
    OwnerKeyRequiredError,
    PublishError,
    QueryError,
    SnapshotParseError,
    SupportListError,
    TransportError,
)
from .events import LIST_KIND, build_list_event, sign_event, verify_event
from .identity import Identity, decode_secret, encode_secret
from .links import guest_link, owner_link, parse_link
from .models import (
    LIST_D_TAG,
    ItemStatus,
    SupportList,
    TodoItem,
    generate_item_id,
    move_item,
    move_item_before,
    sort_items,
)
from .reconcile import ReconcileResult, reconcile_events
from .session import ListSession, PublishedSnapshot, Role
from .snapshot import deserialize_snapshot, serialize_snapshot
from .transport import InMemoryRelay, NdjsonRelay, Transport, build_list_query

__version__ = "1.0.0"

__all__ = [
    "canonical_dumps",
    "canonical_hash",
    "SupportListConfig",
    "load_config",
    "DECRYPT_FAILED_TITLE",
    "ENCRYPTED_PREFIX",
    "conversation_key",
    "decrypt_item",
    "encrypt_item",
    "InvalidOwnerKeyError",
    "InvalidSecretError",
    "ItemNotFoundError",
    "ListNotFoundError",
    "OwnerKeyRequiredError",
    "PublishError",
    "QueryError",
    "SnapshotParseError",
    "SupportListError",
    "TransportError",
    "LIST_KIND",
    "build_list_event",
    "sign_event",
    "verify_event",
    "Identity",
    "decode_secret",
    "encode_secret",
    "guest_link",
    "owner_link",
    "parse_link",
    "LIST_D_TAG",
    "ItemStatus",
    "SupportList",
    "TodoItem",
    "generate_item_id",
    "move_item",
    "move_item_before",
    "sort_items",
    "ReconcileResult",
    "reconcile_events",
    "ListSession",
    "PublishedSnapshot",
    "Role",
    "deserialize_snapshot",
    "serialize_snapshot",
    "InMemoryRelay",
    "NdjsonRelay",
    "Transport",
    "build_list_query",
]

"""
snapshot.py — Snapshot content codec

A snapshot is the event content: the whole list as one JSON object with the
six fields title, items, ownerPubkey, guestPubkey, createdAt, updatedAt.
Items are written verbatim; the caller encrypts them first.

Reading is tolerant of snapshots written before a field existed:
  - missing title        -> "Support List"
  - missing items        -> []
  - missing ownerPubkey  -> the event signer (fallback_owner_pubkey)
Anything that is not a JSON object yields None ("unusable event").
"""

from __future__ import annotations
import json
import logging
from typing import Optional

from .canonical_json import canonical_dumps
from .models import SupportList

logger = logging.getLogger(__name__)


def serialize_snapshot(support_list: SupportList) -> str:
    """Deterministic JSON of the six snapshot fields."""
    return canonical_dumps(support_list.to_dict())


def deserialize_snapshot(content: str, fallback_owner_pubkey: str) -> Optional[SupportList]:
    """Parse event content into a SupportList, or None if it is unusable."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError) as err:
        logger.debug("Snapshot content is not JSON: %s", err)
        return None
    if not isinstance(data, dict):
        logger.debug("Snapshot content is %s, not an object", type(data).__name__)
        return None
    try:
        return SupportList.from_dict(data, fallback_owner_pubkey)
    except (KeyError, TypeError, ValueError) as err:
        logger.debug("Snapshot content has an invalid shape: %s", err)
        return None

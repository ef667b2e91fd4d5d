"""
envelope.py — Per-item selective encryption

Hides the sensitive fields of an item (title, note, claimedBy) from anyone
but the two participants. Status, order and id stay public.

Wire form of an encrypted item:
  title    = "ENC:" + base64(nonce || AES-256-GCM ciphertext)
  note, claimedBy absent (they live inside the ciphertext)
  encrypted = true

Key agreement: ECDH on secp256k1 between the sender's secret and the
recipient's public id, then HKDF-SHA256. The same key comes out on both
sides, so the owner encrypting for the guest and the guest encrypting for
the owner share one conversation key.

Items without the marker are legacy plaintext and stay readable forever.
"""

from __future__ import annotations
import base64
import binascii
import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .canonical_json import canonical_bytes
from .identity import Identity
from .models import TodoItem

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "ENC:"
DECRYPT_FAILED_TITLE = "[Encrypted - Unable to decrypt]"

_KDF_INFO = b"support-list-item-v1"
_NONCE_LENGTH = 12


def is_encrypted_title(title: str) -> bool:
    return title.startswith(ENCRYPTED_PREFIX)


def conversation_key(identity: Identity, peer_public_id: str) -> bytes:
    """Symmetric pairwise key for ``identity`` and ``peer_public_id``."""
    shared = identity.shared_secret(peer_public_id)
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=_KDF_INFO,
    ).derive(shared)


def _sealed_payload(item: TodoItem) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"title": item.title}
    if item.note is not None:
        payload["note"] = item.note
    if item.claimed_by is not None:
        payload["claimedBy"] = item.claimed_by
    return payload


def encrypt_item(item: TodoItem, sender: Identity, recipient_public_id: str) -> TodoItem:
    """
    Return the storage form of ``item``.

    Already-encrypted titles pass through unchanged. Any failure falls back
    to the plaintext item with ``encrypted=False``; a save is never blocked.
    """
    if is_encrypted_title(item.title):
        return item

    try:
        key = conversation_key(sender, recipient_public_id)
        nonce = os.urandom(_NONCE_LENGTH)
        ciphertext = AESGCM(key).encrypt(nonce, canonical_bytes(_sealed_payload(item)), None)
    except (ValueError, TypeError) as err:
        logger.error("Failed to encrypt item %s, storing it in plaintext: %s", item.id, err)
        return replace(item, encrypted=False)

    blob = base64.b64encode(nonce + ciphertext).decode("ascii")
    return TodoItem(
        id=item.id,
        title=ENCRYPTED_PREFIX + blob,
        status=item.status,
        order=item.order,
        encrypted=True,
    )


def decrypt_item(item: TodoItem, recipient: Identity, sender_public_id: str) -> TodoItem:
    """
    Return the display form of ``item``.

    Legacy plaintext items come back with ``encrypted=False``. A failed
    decryption (wrong key, corrupt blob) yields a placeholder title and no
    note or claimedBy. Never raises.
    """
    if not is_encrypted_title(item.title):
        return replace(item, encrypted=False)

    try:
        raw = base64.b64decode(item.title[len(ENCRYPTED_PREFIX):], validate=True)
        if len(raw) <= _NONCE_LENGTH:
            raise ValueError("ciphertext too short")
        key = conversation_key(recipient, sender_public_id)
        plaintext = AESGCM(key).decrypt(raw[:_NONCE_LENGTH], raw[_NONCE_LENGTH:], None)
        payload = json.loads(plaintext)
        if not isinstance(payload, dict) or not isinstance(payload.get("title"), str):
            raise ValueError("decrypted payload is not an item object")
    except (InvalidTag, ValueError, TypeError, binascii.Error) as err:
        logger.warning("Failed to decrypt item %s: %s", item.id, err)
        return replace(item, title=DECRYPT_FAILED_TITLE, note=None, claimed_by=None)

    return replace(
        item,
        title=payload["title"],
        note=payload.get("note"),
        claimed_by=payload.get("claimedBy"),
        encrypted=True,
    )

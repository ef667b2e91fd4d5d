"""
canonical_json.py — one byte form for ids, signatures and snapshots

The owner and the guest hash and sign the same event independently, so
both must turn a value into identical bytes: keys sorted, no spaces,
non-ASCII text written as UTF-8, NaN and Infinity refused (ValueError).
"""

from __future__ import annotations
import hashlib
import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """Text form used for event content and event id commitments."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_bytes(obj: Any) -> bytes:
    return canonical_dumps(obj).encode("utf-8")


def canonical_digest(obj: Any) -> bytes:
    """32-byte SHA-256 of ``obj``; event ids sign this value."""
    return hashlib.sha256(canonical_bytes(obj)).digest()


def canonical_hash(obj: Any) -> str:
    """Hex event id form of canonical_digest."""
    return canonical_digest(obj).hex()

"""
links.py — Shareable list links

  guest link:  {base}/list/{guest_secret}
  owner link:  {base}/list/{guest_secret}?owner={owner_secret}

Possession of the embedded secret is the whole access-control mechanism.
Never share the owner link.
"""

from __future__ import annotations
from typing import Optional, Tuple
from urllib.parse import parse_qs, quote, urlsplit

from .errors import InvalidSecretError

_LIST_SEGMENT = "list"


def guest_link(base_url: str, guest_secret: str) -> str:
    return f"{base_url.rstrip('/')}/{_LIST_SEGMENT}/{quote(guest_secret, safe='')}"


def owner_link(base_url: str, guest_secret: str, owner_secret: str) -> str:
    return f"{guest_link(base_url, guest_secret)}?owner={quote(owner_secret, safe='')}"


def parse_link(value: str) -> Tuple[str, Optional[str]]:
    """
    Extract (guest_secret, owner_secret) from a share link.

    A bare string without a scheme is taken as the guest secret itself.
    Raises InvalidSecretError when a URL carries no list segment.
    """
    value = value.strip()
    parts = urlsplit(value)
    if not parts.scheme:
        return value, None

    segments = [s for s in parts.path.split("/") if s]
    try:
        guest = segments[segments.index(_LIST_SEGMENT) + 1]
    except (ValueError, IndexError):
        raise InvalidSecretError(f"no /{_LIST_SEGMENT}/<secret> in link")

    owner_values = parse_qs(parts.query).get("owner")
    owner = owner_values[0] if owner_values else None
    return guest, owner

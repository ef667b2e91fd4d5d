"""
transport.py — Relay transport

The engine talks to the event log through two coroutines:

  publish(event)   -> None          submit one signed event
  query(filters)   -> [event, ...]  events matching ANY of the filters

Filters use relay keys: kinds, authors, ids, "#<tag>", since, until, limit.
Results are an unordered, possibly duplicated set; the reconciler sorts and
dedupes. Two local relays are provided:

  - InMemoryRelay  in-process list (tests, embedding)
  - NdjsonRelay    append-only NDJSON file, one canonical JSON event per line
"""

from __future__ import annotations
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .canonical_json import canonical_dumps
from .config import SupportListConfig
from .errors import PublishError, QueryError
from .events import D_TAG, P_TAG, event_sort_key, tag_values

logger = logging.getLogger(__name__)

Event = Dict[str, Any]
Filter = Dict[str, Any]


class Transport(Protocol):
    async def publish(self, event: Event) -> None: ...

    async def query(self, filters: List[Filter]) -> List[Event]: ...


def build_list_query(guest_id: str, config: Optional[SupportListConfig] = None) -> List[Filter]:
    """The single filter that finds every snapshot of one list."""
    config = config or SupportListConfig()
    return [{
        "kinds": [config.event_kind],
        f"#{P_TAG}": [guest_id],
        f"#{D_TAG}": [config.d_tag],
        "limit": config.query_limit,
    }]


def event_matches_filter(event: Event, flt: Filter) -> bool:
    """True if ``event`` satisfies every condition in ``flt``."""
    if "ids" in flt and event.get("id") not in flt["ids"]:
        return False
    if "kinds" in flt and event.get("kind") not in flt["kinds"]:
        return False
    if "authors" in flt and event.get("pubkey") not in flt["authors"]:
        return False
    created_at = event.get("created_at")
    if not isinstance(created_at, int):
        created_at = 0
    if "since" in flt and created_at < flt["since"]:
        return False
    if "until" in flt and created_at > flt["until"]:
        return False
    for key, wanted in flt.items():
        if not key.startswith("#"):
            continue
        values = tag_values(event, key[1:])
        if not any(v in wanted for v in values):
            return False
    return True


def apply_filters(events: List[Event], filters: List[Filter]) -> List[Event]:
    """Union of per-filter matches, each filter capped at its newest ``limit``."""
    results: List[Event] = []
    for flt in filters:
        matched = sorted(
            (e for e in events if event_matches_filter(e, flt)),
            key=event_sort_key,
        )
        limit = flt.get("limit")
        if isinstance(limit, int) and limit >= 0:
            matched = matched[:limit]
        results.extend(matched)
    return results


class InMemoryRelay:
    """Relay held in process memory."""

    def __init__(self, events: Optional[List[Event]] = None):
        self.events: List[Event] = list(events or [])

    async def publish(self, event: Event) -> None:
        self.events.append(dict(event))

    async def query(self, filters: List[Filter]) -> List[Event]:
        return [dict(e) for e in apply_filters(self.events, filters)]


# ---------------------------------------------------------------------------
# NDJSON file relay
# ---------------------------------------------------------------------------

def load_events(path: Path) -> List[Event]:
    """
    Read every event a relay file holds, oldest append first.

    A missing file is an empty relay. Lines that are blank, not JSON, or not
    a JSON object are passed over; a reader never fails because another
    writer left a torn line behind.
    """
    if not path.exists():
        return []
    events: List[Event] = []
    with path.open("r", encoding="utf-8") as f:
        for number, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("%s:%d is not a JSON event, ignoring", path, number)
                continue
            if isinstance(event, dict):
                events.append(event)
    return events


def append_event(path: Path, event: Event) -> None:
    """Append one event as a canonical JSON line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(canonical_dumps(event) + "\n")


class NdjsonRelay:
    """Append-only relay backed by a local NDJSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    async def publish(self, event: Event) -> None:
        try:
            await asyncio.to_thread(append_event, self.path, event)
        except OSError as err:
            raise PublishError(f"{self.path}: {err}") from err

    async def query(self, filters: List[Filter]) -> List[Event]:
        try:
            events = await asyncio.to_thread(load_events, self.path)
        except OSError as err:
            raise QueryError(f"{self.path}: {err}") from err
        return apply_filters(events, filters)

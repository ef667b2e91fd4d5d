#!/usr/bin/env python3
"""
cli.py — Command line client for support lists

Commands:
  create    Create a list and print its owner and guest links
  show      Load, reconcile and print a list
  add       Add a task (owner)
  status    Move a task to pending / claimed / complete
  note      Set or clear a task's note
  delete    Remove a task (owner)
  move      Move a task up or down inside its status group (owner)
  link      Print the share links for a list

LIST arguments accept a share link or a bare guest secret. Events are read
from and appended to a local NDJSON relay file (--relay).
"""

from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional, Tuple

from .config import SupportListConfig, load_config
from .errors import ItemNotFoundError, OwnerKeyRequiredError, SupportListError
from .identity import Identity
from .links import guest_link, owner_link, parse_link
from .models import ItemStatus, SupportList, move_item, sort_items
from .session import ListSession
from .transport import NdjsonRelay


def _fail_with_error(err: SupportListError) -> NoReturn:
    """Print a structured error message and exit."""
    print(f"ERROR: {err}")
    sys.exit(1)


def _cli_error(what: str, fix: str) -> NoReturn:
    print(f"ERROR: {what}. Fix: {fix}.")
    sys.exit(1)


def _config_from_args(args: argparse.Namespace) -> SupportListConfig:
    try:
        return load_config(
            Path(args.config) if args.config else None,
            relay_path=args.relay,
            base_url=getattr(args, "base_url", None),
        )
    except (OSError, ValueError) as err:
        _cli_error(f"Cannot read config: {err}", "check the --config file")


def _list_secrets(args: argparse.Namespace) -> Tuple[str, Optional[str]]:
    guest, owner = parse_link(args.list)
    owner = getattr(args, "owner", None) or owner
    return guest, owner


async def _open_session(args: argparse.Namespace) -> ListSession:
    config = _config_from_args(args)
    guest_secret, owner_secret = _list_secrets(args)
    guest = Identity.from_secret(guest_secret)
    session = ListSession(NdjsonRelay(Path(config.relay_path)), guest, config=config)
    await session.load()
    if owner_secret:
        session.authenticate_owner(owner_secret)
    return session


def _require_item(support_list: SupportList, item_id: str) -> None:
    if support_list.find_item(item_id) is None:
        raise ItemNotFoundError(item_id)


def _list_to_json(support_list: SupportList) -> Dict[str, Any]:
    data = support_list.to_dict()
    data["items"] = [item.to_dict() for item in sort_items(support_list.items)]
    return data


def _print_list(support_list: SupportList, is_owner: bool) -> None:
    role = "owner" if is_owner else "guest"
    print(f"{support_list.title}  ({role} view)")
    for status in ItemStatus:
        group = [i for i in sort_items(support_list.items) if i.status == status]
        if not group:
            continue
        print(f"\n{status.value.upper()} ({len(group)})")
        for item in group:
            line = f"  [{item.id}] {item.title}"
            if item.claimed_by:
                line += f"  (claimed by {item.claimed_by})"
            print(line)
            if item.note:
                print(f"      note: {item.note}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def cmd_create(args: argparse.Namespace) -> None:
    config = _config_from_args(args)
    session = await ListSession.create(args.title, NdjsonRelay(Path(config.relay_path)), config)
    support_list = session.require_list()
    if session.owner is None:
        raise OwnerKeyRequiredError("create did not produce an owner key")
    guest_secret = session.guest.secret_encoded()
    owner_secret = session.owner.secret_encoded()
    print(f"Created list: {support_list.title}")
    print(f"Owner key (keep private): {owner_secret}")
    print(f"Guest key:                {guest_secret}")
    print(f"Guest link: {guest_link(config.base_url, guest_secret)}")
    print(f"Owner link: {owner_link(config.base_url, guest_secret, owner_secret)}")


async def cmd_show(args: argparse.Namespace) -> None:
    session = await _open_session(args)
    support_list = session.require_list()
    if args.json:
        print(json.dumps(_list_to_json(support_list), indent=2, ensure_ascii=False))
    else:
        _print_list(support_list, session.is_owner)


async def cmd_add(args: argparse.Namespace) -> None:
    session = await _open_session(args)
    item = await session.add_item(args.title)
    print(f"Added [{item.id}] {item.title}")


async def cmd_status(args: argparse.Namespace) -> None:
    session = await _open_session(args)
    _require_item(session.require_list(), args.item_id)
    await session.set_status(args.item_id, ItemStatus(args.status), claimed_by=args.name)
    print(f"[{args.item_id}] is now {args.status}")


async def cmd_note(args: argparse.Namespace) -> None:
    session = await _open_session(args)
    _require_item(session.require_list(), args.item_id)
    await session.set_note(args.item_id, args.text)
    print(f"Updated note on [{args.item_id}]")


async def cmd_delete(args: argparse.Namespace) -> None:
    session = await _open_session(args)
    _require_item(session.require_list(), args.item_id)
    await session.delete_item(args.item_id)
    print(f"Deleted [{args.item_id}]")


async def cmd_move(args: argparse.Namespace) -> None:
    session = await _open_session(args)
    _require_item(session.require_list(), args.item_id)
    offset = -1 if args.direction == "up" else 1
    await session.reorder_items(move_item(session.require_list().items, args.item_id, offset))
    print(f"Moved [{args.item_id}] {args.direction}")


async def cmd_link(args: argparse.Namespace) -> None:
    config = _config_from_args(args)
    guest_secret, owner_secret = _list_secrets(args)
    Identity.from_secret(guest_secret)
    print(f"Guest link: {guest_link(config.base_url, guest_secret)}")
    if owner_secret:
        Identity.from_secret(owner_secret)
        print(f"Owner link: {owner_link(config.base_url, guest_secret, owner_secret)}")


COMMANDS = {
    "create": cmd_create,
    "show": cmd_show,
    "add": cmd_add,
    "status": cmd_status,
    "note": cmd_note,
    "delete": cmd_delete,
    "move": cmd_move,
    "link": cmd_link,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="supportlist", description="Collaborative support lists")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--relay", help="Path to the NDJSON relay file")
        p.add_argument("--config", help="Path to a JSON config file")

    # create
    p_create = sub.add_parser("create", help="Create a new list")
    p_create.add_argument("title", help="List title")
    p_create.add_argument("--base-url", help="Base URL for share links")
    common(p_create)

    # show
    p_show = sub.add_parser("show", help="Print the current list")
    p_show.add_argument("list", help="Share link or guest key")
    p_show.add_argument("--owner", help="Owner key")
    p_show.add_argument("--json", action="store_true", help="Print JSON")
    common(p_show)

    # add
    p_add = sub.add_parser("add", help="Add a task (owner)")
    p_add.add_argument("list", help="Share link or guest key")
    p_add.add_argument("title", help="Task title")
    p_add.add_argument("--owner", help="Owner key")
    common(p_add)

    # status
    p_status = sub.add_parser("status", help="Change a task's status")
    p_status.add_argument("list", help="Share link or guest key")
    p_status.add_argument("item_id", help="Task id")
    p_status.add_argument("status", choices=[s.value for s in ItemStatus])
    p_status.add_argument("--name", help="Who is claiming the task")
    p_status.add_argument("--owner", help="Owner key")
    common(p_status)

    # note
    p_note = sub.add_parser("note", help="Set a task note (empty text clears it)")
    p_note.add_argument("list", help="Share link or guest key")
    p_note.add_argument("item_id", help="Task id")
    p_note.add_argument("text", help="Note text")
    p_note.add_argument("--owner", help="Owner key")
    common(p_note)

    # delete
    p_delete = sub.add_parser("delete", help="Remove a task (owner)")
    p_delete.add_argument("list", help="Share link or guest key")
    p_delete.add_argument("item_id", help="Task id")
    p_delete.add_argument("--owner", help="Owner key")
    common(p_delete)

    # move
    p_move = sub.add_parser("move", help="Move a task within its group (owner)")
    p_move.add_argument("list", help="Share link or guest key")
    p_move.add_argument("item_id", help="Task id")
    p_move.add_argument("direction", choices=["up", "down"])
    p_move.add_argument("--owner", help="Owner key")
    common(p_move)

    # link
    p_link = sub.add_parser("link", help="Print share links")
    p_link.add_argument("list", help="Share link or guest key")
    p_link.add_argument("--owner", help="Owner key")
    p_link.add_argument("--base-url", help="Base URL for share links")
    common(p_link)

    return parser


def main(argv: Optional[list] = None) -> None:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(COMMANDS[args.command](args))
    except SupportListError as err:
        _fail_with_error(err)


if __name__ == "__main__":
    main()

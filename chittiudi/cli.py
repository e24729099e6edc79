"""
Chitti Udi CLI - Command-line interface for one device.

Usage:
    chittiudi name <name>                    Set your display name
    chittiudi whoami                         Show device id and name
    chittiudi create <name> [--type T]       Create a bowl
    chittiudi list                           List your bowls
    chittiudi show <bowl_id>                 Show a bowl
    chittiudi add <bowl_id> <text>           Add an entry
    chittiudi juggle <bowl_id>               Juggle a bowl
    chittiudi remove <bowl_id> <entry_id>    Delete an entry (owner)
    chittiudi clear <bowl_id>                Clear entries (owner)
    chittiudi delete <bowl_id>               Delete a bowl (owner)
    chittiudi open <url>                     Join a bowl from a shared link
    chittiudi share <bowl_id>                Print the share message
    chittiudi serve [--host H] [--port P]    Run the API server

Bowls and device data live under CHITTI_DATA_DIR (default ~/.chittiudi).
"""

from pathlib import Path
import argparse
import logging
import sys

from .config import Settings, configure_logging, get_settings
from .engine_core import Bowl, BowlType, ChittiUdiError

logger = logging.getLogger(__name__)


def main(argv=None, settings: Settings | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Chitti Udi - shared bowls, juggled at random",
        prog="chittiudi",
    )
    parser.add_argument("--data-dir", help="Override CHITTI_DATA_DIR")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    name_parser = subparsers.add_parser("name", help="Set your display name")
    name_parser.add_argument("name", help="Display name")

    subparsers.add_parser("whoami", help="Show device identity")

    create_parser = subparsers.add_parser("create", help="Create a bowl")
    create_parser.add_argument("name", help="Bowl name")
    create_parser.add_argument("--description", default="", help="Bowl description")
    create_parser.add_argument(
        "--type",
        type=BowlType.parse,
        default=BowlType.PICK_ONE_DISCARD,
        metavar="TYPE",
        help="How the bowl is juggled: " + ", ".join(t.value for t in BowlType),
    )
    create_parser.add_argument("--input-count", default="0", help="Entries per member (0 = unlimited)")
    create_parser.add_argument("--member-limit", default="0", help="Member cap (advisory)")

    subparsers.add_parser("list", help="List your bowls")

    show_parser = subparsers.add_parser("show", help="Show a bowl")
    show_parser.add_argument("bowl_id")

    add_parser = subparsers.add_parser("add", help="Add an entry")
    add_parser.add_argument("bowl_id")
    add_parser.add_argument("text")

    juggle_parser = subparsers.add_parser("juggle", help="Juggle a bowl")
    juggle_parser.add_argument("bowl_id")

    remove_parser = subparsers.add_parser("remove", help="Delete an entry (owner)")
    remove_parser.add_argument("bowl_id")
    remove_parser.add_argument("entry_id")

    clear_parser = subparsers.add_parser("clear", help="Clear all entries (owner)")
    clear_parser.add_argument("bowl_id")

    delete_parser = subparsers.add_parser("delete", help="Delete a bowl (owner)")
    delete_parser.add_argument("bowl_id")

    open_parser = subparsers.add_parser("open", help="Join a bowl from a link")
    open_parser.add_argument("url")

    share_parser = subparsers.add_parser("share", help="Print the share message")
    share_parser.add_argument("bowl_id")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    settings = settings or get_settings()
    if args.data_dir:
        settings = settings.model_copy(update={"data_dir": Path(args.data_dir)})
    configure_logging(settings.log_level)

    commands = {
        "name": cmd_name,
        "whoami": cmd_whoami,
        "create": cmd_create,
        "list": cmd_list,
        "show": cmd_show,
        "add": cmd_add,
        "juggle": cmd_juggle,
        "remove": cmd_remove,
        "clear": cmd_clear,
        "delete": cmd_delete,
        "open": cmd_open,
        "share": cmd_share,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args, settings)
    except ChittiUdiError as e:
        logger.debug(f"Command {args.command} failed: {e.code}")
        print(f"Error [{e.code}]: {e.message}")
        sys.exit(1)


def _session(settings: Settings):
    from .api.service import BowlService
    from .session import DeviceSession
    from .store import DeviceStore, JsonFileBowlStore

    service = BowlService(
        store=JsonFileBowlStore(settings.bowls_path),
        max_retries=settings.max_commit_retries,
    )
    return DeviceSession(
        service,
        DeviceStore(settings.device_path),
        share_base_url=settings.share_base_url,
    )


def _print_bowl(bowl: Bowl):
    print(f"{bowl.name} [{bowl.type.value}]  id={bowl.id}")
    if bowl.description:
        print(f"  {bowl.description}")
    print(f"  Owner: {bowl.owner_name}")
    print(f"  Members ({len(bowl.list_members)}): {', '.join(m.name for m in bowl.list_members)}")
    print(f"  Entries ({len(bowl.list_entries)}):")
    for entry in bowl.list_entries:
        print(f"    - {entry.text}  ({entry.user_name}, {entry.id})")
    if bowl.output:
        print("  Last result:")
        for line in bowl.output.splitlines():
            print(f"    {line}")


def cmd_name(args, settings):
    session = _session(settings)
    result = session.set_user_name(args.name)
    print(f"Name set to {session.user.name}")
    if result:
        print(f"Joined bowl {result.bowl_id}")


def cmd_whoami(args, settings):
    session = _session(settings)
    print(f"Device: {session.device.device_id}")
    print(f"Name: {session.device.user_name or '(not set)'}")


def cmd_create(args, settings):
    session = _session(settings)
    bowl = session.create_bowl(
        args.name,
        description=args.description,
        member_limit=args.member_limit,
        input_count=args.input_count,
        type=args.type,
    )
    print(f"Created bowl {bowl.id}")


def cmd_list(args, settings):
    session = _session(settings)
    bowls = session.visible_bowls()
    if not bowls:
        print("No bowls yet")
    for bowl in bowls:
        print(
            f"{bowl.id}  {bowl.name} [{bowl.type.value}]  "
            f"members={len(bowl.list_members)} entries={len(bowl.list_entries)}"
        )


def cmd_show(args, settings):
    _print_bowl(_session(settings).service.get_bowl(args.bowl_id))


def cmd_add(args, settings):
    bowl = _session(settings).submit_entry(args.bowl_id, args.text)
    print(f"Added '{bowl.list_entries[-1].text}' ({len(bowl.list_entries)} entries)")


def cmd_juggle(args, settings):
    bowl = _session(settings).resolve(args.bowl_id)
    print(bowl.output)


def cmd_remove(args, settings):
    bowl = _session(settings).delete_entry(args.bowl_id, args.entry_id)
    print(f"{len(bowl.list_entries)} entries left")


def cmd_clear(args, settings):
    _session(settings).clear_entries(args.bowl_id)
    print("Bowl cleared")


def cmd_delete(args, settings):
    _session(settings).delete_bowl(args.bowl_id)
    print(f"Deleted bowl {args.bowl_id}")


def cmd_open(args, settings):
    from .session import JoinStatus

    result = _session(settings).open_link(args.url)
    if result.status == JoinStatus.NEEDS_NAME:
        print("Please set your name first: chittiudi name <name>")
    elif result.status == JoinStatus.ALREADY_JOINED:
        print(f"Already in bowl {result.bowl_id}")
    else:
        print(f"Joined bowl {result.bowl.name} ({result.bowl_id})")


def cmd_share(args, settings):
    session = _session(settings)
    session.service.get_bowl(args.bowl_id)
    print(session.share(args.bowl_id).message)


def cmd_serve(args, settings):
    """Run the API server with an in-memory store."""
    import uvicorn
    from .api.app import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()

"""Sift CLI - main entry point."""
import argparse
import json
import os
import sys
from datetime import date, timedelta
from pathlib import Path

from sift.display import format_json, format_jsonl, format_list, format_yaml, visible_tasks
from sift.ids import (
    first_order,
    generate_unique_id,
    next_order,
    order_after,
    order_before,
    order_for_step,
    ordered,
)
from sift.order import InvalidArgument, midpoint
from sift.storage import (
    DATA_DIR_NAME,
    SiftError,
    check_initialized,
    debug,
    error,
    find_by_id,
    get_creator,
    is_snoozed,
    load_prefix,
    load_tasks,
    now_iso,
    save_tasks,
    today,
)
from sift.transfer import build_imported, read_import

try:
    from importlib.metadata import version as _meta_version
    __version__ = _meta_version("sift")
except Exception:
    __version__ = "0.0.0"


def normalize_title(raw: str) -> str:
    """Collapse a title onto one trimmed line."""
    return " ".join(raw.split())


def require_task(tasks: list[dict], task_id: str, prefix: str) -> dict:
    task = find_by_id(tasks, task_id, prefix)
    if not task:
        error(f"Task '{task_id}' not found")
    return task


def report(args, task: dict, message: str) -> None:
    """Print the task ID alone under --quiet, otherwise the message."""
    if getattr(args, "quiet", False):
        print(task["id"])
    else:
        print(message)


def cmd_init(args):
    """Initialize .sift/ directory."""
    prefix = args.prefix

    # Validate prefix: alphanumeric only, no spaces or hyphens
    if not prefix.isalnum():
        error(f"Prefix must be alphanumeric (no spaces or hyphens), got '{prefix}'")

    sift_dir = Path(os.environ.get("SIFT_DIR") or DATA_DIR_NAME)
    if sift_dir.exists():
        error(f"{sift_dir} already exists.")

    sift_dir.mkdir(parents=True)
    (sift_dir / "tasks.jsonl").touch()
    (sift_dir / "prefix").write_text(prefix)  # No trailing newline
    print(f"Initialized .sift/ with prefix '{prefix}'")


def cmd_add(args):
    """Create a new task at the end of the list, or next to another task."""
    check_initialized()

    title = normalize_title(args.title)
    if not title:
        error("Title cannot be empty")

    tasks = load_tasks()
    prefix = load_prefix()

    if args.after:
        order = order_after(tasks, require_task(tasks, args.after, prefix))
    elif args.before:
        order = order_before(tasks, require_task(tasks, args.before, prefix))
    elif args.top:
        order = first_order(tasks)
    else:
        order = next_order(tasks)

    task = {
        "id": generate_unique_id(prefix, {t["id"] for t in tasks}),
        "title": title,
        "status": "open",
        "order": order,
        "created_at": now_iso(),
        "created_by": get_creator(),
        "snoozed": None,
    }
    debug(f"new task {task['id']} at order {order!r}")

    tasks.append(task)
    save_tasks(tasks)
    report(args, task, f"Created: {task['id']}")


def cmd_list(args):
    """List tasks in order."""
    check_initialized()

    tasks = load_tasks()

    if args.json:
        print(format_json(visible_tasks(tasks, args.all)))
    elif args.jsonl:
        print(format_jsonl(visible_tasks(tasks, args.all)))
    else:
        print(format_list(tasks, args.all))


def cmd_show(args):
    """Show details for a single task."""
    check_initialized()

    tasks = load_tasks()
    task = require_task(tasks, args.id, load_prefix())

    if args.json:
        print(json.dumps(task, indent=2, ensure_ascii=False))
        return

    position = [t["id"] for t in ordered(tasks)].index(task["id"]) + 1
    status_icon = "✓" if task["status"] == "done" else "○"
    print(f"{status_icon} {task['title']} ({task['id']})")
    print(f"   Status: {task['status']}")
    print(f"   Position: {position} of {len(tasks)} (order key '{task['order']}')")
    if task.get("created_at"):
        print(f"   Created: {task['created_at']} by {task.get('created_by', 'unknown')}")
    if task.get("done_at"):
        print(f"   Done: {task['done_at']}")
    if task.get("snoozed"):
        state = "snoozed until" if is_snoozed(task) else "snooze expired"
        print(f"   Snooze: {state} {task['snoozed']}")


def cmd_done(args):
    """Mark task as done."""
    check_initialized()

    tasks = load_tasks()
    task = require_task(tasks, args.id, load_prefix())

    if task["status"] == "done":
        print(f"Already done: {task['id']}")
        return

    task["status"] = "done"
    task["done_at"] = now_iso()
    save_tasks(tasks)
    report(args, task, f"Done: {task['id']}")


def cmd_reopen(args):
    """Reopen a completed task."""
    check_initialized()

    tasks = load_tasks()
    task = require_task(tasks, args.id, load_prefix())

    if task["status"] != "done":
        error(f"Task '{args.id}' is already open")

    task["status"] = "open"
    task.pop("done_at", None)
    save_tasks(tasks)
    report(args, task, f"Reopened: {task['id']}")


def cmd_edit(args):
    """Rename a task."""
    check_initialized()

    title = normalize_title(args.title)
    if not title:
        error("Title cannot be empty")

    tasks = load_tasks()
    task = require_task(tasks, args.id, load_prefix())

    task["title"] = title
    save_tasks(tasks)
    report(args, task, f"Updated: {task['id']}")


def cmd_move(args):
    """Give a task a new position by assigning it a fresh order key."""
    check_initialized()

    tasks = load_tasks()
    prefix = load_prefix()
    task = require_task(tasks, args.id, prefix)

    if args.after or args.before:
        anchor = require_task(tasks, args.after or args.before, prefix)
        if anchor["id"] == task["id"]:
            error("Cannot move a task relative to itself")
        if args.after:
            new_order = order_after(tasks, anchor, exclude=task)
        else:
            new_order = order_before(tasks, anchor, exclude=task)
    elif args.top:
        new_order = first_order(tasks, exclude=task)
    elif args.bottom:
        new_order = next_order(tasks, exclude=task)
    else:
        # Step over the listed tasks; keep the moving task in view even if hidden
        shown = {t["id"] for t in visible_tasks(tasks, args.all)} | {task["id"]}
        visible = [t for t in tasks if t["id"] in shown]
        step = -1 if args.up else 1
        new_order = order_for_step(tasks, visible, task, step)

    old_order = task["order"]
    task["order"] = new_order
    debug(f"move {task['id']}: {old_order!r} -> {new_order!r}")

    save_tasks(tasks)
    position = [t["id"] for t in ordered(tasks)].index(task["id"]) + 1
    report(args, task, f"Moved: {task['id']} (now {position} of {len(tasks)})")


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from None


def cmd_snooze(args):
    """Hide a task from the default listing until a date."""
    check_initialized()

    tasks = load_tasks()
    task = require_task(tasks, args.id, load_prefix())

    if args.clear:
        task["snoozed"] = None
        save_tasks(tasks)
        report(args, task, f"Unsnoozed: {task['id']}")
        return

    until = args.until or today() + timedelta(weeks=1)
    if until <= today():
        error(f"Snooze date must be in the future, got {until.isoformat()}")

    task["snoozed"] = until.isoformat()
    save_tasks(tasks)
    report(args, task, f"Snoozed: {task['id']} until {task['snoozed']}")


def cmd_remove(args):
    """Delete a task. Other tasks keep their keys."""
    check_initialized()

    tasks = load_tasks()
    task = require_task(tasks, args.id, load_prefix())

    remaining = [t for t in tasks if t["id"] != task["id"]]
    save_tasks(remaining)
    report(args, task, f"Removed: {task['id']}")


def cmd_status(args):
    """Show status overview."""
    check_initialized()

    tasks = load_tasks()
    prefix = load_prefix()

    open_tasks = [t for t in tasks if t["status"] == "open"]
    done_tasks = [t for t in tasks if t["status"] == "done"]
    snoozed = [t for t in open_tasks if is_snoozed(t)]
    longest = max((len(t["order"]) for t in tasks), default=0)

    print(f"Sift status (prefix: {prefix})")
    print()
    print(f"Tasks:   {len(open_tasks)} open ({len(snoozed)} snoozed), {len(done_tasks)} done")
    print(f"Longest order key: {longest}")


def cmd_export(args):
    """Print the task list as YAML."""
    check_initialized()

    tasks = load_tasks()
    print(format_yaml(tasks), end="")


def cmd_import(args):
    """Append tasks from a YAML export."""
    check_initialized()

    tasks = load_tasks()
    created = build_imported(read_import(args.file), tasks, load_prefix())
    if not created:
        print("Nothing to import")
        return

    save_tasks(tasks + created)
    print(f"Imported {len(created)} task(s)")
    for task in created:
        print(f"  {task['id']} — {task['title']}")


def cmd_key(args):
    """Print the order key between two keys ('-' for no bound)."""
    lower = None if args.lower in (None, "-") else args.lower
    upper = None if args.upper in (None, "-") else args.upper
    print(midpoint(lower, upper))


def cmd_help(args, parser):
    """Show help."""
    if args.command_name:
        # Find the subparser for this command
        subparsers_actions = [
            action for action in parser._actions
            if isinstance(action, argparse._SubParsersAction)
        ]
        if subparsers_actions:
            subparsers = subparsers_actions[0]
            if args.command_name in subparsers.choices:
                subparsers.choices[args.command_name].print_help()
            else:
                print(f"Unknown command: {args.command_name}", file=sys.stderr)
                sys.exit(1)
    else:
        parser.print_help()


def add_output_flags(subparser, json=False, jsonl=False, quiet=False):
    """Add output format flags to a subparser.

    Args:
        subparser: The argparse subparser to add flags to
        json: If True, add --json flag
        jsonl: If True, add --jsonl flag
        quiet: If True, add --quiet/-q flag
    """
    if json:
        subparser.add_argument("--json", action="store_true", help="Output as JSON")
    if jsonl:
        subparser.add_argument("--jsonl", action="store_true", help="Output as JSONL (one task per line)")
    if quiet:
        subparser.add_argument("-q", "--quiet", action="store_true", help="Only print the task ID")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sift",
        description="Ordered to-do list"
    )
    parser.add_argument("--version", action="version", version=f"sift {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init
    init_parser = subparsers.add_parser("init", help="Initialize .sift/")
    init_parser.add_argument("--prefix", default="sift", help="ID prefix (default: sift)")
    init_parser.set_defaults(func=cmd_init)

    # add
    add_parser = subparsers.add_parser("add", help="Add a task")
    add_parser.add_argument("title", help="Title for the task")
    position = add_parser.add_mutually_exclusive_group()
    position.add_argument("--after", metavar="ID", help="Insert directly after this task")
    position.add_argument("--before", metavar="ID", help="Insert directly before this task")
    position.add_argument("--top", action="store_true", help="Insert at the top of the list")
    add_output_flags(add_parser, quiet=True)
    add_parser.set_defaults(func=cmd_add)

    # list
    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument("--all", action="store_true", help="Include done and snoozed tasks")
    add_output_flags(list_parser, json=True, jsonl=True)
    list_parser.set_defaults(func=cmd_list)

    # show
    show_parser = subparsers.add_parser("show", help="View task details")
    show_parser.add_argument("id", help="Task ID to show")
    add_output_flags(show_parser, json=True)
    show_parser.set_defaults(func=cmd_show)

    # done
    done_parser = subparsers.add_parser("done", help="Complete task")
    done_parser.add_argument("id", help="Task ID to mark done")
    add_output_flags(done_parser, quiet=True)
    done_parser.set_defaults(func=cmd_done)

    # reopen
    reopen_parser = subparsers.add_parser("reopen", help="Reopen a completed task")
    reopen_parser.add_argument("id", help="Task ID to reopen")
    add_output_flags(reopen_parser, quiet=True)
    reopen_parser.set_defaults(func=cmd_reopen)

    # edit
    edit_parser = subparsers.add_parser("edit", help="Rename a task")
    edit_parser.add_argument("id", help="Task ID to edit")
    edit_parser.add_argument("--title", required=True, help="New title")
    add_output_flags(edit_parser, quiet=True)
    edit_parser.set_defaults(func=cmd_edit)

    # move
    move_parser = subparsers.add_parser("move", help="Move a task")
    move_parser.add_argument("id", help="Task ID to move")
    where = move_parser.add_mutually_exclusive_group(required=True)
    where.add_argument("--up", action="store_true", help="One place up (wraps to the bottom)")
    where.add_argument("--down", action="store_true", help="One place down (wraps to the top)")
    where.add_argument("--top", action="store_true", help="To the top of the list")
    where.add_argument("--bottom", action="store_true", help="To the bottom of the list")
    where.add_argument("--after", metavar="ID", help="Directly after this task")
    where.add_argument("--before", metavar="ID", help="Directly before this task")
    move_parser.add_argument("--all", action="store_true",
                             help="Count done and snoozed tasks when stepping up/down")
    add_output_flags(move_parser, quiet=True)
    move_parser.set_defaults(func=cmd_move)

    # snooze
    snooze_parser = subparsers.add_parser("snooze", help="Hide a task until a date")
    snooze_parser.add_argument("id", help="Task ID to snooze")
    when = snooze_parser.add_mutually_exclusive_group()
    when.add_argument("--until", type=parse_date, metavar="YYYY-MM-DD",
                      help="Date to reappear (default: one week from today)")
    when.add_argument("--clear", action="store_true", help="Remove the snooze")
    add_output_flags(snooze_parser, quiet=True)
    snooze_parser.set_defaults(func=cmd_snooze)

    # remove
    remove_parser = subparsers.add_parser("remove", help="Delete a task")
    remove_parser.add_argument("id", help="Task ID to delete")
    add_output_flags(remove_parser, quiet=True)
    remove_parser.set_defaults(func=cmd_remove)

    # status
    status_parser = subparsers.add_parser("status", help="Show status overview")
    status_parser.set_defaults(func=cmd_status)

    # export
    export_parser = subparsers.add_parser("export", help="Print tasks as YAML")
    export_parser.set_defaults(func=cmd_export)

    # import
    import_parser = subparsers.add_parser("import", help="Append tasks from a YAML export")
    import_parser.add_argument("file", help="YAML file written by `sift export`")
    import_parser.set_defaults(func=cmd_import)

    # key
    key_parser = subparsers.add_parser("key", help="Print an order key between two keys")
    key_parser.add_argument("lower", nargs="?", help="Lower bound ('-' or omitted for none)")
    key_parser.add_argument("upper", nargs="?", help="Upper bound ('-' or omitted for none)")
    key_parser.set_defaults(func=cmd_key)

    # help
    help_parser = subparsers.add_parser("help", help="Show help")
    help_parser.add_argument("command_name", nargs="?", help="Command to get help for")
    help_parser.set_defaults(func=lambda args: cmd_help(args, parser))

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        args.func(args)
    except (SiftError, InvalidArgument) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

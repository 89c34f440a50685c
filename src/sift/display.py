"""Display formatting for sift output."""
import json

import yaml

from sift.ids import ordered
from sift.storage import is_snoozed


def visible_tasks(tasks: list[dict], show_all: bool = False) -> list[dict]:
    """Tasks shown by a plain `sift list`: open and not snoozed."""
    if show_all:
        return ordered(tasks)
    return [t for t in ordered(tasks) if t["status"] == "open" and not is_snoozed(t)]


def format_task_line(position: int, task: dict) -> str:
    status_icon = "✓" if task["status"] == "done" else "○"
    suffix = ""
    if is_snoozed(task):
        suffix = f" ⏸ until {task['snoozed']}"
    return f"{position:>3}. {status_icon} {task['title']} ({task['id']}){suffix}"


def format_list(tasks: list[dict], show_all: bool = False) -> str:
    """Format tasks as a numbered list in order-key order.

    Positions are 1-based and only count the tasks shown, so they line up
    with what `sift move --up/--down` steps over.
    """
    shown = visible_tasks(tasks, show_all)
    if not shown:
        return "No tasks."

    lines = [format_task_line(i, task) for i, task in enumerate(shown, 1)]

    hidden = len(tasks) - len(shown)
    if hidden and not show_all:
        lines.append(f"     (+{hidden} hidden, use --all)")

    return "\n".join(lines)


def format_json(tasks: list[dict]) -> str:
    """Format as a JSON array in list order."""
    return json.dumps(ordered(tasks), indent=2, ensure_ascii=False)


def format_jsonl(tasks: list[dict]) -> str:
    """Format as flat JSONL, one task per line."""
    lines = []
    for task in ordered(tasks):
        lines.append(json.dumps(task, ensure_ascii=False))
    return "\n".join(lines)


def format_yaml(tasks: list[dict]) -> str:
    """Format as the YAML document read back by `sift import`.

    Order keys are left out: the list position is the sequence order, and
    import assigns fresh keys.
    """
    export = {"tasks": []}
    for task in ordered(tasks):
        entry = {"title": task["title"], "status": task["status"]}
        for field in ("created_at", "created_by", "done_at", "snoozed"):
            if task.get(field):
                entry[field] = task[field]
        export["tasks"].append(entry)
    return yaml.dump(export, default_flow_style=False, allow_unicode=True, sort_keys=False)

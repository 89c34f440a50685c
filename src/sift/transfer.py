"""Import of task lists exported by `sift export`."""
from datetime import UTC, date, datetime
from pathlib import Path

import yaml

from sift.ids import generate_unique_id, next_order
from sift.storage import SiftError, ValidationError, get_creator, now_iso, validate_task


def read_import(path: str) -> list[dict]:
    """Read a YAML export and return its entries in document order.

    Raises SiftError if the file is missing or not a `tasks:` document.
    """
    source = Path(path)
    if not source.exists():
        raise SiftError(f"File not found: {path}")

    with open(source) as f:
        try:
            document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SiftError(f"Cannot parse {path}: {e}") from None

    if not isinstance(document, dict) or not isinstance(document.get("tasks"), list):
        raise SiftError(f"{path}: expected a mapping with a 'tasks' list")

    return document["tasks"]


def build_imported(entries: list, existing: list[dict], prefix: str) -> list[dict]:
    """Turn import entries into tasks appended after ``existing``.

    Every entry is checked before anything is returned, so a bad file
    imports nothing. Keys are generated one after another from the current
    last task, keeping the document's sequence.
    """
    existing_ids = {t["id"] for t in existing}
    placed = list(existing)
    created = []
    errors = []
    creator = get_creator()

    for index, entry in enumerate(entries, 1):
        if not isinstance(entry, dict):
            errors.append(f"entry {index}: expected a mapping")
            continue

        title = " ".join(str(entry.get("title") or "").split())
        status = entry.get("status", "open")
        task = {
            "id": generate_unique_id(prefix, existing_ids),
            "title": title,
            "status": status,
            "order": next_order(placed),
            "created_at": _timestamp_string(entry.get("created_at")) or now_iso(),
            "created_by": entry.get("created_by") or creator,
            "snoozed": _date_string(entry.get("snoozed")),
        }
        if status == "done":
            task["done_at"] = _timestamp_string(entry.get("done_at")) or now_iso()

        try:
            validate_task(task)
        except ValidationError as e:
            errors.append(f"entry {index}: {e}")
            continue

        existing_ids.add(task["id"])
        placed.append(task)
        created.append(task)

    if errors:
        raise ValidationError("Import rejected:\n  " + "\n  ".join(errors))

    return created


def _timestamp_string(value) -> str | None:
    """Normalize a created_at/done_at value to UTC with a Z suffix.

    PyYAML resolves unquoted timestamps to datetime objects; naive ones
    are taken as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")
    return _date_string(value)


def _date_string(value) -> str | None:
    # PyYAML resolves unquoted dates to date objects
    if value is None:
        return None
    return value.isoformat() if isinstance(value, date) else str(value)

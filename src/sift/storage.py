"""Storage operations for sift tasks."""
import json
import os
import subprocess
import sys
from datetime import UTC, date, datetime
from pathlib import Path

from sift.order import is_well_formed

DATA_DIR_NAME = ".sift"
TASKS_FILE = "tasks.jsonl"
PREFIX_FILE = "prefix"
DEFAULT_PREFIX = "sift"


class SiftError(Exception):
    """Base class for failures reported to the user by the CLI."""
    pass


class ValidationError(SiftError):
    """Raised when task validation fails."""
    pass


def error(message: str) -> None:
    """Print error message and exit."""
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def warn(message: str) -> None:
    """Print warning message to stderr (does not exit)."""
    print(f"Warning: {message}", file=sys.stderr)


def debug(message: str) -> None:
    """Print a debug line to stderr when SIFT_DEBUG is set."""
    if os.environ.get("SIFT_DEBUG"):
        print(f"Debug: {message}", file=sys.stderr)


_data_dir: Path | None = None


def _reset_data_dir() -> None:
    """Forget the cached data directory (tests chdir between cases)."""
    global _data_dir
    _data_dir = None


def data_dir() -> Path:
    """Locate .sift/ for the current working directory.

    SIFT_DIR wins if set. Otherwise walk up from the working directory and
    use the first .sift/ found; if there is none, fall back to ./.sift so
    that `sift init` knows where to create it. Cached per process.
    """
    global _data_dir
    if _data_dir is not None:
        return _data_dir

    if override := os.environ.get("SIFT_DIR"):
        _data_dir = Path(override)
    else:
        cwd = Path.cwd()
        for candidate in (cwd, *cwd.parents):
            if (candidate / DATA_DIR_NAME).is_dir():
                _data_dir = candidate / DATA_DIR_NAME
                break
        else:
            _data_dir = cwd / DATA_DIR_NAME

    debug(f"data dir: {_data_dir}")
    return _data_dir


def tasks_path() -> Path:
    return data_dir() / TASKS_FILE


def load_tasks() -> list[dict]:
    """Load all tasks from JSONL with validation.

    Deduplicates by ID (last occurrence wins). This handles union merge
    artifacts where git keeps both old and new versions of an edited line.
    """
    path = tasks_path()
    if not path.exists():
        return []

    seen: dict[str, dict] = {}  # id -> task (last wins)
    duplicates = []
    for line_num, line in enumerate(path.read_text().splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            task = json.loads(line)
            validate_task(task)
            if task["id"] in seen:
                duplicates.append(task["id"])
            seen[task["id"]] = task
        except (json.JSONDecodeError, ValidationError) as e:
            warn(f"Skipping malformed task on line {line_num}: {e}")

    if duplicates:
        warn(f"Duplicate IDs found (last one kept): {', '.join(sorted(set(duplicates)))}")

    by_order: dict[str, list[str]] = {}
    for task in seen.values():
        by_order.setdefault(task["order"], []).append(task["id"])
    shared = {order: ids for order, ids in by_order.items() if len(ids) > 1}
    for order, ids in sorted(shared.items()):
        # Still listable (ID breaks the tie) but nothing fits between them
        warn(f"Order key '{order}' is shared by {', '.join(sorted(ids))}; move one of them")

    debug(f"loaded {len(seen)} task(s) from {path}")
    return list(seen.values())


def validate_task(task: dict) -> None:
    """Validate task has required fields. Raises ValidationError if invalid."""
    if not isinstance(task, dict):
        raise ValidationError("Task must be a JSON object")

    required = ["id", "title", "status", "order"]
    for field in required:
        if field not in task:
            raise ValidationError(f"Missing required field: {field}")

    if not isinstance(task["id"], str) or not task["id"]:
        raise ValidationError(f"Invalid id: {task['id']!r}")

    if not isinstance(task["title"], str) or not task["title"].strip():
        raise ValidationError("Title cannot be empty")

    if task["status"] not in ("open", "done"):
        raise ValidationError(f"Invalid status: {task['status']}")

    # Empty is well formed for the algorithm but is never a stored position
    if not task["order"] or not is_well_formed(task["order"]):
        raise ValidationError(f"Invalid order key: {task['order']!r}")

    snoozed = task.get("snoozed")
    if snoozed is not None:
        try:
            date.fromisoformat(snoozed)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid snooze date: {snoozed!r}") from None


def _write_atomic(path: Path, lines: list[str]) -> None:
    tmp = path.with_suffix(".tmp")
    with open(tmp, "w") as f:
        for line in lines:
            f.write(line + "\n")
    tmp.rename(path)  # Atomic on POSIX


def save_tasks(tasks: list[dict]) -> None:
    """Save tasks atomically, sorted by ID for deterministic output.

    Deterministic order means two branches that touch different tasks
    produce minimal diffs, enabling clean git merges. List order lives in
    each task's order key, not in the file.
    """
    path = tasks_path()
    _write_atomic(path, [
        json.dumps(task, ensure_ascii=False)
        for task in sorted(tasks, key=lambda t: t.get("id", ""))
    ])
    debug(f"saved {len(tasks)} task(s) to {path}")


def load_prefix() -> str:
    """Load prefix, default to 'sift'."""
    path = data_dir() / PREFIX_FILE
    if path.exists():
        return path.read_text().strip() or DEFAULT_PREFIX
    return DEFAULT_PREFIX


def find_by_id(tasks: list[dict], task_id: str, prefix: str | None = None) -> dict | None:
    """Find task by ID. Returns None if not found.

    Case-sensitive. Tries exact match first, then prefix + id, so
    `sift done gaBdur` works as well as `sift done sift-gaBdur`.
    """
    for task in tasks:
        if task["id"] == task_id:
            return task

    if prefix and not task_id.startswith(prefix + "-"):
        prefixed = f"{prefix}-{task_id}"
        for task in tasks:
            if task["id"] == prefixed:
                return task

    return None


def get_creator() -> str:
    """Get creator identifier for new tasks.

    Name priority:
    1. SIFT_USER env var (explicit override)
    2. git config user.name (most common)
    3. USER env var (fallback)
    4. "unknown" (last resort)

    A "-tty" suffix marks tasks typed by a human at a terminal.
    """
    name = os.environ.get("SIFT_USER")

    if not name:
        try:
            result = subprocess.run(
                ["git", "config", "user.name"],
                capture_output=True, text=True, timeout=2
            )
            if result.returncode == 0 and result.stdout.strip():
                name = result.stdout.strip()
        except (subprocess.TimeoutExpired, FileNotFoundError):
            pass

    if not name:
        name = os.environ.get("USER", "unknown")

    if sys.stdin.isatty():
        return f"{name}-tty"

    return name


def now_iso() -> str:
    """Current time in ISO8601 format."""
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def today() -> date:
    return datetime.now().date()


def is_snoozed(task: dict, on: date | None = None) -> bool:
    """True if the task is hidden by a snooze date later than ``on``."""
    snoozed = task.get("snoozed")
    if not snoozed:
        return False
    return date.fromisoformat(snoozed) > (on or today())


def check_initialized() -> None:
    """Check if .sift/ is initialized. Exit with error if not."""
    if not data_dir().is_dir():
        error("Not initialized. Run `sift init` first.")

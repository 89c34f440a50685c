"""ID generation and ordering for sift tasks."""
import random

from sift.order import midpoint

CONSONANTS = "bcdfghjklmnprstvwz"  # No ambiguous: q, x, y
VOWELS = "aeiou"


def generate_id(prefix: str = "sift") -> str:
    """Generate pronounceable ID like 'sift-gaBdur'."""
    syllables = []
    for _ in range(3):
        c = random.choice(CONSONANTS)
        v = random.choice(VOWELS)
        # 30% chance to capitalize consonant
        if random.random() < 0.3:
            c = c.upper()
        syllables.append(c + v)
    return f"{prefix}-{''.join(syllables)}"


def generate_unique_id(prefix: str, existing_ids: set[str]) -> str:
    """Generate ID that doesn't collide with existing."""
    for _ in range(100):  # Safety limit
        new_id = generate_id(prefix)
        if new_id not in existing_ids:
            return new_id
    raise RuntimeError("Failed to generate unique ID after 100 attempts")


def sort_key(task: dict) -> tuple[str, str]:
    # ID breaks ties left behind by merges that duplicated a key
    return (task["order"], task["id"])


def ordered(tasks: list[dict], exclude: dict | None = None) -> list[dict]:
    """Tasks in list order, optionally leaving one task out."""
    return sorted(
        (t for t in tasks if exclude is None or t["id"] != exclude["id"]),
        key=sort_key,
    )


def next_order(tasks: list[dict], exclude: dict | None = None) -> str:
    """Order key for the end of the list."""
    rest = ordered(tasks, exclude)
    return midpoint(rest[-1]["order"] if rest else None, None)


def first_order(tasks: list[dict], exclude: dict | None = None) -> str:
    """Order key for the start of the list."""
    rest = ordered(tasks, exclude)
    return midpoint(None, rest[0]["order"] if rest else None)


def order_after(tasks: list[dict], anchor: dict, exclude: dict | None = None) -> str:
    """Order key for a slot directly after ``anchor``."""
    rest = ordered(tasks, exclude)
    index = _index_of(rest, anchor)
    upper = rest[index + 1]["order"] if index + 1 < len(rest) else None
    return midpoint(anchor["order"], upper)


def order_before(tasks: list[dict], anchor: dict, exclude: dict | None = None) -> str:
    """Order key for a slot directly before ``anchor``."""
    rest = ordered(tasks, exclude)
    index = _index_of(rest, anchor)
    lower = rest[index - 1]["order"] if index > 0 else None
    return midpoint(lower, anchor["order"])


def _index_of(tasks: list[dict], anchor: dict) -> int:
    for i, task in enumerate(tasks):
        if task["id"] == anchor["id"]:
            return i
    raise ValueError(f"{anchor['id']} is not in the list")


def order_for_step(tasks: list[dict], visible: list[dict], task: dict, step: int) -> str:
    """Order key that moves ``task`` one place up (-1) or down (+1).

    Steps are counted over ``visible`` (what the user sees listed), and wrap
    around: up from the top goes to the bottom, down from the bottom goes to
    the top. The key itself is placed relative to all ``tasks`` so hidden
    tasks keep their positions.
    """
    view = ordered(visible)
    index = _index_of(view, task)
    others = [t for t in view if t["id"] != task["id"]]
    if not others:
        return task["order"]

    if step < 0:
        if index == 0:
            return next_order(tasks, exclude=task)
        return order_before(tasks, view[index - 1], exclude=task)

    if index == len(view) - 1:
        return first_order(tasks, exclude=task)
    return order_after(tasks, view[index + 1], exclude=task)

"""Order keys: dense, gap-tolerant position markers for ordered lists.

A key is a string over ``a``..``z`` read as a base-26 fraction, so plain
string comparison gives the list order. ``midpoint`` produces a key strictly
between two neighbours, which lets tasks be inserted or moved without
renumbering anything else.
"""
import string

ALPHABET = string.ascii_lowercase
LOWEST = ord(ALPHABET[0])
HIGHEST = ord(ALPHABET[-1])

# Sentinels for "no constraint" bounds. Never part of a stored key.
PRED = LOWEST - 1
SUCC = HIGHEST + 1


class InvalidArgument(ValueError):
    """Raised when midpoint() is given a malformed or misordered bound."""
    pass


def is_well_formed(key: str) -> bool:
    """Check that ``key`` can be used as (or was produced as) an order key.

    Every character must be within the alphabet, and a non-empty key must not
    end with the lowest character. A trailing ``a`` adds nothing to the
    fraction's value but still sorts after the shorter key, which would break
    the match between string order and numeric order.
    """
    if not isinstance(key, str):
        return False
    for ch in key:
        if not LOWEST <= ord(ch) <= HIGHEST:
            return False
    if key and ord(key[-1]) == LOWEST:
        return False
    return True


def _digit(key: str, index: int, default: int) -> int:
    if index < len(key):
        return ord(key[index])
    return default


def midpoint(lower: str | None = None, upper: str | None = None) -> str:
    """Return a key sorting strictly between ``lower`` and ``upper``.

    Either bound may be None (or empty) for an open end: ``midpoint()`` seeds
    an empty list, ``midpoint(last, None)`` appends and
    ``midpoint(None, first)`` prepends.

    The result depends only on the two bounds. Callers inserting at the same
    position concurrently must serialize, or they will get the same key.

    Raises:
        InvalidArgument: if either bound is not well formed, or both are given
            and ``lower`` does not sort before ``upper``.
    """
    if lower is None:
        lower = ""
    if upper is None:
        upper = ""

    if not is_well_formed(lower):
        raise InvalidArgument(f"lower bound {lower!r} is not a valid order key")
    if not is_well_formed(upper):
        raise InvalidArgument(f"upper bound {upper!r} is not a valid order key")
    if upper and lower >= upper:
        raise InvalidArgument(f"lower bound {lower!r} is not less than upper bound {upper!r}")

    result: list[str] = []

    # Copy the common prefix. PRED never equals SUCC, so this stops at the
    # latest once either bound runs out.
    while True:
        p = _digit(lower, len(result), PRED)
        n = _digit(upper, len(result), SUCC)
        if p != n:
            break
        result.append(chr(p))

    if p == PRED:
        # Lower is a prefix of upper. Follow upper's run of lowest digits,
        # since nothing shorter fits below it.
        while n == LOWEST:
            result.append(chr(LOWEST))
            n = _digit(upper, len(result), SUCC)
        # One more lowest digit leaves room below a second-lowest digit.
        if n == LOWEST + 1:
            result.append(chr(LOWEST))
            n = SUCC
    elif p + 1 == n:
        # Consecutive digits: no room at this position. Extend lower instead,
        # skipping over its run of highest digits.
        result.append(chr(p))
        n = SUCC
        while True:
            p = _digit(lower, len(result), PRED)
            if p != HIGHEST:
                break
            result.append(chr(HIGHEST))

    # Ties round toward the upper bound.
    result.append(chr(n - (n - p) // 2))
    return "".join(result)

"""Identifier generation for persisted rows."""

from __future__ import annotations

import itertools
import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SEQUENCE = itertools.count()


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    chars: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        chars.append(_ALPHABET[remainder])
    return "".join(reversed(chars))


def generate_cuid(length: int = 24) -> str:
    """Generate a sortable, collision-resistant lowercase id starting with `c`.

    Layout: millisecond timestamp, a process-wide sequence (4 chars), then
    random base36 padding up to `length`.
    """
    body_len = max(length - 1, 12)
    time_part = _to_base36(int(time.time() * 1000))
    sequence_part = _to_base36(next(_SEQUENCE) % 36**4).rjust(4, "0")
    prefix = f"{time_part}{sequence_part}"
    padding = "".join(secrets.choice(_ALPHABET) for _ in range(max(body_len - len(prefix), 0)))
    return f"c{(prefix + padding)[:body_len]}"

from __future__ import annotations

import random
import string
import time

# Identifiers only need to be unique within one event; they are not secrets.
_BASE36 = string.digits + string.ascii_lowercase
_BASE62 = string.digits + string.ascii_letters


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def new_id(prefix: str) -> str:
    """prefix + "_" + base36(millisecond clock) + 6 random base36 chars."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"{prefix}_{stamp}{suffix}"


def new_token(length: int = 20) -> str:
    return "".join(random.choices(_BASE62, k=length))

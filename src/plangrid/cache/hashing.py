# SPDX-License-Identifier: MIT

import datetime
import hashlib
from typing import Any


def canonical(value: Any) -> str:
    """
    Render a value as a stable string for hashing.

    Mappings are rendered with sorted keys and sets are sorted, so two values
    that compare equal always render identically. Datetimes render as epoch
    milliseconds, which makes the same instant in different zones equal.
    """
    if value is None:
        return "~"
    if isinstance(value, bool):
        return "T" if value else "F"
    if isinstance(value, datetime.datetime):
        return f"@{int(value.timestamp() * 1000)}"
    if isinstance(value, datetime.date):
        return f"d{value.isoformat()}"
    if isinstance(value, int | float):
        return f"n{value!r}"
    if isinstance(value, str):
        return f"s{len(value)}:{value}"
    if isinstance(value, dict):
        items = sorted((canonical(key), canonical(item)) for key, item in value.items())
        return "{" + ",".join(f"{key}={item}" for key, item in items) + "}"
    if isinstance(value, set | frozenset):
        return "<" + ",".join(sorted(canonical(item) for item in value)) + ">"
    if isinstance(value, list | tuple):
        return "[" + ",".join(canonical(item) for item in value) + "]"
    return f"r{value!r}"


def content_hash(*parts: Any) -> str:
    digest = hashlib.blake2b(digest_size=16)
    for part in parts:
        digest.update(canonical(part).encode("utf-8"))
        digest.update(b"\x1f")
    return digest.hexdigest()

# SPDX-License-Identifier: MIT

from typing import Optional


def format_tags(tags: Optional[list[str]]) -> str:
    if tags is None:
        return ""
    return ", ".join(tags)


def colorize(value: str, color: Optional[str]) -> str:
    if color is None or color == "":
        return value
    return f"[{color}]{value}[/{color}]"


def format_duration_ms(duration_ms: int) -> str:
    total_minutes = duration_ms // 60000
    return f"{total_minutes // 60}:{total_minutes % 60:02d}"

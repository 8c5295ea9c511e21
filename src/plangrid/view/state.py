# SPDX-License-Identifier: MIT

"""Per-invocation display switches set by the global CLI options."""

from contextvars import ContextVar

_show_header: ContextVar[bool] = ContextVar("show_header", default=True)
_use_color: ContextVar[bool] = ContextVar("use_color", default=True)


def set_show_header(value: bool) -> None:
    _show_header.set(value)


def get_show_header() -> bool:
    return _show_header.get()


def set_use_color(value: bool) -> None:
    """Plan colors are applied to table cells unless this is switched off."""
    _use_color.set(value)


def get_use_color() -> bool:
    return _use_color.get()

# SPDX-License-Identifier: MIT

from contextvars import ContextVar
from pathlib import Path
from typing import Optional

from plangrid.configuration import Configuration, get_default_configuration

_configuration: ContextVar[Optional[Configuration]] = ContextVar(
    "configuration", default=None
)
_plans_path: ContextVar[Optional[Path]] = ContextVar("plans_path", default=None)


def set_configuration(value: Configuration) -> None:
    _configuration.set(value)


def get_configuration() -> Configuration:
    config = _configuration.get()
    if config is None:
        return get_default_configuration()
    return config


def set_plans_path(value: Optional[Path]) -> None:
    _plans_path.set(value)


def get_plans_path() -> Optional[Path]:
    return _plans_path.get()

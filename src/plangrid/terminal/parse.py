# SPDX-License-Identifier: MIT

import re
from typing import Optional

import pendulum
import typer

from plangrid.configuration import GRID_INTERVALS


def parse_date(date_param: Optional[str | int]) -> Optional[pendulum.Date]:
    """
    Parse a calendar day argument.

    Accepts YYYY-MM-DD, today/t, yesterday/y, tomorrow/o, or a day offset
    relative to today such as 1 or -1.
    """
    if date_param is None:
        return None

    date = str(date_param).strip()

    # Match YYYY-MM-DD format
    if re.match(r"^\d{4}-\d{2}-\d{2}$", date):
        try:
            return pendulum.Date.fromisoformat(date)
        except ValueError as e:
            raise typer.BadParameter(f"Invalid date: {e}")

    # Match numeric input for relative days (e.g., "1", "-1", "365")
    if re.match(r"^-?\d+$", date):
        return pendulum.today("local").add(days=int(date)).date()

    if date == "today" or date == "t":
        return pendulum.today("local").date()
    if date == "yesterday" or date == "y":
        return pendulum.yesterday("local").date()
    if date == "tomorrow" or date == "o":
        return pendulum.tomorrow("local").date()
    raise typer.BadParameter("Incorrect date format")


def parse_grid_interval(grid_param: int) -> int:
    if grid_param not in GRID_INTERVALS:
        raise typer.BadParameter(
            f"Grid interval must be one of {', '.join(map(str, GRID_INTERVALS))}, got {grid_param}"
        )
    return grid_param

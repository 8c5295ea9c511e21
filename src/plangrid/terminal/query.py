# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import pendulum
import typer
from yaml import YAMLError

from plangrid import state as app_state
from plangrid.index.event_index import EventIndex
from plangrid.model.plan import Plan
from plangrid.service.plan import build_index, load_plans
from plangrid.terminal.parse import parse_date
from plangrid.view.plan import plans_view

DATE_HELP = "valid inputs: YYYY-MM-DD, today, yesterday, tomorrow, or day offset like 1, -1"


def read_plans() -> list[Plan]:
    config = app_state.get_configuration()
    try:
        return load_plans(config, app_state.get_plans_path())
    except (ValueError, YAMLError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def read_index() -> EventIndex:
    return build_index(read_plans(), app_state.get_configuration())


def day(
    date: Annotated[
        pendulum.Date, typer.Argument(parser=parse_date, help=DATE_HELP)
    ],
) -> None:
    """Plans starting on one day."""
    index = read_index()
    plans_view("day", index.get_plans_by_date(date), str(date), tz=index.tz)


def date_range(
    start: Annotated[
        pendulum.Date, typer.Argument(parser=parse_date, help=DATE_HELP)
    ],
    end: Annotated[pendulum.Date, typer.Argument(parser=parse_date, help=DATE_HELP)],
) -> None:
    """Plans starting on any day from START to END inclusive."""
    index = read_index()
    plans_view(
        "range",
        index.get_plans_by_date_range(start, end),
        f"{start} - {end}",
        tz=index.tz,
    )


def tag(tag: Annotated[str, typer.Argument(help="tag to look up")]) -> None:
    """Plans carrying a tag."""
    index = read_index()
    plans_view("tag", index.get_plans_by_tag(tag), tag, tz=index.tz)


def hours(
    start_hour: Annotated[int, typer.Argument(min=0, max=24)],
    end_hour: Annotated[int, typer.Argument(min=0, max=24)],
    date: Annotated[
        Optional[pendulum.Date],
        typer.Option("--date", "-d", parser=parse_date, help=DATE_HELP),
    ] = None,
) -> None:
    """Plans starting in the hours [START_HOUR, END_HOUR), optionally on one day."""
    if start_hour > end_hour:
        raise typer.BadParameter("START_HOUR must not be after END_HOUR")
    index = read_index()
    sub_header = f"{start_hour}:00 - {end_hour}:00"
    if date is not None:
        sub_header += f" on {date}"
    plans_view(
        "hours",
        index.get_plans_by_time_range(start_hour, end_hour, date),
        sub_header,
        tz=index.tz,
    )


def search(query: Annotated[str, typer.Argument(help="Search query string")]) -> None:
    """Plans whose title, description or location contain QUERY (case-insensitive)."""
    index = read_index()
    plans_view("search", index.search_plans(query), query, tz=index.tz)

# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import pendulum
import typer

from plangrid import state as app_state
from plangrid.derived.view_cache import DerivedViewCache
from plangrid.layout.overlap import layout_day
from plangrid.model.view import HourRange, ViewFilters, ViewType
from plangrid.terminal.parse import parse_date, parse_grid_interval
from plangrid.terminal.query import DATE_HELP, read_index, read_plans
from plangrid.view.layout import layout_view
from plangrid.view.summary import derived_view_summary, stats_view


def layout(
    date: Annotated[
        pendulum.Date, typer.Argument(parser=parse_date, help=DATE_HELP)
    ],
    grid: Annotated[
        Optional[int],
        typer.Option("--grid", "-g", help="grid interval in minutes: 15, 30 or 60"),
    ] = None,
    cluster_wide: Annotated[
        bool,
        typer.Option(
            "--cluster-wide/--per-plan",
            help="report one column count per overlap group instead of per plan",
        ),
    ] = False,
) -> None:
    """Column packing and percentage geometry for the plans of one day."""
    config = app_state.get_configuration()
    grid_interval = parse_grid_interval(grid if grid is not None else config["grid_interval"])
    index = read_index()

    day_start = pendulum.datetime(date.year, date.month, date.day, tz=config["timezone"])
    items = layout_day(
        index.get_plans_by_date(date), day_start, grid_interval, cluster_wide
    )
    layout_view(str(date), items, grid_interval, tz=config["timezone"])


def view(
    date: Annotated[
        pendulum.Date, typer.Argument(parser=parse_date, help=DATE_HELP)
    ],
    view_type: Annotated[
        str, typer.Option("--type", "-t", help="day or week")
    ] = "week",
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", help="keep plans with any of these tags (repeatable)"),
    ] = None,
    from_hour: Annotated[Optional[int], typer.Option("--from-hour", min=0, max=23)] = None,
    to_hour: Annotated[Optional[int], typer.Option("--to-hour", min=0, max=23)] = None,
    query: Annotated[Optional[str], typer.Option("--query", "-q")] = None,
) -> None:
    """Grouped summary of a day or week: plans per day, total time, overlaps."""
    if view_type not in ("day", "week"):
        raise typer.BadParameter(f"view type must be day or week, got {view_type}")

    config = app_state.get_configuration()
    plans = read_plans()

    filters: ViewFilters = {}
    if tags:
        filters["tags"] = tags
    if from_hour is not None or to_hour is not None:
        time_range: HourRange = {
            "start": from_hour if from_hour is not None else 0,
            "end": to_hour if to_hour is not None else 23,
        }
        filters["time_range"] = time_range
    if query:
        filters["search_query"] = query

    view_date = pendulum.datetime(date.year, date.month, date.day, tz=config["timezone"])
    kind: ViewType = "day" if view_type == "day" else "week"
    with DerivedViewCache.from_configuration(config) as view_cache:
        derived = view_cache.compute_calendar_view(plans, view_date, kind, filters)
        start, end = view_cache.calendar_range(view_date, kind)
    derived_view_summary(
        f"{kind} {start.format('YYYY-MM-DD')} - {end.format('YYYY-MM-DD')}", derived
    )


def stats() -> None:
    """Index statistics for the loaded plans."""
    stats_view(read_index().get_stats())

# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Annotated, Optional

import typer

from plangrid import state as app_state
from plangrid.terminal.custom_typer import AliasedTyperGroup
from plangrid.terminal.layout import layout, stats, view
from plangrid.terminal.query import date_range, day, hours, search, tag
from plangrid.view import state as view_state

app = typer.Typer(
    cls=AliasedTyperGroup,
    help="plangrid - calendar plan indexing and layout in the CLI",
    no_args_is_help=True,
)
app.command(name="day, d")(day)
app.command(name="range, r")(date_range)
app.command(name="tag, t")(tag)
app.command(name="hours, h")(hours)
app.command(name="search, s")(search)
app.command(name="layout, l")(layout)
app.command(name="view, v")(view)
app.command(name="stats, st")(stats)


@app.callback()
def main_callback(
    file: Annotated[
        Optional[Path],
        typer.Option(
            "--file",
            "-f",
            help="YAML file of plans (defaults to plans.yaml in the data directory)",
            dir_okay=False,
        ),
    ] = None,
    no_header: Annotated[
        bool,
        typer.Option(
            "--no-header",
            "-nh",
            help="Suppress header output in reports",
        ),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option("--no-color", help="Do not apply plan colors to report rows"),
    ] = False,
) -> None:
    """
    plangrid - calendar plan indexing and layout in the CLI

    Global options that apply to all commands.
    """
    app_state.set_plans_path(file)
    if no_header:
        view_state.set_show_header(False)
    if no_color:
        view_state.set_use_color(False)


def run() -> None:
    app()

# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from plangrid.model.plan import NormalizedPlan
from plangrid.time import epoch_ms_to_display_str
from plangrid.view.header import header
from plangrid.view.state import get_use_color
from plangrid.view.util import colorize, format_tags


def plans_view(
    report_name: str,
    plans: list[NormalizedPlan],
    sub_header: str | None = None,
    columns: list[str] = ["id", "title", "start", "end", "tags", "location"],
    tz: str = "local",
    use_color: Optional[bool] = None,
) -> None:
    header(report_name, sub_header)
    if use_color is None:
        use_color = get_use_color()

    plans_table = Table(box=box.SIMPLE)
    for column in columns:
        plans_table.add_column(column)

    for plan in plans:
        row = []
        for column in columns:
            column_value = ""
            if column == "start":
                column_value = epoch_ms_to_display_str(plan["start_time"], tz)
            elif column == "end":
                column_value = epoch_ms_to_display_str(plan["end_time"], tz)
            elif column == "tags":
                column_value = format_tags(plan["tags"])
            elif plan.get(column) is not None:
                column_value = str(plan.get(column))

            if use_color:
                column_value = colorize(column_value, plan["color"])
            row.append(column_value)
        plans_table.add_row(*row)

    console = Console()
    console.print(plans_table)
    console.print(f"{len(plans)} plan(s)", style="dim")

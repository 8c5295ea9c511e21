# SPDX-License-Identifier: MIT

from rich import box
from rich.console import Console
from rich.table import Table

from plangrid.model.layout import LayoutedItem
from plangrid.time import epoch_ms_to_display_str
from plangrid.view.header import header


def layout_view(
    day: str, items: list[LayoutedItem], grid_interval: int, tz: str = "local"
) -> None:
    """
    Display column assignment and percentage geometry for one day.

    Args:
        day: The day shown, as 'YYYY-MM-DD'
        items: Layouted normalized plans, in column assignment order
        grid_interval: Grid interval in minutes the rows refer to
        tz: Time zone for displayed times
    """
    header("layout", f"{day} ({grid_interval} min grid)")

    layout_table = Table(box=box.SIMPLE)
    for column in ["id", "title", "start", "end", "column", "top %", "height %", "left %", "width %", "row"]:
        layout_table.add_column(column)

    for item in items:
        plan = item["item"]
        position = item["position"]
        layout_table.add_row(
            str(plan["id"]),
            str(plan.get("title") or ""),
            epoch_ms_to_display_str(plan["start_time"], tz),
            epoch_ms_to_display_str(plan["end_time"], tz),
            f"{item['column'] + 1}/{item['total_columns']}",
            f"{position['top']:.2f}",
            f"{position['height']:.2f}",
            f"{position['left']:.2f}",
            f"{position['width']:.2f}",
            str(position["grid_row"]),
        )

    console = Console()
    console.print(layout_table)

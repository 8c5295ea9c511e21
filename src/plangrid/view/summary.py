# SPDX-License-Identifier: MIT

from rich import box
from rich.console import Console
from rich.table import Table

from plangrid.model.index import IndexStats
from plangrid.model.view import DerivedView
from plangrid.view.header import header
from plangrid.view.util import format_duration_ms


def derived_view_summary(view_name: str, view: DerivedView) -> None:
    header("view", view_name)
    console = Console()

    days_table = Table(box=box.SIMPLE)
    days_table.add_column("date")
    days_table.add_column("plans")
    days_table.add_column("titles")
    for day in sorted(view["by_date"]):
        day_plans = view["by_date"][day]
        days_table.add_row(
            day,
            str(len(day_plans)),
            ", ".join(str(plan.get("title") or plan["id"]) for plan in day_plans),
        )
    console.print(days_table)

    console.print(
        f"total duration: {format_duration_ms(view['total_duration_ms'])}"
        f" across {len(view['filtered_plans'])} plan(s)"
    )
    for cluster in view["overlap_clusters"]:
        console.print(
            "overlap: " + " / ".join(str(plan["id"]) for plan in cluster),
            style="yellow",
        )


def stats_view(stats: IndexStats) -> None:
    header("stats")

    stats_table = Table(box=box.SIMPLE)
    stats_table.add_column("property")
    stats_table.add_column("value")

    stats_table.add_row("total plans", str(stats["total_plans"]))
    stats_table.add_row("cached queries", str(stats["cache_size"]))
    for name, size in stats["index_sizes"].items():
        stats_table.add_row(f"{name} keys", str(size))
    stats_table.add_row("estimated memory", f"{stats['memory_usage']} bytes")

    console = Console()
    console.print(stats_table)

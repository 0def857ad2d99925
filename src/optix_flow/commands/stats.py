"""Dashboard statistics command."""

from datetime import datetime

import typer
from rich.table import Table

from optix_flow.models import ImportanceLevel
from optix_flow.utils.ui.console import get_console
from optix_flow.utils.ui.formatters import color_style, get_completion_color, get_progress_bar

from .common import open_app
from .decorators import command_wrapper

console = get_console()


def format_duration(minutes: float) -> str:
    """Format minutes as hours and minutes."""
    hours = int(minutes // 60)
    mins = int(minutes % 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def render_bar(value: float, max_value: float, width: int = 20) -> str:
    """Render a bar using block characters."""
    if max_value == 0:
        ratio = 0
    else:
        ratio = min(value / max_value, 1.0)
    filled = int(ratio * width)
    return "█" * filled + "░" * (width - filled)


@command_wrapper
async def stats(
    output: str = typer.Option("pretty", "--output", "-o", help="Output format (pretty, json)"),
) -> None:
    """Show weekly activity, completion rate and project allocation."""
    async with open_app() as ctx:
        analytics = ctx.analytics
        now = datetime.now().astimezone()
        activity = analytics.weekly_activity(now)
        rate = analytics.completion_rate()
        velocity = analytics.velocity_per_day(now)
        allocation = analytics.project_allocation(now)
        grid = analytics.matrix()
        progress = analytics.project_progress()

        if output == "json":
            console.print_json(
                data={
                    "completion_rate": rate,
                    "velocity_per_day": velocity,
                    "weekly_activity": [
                        {"day": d.day.isoformat(), "minutes": d.minutes} for d in activity
                    ],
                    "project_allocation": [
                        {"project_id": s.project_id, "name": s.name, "minutes": s.minutes}
                        for s in allocation
                    ],
                    "matrix": {
                        f"{level.name.lower()}:{'urgent' if urgent else 'not-urgent'}": len(tasks)
                        for (level, urgent), tasks in grid.items()
                    },
                }
            )
            return

        console.print("\n[bold cyan]📊 Dashboard[/bold cyan]\n")
        color = get_completion_color(rate)
        console.print(
            f"Completion: [{color}]{get_progress_bar(rate)} {rate}%[/{color}]   "
            f"Velocity: [bold]{velocity / 60:.1f} hrs[/bold]/day"
        )

        console.print("\n[bold]Last 7 days[/bold]")
        peak = max((d.minutes for d in activity), default=0)
        for day in activity:
            console.print(
                f"  {day.label}  {render_bar(day.minutes, peak)}  {format_duration(day.minutes)}"
            )

        if allocation:
            console.print("\n[bold]Focus by project[/bold]")
            total = sum(s.minutes for s in allocation) or 1
            for share in allocation:
                style = color_style(share.color)
                console.print(
                    f"  [{style}]●[/{style}] {share.name}: "
                    f"{format_duration(share.minutes)} ({share.minutes / total * 100:.0f}%)"
                )

        matrix = Table(title="Open tasks", show_header=True, header_style="bold magenta")
        matrix.add_column("Importance")
        matrix.add_column("Urgent", justify="right")
        matrix.add_column("Not urgent", justify="right")
        for level in sorted(ImportanceLevel, reverse=True):
            matrix.add_row(
                level.name.title(), str(len(grid[(level, True)])), str(len(grid[(level, False)]))
            )
        console.print()
        console.print(matrix)

        if progress:
            table = Table(title="Projects", show_header=True, header_style="bold magenta")
            table.add_column("Project")
            table.add_column("Done", justify="right")
            table.add_column("Remaining", justify="right")
            for item in progress:
                table.add_row(
                    item.project.name,
                    f"{item.completed}/{item.total}",
                    format_duration(item.remaining_minutes),
                )
            console.print(table)

"""Output formatters for different formats."""

import json
from typing import Any

import yaml
from rich.errors import StyleSyntaxError
from rich.style import Style
from rich.table import Table
from rich.text import Text

from optix_flow.utils.ui.console import get_console

console = get_console()

OUTPUT_FORMATS = ("pretty", "table", "json", "yaml", "quiet")

IMPORTANCE_NAMES = {
    3: "HIGH",
    2: "MID",
    1: "LOW",
}

IMPORTANCE_COLORS = {
    3: "bold red",
    2: "bold yellow",
    1: "green",
}

STATUS_ICONS = {
    "open": "⬜",
    "completed": "☑️",
}

SYNC_STYLES = {
    "local": "dim",
    "pending": "yellow",
    "confirmed": "green",
    "failed": "bold red",
    "skipped": "dim",
}


def format_output(data: Any, output_format: str = "pretty", compact: bool = False) -> None:
    """Format and display output based on format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif output_format == "table":
        format_table(data)
    elif output_format == "quiet":
        format_quiet(data)
    else:
        format_pretty(data, compact=compact)


def format_table(data: Any) -> None:
    """Format data as a table."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, list):
        format_dict_table(data)
    elif isinstance(data, dict):
        if "tasks" in data or "projects" in data:
            format_dict_table(data.get("tasks") or data.get("projects") or [])
        else:
            format_single_item(data)
    else:
        console.print(data)


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return str(len(value))
    if value is None:
        return "-"
    return str(value)


def format_dict_table(items: list[dict]) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = list(items[0].keys())
    table = Table(show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for item in items:
        table.add_row(*(_cell(item.get(col)) for col in columns))

    console.print(table)


def format_single_item(item: dict) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _cell(value))

    console.print(table)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


# ============================================================================
# Pretty Format Implementation
# ============================================================================


def format_pretty(data: Any, compact: bool = False) -> None:
    """Format data in pretty format with colors and icons."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, dict) and "tasks" in data:
        format_tasks_pretty(data["tasks"], data.get("projects", []), compact=compact)
    elif isinstance(data, dict) and "projects" in data:
        format_projects_pretty(data["projects"])
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        format_table(data)


def format_tasks_pretty(tasks: list[dict], projects: list[dict], compact: bool = False) -> None:
    """Format tasks grouped by importance."""
    open_count = sum(1 for t in tasks if not t.get("is_completed"))
    header = Text()
    header.append("📋 Tasks ", style="bold cyan")
    header.append(f"({open_count} open, {len(tasks) - open_count} done)", style="dim")
    console.print(header)
    console.print()

    names = {p["id"]: p.get("name", "") for p in projects}
    for level in (3, 2, 1):
        group = [t for t in tasks if int(t.get("importance_level", 2)) == level]
        if not group:
            continue
        console.print(IMPORTANCE_NAMES[level], style=IMPORTANCE_COLORS[level])
        for task in group:
            format_task_item(task, names, compact=compact)
        console.print()


def format_task_item(task: dict, project_names: dict[str, str], compact: bool = False) -> None:
    """Format a single task line, followed by its subtasks."""
    done = task.get("is_completed", False)
    line = Text("  ")
    line.append(STATUS_ICONS["completed" if done else "open"] + " ")
    line.append(task.get("title", ""), style="dim strike" if done else "bold")
    if task.get("is_urgent"):
        line.append(" ⚡", style="red")
    line.append(f"  {task.get('estimated_time', 0)}m", style="dim")
    project_id = task.get("project_id")
    if project_id:
        line.append(f"  📁 {project_names.get(project_id, 'Unassigned')}", style="blue")
    sync = task.get("sync")
    if sync:
        line.append(f"  [{sync}]", style=SYNC_STYLES.get(sync, "dim"))
    line.append(f"  {task.get('id', '')}", style="dim")
    console.print(line)

    if compact:
        return
    for subtask in task.get("subtasks") or []:
        sub = Text("      ")
        sub.append("☑ " if subtask.get("is_completed") else "☐ ")
        sub.append(subtask.get("title", ""), style="dim" if subtask.get("is_completed") else "")
        sub.append(f"  {subtask.get('estimated_time', 0)}m  {subtask.get('id', '')}", style="dim")
        console.print(sub)


def format_projects_pretty(projects: list[dict]) -> None:
    """Format projects in pretty format."""
    header = Text()
    header.append("📁 Projects ", style="bold cyan")
    header.append(f"({len(projects)})", style="dim")
    console.print(header)
    console.print()

    for project in projects:
        line = Text("  ")
        line.append("● ", style=color_style(project.get("color")))
        line.append(project.get("name", "Untitled"), style="bold")
        line.append(f"  {project.get('id', '')}", style="dim")
        console.print(line)


def format_quiet(data: Any) -> None:
    """Format output in quiet mode (IDs only)."""
    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict) and "id" in item:
                print(item["id"])
    elif isinstance(data, dict):
        if "id" in data:
            print(data["id"])
        else:
            format_quiet(data.get("tasks") or data.get("projects") or [])


# ============================================================================
# Helper Functions
# ============================================================================


def color_style(color: str | None) -> str:
    """Use a project color as a rich style when it parses as one."""
    try:
        Style.parse(color or "")
    except StyleSyntaxError:
        return "#94a3b8"
    return color or "#94a3b8"


def get_progress_bar(percentage: float) -> str:
    """Get a progress bar representation."""
    filled = int(percentage / 10)
    empty = 10 - filled
    return "▓" * filled + "░" * empty


def get_completion_color(percentage: float) -> str:
    """Get color based on completion percentage."""
    if percentage >= 80:
        return "green"
    if percentage >= 40:
        return "yellow"
    return "red"

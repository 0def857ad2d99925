"""Project management commands."""

import typer

from optix_flow.models import ProjectCreate, ProjectUpdate
from optix_flow.utils.id_helpers import resolve_id
from optix_flow.utils.typer_helpers import SuggestingGroup
from optix_flow.utils.ui.formatters import format_error, format_output

from .common import open_app, project_view, report_result
from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Project management commands")


@app.command("list")
@command_wrapper
async def list_projects(
    output: str = typer.Option("pretty", "--output", "-o", help="Output format"),
) -> None:
    """List projects."""
    async with open_app() as ctx:
        format_output({"projects": [project_view(p) for p in ctx.store.projects]}, output)


@app.command("add")
@command_wrapper
async def add_project(
    name: str = typer.Argument(..., help="Project name"),
    color: str = typer.Option("#6366f1", "--color", help="Project color"),
) -> None:
    """Create a new project."""
    async with open_app() as ctx:
        result = await ctx.sync.add_project(ProjectCreate(name=name, color=color))
        report_result(result, "Project created", kind="Project")


@app.command("update")
@command_wrapper
async def update_project(
    project_id: str = typer.Argument(..., help="Project ID or suffix"),
    name: str | None = typer.Option(None, "--name", help="Project name"),
    color: str | None = typer.Option(None, "--color", help="Project color"),
) -> None:
    """Update a project."""
    fields = {}
    if name is not None:
        fields["name"] = name
    if color is not None:
        fields["color"] = color
    if not fields:
        raise AppError("No updates specified")

    async with open_app() as ctx:
        project_id = resolve_id([p.id for p in ctx.store.projects], project_id, "project")
        result = await ctx.sync.update_project(project_id, ProjectUpdate(**fields))
        report_result(result, "Project updated", kind="Project")


@app.command("delete")
@command_wrapper
async def delete_project(
    project_id: str = typer.Argument(..., help="Project ID or suffix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a project. Its tasks are kept and become unassigned."""
    async with open_app() as ctx:
        project_id = resolve_id([p.id for p in ctx.store.projects], project_id, "project")
        if not yes and not typer.confirm(
            f"Are you sure you want to delete project {project_id}?"
        ):
            format_error("Cancelled")
            raise typer.Exit(0)
        result = await ctx.sync.delete_project(project_id)
        report_result(result, "Project deleted", kind="Project")

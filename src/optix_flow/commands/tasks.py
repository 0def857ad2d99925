"""Task management commands."""

import typer

from optix_flow.models import SubtaskCreate, TaskCreate, TaskUpdate, clamp_estimated_time
from optix_flow.utils.id_helpers import resolve_id
from optix_flow.utils.typer_helpers import SuggestingGroup
from optix_flow.utils.ui.formatters import format_info, format_output

from .common import Importance, open_app, report_result, task_view
from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Task management commands")


@app.command("list")
@command_wrapper
async def list_tasks(
    project: str | None = typer.Option(None, "--project", "-p", help="Only tasks of this project"),
    open_only: bool = typer.Option(False, "--open", help="Hide completed tasks"),
    output: str = typer.Option("pretty", "--output", "-o", help="Output format"),
    compact: bool = typer.Option(False, "--compact", help="Hide subtasks"),
) -> None:
    """List tasks."""
    async with open_app() as ctx:
        if project:
            project_id = resolve_id([p.id for p in ctx.store.projects], project, "project")
            ctx.store.set_active_project(project_id)

        tasks = ctx.store.tasks
        if ctx.store.active_project_id:
            tasks = [t for t in tasks if t.project_id == ctx.store.active_project_id]
        if open_only:
            tasks = [t for t in tasks if not t.is_completed]

        result = {
            "tasks": [task_view(ctx, t) for t in tasks],
            "projects": [p.model_dump(mode="json") for p in ctx.store.projects],
        }
        format_output(result, output, compact=compact)


@app.command("add")
@command_wrapper
async def add_task(
    title: str = typer.Argument(..., help="Task title"),
    importance: Importance = typer.Option(Importance.mid, "--importance", "-i", help="Importance"),
    urgent: bool = typer.Option(False, "--urgent", "-u", help="Mark as urgent"),
    minutes: int = typer.Option(30, "--minutes", "-m", help="Estimated minutes (min 5)"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project ID"),
) -> None:
    """Add a new task."""
    async with open_app() as ctx:
        fields = {}
        if project:
            fields["project_id"] = resolve_id(
                [p.id for p in ctx.store.projects], project, "project"
            )
        draft = TaskCreate(
            title=title,
            importance_level=importance.to_level(),
            is_urgent=urgent,
            estimated_time=clamp_estimated_time(minutes),
            **fields,
        )
        result = await ctx.sync.add_task(draft)
        report_result(result, "Task added")


@app.command("update")
@command_wrapper
async def update_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
    title: str | None = typer.Option(None, "--title", help="New title"),
    importance: Importance | None = typer.Option(None, "--importance", "-i", help="Importance"),
    urgent: bool | None = typer.Option(None, "--urgent/--not-urgent", help="Urgency"),
    minutes: int | None = typer.Option(None, "--minutes", "-m", help="Estimated minutes"),
    project: str | None = typer.Option(None, "--project", "-p", help="Move to project"),
    unassign: bool = typer.Option(False, "--unassign", help="Remove from its project"),
) -> None:
    """Update a task."""
    fields = {}
    if title is not None:
        fields["title"] = title
    if importance is not None:
        fields["importance_level"] = importance.to_level()
    if urgent is not None:
        fields["is_urgent"] = urgent
    if minutes is not None:
        fields["estimated_time"] = clamp_estimated_time(minutes)
    if unassign:
        fields["project_id"] = None

    if not fields and project is None:
        raise AppError("No updates specified")

    async with open_app() as ctx:
        task_id = resolve_id([t.id for t in ctx.store.tasks], task_id)
        if project is not None:
            fields["project_id"] = resolve_id(
                [p.id for p in ctx.store.projects], project, "project"
            )
        result = await ctx.sync.update_task(task_id, TaskUpdate(**fields))
        report_result(result, "Task updated")


@app.command("complete")
@command_wrapper
async def complete_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
    cascade: bool = typer.Option(False, "--cascade", "-c", help="Also complete open subtasks"),
) -> None:
    """Toggle a task's completion. Completing an open task, reopening a done one."""
    async with open_app() as ctx:
        task_id = resolve_id([t.id for t in ctx.store.tasks], task_id)
        result = await ctx.sync.toggle_task_completion(task_id, cascade=cascade)
        if result.notification is not None:
            format_info(result.notification.message)
            report_result(result, "Task completed")
        else:
            report_result(result, "Task reopened")


@app.command("subtask-add")
@command_wrapper
async def add_subtask(
    task_id: str = typer.Argument(..., help="Parent task ID or suffix"),
    title: str = typer.Argument(..., help="Subtask title"),
    minutes: int = typer.Option(15, "--minutes", "-m", help="Estimated minutes (min 5)"),
    importance: Importance | None = typer.Option(
        None, "--importance", "-i", help="Importance (default: parent's)"
    ),
    urgent: bool | None = typer.Option(
        None, "--urgent/--not-urgent", help="Urgency (default: parent's)"
    ),
) -> None:
    """Add a subtask to a task."""
    async with open_app() as ctx:
        task_id = resolve_id([t.id for t in ctx.store.tasks], task_id)
        parent = ctx.store.get_task(task_id)
        draft = SubtaskCreate(
            title=title,
            estimated_time=clamp_estimated_time(minutes),
            importance_level=importance.to_level() if importance else parent.importance_level,
            is_urgent=parent.is_urgent if urgent is None else urgent,
        )
        result = await ctx.sync.add_subtask(task_id, draft)
        report_result(result, "Subtask added", kind="Subtask")


@app.command("subtask-toggle")
@command_wrapper
async def toggle_subtask(
    task_id: str = typer.Argument(..., help="Parent task ID or suffix"),
    subtask_id: str = typer.Argument(..., help="Subtask ID or suffix"),
) -> None:
    """Toggle a subtask's completion."""
    async with open_app() as ctx:
        task_id = resolve_id([t.id for t in ctx.store.tasks], task_id)
        parent = ctx.store.get_task(task_id)
        subtask_id = resolve_id([s.id for s in parent.subtasks], subtask_id, "subtask")
        result = await ctx.sync.toggle_subtask_completion(task_id, subtask_id)
        subtask = ctx.store.get_task(task_id).find_subtask(subtask_id)
        done = subtask is not None and subtask.is_completed
        report_result(result, "Subtask completed" if done else "Subtask reopened", kind="Subtask")

"""Authentication commands."""

import typer
from rich.prompt import Prompt

from optix_flow.models import MigrationResult
from optix_flow.services.app_context import AppContext
from optix_flow.services.session_service import SessionState
from optix_flow.utils.typer_helpers import SuggestingGroup
from optix_flow.utils.ui.console import get_console
from optix_flow.utils.ui.formatters import format_info, format_success, format_warning

from .common import open_app
from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Authentication commands")
console = get_console()


def _report_migration(result: MigrationResult | None) -> None:
    if result is None or not result.attempted:
        return
    if result.success:
        format_success(
            f"Moved {result.tasks_uploaded} tasks and {result.projects_uploaded} projects "
            "from this device to your account"
        )
        return
    format_warning("Some guest data could not be moved to your account:")
    for error in result.errors:
        console.print(f"  - {error}")
    if not result.guest_record_cleared:
        format_info("Guest data was kept on this device; it will be retried at next login")


def _report_signed_in(ctx: AppContext) -> None:
    _report_migration(ctx.session.last_migration)
    format_info(f"{len(ctx.store.tasks)} tasks, {len(ctx.store.projects)} projects loaded")


@app.command()
@command_wrapper
async def login(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Log in. Tasks created as a guest move to the account."""
    if not email:
        email = Prompt.ask("Email")
    if not password:
        password = Prompt.ask("Password", password=True)
    if not email or not password:
        raise AppError("Email and password are required")

    async with open_app() as ctx:
        user = await ctx.auth.sign_in(email, password)
        format_success(f"Logged in as {user.email or user.id}")
        _report_signed_in(ctx)


@app.command()
@command_wrapper
async def signup(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Create a new account."""
    if not email:
        email = Prompt.ask("Email")
    if not password:
        password = Prompt.ask("Password", password=True)
        confirm_password = Prompt.ask("Confirm password", password=True)
        if password != confirm_password:
            raise AppError("Passwords do not match")
    if not email or not password:
        raise AppError("Email and password are required")

    async with open_app() as ctx:
        user, signed_in = await ctx.auth.sign_up(email, password)
        if not signed_in:
            format_success(f"Account created for {user.email or user.id}")
            format_info("Confirm your email address, then run 'optix auth login'")
            return
        format_success(f"Account created, logged in as {user.email or user.id}")
        _report_signed_in(ctx)


@app.command()
@command_wrapper
async def logout() -> None:
    """Log out. Tasks are read from this device again."""
    async with open_app() as ctx:
        if ctx.session.state is SessionState.GUEST:
            format_info("Not logged in")
            return
        await ctx.auth.sign_out()
        format_success("Logged out")


@app.command()
@command_wrapper
async def status() -> None:
    """Show the current session."""
    async with open_app() as ctx:
        user = ctx.store.user
        if user is None:
            console.print("[bold]Guest[/bold] - data is stored on this device")
            console.print(f"[dim]{ctx.guest_store.path}[/dim]")
        else:
            console.print(f"[bold]Logged in[/bold] as [cyan]{user.email or user.id}[/cyan]")
        console.print(f"{len(ctx.store.tasks)} tasks, {len(ctx.store.projects)} projects")

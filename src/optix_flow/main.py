"""Main entry point for the Optix Flow CLI."""

import typer

from optix_flow import __version__
from optix_flow.commands import auth, config, projects, stats, tasks
from optix_flow.utils.typer_helpers import SuggestingGroup
from optix_flow.utils.ui.console import get_console

app = typer.Typer(
    name="optix",
    cls=SuggestingGroup,
    help="Plan tasks by importance and urgency, offline or synced to your account",
    no_args_is_help=True,
)

console = get_console()


app.add_typer(auth.app, name="auth", help="Authentication commands")
app.add_typer(tasks.app, name="tasks", help="Task management commands")
app.add_typer(projects.app, name="projects", help="Project management commands")
app.add_typer(config.app, name="config", help="Configuration management commands")
app.command("stats")(stats.stats)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Optix Flow[/bold] version [cyan]{__version__}[/cyan]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()

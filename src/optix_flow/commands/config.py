"""Configuration management commands."""

import typer

from optix_flow.services.config_service import get_config_service
from optix_flow.utils.typer_helpers import SuggestingGroup
from optix_flow.utils.ui.console import get_console
from optix_flow.utils.ui.formatters import format_error, format_output, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


@app.command("view")
@command_wrapper
def view_config(
    output: str = typer.Option("pretty", "--output", "-o", help="Output format"),
) -> None:
    """View current configuration."""
    format_output(get_config_service().config.model_dump(mode="json"), output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., backend.url)"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().get_value(key)
    except ValueError as e:
        raise AppError(str(e)) from e
    console.print(value, highlight=False)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., backend.url)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    config_service = get_config_service()
    try:
        config_service.set_value(key, value)
    except ValueError as e:
        raise AppError(f"Failed to set config: {e}") from e
    format_success(f"Configuration '{key}' set to '{config_service.get_value(key)}'")


@app.command("reset")
@command_wrapper
def reset_config(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults. Also logs you out."""
    if not yes and not typer.confirm("Are you sure you want to reset the configuration?"):
        format_error("Cancelled")
        raise typer.Exit(0)
    get_config_service().reset_config()
    format_success("Configuration reset to defaults")

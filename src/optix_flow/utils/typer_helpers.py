"""Typer helper utilities."""

from difflib import get_close_matches

import typer
from typer.core import TyperGroup

from optix_flow.utils.ui.console import get_console


def suggest_commands(attempted: str, available: list[str], limit: int = 3) -> list[str]:
    """Commands the user probably meant: prefix matches first, then close spellings."""
    prefixed = sorted(name for name in available if name.startswith(attempted))
    close = get_close_matches(attempted, available, n=limit, cutoff=0.6)
    suggestions = prefixed + [name for name in close if name not in prefixed]
    return suggestions[:limit]


class SuggestingGroup(TyperGroup):
    """Typer group that suggests commands on typos ("optix tasks lst")."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except Exception as e:
            if not args:
                raise
            attempted = args[0]
            suggestions = suggest_commands(attempted, list(self.commands.keys()))
            if not suggestions:
                raise

            console = get_console()
            console.print(
                f'[red]Error:[/red] unknown command "{attempted}" for "{ctx.info_name}"'
            )
            console.print()
            if len(suggestions) == 1:
                console.print("[yellow]Did you mean this?[/yellow]")
            else:
                console.print("[yellow]Did you mean one of these?[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {suggestion}")
            console.print(f"\n[dim]Run '{ctx.command_path} --help' for usage.[/dim]")
            raise typer.Exit(1) from e

"""Console output shared by every CLI command."""

from collections.abc import Callable, Iterable
from functools import wraps

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.table import Table

from src.app.core.errors import ReconcileError
from src.app.core.reconciler import Outcome, ReconcileOutcome

_OUTCOME_STYLES = {
    Outcome.CREATED: "green",
    Outcome.UPDATED: "yellow",
    Outcome.NOOP: "dim",
    Outcome.SKIPPED: "magenta",
}


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the CLI console."""
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def print_header(self, title: str, style: str = "blue") -> None:
        """Print a styled header panel."""
        self.console.print(
            Panel.fit(f"[bold {style}]{title}[/bold {style}]", border_style=style)
        )

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Handle an error by printing a message and exiting.

        Args:
            message: Error message to display
            details: Optional additional details
            exit_code: Exit code to use
        """
        self.error(f"[bold red]{message}[/bold red]")
        if details:
            self.console.print(Panel(details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_outcomes(self, outcomes: Iterable[ReconcileOutcome]) -> None:
        """Render per-resource outcomes as a table."""
        table = Table(title="Reconcile outcomes")
        table.add_column("Subcomponent", style="cyan")
        table.add_column("Kind")
        table.add_column("Name")
        table.add_column("Outcome")
        table.add_column("Reason", style="dim")
        for o in outcomes:
            style = _OUTCOME_STYLES[o.outcome]
            table.add_row(
                o.subcomponent, o.kind, o.name, f"[{style}]{o.outcome}[/{style}]", o.reason
            )
        self.console.print(table)


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    Reconciliation failures, invalid manifests and invalid configuration are
    reported and turned into a non-zero exit code.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except ReconcileError as e:
            console.handle_error("Reconciliation failed", str(e))
        except (ValueError, FileNotFoundError) as e:
            console.handle_error("Invalid input", str(e))
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()

"""Main CLI application module.

This module provides the main entry point for the amp-operator CLI, which
runs single reconciliation passes for an APIManager manifest.

Commands:
- resolve: Resolved per-subcomponent options (secrets masked)
- render: Desired child resources as YAML
- reconcile: One pass against the cluster, or an in-memory one (--dry-run)
"""

import typer

from .commands import register_operator_commands

# Create the main CLI application
app = typer.Typer(
    help="🛠️  amp-operator - API management platform convergence core",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_operator_commands(app)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

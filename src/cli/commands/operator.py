"""Commands that drive a single reconciliation pass.

- resolve: print the resolved options of every subcomponent
- render: print the desired child resources as YAML
- reconcile: apply one pass to the cluster (or an in-memory cluster)

Without ``--dry-run`` every command talks to the current kube context;
``resolve`` and ``render`` only ever read from it.
"""

import dataclasses
from pathlib import Path
from typing import Annotated

import typer
import yaml

from src.app.core.orchestrator import APIManagerReconciler
from src.cli.context import CLIContext, build_cli_context
from src.cli.shared.console import with_error_handling
from src.infra.k8s import InMemoryClusterStore, run_sync

from .shared import load_manifest, load_objects, mask_body, mask_options

ManifestArg = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, help="APIManager manifest (YAML)"),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", exists=True, dir_okay=False, help="Operator config.yaml"),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Use an in-memory cluster instead of the kube context"),
]
StateOption = Annotated[
    Path | None,
    typer.Option(
        "--state",
        exists=True,
        dir_okay=False,
        help="Live objects (multi-document YAML) seeding the in-memory cluster",
    ),
]


def _reconciler(ctx: CLIContext, dry_run: bool, state: Path | None) -> APIManagerReconciler:
    if not dry_run:
        return ctx.reconciler()
    return ctx.reconciler(InMemoryClusterStore(load_objects(state) if state else None))


def resolve(
    manifest: ManifestArg,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    state: StateOption = None,
) -> None:
    """Print the resolved configuration of each subcomponent (secrets masked)."""
    ctx = build_cli_context(config)
    apimanager = load_manifest(manifest, ctx.settings.namespace)
    resolved = run_sync(_reconciler(ctx, dry_run, state).resolve(apimanager))

    ctx.console.print_header(f"Resolved options for {apimanager.namespace}/{apimanager.name}")
    output = {
        name: mask_options(dataclasses.asdict(options)) for name, options in resolved.items()
    }
    typer.echo(yaml.safe_dump(output, sort_keys=False), nl=False)


def render(
    manifest: ManifestArg,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    state: StateOption = None,
    show_secrets: Annotated[
        bool, typer.Option("--show-secrets", help="Print Secret payloads unmasked")
    ] = False,
) -> None:
    """Print the desired resources as YAML without applying anything."""
    ctx = build_cli_context(config)
    apimanager = load_manifest(manifest, ctx.settings.namespace)
    desired = run_sync(_reconciler(ctx, dry_run, state).render(apimanager))

    bodies = [d.body if show_secrets else mask_body(d.body) for d in desired]
    typer.echo(yaml.safe_dump_all(bodies, sort_keys=False), nl=False)


def reconcile(
    manifest: ManifestArg,
    config: ConfigOption = None,
    dry_run: DryRunOption = False,
    state: StateOption = None,
) -> None:
    """Run one reconciliation pass and print what happened to each resource."""
    ctx = build_cli_context(config)
    apimanager = load_manifest(manifest, ctx.settings.namespace)
    if dry_run:
        ctx.console.info("Dry run: reconciling against an in-memory cluster")

    result = run_sync(_reconciler(ctx, dry_run, state).reconcile(apimanager))

    ctx.console.print_outcomes(result.outcomes)
    ctx.console.ok(f"APIManager {apimanager.namespace}/{apimanager.name} reconciled")
    if result.requeue_after is not None:
        ctx.console.warn(
            "Some optional resources were skipped; "
            f"requeue suggested in {result.requeue_after:g}s"
        )


def register(app: typer.Typer) -> None:
    """Attach the pass commands to the top-level application."""
    for command in (resolve, render, reconcile):
        app.command()(with_error_handling(command))

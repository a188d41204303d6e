"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from src.app.core.constants import OperatorConstants
from src.app.core.orchestrator import APIManagerReconciler
from src.app.runtime.config import (
    OperatorSettings,
    build_constants,
    configure_logging,
    load_config,
)
from src.cli.shared.console import CLIConsole, console
from src.infra.k8s import (
    ClusterSecretStore,
    InMemoryClusterStore,
    get_cluster_store,
    get_secret_store,
)


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    settings: OperatorSettings
    constants: OperatorConstants

    def reconciler(self, cluster: InMemoryClusterStore | None = None) -> APIManagerReconciler:
        """Build the orchestrator for a real cluster, or for ``cluster`` when given.

        An in-memory cluster also serves as the secret store, so a dry run
        reads back the secrets it renders.
        """
        if cluster is None:
            return APIManagerReconciler(
                get_cluster_store(),
                get_secret_store(),
                self.constants,
                requeue_after=self.settings.requeue_after,
            )
        return APIManagerReconciler(
            cluster,
            ClusterSecretStore(cluster),
            self.constants,
            requeue_after=self.settings.requeue_after,
        )


def build_cli_context(config_path: Path | None = None) -> CLIContext:
    """Load settings, configure logging and build a fresh CLIContext."""
    settings = load_config(config_path)
    configure_logging(settings)
    return CLIContext(console=console, settings=settings, constants=build_constants(settings))

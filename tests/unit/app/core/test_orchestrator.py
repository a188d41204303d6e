"""Tests for full reconciliation passes."""

from typing import override

import pytest

from src.app.core.errors import ClusterError, OptionsValidationError
from src.app.core.orchestrator import APIManagerReconciler
from src.app.core.reconciler import Outcome
from src.infra.k8s import ClusterSecretStore, InMemoryClusterStore
from tests.helpers import NAMESPACE, make_apimanager

MONITORING_KINDS = [
    ("monitoring.coreos.com/v1", "PrometheusRule"),
    ("monitoring.coreos.com/v1", "ServiceMonitor"),
    ("integreatly.org/v1alpha1", "GrafanaDashboard"),
]
RESOURCE_COUNT = 36


class FailingClusterStore(InMemoryClusterStore):
    """Rejects creation of one named object."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__()
        self.fail_on = (kind, name)

    @override
    async def create(self, body):
        if (body["kind"], body["metadata"]["name"]) == self.fail_on:
            raise ClusterError("admission webhook denied the request")
        return await super().create(body)


def register_monitoring(cluster):
    for api_version, kind in MONITORING_KINDS:
        cluster.register(api_version, kind)


@pytest.fixture
def reconciler(cluster, cluster_secrets, constants, generator):
    return APIManagerReconciler(cluster, cluster_secrets, constants, generator=generator)


class TestFirstPass:
    """A fresh namespace with every add-on installed."""

    @pytest.mark.asyncio
    async def test_everything_created(self, reconciler, cluster):
        register_monitoring(cluster)
        apimanager = make_apimanager(resourceRequirementsEnabled=False)

        result = await reconciler.reconcile(apimanager)

        assert result.requeue_after is None
        assert len(result.outcomes) == RESOURCE_COUNT
        assert result.count(Outcome.CREATED) == RESOURCE_COUNT
        assert set(cluster.verbs()) == {"create"}

    @pytest.mark.asyncio
    async def test_created_state(self, reconciler, cluster):
        register_monitoring(cluster)
        apimanager = make_apimanager(resourceRequirementsEnabled=False)

        await reconciler.reconcile(apimanager)

        route = await cluster.get("v1", "Secret", "backend-listener", NAMESPACE)
        assert route["stringData"]["route_endpoint"] == "https://backend-acme.example.com"
        listener = await cluster.get("apps/v1", "Deployment", "backend-listener", NAMESPACE)
        assert listener["spec"]["replicas"] == 3
        for container in listener["spec"]["template"]["spec"]["containers"]:
            assert container["resources"] == {}
        assert listener["metadata"]["ownerReferences"][0]["name"] == "example-apimanager"

    @pytest.mark.asyncio
    async def test_outcomes_tagged_with_subcomponent(self, reconciler, cluster):
        register_monitoring(cluster)

        result = await reconciler.reconcile(make_apimanager())

        subcomponents = []
        for outcome in result.outcomes:
            if outcome.subcomponent not in subcomponents:
                subcomponents.append(outcome.subcomponent)
        assert subcomponents == ["backend", "memcached", "system", "zync", "apicast"]


class TestIdempotence:
    """A converged cluster is left alone."""

    @pytest.mark.asyncio
    async def test_second_pass_is_noop(self, reconciler, cluster):
        register_monitoring(cluster)
        apimanager = make_apimanager()
        await reconciler.reconcile(apimanager)
        writes = len(cluster.calls)

        result = await reconciler.reconcile(apimanager)

        assert result.count(Outcome.NOOP) == RESOURCE_COUNT
        assert len(cluster.calls) == writes

    @pytest.mark.asyncio
    async def test_generated_secrets_stable(self, reconciler, cluster, generator):
        """Secrets generated on the first pass are read back, not regenerated."""
        apimanager = make_apimanager()
        await reconciler.reconcile(apimanager)
        generated = generator.calls

        await reconciler.reconcile(apimanager)

        assert generator.calls == generated

    @pytest.mark.asyncio
    async def test_drift_on_tracked_field_corrected(self, reconciler, cluster):
        apimanager = make_apimanager()
        await reconciler.reconcile(apimanager)
        live = await cluster.get("apps/v1", "Deployment", "backend-worker", NAMESPACE)
        live["spec"]["replicas"] = 7
        cluster.put(live)

        result = await reconciler.reconcile(apimanager)

        assert result.count(Outcome.UPDATED) == 1
        (updated,) = [o for o in result.outcomes if o.outcome is Outcome.UPDATED]
        assert (updated.kind, updated.name) == ("Deployment", "backend-worker")
        live = await cluster.get("apps/v1", "Deployment", "backend-worker", NAMESPACE)
        assert live["spec"]["replicas"] == 1

    @pytest.mark.asyncio
    async def test_image_change_rolled_out(self, reconciler, cluster):
        """A new image on an existing instance reaches every backend workload."""
        await reconciler.reconcile(make_apimanager())
        backend = {
            "image": "quay.io/example/apisonator:custom",
            "listenerSpec": {"replicas": 3},
            "workerSpec": {"replicas": 1},
            "cronSpec": {"replicas": 1},
        }

        result = await reconciler.reconcile(make_apimanager(backend=backend))

        updated = {(o.kind, o.name) for o in result.outcomes if o.outcome is Outcome.UPDATED}
        assert updated == {
            ("Deployment", "backend-listener"),
            ("Deployment", "backend-worker"),
            ("Deployment", "backend-cron"),
        }
        live = await cluster.get("apps/v1", "Deployment", "backend-listener", NAMESPACE)
        (container,) = live["spec"]["template"]["spec"]["containers"]
        assert container["image"] == "quay.io/example/apisonator:custom"


class TestRequeueHint:
    @pytest.mark.asyncio
    async def test_requeue_when_monitoring_missing(self, reconciler, cluster):
        result = await reconciler.reconcile(make_apimanager())

        assert result.requeue_after == 30.0
        skipped = [o for o in result.outcomes if o.outcome is Outcome.SKIPPED]
        assert {o.kind for o in skipped} == {k for _, k in MONITORING_KINDS}
        assert len(skipped) == 6
        assert not any(call.key.kind == "PrometheusRule" for call in cluster.calls)

    @pytest.mark.asyncio
    async def test_no_requeue_once_installed(self, reconciler, cluster):
        await reconciler.reconcile(make_apimanager())
        register_monitoring(cluster)

        result = await reconciler.reconcile(make_apimanager())

        assert result.requeue_after is None
        assert result.count(Outcome.CREATED) == 6

    @pytest.mark.asyncio
    async def test_requeue_delay_configurable(self, cluster, cluster_secrets, constants):
        reconciler = APIManagerReconciler(
            cluster, cluster_secrets, constants, requeue_after=120.0
        )

        result = await reconciler.reconcile(make_apimanager())

        assert result.requeue_after == 120.0


class TestAbort:
    """The first error stops the pass and names the subcomponent."""

    @pytest.mark.asyncio
    async def test_missing_uid_rejected_before_any_call(self, reconciler, cluster):
        apimanager = make_apimanager()
        apimanager = apimanager.model_copy(
            update={"metadata": apimanager.metadata.model_copy(update={"uid": ""})}
        )

        with pytest.raises(OptionsValidationError) as excinfo:
            await reconciler.reconcile(apimanager)

        assert excinfo.value.missing == ["metadata.uid"]
        assert (excinfo.value.kind, excinfo.value.name) == ("APIManager", "example-apimanager")
        assert cluster.calls == []
        assert cluster.objects() == []

    @pytest.mark.asyncio
    async def test_validation_error_leaves_subcomponent_untouched(self, reconciler, cluster):
        apimanager = make_apimanager(
            zync={"appSpec": {"replicas": 1}, "queSpec": {"replicas": None}}
        )

        with pytest.raises(OptionsValidationError) as excinfo:
            await reconciler.reconcile(apimanager)

        assert excinfo.value.subcomponent == "zync"
        assert excinfo.value.missing == ["que_replicas"]
        names = {call.key.name for call in cluster.calls}
        assert "system-app" in names
        assert not names & {"zync", "zync-que", "apicast-staging"}

    @pytest.mark.asyncio
    async def test_cluster_error_aborts_remaining(self, cluster_secrets, constants, generator):
        cluster = FailingClusterStore("Deployment", "system-app")
        reconciler = APIManagerReconciler(
            cluster, cluster_secrets, constants, generator=generator
        )

        with pytest.raises(ClusterError) as excinfo:
            await reconciler.reconcile(make_apimanager())

        assert excinfo.value.subcomponent == "system"
        assert (excinfo.value.kind, excinfo.value.name) == ("Deployment", "system-app")
        created = {obj["metadata"]["name"] for obj in cluster.objects()}
        assert "system-environment" in created
        assert "system-sidekiq" not in created
        assert "zync" not in created

    @pytest.mark.asyncio
    async def test_next_pass_converges_after_abort(self, constants, generator):
        failing = FailingClusterStore("Deployment", "zync-que")

        with pytest.raises(ClusterError):
            await APIManagerReconciler(
                failing, ClusterSecretStore(failing), constants, generator=generator
            ).reconcile(make_apimanager())

        failing.fail_on = ("", "")
        result = await APIManagerReconciler(
            failing, ClusterSecretStore(failing), constants, generator=generator
        ).reconcile(make_apimanager())

        created = {(o.kind, o.name) for o in result.outcomes if o.outcome is Outcome.CREATED}
        assert ("Deployment", "zync-que") in created
        assert ("Deployment", "backend-listener") not in created


class TestDryRunHelpers:
    @pytest.mark.asyncio
    async def test_render_does_not_touch_cluster(self, reconciler, cluster):
        resources = await reconciler.render(make_apimanager())

        assert len(resources) == RESOURCE_COUNT
        assert cluster.calls == []

    @pytest.mark.asyncio
    async def test_resolve_returns_every_subcomponent(self, reconciler):
        resolved = await reconciler.resolve(make_apimanager())

        assert list(resolved) == ["backend", "memcached", "system", "zync", "apicast"]

    @pytest.mark.asyncio
    async def test_resolve_stamps_subcomponent(self, reconciler):
        apimanager = make_apimanager(appLabel=None)

        with pytest.raises(OptionsValidationError) as excinfo:
            await reconciler.resolve(apimanager)

        assert excinfo.value.subcomponent == "backend"

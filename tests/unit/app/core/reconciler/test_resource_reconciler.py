"""Tests for the per-resource convergence state machine."""

from unittest.mock import AsyncMock

import pytest

from src.app.core.constants import OperatorConstants
from src.app.core.errors import AlreadyExistsError, ConflictError, TransportError
from src.app.core.reconciler import (
    DesiredResource,
    Outcome,
    ResourceReconciler,
    config_map_comparator,
)
from src.infra.k8s import InMemoryClusterStore

NS = "ns"
OWNER = {
    "apiVersion": "apps.3scale.net/v1alpha1",
    "kind": "APIManager",
    "name": "example",
    "uid": "uid-1",
    "controller": True,
    "blockOwnerDeletion": True,
}


def deployment(name="backend-listener", replicas=1, labels=None):
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": name,
            "namespace": NS,
            "labels": labels or {"app": "3scale"},
        },
        "spec": {
            "replicas": replicas,
            "template": {
                "spec": {
                    "containers": [{"name": name, "image": "img:1", "resources": {}}]
                }
            },
        },
    }


def service(name="backend-listener", port=3000):
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name, "namespace": NS, "labels": {"app": "3scale"}},
        "spec": {"ports": [{"port": port}]},
    }


def prometheus_rule():
    return {
        "apiVersion": "monitoring.coreos.com/v1",
        "kind": "PrometheusRule",
        "metadata": {"name": "apicast", "namespace": NS},
        "spec": {"groups": []},
    }


@pytest.fixture
def store():
    return InMemoryClusterStore()


@pytest.fixture
def reconciler(store):
    return ResourceReconciler(store, OperatorConstants())


class TestCreate:
    """Objects that do not exist yet are created with our owner reference."""

    @pytest.mark.asyncio
    async def test_create_stamps_owner(self, reconciler, store):
        outcome = await reconciler.reconcile(DesiredResource(deployment(), OWNER))

        assert outcome.outcome is Outcome.CREATED
        (created,) = store.objects("Deployment")
        assert created["metadata"]["ownerReferences"] == [OWNER]

    @pytest.mark.asyncio
    async def test_desired_body_not_mutated(self, reconciler):
        body = deployment()

        await reconciler.reconcile(DesiredResource(body, OWNER))

        assert "ownerReferences" not in body["metadata"]

    @pytest.mark.asyncio
    async def test_creation_race_surfaces(self):
        """AlreadyExists is raised, never merged."""
        store = AsyncMock()
        store.get.return_value = None
        store.create.side_effect = AlreadyExistsError("exists", kind="Deployment")
        reconciler = ResourceReconciler(store, OperatorConstants())

        with pytest.raises(AlreadyExistsError):
            await reconciler.reconcile(DesiredResource(deployment(), OWNER))

        store.update.assert_not_called()


class TestConverge:
    """Existing objects are patched only on tracked fields."""

    @pytest.mark.asyncio
    async def test_noop_when_converged(self, reconciler, store):
        await reconciler.reconcile(DesiredResource(deployment(), OWNER))

        outcome = await reconciler.reconcile(DesiredResource(deployment(), OWNER))

        assert outcome.outcome is Outcome.NOOP
        assert store.verbs() == ["create"]

    @pytest.mark.asyncio
    async def test_replicas_updated_with_token(self, reconciler, store):
        live = deployment(replicas=1)
        live["status"] = {"readyReplicas": 1}
        live["spec"]["template"]["spec"]["containers"][0]["imagePullPolicy"] = "Always"
        token = store.put(live)["metadata"]["resourceVersion"]

        outcome = await reconciler.reconcile(DesiredResource(deployment(replicas=3), OWNER))

        assert outcome.outcome is Outcome.UPDATED
        update = store.calls[-1]
        assert update.verb == "update"
        assert update.body["metadata"]["resourceVersion"] == token
        (stored,) = store.objects("Deployment")
        assert stored["spec"]["replicas"] == 3
        assert stored["spec"]["template"]["spec"]["containers"][0]["imagePullPolicy"] == "Always"
        assert stored["status"] == {"readyReplicas": 1}

    @pytest.mark.asyncio
    async def test_untracked_change_is_noop(self, reconciler, store):
        """Create-only kinds tolerate any drift."""
        live = service(port=3000)
        live["metadata"]["ownerReferences"] = [OWNER]
        store.put(live)

        outcome = await reconciler.reconcile(DesiredResource(service(port=8080), OWNER))

        assert outcome.outcome is Outcome.NOOP
        assert store.verbs() == []

    @pytest.mark.asyncio
    async def test_metadata_only_update(self, reconciler, store):
        """Adopting an orphan adds our owner reference and labels, keeps theirs."""
        orphan = service()
        orphan["metadata"]["labels"] = {"team": "payments"}
        store.put(orphan)

        outcome = await reconciler.reconcile(DesiredResource(service(), OWNER))

        assert outcome.outcome is Outcome.UPDATED
        (stored,) = store.objects("Service")
        assert stored["metadata"]["labels"] == {"team": "payments", "app": "3scale"}
        assert stored["metadata"]["ownerReferences"] == [OWNER]

    @pytest.mark.asyncio
    async def test_resource_comparator_override(self, reconciler, store):
        body = {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "apicast-environment", "namespace": NS},
            "data": {"OPENSSL_VERIFY": "true", "OTHER": "rendered"},
        }
        store.put(
            {
                **body,
                "metadata": {**body["metadata"], "ownerReferences": [OWNER]},
                "data": {"OPENSSL_VERIFY": "true", "OTHER": "edited"},
            }
        )

        comparator = config_map_comparator(["OPENSSL_VERIFY"])

        outcome = await reconciler.reconcile(
            DesiredResource(body, OWNER, comparator=comparator)
        )

        assert outcome.outcome is Outcome.NOOP

    @pytest.mark.asyncio
    async def test_conflict_surfaces(self):
        """A stale token is reported, never retried."""
        store = AsyncMock()
        live = deployment()
        live["metadata"]["resourceVersion"] = "7"
        store.get.return_value = live
        store.update.side_effect = ConflictError("stale")
        reconciler = ResourceReconciler(store, OperatorConstants())

        with pytest.raises(ConflictError):
            await reconciler.reconcile(DesiredResource(deployment(replicas=2), OWNER))

        assert store.update.await_count == 1
        assert store.update.await_args.args[1] == "7"


class TestOwnership:
    @pytest.mark.asyncio
    async def test_foreign_controller_skipped(self, reconciler, store):
        foreign = {**OWNER, "name": "someone-else", "uid": "uid-9"}
        live = deployment(replicas=1)
        live["metadata"]["ownerReferences"] = [foreign]
        store.put(live)

        outcome = await reconciler.reconcile(DesiredResource(deployment(replicas=5), OWNER))

        assert outcome.outcome is Outcome.SKIPPED
        assert outcome.reason == "owned by another controller"
        assert store.verbs() == []
        (stored,) = store.objects("Deployment")
        assert stored["metadata"]["ownerReferences"] == [foreign]

    @pytest.mark.asyncio
    async def test_non_controller_owner_kept(self, reconciler, store):
        """Both the existing and our owner reference are present afterward."""
        other = {"apiVersion": "v1", "kind": "ConfigMap", "name": "bundle", "uid": "uid-7"}
        live = service()
        live["metadata"]["ownerReferences"] = [other]
        store.put(live)

        outcome = await reconciler.reconcile(DesiredResource(service(), OWNER))

        assert outcome.outcome is Outcome.UPDATED
        (stored,) = store.objects("Service")
        assert stored["metadata"]["ownerReferences"] == [other, OWNER]


class TestOptionalKinds:
    """Companion kinds from add-ons that may not be installed."""

    @pytest.mark.asyncio
    async def test_unregistered_kind_skipped_without_calls(self, reconciler, store):
        outcome = await reconciler.reconcile(DesiredResource(prometheus_rule(), OWNER))

        assert outcome.outcome is Outcome.SKIPPED
        assert outcome.unregistered_kind
        assert store.verbs() == []

    @pytest.mark.asyncio
    async def test_registered_kind_created(self, reconciler, store):
        store.register("monitoring.coreos.com/v1", "PrometheusRule")

        outcome = await reconciler.reconcile(DesiredResource(prometheus_rule(), OWNER))

        assert outcome.outcome is Outcome.CREATED

    @pytest.mark.asyncio
    async def test_builtin_kinds_never_probed(self):
        store = AsyncMock()
        store.get.return_value = None
        reconciler = ResourceReconciler(store, OperatorConstants())

        await reconciler.reconcile(DesiredResource(service(), OWNER))

        store.is_registered.assert_not_called()


class TestReconcileAll:
    """Resources are applied in order and the first error aborts the rest."""

    @pytest.mark.asyncio
    async def test_order_preserved(self, reconciler, store):
        resources = [
            DesiredResource(deployment("a"), OWNER),
            DesiredResource(service("a"), OWNER),
            DesiredResource(deployment("b"), OWNER),
        ]

        outcomes = await reconciler.reconcile_all(resources)

        assert [o.name for o in outcomes] == ["a", "a", "b"]
        kinds = [call.key.kind for call in store.calls]
        assert kinds == ["Deployment", "Service", "Deployment"]

    @pytest.mark.asyncio
    async def test_first_error_aborts(self):
        store = AsyncMock()
        store.get.side_effect = [None, TransportError("connection refused"), None]
        reconciler = ResourceReconciler(store, OperatorConstants())
        resources = [
            DesiredResource(deployment("a"), OWNER),
            DesiredResource(service("b"), OWNER),
            DesiredResource(deployment("c"), OWNER),
        ]

        with pytest.raises(TransportError) as excinfo:
            await reconciler.reconcile_all(resources)

        assert store.create.await_count == 1
        assert store.get.await_count == 2
        assert excinfo.value.kind == "Service"
        assert excinfo.value.name == "b"

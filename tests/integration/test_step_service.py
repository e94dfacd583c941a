"""Integration tests for StepService: linkage checks and node mirroring.

Scenario used throughout: Interaction I1 holds workflow W1 whose execution
graph is G1.  Steps are created, progressed and deleted under that path.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from interaction_store.exceptions import (
    AlreadyExistsError,
    IdentityMismatchError,
    LinkageMismatchError,
    NotFoundError,
    StoreError,
    VersionConflictError,
)
from interaction_store.models import (
    Edge,
    ExecutionGraph,
    ExecutionNode,
    Status,
    Step,
    Workflow,
)
from interaction_store.storage import keys


def _nodes(services):
    return services.interactions.get("I1").workflow.execution_graph.nodes


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestFetchLogsScenario:
    """Create a step, run it to success, then delete it."""

    def test_full_lifecycle(self, services, seeded, kv) -> None:
        created = services.steps.create(
            "I1", "W1", "G1", Step(id="S1", name="fetch-logs", status=Status.RUNNING)
        )
        assert created.status is Status.PENDING
        assert keys.step_key("I1", "W1", "G1", "S1") in kv
        assert _nodes(services) == [
            ExecutionNode(step_id="S1", name="fetch-logs", status=Status.PENDING)
        ]

        services.steps.update_status("I1", "W1", "G1", "S1", Status.RUNNING)
        done = services.steps.update_status("I1", "W1", "G1", "S1", Status.SUCCESS)
        assert done.finished_at is not None
        assert _nodes(services)[0].status is Status.SUCCESS
        assert services.steps.get("I1", "W1", "G1", "S1").status is Status.SUCCESS

        services.steps.delete("I1", "W1", "G1", "S1")
        assert keys.step_key("I1", "W1", "G1", "S1") not in kv
        assert _nodes(services) == []

    def test_step_ids_not_maintained(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        assert services.interactions.get("I1").step_ids == []


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_generates_id(self, services, seeded) -> None:
        created = services.steps.create("I1", "W1", "G1", Step(name="summarise"))
        assert created.id
        assert _nodes(services)[0].step_id == created.id

    @pytest.mark.parametrize("wid,eid", [("W2", "G1"), ("W1", "G2"), ("W2", "G2")])
    def test_stale_path_writes_nothing(self, services, seeded, kv, wid, eid) -> None:
        before = dict(kv)
        with pytest.raises(LinkageMismatchError):
            services.steps.create("I1", wid, eid, Step(id="S1"))
        assert kv == before

    def test_existing_step_keeps_single_node(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1", name="fetch-logs"))
        services.steps.update_status("I1", "W1", "G1", "S1", Status.SUCCESS)

        with pytest.raises(AlreadyExistsError):
            services.steps.create("I1", "W1", "G1", Step(id="S1", name="fetch-logs"))

        assert _nodes(services) == [
            ExecutionNode(step_id="S1", name="fetch-logs", status=Status.SUCCESS)
        ]
        stored = services.steps.get("I1", "W1", "G1", "S1")
        assert (stored.status, stored.version) == (Status.SUCCESS, 2)

    def test_missing_interaction(self, services) -> None:
        with pytest.raises(NotFoundError):
            services.steps.create("I1", "W1", "G1", Step(id="S1"))

    def test_mirror_failure_keeps_step_and_is_reported(self, services, seeded) -> None:
        with patch.object(
            services.interaction_repo, "update", side_effect=StoreError("set_if", "interaction:I1")
        ):
            with pytest.raises(StoreError):
                services.steps.create("I1", "W1", "G1", Step(id="S1"))
        assert services.steps.get("I1", "W1", "G1", "S1").id == "S1"
        assert _nodes(services) == []

        report = services.steps.reconcile("I1", "W1", "G1")
        assert report.added == ["S1"]
        assert [n.step_id for n in _nodes(services)] == ["S1"]


# ---------------------------------------------------------------------------
# update / update_status
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_whole_record_update_skips_mirror(self, services, seeded) -> None:
        step = services.steps.create("I1", "W1", "G1", Step(id="S1", name="a"))
        step.name = "b"
        updated = services.steps.update("I1", "W1", "G1", "S1", step)
        assert updated.version == 2
        assert services.steps.get("I1", "W1", "G1", "S1").name == "b"
        assert _nodes(services)[0].name == "a"

    def test_identity_mismatch(self, services, seeded) -> None:
        step = services.steps.create("I1", "W1", "G1", Step(id="S1"))
        with pytest.raises(IdentityMismatchError):
            services.steps.update("I1", "W1", "G1", "S2", step)

    def test_stale_version(self, services, seeded) -> None:
        step = services.steps.create("I1", "W1", "G1", Step(id="S1"))
        services.steps.update_status("I1", "W1", "G1", "S1", Status.RUNNING)
        with pytest.raises(VersionConflictError):
            services.steps.update("I1", "W1", "G1", "S1", step)

    def test_status_on_missing_step(self, services, seeded) -> None:
        with pytest.raises(NotFoundError):
            services.steps.update_status("I1", "W1", "G1", "S404", Status.RUNNING)

    def test_status_rejected_after_graph_replaced(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        current = services.interactions.get("I1")
        services.interactions.replace_workflow(
            "I1", "W1", Workflow(id="W1", execution_graph=ExecutionGraph(id="G2"))
        )
        assert current.execution_graph_id == "G1"
        with pytest.raises(LinkageMismatchError):
            services.steps.update_status("I1", "W1", "G1", "S1", Status.SUCCESS)
        assert services.steps.get("I1", "W1", "G1", "S1").status is Status.PENDING

    def test_non_terminal_status_leaves_finished_at(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        step = services.steps.update_status("I1", "W1", "G1", "S1", Status.RUNNING)
        assert step.finished_at is None


# ---------------------------------------------------------------------------
# delete / list / reconcile
# ---------------------------------------------------------------------------


class TestDelete:
    def test_removes_edges_touching_step(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        services.steps.create("I1", "W1", "G1", Step(id="S2"))
        services.steps.create("I1", "W1", "G1", Step(id="S3"))
        interaction = services.interactions.get("I1")
        interaction.workflow.execution_graph.edges = [
            Edge(from_step_id="S1", to_step_id="S2"),
            Edge(from_step_id="S2", to_step_id="S3"),
        ]
        services.interactions.replace("I1", interaction)

        services.steps.delete("I1", "W1", "G1", "S2")

        graph = services.interactions.get("I1").workflow.execution_graph
        assert [n.step_id for n in graph.nodes] == ["S1", "S3"]
        assert graph.edges == []

    def test_idempotent(self, services, seeded) -> None:
        services.steps.delete("I1", "W1", "G1", "S404")
        services.steps.delete("I1", "W1", "G1", "S404")

    def test_orphaned_step_deleted_without_parent(self, services, kv) -> None:
        services.step_repo.save("I1", "W1", "G1", Step(id="S1"))
        services.steps.delete("I1", "W1", "G1", "S1")
        assert kv == {}

    def test_stale_path_deletes_step_only(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        services.step_repo.save("I1", "W1", "G2", Step(id="S1"))
        services.steps.delete("I1", "W1", "G2", "S1")
        assert [n.step_id for n in _nodes(services)] == ["S1"]
        with pytest.raises(NotFoundError):
            services.steps.get("I1", "W1", "G2", "S1")


class TestListAndReconcile:
    def test_list_orders_by_sequence(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="b", sequence=2))
        services.steps.create("I1", "W1", "G1", Step(id="a", sequence=2))
        services.steps.create("I1", "W1", "G1", Step(id="c", sequence=1))
        assert [s.id for s in services.steps.list("I1", "W1", "G1")] == ["c", "a", "b"]

    def test_list_scoped_to_graph(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        services.step_repo.save("I1", "W1", "G2", Step(id="S2"))
        assert [s.id for s in services.steps.list("I1", "W1", "G1")] == ["S1"]

    def test_reconcile_consistent(self, services, seeded) -> None:
        services.steps.create("I1", "W1", "G1", Step(id="S1"))
        assert services.steps.reconcile("I1", "W1", "G1").consistent

    def test_reconcile_checks_linkage(self, services, seeded) -> None:
        with pytest.raises(LinkageMismatchError):
            services.steps.reconcile("I1", "W2", "G1")

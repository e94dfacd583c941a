"""Keeps ExecutionNode summaries in step with their authoritative Steps.

A Step and the Interaction that mirrors it live under different keys, so
every sequence here is two separate writes.  The Step is always written
first: if the Interaction write then fails, the mirror is stale but never
shows a status the Step did not commit.  :meth:`MirrorSync.reconcile`
rebuilds the projection from the stored Steps after such a failure.

Callers pass an Interaction already validated by the
:class:`~interaction_store.gate.ConsistencyGate`; the Interaction write is
conditional on the version read there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from interaction_store.exceptions import LinkageMismatchError
from interaction_store.models import ExecutionNode, Status, utcnow

if TYPE_CHECKING:
    from interaction_store.models import ExecutionGraph, Interaction, Step
    from interaction_store.repos import InteractionRepo, StepRepo

_log = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Step ids whose node was appended, dropped, or refreshed."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not (self.added or self.removed or self.updated)


def _graph_of(interaction: Interaction) -> ExecutionGraph:
    if interaction.workflow is None or interaction.workflow.execution_graph is None:
        raise LinkageMismatchError(
            interaction.id, {"execution": "<any>"}, {"execution": None}
        )
    return interaction.workflow.execution_graph


def _node_for(step: Step) -> ExecutionNode:
    return ExecutionNode(step_id=step.id, name=step.name, status=step.status)


class MirrorSync:
    """Writes a Step and then its mirrored node on the parent Interaction."""

    def __init__(
        self,
        interactions: InteractionRepo,
        steps: StepRepo,
        logger: logging.Logger | None = None,
    ) -> None:
        self._interactions = interactions
        self._steps = steps
        self._log = logger or _log

    def record_created(
        self,
        interaction: Interaction,
        workflow_id: str,
        execution_id: str,
        step: Step,
    ) -> Step:
        """Persist a new *step*, then append its node to the graph."""
        stored = self._steps.save(interaction.id, workflow_id, execution_id, step)
        graph = _graph_of(interaction)
        graph.nodes.append(_node_for(stored))
        self._interactions.update(interaction)
        self._log.info(
            "Step %s created under %s/%s/%s", stored.id, interaction.id, workflow_id, execution_id
        )
        return stored

    def record_status(
        self,
        interaction: Interaction,
        workflow_id: str,
        execution_id: str,
        step_id: str,
        status: Status,
    ) -> Step:
        """Set *status* on the stored Step, then on its first matching node.

        ``finished_at`` is stamped only for terminal statuses.  A Step with no
        node leaves the graph (and the Interaction record) untouched.
        """
        step = self._steps.get(interaction.id, workflow_id, execution_id, step_id)
        if status.is_terminal:
            step.finished_at = utcnow()
        step.status = status
        stored = self._steps.update(interaction.id, workflow_id, execution_id, step)

        graph = _graph_of(interaction)
        node = next((n for n in graph.nodes if n.step_id == stored.id), None)
        if node is None:
            # Nothing to mirror; rewriting the Interaction would only bump its version.
            self._log.info(
                "Step %s has no node in graph %s; mirror left unchanged", stored.id, graph.id
            )
            return stored
        node.status = stored.status
        self._interactions.update(interaction)
        return stored

    def record_deleted(
        self,
        interaction: Interaction | None,
        interaction_id: str,
        workflow_id: str,
        execution_id: str,
        step_id: str,
    ) -> None:
        """Delete the Step, then drop its nodes and edges from the graph.

        *interaction* is ``None`` when the parent is gone or no longer links
        to this graph; only the Step record is removed then.
        """
        self._steps.delete(interaction_id, workflow_id, execution_id, step_id)
        if interaction is None:
            return
        graph = _graph_of(interaction)
        nodes = [n for n in graph.nodes if n.step_id != step_id]
        edges = [e for e in graph.edges if step_id not in (e.from_step_id, e.to_step_id)]
        if len(nodes) == len(graph.nodes) and len(edges) == len(graph.edges):
            return
        graph.nodes = nodes
        graph.edges = edges
        self._interactions.update(interaction)
        self._log.info("Removed node for deleted step %s from graph %s", step_id, graph.id)

    def reconcile(
        self, interaction: Interaction, workflow_id: str, execution_id: str
    ) -> ReconcileReport:
        """Rebuild the node projection from the stored Steps.

        Existing nodes keep their order and pick up the Step's name and
        status; nodes without a Step (or repeating a step id) are dropped,
        along with edges touching a vanished Step; Steps without a node are
        appended by sequence.  The Interaction is written only on change.
        """
        steps = self._steps.find_all(interaction.id, workflow_id, execution_id)
        by_id = {s.id: s for s in steps}
        graph = _graph_of(interaction)
        report = ReconcileReport()

        nodes: list[ExecutionNode] = []
        seen: set[str] = set()
        for node in graph.nodes:
            step = by_id.get(node.step_id)
            if step is None or node.step_id in seen:
                report.removed.append(node.step_id)
                continue
            seen.add(node.step_id)
            if node.name != step.name or node.status != step.status:
                report.updated.append(step.id)
                node = _node_for(step)
            nodes.append(node)
        for step in steps:
            if step.id not in seen:
                report.added.append(step.id)
                nodes.append(_node_for(step))

        edges = [
            e for e in graph.edges if e.from_step_id in by_id and e.to_step_id in by_id
        ]
        if report.consistent and len(edges) == len(graph.edges):
            return report

        graph.nodes = nodes
        graph.edges = edges
        self._interactions.update(interaction)
        self._log.warning(
            "Reconciled graph %s: added=%s removed=%s updated=%s",
            graph.id,
            report.added,
            report.removed,
            report.updated,
        )
        return report

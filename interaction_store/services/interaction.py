"""Interaction lifecycle and whole-field replacement of its nested parts."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from interaction_store.exceptions import StateStoreError
from interaction_store.models import utcnow

if TYPE_CHECKING:
    from interaction_store.gate import ConsistencyGate
    from interaction_store.models import ExecutionGraph, Interaction, Plan, Workflow
    from interaction_store.repos import InteractionRepo

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaceOutcome:
    """Result of a nested replace.

    ``replaced`` is ``False`` when the addressed nested id was not the one
    currently stored; ``interaction`` is then the unchanged stored record.
    """

    interaction: Interaction
    replaced: bool


class InteractionService:
    def __init__(
        self,
        repo: InteractionRepo,
        gate: ConsistencyGate,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repo = repo
        self._gate = gate
        self._log = logger or _log

    def get(self, interaction_id: str) -> Interaction:
        return self._repo.get(interaction_id)

    def create(self, interaction: Interaction) -> Interaction:
        if not interaction.id:
            interaction.id = str(uuid.uuid4())
        interaction.created_at = utcnow()
        try:
            return self._repo.save(interaction)
        except StateStoreError:
            self._log.error("Error while saving interaction %s", interaction.id, exc_info=True)
            raise

    def replace(self, interaction_id: str, interaction: Interaction) -> Interaction:
        """Overwrite the whole Interaction; ``interaction.version`` must be current."""
        self._gate.check_identity("interaction", interaction_id, interaction.id)
        try:
            return self._repo.update(interaction)
        except StateStoreError:
            self._log.error("Error while updating interaction %s", interaction_id, exc_info=True)
            raise

    def delete(self, interaction_id: str) -> None:
        self._repo.delete(interaction_id)

    # ------------------------------------------------------------------
    # Nested replacement
    # ------------------------------------------------------------------

    def replace_plan(self, interaction_id: str, plan_id: str, plan: Plan) -> ReplaceOutcome:
        self._gate.check_identity("plan", plan_id, plan.id)
        interaction = self._load(interaction_id)
        stored_id = interaction.plan.id if interaction.plan is not None else None
        if stored_id != plan_id:
            return self._skipped(interaction, "plan", plan_id, stored_id)
        interaction.plan = plan
        return self._persist(interaction)

    def replace_workflow(
        self, interaction_id: str, workflow_id: str, workflow: Workflow
    ) -> ReplaceOutcome:
        self._gate.check_identity("workflow", workflow_id, workflow.id)
        interaction = self._load(interaction_id)
        if interaction.workflow_id != workflow_id:
            return self._skipped(interaction, "workflow", workflow_id, interaction.workflow_id)
        interaction.workflow = workflow
        return self._persist(interaction)

    def replace_execution_graph(
        self,
        interaction_id: str,
        workflow_id: str,
        execution_id: str,
        graph: ExecutionGraph,
    ) -> ReplaceOutcome:
        self._gate.check_identity("execution graph", execution_id, graph.id)
        interaction = self._load(interaction_id)
        if (
            interaction.workflow is None
            or interaction.workflow_id != workflow_id
            or interaction.execution_graph_id != execution_id
        ):
            stored = f"{interaction.workflow_id}/{interaction.execution_graph_id}"
            return self._skipped(
                interaction, "execution graph", f"{workflow_id}/{execution_id}", stored
            )
        interaction.workflow.execution_graph = graph
        return self._persist(interaction)

    def _load(self, interaction_id: str) -> Interaction:
        try:
            return self._repo.get(interaction_id)
        except StateStoreError:
            self._log.error("Error while getting interaction %s", interaction_id, exc_info=True)
            raise

    def _persist(self, interaction: Interaction) -> ReplaceOutcome:
        try:
            stored = self._repo.update(interaction)
        except StateStoreError:
            self._log.error("Error while updating interaction %s", interaction.id, exc_info=True)
            raise
        return ReplaceOutcome(interaction=stored, replaced=True)

    def _skipped(
        self, interaction: Interaction, kind: str, addressed: str, stored: str | None
    ) -> ReplaceOutcome:
        self._log.info(
            "Skipped %s replace on interaction %s: addressed %s, stored %s",
            kind,
            interaction.id,
            addressed,
            stored,
        )
        return ReplaceOutcome(interaction=interaction, replaced=False)

"""Step records and their mirrored nodes in the execution graph."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from interaction_store.exceptions import LinkageMismatchError, NotFoundError, StateStoreError
from interaction_store.models import Status

if TYPE_CHECKING:
    from interaction_store.gate import ConsistencyGate
    from interaction_store.mirror import MirrorSync, ReconcileReport
    from interaction_store.models import Interaction, Step
    from interaction_store.repos import StepRepo

_log = logging.getLogger(__name__)


class StepService:
    """Step operations addressed by ``(interaction, workflow, execution)``.

    Creation, status changes and reconciliation require the path to match
    the ids stored on the Interaction.  Plain reads and whole-record updates
    go straight to the Step record.
    """

    def __init__(
        self,
        steps: StepRepo,
        gate: ConsistencyGate,
        mirror: MirrorSync,
        logger: logging.Logger | None = None,
    ) -> None:
        self._steps = steps
        self._gate = gate
        self._mirror = mirror
        self._log = logger or _log

    def get(
        self, interaction_id: str, workflow_id: str, execution_id: str, step_id: str
    ) -> Step:
        return self._steps.get(interaction_id, workflow_id, execution_id, step_id)

    def list(self, interaction_id: str, workflow_id: str, execution_id: str) -> list[Step]:
        return self._steps.find_all(interaction_id, workflow_id, execution_id)

    def create(
        self, interaction_id: str, workflow_id: str, execution_id: str, step: Step
    ) -> Step:
        """Store *step* as ``pending`` and append its node to the graph."""
        if not step.id:
            step.id = str(uuid.uuid4())
        step.status = Status.PENDING
        interaction = self._gate.linked_execution(interaction_id, workflow_id, execution_id)
        try:
            return self._mirror.record_created(interaction, workflow_id, execution_id, step)
        except StateStoreError:
            self._log.error(
                "Error while creating step %s under %s/%s/%s",
                step.id,
                interaction_id,
                workflow_id,
                execution_id,
                exc_info=True,
            )
            raise

    def update(
        self,
        interaction_id: str,
        workflow_id: str,
        execution_id: str,
        step_id: str,
        step: Step,
    ) -> Step:
        """Overwrite the whole Step; the mirrored node is not touched."""
        self._gate.check_identity("step", step_id, step.id)
        try:
            return self._steps.update(interaction_id, workflow_id, execution_id, step)
        except StateStoreError:
            self._log.error("Error while updating step %s", step_id, exc_info=True)
            raise

    def update_status(
        self,
        interaction_id: str,
        workflow_id: str,
        execution_id: str,
        step_id: str,
        status: Status,
    ) -> Step:
        interaction = self._gate.linked_execution(interaction_id, workflow_id, execution_id)
        try:
            return self._mirror.record_status(
                interaction, workflow_id, execution_id, step_id, status
            )
        except StateStoreError:
            self._log.error(
                "Error while setting status %s on step %s", status.value, step_id, exc_info=True
            )
            raise

    def delete(
        self, interaction_id: str, workflow_id: str, execution_id: str, step_id: str
    ) -> None:
        """Delete the Step, and its node and edges when the path still links."""
        interaction: Interaction | None
        try:
            interaction = self._gate.linked_execution(interaction_id, workflow_id, execution_id)
        except (NotFoundError, LinkageMismatchError):
            interaction = None
        try:
            self._mirror.record_deleted(
                interaction, interaction_id, workflow_id, execution_id, step_id
            )
        except StateStoreError:
            self._log.error("Error while deleting step %s", step_id, exc_info=True)
            raise

    def reconcile(
        self, interaction_id: str, workflow_id: str, execution_id: str
    ) -> ReconcileReport:
        interaction = self._gate.linked_execution(interaction_id, workflow_id, execution_id)
        try:
            return self._mirror.reconcile(interaction, workflow_id, execution_id)
        except StateStoreError:
            self._log.error(
                "Error while reconciling graph %s on interaction %s",
                execution_id,
                interaction_id,
                exc_info=True,
            )
            raise

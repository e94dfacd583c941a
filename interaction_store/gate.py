"""Identity and linkage checks run before any nested mutation is written.

Identity: the id used to address an entity must equal the id inside the
submitted payload.

Linkage: a child addressed under ``(interaction, workflow[, execution])``
must name the workflow / execution graph currently stored on that
Interaction.  The Interaction is re-read on every call; a prior successful
check says nothing about the next one because the parent may have been
replaced in between.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from interaction_store.exceptions import IdentityMismatchError, LinkageMismatchError

if TYPE_CHECKING:
    from interaction_store.models import Interaction
    from interaction_store.repos import InteractionRepo

_log = logging.getLogger(__name__)


class ConsistencyGate:
    """Loads the parent Interaction and validates a claimed ancestry."""

    def __init__(
        self,
        interactions: InteractionRepo,
        logger: logging.Logger | None = None,
    ) -> None:
        self._interactions = interactions
        self._log = logger or _log

    def check_identity(self, kind: str, path_id: str, payload_id: str) -> None:
        """Raise :class:`IdentityMismatchError` unless *path_id* == *payload_id*."""
        if path_id != payload_id:
            self._log.warning(
                "Rejected %s mutation: path id %s != payload id %s",
                kind,
                path_id,
                payload_id,
            )
            raise IdentityMismatchError(kind, path_id, payload_id)

    def linked_workflow(self, interaction_id: str, workflow_id: str) -> Interaction:
        """Return the Interaction if its stored workflow id is *workflow_id*."""
        interaction = self._interactions.get(interaction_id)
        if interaction.workflow_id != workflow_id:
            self._reject(
                interaction,
                {"workflow": workflow_id},
                {"workflow": interaction.workflow_id},
            )
        return interaction

    def linked_execution(
        self, interaction_id: str, workflow_id: str, execution_id: str
    ) -> Interaction:
        """Return the Interaction if it stores *workflow_id* / *execution_id*.

        Raises:
            NotFoundError: No such Interaction.
            LinkageMismatchError: Either stored id differs.
        """
        interaction = self._interactions.get(interaction_id)
        if (
            interaction.workflow_id != workflow_id
            or interaction.execution_graph_id != execution_id
        ):
            self._reject(
                interaction,
                {"workflow": workflow_id, "execution": execution_id},
                {
                    "workflow": interaction.workflow_id,
                    "execution": interaction.execution_graph_id,
                },
            )
        return interaction

    def _reject(
        self,
        interaction: Interaction,
        expected: dict[str, str | None],
        actual: dict[str, str | None],
    ) -> None:
        self._log.warning(
            "Linkage mismatch on interaction %s: addressed %s, stored %s",
            interaction.id,
            expected,
            actual,
        )
        raise LinkageMismatchError(interaction.id, expected, actual)

"""Per-kind repositories: an :class:`EntityStore` plus the key space.

Each repository owns its backend exclusively and releases it on
:meth:`close`.  ``save`` creates a record at version 1 and refuses a key
that is already taken; ``update`` is a conditional write that bumps the
version and returns the stored copy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from interaction_store.models import MCP, Interaction, Step, VersionedModel
from interaction_store.storage import keys
from interaction_store.storage.entity_store import EntityStore

if TYPE_CHECKING:
    from interaction_store.storage.backend import KeyValueBackend

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=VersionedModel)

INITIAL_VERSION = 1


class _Repo(Generic[T]):
    model: type[T]

    def __init__(self, backend: KeyValueBackend) -> None:
        self._store: EntityStore[T] = EntityStore(backend, self.model)

    def _save(self, key: str, entity: T) -> T:
        stored = entity.model_copy(update={"version": INITIAL_VERSION})
        self._store.create(key, stored)
        return stored

    def _update(self, key: str, entity: T) -> T:
        stored = entity.model_copy(update={"version": entity.version + 1})
        self._store.compare_and_set(key, stored, expected_version=entity.version)
        return stored

    def ping(self) -> bool:
        return self._store.ping()

    def close(self) -> None:
        logger.debug("Closing %s store", self.model.__name__)
        self._store.close()


class InteractionRepo(_Repo[Interaction]):
    model = Interaction

    def get(self, interaction_id: str) -> Interaction:
        return self._store.get(keys.interaction_key(interaction_id))

    def save(self, interaction: Interaction) -> Interaction:
        return self._save(keys.interaction_key(interaction.id), interaction)

    def update(self, interaction: Interaction) -> Interaction:
        return self._update(keys.interaction_key(interaction.id), interaction)

    def delete(self, interaction_id: str) -> None:
        self._store.delete(keys.interaction_key(interaction_id))


class McpRepo(_Repo[MCP]):
    model = MCP

    def get(self, interaction_id: str, workflow_id: str, mcp_id: str) -> MCP:
        return self._store.get(keys.mcp_key(interaction_id, workflow_id, mcp_id))

    def save(self, interaction_id: str, workflow_id: str, mcp: MCP) -> MCP:
        return self._save(keys.mcp_key(interaction_id, workflow_id, mcp.id), mcp)

    def update(self, interaction_id: str, workflow_id: str, mcp: MCP) -> MCP:
        return self._update(keys.mcp_key(interaction_id, workflow_id, mcp.id), mcp)

    def delete(self, interaction_id: str, workflow_id: str, mcp_id: str) -> None:
        self._store.delete(keys.mcp_key(interaction_id, workflow_id, mcp_id))


class StepRepo(_Repo[Step]):
    model = Step

    def get(
        self, interaction_id: str, workflow_id: str, execution_id: str, step_id: str
    ) -> Step:
        return self._store.get(
            keys.step_key(interaction_id, workflow_id, execution_id, step_id)
        )

    def save(
        self, interaction_id: str, workflow_id: str, execution_id: str, step: Step
    ) -> Step:
        return self._save(
            keys.step_key(interaction_id, workflow_id, execution_id, step.id), step
        )

    def update(
        self, interaction_id: str, workflow_id: str, execution_id: str, step: Step
    ) -> Step:
        return self._update(
            keys.step_key(interaction_id, workflow_id, execution_id, step.id), step
        )

    def delete(
        self, interaction_id: str, workflow_id: str, execution_id: str, step_id: str
    ) -> None:
        self._store.delete(
            keys.step_key(interaction_id, workflow_id, execution_id, step_id)
        )

    def find_all(self, interaction_id: str, workflow_id: str, execution_id: str) -> list[Step]:
        """All steps stored under one execution graph, by sequence then id."""
        pattern = keys.step_scan_pattern(interaction_id, workflow_id, execution_id)
        steps = [step for _, step in self._store.scan(pattern)]
        return sorted(steps, key=lambda s: (s.sequence, s.id))

"""MCP records stored under an Interaction's workflow."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from interaction_store.exceptions import NotFoundError, StateStoreError

if TYPE_CHECKING:
    from interaction_store.gate import ConsistencyGate
    from interaction_store.models import MCP, Tool
    from interaction_store.repos import InteractionRepo, McpRepo

_log = logging.getLogger(__name__)


class McpService:
    """Create, update, extend and delete MCPs.

    Creation and deletion also maintain the workflow's ``available_mcp_refs``
    list on the parent Interaction.  Both writes are separate; the MCP record
    is always written (or removed) first.
    """

    def __init__(
        self,
        mcps: McpRepo,
        interactions: InteractionRepo,
        gate: ConsistencyGate,
        logger: logging.Logger | None = None,
    ) -> None:
        self._mcps = mcps
        self._interactions = interactions
        self._gate = gate
        self._log = logger or _log

    def get(self, interaction_id: str, workflow_id: str, mcp_id: str) -> MCP:
        return self._mcps.get(interaction_id, workflow_id, mcp_id)

    def create(self, interaction_id: str, workflow_id: str, mcp: MCP) -> MCP:
        """Store *mcp* and append its id to the workflow's MCP refs.

        The workflow must be the one stored on the Interaction; nothing is
        written otherwise.  An id is generated when *mcp* has none.
        """
        interaction = self._gate.linked_workflow(interaction_id, workflow_id)
        if not mcp.id:
            mcp.id = str(uuid.uuid4())
        try:
            stored = self._mcps.save(interaction_id, workflow_id, mcp)
            interaction.workflow.available_mcp_refs.append(stored.id)
            self._interactions.update(interaction)
        except StateStoreError:
            self._log.error(
                "Error while creating mcp %s under %s/%s",
                mcp.id,
                interaction_id,
                workflow_id,
                exc_info=True,
            )
            raise
        return stored

    def update(self, interaction_id: str, workflow_id: str, mcp_id: str, mcp: MCP) -> MCP:
        self._gate.check_identity("mcp", mcp_id, mcp.id)
        try:
            return self._mcps.update(interaction_id, workflow_id, mcp)
        except StateStoreError:
            self._log.error("Error while updating mcp %s", mcp_id, exc_info=True)
            raise

    def add_tool(self, interaction_id: str, workflow_id: str, mcp_id: str, tool: Tool) -> MCP:
        """Append *tool* to the stored MCP; duplicates are not checked."""
        try:
            mcp = self._mcps.get(interaction_id, workflow_id, mcp_id)
            mcp.tools.append(tool)
            return self._mcps.update(interaction_id, workflow_id, mcp)
        except StateStoreError:
            self._log.error("Error while adding tool %s to mcp %s", tool.name, mcp_id, exc_info=True)
            raise

    def delete(self, interaction_id: str, workflow_id: str, mcp_id: str) -> None:
        """Delete the MCP and drop its id from the workflow's MCP refs.

        The refs are left alone if the Interaction is gone or holds another
        workflow.
        """
        self._mcps.delete(interaction_id, workflow_id, mcp_id)
        try:
            interaction = self._interactions.get(interaction_id)
        except NotFoundError:
            return
        if interaction.workflow_id != workflow_id:
            return
        refs = interaction.workflow.available_mcp_refs
        kept = [ref for ref in refs if ref != mcp_id]
        if len(kept) == len(refs):
            return
        interaction.workflow.available_mcp_refs = kept
        try:
            self._interactions.update(interaction)
        except StateStoreError:
            self._log.error(
                "Error while removing mcp ref %s from interaction %s",
                mcp_id,
                interaction_id,
                exc_info=True,
            )
            raise
        self._log.info("Removed mcp ref %s from workflow %s", mcp_id, workflow_id)

"""Key-building helpers (pure functions).

Every store key is assembled here and nowhere else:

==============  =================================================================
Interaction     ``interaction:{iid}``
MCP             ``interaction:{iid}:workflow:{wid}:mcp:{mid}``
Step            ``interaction:{iid}:workflow:{wid}:execution:{eid}:step:{sid}``
==============  =================================================================

Each id is percent-encoded before assembly, so ordinary ids (uuids, slugs)
appear verbatim while an id containing ``:`` or a glob metacharacter can
neither collide with another entity's key nor widen a scan pattern.
"""

from __future__ import annotations

from urllib.parse import quote

from interaction_store.exceptions import InvalidKeyError

INTERACTION = "interaction"
WORKFLOW = "workflow"
EXECUTION = "execution"
MCP = "mcp"
STEP = "step"


def _segment(value: str) -> str:
    if not value:
        raise InvalidKeyError(value)
    return quote(value, safe="")


def entity_key(
    kind: str,
    entity_id: str,
    *,
    interaction_id: str | None = None,
    workflow_id: str | None = None,
    execution_id: str | None = None,
) -> str:
    """Build the key for *kind* / *entity_id* under its ancestor path.

    ``interaction:{iid}[:workflow:{wid}[:execution:{eid}]]:{kind}:{id}``;
    an interaction itself has no ancestors.
    """
    if kind == INTERACTION:
        return f"{INTERACTION}:{_segment(entity_id)}"
    if interaction_id is None:
        raise InvalidKeyError("interaction_id")
    parts = [INTERACTION, _segment(interaction_id)]
    if workflow_id is not None:
        parts += [WORKFLOW, _segment(workflow_id)]
        if execution_id is not None:
            parts += [EXECUTION, _segment(execution_id)]
    parts += [kind, _segment(entity_id)]
    return ":".join(parts)


def interaction_key(interaction_id: str) -> str:
    return entity_key(INTERACTION, interaction_id)


def mcp_key(interaction_id: str, workflow_id: str, mcp_id: str) -> str:
    return entity_key(
        MCP, mcp_id, interaction_id=interaction_id, workflow_id=workflow_id
    )


def step_key(
    interaction_id: str, workflow_id: str, execution_id: str, step_id: str
) -> str:
    return entity_key(
        STEP,
        step_id,
        interaction_id=interaction_id,
        workflow_id=workflow_id,
        execution_id=execution_id,
    )


def step_scan_pattern(
    interaction_id: str, workflow_id: str, execution_id: str
) -> str:
    """Glob matching every step key stored under one execution graph."""
    return (
        f"{INTERACTION}:{_segment(interaction_id)}"
        f":{WORKFLOW}:{_segment(workflow_id)}"
        f":{EXECUTION}:{_segment(execution_id)}"
        f":{STEP}:*"
    )

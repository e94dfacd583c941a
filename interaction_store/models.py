"""Runtime state records for an orchestration session.

An :class:`Interaction` is the root aggregate.  It embeds its :class:`Plan`
and :class:`Workflow` (which in turn embeds one :class:`ExecutionGraph`) by
value.  :class:`Step` and :class:`MCP` records are stored under their own
keys and linked back into the Interaction by id.

All records serialise with camelCase field names (``stepId``,
``availableMcpRefs``, ...) and accept either camelCase or snake_case on
input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Status(str, Enum):
    """Lifecycle status of a step (and of its mirrored node)."""

    PENDING = "pending"
    RUNNING = "running"
    STOP = "stop"
    ERROR = "error"
    SUCCESS = "success"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[Status] = frozenset(
    {Status.STOP, Status.ERROR, Status.SUCCESS}
)


class EdgeType(str, Enum):
    DEPENDS_ON = "depends_on"
    TRIGGERS = "triggers"
    DEPENDS_ON_ALL = "depends_on_all"
    DEPENDS_ON_ANY = "depends_on_any"


class ToolCategory(str, Enum):
    LOGS = "logs"
    DATABASES = "databases"
    DOCS = "docs"
    METRICS = "metrics"
    SYSTEMS = "systems"
    INCIDENTS = "incidents"
    PLANNER = "planner"


class ArtifactType(str, Enum):
    LOG_SNIPPET = "log_snippet"
    QUERY_RESULT = "query_result"
    DOC_SUMMARY = "doc_summary"
    ROOT_CAUSE = "root_cause"
    REMEDIATION = "remediation"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class RuntimeModel(BaseModel):
    """Shared serialisation settings: camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class VersionedModel(RuntimeModel):
    """A record stored under its own key.

    ``version`` is the optimistic-concurrency token: a write of an existing
    record is accepted only when the caller's version equals the stored one.
    """

    id: str = ""
    version: int = 0


# ---------------------------------------------------------------------------
# Context, query, answer
# ---------------------------------------------------------------------------


class Context(RuntimeModel):
    """Working state handed into or produced by a step."""

    id: str = ""
    content: str = ""
    cognitive: dict[str, str] = Field(default_factory=dict)  # ephemeral reasoning
    workspace: dict[str, str] = Field(default_factory=dict)  # paths, files, endpoints
    knowledge: dict[str, str] = Field(default_factory=dict)  # persistent facts
    logs: dict[str, str] = Field(default_factory=dict)
    metrics: dict[str, str] = Field(default_factory=dict)
    systems: dict[str, str] = Field(default_factory=dict)
    incidents: dict[str, str] = Field(default_factory=dict)


class Query(RuntimeModel):
    id: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime | None = None


class Answer(RuntimeModel):
    id: str = ""
    content: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime | None = None


# ---------------------------------------------------------------------------
# MCP & tooling
# ---------------------------------------------------------------------------


class Tool(RuntimeModel):
    """An executable capability exposed by an MCP."""

    name: str
    description: str = ""
    category: ToolCategory | None = None
    inputs: dict[str, str] = Field(default_factory=dict)
    outputs: dict[str, str] = Field(default_factory=dict)


class MCP(VersionedModel):
    """A model capability provider (GitHub, file system, terminal, ...)."""

    name: str = ""
    description: str = ""
    tools: list[Tool] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)


class McpToolRef(RuntimeModel):
    mcp_id: str
    tool_name: str
    category: ToolCategory | None = None


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


class Agent(RuntimeModel):
    id: str = ""
    name: str = ""
    description: str = ""
    model: str = ""
    role: str = ""  # planner, coder, tester, ...
    system_prompt: str = ""
    user_prompt: str = ""
    capabilities: list[str] = Field(default_factory=list)
    parameters: dict[str, str] = Field(default_factory=dict)
    last_updated_at: datetime | None = None


class AgentRef(RuntimeModel):
    id: str
    role: str = ""


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class Artifact(RuntimeModel):
    id: str = ""
    name: str = ""
    path: str = ""
    type: ArtifactType | None = None
    content: dict[str, str] = Field(default_factory=dict)
    created_by_step_id: str = ""
    created_at: datetime | None = None


class Message(RuntimeModel):
    """One entry of the interaction's message trace."""

    id: str = ""
    role: str = ""  # user, planner, agent, ...
    content: str = ""
    step_id: str = ""
    agent_id: str = ""
    sequence: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime | None = None


class McpToolInvocation(RuntimeModel):
    """A call of one MCP tool by an agent during a step."""

    id: str = ""
    mcp_id: str = ""
    tool_name: str = ""
    category: ToolCategory | None = None
    input: dict[str, str] = Field(default_factory=dict)
    output: dict[str, str] = Field(default_factory=dict)
    status: Status = Status.PENDING
    error: str = ""
    agent_id: str = ""
    step_id: str = ""
    started_at: datetime | None = None
    finished_at: datetime | None = None


class Step(VersionedModel):
    """One independently stored unit of work.

    Authoritative for its own status and timestamps; the matching
    :class:`ExecutionNode` is a derived copy.
    """

    sequence: int = 0
    name: str = ""
    status: Status = Status.PENDING
    error: str = ""
    agent: Agent | None = None
    available_tool_refs: list[McpToolRef] = Field(default_factory=list)
    input_context: Context | None = None
    output_context: Context | None = None
    query: Query | None = None
    answer: Answer | None = None
    result: Context | None = None
    artifacts: list[Artifact] = Field(default_factory=list)
    tool_invocations: list[McpToolInvocation] = Field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    input_step_id: str = ""


class Edge(RuntimeModel):
    from_step_id: str
    to_step_id: str
    type: EdgeType = EdgeType.DEPENDS_ON


class ExecutionNode(RuntimeModel):
    """Read-optimised mirror of a step's identity and status."""

    step_id: str
    name: str = ""
    status: Status = Status.PENDING


class ExecutionGraph(RuntimeModel):
    id: str = ""
    nodes: list[ExecutionNode] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    version: int = 0


class Workflow(RuntimeModel):
    """Plan-to-execution mapping; owns exactly one execution graph."""

    id: str = ""
    name: str = ""
    description: str = ""
    agent_refs: list[AgentRef] = Field(default_factory=list)
    available_mcp_refs: list[str] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)
    mode: str = ""
    execution_graph: ExecutionGraph | None = None


class Plan(RuntimeModel):
    """Planning output; everything beyond ``id`` is kept as-is."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str = ""


class Interaction(VersionedModel):
    """Root aggregate: one query-to-answer orchestration session."""

    base_query: Query | None = None
    base_context: Context | None = None
    plan: Plan | None = None
    workflow: Workflow | None = None
    current_step: str = ""
    step_ids: list[str] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    summary: str = ""
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def workflow_id(self) -> str | None:
        return self.workflow.id if self.workflow is not None else None

    @property
    def execution_graph_id(self) -> str | None:
        if self.workflow is None or self.workflow.execution_graph is None:
            return None
        return self.workflow.execution_graph.id

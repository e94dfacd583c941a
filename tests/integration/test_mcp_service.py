"""Integration tests for McpService and the workflow's MCP refs."""

from __future__ import annotations

import pytest

from interaction_store.exceptions import (
    AlreadyExistsError,
    IdentityMismatchError,
    LinkageMismatchError,
    NotFoundError,
    VersionConflictError,
)
from interaction_store.models import MCP, Tool, ToolCategory
from interaction_store.storage import keys


def _refs(services) -> list[str]:
    return services.interactions.get("I1").workflow.available_mcp_refs


def _set_refs(services, refs: list[str]) -> None:
    interaction = services.interactions.get("I1")
    interaction.workflow.available_mcp_refs = refs
    services.interactions.replace("I1", interaction)


class TestCreate:
    def test_stores_mcp_and_appends_ref(self, services, seeded, kv) -> None:
        created = services.mcps.create("I1", "W1", MCP(id="M1", name="loki"))
        assert created.version == 1
        assert keys.mcp_key("I1", "W1", "M1") in kv
        assert _refs(services) == ["M1"]

    def test_generates_id(self, services, seeded) -> None:
        created = services.mcps.create("I1", "W1", MCP(name="grafana"))
        assert created.id
        assert _refs(services) == [created.id]

    def test_refs_not_deduplicated(self, services, seeded) -> None:
        _set_refs(services, ["M1"])
        services.mcps.create("I1", "W1", MCP(id="M1"))
        assert _refs(services) == ["M1", "M1"]

    def test_existing_mcp_rejected(self, services, seeded) -> None:
        mcp = services.mcps.create("I1", "W1", MCP(id="M1", name="loki"))
        mcp.description = "log search"
        services.mcps.update("I1", "W1", "M1", mcp)

        with pytest.raises(AlreadyExistsError):
            services.mcps.create("I1", "W1", MCP(id="M1", name="other"))

        stored = services.mcps.get("I1", "W1", "M1")
        assert (stored.name, stored.version) == ("loki", 2)
        assert _refs(services) == ["M1"]

    def test_stale_copy_rejected_after_failed_recreate(self, services, seeded) -> None:
        stale = services.mcps.create("I1", "W1", MCP(id="M1"))
        services.mcps.add_tool("I1", "W1", "M1", Tool(name="query_logs"))
        with pytest.raises(AlreadyExistsError):
            services.mcps.create("I1", "W1", MCP(id="M1"))
        with pytest.raises(VersionConflictError):
            services.mcps.update("I1", "W1", "M1", stale)

    def test_other_workflow_rejected_before_write(self, services, seeded, kv) -> None:
        with pytest.raises(LinkageMismatchError):
            services.mcps.create("I1", "W2", MCP(id="M1"))
        assert keys.mcp_key("I1", "W2", "M1") not in kv
        assert _refs(services) == []

    def test_missing_interaction(self, services) -> None:
        with pytest.raises(NotFoundError):
            services.mcps.create("I1", "W1", MCP(id="M1"))


class TestUpdate:
    def test_update_and_get(self, services, seeded) -> None:
        mcp = services.mcps.create("I1", "W1", MCP(id="M1", name="loki"))
        mcp.description = "log search"
        services.mcps.update("I1", "W1", "M1", mcp)
        assert services.mcps.get("I1", "W1", "M1").description == "log search"

    def test_identity_mismatch(self, services, seeded) -> None:
        mcp = services.mcps.create("I1", "W1", MCP(id="M1"))
        with pytest.raises(IdentityMismatchError):
            services.mcps.update("I1", "W1", "M2", mcp)

    def test_stale_update_after_add_tool(self, services, seeded) -> None:
        mcp = services.mcps.create("I1", "W1", MCP(id="M1"))
        services.mcps.add_tool("I1", "W1", "M1", Tool(name="query_logs"))
        with pytest.raises(VersionConflictError):
            services.mcps.update("I1", "W1", "M1", mcp)


class TestAddTool:
    def test_appends_without_dedup(self, services, seeded) -> None:
        services.mcps.create("I1", "W1", MCP(id="M1"))
        tool = Tool(name="query_logs", category=ToolCategory.LOGS)
        services.mcps.add_tool("I1", "W1", "M1", tool)
        updated = services.mcps.add_tool("I1", "W1", "M1", tool)
        assert [t.name for t in updated.tools] == ["query_logs", "query_logs"]
        assert updated.version == 3

    def test_missing_mcp(self, services, seeded) -> None:
        with pytest.raises(NotFoundError):
            services.mcps.add_tool("I1", "W1", "M404", Tool(name="x"))


class TestDelete:
    def test_removes_every_ref_occurrence(self, services, seeded, kv) -> None:
        services.mcps.create("I1", "W1", MCP(id="M1"))
        services.mcps.create("I1", "W1", MCP(id="M2"))
        _set_refs(services, ["M1", "M2", "M1"])
        services.mcps.delete("I1", "W1", "M1")
        assert keys.mcp_key("I1", "W1", "M1") not in kv
        assert _refs(services) == ["M2"]

    def test_idempotent(self, services, seeded) -> None:
        services.mcps.delete("I1", "W1", "M404")
        services.mcps.delete("I1", "W1", "M404")
        assert services.interactions.get("I1").version == 1

    def test_orphaned_mcp_deleted(self, services, kv) -> None:
        services.mcp_repo.save("I1", "W1", MCP(id="M1"))
        services.mcps.delete("I1", "W1", "M1")
        assert kv == {}

    def test_other_workflow_refs_untouched(self, services, seeded) -> None:
        services.mcps.create("I1", "W1", MCP(id="M1"))
        services.mcp_repo.save("I1", "W2", MCP(id="M1"))
        services.mcps.delete("I1", "W2", "M1")
        assert _refs(services) == ["M1"]

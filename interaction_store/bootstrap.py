"""Wires settings to backends, repositories and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from interaction_store.gate import ConsistencyGate
from interaction_store.mirror import MirrorSync
from interaction_store.repos import InteractionRepo, McpRepo, StepRepo
from interaction_store.services import InteractionService, McpService, StepService
from interaction_store.storage.backend import RedisBackend

if TYPE_CHECKING:
    from interaction_store.config import Settings
    from interaction_store.storage.backend import KeyValueBackend

logger = logging.getLogger(__name__)


@dataclass
class Services:
    interactions: InteractionService
    mcps: McpService
    steps: StepService
    interaction_repo: InteractionRepo
    mcp_repo: McpRepo
    step_repo: StepRepo

    def ping(self) -> dict[str, bool]:
        return {
            "interactions": self.interaction_repo.ping(),
            "mcps": self.mcp_repo.ping(),
            "steps": self.step_repo.ping(),
        }

    def close(self) -> None:
        for repo in (self.interaction_repo, self.mcp_repo, self.step_repo):
            repo.close()


def assemble(backend_factory: Callable[[], KeyValueBackend]) -> Services:
    """Build the service graph, calling *backend_factory* once per repository.

    The InteractionRepo is shared by the gate, the mirror and the services;
    MCP and Step records each get their own backend.
    """
    interaction_repo = InteractionRepo(backend_factory())
    mcp_repo = McpRepo(backend_factory())
    step_repo = StepRepo(backend_factory())

    gate = ConsistencyGate(interaction_repo)
    mirror = MirrorSync(interaction_repo, step_repo)
    return Services(
        interactions=InteractionService(interaction_repo, gate),
        mcps=McpService(mcp_repo, interaction_repo, gate),
        steps=StepService(step_repo, gate, mirror),
        interaction_repo=interaction_repo,
        mcp_repo=mcp_repo,
        step_repo=step_repo,
    )


def build_services(settings: Settings) -> Services:
    logger.info("Connecting interaction store to %s", settings.redis_url)
    return assemble(
        lambda: RedisBackend.from_url(
            settings.redis_url, socket_timeout=settings.redis_socket_timeout
        )
    )

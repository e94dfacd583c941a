"""Aggregate services: the operation surface over the stored records."""

from interaction_store.services.interaction import InteractionService, ReplaceOutcome
from interaction_store.services.mcp import McpService
from interaction_store.services.step import StepService

__all__ = [
    "InteractionService",
    "McpService",
    "ReplaceOutcome",
    "StepService",
]

"""Key-value persistence: key space, backend protocol, typed entity store."""

from interaction_store.storage.backend import KeyValueBackend, RedisBackend
from interaction_store.storage.entity_store import EntityStore
from interaction_store.storage.keys import (
    entity_key,
    interaction_key,
    mcp_key,
    step_key,
    step_scan_pattern,
)

__all__ = [
    "EntityStore",
    "KeyValueBackend",
    "RedisBackend",
    "entity_key",
    "interaction_key",
    "mcp_key",
    "step_key",
    "step_scan_pattern",
]

"""Shared test fixtures for the interaction store."""

from __future__ import annotations

import fnmatch
import threading
from collections.abc import Callable, Iterator

import pytest

from interaction_store.bootstrap import Services, assemble
from interaction_store.models import ExecutionGraph, Interaction, Query, Workflow


class InMemoryBackend:
    """Dict-backed KeyValueBackend.

    Several instances may share one ``data`` dict, the way separate redis
    connections share one server.
    """

    def __init__(self, data: dict[str, bytes] | None = None) -> None:
        self.data = data if data is not None else {}
        self._lock = threading.Lock()
        self.closed = False
        self.healthy = True

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def scan_keys(self, pattern: str) -> Iterator[str]:
        return iter([k for k in list(self.data) if fnmatch.fnmatchcase(k, pattern)])

    def set_if(self, key: str, value: bytes, check: Callable[[bytes | None], None]) -> None:
        with self._lock:
            check(self.data.get(key))
            self.data[key] = value

    def ping(self) -> bool:
        return self.healthy

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def kv() -> dict[str, bytes]:
    """The raw key space shared by every backend of one test."""
    return {}


@pytest.fixture
def backends() -> list[InMemoryBackend]:
    """Every backend handed out by the `services` fixture, in creation order."""
    return []


@pytest.fixture
def services(kv, backends) -> Services:
    def _factory() -> InMemoryBackend:
        backend = InMemoryBackend(kv)
        backends.append(backend)
        return backend

    return assemble(_factory)


def _make_interaction(
    interaction_id: str = "I1",
    workflow_id: str | None = "W1",
    execution_id: str | None = "G1",
) -> Interaction:
    workflow = None
    if workflow_id is not None:
        graph = ExecutionGraph(id=execution_id) if execution_id is not None else None
        workflow = Workflow(id=workflow_id, name="incident triage", execution_graph=graph)
    return Interaction(
        id=interaction_id,
        base_query=Query(content="why is checkout failing?"),
        workflow=workflow,
    )


@pytest.fixture
def seeded(services) -> Interaction:
    """Interaction I1 holding workflow W1 with execution graph G1."""
    return services.interactions.create(_make_interaction())


@pytest.fixture
def make_interaction() -> Callable[..., Interaction]:
    return _make_interaction


@pytest.fixture
def backend(kv) -> InMemoryBackend:
    """A standalone backend over the test's key space."""
    return InMemoryBackend(kv)

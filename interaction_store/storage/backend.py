"""Key-value backend abstraction.

The store core talks to a :class:`KeyValueBackend`; production wires a
:class:`RedisBackend`, tests substitute an in-memory implementation.  All
calls are blocking.  Backend failures surface as
:class:`~interaction_store.exceptions.StoreError`; nothing here retries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import redis

from interaction_store.exceptions import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

log = logging.getLogger(__name__)

_SCAN_COUNT: int = 500


@runtime_checkable
class KeyValueBackend(Protocol):
    """Minimal blocking key-value interface used by :class:`EntityStore`."""

    def get(self, key: str) -> bytes | None:
        """Return the value at *key*, or ``None`` if absent."""
        ...

    def set(self, key: str, value: bytes) -> None:
        """Overwrite *key* with *value*."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*; absent keys are ignored."""
        ...

    def scan_keys(self, pattern: str) -> Iterator[str]:
        """Yield keys matching the glob *pattern*."""
        ...

    def set_if(
        self,
        key: str,
        value: bytes,
        check: Callable[[bytes | None], None],
    ) -> None:
        """Atomically run *check* on the stored value, then write *value*.

        *check* receives the bytes currently stored under *key* (or ``None``)
        and aborts the write by raising.  No other writer may change *key*
        between the check and the write.
        """
        ...

    def ping(self) -> bool:
        """Return ``True`` if the backend is reachable."""
        ...

    def close(self) -> None:
        """Release the underlying connection(s)."""
        ...


class RedisBackend:
    """:class:`KeyValueBackend` over a synchronous ``redis.Redis`` client.

    ``set_if`` uses WATCH/MULTI: a concurrent write between the check and
    EXEC aborts the transaction, which redis-py replays, so *check* always
    runs against the value the write will replace.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> RedisBackend:
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def get(self, key: str) -> bytes | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise StoreError("get", key, str(exc)) from exc

    def set(self, key: str, value: bytes) -> None:
        try:
            self._client.set(key, value)
        except redis.RedisError as exc:
            raise StoreError("set", key, str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise StoreError("delete", key, str(exc)) from exc

    def scan_keys(self, pattern: str) -> Iterator[str]:
        try:
            for key in self._client.scan_iter(match=pattern, count=_SCAN_COUNT):
                yield key.decode() if isinstance(key, bytes) else key
        except redis.RedisError as exc:
            raise StoreError("scan", pattern, str(exc)) from exc

    def set_if(
        self,
        key: str,
        value: bytes,
        check: Callable[[bytes | None], None],
    ) -> None:
        def _txn(pipe: redis.client.Pipeline) -> None:
            check(pipe.get(key))
            pipe.multi()
            pipe.set(key, value)

        try:
            self._client.transaction(_txn, key)
        except redis.RedisError as exc:
            raise StoreError("set_if", key, str(exc)) from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            log.warning("Redis ping failed", exc_info=True)
            return False

    def close(self) -> None:
        try:
            self._client.close()
        except redis.RedisError:
            log.error("Error while closing redis connection", exc_info=True)

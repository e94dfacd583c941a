"""Typed get / set / delete of one entity kind over a key-value backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from pydantic import ValidationError

from interaction_store.exceptions import (
    AlreadyExistsError,
    DecodeError,
    NotFoundError,
    VersionConflictError,
)
from interaction_store.models import VersionedModel

if TYPE_CHECKING:
    from interaction_store.storage.backend import KeyValueBackend

log = logging.getLogger(__name__)

T = TypeVar("T", bound=VersionedModel)


class EntityStore(Generic[T]):
    """One serialised entity per key.

    ``set`` is a full overwrite.  ``compare_and_set`` is the only conditional
    write: it succeeds when the stored record carries *expected_version*.
    No locking is provided beyond that.
    """

    def __init__(self, backend: KeyValueBackend, model: type[T]) -> None:
        self._backend = backend
        self._model = model

    @property
    def model(self) -> type[T]:
        return self._model

    def _decode(self, key: str, raw: bytes | str) -> T:
        try:
            return self._model.model_validate_json(raw)
        except ValidationError as exc:
            log.error("Stored %s under %s is corrupt", self._model.__name__, key)
            raise DecodeError(key, f"{exc.error_count()} validation error(s)") from exc

    @staticmethod
    def _encode(value: T) -> bytes:
        return value.to_json().encode()

    def get(self, key: str) -> T:
        raw = self._backend.get(key)
        if raw is None:
            raise NotFoundError(key)
        return self._decode(key, raw)

    def set(self, key: str, value: T) -> None:
        self._backend.set(key, self._encode(value))

    def create(self, key: str, value: T) -> None:
        """Write *value* only if nothing is stored under *key*."""

        def _check(raw: bytes | None) -> None:
            if raw is not None:
                raise AlreadyExistsError(key)

        self._backend.set_if(key, self._encode(value), _check)

    def delete(self, key: str) -> None:
        self._backend.delete(key)

    def compare_and_set(self, key: str, value: T, expected_version: int) -> None:
        """Write *value* only if the stored record has *expected_version*.

        Raises:
            NotFoundError: Nothing is stored under *key*.
            DecodeError: The stored record is unreadable.
            VersionConflictError: The stored version differs.
        """

        def _check(raw: bytes | None) -> None:
            if raw is None:
                raise NotFoundError(key)
            current = self._decode(key, raw)
            if current.version != expected_version:
                raise VersionConflictError(key, expected_version, current.version)

        self._backend.set_if(key, self._encode(value), _check)

    def scan(self, pattern: str) -> list[tuple[str, T]]:
        """Return ``(key, entity)`` for every stored key matching *pattern*.

        Keys that vanish between the scan and the read are skipped.
        """
        found: list[tuple[str, T]] = []
        for key in self._backend.scan_keys(pattern):
            raw = self._backend.get(key)
            if raw is None:
                continue
            found.append((key, self._decode(key, raw)))
        return found

    def ping(self) -> bool:
        return self._backend.ping()

    def close(self) -> None:
        self._backend.close()

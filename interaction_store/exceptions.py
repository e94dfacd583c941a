"""Exception hierarchy for the interaction store.

All failures inherit from ``StateStoreError`` so the HTTP boundary can map
them with a single ``except StateStoreError``.  Nothing in the core retries
or recovers locally; every error reaches the caller as raised.
"""

from __future__ import annotations


class StateStoreError(Exception):
    """Base exception for all interaction-store failures."""

    __slots__ = ()


class NotFoundError(StateStoreError):
    """Raised when no record is stored under *key*."""

    __slots__ = ("key",)

    def __init__(self, key: str) -> None:
        super().__init__(f"No record stored under {key!r}")
        self.key = key


class DecodeError(StateStoreError):
    """Raised when the bytes stored under *key* are not a valid entity.

    Treated as data corruption: the record is left untouched.
    """

    __slots__ = ("detail", "key")

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Record under {key!r} cannot be decoded: {detail}")
        self.key = key
        self.detail = detail


class StoreError(StateStoreError):
    """Raised when the key-value backend is unreachable or times out."""

    __slots__ = ("key", "operation")

    def __init__(self, operation: str, key: str = "", detail: str = "") -> None:
        msg = f"Backend {operation} failed"
        if key:
            msg += f" for {key!r}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.operation = operation
        self.key = key


class InvalidKeyError(StateStoreError, ValueError):
    """Raised when a key segment is empty."""

    __slots__ = ("segment",)

    def __init__(self, segment: str) -> None:
        super().__init__(f"Key segment {segment!r} must be a non-empty id")
        self.segment = segment


class IdentityMismatchError(StateStoreError):
    """Raised when the addressed id differs from the id inside the payload.

    Attributes
    ----------
    kind : str
        Entity kind being mutated (``"step"``, ``"plan"``, ...).
    path_id : str
        Id taken from the operation's address.
    payload_id : str
        Id embedded in the submitted entity.
    """

    __slots__ = ("kind", "path_id", "payload_id")

    def __init__(self, kind: str, path_id: str, payload_id: str) -> None:
        super().__init__(
            f"{kind} id mismatch: addressed {path_id!r}, payload carries {payload_id!r}"
        )
        self.kind = kind
        self.path_id = path_id
        self.payload_id = payload_id


class LinkageMismatchError(StateStoreError):
    """Raised when a claimed workflow / execution-graph ancestry is stale.

    ``expected`` holds the ids the caller addressed, ``actual`` the ids
    currently stored on the Interaction.
    """

    __slots__ = ("actual", "expected", "interaction_id")

    def __init__(
        self,
        interaction_id: str,
        expected: dict[str, str | None],
        actual: dict[str, str | None],
    ) -> None:
        super().__init__(
            f"Interaction {interaction_id!r} linkage mismatch: "
            f"addressed {expected}, stored {actual}"
        )
        self.interaction_id = interaction_id
        self.expected = expected
        self.actual = actual


class AlreadyExistsError(StateStoreError):
    """Raised when creating a record under a key that is already taken."""

    __slots__ = ("key",)

    def __init__(self, key: str) -> None:
        super().__init__(f"A record already exists under {key!r}")
        self.key = key


class VersionConflictError(StateStoreError):
    """Raised when a conditional write finds a different stored version."""

    __slots__ = ("actual", "expected", "key")

    def __init__(self, key: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Version conflict on {key!r}: expected {expected}, stored {actual}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual

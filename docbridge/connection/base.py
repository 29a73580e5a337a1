"""Connection interface for search-engine I/O.

The Manager only stages writes and drives the batch lifecycle; everything that
touches the network lives behind this protocol.  Writes accumulate in a bulk
batch until ``commit`` sends them in one request::

    connection.bulk("index", "product", {"_id": "1", "title": "Lamp"})
    connection.bulk("delete", "product", {"_id": "2"})
    connection.commit()   # one bulk round-trip, then refresh

Storage type ``t`` lives in the index ``{index_prefix}-{t}`` (or ``t`` when no
prefix is configured).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from loguru import logger

BULK_OPERATIONS = ("index", "create", "update", "delete")


class BulkCommitError(RuntimeError):
    """Raised when a bulk request reports failed items.

    ``errors`` holds the failed response items as returned by the engine.
    """

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        self.errors = errors
        super().__init__(f"Bulk commit failed for {len(errors)} item(s)")


@runtime_checkable
class Connection(Protocol):
    """Protocol for staging bulk writes and controlling the index lifecycle."""

    def bulk(self, operation: str, storage_type: str, payload: dict[str, Any]) -> None:
        """Stage a write.  ``operation`` is one of ``BULK_OPERATIONS``."""
        ...

    def commit(self) -> None:
        """Send the pending batch.  Raises ``BulkCommitError`` on item failures."""
        ...

    def flush(self) -> None:
        """Flush the indices to durable storage."""
        ...

    def refresh(self) -> None:
        """Make recent writes visible to reads."""
        ...

    def get_document(self, storage_type: str, document_id: str) -> dict[str, Any] | None:
        """Fetch a raw hit by id, or ``None`` if not found."""
        ...

    def create_index(self, storage_type: str, mapping: dict[str, Any]) -> None:
        """Create the index for a storage type with the given mapping body."""
        ...

    def drop_index(self, storage_type: str) -> None:
        """Delete the index for a storage type.  No-op if not found."""
        ...


class BulkConnection(ABC):
    """Shared bulk batching for Connection implementations.

    Subclasses implement ``_send`` (one bulk request) and the index operations;
    batching, auto-commit and error reporting live here.
    """

    def __init__(
        self,
        *,
        index_prefix: str | None = None,
        bulk_commit_size: int = 100,
        refresh_on_commit: bool = True,
    ) -> None:
        if bulk_commit_size < 1:
            msg = f"bulk_commit_size must be positive, got {bulk_commit_size}"
            raise ValueError(msg)
        self._index_prefix = index_prefix
        self._bulk_commit_size = bulk_commit_size
        self._refresh_on_commit = refresh_on_commit
        self._actions: list[dict[str, Any]] = []
        self._pending = 0

    def index_name(self, storage_type: str) -> str:
        if self._index_prefix:
            return f"{self._index_prefix}-{storage_type}"
        return storage_type

    @property
    def pending(self) -> int:
        """Number of staged operations not yet committed."""
        return self._pending

    # -- Batch -----------------------------------------------------------------

    def bulk(self, operation: str, storage_type: str, payload: dict[str, Any]) -> None:
        self._actions.extend(build_bulk_actions(operation, self.index_name(storage_type), payload))
        self._pending += 1
        logger.debug("Connection: staged {} on {} ({} pending)", operation, storage_type, self._pending)
        if self._pending >= self._bulk_commit_size:
            self.commit()

    def commit(self) -> None:
        if not self._actions:
            return
        count = self._pending
        # Transport failures leave the batch staged so commit() can be retried.
        errors = self._send(list(self._actions))
        self._actions, self._pending = [], 0
        logger.info("Connection: committed {} bulk operation(s)", count)
        if self._refresh_on_commit:
            self.refresh()
        if errors:
            logger.error("Connection: {} of {} bulk operation(s) failed", len(errors), count)
            raise BulkCommitError(errors)

    @abstractmethod
    def _send(self, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Send one bulk request and return the failed items."""


def build_bulk_actions(operation: str, index: str, payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Translate a staged write into bulk body lines.

    ``_id`` is moved from the payload into the action metadata.  ``update``
    wraps the payload as a partial ``doc``; ``delete`` has no body line.
    """
    if operation not in BULK_OPERATIONS:
        msg = f"Wrong bulk operation '{operation}', expected one of: {', '.join(BULK_OPERATIONS)}"
        raise ValueError(msg)

    source = dict(payload)
    meta: dict[str, Any] = {"_index": index}
    document_id = source.pop("_id", None)
    if document_id is not None:
        meta["_id"] = document_id
    elif operation in ("update", "delete"):
        msg = f"Bulk '{operation}' requires an _id"
        raise ValueError(msg)

    if operation == "delete":
        return [{operation: meta}]
    if operation == "update":
        return [{operation: meta}, {"doc": source}]
    return [{operation: meta}, source]

"""In-memory connection.

Keeps indices as plain dicts inside the process::

    {index_name: {document_id: source}}

Applies bulk batches with the same item semantics as the search engine
(``create`` on an existing id and ``update`` on a missing id fail per item).
Useful for development and tests; nothing survives the process.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any

from loguru import logger

from docbridge.connection.base import BulkConnection


class MemoryConnection(BulkConnection):
    """Process-local implementation of the Connection protocol."""

    def __init__(
        self,
        *,
        index_prefix: str | None = None,
        bulk_commit_size: int = 100,
        refresh_on_commit: bool = True,
    ) -> None:
        super().__init__(
            index_prefix=index_prefix,
            bulk_commit_size=bulk_commit_size,
            refresh_on_commit=refresh_on_commit,
        )
        self._indices: dict[str, dict[str, dict[str, Any]]] = {}
        self._mappings: dict[str, dict[str, Any]] = {}

    # -- Batch -----------------------------------------------------------------

    def _send(self, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        errors: list[dict[str, Any]] = []
        lines = iter(actions)
        for action in lines:
            ((operation, meta),) = action.items()
            body = None if operation == "delete" else next(lines)
            error = self._apply(operation, meta, body)
            if error is not None:
                errors.append({operation: {**meta, **error}})
        return errors

    def _apply(self, operation: str, meta: dict[str, Any], body: dict[str, Any] | None) -> dict[str, Any] | None:
        index = self._indices.setdefault(meta["_index"], {})
        document_id = meta.get("_id") or uuid.uuid4().hex

        if operation == "delete":
            index.pop(document_id, None)
            return None
        if operation == "update":
            if document_id not in index:
                return _item_error(404, "document_missing_exception", f"[{document_id}]: document missing")
            _merge(index[document_id], copy.deepcopy(body["doc"]))
            return None
        if operation == "create" and document_id in index:
            return _item_error(409, "version_conflict_engine_exception", f"[{document_id}]: document already exists")
        index[document_id] = copy.deepcopy(body)
        return None

    def flush(self) -> None:
        logger.debug("MemoryConnection: flush (no-op)")

    def refresh(self) -> None:
        logger.debug("MemoryConnection: refresh (no-op)")

    # -- Read ------------------------------------------------------------------

    def get_document(self, storage_type: str, document_id: str) -> dict[str, Any] | None:
        index_name = self.index_name(storage_type)
        source = self._indices.get(index_name, {}).get(document_id)
        if source is None:
            return None
        return {"_index": index_name, "_id": document_id, "_source": copy.deepcopy(source)}

    def documents(self, storage_type: str) -> dict[str, dict[str, Any]]:
        """Return a snapshot of every stored source for a storage type, keyed by id."""
        return copy.deepcopy(self._indices.get(self.index_name(storage_type), {}))

    # -- Index lifecycle -------------------------------------------------------

    def create_index(self, storage_type: str, mapping: dict[str, Any]) -> None:
        index_name = self.index_name(storage_type)
        if index_name in self._mappings:
            msg = f"Index '{index_name}' already exists"
            raise ValueError(msg)
        self._mappings[index_name] = copy.deepcopy(mapping)
        self._indices.setdefault(index_name, {})

    def drop_index(self, storage_type: str) -> None:
        index_name = self.index_name(storage_type)
        self._mappings.pop(index_name, None)
        self._indices.pop(index_name, None)

    def get_index_mapping(self, storage_type: str) -> dict[str, Any] | None:
        mapping = self._mappings.get(self.index_name(storage_type))
        return copy.deepcopy(mapping) if mapping is not None else None


def _merge(target: dict[str, Any], partial: dict[str, Any]) -> None:
    """Merge a partial ``doc`` into *target*; nested objects merge key by key, lists are replaced."""
    for key, value in partial.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(current, value)
        else:
            target[key] = value


def _item_error(status: int, error_type: str, reason: str) -> dict[str, Any]:
    return {"status": status, "error": {"type": error_type, "reason": reason}}

"""Repository -- per-type document access bound to a Manager."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from docbridge.mapping.document import Document
    from docbridge.orm.manager import Manager


class Repository:
    """Reads and removes documents of one or more logical types.

    Created by ``Manager.get_repository``, which validates the type keys.
    """

    def __init__(self, manager: Manager, types: list[str]) -> None:
        self._manager = manager
        self._types = list(types)

    @property
    def manager(self) -> Manager:
        return self._manager

    @property
    def types(self) -> list[str]:
        return list(self._types)

    def _storage_types(self) -> list[str]:
        bundles = self._manager.bundles_mapping
        return [bundles[key].type for key in self._types]

    def find(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, searching bound types in order.

        Hits are built as the document class of the bound key they were found
        under, even when several keys share a storage type.
        """
        connection = self._manager.connection
        for key, storage_type in zip(self._types, self._storage_types(), strict=True):
            raw = connection.get_document(storage_type, document_id)
            if raw is not None:
                return self._manager.converter.convert_to_document(raw, key)
        return None

    def remove(self, document_id: str) -> None:
        """Stage deletion of *document_id* for the next commit.

        Only valid for a repository bound to a single type.
        """
        if len(self._types) != 1:
            msg = f"remove() needs a repository bound to exactly one type, got: {', '.join(self._types)}"
            raise ValueError(msg)
        (storage_type,) = self._storage_types()
        self._manager.connection.bulk("delete", storage_type, {"_id": document_id})
        logger.debug("Repository: staged delete of {} from '{}'", document_id, storage_type)

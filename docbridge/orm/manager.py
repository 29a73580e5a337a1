"""Document manager -- maps documents to index operations on a connection.

The Manager is the persistence facade applications talk to.  It coordinates
three collaborators it is handed at construction time:

- **Connection**: stages bulk writes and drives commit / flush / refresh
- **MetadataCollector**: source of the type and descriptor mappings
- **Converter**: document <-> wire payload (owned, built once)

The Manager never performs network I/O itself.  One Manager (and the bulk batch
of its connection) belongs to a single thread of control.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from loguru import logger

from docbridge.mapping.document import RepositoryDescriptor, class_namespace
from docbridge.mapping.metadata import check_overlaps
from docbridge.orm.repository import Repository
from docbridge.result.converter import Converter

if TYPE_CHECKING:
    from docbridge.connection.base import Connection
    from docbridge.mapping.document import Document
    from docbridge.mapping.metadata import MetadataCollector


class UndefinedRepositoryError(ValueError):
    """Raised when a repository is requested for an unknown type key."""

    def __init__(self, document_type: str, valid: list[str]) -> None:
        self.document_type = document_type
        self.valid = valid
        super().__init__(f"Undefined repository {document_type}, valid repositories are: {', '.join(valid)}.")


class DocumentNotMappedError(LookupError):
    """Raised when persisting a document whose class has no descriptor."""

    def __init__(self, document: object) -> None:
        super().__init__(f"No repository mapping for document class {class_namespace(type(document))}")


class Manager:
    """Persistence facade over a search-engine connection.

    The type and descriptor mappings are read-only for the Manager's lifetime.
    Descriptors sharing a class name are rejected with ``MappingConflictError``.
    """

    def __init__(
        self,
        connection: Connection,
        metadata_collector: MetadataCollector,
        types_mapping: Mapping[str, type[Document]],
        bundles_mapping: Mapping[str, RepositoryDescriptor],
    ) -> None:
        check_overlaps(bundles_mapping)
        self._connection = connection
        self._metadata_collector = metadata_collector
        self._types_mapping = MappingProxyType(dict(types_mapping))
        self._bundles_mapping = MappingProxyType(dict(bundles_mapping))
        self._converter = Converter(self._types_mapping, self._bundles_mapping)

    # -- Accessors -------------------------------------------------------------

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def metadata_collector(self) -> MetadataCollector:
        return self._metadata_collector

    @property
    def types_mapping(self) -> Mapping[str, type[Document]]:
        return self._types_mapping

    @property
    def bundles_mapping(self) -> Mapping[str, RepositoryDescriptor]:
        return self._bundles_mapping

    @property
    def converter(self) -> Converter:
        return self._converter

    # -- Repositories ----------------------------------------------------------

    def get_repository(self, document_type: str | list[str]) -> Repository:
        """Return a new repository bound to one or several type keys.

        Raises ``UndefinedRepositoryError`` naming the first unknown key.
        """
        types = [document_type] if isinstance(document_type, str) else list(document_type)
        for selected in types:
            self._check_repository_type(selected)
        return Repository(self, types)

    def _check_repository_type(self, document_type: str) -> None:
        if document_type not in self._bundles_mapping:
            raise UndefinedRepositoryError(document_type, list(self._bundles_mapping))

    # -- Persistence -----------------------------------------------------------

    def persist(self, document: Any) -> None:
        """Stage *document* for indexing on the next commit."""
        mapping = self.get_document_mapping(document)
        if mapping is None:
            raise DocumentNotMappedError(document)
        payload = self._converter.convert_to_array(document)
        self._connection.bulk("index", mapping.type, payload)
        logger.debug("Manager: staged {} for index '{}'", mapping.namespace, mapping.type)

    def commit(self) -> None:
        """Send the pending bulk batch."""
        self._connection.commit()

    def flush(self) -> None:
        self._connection.flush()

    def refresh(self) -> None:
        self._connection.refresh()

    # -- Lookup ----------------------------------------------------------------

    def get_document_mapping(self, document: Any) -> RepositoryDescriptor | None:
        """Return the descriptor for *document*, or ``None`` if it is not mapped.

        The first descriptor whose namespace or proxy namespace equals the
        document's concrete class name is returned.  A ``document_type`` tag on
        the class is tried first as a direct key, but only counts when that
        descriptor also names the class.
        """
        namespace = class_namespace(type(document))

        tag = getattr(type(document), "document_type", None)
        if isinstance(tag, str):
            tagged = self._bundles_mapping.get(tag)
            if tagged is not None and tagged.matches(namespace):
                return tagged

        for descriptor in self._bundles_mapping.values():
            if descriptor.matches(namespace):
                return descriptor
        return None

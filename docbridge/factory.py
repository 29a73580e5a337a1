"""Builders wiring settings -> connection -> metadata collector -> Manager."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from loguru import logger

from docbridge.connection.memory import MemoryConnection
from docbridge.mapping.metadata import MetadataCollector
from docbridge.orm.manager import Manager
from docbridge.settings import DocbridgeSettings, get_settings

if TYPE_CHECKING:
    from docbridge.connection.base import Connection
    from docbridge.mapping.document import Document


def create_connection(settings: DocbridgeSettings | None = None) -> Connection:
    """Create the connection selected by ``settings.connection``."""
    settings = settings or get_settings()

    if settings.connection == "opensearch":
        # Imported lazily so the memory backend works without a reachable cluster.
        from docbridge.connection.opensearch import OpenSearchConnection, create_client

        client = create_client(
            hosts=settings.hosts,
            username=settings.username,
            password=settings.password.get_secret_value() if settings.password else None,
            verify_certs=settings.verify_certs,
        )
        logger.info("Connecting to OpenSearch at {}", ", ".join(settings.hosts))
        return OpenSearchConnection(
            client,
            index_prefix=settings.index_prefix,
            bulk_commit_size=settings.bulk_commit_size,
            refresh_on_commit=settings.refresh_on_commit,
        )

    return MemoryConnection(
        index_prefix=settings.index_prefix,
        bulk_commit_size=settings.bulk_commit_size,
        refresh_on_commit=settings.refresh_on_commit,
    )


def create_manager(
    documents: Iterable[type[Document]] | MetadataCollector,
    settings: DocbridgeSettings | None = None,
    *,
    connection: Connection | None = None,
) -> Manager:
    """Build a Manager for *documents*.

    *documents* is either an iterable of Document classes or an already
    populated ``MetadataCollector``.  When *connection* is omitted one is
    created from *settings*.
    """
    if isinstance(documents, MetadataCollector):
        collector = documents
    else:
        collector = MetadataCollector().collect(*documents)

    if connection is None:
        connection = create_connection(settings)

    return Manager(
        connection=connection,
        metadata_collector=collector,
        types_mapping=collector.types_mapping,
        bundles_mapping=collector.bundles_mapping,
    )

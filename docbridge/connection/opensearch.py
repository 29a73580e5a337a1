"""OpenSearch connection.

Wraps a synchronous ``opensearchpy.OpenSearch`` client.  Each storage type maps
to its own index::

    {index_prefix}-{storage_type}

Bulk batches are sent with a single ``_bulk`` request; ``flush`` and
``refresh`` target every index under the prefix (``{index_prefix}-*``), or
``_all`` when no prefix is configured.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from opensearchpy import NotFoundError, OpenSearch

from docbridge.connection.base import BulkConnection


def create_client(
    hosts: list[str],
    username: str | None = None,
    password: str | None = None,
    verify_certs: bool = True,
) -> OpenSearch:
    """Create an OpenSearch client.

    Args:
        hosts: Node URLs, e.g. ``["https://localhost:9200"]``.
        username: Basic-auth user (optional).
        password: Basic-auth password (optional, used with *username*).
        verify_certs: Verify TLS certificates.  Disable only for local clusters
            with self-signed certificates.
    """
    http_auth = (username, password or "") if username else None
    return OpenSearch(
        hosts=hosts,
        http_auth=http_auth,
        verify_certs=verify_certs,
        ssl_show_warn=verify_certs,
    )


class OpenSearchConnection(BulkConnection):
    """OpenSearch implementation of the Connection protocol."""

    def __init__(
        self,
        client: OpenSearch,
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
        self._client = client

    @property
    def client(self) -> OpenSearch:
        return self._client

    def _index_pattern(self) -> str:
        return f"{self._index_prefix}-*" if self._index_prefix else "_all"

    # -- Batch -----------------------------------------------------------------

    def _send(self, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        response = self._client.bulk(body=actions)
        if not response.get("errors"):
            return []
        return [item for item in response.get("items", []) if any("error" in result for result in item.values())]

    def flush(self) -> None:
        logger.debug("OpenSearchConnection: flush {}", self._index_pattern())
        self._client.indices.flush(index=self._index_pattern())

    def refresh(self) -> None:
        logger.debug("OpenSearchConnection: refresh {}", self._index_pattern())
        self._client.indices.refresh(index=self._index_pattern())

    # -- Read ------------------------------------------------------------------

    def get_document(self, storage_type: str, document_id: str) -> dict[str, Any] | None:
        try:
            return self._client.get(index=self.index_name(storage_type), id=document_id)
        except NotFoundError:
            return None

    # -- Index lifecycle -------------------------------------------------------

    def create_index(self, storage_type: str, mapping: dict[str, Any]) -> None:
        index_name = self.index_name(storage_type)
        self._client.indices.create(index=index_name, body={"mappings": mapping})
        logger.info("OpenSearchConnection: created index {}", index_name)

    def drop_index(self, storage_type: str) -> None:
        index_name = self.index_name(storage_type)
        self._client.indices.delete(index=index_name, ignore_unavailable=True)
        logger.info("OpenSearchConnection: dropped index {}", index_name)

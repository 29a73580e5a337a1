"""Converter between document models and search-engine payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from docbridge.mapping.document import Document, RepositoryDescriptor


class Converter:
    """Turns documents into JSON-compatible payloads and raw hits back into documents.

    Holds the type and descriptor mappings it was built with; stateless otherwise.
    """

    def __init__(
        self,
        types_mapping: Mapping[str, type[Document]],
        bundles_mapping: Mapping[str, RepositoryDescriptor],
    ) -> None:
        self._types = types_mapping
        self._bundles = bundles_mapping

    def convert_to_array(self, document: BaseModel) -> dict[str, Any]:
        """Serialize *document* into a bulk payload.

        Fields set to ``None`` are omitted; the document id, when present, is
        emitted as ``_id``.
        """
        if not isinstance(document, BaseModel):
            msg = f"Cannot convert {type(document).__name__}; documents must be pydantic models"
            raise TypeError(msg)
        return document.model_dump(mode="json", by_alias=True, exclude_none=True)

    def convert_to_document(self, raw: Mapping[str, Any], document_type: str) -> Document:
        """Build a document of logical type *document_type* from a raw hit.

        ``raw`` has the shape ``{"_id": ..., "_source": {...}}``.  Raises
        ``KeyError`` if *document_type* has no descriptor or document class.
        """
        if document_type not in self._bundles:
            raise KeyError(document_type)
        document_class = self._types[document_type]
        data = dict(raw.get("_source") or {})
        if raw.get("_id") is not None:
            data["_id"] = raw["_id"]
        return document_class.model_validate(data)

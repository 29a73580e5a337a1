"""Document base model and repository descriptor.

Application documents subclass ``Document``.  Each document class declares the
logical type it belongs to through the ``document_type`` class tag; when the
tag is omitted the metadata collector falls back to the lowercased class name.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


def class_namespace(cls: type) -> str:
    """Return the fully qualified name used to match a class to its descriptor."""
    return f"{cls.__module__}.{cls.__qualname__}"


class Document(BaseModel):
    """Base class for documents stored in the search engine.

    ``id`` travels on the wire as ``_id`` and is lifted into the bulk action
    metadata by the connection, so it never ends up in ``_source``.
    """

    model_config = ConfigDict(populate_by_name=True)

    document_type: ClassVar[str | None] = None

    id: str | None = Field(default=None, alias="_id")


class RepositoryDescriptor(BaseModel):
    """Metadata record describing how a logical document type is stored."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(description="Qualified name of the canonical document class")
    proxy_namespace: str | None = Field(
        default=None, description="Qualified name of an alternate class for the same logical type"
    )
    type: str = Field(description="Storage type identifier")
    properties: dict[str, Any] = Field(default_factory=dict, description="Index field mappings")

    def names(self) -> tuple[str, ...]:
        """Return every class name this descriptor answers to."""
        if self.proxy_namespace is None:
            return (self.namespace,)
        return (self.namespace, self.proxy_namespace)

    def matches(self, namespace: str) -> bool:
        return namespace in self.names()

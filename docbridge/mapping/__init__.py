"""Document models and metadata collection."""

from docbridge.mapping.document import Document, RepositoryDescriptor, class_namespace
from docbridge.mapping.metadata import MappingConflictError, MetadataCollector

__all__ = [
    "Document",
    "MappingConflictError",
    "MetadataCollector",
    "RepositoryDescriptor",
    "class_namespace",
]

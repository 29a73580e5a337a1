"""Metadata collector -- builds repository descriptors from document classes.

The collector produces the two mappings the Manager is constructed with:

- **types mapping**: logical type key -> document class
- **bundles mapping**: logical type key -> ``RepositoryDescriptor``

Index field mappings are inferred from the pydantic annotations of each
document.  A field can override the inferred mapping through
``Field(json_schema_extra={"mapping": {...}})``.
"""

from __future__ import annotations

import importlib
import inspect
import types
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Union, get_args, get_origin

from loguru import logger
from pydantic import BaseModel
from pydantic.fields import FieldInfo

from docbridge.mapping.document import Document, RepositoryDescriptor, class_namespace

# Exact-type lookup, so ``bool`` never falls through to ``int``.
_SCALAR_MAPPINGS: dict[type, dict[str, Any]] = {
    str: {"type": "keyword"},
    bool: {"type": "boolean"},
    int: {"type": "long"},
    float: {"type": "double"},
    datetime: {"type": "date"},
    date: {"type": "date"},
}

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


class MappingConflictError(ValueError):
    """Raised when two descriptors claim the same type key or class name."""


class MetadataCollector:
    """Collects repository descriptors for registered document classes."""

    def __init__(self) -> None:
        self._types: dict[str, type[Document]] = {}
        self._bundles: dict[str, RepositoryDescriptor] = {}

    # -- Registration ----------------------------------------------------------

    def register(
        self,
        document_class: type[Document],
        proxy_class: type[Document] | None = None,
    ) -> RepositoryDescriptor:
        """Register a document class and return its descriptor.

        Raises ``MappingConflictError`` if the type key or one of the class
        names is already taken by another descriptor.
        """
        if not (inspect.isclass(document_class) and issubclass(document_class, Document)):
            msg = f"{document_class!r} is not a Document subclass"
            raise TypeError(msg)
        if proxy_class is not None and not issubclass(proxy_class, document_class):
            msg = f"Proxy {class_namespace(proxy_class)} must subclass {class_namespace(document_class)}"
            raise TypeError(msg)

        key = document_class.document_type or document_class.__name__.lower()
        existing = self._bundles.get(key)
        if existing is not None:
            msg = f"Document type '{key}' is already registered by {existing.namespace}"
            raise MappingConflictError(msg)

        descriptor = RepositoryDescriptor(
            namespace=class_namespace(document_class),
            proxy_namespace=class_namespace(proxy_class) if proxy_class is not None else None,
            type=key,
            properties=build_properties(document_class),
        )
        check_overlaps({**self._bundles, key: descriptor})

        self._types[key] = document_class
        self._bundles[key] = descriptor
        logger.debug("Metadata: registered {} as '{}'", descriptor.namespace, key)
        return descriptor

    def collect(self, *document_classes: type[Document]) -> MetadataCollector:
        for document_class in document_classes:
            self.register(document_class)
        return self

    def collect_module(self, module_name: str) -> MetadataCollector:
        """Import *module_name* and register every Document subclass defined in it.

        Classes merely imported into the module are skipped.  A subclass that
        inherits its ``document_type`` tag from another collected document
        instead of declaring one is registered as that document's proxy.
        """
        module = importlib.import_module(module_name)
        found = [
            obj
            for obj in vars(module).values()
            if inspect.isclass(obj)
            and issubclass(obj, Document)
            and obj is not Document
            and obj.__module__ == module.__name__
        ]
        if not found:
            logger.warning("Metadata: no documents found in module {}", module_name)

        proxies: dict[type[Document], type[Document]] = {}
        for document_class in found:
            parent = _tagged_parent(document_class, found)
            if parent is None:
                continue
            if parent in proxies:
                msg = f"{class_namespace(parent)} has more than one proxy class"
                raise MappingConflictError(msg)
            proxies[parent] = document_class

        proxy_classes = set(proxies.values())
        for document_class in found:
            if document_class not in proxy_classes:
                self.register(document_class, proxy_class=proxies.get(document_class))
        return self

    # -- Query -----------------------------------------------------------------

    @property
    def types_mapping(self) -> dict[str, type[Document]]:
        return dict(self._types)

    @property
    def bundles_mapping(self) -> dict[str, RepositoryDescriptor]:
        return dict(self._bundles)

    def get_mapping(self, document_type: str) -> dict[str, Any]:
        """Return the index mapping body for a type key.  Raises ``KeyError`` if unknown."""
        return {"properties": self._bundles[document_type].properties}

    def get_mappings(self) -> dict[str, dict[str, Any]]:
        return {key: self.get_mapping(key) for key in self._bundles}


def _tagged_parent(document_class: type[Document], candidates: list[type[Document]]) -> type[Document] | None:
    """Return the candidate whose ``document_type`` tag *document_class* inherits."""
    if "document_type" in vars(document_class) or document_class.document_type is None:
        return None
    for base in document_class.__mro__[1:]:
        if "document_type" in vars(base):
            return base if base in candidates else None
    return None


def check_overlaps(bundles_mapping: Mapping[str, RepositoryDescriptor]) -> None:
    """Reject descriptors that share a namespace or proxy namespace."""
    owners: dict[str, str] = {}
    for key, descriptor in bundles_mapping.items():
        for name in descriptor.names():
            owner = owners.setdefault(name, key)
            if owner != key:
                msg = f"Class {name} is mapped by both '{owner}' and '{key}'"
                raise MappingConflictError(msg)


# ---------------------------------------------------------------------------
# Field mapping inference
# ---------------------------------------------------------------------------


def build_properties(model: type[BaseModel]) -> dict[str, Any]:
    """Build the ``properties`` block of an index mapping for *model*."""
    properties: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        if issubclass(model, Document) and name == "id":
            continue
        wire_name = field.alias or name
        properties[wire_name] = _field_mapping(model, name, field)
    return properties


def _field_mapping(model: type[BaseModel], name: str, field: FieldInfo) -> dict[str, Any]:
    extra = field.json_schema_extra
    if isinstance(extra, dict) and isinstance(extra.get("mapping"), dict):
        return dict(extra["mapping"])

    mapping = _annotation_mapping(field.annotation)
    if mapping is None:
        msg = (
            f"Cannot infer index mapping for {model.__name__}.{name} ({field.annotation!r}); "
            'declare it with Field(json_schema_extra={"mapping": {...}})'
        )
        raise TypeError(msg)
    return mapping


def _annotation_mapping(annotation: Any) -> dict[str, Any] | None:
    origin = get_origin(annotation)

    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return _annotation_mapping(args[0])
        return None

    if origin is Literal:
        return {"type": "keyword"}

    if origin in _SEQUENCE_ORIGINS:
        args = get_args(annotation)
        return _annotation_mapping(args[0]) if args else None

    if not inspect.isclass(annotation):
        return None

    if issubclass(annotation, Enum):
        return {"type": "keyword"}
    if issubclass(annotation, BaseModel):
        return {"type": "object", "properties": build_properties(annotation)}

    mapping = _SCALAR_MAPPINGS.get(annotation)
    return dict(mapping) if mapping is not None else None

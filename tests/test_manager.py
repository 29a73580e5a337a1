"""Unit tests for Manager.

No search engine required -- uses MemoryConnection or autospec'd stand-ins.
"""

from __future__ import annotations

from unittest.mock import MagicMock, call, create_autospec

import pytest
from pydantic import BaseModel

from docbridge.connection.memory import MemoryConnection
from docbridge.mapping.document import RepositoryDescriptor, class_namespace
from docbridge.mapping.metadata import MappingConflictError, MetadataCollector
from docbridge.orm.manager import DocumentNotMappedError, Manager, UndefinedRepositoryError
from docbridge.orm.repository import Repository
from docbridge.result.converter import Converter
from tests.documents import Article, Product, ProductProxy

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_connection() -> MagicMock:
    return create_autospec(MemoryConnection, instance=True)


def _manager(connection: object, collector: MetadataCollector) -> Manager:
    return Manager(connection, collector, collector.types_mapping, collector.bundles_mapping)


class Untagged(BaseModel):
    """Plain model without a document_type tag."""

    name: str


# ---------------------------------------------------------------------------
# get_repository
# ---------------------------------------------------------------------------


def test_get_repository_single_type(manager: Manager) -> None:
    repo = manager.get_repository("product")

    assert isinstance(repo, Repository)
    assert repo.types == ["product"]
    assert repo.manager is manager


def test_get_repository_multiple_types(manager: Manager) -> None:
    repo = manager.get_repository(["product", "article"])
    assert repo.types == ["product", "article"]


def test_get_repository_returns_fresh_instance(manager: Manager) -> None:
    assert manager.get_repository("product") is not manager.get_repository("product")


def test_get_repository_undefined_lists_valid(manager: Manager) -> None:
    with pytest.raises(UndefinedRepositoryError) as exc_info:
        manager.get_repository("missing")

    assert str(exc_info.value) == "Undefined repository missing, valid repositories are: product, article."
    assert isinstance(exc_info.value, ValueError)
    assert exc_info.value.valid == ["product", "article"]


def test_get_repository_undefined_in_list(manager: Manager) -> None:
    with pytest.raises(UndefinedRepositoryError, match="Undefined repository ghost"):
        manager.get_repository(["product", "ghost"])


def test_get_repository_single_descriptor_example() -> None:
    descriptor = RepositoryDescriptor(
        namespace=class_namespace(Product),
        proxy_namespace=class_namespace(ProductProxy),
        type="product",
    )
    manager = Manager(_mock_connection(), MagicMock(), {"product": Product}, {"product": descriptor})

    assert manager.get_repository("product").types == ["product"]
    with pytest.raises(ValueError, match=r"valid repositories are: product\.$"):
        manager.get_repository("missing")
    assert manager.get_document_mapping(Product(title="Lamp", price=1.0)) is descriptor


# ---------------------------------------------------------------------------
# get_document_mapping
# ---------------------------------------------------------------------------


def test_document_mapping_by_tag(manager: Manager) -> None:
    mapping = manager.get_document_mapping(Product(title="Lamp", price=10.0))
    assert mapping is manager.bundles_mapping["product"]


def test_document_mapping_default_key(manager: Manager) -> None:
    mapping = manager.get_document_mapping(Article(headline="News"))
    assert mapping is manager.bundles_mapping["article"]


def test_document_mapping_by_namespace_and_proxy() -> None:
    """Without a matching tag, the class name is compared to both namespaces."""
    descriptor = RepositoryDescriptor(
        namespace=class_namespace(Product),
        proxy_namespace=class_namespace(ProductProxy),
        type="products",
    )
    manager = Manager(_mock_connection(), MagicMock(), {"catalog": Product}, {"catalog": descriptor})

    assert manager.get_document_mapping(Product(title="a", price=1.0)) is descriptor
    assert manager.get_document_mapping(ProductProxy(title="b", price=2.0)) is descriptor


def test_document_mapping_plain_model_by_namespace() -> None:
    descriptor = RepositoryDescriptor(namespace=class_namespace(Untagged), type="untagged")
    manager = Manager(_mock_connection(), MagicMock(), {}, {"untagged": descriptor})

    assert manager.get_document_mapping(Untagged(name="x")) is descriptor


def test_document_mapping_none(manager: Manager) -> None:
    assert manager.get_document_mapping(Untagged(name="x")) is None
    assert manager.get_document_mapping(object()) is None


class DiscountedProduct(Product):
    """Inherits the "product" tag but is registered nowhere."""


def test_document_mapping_inherited_tag_needs_registration(collector: MetadataCollector) -> None:
    connection = _mock_connection()
    manager = _manager(connection, collector)
    discounted = DiscountedProduct(title="Lamp", price=5.0)

    assert manager.get_document_mapping(discounted) is None
    with pytest.raises(DocumentNotMappedError, match="DiscountedProduct"):
        manager.persist(discounted)
    assert connection.method_calls == []


def test_document_mapping_tag_key_for_other_class() -> None:
    """A descriptor stored under the tag's key must still describe the document's class."""
    descriptor = RepositoryDescriptor(namespace="shop.models.Lamp", type="lamps")
    manager = Manager(_mock_connection(), MagicMock(), {}, {"product": descriptor})

    assert manager.get_document_mapping(Product(title="Lamp", price=1.0)) is None


# ---------------------------------------------------------------------------
# persist
# ---------------------------------------------------------------------------


def test_persist_stages_single_index_operation(collector: MetadataCollector) -> None:
    connection = _mock_connection()
    manager = _manager(connection, collector)
    product = Product(id="p1", title="Lamp", price=19.5, tags=["home"])

    manager.persist(product)

    expected = {"_id": "p1", "title": "Lamp", "price": 19.5, "stock": 0, "tags": ["home"]}
    assert connection.method_calls == [call.bulk("index", "product", expected)]


def test_persist_uses_converter_output(collector: MetadataCollector) -> None:
    connection = _mock_connection()
    manager = _manager(connection, collector)
    article = Article(headline="Hello")

    manager.persist(article)

    connection.bulk.assert_called_once_with("index", "article", manager.converter.convert_to_array(article))


def test_persist_unmapped_document(collector: MetadataCollector) -> None:
    connection = _mock_connection()
    manager = _manager(connection, collector)

    with pytest.raises(DocumentNotMappedError, match="Untagged"):
        manager.persist(Untagged(name="x"))
    assert connection.method_calls == []


def test_persist_and_commit_roundtrip(manager: Manager, connection: MemoryConnection) -> None:
    manager.persist(Product(id="p1", title="Lamp", price=19.5))
    manager.persist(ProductProxy(id="p2", title="Chair", price=49.0))
    assert connection.pending == 2
    assert connection.documents("product") == {}

    manager.commit()

    assert connection.pending == 0
    assert set(connection.documents("product")) == {"p1", "p2"}
    assert connection.documents("product")["p1"]["title"] == "Lamp"


# ---------------------------------------------------------------------------
# commit / flush / refresh
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("method", ["commit", "flush", "refresh"])
def test_lifecycle_delegates_to_connection(method: str, collector: MetadataCollector) -> None:
    connection = _mock_connection()
    manager = _manager(connection, collector)

    result = getattr(manager, method)()

    assert result is None
    assert connection.method_calls == [getattr(call, method)()]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_converter_is_constructed_once(manager: Manager) -> None:
    assert isinstance(manager.converter, Converter)
    assert manager.converter is manager.converter


def test_accessors(manager: Manager, connection: MemoryConnection, collector: MetadataCollector) -> None:
    assert manager.connection is connection
    assert manager.metadata_collector is collector
    assert manager.types_mapping["product"] is Product
    assert manager.bundles_mapping["article"].type == "article"


def test_mappings_are_read_only(manager: Manager) -> None:
    with pytest.raises(TypeError):
        manager.bundles_mapping["new"] = manager.bundles_mapping["product"]  # type: ignore[index]


def test_mappings_are_copied(collector: MetadataCollector) -> None:
    bundles = collector.bundles_mapping
    manager = Manager(_mock_connection(), collector, collector.types_mapping, bundles)

    bundles.pop("article")
    assert "article" in manager.bundles_mapping


def test_overlapping_namespaces_rejected() -> None:
    a = RepositoryDescriptor(namespace="app.Product", proxy_namespace="app.ProductProxy", type="a")
    b = RepositoryDescriptor(namespace="app.ProductProxy", type="b")

    with pytest.raises(MappingConflictError, match="app.ProductProxy"):
        Manager(_mock_connection(), MagicMock(), {}, {"a": a, "b": b})

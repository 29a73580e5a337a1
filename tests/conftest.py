"""Shared fixtures: metadata, connections and managers for the sample documents."""

from __future__ import annotations

import os

import pytest

from docbridge.connection.memory import MemoryConnection
from docbridge.mapping.metadata import MetadataCollector
from docbridge.orm.manager import Manager
from docbridge.settings import _get_settings_cached
from tests.documents import Article, Product, ProductProxy


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from DOCBRIDGE_* variables and the settings cache."""
    for key in list(os.environ):
        if key.startswith("DOCBRIDGE_") and not key.startswith("DOCBRIDGE_TEST_"):
            monkeypatch.delenv(key)
    _get_settings_cached.cache_clear()


@pytest.fixture
def collector() -> MetadataCollector:
    collector = MetadataCollector()
    collector.register(Product, proxy_class=ProductProxy)
    collector.register(Article)
    return collector


@pytest.fixture
def connection() -> MemoryConnection:
    return MemoryConnection()


@pytest.fixture
def manager(connection: MemoryConnection, collector: MetadataCollector) -> Manager:
    return Manager(
        connection=connection,
        metadata_collector=collector,
        types_mapping=collector.types_mapping,
        bundles_mapping=collector.bundles_mapping,
    )

"""
Tests for the catalog snapshot resolver.
"""

import asyncio

import pytest

from checkout.catalog import CatalogSnapshotResolver
from checkout.errors import NotFoundError
from checkout.interfaces import CatalogQuery
from checkout.models import CatalogFact


class RecordingCatalog(CatalogQuery):
    """Catalog stub that records the ids it was asked for."""

    def __init__(self, facts):
        self.facts = {f.id: f for f in facts}
        self.requests = []

    async def list_catalog_items(self, ids):
        ids = list(ids)
        self.requests.append(ids)
        return [self.facts[i] for i in ids if i in self.facts]


class TestCatalogSnapshotResolver:

    def test_resolves_one_fact_per_id(self, data_store):
        """Each requested id maps to exactly one fact."""
        resolver = CatalogSnapshotResolver(data_store)

        facts = asyncio.run(resolver.resolve([1, 2, 42]))

        assert set(facts) == {1, 2, 42}
        assert facts[42].name == "Widget"
        assert facts[42].picture_uri == "widget.png"

    def test_duplicate_ids_are_queried_once(self, widget_fact):
        catalog = RecordingCatalog([widget_fact])
        resolver = CatalogSnapshotResolver(catalog)

        facts = asyncio.run(resolver.resolve([42, 42, 42]))

        assert list(facts) == [42]
        assert catalog.requests == [[42]]

    def test_missing_id_raises_not_found(self, data_store):
        """An unknown catalog id aborts resolution."""
        resolver = CatalogSnapshotResolver(data_store)

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(resolver.resolve([42, 99]))

        assert exc_info.value.missing_ids == [99]
        assert "99" in str(exc_info.value)

    def test_all_missing_ids_are_reported(self):
        resolver = CatalogSnapshotResolver(RecordingCatalog([]))

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(resolver.resolve([7, 3]))

        assert exc_info.value.missing_ids == [3, 7]

    def test_unrequested_facts_are_ignored(self):
        """Extra facts returned by the catalog do not leak into the snapshot."""
        class ChattyCatalog(CatalogQuery):
            async def list_catalog_items(self, ids):
                return [CatalogFact(id=1, name="A"), CatalogFact(id=2, name="B")]

        facts = asyncio.run(CatalogSnapshotResolver(ChattyCatalog()).resolve([1]))

        assert list(facts) == [1]

"""Unit tests for the in-memory similarity store."""

import pytest

from conftest import unit_vector, vector_with_similarity
from roomforge.vector_store import MockVectorStore
from roomforge.vector_store.models import Collection


@pytest.fixture
def store():
    return MockVectorStore()


class TestChunks:
    @pytest.mark.asyncio
    async def test_search_orders_and_thresholds(self, store):
        await store.add_chunk(Collection.SCHEMA, "rooms", unit_vector(0), "t", "default")
        await store.add_chunk(Collection.SCHEMA, "bills", vector_with_similarity(0.8), "t", "default")
        await store.add_chunk(Collection.SCHEMA, "wards", vector_with_similarity(0.3), "t", "default")

        hits = await store.similarity_search(unit_vector(0), Collection.SCHEMA, 5, 0.5, "t", "default")

        assert [h.content for h in hits] == ["rooms", "bills"]
        assert hits[0].score == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_tenant_and_collection_isolation(self, store):
        await store.add_chunk(Collection.SCHEMA, "rooms", unit_vector(0), "a", "default")
        await store.add_chunk(Collection.QA, "Q: x", unit_vector(0), "a", "default")
        await store.add_chunk(Collection.SCHEMA, "rooms", unit_vector(0), "b", "default")

        hits = await store.similarity_search(unit_vector(0), Collection.SCHEMA, 5, 0.0, "a", "default")

        assert len(hits) == 1

    @pytest.mark.asyncio
    async def test_clear_collection(self, store):
        await store.add_chunk(Collection.SCHEMA, "rooms", unit_vector(0), "a", "default")
        await store.add_chunk(Collection.SCHEMA, "rooms", unit_vector(0), "b", "default")
        await store.add_chunk(Collection.QA, "Q: x", unit_vector(0), "a", "default")

        assert await store.clear_collection(Collection.SCHEMA, "a", "default") == 1
        assert store.chunk_count == 2

    @pytest.mark.asyncio
    async def test_update_and_delete_chunk(self, store):
        chunk_id = await store.add_chunk(Collection.QA, "old", unit_vector(0), "t", "default")

        assert await store.update_chunk(chunk_id, "new", unit_vector(1))
        assert store.chunks(Collection.QA) == ["new"]
        assert await store.delete_chunk(chunk_id)
        assert not await store.update_chunk(chunk_id, "again", unit_vector(1))


class TestCanonical:
    @pytest.mark.asyncio
    async def test_exact_and_nearest(self, store):
        record = await store.insert_canonical("Phòng rẻ", "phòng rẻ", "SELECT 1;", unit_vector(0), "t", "default")

        exact = await store.find_canonical_exact("phòng rẻ", "t", "default")
        assert exact.id == record.id
        assert exact.score == 1.0
        assert await store.find_canonical_exact("phòng rẻ", "other", "default") is None

        nearest = await store.search_canonical(vector_with_similarity(0.9), 1, "t", "default")
        assert nearest[0].score == pytest.approx(0.9, abs=1e-4)

    @pytest.mark.asyncio
    async def test_touch_update_delete(self, store):
        record = await store.insert_canonical("q", "q", "SELECT 1;", unit_vector(0), "t", "default")

        await store.touch_canonical(record.id)
        updated = await store.update_canonical(record.id, "q2", "q2", "SELECT 2;", unit_vector(1))

        assert updated.usage_count == 1
        assert updated.sql == "SELECT 2;"
        assert await store.update_canonical(999, "x", "x", "SELECT 3;", unit_vector(1)) is None
        assert await store.delete_canonical(record.id)
        assert await store.list_canonical("t", "default") == []

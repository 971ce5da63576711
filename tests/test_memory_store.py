"""
Tests for InMemoryAuthorizationStore.
"""

from datetime import UTC, datetime, timedelta

import pytest

from partner_auth.infrastructure.memory_store import InMemoryAuthorizationStore

EXPIRES_AT = datetime(2026, 10, 19, 13, 0, tzinfo=UTC)


class TestInMemoryAuthorizationStore:
    """Tests for InMemoryAuthorizationStore."""

    @pytest.fixture
    def store(self):
        """Create fresh store for each test."""
        return InMemoryAuthorizationStore()

    @pytest.mark.asyncio
    async def test_get_not_found(self, store):
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_upsert_creates(self, store):
        result = await store.upsert("U1", "a@x.com", "T1", "R1", EXPIRES_AT)

        assert result.external_user_id == "U1"
        assert result.created_at is not None
        assert await store.get("U1") == result
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_upsert_same_user_overwrites(self, store):
        first = await store.upsert("U1", "a@x.com", "T1", "R1", EXPIRES_AT)

        second = await store.upsert(
            "U1", "a@x.com", "T2", "R2", EXPIRES_AT + timedelta(hours=1)
        )

        assert len(store) == 1
        assert second.access_token == "T2"
        assert second.refresh_token == "R2"
        assert second.created_at == first.created_at
        assert second.updated_at >= first.updated_at

    @pytest.mark.asyncio
    async def test_upsert_different_users(self, store):
        await store.upsert("U1", "a@x.com", "T1", "R1", EXPIRES_AT)
        await store.upsert("U2", "b@x.com", "T2", "R2", EXPIRES_AT)

        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_schema_and_close_are_noops(self, store):
        await store.ensure_schema()
        await store.close()

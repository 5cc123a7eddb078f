"""Tests for the in-memory user store."""

import asyncio

import pytest

from backend_gateway.infrastructure.backends.memory import InMemoryUserStore


class TestInMemoryUserStore:
    """Test id assignment and lookups."""

    @pytest.mark.asyncio
    async def test_ids_start_at_one(self, memory_store):
        first = await memory_store.create_user("Ann", "ann@x.com")
        second = await memory_store.create_user("Ann", "ann@x.com")

        assert first.id == 1
        assert second.id == 2

    @pytest.mark.asyncio
    async def test_list_preserves_append_order(self, memory_store):
        for name in ("a", "b", "c"):
            await memory_store.create_user(name, f"{name}@x.com")

        users = await memory_store.list_users()

        assert [u.name for u in users] == ["a", "b", "c"]
        assert [u.id for u in users] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_list_returns_a_copy(self, memory_store):
        await memory_store.create_user("Ann", "ann@x.com")
        users = await memory_store.list_users()
        users.clear()

        assert len(memory_store) == 1

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_unique_ids(self, memory_store):
        users = await asyncio.gather(
            *(memory_store.create_user(f"u{i}", f"u{i}@x.com") for i in range(25))
        )

        assert sorted(u.id for u in users) == list(range(1, 26))

    @pytest.mark.asyncio
    async def test_seeded_store_continues_sequence(self):
        store = InMemoryUserStore(seed_users=True)

        assert [u.name for u in await store.list_users()] == ["John Doe", "Jane Smith"]
        created = await store.create_user("Ann", "ann@x.com")
        assert created.id == 3

    @pytest.mark.asyncio
    async def test_get_user_accepts_string_ids(self, memory_store):
        await memory_store.create_user("Ann", "ann@x.com")

        assert (await memory_store.get_user("1")).name == "Ann"
        assert await memory_store.get_user(2) is None
        assert await memory_store.get_user("abc") is None

    @pytest.mark.asyncio
    async def test_clear(self, memory_store):
        await memory_store.create_user("Ann", "ann@x.com")
        await memory_store.clear()

        assert len(memory_store) == 0
        assert (await memory_store.create_user("Bob", "bob@x.com")).id == 1

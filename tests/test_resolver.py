"""Tests for relation traversal.

Runs ``RelationResolver`` against a small in-memory ``DatabaseClient``
seeded with users, posts, comments, categories and join rows.
"""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from cms_schema.content import exporter
from cms_schema.storage.resolver import RelationResolver


class InMemoryClient:
    """Dict-backed DatabaseClient supporting the select() subset used here."""

    def __init__(self, data: dict[str, list[dict]]) -> None:
        self.data = data
        self.calls: list[tuple[str, dict | None]] = []

    async def select(
        self,
        table: str,
        columns: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        self.calls.append((table, filters))
        rows = [
            dict(r)
            for r in self.data.get(table, [])
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            keys = [k.strip() for k in order_by.split(",")]
            rows.sort(key=lambda r: tuple(r[k] for k in keys))
        if columns.strip() != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r[c] for c in wanted} for r in rows]
        return rows

    async def insert(self, table: str, data: dict) -> dict:
        self.data.setdefault(table, []).append(dict(data))
        return dict(data)

    async def update(self, table: str, data: dict, filters: dict[str, Any]) -> dict:
        raise NotImplementedError

    async def delete(self, table: str, filters: dict[str, Any]) -> None:
        raise NotImplementedError

    async def execute(self, sql: str, params: dict | None = None) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


def _seed() -> dict[str, list[dict]]:
    return {
        "users": [
            {"id": "u1", "firstName": "Ada"},
            {"id": "u2", "firstName": "Linus"},
        ],
        "posts": [
            # inserted out of key order on purpose
            {"id": "p2", "title": "Second", "userId": "u1"},
            {"id": "p1", "title": "First", "userId": "u1"},
            {"id": "p3", "title": "Other", "userId": "u2"},
            {"id": "p4", "title": "Orphan", "userId": None},
        ],
        "comments": [
            {"id": "c1", "body": "Nice", "userId": "u2", "postId": "p1"},
        ],
        "categories": [
            {"id": "cat-b", "title": "Beta"},
            {"id": "cat-a", "title": "Alpha"},
        ],
        "categoriesToPosts": [
            {"id": "l1", "postId": "p1", "categoryId": "cat-b"},
            {"id": "l2", "postId": "p1", "categoryId": "cat-a"},
            {"id": "l3", "postId": "p2", "categoryId": "cat-b"},
        ],
    }


@pytest.fixture
def client() -> InMemoryClient:
    return InMemoryClient(_seed())


@pytest.fixture
def resolver(client: InMemoryClient) -> RelationResolver:
    return RelationResolver(client, exporter)


# ============================================================================
# many-to-one
# ============================================================================


class TestManyToOne:
    @pytest.mark.asyncio
    async def test_post_user_is_unique_parent(self, resolver: RelationResolver) -> None:
        post = {"id": "p1", "userId": "u1"}
        user = await resolver.resolve("posts", post, "user")
        assert user == {"id": "u1", "firstName": "Ada"}

    @pytest.mark.asyncio
    async def test_missing_parent_returns_none(self, resolver: RelationResolver) -> None:
        post = {"id": "p9", "userId": "ghost"}
        assert await resolver.resolve("posts", post, "user") is None

    @pytest.mark.asyncio
    async def test_null_foreign_key_skips_query(
        self, resolver: RelationResolver, client: InMemoryClient
    ) -> None:
        post = {"id": "p4", "userId": None}
        assert await resolver.resolve("posts", post, "user") is None
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_comment_post(self, resolver: RelationResolver) -> None:
        comment = {"id": "c1", "postId": "p1", "userId": "u2"}
        post = await resolver.resolve("comments", comment, "post")
        assert post["title"] == "First"


# ============================================================================
# one-to-many
# ============================================================================


class TestOneToMany:
    @pytest.mark.asyncio
    async def test_user_posts_in_stable_order(self, resolver: RelationResolver) -> None:
        posts = await resolver.resolve("users", {"id": "u1"}, "posts")
        assert [p["id"] for p in posts] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_repeated_resolution_is_identical(self, resolver: RelationResolver) -> None:
        first = await resolver.resolve("users", {"id": "u1"}, "posts")
        second = await resolver.resolve("users", {"id": "u1"}, "posts")
        assert first == second

    @pytest.mark.asyncio
    async def test_no_children_returns_empty_list(self, resolver: RelationResolver) -> None:
        assert await resolver.resolve("users", {"id": "u3"}, "comments") == []


# ============================================================================
# many-to-many
# ============================================================================


class TestManyToMany:
    @pytest.mark.asyncio
    async def test_post_categories_through_join(
        self, resolver: RelationResolver, client: InMemoryClient
    ) -> None:
        categories = await resolver.resolve("posts", {"id": "p1"}, "categories")
        assert [c["id"] for c in categories] == ["cat-a", "cat-b"]
        assert client.calls[0] == ("categoriesToPosts", {"postId": "p1"})

    @pytest.mark.asyncio
    async def test_category_posts_inverse(self, resolver: RelationResolver) -> None:
        posts = await resolver.resolve("categories", {"id": "cat-b"}, "posts")
        assert [p["id"] for p in posts] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_only_source_key_needed(
        self, resolver: RelationResolver, client: InMemoryClient
    ) -> None:
        """The join walk reads only the source key: one join select, one per link."""
        categories = await resolver.resolve("posts", {"id": "p2"}, "categories")
        assert [c["id"] for c in categories] == ["cat-b"]
        assert client.calls == [
            ("categoriesToPosts", {"postId": "p2"}),
            ("categories", {"id": "cat-b"}),
        ]

    @pytest.mark.asyncio
    async def test_no_links(self, resolver: RelationResolver) -> None:
        assert await resolver.resolve("posts", {"id": "p3"}, "categories") == []


# ============================================================================
# Errors
# ============================================================================


class TestResolverErrors:
    @pytest.mark.asyncio
    async def test_unknown_entity(self, resolver: RelationResolver) -> None:
        with pytest.raises(KeyError, match="articles"):
            await resolver.resolve("articles", {"id": "a1"}, "user")

    @pytest.mark.asyncio
    async def test_unknown_relation(self, resolver: RelationResolver) -> None:
        with pytest.raises(KeyError, match="posts.author"):
            await resolver.resolve("posts", {"id": "p1"}, "author")

    @pytest.mark.asyncio
    async def test_row_without_key_field(self, resolver: RelationResolver) -> None:
        with pytest.raises(KeyError):
            await resolver.resolve("posts", {"id": "p1"}, "user")

    @pytest.mark.asyncio
    async def test_works_with_mocked_client(self) -> None:
        """Any object with an async select() satisfies the resolver."""
        client = AsyncMock()
        client.select = AsyncMock(return_value=[{"id": "u1"}])
        resolver = RelationResolver(client, exporter)

        user = await resolver.resolve("comments", {"userId": "u1", "postId": "p1"}, "user")

        assert user == {"id": "u1"}
        client.select.assert_awaited_once_with("users", "*", filters={"id": "u1"})

"""Relation traversal over a ``DatabaseClient``.

Follows one declared relation from a single row. Ordering is stable:
one-to-many results are sorted by the target's primary key and
many-to-many results follow the join rows sorted by the target-side key.

Usage:
    from cms_schema.content import exporter
    from cms_schema.storage.resolver import RelationResolver

    resolver = RelationResolver(client, exporter)
    author = await resolver.resolve("posts", post_row, "user")
    posts = await resolver.resolve("users", user_row, "posts")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cms_schema.schema.exporter import SchemaRegistry
from cms_schema.schema.relations import Relation, RelationKind

if TYPE_CHECKING:
    from cms_schema.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)


class RelationResolver:
    """Resolve declared relations into related rows.

    Args:
        client: Any ``DatabaseClient`` implementation.
        registry: Registry holding the tables and relation graph.
    """

    def __init__(self, client: DatabaseClient, registry: SchemaRegistry) -> None:
        self._client = client
        self._registry = registry

    def _relation(self, entity: str, name: str) -> Relation:
        if entity not in self._registry:
            raise KeyError(f"Unknown entity '{entity}'")
        relation = self._registry.relations.get(entity, name)
        if relation is None:
            raise KeyError(f"Unknown relation '{entity}.{name}'")
        return relation

    def _order_by(self, entity: str) -> str | None:
        table = self._registry.lookup_table(entity)
        if table is None or not table.primary_key:
            return None
        return ", ".join(table.primary_key)

    async def resolve(
        self,
        entity: str,
        row: dict[str, Any],
        relation_name: str,
    ) -> dict | list[dict] | None:
        """Fetch the rows related to ``row`` through ``relation_name``.

        Args:
            entity: Entity name of ``row``.
            row: The source row, holding at least the relation's key fields.
            relation_name: Declared relation name on ``entity``.

        Returns:
            For many-to-one, the single related row or ``None``.
            For one-to-many and many-to-many, a list of rows (possibly empty).

        Raises:
            KeyError: If the entity or relation is not declared, or ``row``
                lacks the relation's key fields.
        """
        relation = self._relation(entity, relation_name)
        if relation.kind is RelationKind.MANY_TO_MANY:
            return await self._resolve_through(relation, row)

        keys = {ref: row[field] for field, ref in zip(relation.fields, relation.references)}

        if relation.kind is RelationKind.MANY_TO_ONE:
            if any(value is None for value in keys.values()):
                return None
            rows = await self._client.select(relation.target, "*", filters=keys)
            if len(rows) > 1:
                logger.warning(
                    "Relation %s.%s matched %d rows, expected at most one",
                    entity,
                    relation_name,
                    len(rows),
                )
            return rows[0] if rows else None

        return await self._client.select(
            relation.target,
            "*",
            filters=keys,
            order_by=self._order_by(relation.target),
        )

    async def _resolve_through(self, relation: Relation, row: dict[str, Any]) -> list[dict]:
        source_fk, target_fk = relation.through_fields
        (source_key,) = relation.fields
        (target_key,) = relation.references

        links = await self._client.select(
            relation.through,
            f"{source_fk}, {target_fk}",
            filters={source_fk: row[source_key]},
            order_by=target_fk,
        )

        related: list[dict] = []
        for link in links:
            rows = await self._client.select(
                relation.target, "*", filters={target_key: link[target_fk]}
            )
            related.extend(rows)
        return related

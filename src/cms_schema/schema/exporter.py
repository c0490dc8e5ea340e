"""Name-keyed registry of entity schemas, tables and routes.

The exporter is the single source of truth consulted by the HTTP layer:
once at startup to mount one handler set per route, and per request to
resolve the entity named in the path.

Lookups by name return ``None`` for unknown entities instead of raising.
Route dispatch is driven by untrusted path segments, so a miss is a
normal branch (surfaced as a 404 by the caller).

Usage:
    from cms_schema.content import ProjectSchemaExporter

    exporter = ProjectSchemaExporter()
    for binding in exporter.get_routes():
        mount(binding.route, binding.table)

    table = exporter.lookup_table("posts")
    if table is None:
        return not_found()
"""

import logging
from collections.abc import Iterable
from types import MappingProxyType
from typing import NamedTuple, Protocol

from pydantic import BaseModel, ConfigDict

from cms_schema.errors import DanglingReferenceError, SchemaConflictError
from cms_schema.schema.fields import FieldSchema
from cms_schema.schema.relations import Relation, RelationGraph
from cms_schema.schema.tables import TableDefinition

logger = logging.getLogger(__name__)


class RouteBinding(BaseModel):
    """An entity's table name paired with its external path segment."""

    model_config = ConfigDict(frozen=True)

    table: str
    route: str


class EntityBinding(NamedTuple):
    """Registry entry: raw schema, bound table and route for one entity."""

    schema: FieldSchema
    table: TableDefinition
    route: str


class SchemaExporter(Protocol):
    """Interface the HTTP layer depends on."""

    def get_routes(self) -> list[RouteBinding]:
        """Every entity's table name and route, in declaration order."""
        ...

    def lookup_schema(self, name: str) -> FieldSchema | None:
        """Raw field schema for ``name``, or None if unknown."""
        ...

    def lookup_table(self, name: str) -> TableDefinition | None:
        """Table definition for ``name``, or None if unknown."""
        ...


class SchemaRegistry:
    """Immutable ``SchemaExporter`` built from ordered entity bindings.

    Construction validates the whole declaration and must complete before
    any lookup is served; afterwards the registry is read-only and safe to
    share between concurrent request handlers.

    Args:
        bindings: Entity bindings in route order. The entity name is the
            bound table's name.
        relations: Optional relation graph over the same tables.

    Raises:
        SchemaConflictError: If two bindings share an entity name or route.
        DanglingReferenceError: If a field reference does not resolve to a
            primary-key field of a registered table, or a relation touches
            an entity that is not registered.

    Example:
        >>> registry = SchemaRegistry([EntityBinding(schema, table, "posts")])
        >>> registry.lookup_table("nonexistent") is None
        True
    """

    def __init__(
        self,
        bindings: Iterable[EntityBinding],
        relations: RelationGraph | None = None,
    ) -> None:
        entries: dict[str, EntityBinding] = {}
        routes: dict[str, RouteBinding] = {}

        for binding in bindings:
            name = binding.table.name
            if name in entries:
                raise SchemaConflictError(f"Entity '{name}' registered twice")
            if binding.route in routes:
                raise SchemaConflictError(
                    f"Route '{binding.route}' bound to both "
                    f"'{routes[binding.route].table}' and '{name}'"
                )
            entries[name] = binding
            routes[binding.route] = RouteBinding(table=name, route=binding.route)

        self._entries = MappingProxyType(entries)
        self._routes = MappingProxyType(routes)
        self._relations = relations if relations is not None else RelationGraph(
            b.table for b in entries.values()
        )

        self._check_references()
        logger.debug(
            "Schema registry ready: %d entities, %d relations",
            len(self._entries),
            len(self._relations),
        )

    # ------------------------------------------------------------------
    # SchemaExporter
    # ------------------------------------------------------------------

    def get_routes(self) -> list[RouteBinding]:
        """Return every entity's route binding in declaration order.

        The result is a fresh list on every call, so callers cannot disturb
        later calls.
        """
        return list(self._routes.values())

    def lookup_schema(self, name: str) -> FieldSchema | None:
        """Return the entity's own fields (audit fields excluded), or None."""
        entry = self._entries.get(name)
        return entry.schema if entry is not None else None

    def lookup_table(self, name: str) -> TableDefinition | None:
        entry = self._entries.get(name)
        return entry.table if entry is not None else None

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def resolve_route(self, segment: str) -> RouteBinding | None:
        """Map an external path segment (e.g. ``categories-to-posts``) to its binding."""
        return self._routes.get(segment)

    def lookup_relations(self, name: str) -> tuple[Relation, ...]:
        return self._relations.relations_of(name)

    @property
    def relations(self) -> RelationGraph:
        return self._relations

    def entity_names(self) -> list[str]:
        return list(self._entries)

    def tables(self) -> list[TableDefinition]:
        """All table definitions in declaration order."""
        return [entry.table for entry in self._entries.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_references(self) -> None:
        for entry in self._entries.values():
            for f in entry.table.fields:
                if f.references is None:
                    continue
                target = self.lookup_table(f.references.table)
                if target is None:
                    raise DanglingReferenceError(
                        f"'{entry.table.name}.{f.name}' references unknown "
                        f"entity '{f.references.table}'"
                    )
                if f.references.field not in target.primary_key:
                    raise DanglingReferenceError(
                        f"'{entry.table.name}.{f.name}' references "
                        f"'{target.name}.{f.references.field}', which is not "
                        f"part of its primary key"
                    )

        for rel in self._relations.edges():
            for entity in (rel.source, rel.target, rel.through):
                if entity is not None and entity not in self._entries:
                    raise DanglingReferenceError(
                        f"Relation '{rel.source}.{rel.name}' uses unregistered "
                        f"entity '{entity}'"
                    )

"""Relation graph between table definitions.

Relations are named, typed, directed edges. They reference tables by
entity name only; the storage layer resolves them lazily when it walks
the graph. Every foreign key is checked when the relation is declared.

Usage:
    from cms_schema.schema.relations import RelationGraph

    graph = RelationGraph([users_table, posts_table, categories_table, link_table])
    graph.relate("posts", "users", "userId", name="user", inverse="posts")
    graph.relate_many("posts", "categories", "categoriesToPosts",
                      name="categories", inverse="posts")

    graph.get("users", "posts").kind
    # <RelationKind.ONE_TO_MANY: 'one-to-many'>
"""

import logging
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from cms_schema.errors import DanglingReferenceError, SchemaConflictError
from cms_schema.schema.tables import TableDefinition

logger = logging.getLogger(__name__)


class RelationKind(str, Enum):
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class Relation(BaseModel):
    """A directed edge from ``source`` to ``target``.

    For one-to-many and many-to-one edges ``fields`` are columns of the
    source table matched against ``references`` on the target table.

    For many-to-many edges ``fields``/``references`` are the primary keys
    of source and target, and ``through_fields`` are the join table's
    foreign keys pointing at source and target respectively.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: RelationKind
    source: str
    target: str
    fields: tuple[str, ...]
    references: tuple[str, ...]
    through: str | None = None
    through_fields: tuple[str, str] | None = None


class RelationGraph:
    """Directed multigraph of relations keyed by source entity.

    No acyclicity is enforced: self-referencing and mutually referencing
    entities are legal. Traversal depth is the walker's concern.
    """

    def __init__(self, tables: Iterable[TableDefinition]) -> None:
        self._tables: dict[str, TableDefinition] = {t.name: t for t in tables}
        self._edges: list[Relation] = []
        self._by_source: dict[str, dict[str, Relation]] = {}

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def relate(
        self,
        child: str,
        parent: str,
        child_foreign_key: str,
        *,
        name: str,
        inverse: str | None = None,
        references: str | None = None,
    ) -> Relation:
        """Declare that each ``child`` row references one ``parent`` row.

        Args:
            child: Entity holding the foreign key.
            parent: Referenced entity.
            child_foreign_key: Foreign-key field on ``child``.
            name: Relation name on ``child`` (e.g. ``"user"``).
            inverse: Optional one-to-many relation name on ``parent``
                (e.g. ``"posts"``).
            references: Referenced field on ``parent``. Defaults to the
                parent's single-column primary key.

        Returns:
            The many-to-one ``Relation``.

        Raises:
            DanglingReferenceError: If either entity is unknown, the foreign
                key is missing on ``child``, or the referenced field is not
                part of ``parent``'s primary key.
        """
        child_table = self._require(child)
        parent_table = self._require(parent)

        if not child_table.has_field(child_foreign_key):
            raise DanglingReferenceError(
                f"Foreign key '{child}.{child_foreign_key}' does not exist"
            )
        target_field = references or self._single_pk(parent_table)
        self._check_pk_member(parent_table, target_field, f"{child}.{child_foreign_key}")

        relation = Relation(
            name=name,
            kind=RelationKind.MANY_TO_ONE,
            source=child,
            target=parent,
            fields=(child_foreign_key,),
            references=(target_field,),
        )
        self._add(relation)

        if inverse:
            self._add(
                Relation(
                    name=inverse,
                    kind=RelationKind.ONE_TO_MANY,
                    source=parent,
                    target=child,
                    fields=(target_field,),
                    references=(child_foreign_key,),
                )
            )
        return relation

    def relate_many(
        self,
        entity_a: str,
        entity_b: str,
        join_table: str,
        *,
        name: str,
        inverse: str | None = None,
    ) -> Relation:
        """Declare a many-to-many relation routed through ``join_table``.

        The join table must carry one field referencing a primary-key field
        of ``entity_a`` and one referencing a primary-key field of
        ``entity_b`` (declared with ``references=`` on the field).

        Returns:
            The A -> B ``Relation``.

        Raises:
            DanglingReferenceError: If an entity is unknown or the join
                table lacks a valid foreign key to either side.
        """
        table_a = self._require(entity_a)
        table_b = self._require(entity_b)
        join = self._require(join_table)

        fk_a, ref_a = self._join_key(join, table_a)
        fk_b, ref_b = self._join_key(join, table_b, exclude=fk_a)

        relation = Relation(
            name=name,
            kind=RelationKind.MANY_TO_MANY,
            source=entity_a,
            target=entity_b,
            fields=(ref_a,),
            references=(ref_b,),
            through=join_table,
            through_fields=(fk_a, fk_b),
        )
        self._add(relation)

        if inverse:
            self._add(
                Relation(
                    name=inverse,
                    kind=RelationKind.MANY_TO_MANY,
                    source=entity_b,
                    target=entity_a,
                    fields=(ref_b,),
                    references=(ref_a,),
                    through=join_table,
                    through_fields=(fk_b, fk_a),
                )
            )
        return relation

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def relations_of(self, entity: str) -> tuple[Relation, ...]:
        """All relations whose source is ``entity``, in declaration order."""
        return tuple(self._by_source.get(entity, {}).values())

    def get(self, entity: str, name: str) -> Relation | None:
        return self._by_source.get(entity, {}).get(name)

    def edges(self) -> tuple[Relation, ...]:
        return tuple(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, entity: str) -> TableDefinition:
        table = self._tables.get(entity)
        if table is None:
            raise DanglingReferenceError(f"Unknown entity '{entity}' in relation")
        return table

    def _add(self, relation: Relation) -> None:
        named = self._by_source.setdefault(relation.source, {})
        if relation.name in named:
            raise SchemaConflictError(
                f"Relation '{relation.source}.{relation.name}' declared twice"
            )
        named[relation.name] = relation
        self._edges.append(relation)
        logger.debug(
            "Relation %s.%s -> %s (%s)",
            relation.source,
            relation.name,
            relation.target,
            relation.kind.value,
        )

    @staticmethod
    def _single_pk(table: TableDefinition) -> str:
        if len(table.primary_key) != 1:
            raise DanglingReferenceError(
                f"Table '{table.name}' has no single-column primary key; "
                f"pass references= explicitly"
            )
        return table.primary_key[0]

    @staticmethod
    def _check_pk_member(table: TableDefinition, field: str, referrer: str) -> None:
        if field not in table.primary_key:
            raise DanglingReferenceError(
                f"'{referrer}' references '{table.name}.{field}', "
                f"which is not part of its primary key"
            )

    def _join_key(
        self,
        join: TableDefinition,
        target: TableDefinition,
        exclude: str | None = None,
    ) -> tuple[str, str]:
        """Find the join-table field referencing ``target``'s primary key."""
        for f in join.fields:
            if f.name == exclude or f.references is None:
                continue
            if f.references.table == target.name:
                self._check_pk_member(target, f.references.field, f"{join.name}.{f.name}")
                return f.name, f.references.field
        raise DanglingReferenceError(
            f"Join table '{join.name}' has no foreign key referencing '{target.name}'"
        )

"""CMS content schema: tables, relations and routes.

Every entity is declared once here. Each table is its raw field schema
plus the audit fields, and ``ProjectSchemaExporter`` exposes all of them
by name to the HTTP and storage layers.

Declaration errors surface at import time, so a broken schema stops the
process before any route is mounted.
"""

from cms_schema.schema.exporter import EntityBinding, SchemaRegistry
from cms_schema.schema.fields import compose_schema, field_schema, text
from cms_schema.schema.relations import RelationGraph
from cms_schema.schema.tables import IndexDef, define_table

# ============================================================================
# Tables
# ============================================================================

profile_schema = field_schema(
    text("id", primary_key=True),
    text("name"),
)
profiles_table = define_table("profiles", compose_schema(profile_schema))

user_schema = field_schema(
    text("id", primary_key=True),
    text("firstName"),
    text("lastName"),
    text("email"),
    text("password"),
    text("role", choices=("admin", "user")),
)
users_table = define_table("users", compose_schema(user_schema))

post_schema = field_schema(
    text("id", primary_key=True),
    text("title"),
    text("body"),
    text("userId"),
)
posts_table = define_table(
    "posts",
    compose_schema(post_schema),
    indexes=[IndexDef(name="postUserIdIndex", fields=("userId",))],
)

category_schema = field_schema(
    text("id", primary_key=True),
    text("title"),
    text("body"),
)
categories_table = define_table("categories", compose_schema(category_schema))

comment_schema = field_schema(
    text("id", primary_key=True),
    text("body"),
    text("userId"),
    text("postId"),
)
comments_table = define_table(
    "comments",
    compose_schema(comment_schema),
    indexes=[
        IndexDef(name="commentsUserIdIndex", fields=("userId",)),
        IndexDef(name="commentsPostIdIndex", fields=("postId",)),
    ],
)

# posts <-> categories join; the composite key makes a post/category pair unique
categories_to_posts_schema = field_schema(
    text("id", nullable=False),
    text("postId", nullable=False, references=("posts", "id")),
    text("categoryId", nullable=False, references=("categories", "id")),
)
categories_to_posts_table = define_table(
    "categoriesToPosts",
    compose_schema(categories_to_posts_schema),
    primary_key=("postId", "categoryId"),
)


# ============================================================================
# Relations
# ============================================================================


def build_relation_graph() -> RelationGraph:
    """Wire the relations between the CMS tables."""
    graph = RelationGraph(
        [
            users_table,
            posts_table,
            categories_table,
            comments_table,
            categories_to_posts_table,
            profiles_table,
        ]
    )

    # a user writes many posts and many comments
    graph.relate("posts", "users", "userId", name="user", inverse="posts")
    graph.relate("comments", "users", "userId", name="user", inverse="comments")

    # a post has many comments
    graph.relate("comments", "posts", "postId", name="post", inverse="comments")

    # join rows point at one post and one category
    graph.relate("categoriesToPosts", "posts", "postId", name="post")
    graph.relate("categoriesToPosts", "categories", "categoryId", name="category")

    graph.relate_many(
        "posts",
        "categories",
        "categoriesToPosts",
        name="categories",
        inverse="posts",
    )
    return graph


# ============================================================================
# Exporter
# ============================================================================

ENTITY_BINDINGS: tuple[EntityBinding, ...] = (
    EntityBinding(user_schema, users_table, "users"),
    EntityBinding(post_schema, posts_table, "posts"),
    EntityBinding(category_schema, categories_table, "categories"),
    EntityBinding(comment_schema, comments_table, "comments"),
    EntityBinding(categories_to_posts_schema, categories_to_posts_table, "categories-to-posts"),
    EntityBinding(profile_schema, profiles_table, "profiles"),
)


class ProjectSchemaExporter(SchemaRegistry):
    """Exporter over the CMS content entities."""

    def __init__(self) -> None:
        super().__init__(ENTITY_BINDINGS, relations=build_relation_graph())


# Built at import: declaration errors abort startup here
exporter = ProjectSchemaExporter()

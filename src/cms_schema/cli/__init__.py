"""CLI for inspecting the CMS schema and validating databases against it.

Usage:
    cms-schema routes
    cms-schema tables posts
    cms-schema relations users
    cms-schema ddl --dialect postgresql
    CMS_PROFILE=local cms-schema connect
    cms-schema validate

Commands:
    routes     - Show the route table mounted by the HTTP layer
    tables     - Show table definitions (fields, keys, indexes)
    relations  - Show declared relations
    ddl        - Print CREATE TABLE / CREATE INDEX statements
    connect    - Connect to a profile and validate the live schema
    validate   - Re-validate the current profile
"""

import argparse
import asyncio
import sys

from rich.console import Console
from rich.table import Table

from cms_schema.config.loader import load_config
from cms_schema.content import exporter
from cms_schema.factory import connect_and_validate, read_profile_lock
from cms_schema.storage.ddl import create_statements

console = Console()


def _api_prefix() -> str:
    try:
        return load_config().api_prefix
    except (FileNotFoundError, ValueError):
        return "/api"


# ============================================================================
# Schema inspection commands
# ============================================================================


def cmd_routes(args: argparse.Namespace) -> int:
    """Print the route table in mount order."""
    prefix = _api_prefix().rstrip("/")
    table = Table(title="Routes", show_header=True, header_style="bold")
    table.add_column("Table", style="cyan")
    table.add_column("Route")
    table.add_column("Path", style="dim")
    for binding in exporter.get_routes():
        table.add_row(binding.table, binding.route, f"{prefix}/{binding.route}")
    console.print(table)
    return 0


def cmd_tables(args: argparse.Namespace) -> int:
    """Print one or all table definitions."""
    names = [args.name] if args.name else exporter.entity_names()
    for name in names:
        definition = exporter.lookup_table(name)
        if definition is None:
            console.print(f"[bold red]x[/bold red] Unknown entity: {name}")
            return 1

        table = Table(title=definition.name, show_header=True, header_style="bold")
        table.add_column("Field", style="cyan")
        table.add_column("Type")
        table.add_column("Null")
        table.add_column("Key")
        table.add_column("References", style="dim")
        for f in definition.fields:
            key = "PK" if f.name in definition.primary_key else ""
            ref = f"{f.references.table}.{f.references.field}" if f.references else ""
            type_display = f.type
            if f.choices:
                type_display += f" ({' | '.join(f.choices)})"
            table.add_row(f.name, type_display, "yes" if f.nullable else "no", key, ref)
        console.print(table)

        for idx in definition.indexes:
            console.print(f"  [dim]index[/dim] {idx.name} ({', '.join(idx.fields)})")
    return 0


def cmd_relations(args: argparse.Namespace) -> int:
    """Print declared relations, optionally for one entity."""
    if args.name and args.name not in exporter:
        console.print(f"[bold red]x[/bold red] Unknown entity: {args.name}")
        return 1

    edges = exporter.lookup_relations(args.name) if args.name else exporter.relations.edges()
    table = Table(title="Relations", show_header=True, header_style="bold")
    table.add_column("Relation", style="cyan")
    table.add_column("Kind")
    table.add_column("Target")
    table.add_column("Keys", style="dim")
    for rel in edges:
        keys = f"{', '.join(rel.fields)} -> {', '.join(rel.references)}"
        if rel.through:
            keys += f" via {rel.through}"
        table.add_row(f"{rel.source}.{rel.name}", rel.kind.value, rel.target, keys)
    console.print(table)
    return 0


def cmd_ddl(args: argparse.Namespace) -> int:
    """Print the DDL for every table."""
    try:
        statements = create_statements(exporter.tables(), dialect=args.dialect)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    for stmt in statements:
        print(f"{stmt};\n")
    return 0


# ============================================================================
# Database commands
# ============================================================================


async def _async_connect(args: argparse.Namespace) -> int:
    """Connect to the active (or env-selected) profile and validate it."""
    env_prefix = getattr(args, "env_prefix", "")
    previous_profile = read_profile_lock()

    console.print("Connecting to database...", style="dim")
    result = await connect_and_validate(env_prefix=env_prefix)

    if result.success:
        console.print()
        console.print(
            f"[bold green]v[/bold green] Connected to profile: "
            f"[bold cyan]{result.profile_name}[/bold cyan]"
        )
        if result.schema_valid:
            console.print("  Schema validation: [green]PASSED[/green]")
        if result.schema_report and result.schema_report.extra_tables:
            console.print(
                f"  Extra tables: [yellow]"
                f"{', '.join(result.schema_report.extra_tables)}[/yellow]"
            )
        if previous_profile and previous_profile != result.profile_name:
            console.print(
                f"\n[dim]Switched from[/dim] [bold]{previous_profile}[/bold] "
                f"[dim]to[/dim] [bold cyan]{result.profile_name}[/bold cyan]"
            )
        return 0

    console.print()
    console.print(f"[bold red]x[/bold red] {result.error}")
    if result.schema_report:
        console.print("\n[bold]Schema validation report:[/bold]")
        console.print(result.schema_report.format_report())
    return 1


async def _async_validate(args: argparse.Namespace) -> int:
    """Re-validate the locked profile without touching the lock file."""
    env_prefix = getattr(args, "env_prefix", "")
    profile = read_profile_lock()

    if not profile:
        console.print("[yellow]No validated profile.[/yellow]")
        console.print("[dim]Run[/dim] [cyan]cms-schema connect[/cyan] [dim]first.[/dim]")
        return 1

    console.print(f"Validating schema for profile: [bold cyan]{profile}[/bold cyan]")
    result = await connect_and_validate(
        profile_name=profile, env_prefix=env_prefix, validate_only=True
    )

    if result.success:
        console.print()
        console.print("[bold green]v[/bold green] Schema is valid")
        return 0

    console.print()
    console.print("[bold red]x[/bold red] Schema has drifted")
    if result.schema_report:
        console.print(result.schema_report.format_report())
    elif result.error:
        console.print(result.error)
    return 1


def cmd_connect(args: argparse.Namespace) -> int:
    return asyncio.run(_async_connect(args))


def cmd_validate(args: argparse.Namespace) -> int:
    return asyncio.run(_async_validate(args))


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="cms-schema",
        description="Inspect the CMS schema and validate databases against it",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help="Prefix for environment variable lookup (e.g., APP_ reads APP_CMS_PROFILE)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_routes = subparsers.add_parser("routes", help="Show the route table")
    p_routes.set_defaults(func=cmd_routes)

    p_tables = subparsers.add_parser("tables", help="Show table definitions")
    p_tables.add_argument("name", nargs="?", help="Entity name (default: all)")
    p_tables.set_defaults(func=cmd_tables)

    p_relations = subparsers.add_parser("relations", help="Show declared relations")
    p_relations.add_argument("name", nargs="?", help="Source entity (default: all)")
    p_relations.set_defaults(func=cmd_relations)

    p_ddl = subparsers.add_parser("ddl", help="Print CREATE statements")
    p_ddl.add_argument(
        "--dialect",
        default="sqlite",
        choices=["sqlite", "postgresql"],
        help="SQL dialect (default: sqlite)",
    )
    p_ddl.set_defaults(func=cmd_ddl)

    p_connect = subparsers.add_parser(
        "connect", help="Connect to database and validate schema"
    )
    p_connect.set_defaults(func=cmd_connect)

    p_validate = subparsers.add_parser(
        "validate", help="Re-validate current profile schema"
    )
    p_validate.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

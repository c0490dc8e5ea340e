"""Storage adapter factory and profile handling.

Profiles live in ``cms.toml``. The active profile comes from the
``CMS_PROFILE`` environment variable (optionally prefixed) or from the
``.cms-profile`` lock file, which is written only after the live database
has been validated against the declared tables.

Usage:
    from cms_schema.factory import connect_and_validate, get_adapter

    result = await connect_and_validate("local")
    if result.success:
        adapter = await get_adapter()
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from cms_schema.adapters.postgres import AsyncPostgresAdapter
from cms_schema.config.loader import load_config
from cms_schema.config.models import DatabaseProfile
from cms_schema.schema.comparator import (
    expected_columns,
    expected_primary_keys,
    validate_schema,
)
from cms_schema.schema.exporter import SchemaRegistry
from cms_schema.schema.introspector import SchemaIntrospector
from cms_schema.schema.models import ConnectionResult

logger = logging.getLogger(__name__)

_PROFILE_LOCK_FILE = Path(".cms-profile")


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


# ============================================================================
# Profile Lock File Operations
# ============================================================================


def read_profile_lock() -> str | None:
    """Read profile name from lock file, or None if there is none."""
    if _PROFILE_LOCK_FILE.exists():
        return _PROFILE_LOCK_FILE.read_text().strip() or None
    return None


def write_profile_lock(profile_name: str) -> None:
    """Write profile name to lock file. Only call after successful validation."""
    _PROFILE_LOCK_FILE.write_text(profile_name)


def clear_profile_lock() -> None:
    if _PROFILE_LOCK_FILE.exists():
        _PROFILE_LOCK_FILE.unlink()


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Priority:
    1. ``{env_prefix}CMS_PROFILE`` env var
    2. ``.cms-profile`` lock file
    3. Raise ProfileNotFoundError

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}CMS_PROFILE")
    if env_profile:
        return env_profile

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_prefix}CMS_PROFILE=<name> cms-schema connect"
    )


def get_active_profile(env_prefix: str = "") -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Raises:
        ProfileNotFoundError: If no profile configured
        KeyError: If profile not found in cms.toml
    """
    profile_name = get_active_profile_name(env_prefix=env_prefix)
    config = load_config()

    if profile_name not in config.profiles:
        raise KeyError(
            f"Profile '{profile_name}' not found in cms.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Examples:
        >>> resolve_url(DatabaseProfile(url="postgresql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss"))
        'postgresql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    database_url: str | None = None,
    env_prefix: str = "",
) -> AsyncPostgresAdapter:
    """Create a new storage adapter.

    A direct ``database_url`` wins over profiles. Each call returns a new
    adapter; callers own its lifecycle and must ``await adapter.close()``.

    Raises:
        ProfileNotFoundError: If no URL and no profile is configured.
        KeyError: If the named profile is missing from cms.toml.
    """
    if database_url:
        return AsyncPostgresAdapter(database_url=database_url)

    if profile_name is None:
        profile_name, profile = get_active_profile(env_prefix=env_prefix)
    else:
        config = load_config()
        if profile_name not in config.profiles:
            raise KeyError(
                f"Profile '{profile_name}' not found in cms.toml.\n"
                f"Available profiles: {', '.join(config.profiles.keys())}"
            )
        profile = config.profiles[profile_name]

    return AsyncPostgresAdapter(database_url=resolve_url(profile))


# ============================================================================
# Connection and Validation
# ============================================================================


async def connect_and_validate(
    profile_name: str | None = None,
    registry: SchemaRegistry | None = None,
    env_prefix: str = "",
    validate_only: bool = False,
) -> ConnectionResult:
    """Connect to a profile's database and validate it against the tables.

    Args:
        profile_name: Profile from cms.toml. If None, uses the env var or
            the existing lock file.
        registry: Registry whose tables are expected. Defaults to the CMS
            content exporter.
        env_prefix: Prefix for the ``CMS_PROFILE`` env var.
        validate_only: Validate without writing the lock file.

    Returns:
        ConnectionResult with success status and validation report. Errors
        are reported in the result, never raised.
    """
    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix=env_prefix)
        except ProfileNotFoundError as e:
            return ConnectionResult(success=False, error=str(e))

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as e:
        return ConnectionResult(success=False, profile_name=profile_name, error=str(e))

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys())
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Profile '{profile_name}' not found. Available: {available}",
        )
    profile = config.profiles[profile_name]

    if not config.validate_on_connect:
        if not validate_only:
            write_profile_lock(profile_name)
        return ConnectionResult(success=True, profile_name=profile_name)

    if registry is None:
        from cms_schema.content import exporter as registry

    try:
        async with SchemaIntrospector(resolve_url(profile)) as introspector:
            actual_columns = await introspector.get_column_names()
            actual_keys = await introspector.get_primary_keys()
    except Exception as e:
        logger.warning("Connection to profile %s failed: %s", profile_name, e)
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Failed to connect to database: {e}",
        )

    validation = validate_schema(
        actual_columns,
        expected_columns(registry),
        actual_primary_keys=actual_keys,
        expected_primary_keys=expected_primary_keys(registry),
    )

    if validation.valid:
        if not validate_only:
            write_profile_lock(profile_name)
        return ConnectionResult(
            success=True,
            profile_name=profile_name,
            schema_valid=True,
            schema_report=validation,
        )

    return ConnectionResult(
        success=False,
        profile_name=profile_name,
        schema_valid=False,
        schema_report=validation,
        error=f"Schema validation failed: {validation.error_count} errors",
    )

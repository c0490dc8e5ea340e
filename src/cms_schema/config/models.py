"""Pydantic models for ``cms.toml`` configuration."""

from pydantic import BaseModel, Field


class DatabaseProfile(BaseModel):
    """Database connection profile from cms.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"


class CmsConfig(BaseModel):
    """Complete configuration from cms.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    api_prefix: str = "/api"
    validate_on_connect: bool = True

    def route_path(self, route: str) -> str:
        """Join the API prefix and a route segment.

        Examples:
            >>> CmsConfig(api_prefix="/api/").route_path("categories-to-posts")
            '/api/categories-to-posts'
        """
        return f"{self.api_prefix.rstrip('/')}/{route}"

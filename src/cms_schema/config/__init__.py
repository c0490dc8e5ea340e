"""Configuration: profiles, TOML loading, and config models.

Usage:
    >>> from cms_schema.config import load_config, DatabaseProfile, CmsConfig
"""

from cms_schema.config.loader import load_config
from cms_schema.config.models import CmsConfig, DatabaseProfile

__all__ = ["load_config", "CmsConfig", "DatabaseProfile"]

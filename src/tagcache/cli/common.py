"""Shared helpers for CLI commands."""

from __future__ import annotations

from tagcache.config import Settings
from tagcache.observability.logging import configure_logging
from tagcache.provider import CacheProvider


def load_provider(verbose: bool = False) -> tuple[Settings, CacheProvider]:
    """Read settings from the environment and build a provider."""
    settings = Settings()
    configure_logging(
        json_format=settings.log_json,
        level="DEBUG" if verbose else settings.log_level,
    )
    return settings, CacheProvider.from_settings(settings)

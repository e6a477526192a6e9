from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_csv(value: str | None) -> list[str]:
    """Split a comma separated setting into its non-blank items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TAGCACHE_",
        env_file=".env",
        extra="ignore",
        env_parse_none_str="null",
    )

    app_name: str = "tagcache"

    # Cache store
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    cache_backend: str = Field(default="redis", validation_alias="CACHE_BACKEND")
    cache_prefix: str = Field(default="cached", validation_alias="CACHE_PREFIX")
    # Site handles used to rebuild per-site URI keys without tag support
    cache_sites: str = Field(default="", validation_alias="CACHE_SITES")

    # Entries change often, so the TTL is short
    entries_enabled: bool = Field(default=True, validation_alias="CACHED_ENTRIES_ENABLED")
    entries_duration: int | None = Field(default=300, validation_alias="CACHED_ENTRIES_DURATION")
    entries_exclude: str = Field(default="", validation_alias="CACHED_ENTRIES_EXCLUDE")
    entries_tagged_only: bool = Field(default=False, validation_alias="CACHED_ENTRIES_TAGGED_ONLY")
    entries_flush_uris: bool = Field(default=True, validation_alias="CACHED_ENTRIES_FLUSH_URIS")

    # Global variables rarely change
    globals_enabled: bool = Field(default=True, validation_alias="CACHED_GLOBALS_ENABLED")
    globals_duration: int | None = Field(default=86400, validation_alias="CACHED_GLOBALS_DURATION")
    globals_exclude: str = Field(default="", validation_alias="CACHED_GLOBALS_EXCLUDE")

    # Fieldsets are configuration data
    fieldsets_enabled: bool = Field(default=True, validation_alias="CACHED_FIELDSETS_ENABLED")
    fieldsets_duration: int | None = Field(
        default=86400, validation_alias="CACHED_FIELDSETS_DURATION"
    )
    fieldsets_exclude: str = Field(default="", validation_alias="CACHED_FIELDSETS_EXCLUDE")

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")

    @property
    def sites(self) -> list[str]:
        return split_csv(self.cache_sites)


settings = Settings()

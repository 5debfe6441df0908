from __future__ import annotations

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
    )

    # catalog listing
    CATALOG_PAGE_SIZE: int = Field(default=50, ge=1, le=200)
    # where unresolvable recipe links are sent
    FALLBACK_LISTING_PATH: str = "/recipes"

    @field_validator("FALLBACK_LISTING_PATH")
    @classmethod
    def _local_path_only(cls, value: str) -> str:
        if not value.startswith("/") or value.startswith("//"):
            raise ValueError("FALLBACK_LISTING_PATH must be a path on this site, e.g. /recipes")
        return value


settings = Settings()

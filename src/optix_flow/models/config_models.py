"""Configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class BackendConfig(BaseModel):
    """Hosted backend configuration."""

    url: str = Field(default="https://optix-flow.supabase.co")
    anon_key: str = Field(default="")
    timeout: int = Field(default=30)
    retry: int = Field(default=3)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("url cannot be empty")
        return v.strip().rstrip("/")


class StorageConfig(BaseModel):
    """Guest storage configuration."""

    guest_dir: str | None = Field(
        default=None, description="Directory of the guest record (default: user data dir)"
    )


class MigrationConfig(BaseModel):
    """Guest-to-account migration configuration."""

    clear_on_partial_failure: bool = Field(
        default=True,
        description="Clear the guest record even if some upserts failed",
    )


class AppConfig(BaseModel):
    """Main Optix Flow configuration."""

    backend: BackendConfig = Field(default_factory=BackendConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    log_level: str = Field(default="INFO")

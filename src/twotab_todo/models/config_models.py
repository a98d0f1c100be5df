"""Configuration models for the two-tab todo app."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class RemoteConfig(BaseModel):
    """Remote store configuration.

    Sync stays disabled while ``endpoint`` is unset.
    """

    endpoint: str | None = Field(default=None, description="Base URL of the sync API")
    timeout: int = Field(default=30)
    retry: int = Field(default=3, ge=0)
    poll_interval: float = Field(default=5.0, gt=0)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str | None) -> str | None:
        """Treat blank endpoints as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")

    @property
    def is_configured(self) -> bool:
        return self.endpoint is not None


class AppConfig(BaseModel):
    """Main configuration."""

    storage_key: str = Field(
        default="two-tab-todo-v1", description="Name of the cached state record"
    )
    data_dir: str | None = Field(
        default=None, description="Override for the directory holding cached state"
    )
    notice_duration: float = Field(default=2.6, gt=0)
    snapshot_timeout: float = Field(
        default=10.0, ge=0, description="Seconds the CLI waits for the first snapshot"
    )
    log_level: str = Field(default="INFO")

    remote: RemoteConfig = Field(default_factory=RemoteConfig)

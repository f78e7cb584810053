"""
Environment configuration for stickydisk.

Loads configuration from environment variables using pydantic-settings.
The settings object is built once by the command line entry point and
passed explicitly to every component.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Control plane
    region: str = Field(default="eu-central", validation_alias="BLACKSMITH_REGION")
    installation_model_id: str = Field(default="", validation_alias="BLACKSMITH_INSTALLATION_MODEL_ID")
    vm_id: str = Field(default="", validation_alias=AliasChoices("BLACKSMITH_VM_ID", "VM_ID"))
    stickydisk_token: str = Field(default="", validation_alias="BLACKSMITH_STICKYDISK_TOKEN")
    repo_name: str = Field(default="", validation_alias="GITHUB_REPO_NAME")
    control_plane_host: str = Field(default="192.168.127.1", validation_alias="BLACKSMITH_STICKY_DISK_HOST")
    control_plane_port: int = Field(
        default=5557, ge=1, le=65535, validation_alias="BLACKSMITH_STICKY_DISK_GRPC_PORT"
    )

    # Timeouts
    acquire_timeout_seconds: float = Field(default=45.0, gt=0, validation_alias="STICKYDISK_ACQUIRE_TIMEOUT")
    commit_timeout_seconds: float = Field(default=30.0, gt=0, validation_alias="STICKYDISK_COMMIT_TIMEOUT")

    # Teardown
    unmount_max_attempts: int = Field(default=10, ge=1, validation_alias="STICKYDISK_UNMOUNT_ATTEMPTS")
    unmount_retry_delay_seconds: float = Field(default=0.3, ge=0, validation_alias="STICKYDISK_UNMOUNT_DELAY")
    durability_flush: bool = Field(default=True, validation_alias="STICKYDISK_DURABILITY_FLUSH")

    # Host
    use_sudo: bool = Field(default=True, validation_alias="STICKYDISK_USE_SUDO")
    internal_mount_base: str = Field(default="/mnt/stickydisk", validation_alias="STICKYDISK_INTERNAL_MOUNT_BASE")
    state_file: str = Field(default="/tmp/stickydisk-state.json", validation_alias="STICKYDISK_STATE_FILE")
    runner_root: Optional[str] = Field(default=None, validation_alias="RUNNER_ROOT")

    # Cache deletion
    cache_url: str = Field(default="", validation_alias="BLACKSMITH_CACHE_URL")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="STICKYDISK_LOG_LEVEL")
    log_format: str = Field(default="text", validation_alias="STICKYDISK_LOG_FORMAT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.strip().upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.strip().upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"text", "json", "github"}
        if v.strip().lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}")
        return v.strip().lower()

    @property
    def control_plane_url(self) -> str:
        return f"http://{self.control_plane_host}:{self.control_plane_port}"


@lru_cache()
def get_settings() -> Settings:
    """
    Return the settings singleton.

    Only the command line entry point calls this; components receive the
    settings object through their constructors.
    """
    return Settings()

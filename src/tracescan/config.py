"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Reports
    reports_dir: Path = Field(
        default=Path.home() / ".tracescan" / "reports",
        description="Directory receiving signed report pairs (JSON + PDF)",
    )
    signing_key_path: Path | None = Field(
        default=None,
        description="Optional PEM Ed25519 private key; a fresh key is generated per process when unset",
    )
    report_version: str = Field(default="1.0.0", description="Report format version")
    report_max_bytes: int = Field(
        default=16 * 1024 * 1024, ge=1, description="Largest report file accepted for verification"
    )

    @field_validator("reports_dir", "signing_key_path", mode="before")
    @classmethod
    def expand_path(cls, v):
        """Expand ~ in path strings."""
        if isinstance(v, str):
            return Path(v).expanduser() if v else None
        return v

    # API
    api_host: str = Field(default="127.0.0.1", description="API bind host")
    api_port: int = Field(default=6875, description="API port")
    api_reload: bool = Field(default=False, description="Enable auto-reload")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    # Subprocess bounds
    command_timeout_seconds: float = Field(default=15.0, description="Default OS command timeout")
    encryption_timeout_seconds: float = Field(
        default=10.0, description="Timeout for volume encryption queries"
    )
    hidden_scan_timeout_seconds: float = Field(
        default=45.0, description="Timeout for hidden-file subprocess queries and walks"
    )
    event_log_timeout_seconds: float = Field(
        default=45.0, description="Timeout for each event log channel query"
    )
    command_output_limit: int = Field(
        default=4 * 1024 * 1024, description="Byte ceiling for captured command output"
    )

    # Hidden-artifact scanner
    hidden_scan_limit: int = Field(default=200, ge=1, description="Maximum artifacts returned")
    hidden_scan_depth: int = Field(default=3, ge=0, description="Levels below the scan root")
    hidden_walk_max_nodes: int = Field(
        default=50_000, ge=1, description="Directory entries visited per walk before giving up"
    )

    # Event log miner
    event_channel_limit: int = Field(default=50, description="Channels kept from enumeration")
    event_raw_limit: int = Field(default=100, description="Raw events requested per channel")
    event_parsed_limit: int = Field(default=20, description="Parsed entries kept per channel")

    # Artifact preview
    preview_max_bytes: int = Field(default=2048, description="Bytes read for an artifact preview")

    # Wipe simulation
    wipe_step_count: int = Field(default=10, ge=1, description="Steps in the wipe simulation")
    wipe_step_delay_seconds: float = Field(
        default=0.5, ge=0, description="Delay between wipe simulation steps"
    )

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "app://."],
        description="Allowed CORS origins",
    )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings (for dependency injection)."""
    return settings

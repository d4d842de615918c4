"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env file.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="MEDIC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="preview-medic", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Regenerator service
    regenerator_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the code regeneration service",
    )
    regenerator_path: str = Field(
        default="/api/builder/regenerate",
        description="Regeneration endpoint path",
    )
    regenerator_timeout_seconds: float = Field(
        default=120.0,
        description="Timeout for a single regeneration call",
    )

    # Preview
    preview_timeout_ms: int = Field(
        default=10000,
        description="Wall-clock budget for the preview to finish loading",
    )

    # Self-heal policy file
    self_heal_config_path: str = Field(
        default=".medic/self_heal.yaml",
        description="YAML file holding the self-heal policy",
    )

    # Logging / Privacy
    log_redaction_enabled: bool = Field(default=True, description="Enable PII redaction in logs")

    @field_validator("preview_timeout_ms")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("preview_timeout_ms must be positive")
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def regenerate_endpoint(self) -> str:
        return self.regenerator_url.rstrip("/") + "/" + self.regenerator_path.lstrip("/")


# Global settings instance
settings = Settings()

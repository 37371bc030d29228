"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CITYGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Generation
    voronoi_repair_epsilon: float = Field(
        default=1e-8, gt=0, description="Distance under which Voronoi vertices are merged"
    )
    site_attempts_per_district: int = Field(
        default=5, ge=1, description="Random site candidates tried per desired district"
    )


settings = Settings()

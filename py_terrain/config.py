"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_TERRAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Map Generation Configuration
    default_width: int = Field(default=1000, description="Default grid width in cells")
    default_height: int = Field(default=1000, description="Default grid height in cells")
    max_width: int = Field(default=4000, description="Max allowed grid width")
    max_height: int = Field(default=4000, description="Max allowed grid height")
    tile_size_meters: float = Field(default=1.0, description="Edge length of one cell in meters")

    # Contour Configuration
    min_contour_interval: float = Field(
        default=0.01, description="Smallest accepted iso-interval in elevation units"
    )
    default_contour_interval: float = Field(
        default=1.0, description="Iso-interval used when the caller gives none"
    )

    # Fauna Configuration
    default_fox_count: int = Field(default=8, description="Foxes placed when no count is given")
    default_hare_count: int = Field(default=18, description="Hares placed when no count is given")


settings = Settings()

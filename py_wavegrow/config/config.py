"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from ``WAVEGROW_*`` environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="plain", description="Logging format (plain or json)"
    )

    # Randomness
    default_seed: str = Field(
        default="wavegrow", description="Seed used when none is supplied"
    )

    # Grid growth
    band_width: int = Field(default=2, description="BFS layers painted per wave")
    connectivity: int = Field(default=8, description="Neighbourhood (4 or 8)")
    cell_size: float = Field(default=1.0, description="World units per grid cell")

    # Polygon growth
    ring_thickness: float = Field(
        default=1.0, description="Default outward offset per wave"
    )
    wall_height: float = Field(default=0.2, description="Side wall extrusion depth")

    # Waves
    wave_interval_seconds: float = Field(
        default=30.0, description="Seconds between timed waves"
    )
    start_wave_index: int = Field(default=1, description="Index of the first wave")

    # Placement
    min_separation: float = Field(
        default=1.5, description="Minimum distance between placements"
    )
    max_tries_per_unit: int = Field(
        default=10, description="Rejection-sampling attempts per target item"
    )
    min_spawn_distance_from_player: float = Field(
        default=4.0, description="Enemies never spawn closer than this to the player"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "WAVEGROW_"


settings = Settings()

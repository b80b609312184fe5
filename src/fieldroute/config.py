"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Route Planner API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level for the service.")

    geocoding_provider: Literal["google"] = Field(
        default="google",
        description="Geocoding collaborator used to resolve addresses.",
    )
    routing_provider: Literal["osrm", "google", "none"] = Field(
        default="osrm",
        description="Routing collaborator used for paths and waypoint optimization.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Google Geocoding and Directions web services.",
    )
    google_geocoding_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    google_directions_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing paths.",
    )
    provider_timeout_seconds: float = Field(default=10.0, gt=0.0)
    provider_max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries on transient provider errors. 0 leaves retrying to the caller.",
    )
    provider_backoff_seconds: float = Field(default=0.5, ge=0.0)
    geocode_timeout_seconds: float = Field(default=15.0, gt=0.0)
    geocode_cache_ttl_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Expire cached addresses after this many seconds. Unset keeps them forever.",
    )
    optimize_waypoints: bool = Field(
        default=True,
        description="Ask the routing provider to reorder waypoints.",
    )
    sequencer_two_opt: bool = Field(
        default=True,
        description="Run a 2-opt pass over the nearest-neighbour order.",
    )
    sequencer_max_two_opt_passes: int = Field(default=50, ge=1)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()

"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETFARE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "FleetFare API"
    api_prefix: str = "/api"

    # Fare policy for this deployment
    base_fare: int = Field(default=5000, ge=0, description="Flat fare charged on every trip (PYG).")
    per_km_rate: int = Field(default=1500, ge=0, description="Charge per kilometre travelled (PYG).")
    currency: str = Field(default="PYG", min_length=3, max_length=3)
    average_speed_kmh: float = Field(default=30.0, gt=0.0, description="Speed used for ETA estimates.")

    # Home city coordinate used when neither the device nor the feed knows where the bus is
    default_latitude: Optional[float] = Field(default=-25.2808, ge=-90.0, le=90.0)
    default_longitude: Optional[float] = Field(default=-57.6312, ge=-180.0, le=180.0)

    confirmation_reset_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Delay before a confirmed terminal returns to idle.",
    )
    broadcast_enabled: bool = Field(
        default=True,
        description="Disable to run the fare notifier in degraded (no-op) mode.",
    )
    broadcast_channel: str = Field(default="fare-updates")
    frequent_destinations: int = Field(default=4, ge=1)
    tracking_sample_window: int = Field(
        default=500,
        ge=1,
        description="How many recent location rows to scan when listing the newest sample per bus.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
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

    @field_validator("default_latitude", "default_longitude", mode="before")
    @classmethod
    def _blank_coordinate_as_none(cls, value: Any) -> Any:
        """An empty env value switches the home-city fallback off."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def has_default_location(self) -> bool:
        return self.default_latitude is not None and self.default_longitude is not None


settings = Settings()

"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "InterviewLens"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Score aggregation
    smoothing_factor: float = Field(default=0.1, gt=0, le=1)
    clamp_all_samples: bool = False  # Clamp engagement/professionalism samples too

    # Gaze estimation
    eye_contact_quantum_ms: int = 1000  # Credited per frame with eye contact
    landmark_gaze_threshold: float = 0.15  # Fraction of face box size
    reference_frame_width: int = 640
    reference_frame_height: int = 480
    simplified_max_horizontal_px: float = 100
    simplified_max_vertical_px: float = 80

    # Session lifecycle
    session_grace_period_seconds: float = 300  # Summary kept 5 minutes after end
    timeline_interval_seconds: float = 10
    default_user_id: str = "anonymous"

    # Live recommendation thresholds
    live_eye_contact_threshold: float = 60
    live_confidence_threshold: float = 50
    live_engagement_threshold: float = 40

    # Final recommendation thresholds
    final_confidence_threshold: float = 60
    final_eye_contact_threshold: float = 50
    final_engagement_threshold: float = 50

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

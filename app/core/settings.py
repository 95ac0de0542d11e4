"""
Core settings and environment variables for the Civic Report Lifecycle Engine.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Civic Report Lifecycle Engine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory store for local development and tests (no Firebase credentials needed)
    USE_MOCK_DB: bool = False

    # Lifecycle rules
    ESCALATION_SUPPORT_THRESHOLD: int = 5  # Support votes needed for pending -> escalated
    DISTANCE_STRATEGY: str = "planar"  # "planar" (raw degrees) or "haversine"
    INFRA_REPORT_TYPES: str = "public_bin_request,public_toilet_request"
    NOTIFICATION_FEED_LIMIT: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def infra_report_types(self) -> List[str]:
        return [t.strip() for t in self.INFRA_REPORT_TYPES.split(",") if t.strip()]


# Global settings instance
settings = Settings()

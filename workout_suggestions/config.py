"""Configuration management for the workout suggestion engine."""

import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == "true"


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./workout_suggestions.db")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    USER_HASH_SALT: str = os.getenv("USER_HASH_SALT", "")

    # Generator versions and fallback policy
    GENERATOR_VERSION_DEFAULT: str = os.getenv("GENERATOR_VERSION_DEFAULT", "v0.3.0")
    GENERATOR_FALLBACK: str = os.getenv("GENERATOR_FALLBACK", "v0.2.5")
    GENERATOR_ALLOW_FALLBACK: bool = _env_bool("GENERATOR_ALLOW_FALLBACK", "true")
    GENERATOR_URL: str = os.getenv("GENERATOR_URL", "http://localhost:8787")
    GENERATOR_TIMEOUT_SECONDS: float = float(os.getenv("GENERATOR_TIMEOUT_SECONDS", "20"))

    # Error tracking
    SENTRY_DSN: Optional[str] = os.getenv("SENTRY_DSN") or None
    SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "development")

    # Generation rate limit (per user, trailing window)
    GENERATION_RATE_LIMIT: int = int(os.getenv("GENERATION_RATE_LIMIT", "20"))
    GENERATION_RATE_WINDOW_SECONDS: float = float(os.getenv("GENERATION_RATE_WINDOW_SECONDS", "60"))

    # Suggestion defaults
    DEFAULT_DURATION: int = int(os.getenv("SUGGESTION_DEFAULT_DURATION", "30"))  # minutes
    DEFAULT_INTENSITY: int = int(os.getenv("SUGGESTION_DEFAULT_INTENSITY", "5"))  # 1-10
    DURATION_FLOOR: int = int(os.getenv("SUGGESTION_DURATION_FLOOR", "15"))
    DURATION_CAP: int = int(os.getenv("SUGGESTION_DURATION_CAP", "60"))

    # Enrichment thresholds (composite scores are 0-100)
    LOW_PERFORMANCE_THRESHOLD: float = float(os.getenv("LOW_PERFORMANCE_THRESHOLD", "55"))
    HIGH_PERFORMANCE_THRESHOLD: float = float(os.getenv("HIGH_PERFORMANCE_THRESHOLD", "75"))
    LOW_ENERGY_BALANCE_THRESHOLD: float = float(os.getenv("LOW_ENERGY_BALANCE_THRESHOLD", "50"))
    LOW_CIRCADIAN_THRESHOLD: float = float(os.getenv("LOW_CIRCADIAN_THRESHOLD", "65"))
    MIN_DAYLIGHT_UV_INDEX: float = float(os.getenv("MIN_DAYLIGHT_UV_INDEX", "3"))

    # Equipment assumed when the caller does not provide any
    DEFAULT_EQUIPMENT: str = os.getenv("DEFAULT_EQUIPMENT", "dumbbells,bodyweight")

    @classmethod
    def get_default_equipment(cls) -> list[str]:
        """Parse the comma-separated default equipment list."""
        items = [item.strip() for item in cls.DEFAULT_EQUIPMENT.split(",")]
        return [item for item in items if item] or ["bodyweight"]

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration values that would break generation."""
        if cls.GENERATOR_TIMEOUT_SECONDS <= 0:
            raise ValueError("GENERATOR_TIMEOUT_SECONDS must be positive")
        if cls.GENERATION_RATE_LIMIT < 1:
            raise ValueError("GENERATION_RATE_LIMIT must be at least 1")
        if cls.DURATION_FLOOR > cls.DURATION_CAP:
            raise ValueError("SUGGESTION_DURATION_FLOOR cannot exceed SUGGESTION_DURATION_CAP")
        return True


config = Config()

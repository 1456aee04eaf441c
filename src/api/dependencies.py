"""FastAPI dependency injection helpers."""

from src.config import Settings, settings


def get_settings() -> Settings:
    """Application settings; overridden in tests."""
    return settings

"""Settings singleton used throughout the application."""
from app.core.settings import Settings, get_settings

settings: Settings = get_settings()

__all__ = ["settings", "Settings", "get_settings"]

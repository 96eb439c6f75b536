"""Configuration package."""

from ghtranscript.config.settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]

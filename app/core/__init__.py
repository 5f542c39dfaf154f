"""Core: config and application bootstrap.

Single place for settings and startup/shutdown wiring.
"""

from app.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]

"""
Svc-Core Configuration Package.

Provides application settings bound from .env files and environment variables.
"""

from svc_config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]

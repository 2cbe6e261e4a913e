"""
quickdash configuration.

- Pydantic-based settings (environment variables, .env files)
- Dashboard definition files (YAML/JSON)
"""

from quickdash.config.loader import load_dashboard, save_dashboard
from quickdash.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "load_dashboard",
    "save_dashboard",
]

"""
Configuration package for mdpress

Provides render settings via environment variables and YAML profiles using
pydantic-settings.
"""

from .settings import appsettings, RenderSettings, settings_load, settings_resolve

__all__ = ["appsettings", "RenderSettings", "settings_load", "settings_resolve"]

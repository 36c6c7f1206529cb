"""Configuration management package."""

from .settings import ICSForgeSettings, get_settings, reset_settings

__all__ = ["ICSForgeSettings", "get_settings", "reset_settings"]

"""Configuration management."""

from sirscore.config.settings import SirScoreSettings, clear_settings_cache, get_settings

__all__ = ["SirScoreSettings", "clear_settings_cache", "get_settings"]

"""
Core configuration module for peopledb.

Provides centralized configuration management with support for directory paths,
environment variables and secret masking.
"""

from peopledb.core.config.config import Config, CoreConfig, CoreSettings, SettingsLike

__all__ = ["Config", "CoreConfig", "CoreSettings", "SettingsLike"]

"""
Core functionality components.
"""

from updater_publish.core.config import AppConfig, ConfigError, PublishSettings, load_settings
from updater_publish.core.detector import SystemDetector, SystemInfo
from updater_publish.core.executor import CommandError, CommandExecutor, CommandResult

__all__ = [
    "AppConfig",
    "ConfigError",
    "PublishSettings",
    "load_settings",
    "SystemDetector",
    "SystemInfo",
    "CommandError",
    "CommandExecutor",
    "CommandResult",
]

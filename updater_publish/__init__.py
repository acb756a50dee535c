"""
updater-publish - publish installer builds into a remote update server container
"""

from updater_publish.__version__ import __version__
from updater_publish.core.config import AppConfig, PublishSettings
from updater_publish.publisher import Publisher

__all__ = [
    "AppConfig",
    "PublishSettings",
    "Publisher",
    "__version__",
]

"""
Logging components.
"""

from updater_publish.storage.logger import setup_logging

__all__ = [
    "setup_logging",
]

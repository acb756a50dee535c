"""
Remote host access over the system ssh/scp binaries.
"""

from updater_publish.remote.session import SSHSession
from updater_publish.remote.steps import RemotePlan

__all__ = [
    "RemotePlan",
    "SSHSession",
]

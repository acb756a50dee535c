"""
Release artifact discovery.
"""

from updater_publish.release.artifacts import (
    ArtifactError,
    ReleaseArtifacts,
    discover_artifacts,
    find_installer,
    find_manifest,
    parse_version,
    read_version,
)

__all__ = [
    "ArtifactError",
    "ReleaseArtifacts",
    "discover_artifacts",
    "find_installer",
    "find_manifest",
    "parse_version",
    "read_version",
]

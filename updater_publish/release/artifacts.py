"""
Locate the installer and update manifest of a local build.

Layout produced by the build:

    <project>/package.json              version descriptor
    <project>/release/<base version>/   release directory
        <Name>-<version>-Setup.exe      installer
        latest.yml / <channel>.yml      update manifest
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel

VERSION_DESCRIPTOR = "package.json"
RELEASE_ROOT = "release"
MANIFEST_SUFFIX = ".yml"
INSTALLER_SUFFIX = "-setup.exe"


class ArtifactError(Exception):
    """Raised when the version or release artifacts cannot be found."""


class ReleaseArtifacts(BaseModel):
    """Files of one release, ready to upload."""

    version: str
    base_version: str
    channel: str
    release_dir: Path
    manifest: Path
    installer: Path

    @property
    def manifest_name(self) -> str:
        return self.manifest.name

    @property
    def installer_name(self) -> str:
        return self.installer.name


def read_version(project_dir: Path) -> str:
    """Read the version field of package.json."""
    descriptor = project_dir / VERSION_DESCRIPTOR
    try:
        data = json.loads(descriptor.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ArtifactError(f"No version found in {VERSION_DESCRIPTOR}: {descriptor} does not exist")
    except json.JSONDecodeError as e:
        raise ArtifactError(f"No version found in {VERSION_DESCRIPTOR}: invalid JSON ({e})")

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version.strip():
        raise ArtifactError(f"No version found in {VERSION_DESCRIPTOR}")
    return version.strip()


def parse_version(version: str) -> Tuple[str, str]:
    """
    Split a semver string into (base_version, channel).

    Build metadata after '+' is dropped. The channel is the first dot
    component of the prerelease tag:

        1.4.0            -> ("1.4.0", "")
        1.4.0-beta.2+sha -> ("1.4.0-beta.2", "beta")
    """
    base_version = version.split("+")[0]
    parts = base_version.split("-")
    prerelease = parts[1] if len(parts) > 1 else ""
    channel = prerelease.split(".")[0] if prerelease else ""
    return base_version, channel


def _manifest_candidates(channel: str) -> List[str]:
    """Manifest file names to try, in order."""
    if channel:
        return [
            f"{channel}{MANIFEST_SUFFIX}",
            f"latest-{channel}{MANIFEST_SUFFIX}",
            f"latest{MANIFEST_SUFFIX}",
        ]
    return [f"latest{MANIFEST_SUFFIX}"]


def _list_files(release_dir: Path) -> List[Path]:
    return sorted((p for p in release_dir.iterdir() if p.is_file()), key=lambda p: p.name)


def find_manifest(release_dir: Path, channel: str) -> Path:
    """
    Pick the update manifest for a channel.

    Tries <channel>.yml (or latest.yml without a channel), then
    latest-<channel>.yml, then latest.yml, then any *.yml.
    """
    for name in _manifest_candidates(channel):
        candidate = release_dir / name
        if candidate.is_file():
            return candidate

    any_manifest: Optional[Path] = next(
        (p for p in _list_files(release_dir) if p.name.endswith(MANIFEST_SUFFIX)),
        None,
    )
    if any_manifest is None:
        raise ArtifactError(
            f"No updater manifest (*{MANIFEST_SUFFIX}) found in {release_dir}. Build may have failed."
        )
    logger.warning(f"No manifest for channel '{channel or 'latest'}', using {any_manifest.name}")
    return any_manifest


def find_installer(release_dir: Path) -> Path:
    """Return the first *-Setup.exe (case-insensitive) in the release directory."""
    for path in _list_files(release_dir):
        if path.name.lower().endswith(INSTALLER_SUFFIX):
            return path
    raise ArtifactError(f"No Windows installer (*-Setup.exe) found in {release_dir}")


def discover_artifacts(project_dir: Path) -> ReleaseArtifacts:
    """
    Resolve the installer and manifest for the version in package.json.

    Raises:
        ArtifactError: if the version, release directory, manifest or
            installer is missing
    """
    version = read_version(project_dir)
    base_version, channel = parse_version(version)

    release_dir = project_dir / RELEASE_ROOT / base_version
    if not release_dir.is_dir():
        raise ArtifactError(f"Release directory not found: {release_dir}. Run the build first.")

    manifest = find_manifest(release_dir, channel)
    installer = find_installer(release_dir)

    logger.debug(f"Release {version}: manifest={manifest.name}, installer={installer.name}")

    return ReleaseArtifacts(
        version=version,
        base_version=base_version,
        channel=channel,
        release_dir=release_dir,
        manifest=manifest,
        installer=installer,
    )

"""Version information for updater-publish."""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

__license__ = "MIT"
__description__ = "Publish installer builds and update manifests into a remote container"

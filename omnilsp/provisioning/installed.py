"""Discovery of server versions installed under an install root."""

import logging
from pathlib import Path
from typing import Optional, Set, Tuple

from omnilsp.provisioning.packages import HostPlatform
from omnilsp.provisioning.versions import is_version_tag, latest, version_key

logger = logging.getLogger("omnilsp.provisioning.installed")


def list_installed(root: Path) -> Set[str]:
    """List the version tags installed under ``root``.

    Args:
        root: Install root directory.

    Returns:
        Names of first-level subdirectories that look like version tags.
        Empty if ``root`` does not exist.
    """
    root = Path(root)
    if not root.is_dir():
        return set()

    return {entry.name for entry in root.iterdir() if entry.is_dir() and is_version_tag(entry.name)}


def latest_installed(root: Path) -> Optional[str]:
    """Return the newest installed version tag, or None."""
    return latest(list_installed(root))


def binary_path(root: Path, version: Optional[str], host: HostPlatform) -> Optional[Path]:
    """Return where the server executable of ``version`` lives.

    The file is not required to exist.
    """
    if version is None:
        return None
    return Path(root) / version / host.executable_name


def latest_verified(root: Path, host: HostPlatform) -> Tuple[Optional[str], Optional[Path]]:
    """Find the newest installed version whose executable is present.

    Versions whose directory exists but whose executable is missing (an
    interrupted or failed install) are skipped.

    Returns:
        ``(version, path)``, or ``(None, None)`` when nothing usable is installed.
    """
    for version in sorted(list_installed(root), key=version_key, reverse=True):
        path = binary_path(root, version, host)
        if path is not None and path.is_file():
            return version, path
        logger.debug(f"Skipping {version}: no executable at {path}")
    return None, None

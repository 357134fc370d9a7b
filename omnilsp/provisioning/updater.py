"""Deciding when to install, and resolving a runnable server executable."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from omnilsp.errors import NetworkError, OmniLspError, ParseError, ServerUnavailable
from omnilsp.provisioning.installed import latest_verified
from omnilsp.provisioning.installer import InstallationOutcome, Installer
from omnilsp.provisioning.releases import fetch_releases, latest_available
from omnilsp.provisioning.versions import compare_versions

logger = logging.getLogger("omnilsp.provisioning.updater")


class UpdateStatus(str, Enum):
    NEW = "new"
    OLD = "old"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class UpdateReport(BaseModel):
    """What ``check_and_update`` found and did."""

    status: UpdateStatus
    installed: Optional[str] = None
    available: Optional[str] = None
    outcome: Optional[InstallationOutcome] = None
    message: str = ""


def _latest_available(installer: Installer) -> Optional[str]:
    config = installer.config
    entries = fetch_releases(config.catalog_url, session=installer.session, timeout=config.catalog_timeout)
    return latest_available(entries)


def check_and_update(installer: Installer) -> UpdateReport:
    """Install the newest published release if it is newer than what is installed.

    Args:
        installer: Installer bound to the install root and catalog to use.

    Returns:
        The comparison result, plus the install outcome when one was attempted.
    """
    notify = installer.interaction.notify
    installed, _ = latest_verified(installer.root, installer.host)

    try:
        available = _latest_available(installer)
    except (NetworkError, ParseError) as e:
        logger.error(f"Update check failed: {e}")
        message = f"Could not check for OmniSharp updates: {e}"
        notify(message)
        return UpdateReport(status=UpdateStatus.FAILED, installed=installed, message=message)

    if available is None:
        message = "The release catalog lists no OmniSharp versions"
        notify(message)
        return UpdateReport(status=UpdateStatus.UNCHANGED, installed=installed, message=message)

    if installed is None or compare_versions(available, installed) > 0:
        notify(f"Updating OmniSharp from {installed or 'nothing'} to {available}")
        outcome = installer.install(available, require_confirmation=False)
        return UpdateReport(
            status=UpdateStatus.NEW,
            installed=installed,
            available=available,
            outcome=outcome,
            message=outcome.message,
        )

    if compare_versions(available, installed) < 0:
        status = UpdateStatus.OLD
        message = f"Installed OmniSharp {installed} is newer than the latest release {available}"
    else:
        status = UpdateStatus.UNCHANGED
        message = f"OmniSharp {installed} is up to date"

    notify(message)
    return UpdateReport(status=status, installed=installed, available=available, message=message)


def resolve_or_install(installer: Installer) -> Path:
    """Return a runnable server executable, installing one if needed.

    An explicitly configured ``server_path`` wins. Otherwise the newest
    installed version with an executable is used without touching the
    network. Only if there is none is the latest release installed, after
    asking for confirmation.

    Raises:
        ServerUnavailable: If no executable exists after every attempt.
    """
    config = installer.config
    if config.server_path is not None:
        if Path(config.server_path).is_file():
            return Path(config.server_path)
        raise ServerUnavailable(f"Configured OmniSharp executable {config.server_path} does not exist")

    version, path = latest_verified(installer.root, installer.host)
    if path is not None:
        logger.debug(f"Using installed OmniSharp {version} at {path}")
        return path

    if config.download_disabled:
        raise ServerUnavailable(
            f"OmniSharp is not installed under {installer.root} and automatic downloads are disabled"
        )

    try:
        available = _latest_available(installer)
    except OmniLspError as e:
        raise ServerUnavailable(f"OmniSharp is not installed and no release could be found: {e}") from e

    if available is None:
        raise ServerUnavailable("OmniSharp is not installed and the release catalog is empty")

    outcome = installer.install(available, require_confirmation=True)

    version, path = latest_verified(installer.root, installer.host)
    if path is None:
        reason = outcome.message or f"install of {available} did not produce an executable"
        raise ServerUnavailable(f"OmniSharp is unavailable: {reason}")

    return path

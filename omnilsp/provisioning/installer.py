"""Downloading, unpacking and verifying a server release."""

import contextlib
import logging
import stat
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

import requests
from pydantic import BaseModel

from omnilsp.config import ProvisioningConfig
from omnilsp.errors import NetworkError, OmniLspError, UserDeclined, VerificationFailed
from omnilsp.interaction import InteractionPort, LoggingInteraction
from omnilsp.provisioning.extractors import Extractor, select_extractor
from omnilsp.provisioning.installed import binary_path, latest_installed, latest_verified
from omnilsp.provisioning.packages import HostPlatform, PackageDescriptor, describe_package

logger = logging.getLogger("omnilsp.provisioning.installer")

DOWNLOAD_CHUNK_SIZE = 131072

_locks: Dict[Tuple[str, str], threading.Lock] = {}
_locks_guard = threading.Lock()


@contextlib.contextmanager
def install_lock(root: Path, version: str) -> Iterator[None]:
    """Serialize installs of the same version into the same root."""
    key = (str(Path(root).resolve()), version)
    with _locks_guard:
        lock = _locks.setdefault(key, threading.Lock())
    with lock:
        yield


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already-installed"
    DECLINED = "declined"
    FAILED = "failed"


class InstallationOutcome(BaseModel):
    """Result of an install attempt."""

    status: InstallStatus
    version: str
    binary_path: Optional[Path] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        """True if a verified executable is available."""
        return self.status in (InstallStatus.INSTALLED, InstallStatus.ALREADY_INSTALLED)


class Installer:
    """Installs OmniSharp releases under an install root.

    Each version is unpacked into its own subdirectory, so a failed install
    never touches versions that are already there.
    """

    def __init__(
        self,
        config: ProvisioningConfig,
        host: Optional[HostPlatform] = None,
        session: Optional[requests.Session] = None,
        interaction: Optional[InteractionPort] = None,
        extractor: Optional[Extractor] = None,
    ):
        """Initialize the installer.

        Args:
            config: Provisioning configuration.
            host: Target platform. Detected if None.
            session: HTTP session used for downloads.
            interaction: Port used for confirmations and progress messages.
            extractor: Archive extractor. Picked from ``host`` if None.
        """
        self.config = config
        self.host = host or HostPlatform.detect(config.host_version)
        self.session = session or requests.Session()
        self.interaction = interaction or LoggingInteraction()
        self.extractor = extractor or select_extractor(self.host)

    @property
    def root(self) -> Path:
        return Path(self.config.install_root)

    def _existing(self, version: str) -> Optional[Path]:
        current, path = latest_verified(self.root, self.host)
        return path if current == version else None

    def install(
        self,
        version: str,
        require_confirmation: bool = False,
        force_redownload: bool = False,
    ) -> InstallationOutcome:
        """Install ``version`` unless it is already the newest installed version.

        ``force_redownload`` reinstalls even an installed version.

        Args:
            version: Version tag to install.
            require_confirmation: Ask through the interaction port first.
            force_redownload: Delete a previously downloaded archive first and
                reinstall over an existing installation.

        Returns:
            The outcome. Failures are reported in the outcome, not raised.
        """
        existing = None if force_redownload else self._existing(version)
        if existing is not None:
            logger.info(f"OmniSharp {version} is already installed at {existing}")
            return InstallationOutcome(
                status=InstallStatus.ALREADY_INSTALLED,
                version=version,
                binary_path=existing,
                message=f"OmniSharp {version} is already installed",
            )

        try:
            if require_confirmation:
                self._confirm(version)

            with install_lock(self.root, version):
                path = self._install_locked(version, force_redownload)
        except UserDeclined as e:
            logger.info(f"Install of OmniSharp {version} declined")
            return InstallationOutcome(status=InstallStatus.DECLINED, version=version, message=str(e))
        except (OmniLspError, OSError) as e:
            logger.error(f"Failed to install OmniSharp {version}: {e}")
            message = f"Failed to install OmniSharp {version}: {e}"
            self.interaction.notify(message)
            return InstallationOutcome(status=InstallStatus.FAILED, version=version, message=message)

        message = f"OmniSharp {version} installed to {path}"
        self.interaction.notify(message)
        return InstallationOutcome(
            status=InstallStatus.INSTALLED,
            version=version,
            binary_path=path,
            message=message,
        )

    def _confirm(self, version: str) -> None:
        current = latest_installed(self.root)
        if current is None:
            prompt = f"OmniSharp is not installed. Install version {version} into {self.root}?"
        else:
            prompt = f"OmniSharp {current} is installed. Install version {version} into {self.root}?"

        if not self.interaction.confirm(prompt):
            raise UserDeclined(f"Install of OmniSharp {version} declined")

    def _install_locked(self, version: str, force_redownload: bool) -> Path:
        # Another thread may have finished the same install while we waited.
        if not force_redownload:
            existing = self._existing(version)
            if existing is not None:
                return existing

        target_dir = self.root / version
        target_dir.mkdir(parents=True, exist_ok=True)

        descriptor = describe_package(self.host, version, self.config.release_base_url)
        if descriptor.best_effort:
            self.interaction.notify(
                f"Warning: no OmniSharp build targets {self.host.system}/{self.host.machine}; "
                f"trying the generic {descriptor.filename}, which needs Mono"
            )

        archive = target_dir / descriptor.filename
        self._download(descriptor, archive, force_redownload)
        self.extractor.extract(archive, target_dir)
        return self._verify(version)

    def _download(self, descriptor: PackageDescriptor, archive: Path, force: bool) -> None:
        if force and archive.exists():
            logger.info(f"Removing previously downloaded {archive}")
            archive.unlink()

        if archive.exists():
            logger.info(f"Reusing previously downloaded {archive}")
            return

        self.interaction.notify(f"Downloading {descriptor.url}")
        partial = archive.with_name(archive.name + ".part")
        try:
            with self.session.get(descriptor.url, stream=True, timeout=self.config.download_timeout) as response:
                response.raise_for_status()
                with open(partial, "wb") as out:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            out.write(chunk)
            partial.replace(archive)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to download {descriptor.url}: {e}") from e
        except OSError as e:
            raise OmniLspError(f"Failed to save {descriptor.url} to {archive}: {e}") from e
        finally:
            partial.unlink(missing_ok=True)

        logger.info(f"Downloaded {descriptor.url} to {archive}")

    def _verify(self, version: str) -> Path:
        path = binary_path(self.root, version, self.host)
        if path is None or not path.is_file():
            raise VerificationFailed(version, path)

        if not self.host.is_windows:
            mode = path.stat().st_mode
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        return path

"""Platform probing and package selection for OmniSharp releases."""

import logging
import platform
from typing import Optional

from pydantic import BaseModel, ConfigDict

from omnilsp.provisioning.versions import compare_versions

logger = logging.getLogger("omnilsp.provisioning.packages")

# 64-bit OmniSharp crashes when launched from hosts older than this, so those
# hosts get the 32-bit build even on 64-bit Windows.
LEGACY_HOST_THRESHOLD = "26"

WINDOWS_X64_PACKAGE = "omnisharp-win-x64.zip"
WINDOWS_X86_PACKAGE = "omnisharp-win-x86.zip"
MACOS_PACKAGE = "omnisharp-osx.tar.gz"
LINUX_X64_PACKAGE = "omnisharp-linux-x64.tar.gz"
MONO_PACKAGE = "omnisharp-mono.tar.gz"

_X86_64_MACHINES = {"x86_64", "amd64", "x64"}
_X86_MACHINES = {"x86", "i386", "i486", "i586", "i686"}
_UNIX_SYSTEMS = {"linux", "darwin", "freebsd", "openbsd", "netbsd", "sunos", "aix"}


class HostPlatform(BaseModel):
    """The operating system, CPU architecture and editor host version."""

    model_config = ConfigDict(frozen=True)

    system: str
    machine: str
    host_version: Optional[str] = None

    @classmethod
    def detect(cls, host_version: Optional[str] = None) -> "HostPlatform":
        """Probe the running interpreter's platform.

        Args:
            host_version: Version of the editor hosting the client, if known.

        Returns:
            The detected platform.
        """
        return cls(
            system=platform.system().lower(),
            machine=platform.machine().lower(),
            host_version=host_version,
        )

    @property
    def is_windows(self) -> bool:
        return self.system == "windows"

    @property
    def is_macos(self) -> bool:
        return self.system == "darwin"

    @property
    def is_unix_like(self) -> bool:
        return self.system in _UNIX_SYSTEMS

    @property
    def is_x64(self) -> bool:
        return self.machine.lower() in _X86_64_MACHINES

    @property
    def is_x86_family(self) -> bool:
        machine = self.machine.lower()
        return machine in _X86_64_MACHINES or machine in _X86_MACHINES

    @property
    def executable_name(self) -> str:
        """Name of the server executable inside an unpacked release."""
        return "OmniSharp.exe" if self.is_windows else "run"

    def is_legacy_host(self) -> bool:
        """Return True if the host predates 64-bit server support."""
        if not self.host_version:
            return False
        return compare_versions(self.host_version, LEGACY_HOST_THRESHOLD) < 0


class PackageDescriptor(BaseModel):
    """Archive filename and download URL of a release for one platform."""

    model_config = ConfigDict(frozen=True)

    filename: str
    url: str
    best_effort: bool = False


def _package_filename(host: HostPlatform) -> str:
    if host.is_windows:
        if host.is_x64 and not host.is_legacy_host():
            return WINDOWS_X64_PACKAGE
        return WINDOWS_X86_PACKAGE

    if host.is_macos:
        return MACOS_PACKAGE

    if host.system == "linux" and host.is_x86_family:
        return LINUX_X64_PACKAGE

    return MONO_PACKAGE


def describe_package(host: HostPlatform, version: str, release_base_url: str) -> PackageDescriptor:
    """Pick the release archive for a platform.

    Args:
        host: Platform the server will run on.
        version: Version tag to download.
        release_base_url: Base URL releases are published under.

    Returns:
        The package descriptor. ``best_effort`` is set when falling back to
        the generic Mono build, which may not actually run on the host.
    """
    filename = _package_filename(host)
    best_effort = filename == MONO_PACKAGE
    if best_effort:
        logger.warning(
            f"No dedicated OmniSharp build for {host.system}/{host.machine}, "
            f"falling back to {MONO_PACKAGE}"
        )

    url = f"{release_base_url.rstrip('/')}/{version}/{filename}"
    return PackageDescriptor(filename=filename, url=url, best_effort=best_effort)

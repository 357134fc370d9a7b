"""Archive extraction strategies.

The strategy is picked once per platform: zip archives on Windows, gzipped
tarballs on Unix-like systems, and an explicit failure anywhere else.
"""

import abc
import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Optional

from omnilsp.errors import ExtractionFailed, ExtractionUnsupported
from omnilsp.provisioning.packages import HostPlatform

logger = logging.getLogger("omnilsp.provisioning.extractors")


def _zlib_available() -> bool:
    try:
        import zlib  # noqa: F401
    except ImportError:
        return False
    return True


def _safe_join(base: Path, relative: str) -> Optional[Path]:
    """Join ``relative`` onto ``base`` unless it escapes ``base``."""
    base_resolved = base.resolve()
    target = (base_resolved / relative).resolve()
    if target == base_resolved or base_resolved in target.parents:
        return target
    return None


def _link_escapes(base: Path, member: tarfile.TarInfo) -> bool:
    """Check whether a link member points outside ``base``."""
    if not (member.issym() or member.islnk()):
        return False
    if member.issym():
        relative = str(Path(member.name).parent / member.linkname)
    else:
        relative = member.linkname
    return _safe_join(base, relative) is None


class Extractor(abc.ABC):
    """Unpacks a server archive into a directory."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short name used in log messages."""
        pass

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Check whether the host can run this extractor."""
        pass

    @abc.abstractmethod
    def _extract(self, archive: Path, destination: Path) -> None:
        pass

    def extract(self, archive: Path, destination: Path) -> None:
        """Extract ``archive`` into ``destination``.

        Args:
            archive: Path to the downloaded archive.
            destination: Directory to unpack into. Created if missing.

        Raises:
            ExtractionUnsupported: If the host cannot handle this archive type.
            ExtractionFailed: If the archive is corrupt or cannot be written out.
        """
        if not self.is_available():
            raise ExtractionUnsupported(
                f"Cannot unpack {archive.name}: the {self.name} extractor needs zlib support, "
                "which this Python installation lacks"
            )

        destination.mkdir(parents=True, exist_ok=True)
        logger.info(f"Extracting {archive} into {destination} ({self.name})")
        try:
            self._extract(archive, destination)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as e:
            raise ExtractionFailed(f"Failed to unpack {archive}: {e}") from e


class ZipExtractor(Extractor):
    """Extracts ``.zip`` archives."""

    @property
    def name(self) -> str:
        return "zip"

    def is_available(self) -> bool:
        return _zlib_available()

    def _extract(self, archive: Path, destination: Path) -> None:
        with zipfile.ZipFile(archive, "r") as zf:
            for info in zf.infolist():
                target = _safe_join(destination, info.filename)
                if target is None:
                    logger.warning(f"Skipping archive member outside destination: {info.filename}")
                    continue
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info, "r") as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)


class TarExtractor(Extractor):
    """Extracts gzip-compressed tarballs."""

    @property
    def name(self) -> str:
        return "tar"

    def is_available(self) -> bool:
        return _zlib_available()

    def _extract(self, archive: Path, destination: Path) -> None:
        with tarfile.open(archive, "r:gz") as tf:
            members = []
            for member in tf.getmembers():
                if _safe_join(destination, member.name) is None:
                    logger.warning(f"Skipping archive member outside destination: {member.name}")
                    continue
                if _link_escapes(destination, member):
                    logger.warning(f"Skipping link pointing outside destination: {member.name} -> {member.linkname}")
                    continue
                if not (member.isdir() or member.isfile() or member.issym()):
                    continue
                members.append(member)

            if hasattr(tarfile, "data_filter"):
                tf.extractall(destination, members=members, filter="data")
            else:
                tf.extractall(destination, members=members)


class UnsupportedExtractor(Extractor):
    """Stands in on platforms no extraction strategy covers."""

    def __init__(self, system: str):
        self.system = system

    @property
    def name(self) -> str:
        return "unsupported"

    def is_available(self) -> bool:
        return False

    def extract(self, archive: Path, destination: Path) -> None:
        raise ExtractionUnsupported(
            f"Don't know how to unpack {archive.name} on platform '{self.system}'. "
            f"Extract it manually into {destination}"
        )

    def _extract(self, archive: Path, destination: Path) -> None:
        raise NotImplementedError


def select_extractor(host: HostPlatform) -> Extractor:
    """Pick the extraction strategy for a platform."""
    if host.is_windows:
        return ZipExtractor()
    if host.is_unix_like:
        return TarExtractor()
    return UnsupportedExtractor(host.system)

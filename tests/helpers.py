import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Union

import requests

CATALOG_URL = "https://releases.test/catalog"
RELEASE_BASE_URL = "https://releases.test/download"

_NO_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, json_data=_NO_JSON, content: bytes = b""):
        self.status_code = status_code
        self._json = json_data
        self.content = content

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._json is _NO_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]


Route = Union[FakeResponse, Exception]


class FakeSession:
    """Stands in for requests.Session and records every URL requested."""

    def __init__(self, routes: Optional[Dict[str, Route]] = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.calls: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(route, Exception):
            raise route
        return route


def catalog(*names: str) -> FakeResponse:
    return FakeResponse(json_data=[{"name": name, "draft": False} for name in names])


def tar_gz_bytes(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755 if name.endswith("run") else 0o644
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def zip_bytes(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def linux_release() -> bytes:
    return tar_gz_bytes({
        "run": b"#!/bin/sh\nexec mono omnisharp/OmniSharp.exe \"$@\"\n",
        "omnisharp/OmniSharp.exe": b"MZ",
    })


def windows_release() -> bytes:
    return zip_bytes({
        "OmniSharp.exe": b"MZ",
        "OmniSharp.dll": b"MZ",
    })


def linux_archive_url(version: str) -> str:
    return f"{RELEASE_BASE_URL}/{version}/omnisharp-linux-x64.tar.gz"


def install_fake_release(root: Path, version: str, executable: str = "run") -> Path:
    """Lay out an already-installed version on disk."""
    path = root / version / executable
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path

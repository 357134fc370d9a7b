"""Provisioning configuration."""

import os
from pathlib import Path
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_CATALOG_URL = "https://api.github.com/repos/OmniSharp/omnisharp-roslyn/releases"
DEFAULT_RELEASE_BASE_URL = "https://github.com/OmniSharp/omnisharp-roslyn/releases/download"


def default_install_root() -> Path:
    """Directory OmniSharp releases are installed under when none is configured."""
    return Path.home() / ".omnilsp" / "omnisharp"


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true"}


class ProvisioningConfig(BaseModel):
    """Where to install the server from, where to put it, and how to launch it."""

    install_root: Path = Field(default_factory=default_install_root)
    catalog_url: str = DEFAULT_CATALOG_URL
    release_base_url: str = DEFAULT_RELEASE_BASE_URL
    catalog_timeout: float = 30
    download_timeout: float = 300
    host_version: Optional[str] = None
    server_path: Optional[Path] = None
    server_args: List[str] = Field(default_factory=lambda: ["-lsp"])
    download_disabled: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ProvisioningConfig":
        """Build a configuration from ``OMNILSP_*`` environment variables.

        Args:
            environ: Environment to read. Defaults to ``os.environ``.
            **overrides: Values that take precedence over the environment.
                ``None`` values are ignored.

        Returns:
            The configuration.
        """
        env = os.environ if environ is None else environ
        values = {}

        if env.get("OMNILSP_INSTALL_ROOT"):
            values["install_root"] = Path(env["OMNILSP_INSTALL_ROOT"]).expanduser()
        if env.get("OMNILSP_CATALOG_URL"):
            values["catalog_url"] = env["OMNILSP_CATALOG_URL"]
        if env.get("OMNILSP_RELEASE_BASE_URL"):
            values["release_base_url"] = env["OMNILSP_RELEASE_BASE_URL"]
        if env.get("OMNILSP_HOST_VERSION"):
            values["host_version"] = env["OMNILSP_HOST_VERSION"]
        if env.get("OMNILSP_SERVER_PATH"):
            values["server_path"] = Path(env["OMNILSP_SERVER_PATH"]).expanduser()
        values["download_disabled"] = _truthy(env.get("OMNILSP_DISABLE_DOWNLOAD"))

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

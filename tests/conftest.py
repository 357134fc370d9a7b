from pathlib import Path

import pytest

from omnilsp.config import ProvisioningConfig
from omnilsp.interaction import LoggingInteraction
from omnilsp.provisioning.installer import Installer
from omnilsp.provisioning.packages import HostPlatform
from tests.helpers import CATALOG_URL, RELEASE_BASE_URL, FakeSession


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "OMNILSP_INSTALL_ROOT",
        "OMNILSP_CATALOG_URL",
        "OMNILSP_RELEASE_BASE_URL",
        "OMNILSP_HOST_VERSION",
        "OMNILSP_SERVER_PATH",
        "OMNILSP_DISABLE_DOWNLOAD",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    return tmp_path / "omnisharp"


@pytest.fixture
def config(install_root: Path) -> ProvisioningConfig:
    return ProvisioningConfig(
        install_root=install_root,
        catalog_url=CATALOG_URL,
        release_base_url=RELEASE_BASE_URL,
    )


@pytest.fixture
def linux_host() -> HostPlatform:
    return HostPlatform(system="linux", machine="x86_64")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def interaction() -> LoggingInteraction:
    return LoggingInteraction(answer=True)


@pytest.fixture
def installer(config, linux_host, session, interaction) -> Installer:
    return Installer(config, host=linux_host, session=session, interaction=interaction)

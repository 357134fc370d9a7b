import threading
from pathlib import Path

import click
import pytest

from omnilsp.interaction import ConsoleInteraction, LoggingInteraction
from omnilsp.provisioning.updater import UpdateStatus
from omnilsp.service import OmniSharpService
from tests.helpers import CATALOG_URL, FakeResponse, FakeSession, catalog, install_fake_release, linux_archive_url, linux_release


@pytest.fixture
def service(config, linux_host, session) -> OmniSharpService:
    return OmniSharpService(config, interaction=LoggingInteraction(), host=linux_host, session=session)


def test_server_command_uses_installed_binary(service: OmniSharpService, install_root: Path) -> None:
    binary = install_fake_release(install_root, "v1.0.0")

    assert service.server_command() == (str(binary), ["-lsp"])


def test_server_present_does_not_install(service: OmniSharpService, session: FakeSession, install_root: Path) -> None:
    assert not service.server_present()
    assert session.calls == []

    install_fake_release(install_root, "v1.0.0")
    assert service.server_present()


def test_resolve_or_install_async_reports_success(service: OmniSharpService, session: FakeSession, install_root: Path) -> None:
    session.routes[CATALOG_URL] = catalog("v1.1.0")
    session.routes[linux_archive_url("v1.1.0")] = FakeResponse(content=linux_release())
    results = []
    done = threading.Event()

    def on_success(path) -> None:
        results.append(path)
        done.set()

    def on_failure(message: str) -> None:
        results.append(message)
        done.set()

    service.resolve_or_install_async(on_success, on_failure).join(timeout=10)

    assert done.is_set()
    assert results == [install_root / "v1.1.0" / "run"]


def test_resolve_or_install_async_reports_failure(service: OmniSharpService) -> None:
    failures = []

    service.resolve_or_install_async(lambda path: None, failures.append).join(timeout=10)

    assert len(failures) == 1
    assert "no release could be found" in failures[0]


def test_check_and_update_async_delivers_report(service: OmniSharpService, session: FakeSession, install_root: Path) -> None:
    install_fake_release(install_root, "v1.1.0")
    session.routes[CATALOG_URL] = catalog("v1.1.0")
    reports = []

    service.check_and_update_async(reports.append, reports.append).join(timeout=10)

    assert reports[0].status == UpdateStatus.UNCHANGED


def test_workspace_command_passes_solution(config, linux_host, session, install_root: Path, tmp_path: Path) -> None:
    install_fake_release(install_root, "v1.0.0")
    workspace = tmp_path / "ws"
    workspace.mkdir()
    (workspace / "App.sln").write_text("")
    service = OmniSharpService(config, workspace_path=str(workspace), host=linux_host, session=session)

    executable, args = service.server_manager.launch_command()

    assert executable == str(install_root / "v1.0.0" / "run")
    assert args == ["-lsp", "-s", str(workspace / "App.sln")]
    assert service.server_manager.can_launch()


def test_navigation_rejects_non_csharp_files(config, linux_host, session, tmp_path: Path) -> None:
    service = OmniSharpService(config, workspace_path=str(tmp_path), host=linux_host, session=session)

    with pytest.raises(ValueError):
        service.get_definition(str(tmp_path / "script.py"), 0, 0)


def test_navigation_needs_a_workspace(service: OmniSharpService, tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        service.get_references(str(tmp_path / "Program.cs"), 0, 0)


def test_aborted_prompt_reaches_failure_callback(config, linux_host, session, monkeypatch: pytest.MonkeyPatch) -> None:
    def abort(prompt: str, default: bool) -> bool:
        raise click.Abort()

    monkeypatch.setattr(click, "confirm", abort)
    session.routes[CATALOG_URL] = catalog("v1.1.0")
    service = OmniSharpService(config, interaction=ConsoleInteraction(), host=linux_host, session=session)
    results = []

    service.resolve_or_install_async(results.append, results.append).join(timeout=10)

    assert len(results) == 1
    assert "declined" in results[0]
    assert session.calls == [CATALOG_URL]


def test_unexpected_errors_reach_failure_callback(service: OmniSharpService) -> None:
    def broken() -> None:
        raise RuntimeError("boom")

    successes, failures = [], []

    service._run_in_background("resolve", broken, successes.append, failures.append).join(timeout=10)

    assert successes == []
    assert failures == ["resolve failed unexpectedly: boom"]


def test_can_launch_never_installs(config, linux_host, session, install_root: Path, tmp_path: Path) -> None:
    session.routes[CATALOG_URL] = catalog("v1.1.0")
    session.routes[linux_archive_url("v1.1.0")] = FakeResponse(content=linux_release())
    workspace = tmp_path / "ws"
    workspace.mkdir()
    service = OmniSharpService(config, workspace_path=str(workspace), host=linux_host, session=session)

    assert not service.server_manager.can_launch()
    assert session.calls == []
    assert not install_root.exists()

    install_fake_release(install_root, "v1.0.0")
    assert service.server_manager.can_launch()

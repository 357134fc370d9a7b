#!/usr/bin/env python3
"""Main service module for the OmniSharp LSP client.

This module is the surface an editor host talks to: it resolves (installing
if needed) the server executable, checks for updates, and routes navigation
requests to the running C# language server.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import click
import requests

from omnilsp.config import ProvisioningConfig
from omnilsp.errors import OmniLspError
from omnilsp.interaction import ConsoleInteraction, InteractionPort, LoggingInteraction
from omnilsp.provisioning.installed import latest_verified, list_installed
from omnilsp.provisioning.installer import InstallationOutcome, Installer
from omnilsp.provisioning.packages import HostPlatform
from omnilsp.provisioning.updater import UpdateReport, check_and_update, resolve_or_install
from omnilsp.servers.csharp_server import CSharpLanguageServerManager
from omnilsp.utils.workspace import WorkspaceManager

SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[str], None]


class OmniSharpService:
    """Provisions OmniSharp and manages the language server for one workspace."""

    def __init__(
        self,
        config: Optional[ProvisioningConfig] = None,
        workspace_path: Optional[str] = None,
        interaction: Optional[InteractionPort] = None,
        host: Optional[HostPlatform] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the service.

        Args:
            config: Provisioning configuration. Read from the environment if None.
            workspace_path: Workspace to serve. Provisioning works without one.
            interaction: Port for confirmations and progress messages.
            host: Target platform. Detected if None.
            session: HTTP session for catalog and archive requests.
        """
        self.config = config or ProvisioningConfig.from_env()
        self.logger = logging.getLogger("omnilsp")
        self.installer = Installer(
            self.config,
            host=host,
            session=session,
            interaction=interaction or LoggingInteraction(),
        )

        self.workspace: Optional[WorkspaceManager] = None
        self.server_manager: Optional[CSharpLanguageServerManager] = None
        if workspace_path is not None:
            self.workspace = WorkspaceManager(workspace_path)
            self.server_manager = CSharpLanguageServerManager(
                self.workspace.workspace_path, self._workspace_command, self.server_present
            )

        self.logger.info(f"Initialized OmniSharpService with install root: {self.config.install_root}")

    @property
    def host(self) -> HostPlatform:
        return self.installer.host

    def installed_versions(self) -> Set[str]:
        return list_installed(self.config.install_root)

    def install(self, version: str, force_redownload: bool = False) -> InstallationOutcome:
        """Install a specific version without asking."""
        return self.installer.install(version, require_confirmation=False, force_redownload=force_redownload)

    def resolve_or_install(self) -> Path:
        """Return a runnable server executable, installing the latest release if needed.

        Raises:
            ServerUnavailable: If no executable could be resolved.
        """
        return resolve_or_install(self.installer)

    def check_and_update(self) -> UpdateReport:
        """Install the latest release if it is newer than the installed one."""
        return check_and_update(self.installer)

    def server_command(self) -> Tuple[str, List[str]]:
        """Return the executable and arguments used to spawn the server.

        Raises:
            ServerUnavailable: If no executable could be resolved.
        """
        return str(self.resolve_or_install()), list(self.config.server_args)

    def server_present(self) -> bool:
        """Check whether a server executable exists, without installing anything."""
        if self.config.server_path is not None:
            return Path(self.config.server_path).is_file()
        _, path = latest_verified(self.config.install_root, self.host)
        return path is not None

    def _workspace_command(self) -> Tuple[str, List[str]]:
        executable, args = self.server_command()
        if self.workspace is not None:
            solution = self.workspace.find_solution_or_project()
            if solution:
                args = [*args, "-s", solution]
        return executable, args

    def _run_in_background(
        self,
        name: str,
        work: Callable[[], Any],
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> threading.Thread:
        def run() -> None:
            try:
                result = work()
            except OmniLspError as e:
                self.logger.error(f"{name} failed: {e}")
                on_failure(str(e))
                return
            except Exception as e:
                self.logger.exception(f"Unexpected error during {name}")
                on_failure(f"{name} failed unexpectedly: {e}")
                return
            on_success(result)

        thread = threading.Thread(target=run, daemon=True, name=f"omnilsp-{name}")
        thread.start()
        return thread

    def resolve_or_install_async(self, on_success: SuccessCallback, on_failure: FailureCallback) -> threading.Thread:
        """Run ``resolve_or_install`` on a background thread.

        Args:
            on_success: Called with the executable path.
            on_failure: Called with a diagnostic message.

        Returns:
            The worker thread.
        """
        return self._run_in_background("resolve", self.resolve_or_install, on_success, on_failure)

    def check_and_update_async(self, on_success: SuccessCallback, on_failure: FailureCallback) -> threading.Thread:
        """Run ``check_and_update`` on a background thread.

        ``on_success`` receives the report, including reports of a failed
        catalog fetch; ``on_failure`` only sees unexpected provisioning errors.
        """
        return self._run_in_background("update", self.check_and_update, on_success, on_failure)

    def _require_server(self) -> CSharpLanguageServerManager:
        if self.server_manager is None:
            raise ValueError("No workspace configured")
        return self.server_manager

    def start(self) -> None:
        """Start the C# language server for the workspace."""
        manager = self._require_server()
        self.logger.info("Starting csharp language server...")
        manager.start()

    def stop(self) -> None:
        """Stop the C# language server."""
        if self.server_manager is not None:
            self.logger.info("Stopping csharp language server...")
            self.server_manager.stop()

    def _check_file(self, file_path: str) -> None:
        if self.workspace is None or not self.workspace.is_csharp_file(file_path):
            raise ValueError(f"No language server found for file: {file_path}")

    def get_definition(self, file_path: str, line: int, character: int) -> Dict[str, Any]:
        """Get definition for the symbol at the specified position.

        Raises:
            ValueError: If the file is not a C# source or no workspace is configured.
        """
        self._check_file(file_path)
        return self._require_server().get_definition(file_path, line, character)

    def get_references(self, file_path: str, line: int, character: int) -> List[Dict[str, Any]]:
        """Get references for the symbol at the specified position.

        Raises:
            ValueError: If the file is not a C# source or no workspace is configured.
        """
        self._check_file(file_path)
        return self._require_server().get_references(file_path, line, character)


@click.command()
@click.option("--workspace", required=True, help="Path to the workspace directory")
@click.option("--install-root", type=click.Path(path_type=Path), default=None, help="Directory OmniSharp is installed under")
@click.option("--yes", is_flag=True, default=False, help="Install OmniSharp without asking")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def main(workspace: str, install_root: Optional[Path], yes: bool, debug: bool) -> None:
    """Run the OmniSharp language server for a workspace.

    Args:
        workspace: Path to the workspace directory.
        install_root: Directory OmniSharp is installed under.
        yes: Skip the install confirmation.
        debug: Whether to enable debug logging.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    config = ProvisioningConfig.from_env(install_root=install_root)
    service = OmniSharpService(config, workspace_path=workspace, interaction=ConsoleInteraction(assume_yes=yes))
    try:
        service.start()
        click.echo(f"OmniSharp started for workspace: {workspace}")
        click.echo("Press Ctrl+C to stop the service")
        import time
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        click.echo("Stopping service...")
    except OmniLspError as e:
        raise click.ClickException(str(e))
    finally:
        service.stop()
        click.echo("Service stopped")


if __name__ == "__main__":
    main()  # pylint: disable=no-value-for-parameter

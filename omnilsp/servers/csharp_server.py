"""C# language server manager implementation."""

from typing import Callable, List, Tuple

from omnilsp.servers.base import BaseLanguageServerManager

LaunchCommandProvider = Callable[[], Tuple[str, List[str]]]
PresenceProvider = Callable[[], bool]


class CSharpLanguageServerManager(BaseLanguageServerManager):
    """Manages the OmniSharp language server.

    The executable comes from ``command_provider``, which provisions the
    server on first use. ``presence_provider`` only checks whether an
    executable is already on disk.
    """

    @property
    def language(self) -> str:
        """Get the language managed by this server.

        Returns:
            The language name.
        """
        return "csharp"

    def __init__(
        self,
        workspace_path: str,
        command_provider: LaunchCommandProvider,
        presence_provider: PresenceProvider,
    ):
        """Initialize the C# language server manager.

        Args:
            workspace_path: Path to the workspace directory.
            command_provider: Returns the executable path and arguments.
            presence_provider: Reports whether the executable exists, without installing it.
        """
        super().__init__(workspace_path)
        self.command_provider = command_provider
        self.presence_provider = presence_provider

        self._server_settings = {
            "FormattingOptions": {
                "EnableEditorConfigSupport": True,
                "OrganizeImports": False
            },
            "RoslynExtensionsOptions": {
                "EnableAnalyzersSupport": False,
                "EnableImportCompletion": True
            }
        }
        self.initialization_options = dict(self._server_settings)

    def launch_command(self) -> Tuple[str, List[str]]:
        return self.command_provider()

    def can_launch(self) -> bool:
        return self.presence_provider()

    def start(self) -> None:
        """Start OmniSharp and push the client settings."""
        if not self.is_running() and not self.can_launch():
            self.logger.info("OmniSharp is not installed yet, provisioning it before start")
        super().start()
        self._configure_server()

    def _configure_server(self) -> None:
        """Configure the C# language server."""
        self._send_notification("workspace/didChangeConfiguration", {
            "settings": {"omnisharp": self._server_settings}
        })

"""Error kinds raised while provisioning and launching the language server."""

from pathlib import Path
from typing import Optional


class OmniLspError(Exception):
    """Base class for all errors raised by omnilsp."""


class NetworkError(OmniLspError):
    """The release catalog or an archive could not be fetched.

    Covers unreachable hosts, timeouts and non-2xx responses. Retrying is left
    to the caller.
    """


class ParseError(OmniLspError):
    """The release catalog response did not match the expected schema."""


class ExtractionUnsupported(OmniLspError):
    """The host lacks the facilities needed to unpack the server archive."""


class VerificationFailed(OmniLspError):
    """The server executable is missing after extraction."""

    def __init__(self, version: str, path: Optional[Path]):
        """Initialize the error.

        Args:
            version: Version tag that was being installed.
            path: Expected location of the server executable.
        """
        self.version = version
        self.path = path
        super().__init__(
            f"Server executable for {version} not found at {path} after extraction"
        )


class UserDeclined(OmniLspError):
    """The user answered no to an install confirmation.

    This is a normal termination, not a failure.
    """


class ServerUnavailable(OmniLspError):
    """No runnable server executable could be resolved."""


class ExtractionFailed(OmniLspError):
    """The downloaded archive could not be unpacked (corrupt or truncated)."""

"""OmniSharp LSP client.

Provisions the OmniSharp language server (discovering, downloading and
unpacking the right release for the current platform) and connects to it
over the Language Server Protocol.
"""

__version__ = "0.1.0"

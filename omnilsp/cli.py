#!/usr/bin/env python3
"""Command-line interface for the OmniSharp LSP client."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from omnilsp.config import ProvisioningConfig
from omnilsp.errors import OmniLspError
from omnilsp.interaction import ConsoleInteraction
from omnilsp.provisioning.updater import UpdateStatus
from omnilsp.provisioning.versions import version_key
from omnilsp.service import OmniSharpService


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Command-line arguments. If None, sys.argv is used.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="OmniSharp LSP client"
    )

    parser.add_argument(
        "--install-root",
        type=Path,
        default=None,
        help="Directory OmniSharp versions are installed under"
    )
    parser.add_argument(
        "--workspace",
        "-w",
        default=None,
        help="Path to the C# workspace directory"
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Answer yes to install prompts"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="action", help="Action to perform")

    subparsers.add_parser("installed", help="List installed OmniSharp versions")
    subparsers.add_parser("path", help="Print the server executable, installing it if needed")

    install_parser = subparsers.add_parser("install", help="Install an OmniSharp version")
    install_parser.add_argument("--version", dest="target", default=None, help="Version tag, e.g. v1.39.11 (default: latest)")
    install_parser.add_argument("--force", action="store_true", help="Download the archive again even if present")

    subparsers.add_parser("update", help="Install the latest release if it is newer")

    def_parser = subparsers.add_parser("definition", help="Get definition for a symbol")
    def_parser.add_argument("file", help="Path to the file")
    def_parser.add_argument("line", type=int, help="Line number (0-indexed)")
    def_parser.add_argument("character", type=int, help="Character position (0-indexed)")

    ref_parser = subparsers.add_parser("references", help="Get references for a symbol")
    ref_parser.add_argument("file", help="Path to the file")
    ref_parser.add_argument("line", type=int, help="Line number (0-indexed)")
    ref_parser.add_argument("character", type=int, help="Character position (0-indexed)")

    return parser.parse_args(args)


def _update(service: OmniSharpService) -> int:
    report = service.check_and_update()
    if report.status == UpdateStatus.FAILED:
        return 1
    if report.outcome is not None and not report.outcome.ok:
        return 1
    return 0


def _install(service: OmniSharpService, target: Optional[str], force: bool) -> int:
    if target is None:
        return _update(service)

    outcome = service.install(target, force_redownload=force)
    print(outcome.message)
    return 0 if outcome.ok else 1


def main(args: Optional[List[str]] = None) -> int:
    """Run the CLI application.

    Args:
        args: Command-line arguments. If None, sys.argv is used.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parsed_args = parse_args(args)

    log_level = logging.DEBUG if parsed_args.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if parsed_args.action in ("definition", "references") and not parsed_args.workspace:
        print("--workspace is required for navigation commands.")
        return 1

    try:
        config = ProvisioningConfig.from_env(install_root=parsed_args.install_root)
        service = OmniSharpService(
            config,
            workspace_path=parsed_args.workspace,
            interaction=ConsoleInteraction(assume_yes=parsed_args.yes),
        )

        if parsed_args.action == "installed":
            for version in sorted(service.installed_versions(), key=version_key, reverse=True):
                print(version)
            return 0

        if parsed_args.action == "path":
            print(service.resolve_or_install())
            return 0

        if parsed_args.action == "install":
            return _install(service, parsed_args.target, parsed_args.force)

        if parsed_args.action == "update":
            return _update(service)

        if parsed_args.action == "definition":
            try:
                print(service.get_definition(parsed_args.file, parsed_args.line, parsed_args.character))
            finally:
                service.stop()
            return 0

        if parsed_args.action == "references":
            try:
                print(service.get_references(parsed_args.file, parsed_args.line, parsed_args.character))
            finally:
                service.stop()
            return 0

        print("Please specify an action. Use --help for available commands.")
        return 1

    except (OmniLspError, ValueError) as e:
        logging.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

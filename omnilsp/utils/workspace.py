"""Workspace management utilities for C# projects."""

import logging
import os
from collections import deque
from typing import Optional

CSHARP_EXTENSIONS = {".cs", ".csx", ".cake"}
SOLUTION_EXTENSIONS = (".sln", ".slnx")
PROJECT_EXTENSIONS = (".csproj",)

IGNORED_DIRS = {".git", ".vs", "bin", "obj", "node_modules"}


class WorkspaceManager:
    """Recognises C# sources in a workspace and finds the solution OmniSharp will load."""

    def __init__(self, workspace_path: str):
        """Initialize the workspace manager.

        Args:
            workspace_path: Path to the workspace directory.
        """
        self.workspace_path = os.path.abspath(workspace_path)
        self.logger = logging.getLogger("omnilsp.workspace")

        if not os.path.isdir(self.workspace_path):
            raise ValueError(f"Workspace path is not a directory: {self.workspace_path}")

        self.logger.info(f"Initialized workspace manager for: {self.workspace_path}")

    def is_csharp_file(self, file_path: str) -> bool:
        _, ext = os.path.splitext(file_path)
        return ext.lower() in CSHARP_EXTENSIONS

    def find_solution_or_project(self) -> Optional[str]:
        """Find the solution or project file closest to the workspace root.

        Directories are searched breadth-first; within the shallowest level
        that has any, solutions win over projects.

        Returns:
            Path of the file, or None if the workspace has neither.
        """
        pending = deque([self.workspace_path])
        while pending:
            current = pending.popleft()
            try:
                entries = sorted(os.listdir(current))
            except OSError as e:
                self.logger.debug(f"Cannot list {current}: {e}")
                continue

            solutions = [e for e in entries if e.lower().endswith(SOLUTION_EXTENSIONS)]
            projects = [e for e in entries if e.lower().endswith(PROJECT_EXTENSIONS)]
            for candidates in (solutions, projects):
                if candidates:
                    return os.path.join(current, candidates[0])

            for entry in entries:
                path = os.path.join(current, entry)
                if entry not in IGNORED_DIRS and os.path.isdir(path):
                    pending.append(path)

        return None

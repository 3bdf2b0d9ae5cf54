"""Find the article added or modified by the current commit."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from ghostdraft.errors import DiscoveryError

logger = logging.getLogger(__name__)

DIFF_TREE_COMMAND = [
    "git",
    "diff-tree",
    "--no-commit-id",
    "--name-only",
    "-r",
    "--diff-filter=AM",
    "HEAD",
]


class LatestFileFinder(Protocol):
    def find_latest_file(self, extension: str) -> str | None:
        """Return the repo-relative path of the latest matching file, if any."""
        ...


class GitLatestFileFinder:
    """Asks git which files the HEAD commit added or modified."""

    def __init__(self, repo_root: Path | str = ".", *, timeout: int = 30) -> None:
        self._repo_root = Path(repo_root)
        self._timeout = timeout

    def changed_files(self) -> list[str]:
        """List files added or modified by HEAD, in git's output order."""
        try:
            result = subprocess.run(
                DIFF_TREE_COMMAND,
                cwd=self._repo_root,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as e:
            raise DiscoveryError(f"Could not run git in {self._repo_root}: {e}") from e

        if result.returncode != 0:
            raise DiscoveryError(
                f"git diff-tree exited {result.returncode}: "
                f"{result.stderr.strip() if result.stderr else ''}"
            )

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def find_latest_file(self, extension: str) -> str | None:
        matches = [path for path in self.changed_files() if path.endswith(extension)]
        logger.debug("Changed %s files in HEAD: %s", extension, matches)
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "HEAD touches %d %s files; publishing only %s", len(matches), extension, matches[-1]
            )
        return matches[-1]

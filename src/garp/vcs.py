"""Best-effort git metadata lookups.

These helpers enrich deployment records. They never raise: a missing git
binary, a directory outside a repository or a hung command all yield None.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .logging_config import get_logger

logger = get_logger(__name__)

GIT_TIMEOUT = 10


def _git_output(args: list[str], cwd: Path | None = None) -> str | None:
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug(f"git {' '.join(args)} unavailable: {exc}")
        return None
    if completed.returncode != 0:
        return None
    value = completed.stdout.strip()
    return value or None


def current_branch(cwd: Path | None = None) -> str | None:
    """Return the checked-out branch name, or None."""
    return _git_output(["branch", "--show-current"], cwd)


def current_commit(cwd: Path | None = None) -> str | None:
    """Return the HEAD commit hash, or None."""
    return _git_output(["rev-parse", "HEAD"], cwd)

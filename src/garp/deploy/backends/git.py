"""Git push deployment backend."""

from __future__ import annotations

import subprocess

from ...errors import ConfigurationError, ExternalDependencyError, InputValidationError
from ...logging_config import get_logger
from ...vcs import current_branch
from ..models import DeploymentConfig, DeploymentStrategy
from .base import DeploymentBackend

logger = get_logger(__name__)

DEFAULT_REMOTE = "origin"
GIT_CHECK_TIMEOUT = 30


class GitBackend(DeploymentBackend):
    strategy = DeploymentStrategy.GIT
    name = "Git"

    def validate(self, config: DeploymentConfig) -> None:
        self._require_tool("git")
        cwd = config.project_root

        if self._git(["rev-parse", "--git-dir"], cwd).returncode != 0:
            raise ConfigurationError(
                "not in a git repository",
                context=str(cwd),
                suggestions=["Run 'git init' or deploy with another strategy"],
            )

        status = self._git(["status", "--porcelain"], cwd)
        # An unreadable status counts as dirty.
        if status.returncode != 0 or status.stdout.strip():
            raise InputValidationError(
                "uncommitted changes detected - commit or stash changes before deploying"
            )

        remote = config.git_remote or DEFAULT_REMOTE
        if self._git(["remote", "get-url", remote], cwd).returncode != 0:
            raise ConfigurationError(
                f"git remote '{remote}' does not exist",
                suggestions=[f"Add it with 'git remote add {remote} <url>'"],
            )

    def _describe(self, config: DeploymentConfig) -> list[str]:
        remote = config.git_remote or DEFAULT_REMOTE
        branch = config.git_branch or current_branch(config.project_root) or "HEAD"
        return [f"Would push to {remote}/{branch}"]

    def _transfer(self, config: DeploymentConfig) -> tuple[list[str], str]:
        remote = config.git_remote or DEFAULT_REMOTE
        branch = config.git_branch or current_branch(config.project_root)
        if not branch:
            raise ConfigurationError(
                "failed to get current branch",
                suggestions=["Pass --git-branch explicitly"],
            )

        logger.info(f"Executing: git push {remote} {branch}")
        try:
            completed = subprocess.run(
                ["git", "push", remote, branch],
                cwd=config.project_root,
                capture_output=True,
                text=True,
                timeout=config.transfer_timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalDependencyError(
                f"git push timed out after {config.transfer_timeout:.0f}s"
            ) from exc
        except OSError as exc:
            raise ExternalDependencyError("git push failed to start", cause=exc) from exc

        if completed.returncode != 0:
            output = (completed.stdout or "") + (completed.stderr or "")
            raise ExternalDependencyError(
                f"git push failed: exit status {completed.returncode}\nOutput: {output.strip()}"
            )

        return [f"Successfully pushed to {remote}/{branch}"], ""

    @staticmethod
    def _git(args: list[str], cwd) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                ["git", *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=GIT_CHECK_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ExternalDependencyError(f"git {args[0]} failed", cause=exc) from exc

"""Rsync over SSH deployment backend."""

from __future__ import annotations

import subprocess

from ...errors import ExternalDependencyError, NetworkError
from ...logging_config import get_logger
from ..models import DeploymentConfig, DeploymentStrategy
from .base import DeploymentBackend

logger = get_logger(__name__)

DEFAULT_EXCLUDES = (".git/", ".DS_Store", ".env", "*.log")
SSH_GRACE_SECONDS = 5


def destination_for(config: DeploymentConfig) -> str:
    if config.rsync_user:
        return f"{config.rsync_user}@{config.rsync_host}:{config.rsync_path}"
    return f"{config.rsync_host}:{config.rsync_path}"


def excludes_for(config: DeploymentConfig) -> list[str]:
    """Default excludes followed by caller excludes, without duplicates."""
    excludes: list[str] = []
    for pattern in (*DEFAULT_EXCLUDES, *config.rsync_excludes):
        if pattern and pattern not in excludes:
            excludes.append(pattern)
    return excludes


def build_rsync_command(config: DeploymentConfig) -> list[str]:
    command = ["rsync", "-avz", "--progress", "--delete"]
    for pattern in excludes_for(config):
        command.extend(["--exclude", pattern])
    command.append(f"{str(config.source_path).rstrip('/')}/")
    command.append(destination_for(config))
    return command


class RsyncBackend(DeploymentBackend):
    strategy = DeploymentStrategy.RSYNC
    name = "Rsync"

    def validate(self, config: DeploymentConfig) -> None:
        self._require_tool("rsync")
        self._require_field(config.rsync_host, "rsync host is required (use --rsync-host)")
        self._require_field(config.rsync_path, "rsync path is required (use --rsync-path)")
        self._require_source(config)

        if config.rsync_user and not config.skip_validation and not config.dry_run:
            self._test_ssh_connection(config)

    def _test_ssh_connection(self, config: DeploymentConfig) -> None:
        target = f"{config.rsync_user}@{config.rsync_host}"
        command = [
            "ssh",
            "-o", f"ConnectTimeout={int(config.probe_timeout)}",
            "-o", "BatchMode=yes",
            target,
            "echo 'connection test'",
        ]
        logger.debug(f"Testing SSH connection to {target}")
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=config.probe_timeout + SSH_GRACE_SECONDS,
            )
        except subprocess.TimeoutExpired as exc:
            raise NetworkError(f"SSH connection test failed: timed out connecting to {target}") from exc
        except OSError as exc:
            raise ExternalDependencyError(
                "SSH connection test failed: ssh could not be started",
                cause=exc,
                suggestions=["Install an OpenSSH client or use --skip-validation"],
            ) from exc

        if completed.returncode != 0:
            output = (completed.stdout + completed.stderr).strip()
            raise NetworkError(
                f"SSH connection test failed: exit status {completed.returncode}\nOutput: {output}",
                suggestions=["Check that key-based SSH login works for this host"],
            )

    def _describe(self, config: DeploymentConfig) -> list[str]:
        return [
            f"Dry run completed - would sync to {destination_for(config)}",
            f"Command: {' '.join(build_rsync_command(config))}",
        ]

    def _transfer(self, config: DeploymentConfig) -> tuple[list[str], str]:
        command = build_rsync_command(config)
        logger.info(f"Executing: {' '.join(command)}")
        try:
            completed = subprocess.run(
                command,
                cwd=config.project_root,
                capture_output=not config.verbose,
                text=True,
                timeout=config.transfer_timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalDependencyError(
                f"rsync timed out after {config.transfer_timeout:.0f}s"
            ) from exc
        except OSError as exc:
            raise ExternalDependencyError("rsync failed to start", cause=exc) from exc

        if completed.returncode != 0:
            output = ((completed.stdout or "") + (completed.stderr or "")).strip()
            message = f"rsync failed: exit status {completed.returncode}"
            if output:
                message += f"\nOutput: {output}"
            raise ExternalDependencyError(message)

        return [f"Successfully synced to {destination_for(config)}"], ""

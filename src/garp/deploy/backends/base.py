"""Base class for deployment backends."""

from __future__ import annotations

import shutil
import time
from abc import ABC, abstractmethod

import requests

from ...errors import (
    ConfigurationError,
    DeploymentError,
    ExternalDependencyError,
    FileSystemError,
    GarpError,
    NetworkError,
)
from ...logging_config import get_logger
from ..models import DeploymentConfig, DeploymentResult, DeploymentStrategy

logger = get_logger(__name__)


class DeploymentBackend(ABC):
    """One transport for publishing the built site.

    Subclasses implement ``validate`` plus the two halves of ``deploy``:
    ``_describe`` for dry runs and ``_transfer`` for the real upload.
    """

    strategy: DeploymentStrategy
    name: str = ""

    @abstractmethod
    def validate(self, config: DeploymentConfig) -> None:
        """Check prerequisites; raise a ``GarpError`` describing the first problem."""

    @abstractmethod
    def _describe(self, config: DeploymentConfig) -> list[str]:
        """Messages describing what a real deploy would do."""

    @abstractmethod
    def _transfer(self, config: DeploymentConfig) -> tuple[list[str], str]:
        """Publish the site. Returns (messages, url)."""

    def deploy(self, config: DeploymentConfig) -> DeploymentResult:
        """Validate and publish.

        Raises:
            DeploymentError: On any failure; ``exc.result`` holds the failed result.
        """
        start = time.monotonic()
        logger.info(f"Starting {self.name} deployment" + (" (dry run)" if config.dry_run else ""))

        try:
            self.validate(config)
            if config.dry_run:
                messages, url = self._describe(config), ""
            else:
                messages, url = self._transfer(config)
        except GarpError as exc:
            result = DeploymentResult(
                success=False,
                strategy=self.strategy,
                duration=time.monotonic() - start,
                errors=[str(exc)],
            )
            logger.error(f"{self.name} deployment failed: {exc}")
            raise DeploymentError(
                str(exc),
                result,
                suggestions=exc.suggestions,
                context=exc.context,
                exit_code=exc.exit_code,
            ) from exc

        result = DeploymentResult(
            success=True,
            strategy=self.strategy,
            duration=time.monotonic() - start,
            url=url,
            messages=messages,
        )
        logger.info(f"{self.name} deployment completed in {result.duration:.2f}s")
        return result

    @staticmethod
    def _require_tool(tool: str) -> str:
        path = shutil.which(tool)
        if path is None:
            raise ExternalDependencyError(
                f"{tool} command not found",
                suggestions=[f"Install {tool} and make sure it is on your PATH"],
            )
        return path

    @staticmethod
    def _require_field(value: str, message: str) -> None:
        if not value:
            raise ConfigurationError(message)

    @staticmethod
    def _require_source(config: DeploymentConfig) -> None:
        if not config.source_path.is_dir():
            raise FileSystemError(
                f"source directory '{config.source_dir}' does not exist",
                context=str(config.source_path),
                suggestions=["Run 'garp build' first"],
            )

    def _probe_api(self, url: str, token: str, timeout: float) -> None:
        """GET ``url`` with bearer auth; anything but 200 is a failure."""
        logger.debug(f"Probing {self.name} API: {url}")
        try:
            response = requests.get(
                url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(
                f"{self.name} API test failed: API request failed",
                cause=exc,
                suggestions=["Check your network connection", "Use --skip-validation to skip this check"],
            ) from exc

        if response.status_code != 200:
            raise NetworkError(
                f"{self.name} API test failed: API returned status "
                f"{response.status_code}: {response.text}",
                suggestions=["Check the API token and identifiers"],
            )

"""Deployment orchestration: build, content check, transfer, record."""

from __future__ import annotations

import time
from pathlib import Path

from ..build import Builder, BuildResult
from ..errors import ConfigurationError, DeploymentError, FileSystemError, GarpError
from ..logging_config import get_logger
from ..schema import DEFAULT_HISTORY_LIMIT
from .backends import (
    CloudflareBackend,
    DeploymentBackend,
    GitBackend,
    NetlifyBackend,
    RsyncBackend,
)
from .history import DeploymentHistory
from .models import DeploymentConfig, DeploymentResult, DeploymentStrategy
from .validation import ValidationOptions, get_default_validation_options, validate_deployment

logger = get_logger(__name__)


def default_backends() -> dict[DeploymentStrategy, DeploymentBackend]:
    return {
        DeploymentStrategy.GIT: GitBackend(),
        DeploymentStrategy.RSYNC: RsyncBackend(),
        DeploymentStrategy.NETLIFY: NetlifyBackend(),
        DeploymentStrategy.CLOUDFLARE: CloudflareBackend(),
    }


class DeploymentManager:
    """Single entry point for deploying a built site.

    ``deploy`` runs, in order: the optional pre-build, content validation,
    the strategy backend, and finally appends a history record whatever the
    outcome. Failures raise ``DeploymentError`` with the failed result
    attached.
    """

    def __init__(
        self,
        builder: Builder | None = None,
        *,
        state_dir: Path | str = ".garp",
        validation_options: ValidationOptions | None = None,
        history: DeploymentHistory | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        backends: dict[DeploymentStrategy, DeploymentBackend] | None = None,
    ) -> None:
        self.builder = builder
        self.state_dir = Path(state_dir)
        self.validation_options = validation_options
        self.history = history
        self.history_limit = history_limit
        self.backends = backends if backends is not None else default_backends()

    def get_backend(self, strategy: DeploymentStrategy) -> DeploymentBackend:
        try:
            return self.backends[strategy]
        except KeyError:
            raise ConfigurationError(
                f"unsupported deployment strategy: {getattr(strategy, 'value', strategy)}"
            ) from None

    def list_strategies(self) -> list[str]:
        return [strategy.value for strategy in self.backends]

    def validate(self, config: DeploymentConfig) -> None:
        """Pre-flight the backend for ``config`` without deploying."""
        self.get_backend(config.strategy).validate(config)

    def deploy(self, config: DeploymentConfig) -> DeploymentResult:
        backend = self.get_backend(config.strategy)
        logger.info(f"Starting deployment using {config.strategy.value} strategy")

        try:
            result = self._execute(backend, config)
        except DeploymentError as exc:
            self._record(exc.result, config)
            raise
        self._record(result, config)
        return result

    def _execute(self, backend: DeploymentBackend, config: DeploymentConfig) -> DeploymentResult:
        start = time.monotonic()

        if config.build_first:
            self._run_build(config, start)

        if not config.skip_content_check:
            self._check_content(config, start)

        try:
            result = backend.deploy(config)
        except DeploymentError as exc:
            tagged = exc.result.with_build_executed(config.build_first)
            raise DeploymentError(
                str(exc),
                tagged,
                suggestions=exc.suggestions,
                context=exc.context,
                exit_code=exc.exit_code,
            ) from exc
        return result.with_build_executed(config.build_first)

    def _failure(
        self,
        config: DeploymentConfig,
        start: float,
        errors: list[str],
        build_executed: bool,
    ) -> DeploymentResult:
        return DeploymentResult(
            success=False,
            strategy=config.strategy,
            duration=time.monotonic() - start,
            build_executed=build_executed,
            errors=errors,
        )

    def _run_build(self, config: DeploymentConfig, start: float) -> None:
        logger.info("Running pre-deployment build...")
        if self.builder is None:
            result = self._failure(config, start, ["no build step configured"], True)
            raise DeploymentError(
                "pre-deployment build failed",
                result,
                suggestions=["Deploy with --no-build or configure build.commands"],
            )

        try:
            build: BuildResult = self.builder.build()
        except (GarpError, OSError) as exc:
            result = self._failure(config, start, [f"pre-deployment build failed: {exc}"], True)
            raise DeploymentError("pre-deployment build failed", result, cause=exc) from exc

        if not build.success:
            errors = list(build.errors) or ["pre-deployment build failed"]
            result = self._failure(config, start, errors, True)
            raise DeploymentError("pre-deployment build failed", result)

        logger.info("Pre-deployment build completed successfully")

    def _check_content(self, config: DeploymentConfig, start: float) -> None:
        logger.info("Running pre-deployment validation...")
        options = self.validation_options or get_default_validation_options()

        try:
            validation = validate_deployment(config.source_path, options)
        except FileSystemError as exc:
            result = self._failure(
                config, start, [f"pre-deployment validation failed: {exc}"], config.build_first
            )
            raise DeploymentError(
                f"pre-deployment validation failed: {exc}",
                result,
                suggestions=exc.suggestions,
                exit_code=exc.exit_code,
            ) from exc

        for issue in validation.issues:
            logger.info(
                f"{issue.type.value.upper()} [{issue.category.value}]: {issue.message} (in {issue.file})"
            )

        errors = validation.errors
        if errors:
            summary = f"validation found {len(errors)} errors, deployment aborted"
            result = self._failure(
                config,
                start,
                [summary, *(issue.message for issue in errors)],
                config.build_first,
            )
            raise DeploymentError(f"validation failed with {len(errors)} errors", result)

        if validation.warnings:
            logger.warning(
                f"Found {len(validation.warnings)} validation warnings (deployment will continue)"
            )
        logger.info(f"Validation completed: {validation.file_count} files validated")

    def _record(self, result: DeploymentResult, config: DeploymentConfig) -> None:
        try:
            history = self.history
            if history is None:
                state_dir = self.state_dir
                if not state_dir.is_absolute():
                    state_dir = Path(config.project_root) / state_dir
                history = DeploymentHistory(state_dir, limit=self.history_limit)
            history.add_record(result, config)
        except (GarpError, OSError) as exc:
            logger.warning(f"Failed to record deployment history: {exc}")

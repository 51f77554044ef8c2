"""Cloudflare Pages deployment backend (per-file multipart upload)."""

from __future__ import annotations

from contextlib import ExitStack

import requests

from ...errors import FileSystemError, NetworkError
from ...logging_config import get_logger
from ..models import DeploymentConfig, DeploymentStrategy
from .base import DeploymentBackend

logger = get_logger(__name__)

CLOUDFLARE_API = "https://api.cloudflare.com/client/v4"


class CloudflareBackend(DeploymentBackend):
    """Deploys to a Pages project.

    ``project_id`` carries the account ID and ``site_id`` the Pages project
    name, matching the CLI flags.
    """

    strategy = DeploymentStrategy.CLOUDFLARE
    name = "Cloudflare Pages"

    def __init__(self, api_base: str = CLOUDFLARE_API) -> None:
        self.api_base = api_base.rstrip("/")

    def validate(self, config: DeploymentConfig) -> None:
        self._require_field(config.api_key, "Cloudflare API token is required (use --api-key)")
        self._require_field(config.project_id, "Cloudflare account ID is required (use --project-id)")
        self._require_field(config.site_id, "Cloudflare Pages project name is required (use --site-id)")
        self._require_source(config)

        if not config.skip_validation and not config.dry_run:
            self._probe_api(
                f"{self.api_base}/accounts/{config.project_id}",
                config.api_key,
                config.probe_timeout,
            )

    def _describe(self, config: DeploymentConfig) -> list[str]:
        return [f"Would deploy to Cloudflare Pages project {config.site_id}"]

    def _transfer(self, config: DeploymentConfig) -> tuple[list[str], str]:
        logger.info("Creating Cloudflare Pages deployment...")
        url = self._upload(config)
        return ["Successfully deployed to Cloudflare Pages"], url

    def _upload(self, config: DeploymentConfig) -> str:
        source = config.source_path
        endpoint = (
            f"{self.api_base}/accounts/{config.project_id}"
            f"/pages/projects/{config.site_id}/deployments"
        )

        with ExitStack() as stack:
            files = []
            try:
                for path in sorted(source.rglob("*")):
                    if not path.is_file():
                        continue
                    relative = path.relative_to(source).as_posix()
                    files.append((relative, (relative, stack.enter_context(open(path, "rb")))))
            except OSError as exc:
                raise FileSystemError("failed to read site files", cause=exc) from exc

            logger.debug(f"Uploading {len(files)} files to {endpoint}")
            try:
                response = requests.post(
                    endpoint,
                    headers={"Authorization": f"Bearer {config.api_key}"},
                    files=files,
                    timeout=config.transfer_timeout,
                )
            except requests.RequestException as exc:
                raise NetworkError("Cloudflare Pages deployment failed", cause=exc) from exc

        if response.status_code not in (200, 201):
            raise NetworkError(
                f"Cloudflare Pages deployment failed: deployment failed with status "
                f"{response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError(
                "Cloudflare Pages deployment failed: invalid JSON response", cause=exc
            ) from exc

        if not isinstance(payload, dict) or not payload.get("success"):
            raise NetworkError("Cloudflare Pages deployment failed: deployment was not successful")

        result = payload.get("result")
        if isinstance(result, dict) and isinstance(result.get("url"), str):
            return result["url"]
        return ""

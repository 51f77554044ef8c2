"""Netlify deployment backend (zip upload to the deploys API)."""

from __future__ import annotations

import os
import tempfile
import zipfile
from pathlib import Path

import requests

from ...errors import FileSystemError, NetworkError
from ...logging_config import get_logger
from ..models import DeploymentConfig, DeploymentStrategy
from .base import DeploymentBackend

logger = get_logger(__name__)

NETLIFY_API = "https://api.netlify.com/api/v1"


def create_deployment_archive(source_dir: Path) -> Path:
    """Zip every file under ``source_dir`` into a temporary archive.

    Entries use paths relative to ``source_dir``; directories get no entry.
    The caller owns the returned file and must delete it.
    """
    handle, name = tempfile.mkstemp(prefix="netlify-deploy-", suffix=".zip")
    os.close(handle)
    archive_path = Path(name)
    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for path in sorted(source_dir.rglob("*")):
                if not path.is_file():
                    continue
                archive.write(path, path.relative_to(source_dir).as_posix())
    except OSError as exc:
        archive_path.unlink(missing_ok=True)
        raise FileSystemError("failed to create deployment archive", cause=exc) from exc
    return archive_path


class NetlifyBackend(DeploymentBackend):
    strategy = DeploymentStrategy.NETLIFY
    name = "Netlify"

    def __init__(self, api_base: str = NETLIFY_API) -> None:
        self.api_base = api_base.rstrip("/")

    def validate(self, config: DeploymentConfig) -> None:
        self._require_field(config.api_key, "Netlify API key is required (use --api-key)")
        self._require_field(config.site_id, "Netlify site ID is required (use --site-id)")
        self._require_source(config)

        if not config.skip_validation and not config.dry_run:
            self._probe_api(
                f"{self.api_base}/sites/{config.site_id}",
                config.api_key,
                config.probe_timeout,
            )

    def _describe(self, config: DeploymentConfig) -> list[str]:
        return [f"Would deploy to Netlify site {config.site_id}"]

    def _transfer(self, config: DeploymentConfig) -> tuple[list[str], str]:
        logger.info("Creating deployment archive...")
        archive_path = create_deployment_archive(config.source_path)
        try:
            logger.info("Uploading to Netlify...")
            url = self._upload(config, archive_path)
        finally:
            archive_path.unlink(missing_ok=True)
        return ["Successfully deployed to Netlify"], url

    def _upload(self, config: DeploymentConfig, archive_path: Path) -> str:
        endpoint = f"{self.api_base}/sites/{config.site_id}/deploys"
        try:
            with open(archive_path, "rb") as archive:
                response = requests.post(
                    endpoint,
                    headers={"Authorization": f"Bearer {config.api_key}"},
                    files={"file": ("deploy.zip", archive, "application/zip")},
                    timeout=config.transfer_timeout,
                )
        except requests.RequestException as exc:
            raise NetworkError("Netlify upload failed", cause=exc) from exc

        if response.status_code not in (200, 201):
            raise NetworkError(
                f"Netlify upload failed: deployment failed with status "
                f"{response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError("Netlify upload failed: invalid JSON response", cause=exc) from exc

        if isinstance(payload, dict):
            for key in ("deploy_ssl_url", "url"):
                if isinstance(payload.get(key), str):
                    return payload[key]
        return ""

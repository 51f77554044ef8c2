"""Deployment history ledger stored at ``<project>/.garp/deployment-history.json``."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from ..errors import FileSystemError
from ..logging_config import get_logger
from ..schema import DEFAULT_HISTORY_LIMIT
from ..vcs import current_branch, current_commit
from .models import DeploymentConfig, DeploymentRecord, DeploymentResult
from .storage import read_json, write_json_atomic

logger = get_logger(__name__)

HISTORY_FILENAME = "deployment-history.json"


def generate_deployment_id(now: datetime | None = None) -> str:
    """Timestamp-prefixed ID with a random suffix so rapid deploys never collide."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
    return f"deploy_{stamp}_{uuid.uuid4().hex[:8]}"


class DeploymentHistory:
    """Append-only, capped list of past deployments.

    Example:
        ```python
        history = DeploymentHistory(Path(".garp"))
        history.add_record(result, config)
        latest = history.get_latest_deployment()
        ```
    """

    def __init__(self, state_dir: Path, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.path = Path(state_dir) / HISTORY_FILENAME
        self.limit = limit
        self.records: list[DeploymentRecord] = self._load()

    def _load(self) -> list[DeploymentRecord]:
        data = read_json(self.path, default=[])
        if not isinstance(data, list):
            raise FileSystemError(f"failed to load deployment history: {self.path} is not a JSON array")
        try:
            return [DeploymentRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise FileSystemError(f"failed to load deployment history from {self.path}", cause=exc) from exc

    def add_record(self, result: DeploymentResult, config: DeploymentConfig) -> DeploymentRecord:
        """Append a record for ``result`` and persist the trimmed ledger."""
        now = datetime.now(timezone.utc)
        record = DeploymentRecord(
            id=generate_deployment_id(now),
            timestamp=now,
            strategy=result.strategy.value,
            target=config.target,
            success=result.success,
            duration=result.duration,
            url=result.url,
            git_commit=current_commit(config.project_root),
            git_branch=current_branch(config.project_root),
            build_info={"build_executed": result.build_executed},
            errors=list(result.errors),
            messages=list(result.messages),
        )

        updated = sorted([*self.records, record], key=lambda item: item.timestamp)
        if len(updated) > self.limit:
            updated = updated[-self.limit:]

        write_json_atomic(self.path, [item.to_dict() for item in updated])
        self.records = updated
        logger.debug(f"Recorded deployment {record.id} ({len(updated)} in history)")
        return record

    def _newest_first(self) -> list[DeploymentRecord]:
        # Equal timestamps fall back to ledger position, later entries first.
        ordered = sorted(
            enumerate(self.records),
            key=lambda pair: (pair[1].timestamp, pair[0]),
            reverse=True,
        )
        return [record for _, record in ordered]

    def get_latest_deployment(self) -> DeploymentRecord:
        """Most recent successful deployment.

        Raises:
            LookupError: If no successful deployment exists.
        """
        for record in self._newest_first():
            if record.success:
                return record
        raise LookupError("no successful deployments found")

    def get_recent_deployments(self, limit: int) -> list[DeploymentRecord]:
        return self._newest_first()[: max(limit, 0)]

    def get_deployment_by_id(self, deployment_id: str) -> DeploymentRecord:
        for record in self.records:
            if record.id == deployment_id:
                return record
        raise KeyError(f"deployment with ID {deployment_id} not found")

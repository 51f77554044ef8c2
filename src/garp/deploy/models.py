"""Data models for site deployment."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError

DEFAULT_TRANSFER_TIMEOUT = 300.0
DEFAULT_PROBE_TIMEOUT = 10.0


class DeploymentStrategy(str, Enum):
    """Transport used to publish the built site."""

    GIT = "git"
    RSYNC = "rsync"
    NETLIFY = "netlify"
    CLOUDFLARE = "cloudflare"

    @classmethod
    def parse(cls, value: str) -> "DeploymentStrategy":
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError) as exc:
            raise ConfigurationError(
                f"unknown deployment strategy: {value}",
                suggestions=[f"Use one of: {', '.join(s.value for s in cls)}"],
            ) from exc


# Environment config keys that map onto DeploymentConfig fields.
ENVIRONMENT_KEYS = (
    "target",
    "git_remote",
    "git_branch",
    "rsync_host",
    "rsync_user",
    "rsync_path",
    "rsync_excludes",
    "api_key",
    "project_id",
    "site_id",
    "source_dir",
)


@dataclass(frozen=True)
class DeploymentConfig:
    """Everything one deploy invocation needs. Built once, never mutated."""

    strategy: DeploymentStrategy = DeploymentStrategy.GIT
    target: str = ""
    dry_run: bool = False
    verbose: bool = False
    build_first: bool = False
    skip_validation: bool = False
    skip_content_check: bool = False

    git_remote: str = "origin"
    git_branch: str = ""

    rsync_host: str = ""
    rsync_user: str = ""
    rsync_path: str = ""
    rsync_excludes: tuple[str, ...] = ()

    api_key: str = ""
    project_id: str = ""
    site_id: str = ""

    source_dir: Path = Path("site")
    project_root: Path = Path(".")
    transfer_timeout: float = DEFAULT_TRANSFER_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT

    @property
    def source_path(self) -> Path:
        """Output directory resolved against the project root."""
        source = Path(self.source_dir)
        if source.is_absolute():
            return source
        return Path(self.project_root) / source

    @classmethod
    def from_environment(cls, environment: "EnvironmentConfig", **overrides: Any) -> "DeploymentConfig":
        """Build a config from a stored environment; explicit overrides win."""
        values: dict[str, Any] = {"strategy": DeploymentStrategy.parse(environment.strategy)}
        if not environment.config.get("target"):
            values["target"] = environment.name
        for key in ENVIRONMENT_KEYS:
            raw = environment.config.get(key)
            if raw in (None, ""):
                continue
            if key == "rsync_excludes":
                values[key] = tuple(part.strip() for part in raw.split(",") if part.strip())
            elif key == "source_dir":
                values[key] = Path(raw)
            else:
                values[key] = raw
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of one deploy call."""

    success: bool
    strategy: DeploymentStrategy
    duration: float = 0.0
    build_executed: bool = False
    url: str = ""
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def with_build_executed(self, build_executed: bool) -> "DeploymentResult":
        return replace(self, build_executed=build_executed)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["strategy"] = self.strategy.value
        return data


@dataclass(frozen=True)
class DeploymentRecord:
    """Immutable history entry describing one past deploy attempt."""

    id: str
    timestamp: datetime
    strategy: str
    success: bool
    duration: float = 0.0
    target: str = ""
    url: str = ""
    git_commit: str | None = None
    git_branch: str | None = None
    build_info: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "strategy": self.strategy,
            "success": self.success,
            "duration": self.duration,
        }
        if self.target:
            data["target"] = self.target
        if self.url:
            data["url"] = self.url
        if self.git_commit:
            data["git_commit"] = self.git_commit
        if self.git_branch:
            data["git_branch"] = self.git_branch
        if self.build_info:
            data["build_info"] = dict(self.build_info)
        if self.errors:
            data["errors"] = list(self.errors)
        if self.messages:
            data["messages"] = list(self.messages)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentRecord":
        return cls(
            id=str(data["id"]),
            timestamp=_parse_timestamp(data.get("timestamp")),
            strategy=str(data.get("strategy", "")),
            success=bool(data.get("success", False)),
            duration=float(data.get("duration", 0.0) or 0.0),
            target=data.get("target") or "",
            url=data.get("url") or "",
            git_commit=data.get("git_commit"),
            git_branch=data.get("git_branch"),
            build_info=dict(data.get("build_info") or {}),
            errors=list(data.get("errors") or []),
            messages=list(data.get("messages") or []),
        )


@dataclass
class EnvironmentConfig:
    """Named set of deployment parameters, e.g. "staging" or "production"."""

    name: str = ""
    strategy: str = ""
    config: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "strategy": self.strategy, "config": dict(self.config)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EnvironmentConfig":
        raw_config = data.get("config") or {}
        return cls(
            name=str(data.get("name", "")),
            strategy=str(data.get("strategy", "")),
            config={str(key): str(value) for key, value in raw_config.items()},
        )


def _parse_timestamp(timestamp: str | None) -> datetime:
    if not timestamp:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if not isinstance(timestamp, str):
        raise ValueError(f"invalid timestamp: {timestamp!r}")
    normalized = timestamp.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed

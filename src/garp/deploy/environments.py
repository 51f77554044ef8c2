"""Named deployment environments stored at ``<project>/.garp/deploy-config.json``."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from ..errors import FileSystemError
from ..logging_config import get_logger
from .models import EnvironmentConfig
from .storage import read_json, write_json_atomic

logger = get_logger(__name__)

CONFIG_FILENAME = "deploy-config.json"


class EnvironmentStore:
    """Read-modify-write store of ``EnvironmentConfig`` keyed by name."""

    def __init__(self, state_dir: Path) -> None:
        self.path = Path(state_dir) / CONFIG_FILENAME
        self.environments: dict[str, EnvironmentConfig] = self._load()

    def _load(self) -> dict[str, EnvironmentConfig]:
        data = read_json(self.path, default={})
        if not isinstance(data, dict):
            raise FileSystemError(f"failed to load deployment config: {self.path} is not a JSON object")
        environments = {}
        for name, value in data.items():
            if isinstance(value, dict):
                environments[name] = EnvironmentConfig.from_dict({**value, "name": name})
        return environments

    def _save(self, environments: dict[str, EnvironmentConfig]) -> None:
        write_json_atomic(self.path, {name: env.to_dict() for name, env in environments.items()})
        self.environments = environments

    def set_environment(self, name: str, config: EnvironmentConfig) -> EnvironmentConfig:
        stored = replace(config, name=name, config=dict(config.config))
        self._save({**self.environments, name: stored})
        logger.debug(f"Saved deployment environment '{name}'")
        return stored

    def get_environment(self, name: str) -> EnvironmentConfig:
        try:
            return self.environments[name]
        except KeyError:
            raise KeyError(f"environment '{name}' not found") from None

    def list_environments(self) -> list[str]:
        return sorted(self.environments)

    def remove_environment(self, name: str) -> bool:
        """Delete ``name`` and persist. Returns False if it was not configured."""
        existed = name in self.environments
        remaining = {key: value for key, value in self.environments.items() if key != name}
        self._save(remaining)
        return existed


def parse_config_values(values: list[str]) -> dict[str, str]:
    """Parse ``key=value`` strings from the command line."""
    parsed: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"invalid config value '{raw}' (expected key=value)")
        parsed[key] = value.strip()
    return parsed

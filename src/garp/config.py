"""Project configuration loader for garp."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .schema import GarpConfig

CONFIG_FILENAME = "garp.toml"
STATE_DIRNAME = ".garp"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Invalid configuration file {path}",
            cause=exc,
            suggestions=["Check the TOML syntax of the file"],
        ) from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}", cause=exc) from exc


def find_project_root(start_dir: Path | None = None) -> Path:
    """Find the project root by walking upward to garp.toml or .garp/."""
    if start_dir is None:
        start_dir = Path.cwd()
    current = start_dir.resolve()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
        if (parent / STATE_DIRNAME).is_dir():
            return parent
    return current


def load_config(project_root: Path | None = None, config_path: Path | None = None) -> dict[str, Any]:
    """Load raw configuration: project garp.toml, then explicit file, then env overrides."""
    root = project_root or find_project_root()
    env_config = os.environ.get("GARP_CONFIG_PATH")
    if config_path is None and env_config:
        config_path = Path(env_config).expanduser()

    config_data: dict[str, Any] = {}

    local_path = root / CONFIG_FILENAME
    if local_path.exists():
        config_data = _deep_merge(config_data, _read_toml(local_path))

    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                suggestions=["Unset GARP_CONFIG_PATH or point it at an existing file"],
            )
        config_data = _deep_merge(config_data, _read_toml(config_path))

    general = config_data.setdefault("general", {})
    if os.environ.get("GARP_OUTPUT_DIR"):
        general["output_dir"] = os.environ["GARP_OUTPUT_DIR"]
    if os.environ.get("GARP_STATE_DIR"):
        general["state_dir"] = os.environ["GARP_STATE_DIR"]

    return config_data


def load_config_model(
    project_root: Path | None = None,
    config_path: Path | None = None,
) -> GarpConfig:
    """Load configuration and return a typed model."""
    return GarpConfig.from_dict(load_config(project_root=project_root, config_path=config_path))

"""Configuration schema for garp projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_HISTORY_LIMIT = 50


def default_required_files() -> list[str]:
    return ["index.html", "style.css"]


def default_build_commands() -> list[list[str]]:
    return [["bin/build-css"]]


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class GeneralConfig:
    output_dir: Path = Path("site")
    state_dir: Path = Path(".garp")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneralConfig":
        output_dir = data.get("output_dir")
        state_dir = data.get("state_dir")
        return cls(
            output_dir=Path(output_dir) if output_dir else cls().output_dir,
            state_dir=Path(state_dir) if state_dir else cls().state_dir,
        )


@dataclass
class DeploySettings:
    default_strategy: str = "git"
    history_limit: int = DEFAULT_HISTORY_LIMIT
    transfer_timeout: float = 300.0
    probe_timeout: float = 10.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploySettings":
        defaults = cls()
        strategy = data.get("default_strategy")
        return cls(
            default_strategy=strategy if isinstance(strategy, str) and strategy else defaults.default_strategy,
            history_limit=max(1, _as_int(data.get("history_limit"), defaults.history_limit)),
            transfer_timeout=_as_float(data.get("transfer_timeout"), defaults.transfer_timeout),
            probe_timeout=_as_float(data.get("probe_timeout"), defaults.probe_timeout),
        )


@dataclass
class BuildSettings:
    commands: list[list[str]] = field(default_factory=default_build_commands)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BuildSettings":
        raw = data.get("commands")
        if not isinstance(raw, list):
            return cls()
        commands: list[list[str]] = []
        for item in raw:
            if isinstance(item, str):
                commands.append(item.split())
            elif isinstance(item, list) and all(isinstance(part, str) for part in item):
                commands.append(list(item))
        return cls(commands=commands)


@dataclass
class ValidationSettings:
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    required_files: list[str] = field(default_factory=default_required_files)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationSettings":
        raw_required = data.get("required_files")
        if isinstance(raw_required, list):
            required = [item for item in raw_required if isinstance(item, str)]
        else:
            required = default_required_files()
        return cls(
            max_file_size=_as_int(data.get("max_file_size"), DEFAULT_MAX_FILE_SIZE),
            required_files=required,
        )


@dataclass
class GarpConfig:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    deploy: DeploySettings = field(default_factory=DeploySettings)
    build: BuildSettings = field(default_factory=BuildSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "GarpConfig":
        data = data or {}
        return cls(
            general=GeneralConfig.from_dict(data.get("general", {})),
            deploy=DeploySettings.from_dict(data.get("deploy", {})),
            build=BuildSettings.from_dict(data.get("build", {})),
            validation=ValidationSettings.from_dict(data.get("validation", {})),
        )

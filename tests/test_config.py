from __future__ import annotations

from pathlib import Path

import pytest

from garp.config import _deep_merge, find_project_root, load_config, load_config_model
from garp.errors import ConfigurationError
from garp.schema import DEFAULT_MAX_FILE_SIZE, GarpConfig


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("GARP_CONFIG_PATH", "GARP_OUTPUT_DIR", "GARP_STATE_DIR"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_files(tmp_path) -> None:
    model = load_config_model(project_root=tmp_path)

    assert model.general.output_dir == Path("site")
    assert model.general.state_dir == Path(".garp")
    assert model.deploy.default_strategy == "git"
    assert model.deploy.history_limit == 50
    assert model.deploy.transfer_timeout == 300.0
    assert model.deploy.probe_timeout == 10.0
    assert model.build.commands == [["bin/build-css"]]
    assert model.validation.max_file_size == DEFAULT_MAX_FILE_SIZE
    assert model.validation.required_files == ["index.html", "style.css"]


def test_project_file_then_explicit_file(tmp_path) -> None:
    (tmp_path / "garp.toml").write_text(
        "[general]\noutput_dir = \"public\"\n"
        "[deploy]\ndefault_strategy = \"rsync\"\nhistory_limit = 20\n",
        encoding="utf-8",
    )
    extra = tmp_path / "ci.toml"
    extra.write_text("[deploy]\nhistory_limit = 5\n", encoding="utf-8")

    model = load_config_model(project_root=tmp_path, config_path=extra)

    assert model.general.output_dir == Path("public")
    assert model.deploy.default_strategy == "rsync"
    assert model.deploy.history_limit == 5


def test_environment_overrides(tmp_path, monkeypatch) -> None:
    extra = tmp_path / "env.toml"
    extra.write_text("[validation]\nrequired_files = [\"index.html\"]\n", encoding="utf-8")
    monkeypatch.setenv("GARP_CONFIG_PATH", str(extra))
    monkeypatch.setenv("GARP_OUTPUT_DIR", "dist")
    monkeypatch.setenv("GARP_STATE_DIR", "/var/lib/garp")

    data = load_config(project_root=tmp_path)
    model = GarpConfig.from_dict(data)

    assert model.general.output_dir == Path("dist")
    assert model.general.state_dir == Path("/var/lib/garp")
    assert model.validation.required_files == ["index.html"]


def test_missing_explicit_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(project_root=tmp_path, config_path=tmp_path / "absent.toml")


def test_invalid_toml(tmp_path) -> None:
    (tmp_path / "garp.toml").write_text("[general\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid configuration file"):
        load_config(project_root=tmp_path)


def test_build_commands_accept_strings_and_lists() -> None:
    model = GarpConfig.from_dict(
        {"build": {"commands": ["npm run build", ["bin/pagefind", "--site", "site"], 3]}}
    )
    assert model.build.commands == [["npm", "run", "build"], ["bin/pagefind", "--site", "site"]]


def test_bad_numbers_fall_back_to_defaults() -> None:
    model = GarpConfig.from_dict({"deploy": {"history_limit": "lots", "probe_timeout": None}})
    assert model.deploy.history_limit == 50
    assert model.deploy.probe_timeout == 10.0


def test_find_project_root(tmp_path) -> None:
    (tmp_path / "garp.toml").write_text("", encoding="utf-8")
    nested = tmp_path / "content" / "posts"
    nested.mkdir(parents=True)

    assert find_project_root(nested) == tmp_path.resolve()


def test_deep_merge_nested() -> None:
    merged = _deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

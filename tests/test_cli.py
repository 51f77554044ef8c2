from __future__ import annotations

import logging

import pytest
from click.testing import CliRunner

from garp.cli import cli
from garp.deploy.history import DeploymentHistory
from garp.deploy.models import DeploymentResult, DeploymentStrategy
from garp.errors import EXIT_CONFIG


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("GARP_CONFIG_PATH", "GARP_OUTPUT_DIR", "GARP_STATE_DIR", "GARP_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
    yield
    logging.getLogger("garp").handlers.clear()


@pytest.fixture
def invoke(tmp_path):
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(cli, ["--project-dir", str(tmp_path), *args])

    return _invoke


def test_rsync_dry_run(invoke, tmp_path, site_dir):
    result = invoke(
        "deploy",
        "--target", "rsync",
        "--rsync-host", "example.com",
        "--rsync-path", "/var/www",
        "--dry-run",
        "--no-build",
    )

    assert result.exit_code == 0, result.output
    assert "Deployment completed successfully" in result.output
    assert "would sync to example.com:/var/www" in result.output
    assert (tmp_path / ".garp" / "deployment-history.json").exists()


def test_unknown_target(invoke, site_dir):
    result = invoke("deploy", "--target", "ftp", "--no-build")

    assert result.exit_code == EXIT_CONFIG
    assert "unknown deployment strategy: ftp" in result.output


def test_missing_host_fails_validation(invoke, site_dir):
    result = invoke("deploy", "--target", "rsync", "--rsync-path", "/var/www", "--dry-run", "--no-build")

    assert result.exit_code == EXIT_CONFIG
    assert "Deployment validation failed" in result.output
    assert "rsync host is required" in result.output


def test_content_errors_fail_deploy(invoke, site_dir):
    (site_dir / "style.css").unlink()

    result = invoke(
        "deploy",
        "--target", "rsync",
        "--rsync-host", "example.com",
        "--rsync-path", "/var/www",
        "--dry-run",
        "--no-build",
    )

    assert result.exit_code == 1
    assert "Required file missing: style.css" in result.output


def test_output_dir_from_config(invoke, tmp_path, site_dir):
    (tmp_path / "garp.toml").write_text('[general]\noutput_dir = "public"\n', encoding="utf-8")
    site_dir.rename(tmp_path / "public")

    result = invoke("validate")

    assert result.exit_code == 0, result.output
    assert "Files: 4" in result.output


def test_validate_reports_broken_link_as_warning(invoke, site_dir):
    (site_dir / "about.html").write_text('<p>\n<a href="gone.html">x</a></p>', encoding="utf-8")

    result = invoke("validate")

    assert result.exit_code == 0, result.output
    assert "WARNING [link]: Broken internal link: gone.html" in result.output
    assert "about.html:2" in result.output
    assert "Warnings: 1" in result.output

    assert "Broken internal link" not in invoke("validate", "--no-links").output


def test_validate_fails_on_missing_required_file(invoke, site_dir):
    (site_dir / "index.html").unlink()

    result = invoke("validate")

    assert result.exit_code == 1
    assert "ERROR [file]: Required file missing: index.html" in result.output


def test_history_empty_and_populated(invoke, site_dir):
    assert "No deployments found." in invoke("deploy-history").output

    invoke(
        "deploy",
        "--target", "rsync",
        "--rsync-host", "example.com",
        "--rsync-path", "/var/www",
        "--dry-run",
        "--no-build",
    )
    result = invoke("deploy-history", "--limit", "5")

    assert result.exit_code == 0
    assert "Recent deployments (showing 1)" in result.output
    assert "Strategy: rsync" in result.output
    assert "SUCCESS" in result.output


def test_deploy_config_lifecycle(invoke):
    result = invoke(
        "deploy-config", "set", "staging",
        "--strategy", "rsync",
        "--config", "rsync_host=example.com",
        "--config", "rsync_path=/var/www",
        "--config", "api_key=hunter2",
    )
    assert result.exit_code == 0, result.output

    listed = invoke("deploy-config", "list")
    assert "staging (rsync)" in listed.output

    shown = invoke("deploy-config", "get", "staging")
    assert "rsync_host: example.com" in shown.output
    assert "hunter2" not in shown.output

    removed = invoke("deploy-config", "remove", "staging")
    assert "Configuration removed" in removed.output
    assert "No deployment configurations found." in invoke("deploy-config", "list").output


def test_deploy_config_rejects_bad_values(invoke):
    result = invoke("deploy-config", "set", "staging", "--strategy", "rsync", "--config", "oops")
    assert result.exit_code == 2

    result = invoke("deploy-config", "set", "staging", "--strategy", "ftp")
    assert result.exit_code == EXIT_CONFIG


def test_deploy_with_environment(invoke, site_dir):
    invoke(
        "deploy-config", "set", "staging",
        "--strategy", "rsync",
        "--config", "rsync_host=example.com",
        "--config", "rsync_path=/srv/staging",
    )

    result = invoke("deploy", "--env", "staging", "--dry-run", "--no-build")

    assert result.exit_code == 0, result.output
    assert "example.com:/srv/staging" in result.output


def test_deploy_with_unknown_environment(invoke, site_dir):
    result = invoke("deploy", "--env", "nope", "--dry-run", "--no-build")
    assert result.exit_code == 1
    assert "environment 'nope' not found" in result.output


def test_rollback_without_history(invoke):
    result = invoke("rollback")
    assert result.exit_code == 1
    assert "no successful deployments found" in result.output


def test_rollback_git_prints_steps(invoke, tmp_path, make_config, monkeypatch):
    monkeypatch.setattr("garp.deploy.history.current_commit", lambda cwd=None: "abc123")
    history = DeploymentHistory(tmp_path / ".garp")
    record = history.add_record(
        DeploymentResult(success=True, strategy=DeploymentStrategy.GIT),
        make_config(DeploymentStrategy.GIT),
    )

    result = invoke("rollback", record.id)

    assert result.exit_code == 0, result.output
    assert f"Rolling back to deployment {record.id}" in result.output
    assert "git checkout abc123" in result.output

    dry = invoke("rollback", "--dry-run")
    assert "no actual rollback" in dry.output
    assert "git checkout" not in dry.output


def test_rollback_refuses_failed_deployment(invoke, tmp_path, make_config):
    history = DeploymentHistory(tmp_path / ".garp")
    record = history.add_record(
        DeploymentResult(success=False, strategy=DeploymentStrategy.RSYNC),
        make_config(),
    )

    result = invoke("rollback", record.id)

    assert result.exit_code == 1
    assert "cannot rollback to failed deployment" in result.output

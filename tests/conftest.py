from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from garp.deploy.models import DeploymentConfig, DeploymentStrategy  # noqa: E402


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A small built site with the default required files."""
    site = tmp_path / "site"
    site.mkdir()
    (site / "index.html").write_text(
        "<html><body>"
        '<a href="about.html">About</a>'
        '<a href="https://example.com">Out</a>'
        '<img src="logo.png">'
        "</body></html>",
        encoding="utf-8",
    )
    (site / "about.html").write_text("<html><body>About</body></html>", encoding="utf-8")
    (site / "style.css").write_text("body { margin: 0; }", encoding="utf-8")
    (site / "logo.png").write_bytes(b"\x89PNG")
    return site


@pytest.fixture
def make_config(tmp_path: Path):
    """Build a DeploymentConfig rooted at the temporary project."""

    def _make(strategy: DeploymentStrategy = DeploymentStrategy.RSYNC, **kwargs) -> DeploymentConfig:
        kwargs.setdefault("project_root", tmp_path)
        return DeploymentConfig(strategy=strategy, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def no_git_metadata(monkeypatch):
    """Keep history records independent of whatever repo the tests run in."""
    monkeypatch.setattr("garp.deploy.history.current_branch", lambda cwd=None: None)
    monkeypatch.setattr("garp.deploy.history.current_commit", lambda cwd=None: None)

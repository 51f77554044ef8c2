"""Tests for pre-deployment content validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from garp.deploy.validation import (
    IssueCategory,
    IssueType,
    ValidationOptions,
    get_default_validation_options,
    validate_deployment,
)
from garp.errors import FileSystemError


def _options(**kwargs) -> ValidationOptions:
    kwargs.setdefault("required_files", [])
    return ValidationOptions(**kwargs)


class TestDefaults:
    def test_default_options(self):
        options = get_default_validation_options()
        assert options.check_links is True
        assert options.check_images is True
        assert options.check_file_size is True
        assert options.max_file_size == 10 * 1024 * 1024
        assert options.required_files == ["index.html", "style.css"]

    def test_clean_site_passes(self, site_dir: Path):
        result = validate_deployment(site_dir, get_default_validation_options())

        assert result.success is True
        assert result.issues == []
        assert result.file_count == 4
        assert result.total_size == sum(p.stat().st_size for p in site_dir.iterdir())
        assert result.largest_file == str(site_dir / "index.html")


class TestRequiredFiles:
    def test_missing_required_files_are_errors(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "index.html").write_text("<html></html>", encoding="utf-8")

        options = _options(required_files=["index.html", "style.css", "robots.txt"])
        result = validate_deployment(site, options)

        assert result.success is False
        file_errors = [
            issue for issue in result.issues
            if issue.type == IssueType.ERROR and issue.category == IssueCategory.FILE
        ]
        assert len(file_errors) == 2
        assert {Path(issue.file).name for issue in file_errors} == {"style.css", "robots.txt"}

    def test_nested_required_file(self, tmp_path: Path):
        site = tmp_path / "site"
        (site / "assets").mkdir(parents=True)
        (site / "assets" / "app.js").write_text("", encoding="utf-8")

        result = validate_deployment(site, _options(required_files=["assets/app.js"]))
        assert result.success is True


class TestLinks:
    def test_broken_link_is_warning(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<a href="missing.html">x</a>', encoding="utf-8")

        result = validate_deployment(site, _options())

        assert result.success is True
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.type == IssueType.WARNING
        assert issue.category == IssueCategory.LINK
        assert "missing.html" in issue.message
        assert issue.file == str(site / "a.html")

    def test_existing_link_has_no_issue(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<a href="real.html">x</a>', encoding="utf-8")
        (site / "real.html").write_text("", encoding="utf-8")

        result = validate_deployment(site, _options())
        assert result.issues == []

    def test_link_without_extension_falls_back_to_html(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<a href="about">x</a>', encoding="utf-8")
        (site / "about.html").write_text("", encoding="utf-8")

        result = validate_deployment(site, _options())
        assert result.issues == []

    def test_overlong_link_is_a_warning(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        href = "a" * 300 + ".html"
        (site / "a.html").write_text(f'<a href="{href}">x</a>', encoding="utf-8")

        result = validate_deployment(site, _options())

        assert result.success is True
        assert [issue.category for issue in result.issues] == [IssueCategory.LINK]
        assert result.issues[0].type == IssueType.WARNING

    def test_query_and_fragment_are_ignored(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<a href="real.html?page=2#top">x</a>', encoding="utf-8")
        (site / "real.html").write_text("", encoding="utf-8")

        result = validate_deployment(site, _options())
        assert result.issues == []

    def test_external_and_special_links_are_skipped(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text(
            '<a href="https://example.com/nope.html">x</a>'
            '<a href="http://example.com">x</a>'
            '<a href="mailto:me@example.com">x</a>'
            '<a href="tel:+15555555555">x</a>'
            '<a href="#section">x</a>',
            encoding="utf-8",
        )

        result = validate_deployment(site, _options())
        assert result.issues == []

    def test_root_relative_link_resolves_two_levels_up(self, tmp_path: Path):
        site = tmp_path / "site"
        (site / "blog").mkdir(parents=True)
        (site / "blog" / "post.html").write_text('<a href="/blog/other.html">x</a>', encoding="utf-8")
        (site / "blog" / "other.html").write_text("", encoding="utf-8")

        result = validate_deployment(site, _options())
        assert result.issues == []

    def test_issue_reports_line_number(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<p>one</p>\n<p>two</p>\n<a href="gone.html">x</a>\n', encoding="utf-8")

        result = validate_deployment(site, _options())
        assert result.issues[0].line_number == 3

    def test_link_check_can_be_disabled(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<a href="missing.html">x</a>', encoding="utf-8")

        result = validate_deployment(site, _options(check_links=False))
        assert result.issues == []


class TestImages:
    def test_missing_image_is_warning(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.htm").write_text('<img alt="x" src="img/missing.png">', encoding="utf-8")

        result = validate_deployment(site, _options())

        assert result.success is True
        assert len(result.issues) == 1
        assert result.issues[0].category == IssueCategory.IMAGE
        assert result.issues[0].type == IssueType.WARNING

    def test_external_and_data_images_are_skipped(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text(
            '<img src="https://cdn.example.com/a.png">'
            '<img src="data:image/png;base64,AAAA">',
            encoding="utf-8",
        )

        result = validate_deployment(site, _options())
        assert result.issues == []

    def test_images_have_no_extension_fallback(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.html").write_text('<img src="logo">', encoding="utf-8")
        (site / "logo.html").write_text("", encoding="utf-8")

        result = validate_deployment(site, _options(check_links=False))
        assert len(result.issues) == 1

    def test_overlong_image_is_a_warning(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        src = "b" * 300 + ".png"
        (site / "a.html").write_text(f'<img src="{src}">', encoding="utf-8")

        result = validate_deployment(site, _options(check_links=False))

        assert result.success is True
        assert [issue.category for issue in result.issues] == [IssueCategory.IMAGE]


class TestSizes:
    def test_oversized_file_is_only_a_warning(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "big.bin").write_bytes(b"x" * 100)

        result = validate_deployment(site, _options(max_file_size=10))

        assert result.success is True
        assert len(result.issues) == 1
        assert result.issues[0].type == IssueType.WARNING
        assert result.issues[0].category == IssueCategory.SIZE

    def test_size_check_disabled(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "big.bin").write_bytes(b"x" * 100)

        result = validate_deployment(site, _options(max_file_size=10, check_file_size=False))
        assert result.issues == []

    def test_largest_file_ties_keep_first_seen(self, tmp_path: Path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "a.txt").write_bytes(b"1234")
        (site / "b.txt").write_bytes(b"5678")

        result = validate_deployment(site, _options())
        assert result.largest_file == str(site / "a.txt")
        assert result.largest_size == 4


def test_missing_source_directory_raises(tmp_path: Path):
    with pytest.raises(FileSystemError):
        validate_deployment(tmp_path / "nope", get_default_validation_options())

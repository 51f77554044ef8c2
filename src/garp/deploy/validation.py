"""Pre-deployment content validation for a built site.

Walks the output directory once and reports:
- missing required files (errors, these block a deploy)
- files above the size ceiling (warnings)
- internal links and images that point at nothing on disk (warnings)
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from ..errors import FileSystemError
from ..logging_config import get_logger
from ..schema import DEFAULT_MAX_FILE_SIZE, default_required_files

logger = get_logger(__name__)

HTML_EXTENSIONS = (".html", ".htm")

LINK_PATTERN = re.compile(r"""href=["']([^"']+)["']""")
IMAGE_PATTERN = re.compile(r"""<img[^>]+src=["']([^"']+)["']""")

EXTERNAL_PREFIXES = ("http://", "https://", "//")
SKIPPED_LINK_PREFIXES = EXTERNAL_PREFIXES + ("mailto:", "tel:", "#")
SKIPPED_IMAGE_PREFIXES = EXTERNAL_PREFIXES + ("data:",)


class IssueType(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCategory(str, Enum):
    LINK = "link"
    IMAGE = "image"
    FILE = "file"
    SIZE = "size"


@dataclass
class ValidationOptions:
    """Which checks run, and their thresholds."""

    check_links: bool = True
    check_images: bool = True
    check_file_size: bool = True
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    required_files: list[str] = field(default_factory=default_required_files)


@dataclass(frozen=True)
class ValidationIssue:
    type: IssueType
    category: IssueCategory
    message: str
    file: str
    line_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "category": self.category.value,
            "message": self.message,
            "file": self.file,
            "line_number": self.line_number,
        }


@dataclass
class ValidationResult:
    success: bool = True
    issues: list[ValidationIssue] = field(default_factory=list)
    file_count: int = 0
    total_size: int = 0
    largest_file: str = ""
    largest_size: int = 0

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.type == IssueType.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.type == IssueType.WARNING]

    def summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "files": self.file_count,
            "total_size": self.total_size,
            "largest_file": self.largest_file,
            "largest_size": self.largest_size,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
        }


def get_default_validation_options() -> ValidationOptions:
    """Recommended policy: links, images and a 10 MiB size ceiling checked."""
    return ValidationOptions()


def validate_deployment(source_dir: Path | str, options: ValidationOptions) -> ValidationResult:
    """Validate a built site directory before it is published.

    Raises:
        FileSystemError: If ``source_dir`` does not exist or cannot be walked.
    """
    source = Path(source_dir)
    if not source.is_dir():
        raise FileSystemError(
            f"source directory '{source}' does not exist",
            suggestions=["Run the site build before deploying"],
        )

    result = ValidationResult()
    logger.debug(f"Validating deployment content in {source}")

    def _on_walk_error(error: OSError) -> None:
        raise FileSystemError(f"error walking directory {source}", cause=error) from error

    for dirpath, dirnames, filenames in os.walk(source, onerror=_on_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            _inspect_file(path, options, result)

    for required in options.required_files:
        full_path = source / required
        if not _exists(full_path):
            result.issues.append(
                ValidationIssue(
                    type=IssueType.ERROR,
                    category=IssueCategory.FILE,
                    message=f"Required file missing: {required}",
                    file=str(full_path),
                )
            )

    result.success = not result.errors
    logger.debug(
        f"Validation completed: {result.file_count} files, {len(result.issues)} issues"
    )
    return result


def _inspect_file(path: Path, options: ValidationOptions, result: ValidationResult) -> None:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise FileSystemError(f"cannot stat {path}", cause=exc) from exc

    result.file_count += 1
    result.total_size += size
    if size > result.largest_size:
        result.largest_size = size
        result.largest_file = str(path)

    if options.check_file_size and options.max_file_size > 0 and size > options.max_file_size:
        result.issues.append(
            ValidationIssue(
                type=IssueType.WARNING,
                category=IssueCategory.SIZE,
                message=f"File size ({size} bytes) exceeds limit ({options.max_file_size} bytes)",
                file=str(path),
            )
        )

    if path.suffix.lower() not in HTML_EXTENSIONS:
        return
    if not (options.check_links or options.check_images):
        return

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning(f"Could not validate {path}: {exc}")
        return

    if options.check_links:
        _check_links(path, content, result)
    if options.check_images:
        _check_images(path, content, result)


def _resolve_reference(html_file: Path, reference: str) -> Path:
    if reference.startswith("/"):
        # Root-relative references resolve against the file's grandparent.
        return html_file.parent.parent / reference.lstrip("/")
    return html_file.parent / reference


def _exists(path: Path) -> bool:
    """Like Path.exists, but a path that cannot be stat-ed (name too long) counts as missing."""
    try:
        path.stat()
    except OSError:
        return False
    return True


def _line_number(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _check_links(html_file: Path, content: str, result: ValidationResult) -> None:
    for match in LINK_PATTERN.finditer(content):
        href = match.group(1)
        if href.startswith(SKIPPED_LINK_PREFIXES):
            continue
        try:
            link_path = urlsplit(href).path
        except ValueError:
            continue
        if not link_path:
            continue

        target = _resolve_reference(html_file, link_path)
        if _exists(target):
            continue
        if target.suffix != ".html" and _exists(Path(f"{target}.html")):
            continue

        result.issues.append(
            ValidationIssue(
                type=IssueType.WARNING,
                category=IssueCategory.LINK,
                message=f"Broken internal link: {href} -> {target}",
                file=str(html_file),
                line_number=_line_number(content, match.start()),
            )
        )


def _check_images(html_file: Path, content: str, result: ValidationResult) -> None:
    for match in IMAGE_PATTERN.finditer(content):
        src = match.group(1)
        if src.startswith(SKIPPED_IMAGE_PREFIXES):
            continue

        target = _resolve_reference(html_file, src)
        if _exists(target):
            continue

        result.issues.append(
            ValidationIssue(
                type=IssueType.WARNING,
                category=IssueCategory.IMAGE,
                message=f"Missing image: {src} -> {target}",
                file=str(html_file),
                line_number=_line_number(content, match.start(1)),
            )
        )

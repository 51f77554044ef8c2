"""JSON document helpers shared by the history and environment stores."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ..errors import FileSystemError


def read_json(path: Path, default: Any) -> Any:
    """Read a JSON document, returning ``default`` when the file is absent."""
    if not path.exists():
        return default
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise FileSystemError(
            f"failed to parse {path}",
            cause=exc,
            suggestions=[f"Fix or remove {path}"],
        ) from exc
    except OSError as exc:
        raise FileSystemError(f"failed to read {path}", cause=exc) from exc


def write_json_atomic(path: Path, data: Any) -> None:
    """Replace ``path`` with ``data`` via a temp file and rename.

    Readers see either the old document or the new one, never a partial write.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise FileSystemError(f"failed to write {path}", cause=exc) from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
            handle.write("\n")
        os.replace(tmp_name, path)
    except (OSError, TypeError, ValueError) as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise FileSystemError(f"failed to write {path}", cause=exc) from exc

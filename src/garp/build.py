"""Pre-deployment build step.

The deployment core only needs ``build() -> BuildResult``; ``SiteBuilder``
is the default implementation that shells out to the project's build
commands (Tailwind, Pagefind wrappers and the like).
"""

from __future__ import annotations

import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildResult:
    success: bool
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration: float = 0.0


class Builder(Protocol):
    def build(self) -> BuildResult: ...


class SiteBuilder:
    """Run the configured build commands one after another.

    Concurrent callers are serialised; a second caller waits for the
    running build and then runs its own.
    """

    def __init__(self, project_root: Path, commands: list[list[str]], timeout: float | None = None) -> None:
        self.project_root = project_root
        self.commands = [list(command) for command in commands if command]
        self.timeout = timeout
        self._lock = threading.Lock()

    def build(self) -> BuildResult:
        with self._lock:
            return self._run_all()

    def _run_all(self) -> BuildResult:
        start = time.monotonic()
        messages: list[str] = []
        errors: list[str] = []

        for command in self.commands:
            label = " ".join(command)
            logger.info(f"Running build command: {label}")
            try:
                completed = subprocess.run(
                    command,
                    cwd=self.project_root,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except FileNotFoundError:
                errors.append(f"build command not found: {command[0]}")
                continue
            except subprocess.TimeoutExpired:
                errors.append(f"build command timed out: {label}")
                continue
            except OSError as exc:
                errors.append(f"build command failed to start: {label}: {exc}")
                continue

            if completed.returncode != 0:
                output = (completed.stdout + completed.stderr).strip()
                errors.append(
                    f"build command failed ({completed.returncode}): {label}\nOutput: {output}"
                )
            else:
                messages.append(f"Ran {label}")

        return BuildResult(
            success=not errors,
            messages=messages,
            errors=errors,
            duration=time.monotonic() - start,
        )

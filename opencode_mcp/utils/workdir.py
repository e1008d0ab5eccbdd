"""Working directory resolution for execution tools.

Priority: explicit argument > OPENCODE_DEFAULT_PROJECT > project root
detected by walking up from cwd > cwd itself. An explicit directory that does
not exist fails closed; it never falls through to the other sources.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from opencode_mcp.config import default_project_dir
from opencode_mcp.utils.errors import WorkingDirectoryError
from opencode_mcp.utils.logging_ import logger

PROJECT_MARKERS = [
    ".git",
    "package.json",
    "Cargo.toml",
    "go.mod",
    "pyproject.toml",
    "setup.py",
    "pom.xml",
    "build.gradle",
]

MAX_SEARCH_LEVELS = 20

_FROM_ENV = object()


class DirectorySource(str, Enum):
    EXPLICIT = "explicit"
    ENVIRONMENT = "environment"
    DETECTED = "detected"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class WorkingDirectoryResolution:
    directory: str
    source: DirectorySource


def find_project_root(start: Path, max_levels: int = MAX_SEARCH_LEVELS) -> Optional[Path]:
    """First directory at or above start containing any project marker."""
    current = start
    for _ in range(max_levels):
        if any((current / marker).exists() for marker in PROJECT_MARKERS):
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def resolve_working_directory(
    explicit: Optional[str] = None,
    env_default=_FROM_ENV,
    cwd: Optional[str] = None,
) -> WorkingDirectoryResolution:
    """Pick the directory for an execution call and record where it came from.

    env_default defaults to OPENCODE_DEFAULT_PROJECT read at call time; pass
    None to skip the environment step.
    """
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_dir():
            raise WorkingDirectoryError(f"Specified directory does not exist: {explicit}")
        return WorkingDirectoryResolution(str(path), DirectorySource.EXPLICIT)

    if env_default is _FROM_ENV:
        env_default = default_project_dir()
    if env_default:
        path = Path(env_default).expanduser()
        if path.is_dir():
            return WorkingDirectoryResolution(str(path), DirectorySource.ENVIRONMENT)
        logger.warning(f"OPENCODE_DEFAULT_PROJECT directory does not exist: {env_default}")

    start = Path(cwd) if cwd else Path(os.getcwd())
    root = find_project_root(start)
    if root is not None:
        return WorkingDirectoryResolution(str(root), DirectorySource.DETECTED)

    return WorkingDirectoryResolution(str(start), DirectorySource.FALLBACK)

"""
Path Utils
==========
Home-directory resolution and idempotent directory creation.

Layout:
    <home>/builder/cache/   - cache root, mirrored per configured cache path
    <home>/builder/logs/    - daily log files
"""
import os
import posixpath
from pathlib import Path
from typing import Optional

from builder.core.constants import BUILDER_DIR_NAME, CACHE_DIR_NAME, LOG_DIR_NAME
from builder.core.errors import CacheDirectoryError


def resolve_home(override: Optional[str] = None) -> Path:
    """Return the home directory, honouring an explicit override."""
    if override:
        return Path(override).expanduser()
    try:
        return Path.home()
    except RuntimeError as e:
        raise CacheDirectoryError("~", f"cannot resolve home directory: {e}") from e


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents; an existing directory is not an error."""
    try:
        path.mkdir(mode=0o777, parents=True, exist_ok=True)
    except OSError as e:
        raise CacheDirectoryError(str(path), e.strerror or str(e)) from e
    return path


def resolve_cache_root(home: Optional[str] = None) -> Path:
    """Resolve ``<home>/builder/cache`` and make sure it exists."""
    return ensure_directory(resolve_home(home) / BUILDER_DIR_NAME / CACHE_DIR_NAME)


def resolve_log_dir(log_dir: Optional[str] = None, home: Optional[str] = None) -> Path:
    if log_dir:
        return Path(log_dir).expanduser()
    return resolve_home(home) / BUILDER_DIR_NAME / LOG_DIR_NAME


def cache_host_path(cache_root: Path, cache_path: str) -> Path:
    """Map an absolute container cache path onto its directory under the cache root."""
    relative = posixpath.normpath(cache_path.lstrip("/"))
    if relative in (".", "") or relative == ".." or relative.startswith("../"):
        raise CacheDirectoryError(
            str(cache_root / cache_path.lstrip("/")),
            f"cache path {cache_path!r} resolves outside the cache root",
        )
    return cache_root / relative


def resolve_project_path(path: Optional[str]) -> str:
    """Absolute project path; defaults to the current working directory."""
    return os.path.abspath(path) if path else os.getcwd()

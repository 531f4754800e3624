"""
Mount Planner
=============
Derives the bind mounts for a job from the project path and the configured
cache paths.

Order contract:
    [0]    project_path         → /app
    [1..n] <cache_root>/<path>  → <path>     (one per cache path, input order)

Every cache directory is created on the host before the list is returned.
A creation failure raises CacheDirectoryError and no mounts are produced.
Creation is idempotent, so the same cache root can be reused across runs.
"""
import logging
from pathlib import Path
from typing import Sequence

from builder.core.constants import JOB_WORKDIR
from builder.models.job_spec import MountSpec
from builder.utils.path_utils import cache_host_path, ensure_directory

logger = logging.getLogger(__name__)


def project_mount(project_path: str, target: str = JOB_WORKDIR) -> MountSpec:
    return MountSpec(source=str(project_path), target=target)


def plan_mounts(
    project_path: str,
    cache_paths: Sequence[str],
    cache_root: Path,
) -> list[MountSpec]:
    """
    Plan the project mount followed by one mount per cache path.

    Parameters
    ----------
    project_path : str
        Absolute host path of the project under test.
    cache_paths : Sequence[str]
        Absolute in-container cache paths, in configuration order.
    cache_root : Path
        Existing host directory that mirrors the cache paths.

    Returns
    -------
    list[MountSpec]
        ``1 + len(cache_paths)`` mounts, project mount first.
    """
    cache_mounts: list[MountSpec] = []
    for path in cache_paths:
        host_dir = ensure_directory(cache_host_path(Path(cache_root), path))
        cache_mounts.append(MountSpec(source=str(host_dir), target=path))
        logger.debug("Cache mount %s -> %s", host_dir, path)

    return [project_mount(project_path)] + cache_mounts

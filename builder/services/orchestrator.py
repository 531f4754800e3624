"""
Orchestrator
============
Entry flow for one builder invocation.

    plan mounts → compose command → run job (blocks on log stream) → remove
        → [scan requested] build scan job → run → remove

The scan job starts only after the primary job reached its Removed state.
If the primary job raises, the scan job is never attempted.
"""
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from builder.core.config import Settings, load_settings
from builder.core.constants import JOB_WORKDIR
from builder.core.errors import JobCancelled, ScriptFailed
from builder.executor.container_runtime import ContainerRuntime
from builder.executor.job_executor import JobExecutor, unique_name
from builder.executor.mount_planner import plan_mounts
from builder.executor.scan_job import ScanJobRunner, check_scan_settings
from builder.executor.script_composer import compose_script
from builder.models.job_config import JobConfig
from builder.models.job_spec import JobSpec, RunResult
from builder.utils.path_utils import resolve_cache_root

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    job: RunResult
    scan: Optional[RunResult] = None


def build_job_spec(config: JobConfig, project_path: str, cache_root: Path) -> JobSpec:
    """Plan mounts and compose the command for the primary test job."""
    mounts = plan_mounts(project_path, config.cache.paths, cache_root)
    command = compose_script(config.test.before_script, config.test.script)
    return JobSpec(
        image=config.test.image,
        command=command,
        name=unique_name(),
        working_directory=JOB_WORKDIR,
        mounts=tuple(mounts),
        environment=dict(config.test.variables),
    )


def _check_exit(result: RunResult, strict: bool) -> None:
    if result.exit_code not in (None, 0):
        if strict:
            raise ScriptFailed(result.name, result.exit_code)
        logger.warning(
            "Job %s script exited with status %s (not treated as failure)",
            result.name, result.exit_code,
        )


def run_pipeline(
    config: JobConfig,
    project_path: str,
    runtime: ContainerRuntime,
    *,
    scan: bool = False,
    project_key: Optional[str] = None,
    settings: Optional[Settings] = None,
    cache_root: Optional[Path] = None,
    executor: Optional[JobExecutor] = None,
    cancel: Optional[threading.Event] = None,
    strict: bool = False,
) -> PipelineResult:
    """
    Run the primary test job and, when requested, the scan job.

    Parameters
    ----------
    config : JobConfig
        Validated configuration.
    project_path : str
        Absolute host path of the project under test.
    runtime : ContainerRuntime
        Runtime handle shared by both lifecycles.
    scan : bool
        Run the SonarQube scan job after the primary job.
    project_key : str | None
        Scan project key override.
    strict : bool
        Raise ScriptFailed when a script exits non-zero instead of only
        logging it. The scan job still runs first if requested.

    Returns
    -------
    PipelineResult
    """
    settings = settings or load_settings()
    if scan:
        check_scan_settings(settings)
    if cache_root is None:
        cache_root = resolve_cache_root(settings.home)
    executor = executor or JobExecutor(runtime)

    spec = build_job_spec(config, project_path, cache_root)
    logger.info(
        "Job %s | image=%s | mounts=%d | steps=%d",
        spec.name, spec.image, len(spec.mounts),
        len(config.test.before_script) + len(config.test.script),
    )
    result = PipelineResult(job=executor.run(spec, cancel=cancel))

    if scan:
        if cancel is not None and cancel.is_set():
            raise JobCancelled(result.job.name)
        logger.info("Scanning Sonar")
        result.scan = ScanJobRunner(executor, settings).run(
            project_path, project_key=project_key, cancel=cancel,
        )
    else:
        logger.debug("Scan not requested; skipping scan job")

    _check_exit(result.job, strict)
    if result.scan is not None:
        _check_exit(result.scan, strict)
    return result

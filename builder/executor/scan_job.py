"""
Scan Job Builder
================
Builds the SonarQube scanner container spec for a project directory and
runs it through the same lifecycle as the primary job.

Project key:
    explicit override if given, else basename(project_path) + "-new"

Container environment:
    SONAR_HOST_URL      - from settings (environment / .env)
    SONAR_TOKEN         - from settings (environment / .env), never logged
    SONAR_SCANNER_OPTS  - "-Dsonar.projectKey=<key>" plus report/binary options

Mounts:
    project_path → /usr/src   (the scanner image's default source directory)
"""
import logging
import os
import threading
from typing import Optional

from builder.core.config import Settings
from builder.core.constants import (
    PROJECT_KEY_SUFFIX,
    SCAN_NAME_PREFIX,
    SCAN_WORKDIR,
    SCANNER_REPORT_OPTIONS,
)
from builder.core.errors import ConfigError
from builder.executor.job_executor import JobExecutor, unique_name
from builder.executor.mount_planner import project_mount
from builder.models.job_spec import RunResult, ScanJobSpec

logger = logging.getLogger(__name__)


def derive_project_key(project_path: str, override: Optional[str] = None) -> str:
    if override:
        return override
    base = os.path.basename(os.path.normpath(project_path))
    return base + PROJECT_KEY_SUFFIX


def build_scanner_options(project_key: str) -> str:
    return " ".join([f"-Dsonar.projectKey={project_key}", *SCANNER_REPORT_OPTIONS])


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<unset>"
    return value[:4] + "****" if len(value) > 8 else "****"


def check_scan_settings(settings: Settings) -> None:
    """Raise ConfigError unless the SonarQube host URL and token are configured."""
    missing = [
        name for name, value in (
            ("SONAR_HOST_URL", settings.sonar_host_url),
            ("SONAR_TOKEN", settings.sonar_token),
        ) if not value
    ]
    if missing:
        raise ConfigError(
            f"scan requested but {', '.join(missing)} not set; "
            "export it or add it to .env"
        )


def build_scan_job(
    project_path: str,
    settings: Settings,
    project_key: Optional[str] = None,
) -> ScanJobSpec:
    check_scan_settings(settings)
    key = derive_project_key(project_path, project_key)
    spec = ScanJobSpec(
        image=settings.sonar_scanner_image,
        command=None,
        name=unique_name(SCAN_NAME_PREFIX),
        mounts=(project_mount(project_path, SCAN_WORKDIR),),
        environment={
            "SONAR_HOST_URL": settings.sonar_host_url,
            "SONAR_TOKEN": settings.sonar_token,
            "SONAR_SCANNER_OPTS": build_scanner_options(key),
        },
        project_key=key,
    )
    logger.info(
        "Scan job %s | project_key=%s | host=%s | token=%s",
        spec.name, key, settings.sonar_host_url, mask_secret(settings.sonar_token),
    )
    return spec


class ScanJobRunner:
    """Runs the scan job through an existing JobExecutor."""

    def __init__(self, executor: JobExecutor, settings: Settings):
        self.executor = executor
        self.settings = settings

    def run(
        self,
        project_path: str,
        project_key: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RunResult:
        spec = build_scan_job(project_path, self.settings, project_key)
        return self.executor.run(spec, cancel=cancel)

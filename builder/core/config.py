"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    BUILDER_HOME         - Overrides the home directory used for the cache root
    BUILDER_LOG_DIR      - Directory for the daily log file (default: <home>/builder/logs)
    DOCKER_API_VERSION   - Docker Engine API version pinned by the client (default: 1.43)
    SONAR_HOST_URL       - SonarQube server the scan job reports to
    SONAR_TOKEN          - SonarQube authentication token for the scan job
    SONAR_SCANNER_IMAGE  - Scanner container image (default: sonarsource/sonar-scanner-cli)

Credentials:
    SONAR_HOST_URL and SONAR_TOKEN are only required when a scan is requested.
    They are never given defaults here; a missing value is reported by the
    scan job builder before any container is created.
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

BUILDER_HOME = os.getenv("BUILDER_HOME")
BUILDER_LOG_DIR = os.getenv("BUILDER_LOG_DIR")
DOCKER_API_VERSION = os.getenv("DOCKER_API_VERSION", "1.43")
SONAR_HOST_URL = os.getenv("SONAR_HOST_URL")
SONAR_TOKEN = os.getenv("SONAR_TOKEN")
SONAR_SCANNER_IMAGE = os.getenv("SONAR_SCANNER_IMAGE", "sonarsource/sonar-scanner-cli")


@dataclass(frozen=True)
class Settings:
    """
    Snapshot of the environment-driven settings for one invocation.

    Passed explicitly into the orchestrator and scan job builder so tests
    can substitute values without touching the process environment.
    """
    home: Optional[str] = None
    log_dir: Optional[str] = None
    docker_api_version: str = "1.43"
    sonar_host_url: Optional[str] = None
    sonar_token: Optional[str] = None
    sonar_scanner_image: str = "sonarsource/sonar-scanner-cli"


def load_settings() -> Settings:
    """Build a Settings snapshot from the module-level environment values."""
    return Settings(
        home=BUILDER_HOME,
        log_dir=BUILDER_LOG_DIR,
        docker_api_version=DOCKER_API_VERSION,
        sonar_host_url=SONAR_HOST_URL,
        sonar_token=SONAR_TOKEN,
        sonar_scanner_image=SONAR_SCANNER_IMAGE,
    )

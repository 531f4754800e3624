"""
Constants
Centralised storage for container paths, naming rules and scanner options.
"""
VERSION = "0.1.0"

# In-container working directories
JOB_WORKDIR = "/app"
SCAN_WORKDIR = "/usr/src"

# Host-side layout under the home directory
BUILDER_DIR_NAME = "builder"
CACHE_DIR_NAME = "cache"
LOG_DIR_NAME = "logs"

SHELL = "/bin/sh"
SCRIPT_SEPARATOR = " && "

# Container naming
JOB_NAME_PREFIX = "builder-"
SCAN_NAME_PREFIX = "sonarscan-"
NAME_SUFFIX_LENGTH = 10

# Scan job
PROJECT_KEY_SUFFIX = "-new"
SCANNER_REPORT_OPTIONS = [
    "-Dsonar.javascript.lcov.reportPaths=coverage/lcov.info",
    "-Dsonar.typescript.tsconfigPaths=tsconfig.sonar.json",
    "-Dsonar.java.binaries=**/*",
]

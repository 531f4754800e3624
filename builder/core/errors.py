"""
Errors
======
Structured error taxonomy for a builder run.

    BuilderError
    ├── ConfigError            - unreadable/malformed config, schema violation,
    │                            missing scan credentials
    ├── CacheDirectoryError    - home, cache root or cache subdirectory creation
    ├── RuntimeOperationError  - container create/pull/start/logs/wait failure
    ├── JobCancelled           - streaming stopped by a cancellation request
    └── ScriptFailed           - non-zero script exit (strict mode only)

Container removal failures are deliberately absent: they are logged by the
executor and never raised.
"""
from typing import Optional


class BuilderError(Exception):
    """Base class for every fatal error surfaced by a run."""


class ConfigError(BuilderError):
    pass


class CacheDirectoryError(BuilderError):

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"unable to create directory {path}: {reason}")


class RuntimeOperationError(BuilderError):
    """A container-runtime call failed; `operation` names the lifecycle step."""

    def __init__(self, operation: str, message: str, container: Optional[str] = None):
        self.operation = operation
        self.message = message
        self.container = container
        super().__init__(f"{operation} failed: {message}")


class JobCancelled(BuilderError):

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"job {name} cancelled")


class ScriptFailed(BuilderError):

    def __init__(self, name: str, exit_code: int):
        self.name = name
        self.exit_code = exit_code
        super().__init__(f"job {name} script exited with status {exit_code}")

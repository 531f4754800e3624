"""
Job Spec Models
===============
Immutable descriptions of one container lifecycle, built fresh per
invocation and consumed by exactly one JobExecutor.run() call.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class MountSpec:
    """A host-directory-to-container-path bind mount."""
    source: str
    target: str
    type: str = "bind"


@dataclass(frozen=True)
class JobSpec:
    """
    Everything the container runtime needs to create one job container.

    Fields
    ------
    image : str
        Container image reference.
    command : str
        Single shell line passed to ``/bin/sh -c``. May be empty.
    working_directory : str | None
        In-container working directory; None leaves the image default.
    mounts : tuple[MountSpec, ...]
        Bind mounts in attach order.
    environment : dict[str, str]
        Container environment variables.
    name : str
        Unique container name for this run.
    """
    image: str
    command: Optional[str]
    name: str
    working_directory: Optional[str] = None
    mounts: tuple[MountSpec, ...] = ()
    environment: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ScanJobSpec(JobSpec):
    """A JobSpec for the static-analysis container, carrying its project key."""
    project_key: str = ""


@dataclass
class RunResult:
    """
    Outcome of one container lifecycle.

    ``exit_code`` is informational: it is read back after the log stream
    closes but does not decide success unless the caller opts in.
    """
    name: str
    container_id: Optional[str] = None
    exit_code: Optional[int] = None
    removed: bool = False

"""
Container Runtime
=================
The fixed operation set the Job Execution Engine drives, and its Docker
implementation.

    create(spec)            -> container_id
    pull_image(image)       -> None        (blocks until the pull completes)
    start(container_id)     -> None
    logs(container_id)      -> iterator of (stdout_bytes | None, stderr_bytes | None)
    wait(container_id)      -> exit status | None
    remove(container_id)    -> None        (force)

The client is constructed once per process by the caller and passed in,
so tests can substitute an in-memory runtime.
"""
import logging
from typing import Iterator, Optional, Protocol

import docker
from docker.errors import DockerException, ImageNotFound
from docker.types import Mount

from builder.core.errors import RuntimeOperationError
from builder.executor.script_composer import build_shell_command
from builder.models.job_spec import JobSpec

logger = logging.getLogger(__name__)

LogChunk = tuple[Optional[bytes], Optional[bytes]]


class ContainerRuntime(Protocol):

    def create(self, spec: JobSpec) -> str: ...

    def pull_image(self, image: str) -> None: ...

    def start(self, container_id: str) -> None: ...

    def logs(self, container_id: str) -> Iterator[LogChunk]: ...

    def wait(self, container_id: str) -> Optional[int]: ...

    def remove(self, container_id: str, force: bool = True) -> None: ...


def _to_mount(spec_mount) -> Mount:
    return Mount(target=spec_mount.target, source=spec_mount.source, type=spec_mount.type)


class DockerRuntime:
    """ContainerRuntime backed by the Docker Engine API via the docker SDK."""

    def __init__(self, client: "docker.DockerClient"):
        self.client = client
        self._containers: dict = {}

    @classmethod
    def from_env(cls, api_version: str = "1.43") -> "DockerRuntime":
        try:
            client = docker.from_env(version=api_version)
        except DockerException as e:
            raise RuntimeOperationError("connect", f"Docker daemon unavailable: {e}") from e
        return cls(client)

    def _container(self, container_id: str):
        container = self._containers.get(container_id)
        if container is None:
            container = self.client.containers.get(container_id)
            self._containers[container_id] = container
        return container

    def _create(self, spec: JobSpec):
        kwargs = dict(
            image=spec.image,
            name=spec.name,
            environment=dict(spec.environment) or None,
            mounts=[_to_mount(m) for m in spec.mounts],
            tty=False,
        )
        if spec.command is not None:
            kwargs["command"] = build_shell_command(spec.command)
        if spec.working_directory:
            kwargs["working_dir"] = spec.working_directory
        return self.client.containers.create(**kwargs)

    def create(self, spec: JobSpec) -> str:
        try:
            try:
                container = self._create(spec)
            except ImageNotFound:
                # Cold image: fetch it the way `docker run` does before creating.
                logger.info("Image %s not present locally, pulling before create", spec.image)
                self.pull_image(spec.image)
                container = self._create(spec)
        except DockerException as e:
            raise RuntimeOperationError("create", str(e)) from e
        self._containers[container.id] = container
        return container.id

    def pull_image(self, image: str) -> None:
        try:
            self.client.images.pull(image)
        except DockerException as e:
            raise RuntimeOperationError("pull", str(e)) from e

    def start(self, container_id: str) -> None:
        try:
            self._container(container_id).start()
        except DockerException as e:
            raise RuntimeOperationError("start", str(e), container_id) from e

    def logs(self, container_id: str) -> Iterator[LogChunk]:
        try:
            stream = self._container(container_id).attach(
                stdout=True, stderr=True, stream=True, logs=True, demux=True,
            )
            yield from stream
        except (DockerException, OSError) as e:
            raise RuntimeOperationError("logs", str(e), container_id) from e

    def wait(self, container_id: str) -> Optional[int]:
        try:
            result = self._container(container_id).wait()
        except DockerException as e:
            raise RuntimeOperationError("wait", str(e), container_id) from e
        return result.get("StatusCode")

    def remove(self, container_id: str, force: bool = True) -> None:
        try:
            self._container(container_id).remove(force=force)
        finally:
            self._containers.pop(container_id, None)

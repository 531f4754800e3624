"""
Job Execution Engine
====================
Drives exactly one ephemeral container through a fixed lifecycle and
streams its output live.

Lifecycle (strictly sequential, no back-edges):
    1. Composed     - JobSpec built by the caller
    2. Created      - runtime.create(spec)
    3. ImagePulled  - runtime.pull_image(image), drained to completion
    4. Started      - runtime.start(id)
    5. Streaming    - runtime.logs(id) copied to the stdout/stderr sinks until
                      the runtime closes the stream; runtime.wait(id) then
                      reads the exit status for reporting
    6. Removed      - runtime.remove(id, force=True)

REMOVAL CONTRACT:
    Once step 2 succeeds, step 6 is attempted exactly once on every exit
    path: success, any runtime failure, cancellation or KeyboardInterrupt.
    A removal failure is logged and never raised.

EXIT STATUS:
    The script's exit status is recorded on the RunResult but never decides
    whether the run succeeded. Only runtime-call failures do.
"""
import logging
import random
import string
import sys
import threading
from typing import BinaryIO, Optional

from builder.core.constants import JOB_NAME_PREFIX, NAME_SUFFIX_LENGTH
from builder.core.errors import JobCancelled
from builder.executor.container_runtime import ContainerRuntime
from builder.models.job_spec import JobSpec, RunResult

logger = logging.getLogger(__name__)

_NAME_ALPHABET = string.ascii_lowercase + string.digits


def unique_name(prefix: str = JOB_NAME_PREFIX, length: int = NAME_SUFFIX_LENGTH) -> str:
    """Random container name so concurrent unrelated runs never collide."""
    return prefix + "".join(random.choices(_NAME_ALPHABET, k=length))


class JobExecutor:
    """
    Runs JobSpecs against a ContainerRuntime.

    Parameters
    ----------
    runtime : ContainerRuntime
        Process-wide runtime handle, used for one lifecycle at a time.
    stdout, stderr : BinaryIO | None
        Sinks for the demultiplexed output streams. Default to the process
        stdout/stderr byte streams, resolved at run time.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[BinaryIO] = None,
    ):
        self.runtime = runtime
        self.stdout = stdout
        self.stderr = stderr
        # True only while output is being copied; interrupts are safe to raise then.
        self.streaming = False

    def _sinks(self) -> tuple[BinaryIO, BinaryIO]:
        out = self.stdout if self.stdout is not None else sys.stdout.buffer
        err = self.stderr if self.stderr is not None else sys.stderr.buffer
        return out, err

    def run(self, spec: JobSpec, cancel: Optional[threading.Event] = None) -> RunResult:
        result = RunResult(name=spec.name)

        logger.info("Starting job %s with image %s", spec.name, spec.image)
        container_id = self.runtime.create(spec)
        result.container_id = container_id
        logger.debug("Container %s created for job %s", container_id, spec.name)

        try:
            self.runtime.pull_image(spec.image)
            self.runtime.start(container_id)
            self._stream(spec.name, container_id, cancel)
            result.exit_code = self.runtime.wait(container_id)
            logger.info("Job %s finished | exit=%s", spec.name, result.exit_code)
        finally:
            result.removed = self._remove(container_id)

        return result

    def _stream(self, name: str, container_id: str, cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise JobCancelled(name)
        out, err = self._sinks()
        stream = self.runtime.logs(container_id)
        self.streaming = True
        try:
            for stdout_chunk, stderr_chunk in stream:
                if cancel is not None and cancel.is_set():
                    raise JobCancelled(name)
                if stdout_chunk:
                    out.write(stdout_chunk)
                    out.flush()
                if stderr_chunk:
                    err.write(stderr_chunk)
                    err.flush()
            if cancel is not None and cancel.is_set():
                raise JobCancelled(name)
        finally:
            self.streaming = False
            close = getattr(stream, "close", None)
            if close is not None:
                close()

    def _remove(self, container_id: str) -> bool:
        try:
            self.runtime.remove(container_id, force=True)
        except Exception:
            logger.warning("Failed to remove container %s", container_id, exc_info=True)
            return False
        logger.info("Container %s removed", container_id)
        return True

"""
Shared fixtures - in-memory container runtime.

FakeRuntime records every call in order and can be told to fail at any
lifecycle operation, so the executor's ordering and teardown contracts can
be checked without a Docker daemon.
"""
import pytest

from builder.core.config import Settings
from builder.core.errors import RuntimeOperationError


class FakeRuntime:

    def __init__(self, output=None, exit_code=0, fail_at=None, fail_remove=False):
        self.calls: list[tuple[str, object]] = []
        self.specs = []
        self.output = output if output is not None else []
        self.exit_code = exit_code
        self.fail_at = fail_at
        self.fail_remove = fail_remove
        self._counter = 0

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    @property
    def operations(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _maybe_fail(self, op: str) -> None:
        if self.fail_at == op:
            raise RuntimeOperationError(op, f"injected {op} failure")

    def create(self, spec):
        self.calls.append(("create", spec.name))
        self._maybe_fail("create")
        self.specs.append(spec)
        self._counter += 1
        return f"cid-{self._counter}"

    def pull_image(self, image):
        self.calls.append(("pull_image", image))
        self._maybe_fail("pull_image")

    def start(self, container_id):
        self.calls.append(("start", container_id))
        self._maybe_fail("start")

    def logs(self, container_id):
        self.calls.append(("logs", container_id))
        self._maybe_fail("logs")
        return iter(list(self.output))

    def wait(self, container_id):
        self.calls.append(("wait", container_id))
        self._maybe_fail("wait")
        return self.exit_code

    def remove(self, container_id, force=True):
        self.calls.append(("remove", container_id))
        if self.fail_remove:
            raise RuntimeError("injected remove failure")


@pytest.fixture
def fake_runtime():
    return FakeRuntime(output=[(b"hi\n", None)])


@pytest.fixture
def scan_settings():
    return Settings(
        sonar_host_url="https://sonar.example.test",
        sonar_token="squ_test_token_123456",
    )

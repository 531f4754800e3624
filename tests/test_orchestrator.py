"""
Unit Tests - Orchestrator
=========================
End-to-end entry flow against the FakeRuntime: job spec construction,
scan sequencing and failure propagation between the two lifecycles.
"""
import io
import threading

import pytest

from builder.core.config import Settings
from builder.core.errors import ConfigError, JobCancelled, RuntimeOperationError, ScriptFailed
from builder.executor.job_executor import JobExecutor
from builder.models.job_config import JobConfig
from builder.models.job_spec import MountSpec
from builder.services.orchestrator import build_job_spec, run_pipeline

from conftest import FakeRuntime


def _config(**test):
    data = {"image": "alpine", "before_script": [], "script": ["echo hi"]}
    data.update(test)
    return JobConfig.model_validate({"cache": {"paths": []}, "test": data})


def _run(runtime, config=None, **kwargs):
    out = io.BytesIO()
    executor = JobExecutor(runtime, stdout=out, stderr=io.BytesIO())
    kwargs.setdefault("settings", Settings())
    result = run_pipeline(
        config or _config(), "/tmp/proj", runtime, executor=executor, **kwargs,
    )
    return result, out


class TestBuildJobSpec:

    def test_minimal_spec(self, tmp_path):
        spec = build_job_spec(_config(), "/tmp/proj", tmp_path)
        assert spec.image == "alpine"
        assert spec.command == "echo hi"
        assert spec.working_directory == "/app"
        assert spec.mounts == (MountSpec(source="/tmp/proj", target="/app"),)
        assert spec.environment == {}
        assert spec.name.startswith("builder-")

    def test_cache_mounts_and_variables(self, tmp_path):
        config = JobConfig.model_validate({
            "cache": {"paths": ["/root/.npm"]},
            "test": {
                "image": "node:20-slim",
                "before_script": ["npm ci"],
                "script": ["npm test"],
                "variables": {"CI": "true"},
            },
        })
        spec = build_job_spec(config, "/tmp/proj", tmp_path)
        assert spec.command == "npm ci && npm test"
        assert [m.target for m in spec.mounts] == ["/app", "/root/.npm"]
        assert spec.environment == {"CI": "true"}

    def test_fresh_name_per_spec(self, tmp_path):
        a = build_job_spec(_config(), "/tmp/proj", tmp_path)
        b = build_job_spec(_config(), "/tmp/proj", tmp_path)
        assert a.name != b.name


class TestRunPipeline:

    def test_end_to_end_output(self, fake_runtime, tmp_path):
        result, out = _run(fake_runtime, cache_root=tmp_path)
        assert b"hi" in out.getvalue().splitlines()
        assert result.job.removed is True
        spec = fake_runtime.specs[0]
        assert spec.image == "alpine"
        assert spec.command == "echo hi"
        assert spec.mounts == (MountSpec(source="/tmp/proj", target="/app"),)

    def test_scan_disabled_single_lifecycle(self, fake_runtime, tmp_path):
        result, _ = _run(fake_runtime, cache_root=tmp_path, scan=False)
        assert result.scan is None
        assert fake_runtime.count("create") == 1
        assert fake_runtime.count("remove") == 1

    def test_scan_runs_after_job_removed(self, scan_settings, tmp_path):
        runtime = FakeRuntime(output=[(b"hi\n", None)])
        result, _ = _run(
            runtime, cache_root=tmp_path, scan=True, settings=scan_settings,
        )

        ops = runtime.operations
        assert ops.count("create") == 2
        first_remove = ops.index("remove")
        second_create = ops.index("create", 1)
        assert first_remove < second_create
        assert result.scan is not None
        assert runtime.specs[1].project_key == "proj-new"

    def test_scan_project_key_override(self, scan_settings, tmp_path):
        runtime = FakeRuntime()
        _run(runtime, cache_root=tmp_path, scan=True, settings=scan_settings,
             project_key="foo")
        assert runtime.specs[1].project_key == "foo"

    def test_scan_runs_even_if_script_failed(self, scan_settings, tmp_path):
        runtime = FakeRuntime(exit_code=1)
        result, _ = _run(runtime, cache_root=tmp_path, scan=True, settings=scan_settings)
        assert result.job.exit_code == 1
        assert result.scan is not None

    def test_primary_failure_skips_scan(self, scan_settings, tmp_path):
        runtime = FakeRuntime(fail_at="start")
        with pytest.raises(RuntimeOperationError):
            _run(runtime, cache_root=tmp_path, scan=True, settings=scan_settings)
        assert runtime.count("create") == 1
        assert runtime.count("remove") == 1

    def test_cancel_after_job_skips_scan(self, scan_settings, tmp_path):
        cancel = threading.Event()
        runtime = FakeRuntime()
        real_wait = runtime.wait

        def wait_then_cancel(cid):
            cancel.set()
            return real_wait(cid)

        runtime.wait = wait_then_cancel
        with pytest.raises(JobCancelled):
            _run(runtime, cache_root=tmp_path, scan=True, settings=scan_settings,
                 cancel=cancel)
        assert runtime.count("create") == 1
        assert runtime.count("remove") == 1

    def test_missing_scan_credentials_fail_before_any_container(self, tmp_path):
        runtime = FakeRuntime()
        with pytest.raises(ConfigError):
            _run(runtime, cache_root=tmp_path, scan=True, settings=Settings())
        assert runtime.calls == []

    def test_strict_raises_on_nonzero_exit(self, tmp_path):
        runtime = FakeRuntime(exit_code=2)
        with pytest.raises(ScriptFailed) as exc:
            _run(runtime, cache_root=tmp_path, strict=True)
        assert exc.value.exit_code == 2
        assert runtime.count("remove") == 1

    def test_non_strict_ignores_exit_status(self, tmp_path):
        runtime = FakeRuntime(exit_code=2)
        result, _ = _run(runtime, cache_root=tmp_path)
        assert result.job.exit_code == 2

    def test_cache_root_resolved_from_settings_home(self, fake_runtime, tmp_path):
        config = JobConfig.model_validate({
            "cache": {"paths": ["/root/.npm"]},
            "test": {"image": "alpine", "script": ["true"]},
        })
        _run(fake_runtime, config=config, settings=Settings(home=str(tmp_path)))
        assert (tmp_path / "builder" / "cache" / "root" / ".npm").is_dir()

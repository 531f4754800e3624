# cli.py
from __future__ import annotations

import logging
import signal
import sys
import threading

import click

from builder.core.config import load_settings
from builder.core.constants import VERSION
from builder.core.errors import BuilderError, JobCancelled
from builder.executor.container_runtime import DockerRuntime
from builder.executor.job_executor import JobExecutor
from builder.parser.config_reader import load_config
from builder.services.orchestrator import run_pipeline
from builder.utils.logging_config import setup_logging
from builder.utils.path_utils import resolve_log_dir, resolve_project_path

logger = logging.getLogger("builder.cli")


BANNER = r"""
 ____  _   _ ___ _     ____  _____ ____
| __ )| | | |_ _| |   |  _ \| ____|  _ \
|  _ \| | | || || |   | | | |  _| | |_) |
| |_) | |_| || || |___| |_| | |___|  _ <
|____/ \___/|___|_____|____/|_____|_| \_\
"""
RULE = "-" * 46


def print_banner(config: str, project_path: str, send_sonar: bool) -> None:
    click.echo(BANNER)
    click.echo("Lightweight Testing Delivery Tools\n")
    click.echo(RULE)
    click.echo("Usage: builder <config.yml> <path>")
    click.echo(f"Config File:  {config}")
    click.echo(f"Project Path:  {project_path}")
    click.echo(f"Sonar Scan:  {send_sonar}")
    click.echo(RULE)


def _install_signal_handlers(cancel: threading.Event, executor: JobExecutor):
    """
    Route SIGTERM through the same cleanup path as Ctrl-C.

    The interrupt is only raised while container output is streaming; at any
    other point the cancel event alone stops the run at its next check, so an
    in-progress container removal is never cut short.
    """
    def _terminate(signum, frame):
        cancel.set()
        if executor.streaming:
            raise KeyboardInterrupt

    return signal.signal(signal.SIGTERM, _terminate)


@click.command()
@click.version_option(VERSION, prog_name="builder")
@click.argument("config")
@click.argument("path", required=False, default=None)
@click.option("-p", "--project_path", "project_path", default=None,
              help="Project path (overrides PATH; defaults to the current directory)")
@click.option("-k", "--project_key", "project_key", default=None,
              help="Project key for the Sonar scan (defaults to <dirname>-new)")
@click.option("-s", "--send_sonar", "send_sonar", is_flag=True, default=False,
              help="Run a Sonar scan of the project after the test job")
@click.option("--strict", is_flag=True, default=False,
              help="Fail when the job script exits with a non-zero status")
@click.option("--debug", is_flag=True, default=False,
              help="Enable debug logging and show stack traces")
def cli(config, path, project_path, project_key, send_sonar, strict, debug):
    """Run the test job described in CONFIG against the project at PATH."""
    settings = load_settings()
    try:
        log_dir = str(resolve_log_dir(settings.log_dir, settings.home))
    except BuilderError:
        log_dir = None
    setup_logging(logging.DEBUG if debug else logging.INFO, log_dir=log_dir)

    project = resolve_project_path(project_path or path)
    print_banner(config, project, send_sonar)

    cancel = threading.Event()
    executor = None
    previous_handler = None

    try:
        job_config = load_config(config)
        runtime = DockerRuntime.from_env(settings.docker_api_version)
        executor = JobExecutor(runtime)
        previous_handler = _install_signal_handlers(cancel, executor)
        result = run_pipeline(
            job_config,
            project,
            runtime,
            scan=send_sonar,
            project_key=project_key,
            settings=settings,
            executor=executor,
            cancel=cancel,
            strict=strict,
        )
    except (KeyboardInterrupt, JobCancelled):
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except BuilderError as e:
        logger.error("%s", e, exc_info=debug)
        sys.exit(1)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)

    if cancel.is_set():
        click.echo("\nInterrupted", err=True)
        sys.exit(130)

    logger.info("Job %s complete (exit=%s)", result.job.name, result.job.exit_code)
    if result.scan is not None:
        logger.info("Scan %s complete (exit=%s)", result.scan.name, result.scan.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

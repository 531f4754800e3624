"""
Config Reader
=============
Reads a builder YAML configuration file and validates it into a JobConfig.

Failure modes (all raised as ConfigError):
    - file missing or unreadable
    - malformed YAML
    - top-level document is not a mapping
    - schema violation (empty image, relative cache path, wrong types)
"""
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from builder.core.errors import ConfigError
from builder.models.job_config import JobConfig

logger = logging.getLogger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


def parse_config(text: str, source: str = "<string>") -> JobConfig:
    """Parse YAML text into a validated JobConfig."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"unable to unmarshal {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"unable to unmarshal {source}: top-level document must be a mapping")

    try:
        return JobConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config {source}: {_format_validation_error(e)}") from e


def load_config(path: str) -> JobConfig:
    """
    Read and validate the configuration file at ``path``.

    Returns
    -------
    JobConfig
        Immutable configuration for this invocation.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"unable to read file: {e}") from e

    config = parse_config(text, source=str(config_path))
    logger.debug(
        "Loaded config %s | image=%s | cache_paths=%d | steps=%d",
        config_path, config.test.image, len(config.cache.paths),
        len(config.test.before_script) + len(config.test.script),
    )
    return config

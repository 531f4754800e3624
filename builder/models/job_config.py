"""
Job Config Model
================
Pydantic model for the declarative test-job configuration file.

    cache:
      paths:
        - /root/.npm
    test:
      image: node:20-slim
      before_script:
        - npm ci --legacy-peer-deps
      script:
        - npm run test

Fields:
    cache.paths         - absolute in-container paths persisted across runs
    test.image          - container image reference (required, non-empty)
    test.before_script  - shell steps run first
    test.script         - shell steps run second
    test.variables      - environment passed to the job container
"""
import posixpath

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_str_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (int, float, bool)):
        return [str(value)]
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"expected a string or a list of strings, got {type(value).__name__}")
    return [str(v) if isinstance(v, (int, float, bool)) else v for v in value]


class CacheSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    paths: list[str] = Field(default_factory=list)

    @field_validator("paths", mode="before")
    @classmethod
    def _coerce_paths(cls, value):
        return _as_str_list(value)

    @field_validator("paths")
    @classmethod
    def _require_absolute(cls, value: list[str]) -> list[str]:
        for path in value:
            if not path.startswith("/"):
                raise ValueError(
                    f"cache path {path!r} must be an absolute container path (e.g. /root/.npm)"
                )
            if not path.strip("/"):
                raise ValueError("cache path must name a directory below /")
            if ".." in path.split("/") or posixpath.normpath(path) != path.rstrip("/"):
                raise ValueError(
                    f"cache path {path!r} must be normalised (no '..', '.' or repeated slashes)"
                )
        return value


class ScriptSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    image: str
    before_script: list[str] = Field(default_factory=list)
    script: list[str] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)

    @field_validator("image")
    @classmethod
    def _require_image(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("image must not be empty")
        return value.strip()

    @field_validator("before_script", "script", mode="before")
    @classmethod
    def _coerce_steps(cls, value):
        return _as_str_list(value)

    @field_validator("variables", mode="before")
    @classmethod
    def _coerce_variables(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value


class JobConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    cache: CacheSection = Field(default_factory=CacheSection)
    test: ScriptSection

    @field_validator("cache", mode="before")
    @classmethod
    def _empty_cache(cls, value):
        return {} if value is None else value

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import PipelineConfigError

log = logging.getLogger(__name__)

MAX_DEPTH_ENV = "USDPIPELINE_MAX_FORWARDING_DEPTH"
PIPELINE_CONFIG_ENV = "USDPIPELINE_PIPELINE_CONFIG"

_DEFAULT_MAX_FORWARDING_DEPTH = 128


def _parse_positive_int(raw: str, *, name: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise PipelineConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise PipelineConfigError(f"{name} must be >0, got {value}")
    return value


def _split_paths(raw: Optional[str]) -> Tuple[Path, ...]:
    if not raw:
        return ()
    return tuple(Path(part) for part in raw.split(os.pathsep) if part.strip())


@dataclass(frozen=True)
class PipelineDefaults:
    max_forwarding_depth: int = _DEFAULT_MAX_FORWARDING_DEPTH
    pipeline_config_paths: Tuple[Path, ...] = field(default_factory=tuple)

    def resolve_max_depth(self, override: Optional[int] = None) -> int:
        if override is None:
            return self.max_forwarding_depth
        if override <= 0:
            raise PipelineConfigError(f"max_depth must be >0, got {override}")
        return override


def load_defaults(environ: Optional[Mapping[str, str]] = None) -> PipelineDefaults:
    """Build :class:`PipelineDefaults` from ``environ`` (``os.environ`` by default)."""

    env = os.environ if environ is None else environ
    raw_depth = env.get(MAX_DEPTH_ENV)
    max_depth = (
        _parse_positive_int(raw_depth, name=MAX_DEPTH_ENV)
        if raw_depth and raw_depth.strip()
        else _DEFAULT_MAX_FORWARDING_DEPTH
    )
    return PipelineDefaults(
        max_forwarding_depth=max_depth,
        pipeline_config_paths=_split_paths(env.get(PIPELINE_CONFIG_ENV)),
    )


PIPELINE_DEFAULTS = load_defaults()


def load_pipeline_document(path: Path) -> Dict[str, Any]:
    """Load a JSON or YAML pipeline document holding a top-level mapping."""

    log.debug("Loading pipeline document %s", path)
    text = path.read_text(encoding="utf-8")
    return parse_pipeline_document(text, suffix=path.suffix)


def parse_pipeline_document(text: str, *, suffix: str) -> Dict[str, Any]:
    ext = (suffix or "").lower()
    if ext in {".yaml", ".yml"}:
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise PipelineConfigError(f"Invalid YAML pipeline document: {exc}") from exc
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise PipelineConfigError("YAML pipeline document must define a mapping at the top level")
        return loaded
    if ext == ".json":
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PipelineConfigError(f"Invalid JSON pipeline document: {exc}") from exc
        if not isinstance(loaded, dict):
            raise PipelineConfigError("JSON pipeline document must define a mapping at the top level")
        return loaded
    raise PipelineConfigError(f"Unsupported pipeline document type: {suffix}")


__all__ = [
    "MAX_DEPTH_ENV",
    "PIPELINE_CONFIG_ENV",
    "PIPELINE_DEFAULTS",
    "PipelineDefaults",
    "load_defaults",
    "load_pipeline_document",
    "parse_pipeline_document",
]

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .forwarding import ForwardingTrace, trace_forwarding, uninstance_prim_at_path
from .pxr_utils import PathLike, Sdf, open_stage, to_sdf_path


@dataclass(slots=True)
class ResolveSettings:
    """Inputs for a forwarded lookup against a stage on disk."""

    stage_path: PathLike
    prim_path: str
    max_depth: Optional[int] = None


@dataclass(slots=True)
class UninstanceSettings:
    """Inputs for an uninstance pass against a stage on disk."""

    stage_path: PathLike
    prim_path: str
    output_path: Optional[PathLike] = None
    max_depth: Optional[int] = None
    logger: Optional[logging.Logger] = None


@dataclass
class UninstanceResult:
    stage_path: str
    prim_path: Sdf.Path
    found: bool
    uninstanced: List[Sdf.Path] = field(default_factory=list)
    saved_to: Optional[str] = None


def resolve(settings: ResolveSettings) -> ForwardingTrace:
    """Open ``settings.stage_path`` and follow ``settings.prim_path`` through instancing."""

    stage = open_stage(settings.stage_path)
    return trace_forwarding(stage, settings.prim_path, max_depth=settings.max_depth)


def uninstance(settings: UninstanceSettings) -> UninstanceResult:
    """Uninstance ``settings.prim_path`` and persist the edit.

    The root layer is saved in place unless ``output_path`` is given, in which
    case it is exported there and the source file is left alone. Nothing is
    written when no instanceable flag had to change.
    """

    log = settings.logger or logging.getLogger(__name__)
    stage = open_stage(settings.stage_path)
    prim_path = to_sdf_path(settings.prim_path)
    uninstanced: List[Sdf.Path] = []

    prim = uninstance_prim_at_path(
        stage,
        prim_path,
        max_depth=settings.max_depth,
        on_uninstance=uninstanced.append,
    )
    result = UninstanceResult(
        stage_path=str(settings.stage_path),
        prim_path=prim_path,
        found=prim is not None,
        uninstanced=uninstanced,
    )
    if not uninstanced:
        log.debug("No instancing changes needed for %s", prim_path)
        return result

    root_layer = stage.GetRootLayer()
    if settings.output_path is not None:
        target = Path(settings.output_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if not root_layer.Export(target.as_posix()):
            raise RuntimeError(f"Failed to export root layer to {target}")
        result.saved_to = target.as_posix()
    else:
        if not root_layer.Save():
            raise RuntimeError(f"Failed to save root layer {root_layer.identifier}")
        result.saved_to = root_layer.realPath
    log.info(
        "Uninstanced %d prim(s) for %s; wrote %s",
        len(uninstanced),
        prim_path,
        result.saved_to,
    )
    return result


__all__ = [
    "ResolveSettings",
    "UninstanceSettings",
    "UninstanceResult",
    "resolve",
    "uninstance",
]

"""Resolve prim paths through USD instancing and break instancing on demand.

A path beneath an instanceable prim has no prim of its own on the stage; its
content lives in the instance's shared prototype. The helpers here map such a
path to the equivalent prim inside the prototype (following nested instances
as far as they go) and, when a caller needs to edit the location itself,
disable instancing on the minimal chain of ancestors so the prim becomes
addressable directly.

Both operations take the stage as an argument and never keep a reference to
it. Uninstancing mutates authored state, so callers must give it exclusive
access to the stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple

from .config import PIPELINE_DEFAULTS
from .errors import ForwardingDepthError, InstancingConsistencyError
from .pxr_utils import Sdf, to_sdf_path

LOG = logging.getLogger(__name__)


class SceneNode(Protocol):
    def __bool__(self) -> bool: ...

    def GetPath(self) -> Sdf.Path: ...

    def IsInstance(self) -> bool: ...

    def IsInstanceProxy(self) -> bool: ...

    def GetPrototype(self) -> "SceneNode": ...

    def SetInstanceable(self, instanceable: bool) -> bool: ...


class SceneGraph(Protocol):
    def GetPrimAtPath(self, path: Sdf.Path) -> SceneNode: ...


@dataclass
class ForwardingTrace:
    """Record of a forwarded lookup: every candidate path visited, in order."""

    requested: Sdf.Path
    hops: List[Sdf.Path] = field(default_factory=list)
    prim: Optional[SceneNode] = None

    @property
    def found(self) -> bool:
        return self.prim is not None

    @property
    def resolved_path(self) -> Optional[Sdf.Path]:
        return self.hops[-1] if self.prim is not None else None


def get_direct_prim(stage: SceneGraph, path) -> Optional[SceneNode]:
    """Return the prim authored at ``path`` without following instancing.

    Instance proxies are views into a prototype, so they count as absent.
    """

    prim = stage.GetPrimAtPath(to_sdf_path(path))
    if not prim or prim.IsInstanceProxy():
        return None
    return prim


def find_valid_ancestor(stage: SceneGraph, path) -> Tuple[Sdf.Path, Optional[SceneNode]]:
    """Walk up from ``path`` to the nearest ancestor with a direct prim.

    Returns the ancestor path together with its prim, or the path where the
    walk stopped (absolute root or empty path) and ``None``.
    """

    ancestor_path = to_sdf_path(path)
    ancestor: Optional[SceneNode] = None
    while ancestor is None:
        if ancestor_path == Sdf.Path.absoluteRootPath or ancestor_path == Sdf.Path.emptyPath:
            break
        ancestor_path = ancestor_path.GetParentPath()
        ancestor = get_direct_prim(stage, ancestor_path)
    return ancestor_path, ancestor


def _prototype_path(anchor: SceneNode, anchor_path: Sdf.Path) -> Sdf.Path:
    prototype = anchor.GetPrototype()
    if not prototype:
        raise InstancingConsistencyError(
            f"Instance prim {anchor_path} has no prototype", path=anchor_path
        )
    return prototype.GetPath()


def trace_forwarding(stage: SceneGraph, path, *, max_depth: Optional[int] = None) -> ForwardingTrace:
    """Follow ``path`` through instances into prototypes, recording each hop.

    The first hop is ``path`` itself. Each further hop is the equivalent path
    inside the prototype of the nearest instanced ancestor of the previous
    hop. The trace ends at the first hop with a direct prim, or when no
    instanced ancestor exists (``prim`` stays ``None``).
    """

    limit = PIPELINE_DEFAULTS.resolve_max_depth(max_depth)
    requested = to_sdf_path(path)
    trace = ForwardingTrace(requested=requested)
    candidate = requested

    while True:
        trace.hops.append(candidate)
        prim = get_direct_prim(stage, candidate)
        if prim is not None:
            trace.prim = prim
            return trace

        anchor_path, anchor = find_valid_ancestor(stage, candidate)
        if anchor is None or not anchor_path.IsPrimPath():
            return trace
        if not anchor.IsInstance():
            return trace

        if len(trace.hops) > limit:
            raise ForwardingDepthError(requested, limit)

        relative = candidate.ReplacePrefix(anchor_path, Sdf.Path.reflexiveRelativePath)
        forwarded = _prototype_path(anchor, anchor_path).AppendPath(relative)
        LOG.debug("Forwarding %s through instance %s to %s", candidate, anchor_path, forwarded)
        candidate = forwarded


def get_prim_at_path_with_forwarding(
    stage: SceneGraph, path, *, max_depth: Optional[int] = None
) -> Optional[SceneNode]:
    """Return the prim at ``path``, looking inside prototypes when needed.

    If ``path`` has no prim of its own because it lies beneath an instance,
    the equivalent prim inside the instance's prototype is returned instead,
    following nested instances recursively. Returns ``None`` when nothing
    answers to ``path`` anywhere.

    Raises :class:`InstancingConsistencyError` when an instance has no
    prototype and :class:`ForwardingDepthError` past ``max_depth`` hops.
    """

    return trace_forwarding(stage, path, max_depth=max_depth).prim


def uninstance_prim_at_path(
    stage: SceneGraph,
    path,
    *,
    max_depth: Optional[int] = None,
    on_uninstance: Optional[Callable[[Sdf.Path], None]] = None,
) -> Optional[SceneNode]:
    """Make ``path`` directly addressable by disabling instancing above it.

    Each pass clears the instanceable flag on the nearest existing ancestor
    of ``path`` and re-checks, so nested instances are broken one level at a
    time and only along the chain that leads to ``path``. Other instances of
    the same prototypes are left untouched. ``on_uninstance`` receives the
    path of every prim whose flag was cleared, in order.

    Returns the prim now authored at ``path``, or ``None`` without touching
    the stage when ``path`` cannot be resolved even through forwarding.
    """

    limit = PIPELINE_DEFAULTS.resolve_max_depth(max_depth)
    target = to_sdf_path(path)
    mutations = 0

    while True:
        prim = get_direct_prim(stage, target)
        if prim is not None:
            return prim

        if get_prim_at_path_with_forwarding(stage, target, max_depth=limit) is None:
            return None

        anchor_path, anchor = find_valid_ancestor(stage, target)
        if anchor is None or not anchor_path.IsPrimPath():
            return None
        if not anchor.IsInstance():
            raise InstancingConsistencyError(
                f"Ancestor {anchor_path} of {target} forwarded a lookup but is not an instance",
                path=anchor_path,
            )

        if mutations >= limit:
            raise ForwardingDepthError(target, limit)

        LOG.info("Disabling instancing on %s to expose %s", anchor_path, target)
        anchor.SetInstanceable(False)
        mutations += 1
        if on_uninstance is not None:
            on_uninstance(anchor_path)


__all__ = [
    "ForwardingTrace",
    "SceneGraph",
    "SceneNode",
    "find_valid_ancestor",
    "get_direct_prim",
    "get_prim_at_path_with_forwarding",
    "trace_forwarding",
    "uninstance_prim_at_path",
]

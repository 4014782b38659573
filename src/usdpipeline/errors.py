from __future__ import annotations

from typing import Optional


class UsdPipelineError(RuntimeError):
    """Base class for failures raised by usdpipeline."""


class InstancingConsistencyError(UsdPipelineError):
    """The stage's instancing state contradicts itself.

    Raised when an instance prim has no prototype, or when an ancestor that
    forwarding relied on turns out not to be an instance. Either case points
    at a broken stage or engine, not at a missing prim, so callers should not
    treat it like an ordinary lookup miss.
    """

    def __init__(self, message: str, *, path: Optional[object] = None) -> None:
        super().__init__(message)
        self.path = path


class ForwardingDepthError(InstancingConsistencyError):
    """Forwarding or uninstancing ran past the configured hop limit."""

    def __init__(self, path: object, limit: int) -> None:
        super().__init__(
            f"Instance forwarding for {path} exceeded {limit} hops; "
            "the prototype graph is likely cyclic",
            path=path,
        )
        self.limit = limit


class PipelineConfigError(UsdPipelineError, ValueError):
    """A configuration value or pipeline document is malformed."""


__all__ = [
    "UsdPipelineError",
    "InstancingConsistencyError",
    "ForwardingDepthError",
    "PipelineConfigError",
]

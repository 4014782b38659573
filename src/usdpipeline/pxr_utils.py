from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from .usd_context import get_pxr_module, initialize_usd, shutdown_usd_context

PathLike = Union[str, Path]


def require_pxr_module(name: str) -> Any:
    initialize_usd()
    return get_pxr_module(name)


class _ModuleProxy:
    def __init__(self, module_name: str):
        self._module_name = module_name

    def _module(self):
        return require_pxr_module(self._module_name)

    def __getattr__(self, item: str) -> Any:
        return getattr(self._module(), item)

    def __dir__(self):
        return dir(self._module())


Plug = _ModuleProxy("Plug")
Sdf = _ModuleProxy("Sdf")
Usd = _ModuleProxy("Usd")


def to_sdf_path(value) -> Sdf.Path:
    """Coerce ``value`` (``str`` or ``Sdf.Path``) into an ``Sdf.Path``."""
    if isinstance(value, Sdf.Path):
        return value
    if isinstance(value, str):
        return Sdf.Path(value.strip())
    raise TypeError(f"Expected a str or Sdf.Path, got {type(value).__name__}")


def open_stage(path: PathLike) -> Usd.Stage:
    """Open a USD stage from disk, raising when USD cannot load it."""
    text = Path(path).as_posix() if isinstance(path, Path) else str(path)
    stage = Usd.Stage.Open(text)
    if stage is None:
        raise RuntimeError(f"Failed to open stage: {text}")
    return stage


def open_layer(path: PathLike) -> Sdf.Layer:
    text = Path(path).as_posix() if isinstance(path, Path) else str(path)
    layer = Sdf.Layer.FindOrOpen(text)
    if layer is None:
        raise RuntimeError(f"Failed to open layer: {text}")
    return layer


__all__ = [
    "PathLike",
    "Plug",
    "Sdf",
    "Usd",
    "open_layer",
    "open_stage",
    "require_pxr_module",
    "shutdown_usd_context",
    "to_sdf_path",
]

from __future__ import annotations

import importlib
from typing import Dict

_PXR_CACHE: Dict[str, object] = {}
_INITIALIZED: bool = False


def initialize_usd() -> None:
    """Import the pxr package once; repeated calls are no-ops."""
    global _INITIALIZED

    if _INITIALIZED:
        return
    try:
        _PXR_CACHE["__pxr__"] = importlib.import_module("pxr")
    except ModuleNotFoundError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError(
            "The pxr USD bindings are unavailable. Install them with "
            "'pip install usd-core' or run inside a USD-enabled Python runtime."
        ) from exc
    _INITIALIZED = True


def _teardown() -> None:
    global _INITIALIZED, _PXR_CACHE
    _PXR_CACHE = {}
    _INITIALIZED = False


def get_pxr_module(name: str):
    if name not in _PXR_CACHE:
        if not _INITIALIZED:
            initialize_usd()
        _PXR_CACHE[name] = importlib.import_module(f"pxr.{name}")
    return _PXR_CACHE[name]


def shutdown_usd_context() -> None:
    """Forget the cached pxr modules; the next access looks them up again."""
    _teardown()

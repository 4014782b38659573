from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .pxr_utils import Sdf, Usd

LOG = logging.getLogger(__name__)

Z_UP_KEY = "zUp"
ALPHA_SUFFIX = "_A"
PRIMARY_UV_SET_NAME = "st"


def get_cameras_are_z_up(stage: Optional[Usd.Stage]) -> bool:
    """Return True when the stage's root prims declare Z-up cameras.

    Looks at the ``zUp`` customData entry on every defined, non-abstract
    root prim. A single ``False`` makes the stage Y-up regardless of the
    others; without any entry the stage is treated as Y-up.
    """
    if stage is None:
        return False

    has_z_up_camera = False
    predicate = Usd.PrimIsDefined & ~Usd.PrimIsAbstract
    for prim in stage.GetPseudoRoot().GetFilteredChildren(predicate):
        is_z_up = prim.GetCustomDataByKey(Z_UP_KEY)
        if is_z_up is None:
            continue
        if isinstance(is_z_up, bool):
            if not is_z_up:
                return False
            has_z_up_camera = True
        else:
            LOG.warning(
                "Found non-boolean '%s' customData on %s in stage rooted at layer '%s'.",
                Z_UP_KEY,
                prim.GetPath(),
                stage.GetRootLayer().identifier,
            )
    return has_z_up_camera


def get_alpha_attribute_name_for_color(color_attr_name: str) -> str:
    return f"{color_attr_name}{ALPHA_SUFFIX}"


def get_primary_uv_set_name() -> str:
    return PRIMARY_UV_SET_NAME


def get_model_name_from_root_layer(root_layer: Sdf.Layer) -> str:
    """Guess the model name a root layer describes.

    Preference order: the layer's ``defaultPrim``; a root prim named after
    the file (text before the first ``.``); the first root prim that is not
    a class. Falls back to the file-derived name even when no such prim
    exists, which may be empty.
    """
    default_prim = root_layer.defaultPrim
    if default_prim:
        return default_prim

    base_name = Path(root_layer.realPath or "").name
    model_name = base_name.split(".", 1)[0]
    if Sdf.Path.IsValidIdentifier(model_name) and root_layer.GetPrimAtPath(Sdf.Path.absoluteRootPath.AppendChild(model_name)):
        return model_name

    for root_prim in root_layer.rootPrims:
        if root_prim.specifier != Sdf.SpecifierClass:
            return root_prim.name

    LOG.debug("No model name found in %s; using '%s'", root_layer.identifier, model_name)
    return model_name


__all__ = [
    "ALPHA_SUFFIX",
    "PRIMARY_UV_SET_NAME",
    "Z_UP_KEY",
    "get_alpha_attribute_name_for_color",
    "get_cameras_are_z_up",
    "get_model_name_from_root_layer",
    "get_primary_uv_set_name",
]

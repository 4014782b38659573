"""Instancing-aware prim lookup and editing helpers for USD pipelines."""

from . import api
from .api import ResolveSettings, UninstanceResult, UninstanceSettings, resolve, uninstance
from .config import PIPELINE_DEFAULTS, PipelineDefaults, load_defaults
from .errors import (
    ForwardingDepthError,
    InstancingConsistencyError,
    PipelineConfigError,
    UsdPipelineError,
)
from .forwarding import (
    ForwardingTrace,
    SceneGraph,
    SceneNode,
    find_valid_ancestor,
    get_direct_prim,
    get_prim_at_path_with_forwarding,
    trace_forwarding,
    uninstance_prim_at_path,
)
from .pipeline import (
    get_alpha_attribute_name_for_color,
    get_cameras_are_z_up,
    get_model_name_from_root_layer,
    get_primary_uv_set_name,
)
from .variant_sets import (
    RegisteredVariantSet,
    SelectionExportPolicy,
    get_registered_variant_sets,
    parse_registered_variant_sets,
    reset_registered_variant_sets,
)

__all__ = [
    "api",
    "resolve",
    "uninstance",
    "ResolveSettings",
    "UninstanceSettings",
    "UninstanceResult",
    "PIPELINE_DEFAULTS",
    "PipelineDefaults",
    "load_defaults",
    "UsdPipelineError",
    "InstancingConsistencyError",
    "ForwardingDepthError",
    "PipelineConfigError",
    "ForwardingTrace",
    "SceneGraph",
    "SceneNode",
    "find_valid_ancestor",
    "get_direct_prim",
    "get_prim_at_path_with_forwarding",
    "trace_forwarding",
    "uninstance_prim_at_path",
    "get_alpha_attribute_name_for_color",
    "get_cameras_are_z_up",
    "get_model_name_from_root_layer",
    "get_primary_uv_set_name",
    "RegisteredVariantSet",
    "SelectionExportPolicy",
    "get_registered_variant_sets",
    "parse_registered_variant_sets",
    "reset_registered_variant_sets",
]

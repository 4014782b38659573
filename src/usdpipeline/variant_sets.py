"""Registry of pipeline variant sets declared in plugin metadata.

Plugins opt in by carrying a ``UsdUtilsPipeline`` dictionary in their
``plugInfo.json`` metadata::

    "UsdUtilsPipeline": {
        "RegisteredVariantSets": {
            "modelingVariant": {"selectionExportPolicy": "always"}
        }
    }

The same structure can be supplied through JSON or YAML pipeline documents
listed in ``USDPIPELINE_PIPELINE_CONFIG``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import PIPELINE_DEFAULTS, load_pipeline_document
from .pxr_utils import Plug

log = logging.getLogger(__name__)

PIPELINE_KEY = "UsdUtilsPipeline"
REGISTERED_VARIANT_SETS_KEY = "RegisteredVariantSets"
SELECTION_EXPORT_POLICY_KEY = "selectionExportPolicy"

MetadataSource = Tuple[str, Mapping[str, Any]]


class SelectionExportPolicy(enum.Enum):
    """When an exporter should author a selection for a registered variant set."""

    NEVER = "never"
    IF_AUTHORED = "ifAuthored"
    ALWAYS = "always"


@dataclass(frozen=True, order=True)
class RegisteredVariantSet:
    name: str
    selection_export_policy: SelectionExportPolicy = field(compare=False)


_REGISTERED: Optional[Tuple[RegisteredVariantSet, ...]] = None


def parse_registered_variant_sets(sources: Iterable[MetadataSource]) -> List[RegisteredVariantSet]:
    """Collect variant-set registrations from ``(source_name, metadata)`` pairs.

    Malformed entries are logged and skipped. When two sources register the
    same name the first one wins. The result is sorted by name.
    """

    registered: Dict[str, RegisteredVariantSet] = {}
    for source_name, metadata in sources:
        pipeline_dict = metadata.get(PIPELINE_KEY)
        if pipeline_dict is None:
            continue
        if not isinstance(pipeline_dict, Mapping):
            log.error("%s[%s] was not a dictionary.", source_name, PIPELINE_KEY)
            continue

        variant_sets = pipeline_dict.get(REGISTERED_VARIANT_SETS_KEY)
        if variant_sets is None:
            continue
        if not isinstance(variant_sets, Mapping):
            log.error(
                "%s[%s][%s] was not a dictionary.",
                source_name,
                PIPELINE_KEY,
                REGISTERED_VARIANT_SETS_KEY,
            )
            continue

        for variant_set_name, info in variant_sets.items():
            if not isinstance(info, Mapping):
                log.error(
                    "%s[%s][%s][%s] was not a dictionary.",
                    source_name,
                    PIPELINE_KEY,
                    REGISTERED_VARIANT_SETS_KEY,
                    variant_set_name,
                )
                continue
            try:
                policy = SelectionExportPolicy(info.get(SELECTION_EXPORT_POLICY_KEY))
            except ValueError:
                log.error(
                    "%s[%s][%s][%s] was not valid.",
                    source_name,
                    PIPELINE_KEY,
                    REGISTERED_VARIANT_SETS_KEY,
                    variant_set_name,
                )
                continue
            name = str(variant_set_name)
            if name in registered:
                log.debug("Variant set '%s' from %s already registered; ignoring", name, source_name)
                continue
            registered[name] = RegisteredVariantSet(name=name, selection_export_policy=policy)

    return sorted(registered.values())


def _plugin_metadata_sources() -> List[MetadataSource]:
    return [(plugin.name, plugin.metadata or {}) for plugin in Plug.Registry().GetAllPlugins()]


def _document_sources(paths: Sequence[Path]) -> List[MetadataSource]:
    return [(path.as_posix(), load_pipeline_document(path)) for path in paths]


def get_registered_variant_sets(
    *, config_paths: Optional[Sequence[Path]] = None
) -> Tuple[RegisteredVariantSet, ...]:
    """Return the process-wide variant-set registry, building it on first use.

    Plugin metadata is read before pipeline documents, so a plugin's
    registration of a name takes precedence over a document's.
    """

    global _REGISTERED
    if _REGISTERED is None:
        paths = PIPELINE_DEFAULTS.pipeline_config_paths if config_paths is None else tuple(config_paths)
        sources = _plugin_metadata_sources() + _document_sources(paths)
        _REGISTERED = tuple(parse_registered_variant_sets(sources))
        log.debug("Registered %d pipeline variant sets", len(_REGISTERED))
    return _REGISTERED


def reset_registered_variant_sets() -> None:
    global _REGISTERED
    _REGISTERED = None


__all__ = [
    "PIPELINE_KEY",
    "REGISTERED_VARIANT_SETS_KEY",
    "SELECTION_EXPORT_POLICY_KEY",
    "RegisteredVariantSet",
    "SelectionExportPolicy",
    "get_registered_variant_sets",
    "parse_registered_variant_sets",
    "reset_registered_variant_sets",
]

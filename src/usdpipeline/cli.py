from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from .api import ResolveSettings, UninstanceSettings, resolve, uninstance
from .errors import InstancingConsistencyError, PipelineConfigError
from .pipeline import get_cameras_are_z_up, get_model_name_from_root_layer
from .pxr_utils import open_layer, open_stage
from .usd_context import shutdown_usd_context
from .variant_sets import get_registered_variant_sets

LOG = logging.getLogger(__name__)

EXIT_NOT_FOUND = 1
EXIT_INCONSISTENT = 2


class _JoinPathAction(argparse.Action):
    """Join successive CLI tokens into a single path string (handles spaces gracefully)."""

    def __call__(self, parser, namespace, values, option_string=None):
        joined = " ".join(values).strip()
        setattr(namespace, self.dest, joined or None)


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be >0, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="usdpipeline",
        description="Resolve and uninstance prims through USD instancing, plus pipeline lookups.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        dest="verbose",
        action="store_true",
        help="Log every forwarding hop (DEBUG level).",
    )
    parser.add_argument(
        "--max-depth",
        dest="max_depth",
        type=_positive_int,
        default=None,
        help="Maximum forwarding hops before the stage is reported as inconsistent "
        "(default: USDPIPELINE_MAX_FORWARDING_DEPTH or 128).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resolve_cmd = sub.add_parser("resolve", help="Print the prim a path forwards to.")
    resolve_cmd.add_argument("--prim", dest="prim_path", required=True, help="Prim path to resolve.")
    resolve_cmd.add_argument(
        "stage_path",
        nargs="+",
        action=_JoinPathAction,
        help="USD stage to open.",
    )

    uninstance_cmd = sub.add_parser(
        "uninstance",
        help="Disable instancing above a prim so it can be edited directly.",
    )
    uninstance_cmd.add_argument("--prim", dest="prim_path", required=True, help="Prim path to expose.")
    uninstance_cmd.add_argument(
        "--output",
        dest="output_path",
        default=None,
        help="Export the edited root layer here instead of saving it in place.",
    )
    uninstance_cmd.add_argument(
        "stage_path",
        nargs="+",
        action=_JoinPathAction,
        help="USD stage to edit.",
    )

    model_cmd = sub.add_parser("model-name", help="Print the model name a root layer describes.")
    model_cmd.add_argument("layer_path", nargs="+", action=_JoinPathAction, help="USD layer to inspect.")

    axis_cmd = sub.add_parser("up-axis", help="Print Z or Y from the root prims' zUp customData.")
    axis_cmd.add_argument("stage_path", nargs="+", action=_JoinPathAction, help="USD stage to inspect.")

    sub.add_parser("variant-sets", help="List variant sets registered by plugins and pipeline documents.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _run_resolve(args: argparse.Namespace) -> int:
    trace = resolve(ResolveSettings(args.stage_path, args.prim_path, max_depth=args.max_depth))
    if not trace.found:
        LOG.warning("No prim answers to %s in %s", trace.requested, args.stage_path)
        return EXIT_NOT_FOUND
    print(trace.resolved_path)
    if len(trace.hops) > 1:
        print("  via " + " -> ".join(str(hop) for hop in trace.hops))
    return 0


def _run_uninstance(args: argparse.Namespace) -> int:
    result = uninstance(
        UninstanceSettings(
            args.stage_path,
            args.prim_path,
            output_path=args.output_path,
            max_depth=args.max_depth,
        )
    )
    if not result.found:
        LOG.warning("No prim answers to %s in %s; stage left unchanged", result.prim_path, args.stage_path)
        return EXIT_NOT_FOUND
    for path in result.uninstanced:
        print(f"uninstanced {path}")
    print(result.prim_path)
    return 0


def _run_model_name(args: argparse.Namespace) -> int:
    print(get_model_name_from_root_layer(open_layer(args.layer_path)))
    return 0


def _run_up_axis(args: argparse.Namespace) -> int:
    print("Z" if get_cameras_are_z_up(open_stage(args.stage_path)) else "Y")
    return 0


def _run_variant_sets(args: argparse.Namespace) -> int:
    for variant_set in get_registered_variant_sets():
        print(f"{variant_set.name}\t{variant_set.selection_export_policy.value}")
    return 0


_COMMANDS = {
    "resolve": _run_resolve,
    "uninstance": _run_uninstance,
    "model-name": _run_model_name,
    "up-axis": _run_up_axis,
    "variant-sets": _run_variant_sets,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    try:
        return _COMMANDS[args.command](args)
    except InstancingConsistencyError as exc:
        LOG.error("%s", exc)
        return EXIT_INCONSISTENT
    except PipelineConfigError as exc:
        LOG.error("Invalid pipeline configuration: %s", exc)
        return EXIT_INCONSISTENT
    finally:
        shutdown_usd_context()


if __name__ == "__main__":
    sys.exit(main())

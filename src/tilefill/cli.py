"""
Command-line interface for tilefill.

Provides commands for creating fills in saved tile designs, inspecting
them and exporting SVG.
"""

import argparse
import sys

from tilefill.config import load_config, save_default_config
from tilefill.tracer import configure_tracer, get_tracer


def _add_common_args(parser):
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--shape",
        default=None,
        help="Tile shape to operate on (defaults to the document's tile shape)",
    )
    parser.add_argument(
        "--side",
        type=float,
        default=200.0,
        help="Tile side in local pixels",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )


def _add_variant_arg(parser):
    parser.add_argument(
        "--variant",
        type=int,
        default=None,
        help="Single tile index for single-shape tilings (defaults to the active one)",
    )


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="tilefill: boundary-constrained region fill and vectorization for tile designs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Fill command
    fill_parser = subparsers.add_parser("fill", help="Add a fill at a seed point")
    fill_parser.add_argument("--doc", "-d", required=True, help="Tile design JSON")
    fill_parser.add_argument(
        "--seed",
        nargs=2,
        type=float,
        required=True,
        metavar=("X", "Y"),
        help="Seed point in world units (local / side)",
    )
    fill_parser.add_argument(
        "--out", "-o",
        default=None,
        help="Output JSON (defaults to overwriting --doc)",
    )
    fill_parser.add_argument(
        "--debug",
        action="store_true",
        help="Write discovery masks and metrics",
    )
    _add_common_args(fill_parser)
    _add_variant_arg(fill_parser)

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Report fills of a design")
    inspect_parser.add_argument("--doc", "-d", required=True, help="Tile design JSON")
    inspect_parser.add_argument(
        "--paths",
        action="store_true",
        help="Also print each fill's SVG path data",
    )
    _add_common_args(inspect_parser)
    _add_variant_arg(inspect_parser)

    # Export command
    export_parser = subparsers.add_parser("export-svg", help="Export tiles as SVG")
    export_parser.add_argument("--doc", "-d", required=True, help="Tile design JSON")
    export_parser.add_argument("--out", "-o", required=True, help="Output SVG path")
    _add_common_args(export_parser)

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="tilefill_config.yaml",
        help="Output path for config file",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "fill":
        return handle_fill(args)
    elif args.command == "inspect":
        return handle_inspect(args)
    elif args.command == "export-svg":
        return handle_export_svg(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def _configure_tracing(args):
    configure_tracer(
        enabled=args.trace,
        level=args.trace_level,
        file_path=args.trace_file,
        json_output=args.trace_json,
    )


def _build_engine(args, debug=False):
    from tilefill.fill.engine import FillEngine
    from tilefill.io.save_artifacts import DebugArtifactWriter

    config = load_config(args.config)
    writer = None
    if debug:
        config.debug.enabled = True
        writer = DebugArtifactWriter(
            config.debug.out_dir,
            "cli",
            enabled=True,
            max_edge=config.debug.max_edge_scale,
        )
    return FillEngine(config=config, debug_writer=writer)


def _tile_for(doc, args):
    from tilefill.geometry.tile import TileFrame

    shape = args.shape or doc.tile_shape
    return TileFrame(shape, args.side)


def _design_for(doc, tile, args):
    if args.variant is None:
        return doc.active_design(tile.shape)
    variants = doc.single_tile_designs()
    if not 0 <= args.variant < len(variants) or tile.shape != doc.shapes[0]:
        raise ValueError(f"No single tile {args.variant} for shape {tile.shape}")
    return variants[args.variant]


def handle_fill(args):
    """Handle the fill command."""
    _configure_tracing(args)
    tracer = get_tracer()

    try:
        from tilefill.io.document import load_document, save_document

        with tracer.span("cli_fill", module="cli"):
            doc = load_document(args.doc)
            engine = _build_engine(args, debug=args.debug)
            tile = _tile_for(doc, args)
            design = _design_for(doc, tile, args)
            fill = engine.create_fill(tuple(args.seed), tile, design)
            if fill is None:
                print("Seed is outside the tile or on a stroke; no fill created.", file=sys.stderr)
                return 1
            out_path = args.out or args.doc
            save_document(doc, out_path)

        print("\nFill created.")
        print(f"  Boundary ink ids: {fill.boundary_ink_ids}")
        print(f"  Uses tile boundary: {fill.uses_tile_boundary}")
        print(f"\nSaved to: {out_path}")
        return 0

    except Exception as e:
        tracer.event(f"Fill failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_inspect(args):
    """Handle the inspect command."""
    _configure_tracing(args)
    tracer = get_tracer()

    try:
        from tilefill.io.document import load_document
        from tilefill.vector.rasterize import mask_mismatch

        with tracer.span("cli_inspect", module="cli"):
            doc = load_document(args.doc)
            engine = _build_engine(args)
            tile = _tile_for(doc, args)
            design = _design_for(doc, tile, args)

            print(f"Tiling: {doc.tiling_id}  shape: {tile.shape}  side: {tile.side:g}")
            print(f"Ink: {len(design.ink)}  fills: {len(design.fills)}")
            for i, fill in enumerate(design.fills):
                data = engine.render(fill, tile, design)
                if data is None:
                    print(f"  [{i}] seed=({fill.x:.4f}, {fill.y:.4f}) invalid")
                    continue
                loops = engine.vectorize(fill, tile, design)
                print(
                    f"  [{i}] seed=({fill.x:.4f}, {fill.y:.4f}) ids={fill.boundary_ink_ids} "
                    f"tile={fill.uses_tile_boundary} closed={data.closed_by_ink} "
                    f"area={data.area_local:.1f} loops={len(loops)} "
                    f"mismatch={mask_mismatch(loops, data):.4f}"
                )
                if args.paths:
                    print(f"      d=\"{engine.vectorize_svg_d(fill, tile, design)}\"")
        return 0

    except Exception as e:
        tracer.event(f"Inspect failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_export_svg(args):
    """Handle the export-svg command."""
    _configure_tracing(args)
    tracer = get_tracer()

    try:
        from tilefill.export.svg_tile import export_document_svg
        from tilefill.io.document import load_document

        with tracer.span("cli_export_svg", module="cli"):
            doc = load_document(args.doc)
            engine = _build_engine(args)
            export_document_svg(doc, engine, args.out, side=args.side)

        print(f"SVG saved to: {args.out}")
        return 0

    except Exception as e:
        tracer.event(f"Export failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

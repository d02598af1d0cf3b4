import argparse
import logging
import sys
from typing import Optional, Sequence

import numpy as np

from geometry.geom_io import load_data, load_mesh, render_buffers, save_mesh
from geometry.mesh_builder import simple_quad_mesh
from quadfield import __version__
from runtime.height_field import (
    apply_height,
    grid_spacing,
    position_bounds,
    reset_height,
    scalar_range,
)
from runtime.logging_config import setup_logging
from runtime.streamlines import StreamlineTracer

logger = logging.getLogger("quadfield")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quad mesh topology and streamline driver"
    )
    parser.add_argument(
        "-i",
        "--input",
        default=None,
        help="Input mesh (.ply, .json, .yaml). Defaults to a single unit quad.",
    )
    parser.add_argument("-o", "--output", default=None, help="Output mesh JSON file")
    parser.add_argument(
        "--compact-output-json",
        action="store_true",
        help="Write output JSON in compact (single-line) form.",
    )
    parser.add_argument(
        "--params",
        default=None,
        help="Optional JSON/YAML file of global parameters (step_size, num_steps, ...).",
    )
    parser.add_argument(
        "--height",
        type=float,
        default=None,
        metavar="FACTOR",
        help="Displace vertices along their normals by FACTOR times the normalized scalar.",
    )
    parser.add_argument(
        "--reset-height",
        action="store_true",
        help="Undo the height displacement before writing output.",
    )
    parser.add_argument(
        "--streamlines",
        action="store_true",
        help="Replace the mesh by streamlines seeded at every face centroid "
        "(vertices and edges only).",
    )
    parser.add_argument(
        "--seed",
        type=float,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Trace a single streamline through (X, Y) and log its points.",
    )
    parser.add_argument("--step-size", type=float, default=None, help="Streamline step")
    parser.add_argument(
        "--num-steps", type=int, default=None, help="Streamline steps per direction"
    )
    parser.add_argument(
        "--render-buffers",
        default=None,
        metavar="PATH",
        help="Write vertex/index render buffers to PATH (.npz).",
    )
    parser.add_argument(
        "--viz",
        action="store_true",
        help="Visualize the resulting mesh.",
    )
    parser.add_argument(
        "--viz-save",
        default=None,
        help="Save the visualization image to PATH instead of only showing it.",
    )
    parser.add_argument("--log", default=None, help="Optional log file")
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress console output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable verbose debug logging"
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def _cli_overrides(args) -> dict:
    """Parameters set explicitly on the command line or in ``--params``."""
    overrides = {}
    if args.params:
        overrides.update(load_data(args.params) or {})
    if args.step_size is not None:
        overrides["step_size"] = args.step_size
    if args.num_steps is not None:
        overrides["num_steps"] = args.num_steps
    if args.height is not None:
        overrides["height_factor"] = args.height
    return overrides


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    global logger
    logger = setup_logging(args.log, quiet=args.quiet, debug=args.debug)

    if args.input:
        mesh = load_mesh(args.input)
        if mesh.is_empty:
            print(f"Could not build a mesh from '{args.input}'.", file=sys.stderr)
            return 1
    else:
        mesh = simple_quad_mesh()
    mesh.global_parameters.update(_cli_overrides(args))

    lo, hi = scalar_range(mesh)
    logger.info("Scalar range: [%g, %g]", lo, hi)
    logger.debug("Position bounds: %s", position_bounds(mesh))
    logger.debug("Grid spacing: %g", grid_spacing(mesh))

    if args.height is not None:
        if not apply_height(mesh, mesh.global_parameters.get("height_factor", 1.0)):
            logger.info("Scalar field is constant; height displacement skipped.")
        if args.reset_height:
            reset_height(mesh)

    tracer = StreamlineTracer(mesh)
    if args.seed is not None:
        seed = np.array([args.seed[0], args.seed[1], 0.0])
        line = tracer.trace(seed)
        logger.info("Streamline through %s has %d point(s).", seed[:2], len(line))
        for point in line:
            logger.debug("  %s", point)

    if args.streamlines:
        mesh = tracer.resample()

    if args.render_buffers:
        vertex_data, index_data = render_buffers(mesh)
        np.savez(args.render_buffers, vertices=vertex_data, indices=index_data)
        logger.info("Render buffers written to %s", args.render_buffers)

    if args.viz or args.viz_save:
        import matplotlib.pyplot as plt

        from visualization.plotting import plot_quad_mesh

        plot_quad_mesh(mesh, show=args.viz_save is None)
        if args.viz_save:
            plt.gcf().savefig(args.viz_save, bbox_inches="tight")
            logger.info("Saved visualization to %s", args.viz_save)

    if args.output:
        save_mesh(mesh, args.output, compact=args.compact_output_json)
        logger.info("Output saved to %s", args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())

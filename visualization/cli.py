import argparse
import logging
import os
from typing import Optional, Sequence

import matplotlib.pyplot as plt

from geometry.geom_io import load_mesh
from geometry.mesh_builder import simple_quad_mesh
from runtime.height_field import apply_height
from runtime.logging_config import setup_logging
from runtime.streamlines import StreamlineTracer
from visualization.plotting import plot_quad_mesh

logger = logging.getLogger("quadfield")


def create_parser() -> argparse.ArgumentParser:
    """
    Create an argument parser for the visualization command-line interface.
    """
    parser = argparse.ArgumentParser(
        description="Visualize quad meshes and their vector-field streamlines."
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Path to a .ply, .json or .yaml mesh (default: a single unit quad).",
    )
    parser.add_argument(
        "--streamlines",
        action="store_true",
        help="Overlay one streamline per face, seeded at the face centroid.",
    )
    parser.add_argument(
        "--height",
        type=float,
        default=None,
        metavar="FACTOR",
        help="Displace the surface along its normals by the scalar field.",
    )
    parser.add_argument(
        "--color-by-scalar",
        action="store_true",
        help="Shade faces by their mean vertex scalar.",
    )
    parser.add_argument(
        "--edges",
        action="store_true",
        help="Draw mesh edges.",
    )
    parser.add_argument(
        "--show-indices",
        action="store_true",
        help="Annotate vertices with their indices.",
    )
    parser.add_argument(
        "--transparent",
        action="store_true",
        help="Render faces semi-transparent.",
    )
    parser.add_argument(
        "--save",
        metavar="PATH",
        help="Save the rendered figure to PATH instead of only showing it.",
    )
    parser.add_argument("--no-axes", action="store_true", help="Removes axes from plot")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Entry point for the visualization CLI.

    Parameters
    ----------
    argv :
        Optional sequence of command-line arguments. When ``None``, the
        arguments are taken from ``sys.argv``.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging()

    if args.input is None:
        mesh = simple_quad_mesh()
    else:
        if not os.path.isfile(args.input):
            raise FileNotFoundError(f"Input file '{args.input}' not found!")
        mesh = load_mesh(args.input)
        if mesh.is_empty:
            raise ValueError(f"Could not build a mesh from '{args.input}'.")

    if args.height is not None:
        apply_height(mesh, args.height)

    lines = None
    if args.streamlines:
        lines = StreamlineTracer(mesh).face_centroid_streamlines()

    # Saving implies a non-blocking render.
    show = args.save is None

    plot_quad_mesh(
        mesh,
        streamlines=lines,
        color_by_scalar=args.color_by_scalar,
        transparent=args.transparent,
        draw_edges=args.edges,
        show_indices=args.show_indices,
        no_axes=args.no_axes,
        show=show,
    )

    if args.save:
        fig = plt.gcf()
        fig.savefig(args.save, bbox_inches="tight")
        logger.info("Saved visualization to %s", args.save)


if __name__ == "__main__":
    main()

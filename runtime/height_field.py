# runtime/height_field.py

import logging
from typing import Tuple

import numpy as np

from geometry.entities import QuadMesh

logger = logging.getLogger("quadfield")


def scalar_range(mesh: QuadMesh) -> Tuple[float, float]:
    """Return ``(min, max)`` of the vertex scalars; ``(0.0, 0.0)`` if empty."""
    if not mesh.vertices:
        return 0.0, 0.0
    scalars = np.array([v.scalar for v in mesh.vertices], dtype=float)
    return float(scalars.min()), float(scalars.max())


def position_bounds(
    mesh: QuadMesh,
) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
    """Return per-axis ``(min, max)`` pairs of the vertex positions."""
    if not mesh.vertices:
        return (0.0, 0.0), (0.0, 0.0), (0.0, 0.0)
    positions = mesh.positions_view()
    lo = positions.min(axis=0)
    hi = positions.max(axis=0)
    return tuple((float(lo[k]), float(hi[k])) for k in range(3))


def apply_height(mesh: QuadMesh, factor: float) -> bool:
    """Displace every vertex along its normal by its normalized scalar.

    Each vertex moves by ``factor * t * normal`` with
    ``t = (scalar - min) / (max - min)``; the displacement accumulates in
    ``vertex.offset`` so :func:`reset_height` can undo it. Normals and
    bounding metrics are recomputed afterwards.

    Returns ``False`` (and leaves the mesh untouched) when every vertex carries
    the same scalar.
    """
    lo, hi = scalar_range(mesh)
    if lo == hi:
        logger.debug("Scalar range is degenerate (%g); height unchanged.", lo)
        return False

    span = hi - lo
    for vertex in mesh.vertices:
        t = (vertex.scalar - lo) / span
        vertex.offset_position(factor * t * vertex.normal)

    mesh.refresh_geometry()
    logger.debug("Applied height factor %g over scalar range [%g, %g].", factor, lo, hi)
    return True


def reset_height(mesh: QuadMesh) -> None:
    """Remove all accumulated height offsets and refresh derived geometry."""
    for vertex in mesh.vertices:
        vertex.reset_position()
    mesh.refresh_geometry()


def grid_spacing(mesh: QuadMesh) -> float:
    """Length of the first edge; a default step size for regular grids."""
    if not mesh.edges:
        return 0.0
    return mesh.edges[0].length(mesh)

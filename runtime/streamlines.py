"""Streamline integration over piecewise-bilinear XY vector fields.

The vector attribute stored on each vertex defines a field that is
bilinearly interpolated inside every (axis-aligned) quad. Streamlines are
traced in the XY projection of the mesh, stepping face to face across shared
edges until they leave the mesh, reach a critical point, or run out of steps.
None of the functions here modify the mesh.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np

from geometry.entities import QuadMesh
from geometry.mesh_builder import build_polyline_mesh
from runtime.height_field import grid_spacing

logger = logging.getLogger("quadfield")


def _side(p, a, b) -> float:
    """Signed XY area spanned by ``p`` relative to the directed side ``a -> b``."""
    return (p[0] - b[0]) * (a[1] - b[1]) - (a[0] - b[0]) * (p[1] - b[1])


def contains_xy_point(mesh: QuadMesh, face_index: int, point) -> bool:
    """Return ``True`` if ``point`` lies inside the face's XY projection.

    The point is inside when it falls on the same side of all four sides.
    Points on a side of a counter-clockwise quad count as inside.
    """
    face = mesh.faces[face_index]
    v = [mesh.vertices[vid].position for vid in face.vertex_indices]
    flags = [_side(point, v[i], v[(i + 1) % 4]) < 0.0 for i in range(4)]
    return flags[0] == flags[1] == flags[2] == flags[3]


def locate(mesh: QuadMesh, point) -> Optional[int]:
    """Return the id of the first face containing ``point`` in XY, or ``None``."""
    for face in mesh.faces:
        if contains_xy_point(mesh, face.index, point):
            return face.index
    return None


def sample(mesh: QuadMesh, face_index: int, point) -> np.ndarray:
    """Bilinearly interpolate the vertex vectors of an axis-aligned quad.

    Corners are identified by matching vertex XY coordinates exactly against
    the face's bounding box. Only the XY components are returned; z is 0.
    """
    face = mesh.faces[face_index]
    verts = [mesh.vertices[vid] for vid in face.vertex_indices]
    xs = [v.position[0] for v in verts]
    ys = [v.position[1] for v in verts]
    x1, x2 = min(xs), max(xs)
    y1, y2 = min(ys), max(ys)

    v11 = v12 = v21 = v22 = np.zeros(3, dtype=float)
    for v in verts:
        x, y = v.position[0], v.position[1]
        if x == x1 and y == y1:
            v11 = v.vector
        elif x == x1 and y == y2:
            v12 = v.vector
        elif x == x2 and y == y1:
            v21 = v.vector
        elif x == x2 and y == y2:
            v22 = v.vector

    x, y = point[0], point[1]
    blended = (
        (x2 - x) * (y2 - y) * v11
        + (x2 - x) * (y - y1) * v12
        + (x - x1) * (y2 - y) * v21
        + (x - x1) * (y - y1) * v22
    ) / ((x2 - x1) * (y2 - y1))
    return np.array([blended[0], blended[1], 0.0], dtype=float)


def step(
    mesh: QuadMesh,
    position,
    face_index: int,
    direction: int,
    step_size: float,
) -> Tuple[np.ndarray, Optional[int]]:
    """Advance one step along the field from ``position`` inside ``face_index``.

    Returns ``(next_position, next_face)``. ``next_face`` is ``None`` when the
    streamline halts: at a zero field sample, on crossing a boundary edge, or
    when no crossing can be found. A halt without a crossing returns the
    input position unchanged.
    """
    pos = np.asarray(position, dtype=float)
    field_vec = sample(mesh, face_index, pos)
    if field_vec[0] == 0.0 and field_vec[1] == 0.0:
        return pos, None

    heading = field_vec / np.linalg.norm(field_vec) * float(direction)
    candidate = pos + heading * step_size

    if contains_xy_point(mesh, face_index, candidate):
        return candidate, face_index

    dx = candidate[0] - pos[0]
    dy = candidate[1] - pos[1]
    for edge_id in mesh.faces[face_index].edge_indices:
        edge = mesh.edges[edge_id]
        a = mesh.vertices[edge.v1].position
        b = mesh.vertices[edge.v2].position
        ex = b[0] - a[0]
        ey = b[1] - a[1]

        denom = ey * dx - ex * dy
        if denom == 0.0:
            continue  # parallel

        t = (ex * (pos[1] - a[1]) - ey * (pos[0] - a[0])) / denom
        u = (dx * (pos[1] - a[1]) - dy * (pos[0] - a[0])) / denom
        if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
            return pos + t * (candidate - pos), edge.other_face(face_index)

    logger.debug(
        "No edge crossing found leaving face %d from %s; halting.", face_index, pos
    )
    return pos, None


def _integrate(
    mesh: QuadMesh,
    seed: np.ndarray,
    seed_face: int,
    direction: int,
    step_size: float,
    num_steps: int,
) -> List[np.ndarray]:
    points: List[np.ndarray] = []
    pos, face = seed, seed_face
    for _ in range(num_steps):
        next_pos, next_face = step(mesh, pos, face, direction, step_size)
        if not np.array_equal(next_pos, pos):
            points.append(next_pos)
        if next_face is None:
            break
        pos, face = next_pos, next_face
    return points


def trace(
    mesh: QuadMesh,
    seed,
    seed_face: Optional[int] = None,
    step_size: float = 0.1,
    num_steps: int = 100,
) -> np.ndarray:
    """Trace a streamline through ``seed`` in both directions.

    Up to ``num_steps`` steps are taken backward and forward. The result is an
    ``(K, 3)`` array ordered along the field direction that always contains
    the seed; a seed outside the mesh yields just the seed.
    """
    seed = np.asarray(seed, dtype=float)
    if seed_face is None:
        seed_face = locate(mesh, seed)
        if seed_face is None:
            logger.debug("Seed %s is outside the mesh.", seed)
            return seed.reshape(1, 3).copy()

    backward = _integrate(mesh, seed, seed_face, -1, step_size, num_steps)
    forward = _integrate(mesh, seed, seed_face, 1, step_size, num_steps)
    return np.array(backward[::-1] + [seed] + forward, dtype=float).reshape(-1, 3)


def face_centroid_streamlines(
    mesh: QuadMesh, step_size: float, num_steps: int
) -> List[np.ndarray]:
    """One streamline per face, seeded at the face centroid."""
    return [
        trace(mesh, face.centroid(mesh), face.index, step_size, num_steps)
        for face in mesh.faces
    ]


def resample_streamline_mesh(
    mesh: QuadMesh, step_size: float, num_steps: int
) -> QuadMesh:
    """Build a vertices-and-edges mesh from the face-centroid streamlines."""
    lines = face_centroid_streamlines(mesh, step_size, num_steps)
    resampled = build_polyline_mesh(lines, parameters=mesh.global_parameters.copy())
    logger.info(
        "Resampled %d streamline(s) into %d vertices and %d edges.",
        sum(1 for line in lines if len(line) >= 2),
        resampled.num_vertices,
        resampled.num_edges,
    )
    return resampled


class StreamlineTracer:
    """Read-only tracer bound to one mesh.

    Default ``step_size`` and ``num_steps`` come from the mesh's global
    parameters; an unset step size falls back to the grid spacing.
    """

    def __init__(
        self,
        mesh: QuadMesh,
        step_size: Optional[float] = None,
        num_steps: Optional[int] = None,
    ):
        self.mesh = mesh
        params = mesh.global_parameters
        if step_size is None:
            step_size = params.get("step_size")
        if step_size is None:
            step_size = grid_spacing(mesh)
        if num_steps is None:
            num_steps = params.get("num_steps", 100)
        self.step_size = float(step_size)
        self.num_steps = int(num_steps)

    def locate(self, point) -> Optional[int]:
        return locate(self.mesh, point)

    def sample(self, face_index: int, point) -> np.ndarray:
        return sample(self.mesh, face_index, point)

    def step(self, position, face_index: int, direction: int = 1):
        return step(self.mesh, position, face_index, direction, self.step_size)

    def trace(self, seed, seed_face: Optional[int] = None) -> np.ndarray:
        return trace(self.mesh, seed, seed_face, self.step_size, self.num_steps)

    def face_centroid_streamlines(self) -> List[np.ndarray]:
        return face_centroid_streamlines(self.mesh, self.step_size, self.num_steps)

    def resample(self) -> QuadMesh:
        return resample_streamline_mesh(self.mesh, self.step_size, self.num_steps)

"""Build linked quad meshes from raw vertex and face records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import numpy as np

from core.exceptions import MalformedFaceError
from geometry.entities import Edge, Face, QuadMesh, Vertex
from parameters.global_parameters import GlobalParameters
from runtime.topology import reorder_vertex_neighbors

logger = logging.getLogger("quadfield")


@dataclass
class VertexRecord:
    """Per-vertex payload handed over by a mesh reader."""

    position: Sequence[float]
    normal: Sequence[float] = (0.0, 0.0, 0.0)
    scalar: float = 0.0
    vector: Sequence[float] = (0.0, 0.0, 0.0)
    tensor: Sequence[Sequence[float]] = field(
        default_factory=lambda: ((0.0, 0.0), (0.0, 0.0))
    )


def _make_vertex(index: int, record) -> Vertex:
    if isinstance(record, Vertex):
        return Vertex(
            index,
            record.position.copy(),
            normal=record.normal.copy(),
            scalar=record.scalar,
            vector=record.vector.copy(),
            tensor=record.tensor.copy(),
        )
    if isinstance(record, VertexRecord):
        return Vertex(
            index,
            record.position,
            normal=record.normal,
            scalar=record.scalar,
            vector=record.vector,
            tensor=record.tensor,
        )
    # Plain coordinates.
    return Vertex(index, record)


def _check_face(position: int, indices: Sequence[int], num_vertices: int) -> List[int]:
    """Return the face's vertex ids or raise :class:`MalformedFaceError`."""
    if len(indices) != 4:
        raise MalformedFaceError(
            position,
            indices,
            f"Skipping non-quad face {position} with {len(indices)} vertices.",
        )
    verts = []
    for vid in indices:
        vid = int(vid)
        if vid < 0 or vid >= num_vertices:
            raise MalformedFaceError(
                position,
                indices,
                f"Invalid vertex index {vid} in face {position}.",
            )
        verts.append(vid)
    if len(set(verts)) != 4:
        raise MalformedFaceError(
            position, indices, f"Face {position} repeats a vertex: {verts}."
        )
    return verts


def attach_faces_to_vertices(mesh: QuadMesh) -> None:
    """Record each face on its four vertices in face-iteration (raw) order."""
    for vertex in mesh.vertices:
        vertex.faces = []
    for face in mesh.faces:
        for vid in face.vertex_indices:
            mesh.vertices[vid].faces.append(face.index)


def set_up_edges(mesh: QuadMesh) -> None:
    """Create edges and link them to faces and vertices.

    A side shared by two faces gets a single edge: when a face slot is still
    empty, the raw face list of the slot's first vertex is searched for a face
    that already owns an edge along the same vertex pair.
    """
    mesh.edges = []
    for face in mesh.faces:
        face.edge_indices = [None] * 4
    for vertex in mesh.vertices:
        vertex.edges = []

    for face in mesh.faces:
        verts = face.vertex_indices
        for i in range(4):
            if face.edge_indices[i] is not None:
                continue
            a, b = verts[i], verts[(i + 1) % 4]

            shared: Optional[int] = None
            for other_id in mesh.vertices[a].faces:
                if other_id == face.index:
                    continue
                other = mesh.faces[other_id]
                k = other.has_side(a, b)
                if k is not None and other.edge_indices[k] is not None:
                    shared = other.edge_indices[k]
                    break

            if shared is not None:
                face.edge_indices[i] = shared
                mesh.edges[shared].add_face(face.index)
                continue

            edge = Edge(len(mesh.edges), a, b)
            edge.add_face(face.index)
            mesh.edges.append(edge)
            mesh.vertices[a].edges.append(edge.index)
            mesh.vertices[b].edges.append(edge.index)
            face.edge_indices[i] = edge.index


def build_quad_mesh(
    vertices: Iterable,
    faces: Iterable[Sequence[int]],
    *,
    parameters: GlobalParameters | None = None,
    strict: bool = False,
) -> QuadMesh:
    """Build a fully linked quad mesh.

    Args:
        vertices: ``VertexRecord`` objects, ``Vertex`` objects or plain
            ``(x, y, z)`` positions. Ids are assigned by position.
        faces: 4-tuples of 0-based vertex indices in cyclic order.
        parameters: optional parameter bag stored on the mesh.
        strict: raise :class:`MalformedFaceError` on the first bad face
            instead of logging and skipping it.

    Returns:
        A :class:`QuadMesh` with edges, rotational vertex fans, normals and
        bounding metrics computed.
    """
    mesh = QuadMesh(global_parameters=parameters)
    mesh.vertices = [_make_vertex(i, rec) for i, rec in enumerate(vertices)]

    n_verts = len(mesh.vertices)
    skipped = 0
    for position, indices in enumerate(faces):
        indices = list(indices)
        try:
            verts = _check_face(position, indices, n_verts)
        except MalformedFaceError as exc:
            if strict:
                raise
            logger.warning(str(exc))
            skipped += 1
            continue
        mesh.faces.append(Face(len(mesh.faces), verts))

    if skipped:
        logger.warning("Dropped %d malformed face(s).", skipped)

    attach_faces_to_vertices(mesh)
    set_up_edges(mesh)
    reorder_vertex_neighbors(mesh)
    mesh.refresh_geometry()
    return mesh


def simple_quad_mesh() -> QuadMesh:
    """A single quad spanning ``[-1, 1]^2`` in the z=0 plane."""
    corners = [
        (-1.0, -1.0, 0.0),
        (1.0, -1.0, 0.0),
        (1.0, 1.0, 0.0),
        (-1.0, 1.0, 0.0),
    ]
    return build_quad_mesh(corners, [(0, 1, 2, 3)])


def build_polyline_mesh(
    polylines: Iterable[np.ndarray], parameters: GlobalParameters | None = None
) -> QuadMesh:
    """Turn polylines into a face-free mesh of vertices joined by edges.

    Polylines with fewer than two points are skipped. Each point becomes a
    vertex with normal ``(0, 0, 1)`` and consecutive points are joined in
    traversal order.
    """
    mesh = QuadMesh(global_parameters=parameters)
    up = np.array([0.0, 0.0, 1.0])
    pairs = []
    for line in polylines:
        points = np.asarray(line, dtype=float)
        if len(points) < 2:
            continue
        first = len(mesh.vertices)
        for point in points:
            mesh.vertices.append(Vertex(len(mesh.vertices), point, normal=up))
        pairs.extend((k, k + 1) for k in range(first, first + len(points) - 1))
    attach_edges(mesh, pairs)
    mesh.compute_midpoint_and_radius()
    return mesh


def attach_edges(mesh: QuadMesh, pairs: Iterable[Sequence[int]]) -> None:
    """Append face-free edges joining the given vertex pairs."""
    for a, b in pairs:
        a, b = int(a), int(b)
        if not (0 <= a < mesh.num_vertices and 0 <= b < mesh.num_vertices):
            logger.warning("Skipping edge (%d, %d) with a missing vertex.", a, b)
            continue
        edge = Edge(len(mesh.edges), a, b)
        mesh.edges.append(edge)
        mesh.vertices[a].edges.append(edge.index)
        mesh.vertices[b].edges.append(edge.index)

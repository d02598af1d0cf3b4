"""Rotational neighbor ordering and manifold checks for quad meshes."""

import logging
from typing import List, Optional, Tuple

from core.exceptions import NonManifoldEdgeError, NonManifoldVertexError
from geometry.entities import QuadMesh

logger = logging.getLogger("quadfield")


def validate_manifold(mesh: QuadMesh) -> bool:
    """Check that every edge borders one or two faces.

    Raises:
        NonManifoldEdgeError: for the first edge shared by more than two faces.
    """
    for edge in mesh.edges:
        if len(edge.faces) > 2:
            raise NonManifoldEdgeError(edge.index, edge.faces)
    return True


def _walk_fan(
    mesh: QuadMesh, vertex_id: int, start_face: int, forward: bool, max_steps: int
) -> Tuple[List[int], List[int], bool]:
    """March around ``vertex_id`` from ``start_face``.

    Going forward crosses the edge preceding the vertex in each face cycle,
    going backward the edge following it. The start face is recorded only on
    the forward walk.

    Returns ``(faces, edges, closed)`` where ``closed`` is ``True`` when the
    walk came back to ``start_face``.
    """
    faces: List[int] = [start_face] if forward else []
    edges: List[int] = []
    face: Optional[int] = start_face

    for _ in range(max_steps):
        quad = mesh.faces[face]
        k = quad.slot_of(vertex_id)
        edge_id = quad.edge_indices[(k + 3) % 4] if forward else quad.edge_indices[k]
        if edges and edge_id == edges[-1]:
            # Neighbors list the shared side in the same direction.
            raise NonManifoldVertexError(
                vertex_id,
                f"Faces around vertex {vertex_id} are wound inconsistently "
                f"across edge {edge_id}.",
                visited_faces=faces,
                incident_faces=mesh.vertices[vertex_id].faces,
            )
        edges.append(edge_id)
        edge = mesh.edges[edge_id]
        if len(edge.faces) > 2:
            raise NonManifoldEdgeError(edge.index, edge.faces)
        face = edge.other_face(face)
        if face is None:
            return faces, edges, False
        if face == start_face:
            return faces, edges, True
        faces.append(face)

    # Only reachable when the adjacency loops without returning to the start.
    raise NonManifoldVertexError(
        vertex_id,
        f"Fan walk around vertex {vertex_id} did not terminate within "
        f"{max_steps} faces.",
        visited_faces=faces,
        incident_faces=mesh.vertices[vertex_id].faces,
    )


def order_vertex_fan(mesh: QuadMesh, vertex_id: int) -> Tuple[List[int], List[int]]:
    """Return the faces and edges around ``vertex_id`` in rotational order.

    Interior vertices yield a closed fan (as many edges as faces); boundary
    vertices yield one open arc that starts and ends on a boundary edge (one
    more edge than faces). Vertices without faces return their lists as-is.

    Raises:
        NonManifoldVertexError: when the incident faces form more than one fan.
        NonManifoldEdgeError: when the walk meets an edge with over two faces.
    """
    vertex = mesh.vertices[vertex_id]
    if not vertex.faces:
        return list(vertex.faces), list(vertex.edges)

    incident = vertex.faces
    # Each face is crossed at most once per walk, plus the step that closes it.
    max_steps = len(incident) + 1
    start_face = incident[0]

    forward_faces, forward_edges, closed = _walk_fan(
        mesh, vertex_id, start_face, True, max_steps
    )
    if closed:
        faces, edges = forward_faces, forward_edges
    else:
        backward_faces, backward_edges, backward_closed = _walk_fan(
            mesh, vertex_id, start_face, False, max_steps
        )
        if backward_closed:
            raise NonManifoldVertexError(
                vertex_id,
                f"Fan around vertex {vertex_id} is open going forward but "
                "closed going backward.",
                visited_faces=forward_faces + backward_faces,
                incident_faces=incident,
            )
        faces = backward_faces[::-1] + forward_faces
        edges = backward_edges[::-1] + forward_edges

    if len(faces) != len(incident) or set(faces) != set(incident):
        raise NonManifoldVertexError(
            vertex_id, visited_faces=faces, incident_faces=incident
        )
    if len(set(edges)) != len(edges) or set(edges) != set(vertex.edges):
        raise NonManifoldVertexError(
            vertex_id,
            f"Fan around vertex {vertex_id} lists edges {edges} but the "
            f"vertex has edges {sorted(vertex.edges)}.",
            visited_faces=faces,
            incident_faces=incident,
        )
    return faces, edges


def reorder_vertex_neighbors(mesh: QuadMesh) -> None:
    """Put every vertex's edge and face lists into rotational fan order."""
    for vertex in mesh.vertices:
        faces, edges = order_vertex_fan(mesh, vertex.index)
        vertex.faces = faces
        vertex.edges = edges
    logger.debug("Reordered neighbor fans for %d vertices.", mesh.num_vertices)


def is_boundary_vertex(mesh: QuadMesh, vertex_id: int) -> bool:
    """A vertex is on the boundary when one of its edges has a single face."""
    return any(
        len(mesh.edges[eid].faces) == 1 for eid in mesh.vertices[vertex_id].edges
    )

"""Custom exception types for the quad-mesh engine."""

from __future__ import annotations

from typing import Sequence


class QuadMeshError(Exception):
    """Base class for domain-specific errors."""


class MalformedFaceError(QuadMeshError):
    """Raised when a face record cannot be turned into a quad."""

    def __init__(
        self,
        position: int,
        vertex_indices: Sequence[int],
        message: str | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Face {position} {list(vertex_indices)} is malformed. "
                "Faces must name exactly 4 existing vertex indices."
            )
        super().__init__(message)
        self.position = position
        self.vertex_indices = tuple(vertex_indices)


class TopologyError(QuadMeshError):
    """Raised when mesh adjacency is not a manifold quad surface."""


class NonManifoldEdgeError(TopologyError):
    """Raised when an edge borders more than two faces."""

    def __init__(
        self,
        edge_index: int,
        face_indices: Sequence[int],
        message: str | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Edge {edge_index} is shared by {len(face_indices)} faces "
                f"{list(face_indices)}; at most 2 are allowed."
            )
        super().__init__(message)
        self.edge_index = edge_index
        self.face_indices = tuple(face_indices)


class NonManifoldVertexError(TopologyError):
    """Raised when the faces around a vertex do not form one connected fan."""

    def __init__(
        self,
        vertex_index: int,
        message: str | None = None,
        *,
        visited_faces: Sequence[int] = (),
        incident_faces: Sequence[int] = (),
    ) -> None:
        if message is None:
            message = (
                f"Vertex {vertex_index} is non-manifold: its fan reaches "
                f"{len(visited_faces)} of {len(incident_faces)} incident faces."
            )
        super().__init__(message)
        self.vertex_index = vertex_index
        self.visited_faces = tuple(visited_faces)
        self.incident_faces = tuple(incident_faces)


__all__ = [
    "QuadMeshError",
    "MalformedFaceError",
    "TopologyError",
    "NonManifoldEdgeError",
    "NonManifoldVertexError",
]

# entities.py

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import numpy as np

from parameters.global_parameters import GlobalParameters

logger = logging.getLogger("quadfield")


def _normalized(vec: np.ndarray) -> Optional[np.ndarray]:
    """Return ``vec`` scaled to unit length, or ``None`` if it has no length."""
    norm = np.linalg.norm(vec)
    if norm == 0.0 or not np.isfinite(norm):
        return None
    return vec / norm


@dataclass
class Vertex:
    index: int
    position: np.ndarray
    normal: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    scalar: float = 0.0
    vector: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    tensor: np.ndarray = field(default_factory=lambda: np.zeros((2, 2), dtype=float))
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))

    # Incident edge / face ids; rotational fan order once the mesh is built.
    edges: List[int] = field(default_factory=list)
    faces: List[int] = field(default_factory=list)

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.normal = np.array(self.normal, dtype=float)
        self.vector = np.array(self.vector, dtype=float)
        self.tensor = np.array(self.tensor, dtype=float).reshape(2, 2)
        self.offset = np.array(self.offset, dtype=float)
        self.scalar = float(self.scalar)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    def offset_position(self, offset: np.ndarray) -> None:
        """Move the vertex by ``offset`` and remember the displacement."""
        self.offset += offset
        self.position += offset

    def reset_position(self) -> None:
        """Undo every displacement applied through :meth:`offset_position`."""
        self.position -= self.offset
        self.offset = np.zeros(3, dtype=float)

    def compute_average_normal(self, mesh: "QuadMesh") -> None:
        """Set the normal to the normalized mean of the incident face normals."""
        if not self.faces:
            return
        total = np.zeros(3, dtype=float)
        for fid in self.faces:
            total += mesh.faces[fid].normal
        normal = _normalized(total / len(self.faces))
        if normal is not None:
            self.normal = normal


@dataclass
class Edge:
    index: int
    v1: int
    v2: int
    # Should hold 1 (boundary) or 2 (interior) faces on a manifold surface.
    faces: List[int] = field(default_factory=list)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    @property
    def is_boundary(self) -> bool:
        return len(self.faces) == 1

    def add_face(self, face_index: int) -> None:
        self.faces.append(face_index)

    def connects(self, a: int, b: int) -> bool:
        return (self.v1 == a and self.v2 == b) or (self.v1 == b and self.v2 == a)

    def other_vertex(self, vertex_index: int) -> int:
        if vertex_index == self.v1:
            return self.v2
        return self.v1

    def other_face(self, face_index: int) -> Optional[int]:
        """Return the face across this edge, or ``None`` unless it has two."""
        if len(self.faces) != 2:
            return None
        if face_index == self.faces[0]:
            return self.faces[1]
        return self.faces[0]

    def length(self, mesh: "QuadMesh") -> float:
        """Compute the length of the edge."""
        tail = mesh.vertices[self.v1].position
        head = mesh.vertices[self.v2].position
        return float(np.linalg.norm(head - tail))


@dataclass
class Face:
    index: int
    vertex_indices: List[int]
    # Slot i joins vertex_indices[i] and vertex_indices[(i + 1) % 4];
    # ``None`` until the topology builder fills it.
    edge_indices: List[Optional[int]] = field(default_factory=lambda: [None] * 4)
    normal: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    color: np.ndarray = field(
        default_factory=lambda: np.array([1.0, 1.0, 1.0, 1.0], dtype=float)
    )

    @property
    def num_vertices(self) -> int:
        return len(self.vertex_indices)

    def slot_of(self, vertex_index: int) -> int:
        """Position of ``vertex_index`` in this face's vertex cycle."""
        return self.vertex_indices.index(vertex_index)

    def has_side(self, a: int, b: int) -> Optional[int]:
        """Return the slot whose side joins ``a`` and ``b`` (either direction)."""
        verts = self.vertex_indices
        n = len(verts)
        for k in range(n):
            p, q = verts[k], verts[(k + 1) % n]
            if (p == a and q == b) or (p == b and q == a):
                return k
        return None

    def positions(self, mesh: "QuadMesh") -> np.ndarray:
        return np.array([mesh.vertices[v].position for v in self.vertex_indices])

    def compute_normal(self, mesh: "QuadMesh") -> None:
        """Unit normal from the first three vertices (assumes a planar quad)."""
        p0, p1, p2 = (mesh.vertices[v].position for v in self.vertex_indices[:3])
        normal = _normalized(np.cross(p1 - p0, p2 - p0))
        if normal is None:
            logger.debug("Face %d is degenerate; keeping a zero normal.", self.index)
            self.normal = np.zeros(3, dtype=float)
        else:
            self.normal = normal

    def centroid(self, mesh: "QuadMesh") -> np.ndarray:
        return self.positions(mesh).mean(axis=0)


@dataclass
class QuadMesh:
    vertices: List[Vertex] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    faces: List[Face] = field(default_factory=list)
    global_parameters: GlobalParameters = None

    midpoint: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    radius: float = 0.0

    def __post_init__(self):
        if self.global_parameters is None:
            self.global_parameters = GlobalParameters()

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        """A mesh without vertices is a failed construction."""
        return not self.vertices

    def positions_view(self) -> np.ndarray:
        """Return a dense ``(N_vertices, 3)`` array of vertex positions."""
        if not self.vertices:
            return np.zeros((0, 3), dtype=float)
        return np.array([v.position for v in self.vertices], dtype=float)

    @property
    def boundary_vertex_ids(self) -> Set[int]:
        """Return the set of vertex IDs that lie on the boundary of an open mesh."""
        boundary: Set[int] = set()
        for edge in self.edges:
            if len(edge.faces) == 1:
                boundary.add(edge.v1)
                boundary.add(edge.v2)
        return boundary

    def face_centroid(self, face_index: int) -> np.ndarray:
        return self.faces[face_index].centroid(self)

    def compute_face_normals(self) -> None:
        for face in self.faces:
            face.compute_normal(self)

    def average_vertex_normals(self) -> None:
        for vertex in self.vertices:
            vertex.compute_average_normal(self)

    def compute_midpoint_and_radius(self) -> None:
        """Center and half-diagonal of the axis-aligned bounding box."""
        if not self.vertices:
            self.midpoint = np.zeros(3, dtype=float)
            self.radius = 0.0
            return
        positions = self.positions_view()
        min_pt = positions.min(axis=0)
        max_pt = positions.max(axis=0)
        self.midpoint = 0.5 * (min_pt + max_pt)
        self.radius = 0.5 * float(np.linalg.norm(max_pt - min_pt))

    def refresh_geometry(self) -> None:
        """Recompute face normals, vertex normals and bounding metrics."""
        self.compute_face_normals()
        self.average_vertex_normals()
        self.compute_midpoint_and_radius()

    def model_transform(self) -> Tuple[float, np.ndarray]:
        """Return ``(scale, translation)`` that frames the mesh in a unit view.

        Positions map to ``scale * (p + translation)``; the mesh is centred on
        its midpoint and its bounding sphere shrunk to radius 0.9.
        """
        if self.radius == 0.0:
            return 1.0, -self.midpoint
        return 0.9 / self.radius, -self.midpoint

    def print_info(self) -> None:
        logger.info("Number of vertices: %d", self.num_vertices)
        logger.info("Number of edges: %d", self.num_edges)
        logger.info("Number of faces: %d", self.num_faces)

    def __str__(self):
        return (
            f"QuadMesh with {len(self.vertices)} vertices, {len(self.edges)} edges, "
            f"and {len(self.faces)} faces."
        )

    def __len__(self):
        return len(self.vertices) + len(self.edges) + len(self.faces)

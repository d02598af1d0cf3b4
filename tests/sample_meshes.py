import numpy as np

from geometry.mesh_builder import VertexRecord, build_quad_mesh


def grid_vertex(i, j, nx):
    """Id of grid vertex ``(i, j)`` in a grid with ``nx`` cells along x."""
    return j * (nx + 1) + i


def grid_records(nx, ny, spacing=1.0, vector=(1.0, 0.0, 0.0), scalar=None):
    """Vertex records of an ``nx`` by ``ny`` grid in the z=0 plane.

    ``vector`` is either a constant or a callable ``f(x, y)``; ``scalar`` is
    ``None`` (all zero) or a callable ``f(x, y)``.
    """
    records = []
    for j in range(ny + 1):
        for i in range(nx + 1):
            x, y = i * spacing, j * spacing
            vec = vector(x, y) if callable(vector) else vector
            s = scalar(x, y) if scalar is not None else 0.0
            records.append(VertexRecord(position=(x, y, 0.0), scalar=s, vector=vec))
    return records


def grid_faces(nx, ny):
    """Counter-clockwise quads of an ``nx`` by ``ny`` grid, row by row."""
    faces = []
    for j in range(ny):
        for i in range(nx):
            faces.append(
                (
                    grid_vertex(i, j, nx),
                    grid_vertex(i + 1, j, nx),
                    grid_vertex(i + 1, j + 1, nx),
                    grid_vertex(i, j + 1, nx),
                )
            )
    return faces


def grid_mesh(nx, ny, spacing=1.0, vector=(1.0, 0.0, 0.0), scalar=None, **kwargs):
    return build_quad_mesh(
        grid_records(nx, ny, spacing, vector, scalar), grid_faces(nx, ny), **kwargs
    )


def unit_quad(vectors=None, scalars=None):
    """A single counter-clockwise unit quad with optional per-corner data."""
    corners = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
    vectors = vectors or [(0.0, 0.0, 0.0)] * 4
    scalars = scalars or [0.0] * 4
    records = [
        VertexRecord(position=p, scalar=s, vector=v)
        for p, s, v in zip(corners, scalars, vectors)
    ]
    return build_quad_mesh(records, [(0, 1, 2, 3)])


def ply_text(records, faces, properties=("x", "y", "z", "s", "vx", "vy", "vz")):
    """Render an ASCII PLY document for ``records`` (lists of property values)."""
    lines = [
        "ply",
        "format ascii 1.0",
        "comment generated for tests",
        f"element vertex {len(records)}",
    ]
    lines += [f"property float {name}" for name in properties]
    lines += [
        f"element face {len(faces)}",
        "property list uchar int vertex_indices",
        "end_header",
    ]
    for values in records:
        lines.append(" ".join(repr(float(v)) for v in values))
    for face in faces:
        lines.append(" ".join(str(int(k)) for k in [len(face), *face]))
    return "\n".join(lines) + "\n"


def grid_ply_text(nx, ny, scalar=lambda x, y: x, vector=(1.0, 0.0, 0.0)):
    records = []
    for rec in grid_records(nx, ny, vector=vector, scalar=scalar):
        records.append([*rec.position, rec.scalar, *np.asarray(rec.vector)])
    return ply_text(records, grid_faces(nx, ny))

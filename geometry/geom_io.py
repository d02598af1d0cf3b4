# geom_io.py
import json
import logging
import os

import numpy as np
import yaml

from geometry.entities import QuadMesh
from geometry.mesh_builder import VertexRecord, attach_edges, build_quad_mesh
from parameters.global_parameters import GlobalParameters

logger = logging.getLogger("quadfield")

# Vertex properties understood in PLY files; anything else is read and ignored.
PLY_VERTEX_PROPERTIES = (
    "x", "y", "z",
    "nx", "ny", "nz",
    "s",
    "vx", "vy", "vz",
    "t00", "t01", "t10", "t11",
)


def _ply_record(values: dict) -> VertexRecord:
    return VertexRecord(
        position=(values["x"], values["y"], values["z"]),
        normal=(values["nx"], values["ny"], values["nz"]),
        scalar=values["s"],
        vector=(values["vx"], values["vy"], values["vz"]),
        tensor=((values["t00"], values["t01"]), (values["t10"], values["t11"])),
    )


def _read_ply(lines):
    """Parse PLY text into vertex records and raw face index lists.

    Raises:
        ValueError: on a bad header, bad numbers or a truncated body.
        IndexError: on an element line without a count.
    """
    it = iter(lines)
    if next(it, None) != "ply":
        raise ValueError("Not a valid .ply file")
    if next(it, None) != "format ascii 1.0":
        raise ValueError("Only ASCII .ply files are supported")

    num_vertices = num_faces = 0
    vertex_props = []
    reading_vertex_props = False
    header_done = False
    for line in it:
        if line.startswith("element vertex"):
            num_vertices = int(line.split()[2])
            reading_vertex_props = True
        elif line.startswith("property") and reading_vertex_props:
            vertex_props.append(line.split()[2])
        elif line.startswith("element face"):
            num_faces = int(line.split()[2])
            reading_vertex_props = False
        elif line == "end_header":
            header_done = True
            break
    if not header_done:
        raise ValueError("Invalid .ply header")

    # Properties missing from a line keep the value of the previous vertex.
    values = dict.fromkeys(PLY_VERTEX_PROPERTIES, 0.0)
    records = []
    for _ in range(num_vertices):
        line = next(it, None)
        if line is None:
            raise ValueError("Unexpected end of file while reading vertices")
        for name, token in zip(vertex_props, line.split()):
            if name in values:
                values[name] = float(token)
        records.append(_ply_record(values))

    faces = []
    for i in range(num_faces):
        line = next(it, None)
        if line is None:
            raise ValueError("Unexpected end of file while reading faces")
        tokens = line.split()
        if not tokens:
            logger.warning("Skipping empty face line %d.", i)
            continue
        n = int(tokens[0])
        faces.append([int(tok) for tok in tokens[1 : n + 1]])
    return records, faces


def load_ply(filename, parameters: GlobalParameters | None = None) -> QuadMesh:
    """Load a quad mesh from an ASCII PLY file.

    Reading problems never raise: an unreadable file, a bad header, a binary
    format, non-ASCII text or a truncated body are logged and produce an
    empty mesh. Faces that are not quads or that reference missing vertices
    are skipped.
    """
    filename = str(filename)
    if not os.path.isfile(filename):
        logger.error("Could not open .ply file: %s", filename)
        return QuadMesh(global_parameters=parameters)

    with open(filename, "rb") as f:
        raw = f.read()
    # Lines are decoded on demand so a binary body is never decoded.
    lines = (line.decode("ascii") for line in raw.splitlines())
    try:
        records, faces = _read_ply(lines)
    except (UnicodeDecodeError, ValueError, IndexError) as exc:
        logger.error("%s: %s", exc, filename)
        return QuadMesh(global_parameters=parameters)

    mesh = build_quad_mesh(records, faces, parameters=parameters)
    logger.info("Opened quad mesh from %s", filename)
    mesh.print_info()
    return mesh


def load_data(filename):
    """Load a mesh document from a JSON or YAML file.

    Expected format:
    {
        "vertices": [[x, y, z], {"position": [x, y, z], "scalar": s, ...}, ...],
        "faces": [[i, j, k, l], ...],
        "global_parameters": {"step_size": 0.1, ...}
    }"""
    filename_str = str(filename)
    with open(filename_str, "r") as f:
        if filename_str.endswith((".yaml", ".yml")):
            data = yaml.safe_load(f)
        elif filename_str.endswith(".json"):
            data = json.load(f)
        else:
            logger.error(f"Unsupported file format for: {filename_str}")
            raise ValueError(f"Unsupported file format for: {filename_str}")

    return data


def _parse_vertex(entry) -> VertexRecord:
    if isinstance(entry, dict):
        return VertexRecord(
            position=entry["position"],
            normal=entry.get("normal", (0.0, 0.0, 0.0)),
            scalar=float(entry.get("scalar", 0.0)),
            vector=entry.get("vector", (0.0, 0.0, 0.0)),
            tensor=entry.get("tensor", ((0.0, 0.0), (0.0, 0.0))),
        )
    if len(entry) != 3:
        raise ValueError(f"Vertex entry must have 3 coordinates, got {entry!r}")
    return VertexRecord(position=entry)


def parse_mesh(data: dict, parameters: GlobalParameters | None = None) -> QuadMesh:
    """Build a :class:`QuadMesh` from a loaded mesh document.

    ``parameters`` is the base bag; the document's ``global_parameters``
    take precedence over it.
    """
    params = parameters.copy() if parameters is not None else GlobalParameters()
    params.update(data.get("global_parameters") or {})
    records = [_parse_vertex(entry) for entry in data.get("vertices", [])]
    mesh = build_quad_mesh(records, data.get("faces", []), parameters=params)
    if not mesh.faces and data.get("edges"):
        attach_edges(mesh, data["edges"])
    mesh.print_info()
    return mesh


def load_mesh(filename, parameters: GlobalParameters | None = None) -> QuadMesh:
    """Load a mesh from ``.ply``, ``.json`` or ``.yaml``/``.yml``."""
    filename_str = str(filename)
    if filename_str.lower().endswith(".ply"):
        return load_ply(filename_str, parameters=parameters)
    return parse_mesh(load_data(filename_str), parameters=parameters)


def save_mesh(mesh: QuadMesh, path: str = "outputs/mesh.json", *, compact: bool = False):
    """Write ``mesh`` as a JSON mesh document readable by :func:`parse_mesh`.

    Face-free meshes (e.g. resampled streamlines) also store their edges.
    """
    data = {
        "vertices": [
            {
                "position": v.position.tolist(),
                "normal": v.normal.tolist(),
                "scalar": v.scalar,
                "vector": v.vector.tolist(),
                "tensor": v.tensor.tolist(),
            }
            for v in mesh.vertices
        ],
        "faces": [list(f.vertex_indices) for f in mesh.faces],
        "global_parameters": mesh.global_parameters.to_dict(),
    }
    if not mesh.faces and mesh.edges:
        data["edges"] = [[e.v1, e.v2] for e in mesh.edges]

    with open(path, "w") as f:
        if compact:
            json.dump(data, f, separators=(",", ":"), ensure_ascii=False)
        else:
            json.dump(data, f, indent=4, ensure_ascii=False)


def render_buffers(mesh: QuadMesh):
    """Flatten a mesh into vertex and triangle index buffers.

    Returns:
        vertex_data: ``(N, 10)`` float32 rows ``[x y z nx ny nz s vx vy vz]``
            in vertex-id order.
        index_data: ``(6 * F,)`` uint32 indices; each quad ``(v0, v1, v2, v3)``
            contributes triangles ``(v0, v1, v2)`` and ``(v2, v3, v0)``.
    """
    vertex_data = np.empty((mesh.num_vertices, 10), dtype=np.float32)
    for v in mesh.vertices:
        vertex_data[v.index, 0:3] = v.position
        vertex_data[v.index, 3:6] = v.normal
        vertex_data[v.index, 6] = v.scalar
        vertex_data[v.index, 7:10] = v.vector

    index_data = np.empty(mesh.num_faces * 6, dtype=np.uint32)
    for k, face in enumerate(mesh.faces):
        v0, v1, v2, v3 = face.vertex_indices
        index_data[6 * k : 6 * k + 6] = (v0, v1, v2, v2, v3, v0)
    return vertex_data, index_data

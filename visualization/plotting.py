import logging
from typing import Any, Iterable, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import colors
from mpl_toolkits.mplot3d.art3d import Line3DCollection, Poly3DCollection

from geometry.entities import QuadMesh

logger = logging.getLogger("quadfield")


def plot_quad_mesh(
    mesh: QuadMesh,
    streamlines: Optional[Iterable[np.ndarray]] = None,
    ax=None,
    color_by_scalar: bool = False,
    cmap: str = "viridis",
    transparent: bool = False,
    draw_faces: bool = True,
    draw_edges: bool = False,
    face_color: Any = None,
    edge_color: str = "k",
    streamline_color: str = "tab:red",
    show_indices: bool = False,
    no_axes: bool = False,
    title: Optional[str] = None,
    show: bool = True,
):
    """
    Visualize a quad mesh and optional streamlines in 3D using Matplotlib.

    Parameters
    ----------
    mesh :
        The :class:`~geometry.entities.QuadMesh` to draw.
    streamlines : iterable of (K, 3) arrays, optional
        Polylines drawn on top of the surface.
    ax : mpl_toolkits.mplot3d.Axes3D, optional
        Axis to draw into. If omitted, a new figure and axis are created.
    color_by_scalar : bool, optional
        Shade each face by the mean scalar of its vertices.
    draw_faces, draw_edges : bool, optional
        Toggle filled quads and edge segments. Face-free meshes (e.g.
        resampled streamline meshes) always have their edges drawn.
    show : bool, optional
        If ``True`` (default), call :func:`matplotlib.pyplot.show`.

    Returns
    -------
    The axis that was drawn into, or ``None`` for an empty mesh.
    """
    if mesh.is_empty:
        logger.warning("Mesh has no vertices to visualize.")
        return None

    draw_edges = bool(draw_edges or (not mesh.faces and mesh.edges))

    if ax is None:
        fig = plt.figure()
        ax = fig.add_subplot(111, projection="3d")

    positions = mesh.positions_view()

    if draw_faces and mesh.faces:
        quads = [positions[face.vertex_indices] for face in mesh.faces]
        if color_by_scalar:
            scalars = np.array([v.scalar for v in mesh.vertices])
            face_values = [scalars[face.vertex_indices].mean() for face in mesh.faces]
            norm = colors.Normalize(vmin=scalars.min(), vmax=scalars.max())
            face_colors = plt.get_cmap(cmap)(norm(face_values))
        else:
            default = face_color if face_color is not None else (0.6, 0.8, 1.0)
            face_colors = [default] * len(quads)

        collection = Poly3DCollection(
            quads,
            alpha=0.4 if transparent else 1.0,
            edgecolor="k" if draw_edges else edge_color,
            linewidths=0.5 if draw_edges else 0.0,
        )
        collection.set_facecolor(face_colors)
        ax.add_collection3d(collection)

    if draw_edges and mesh.edges:
        pairs = np.array([(e.v1, e.v2) for e in mesh.edges])
        ax.add_collection3d(
            Line3DCollection(list(positions[pairs]), colors=edge_color, linewidths=0.5)
        )

    if streamlines is not None:
        for line in streamlines:
            line = np.asarray(line, dtype=float)
            if len(line) < 2:
                continue
            ax.plot(line[:, 0], line[:, 1], line[:, 2], color=streamline_color, lw=1.0)

    if show_indices:
        for v in mesh.vertices:
            ax.text(*v.position, f"{v.index}", color="k", fontsize=8)

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_zlabel("Z")
    ax.set_title(title or str(mesh))

    # Frame the bounding sphere with equal aspect.
    reach = mesh.radius if mesh.radius > 0.0 else 1.0
    mid = mesh.midpoint
    ax.set_xlim(mid[0] - reach, mid[0] + reach)
    ax.set_ylim(mid[1] - reach, mid[1] + reach)
    ax.set_zlim(mid[2] - reach, mid[2] + reach)

    if no_axes:
        ax.set_axis_off()

    plt.tight_layout()

    if show:
        plt.show()
    return ax

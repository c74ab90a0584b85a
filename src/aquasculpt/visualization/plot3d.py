"""3D preview rendering of creature meshes.

Draws triangles as a matplotlib ``Poly3DCollection`` with one face color per
part label, so each anatomical part is distinguishable at a glance.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt
from matplotlib.figure import Figure
from mpl_toolkits.mplot3d import Axes3D
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from aquasculpt.anatomy.labels import PartLabel
from aquasculpt.mesh import MeshBuffers

logger = logging.getLogger(__name__)

# RGB float tuples per part label; unlabelled falls back to grey.
LABEL_COLORS: dict[int, tuple[float, float, float]] = {
    PartLabel.BODY: (0.35, 0.55, 0.75),
    PartLabel.PELVIC: (0.95, 0.6, 0.2),
    PartLabel.HEAD: (0.3, 0.7, 0.45),
    PartLabel.EYE: (0.1, 0.1, 0.1),
    PartLabel.MOUTH: (0.8, 0.2, 0.2),
    PartLabel.MEDIAN_FIN: (0.6, 0.4, 0.8),
    PartLabel.PECTORAL: (0.95, 0.85, 0.3),
    PartLabel.CAUDAL: (0.2, 0.75, 0.8),
}
_UNLABELLED_COLOR: tuple[float, float, float] = (0.6, 0.6, 0.6)


def face_colors(buffers: MeshBuffers) -> np.ndarray:
    """Return (T, 3) RGB colors, one per triangle, from its first vertex's label."""
    if buffers.triangle_count == 0:
        return np.zeros((0, 3), dtype=np.float64)
    first = buffers.labels[buffers.indices[:, 0].astype(np.int64)]
    return np.array(
        [LABEL_COLORS.get(int(label), _UNLABELLED_COLOR) for label in first],
        dtype=np.float64,
    )


def plot_mesh(
    buffers: MeshBuffers,
    ax: Axes3D | None = None,
    *,
    title: str = "Creature mesh",
    edge_width: float = 0.1,
) -> Figure:
    """Plot *buffers* as shaded triangles colored by part label.

    Axes are the mesh's own X/Y/Z with an equal-aspect bounding cube.

    Args:
        buffers: Frozen mesh.
        ax: Existing Axes3D to draw on. If None, a new figure is created.
        title: Axes title.
        edge_width: Line width of triangle edges (0 hides them).

    Returns:
        The matplotlib Figure containing the plot.
    """
    if ax is None:
        fig = plt.figure(figsize=(8, 6))
        ax = fig.add_subplot(111, projection="3d")  # type: ignore[assignment]
    else:
        raw_fig = ax.get_figure()
        if not isinstance(raw_fig, Figure):
            raise ValueError("ax has no figure or is a SubFigure")
        fig = raw_fig

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_zlabel("Z")
    ax.set_title(title)

    if buffers.triangle_count == 0:
        logger.warning("plot_mesh: mesh has no triangles")
        return fig

    triangles = buffers.positions[buffers.indices.astype(np.int64)]
    collection = Poly3DCollection(
        triangles,
        facecolors=face_colors(buffers),
        edgecolors=(0.0, 0.0, 0.0, 0.3),
        linewidths=edge_width,
    )
    ax.add_collection3d(collection)

    lo = buffers.positions.min(axis=0)
    hi = buffers.positions.max(axis=0)
    max_range = float((hi - lo).max())
    if max_range > 0:
        centers = (lo + hi) / 2.0
        for set_lim, center in zip(
            [ax.set_xlim, ax.set_ylim, ax.set_zlim], centers, strict=True
        ):
            set_lim(center - max_range / 2.0, center + max_range / 2.0)

    return fig


def save_preview(buffers: MeshBuffers, output_path: str | Path, **kwargs: object) -> Path:
    """Render :func:`plot_mesh` to an image file and close the figure.

    Args:
        buffers: Frozen mesh.
        output_path: Image path; the extension picks the format (``.png``...).
        **kwargs: Forwarded to :func:`plot_mesh`.

    Returns:
        The path written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = plot_mesh(buffers, **kwargs)  # type: ignore[arg-type]
    try:
        fig.savefig(output_path, dpi=120, bbox_inches="tight")
    finally:
        plt.close(fig)
    logger.info("Saved preview to %s", output_path)
    return output_path


__all__ = ["LABEL_COLORS", "face_colors", "plot_mesh", "save_preview"]

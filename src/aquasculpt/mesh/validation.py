"""Topological and numeric checks on frozen mesh buffers."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

import numpy as np

from .builder import MeshBuffers

# Triangles with an area below this are reported as degenerate.
DEGENERATE_AREA: float = 1e-12


@dataclass(frozen=True)
class MeshSummary:
    """Counts and health flags for one mesh.

    Attributes:
        vertex_count: Number of vertices.
        triangle_count: Number of triangles.
        bounds_min: Per-axis minimum of the positions.
        bounds_max: Per-axis maximum of the positions.
        all_finite: True when no position is NaN or infinite.
        open_edges: Edges used by exactly one triangle.
        nonmanifold_edges: Edges used by more than two triangles.
        degenerate_triangles: Triangles with (near) zero area.
        label_counts: Vertex count per part label.
    """

    vertex_count: int
    triangle_count: int
    bounds_min: tuple[float, float, float]
    bounds_max: tuple[float, float, float]
    all_finite: bool
    open_edges: int
    nonmanifold_edges: int
    degenerate_triangles: int
    label_counts: dict[int, int] = field(default_factory=dict)

    @property
    def watertight(self) -> bool:
        return self.open_edges == 0 and self.nonmanifold_edges == 0


def edge_face_counts(indices: np.ndarray) -> Counter[tuple[int, int]]:
    """Number of triangles sharing each undirected edge."""
    tris = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    counts: Counter[tuple[int, int]] = Counter()
    for a, b, c in tris.tolist():
        for u, v in ((a, b), (b, c), (c, a)):
            counts[(u, v) if u < v else (v, u)] += 1
    return counts


def is_watertight(indices: np.ndarray) -> bool:
    """True if every edge is shared by exactly two triangles."""
    counts = edge_face_counts(indices)
    return bool(counts) and all(n == 2 for n in counts.values())


def degenerate_triangles(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Indices of triangles with a repeated vertex or (near) zero area."""
    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    tris = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    if tris.size == 0:
        return np.zeros(0, dtype=np.int64)
    a, b, c = pos[tris[:, 0]], pos[tris[:, 1]], pos[tris[:, 2]]
    area = 0.5 * np.linalg.norm(np.cross(b - a, c - a), axis=1)
    repeated = (
        (tris[:, 0] == tris[:, 1]) | (tris[:, 1] == tris[:, 2]) | (tris[:, 0] == tris[:, 2])
    )
    return np.flatnonzero(repeated | (area <= DEGENERATE_AREA))


def summarize_mesh(buffers: MeshBuffers) -> MeshSummary:
    """Compute a :class:`MeshSummary` for *buffers*."""
    positions = np.asarray(buffers.positions, dtype=np.float64)
    if positions.size:
        lo = tuple(float(v) for v in positions.min(axis=0))
        hi = tuple(float(v) for v in positions.max(axis=0))
    else:
        lo = hi = (0.0, 0.0, 0.0)

    counts = edge_face_counts(buffers.indices)
    labels, label_sizes = np.unique(np.asarray(buffers.labels), return_counts=True)

    return MeshSummary(
        vertex_count=buffers.vertex_count,
        triangle_count=buffers.triangle_count,
        bounds_min=lo,
        bounds_max=hi,
        all_finite=bool(np.isfinite(positions).all()),
        open_edges=sum(1 for n in counts.values() if n == 1),
        nonmanifold_edges=sum(1 for n in counts.values() if n > 2),
        degenerate_triangles=int(degenerate_triangles(positions, buffers.indices).size),
        label_counts={int(k): int(v) for k, v in zip(labels, label_sizes, strict=True)},
    )


__all__ = [
    "DEGENERATE_AREA",
    "MeshSummary",
    "degenerate_triangles",
    "edge_face_counts",
    "is_watertight",
    "summarize_mesh",
]

"""Unit tests for mesh topology checks and summaries."""

from __future__ import annotations

import numpy as np

from aquasculpt.mesh import (
    MeshBuilder,
    degenerate_triangles,
    edge_face_counts,
    is_watertight,
    summarize_mesh,
)

TETRA_POS = np.array(
    [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
)
TETRA_TRIS = np.array([[0, 2, 1], [0, 1, 3], [1, 2, 3], [0, 3, 2]])


def test_tetrahedron_is_watertight() -> None:
    counts = edge_face_counts(TETRA_TRIS)
    assert len(counts) == 6
    assert set(counts.values()) == {2}
    assert is_watertight(TETRA_TRIS)


def test_open_surface_is_not_watertight() -> None:
    assert not is_watertight(TETRA_TRIS[:3])
    assert not is_watertight(np.zeros((0, 3), dtype=np.int64))


def test_degenerate_triangles_detected() -> None:
    positions = np.vstack([TETRA_POS, [[2.0, 0.0, 0.0]]])
    tris = np.array([[0, 1, 2], [0, 1, 4], [3, 3, 2]])
    assert degenerate_triangles(positions, tris).tolist() == [1, 2]


def test_summarize_capped_tube() -> None:
    builder = MeshBuilder()
    tube = builder.create_ring_spline(
        8,
        10,
        [[0.0, 0.0, 0.0], [0.0, 0.0, 1.0]],
        [[0.1, 0.1, 1.0], [0.1, 0.1, 1.0]],
        end_pole_offset=(0.0, 0.0, 0.1),
        begin_pole_offset=(0.0, 0.0, -0.1),
    )
    builder.assign_label(tube.rings[0], 0)
    summary = summarize_mesh(builder.freeze())

    assert summary.vertex_count == 82
    assert summary.triangle_count == 160
    assert summary.watertight
    assert summary.all_finite
    assert summary.degenerate_triangles == 0
    assert summary.label_counts == {-1: 74, 0: 8}
    assert summary.bounds_min[2] < 0.0

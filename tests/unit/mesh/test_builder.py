"""Unit tests for MeshBuilder primitives, affine edits, handles and freezing."""

from __future__ import annotations

import logging

import numpy as np
import pytest
import torch
from numpy.testing import assert_allclose

from aquasculpt.mesh import (
    POLE_COLOR,
    RING_COLOR,
    DegenerateVector,
    InvalidRingLength,
    MeshBuilder,
    MeshError,
    Ring,
    StaleHandleError,
    VertexSet,
    is_watertight,
    union,
)

TUBE_POS = [[0.0, 0.0, 0.0], [0.0, 0.1, 0.5], [0.0, 0.0, 1.0]]
TUBE_SCALE = [[0.1, 0.1, 1.0], [0.2, 0.15, 1.0], [0.05, 0.05, 1.0]]


@pytest.fixture
def builder() -> MeshBuilder:
    return MeshBuilder()


# ---------------------------------------------------------------------------
# Rings and extrusion
# ---------------------------------------------------------------------------


def test_create_ring_positions(builder: MeshBuilder) -> None:
    """Ring vertices lie on the ellipse, CCW from +X, at the requested centre."""
    ring = builder.create_ring(4, 2.0, 1.0, (0.0, 0.0, 5.0))
    assert isinstance(ring, Ring)
    assert len(ring) == 4
    assert_allclose(
        builder.positions_of(ring),
        [[2.0, 0.0, 5.0], [0.0, 1.0, 5.0], [-2.0, 0.0, 5.0], [0.0, -1.0, 5.0]],
        atol=1e-12,
    )
    assert_allclose(builder.colors[0], RING_COLOR)
    assert builder.triangle_count == 0


def test_create_ring_too_small_degrades(
    builder: MeshBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        ring = builder.create_ring(2, 1.0, 1.0)
    assert len(ring) == 0
    assert builder.vertex_count == 0
    assert "at least 3" in caplog.text


def test_create_ring_too_small_strict_raises() -> None:
    with pytest.raises(InvalidRingLength):
        MeshBuilder(strict=True).create_ring(2, 1.0, 1.0)


def test_extrude_ring_offsets_every_vertex(builder: MeshBuilder) -> None:
    """result[i] == ring[i] + offset and 2 * n bridge triangles are emitted."""
    ring = builder.create_ring(6, 1.0, 0.5)
    offset = np.array([0.1, -0.2, 0.7])
    extruded = builder.extrude_ring(ring, offset)

    assert len(extruded) == len(ring)
    assert_allclose(
        builder.positions_of(extruded), builder.positions_of(ring) + offset
    )
    assert builder.triangle_count == 12


def test_extrude_empty_ring_is_noop(builder: MeshBuilder) -> None:
    result = builder.extrude_ring(VertexSet((), builder.builder_id), (0.0, 0.0, 1.0))
    assert len(result) == 0
    assert builder.vertex_count == 0


def test_fill_ring_pole_adds_one_vertex(builder: MeshBuilder) -> None:
    ring = builder.create_ring(8, 1.0, 1.0, (0.0, 0.0, 2.0))
    pole = builder.fill_ring_pole(ring, (0.0, 0.0, 0.5))
    assert len(pole) == 1
    assert_allclose(builder.position(pole[0]), [0.0, 0.0, 2.5], atol=1e-12)
    assert_allclose(builder.colors[pole[0]], POLE_COLOR)
    assert builder.triangle_count == 8


def test_fill_ring_fan_adds_no_vertices(builder: MeshBuilder) -> None:
    ring = builder.create_ring(5, 1.0, 1.0)
    result = builder.fill_ring_fan(ring)
    assert len(result) == 0
    assert builder.vertex_count == 5
    assert builder.triangle_count == 4
    # reverse currently emits the same winding
    builder.fill_ring_fan(ring, reverse=True)
    tris = builder.triangles
    assert_allclose(tris[:4], tris[4:])


# ---------------------------------------------------------------------------
# Affine edits
# ---------------------------------------------------------------------------


def test_rotate_and_scale_identities(builder: MeshBuilder) -> None:
    """Zero rotation and unit scale leave positions unchanged."""
    ring = builder.create_ring(8, 0.3, 0.2, (0.5, 0.1, -0.2))
    before = builder.positions_of(ring)
    builder.rotate_around_point(ring, (1.0, 2.0, 3.0), (0.0, 0.0, 0.0))
    builder.scale_around_point(ring, (1.0, 2.0, 3.0), (1.0, 1.0, 1.0))
    assert_allclose(builder.positions_of(ring), before)


def test_scale_around_point(builder: MeshBuilder) -> None:
    ring = builder.create_ring(4, 1.0, 1.0, (0.0, 0.0, 1.0))
    builder.scale_around_point(ring, (0.0, 0.0, 1.0), (2.0, 3.0, 1.0))
    assert_allclose(builder.position(ring[0]), [2.0, 0.0, 1.0], atol=1e-12)
    assert_allclose(builder.position(ring[1]), [0.0, 3.0, 1.0], atol=1e-12)


def test_repeated_indices_transform_once(builder: MeshBuilder) -> None:
    """A vertex listed twice in a handle is still moved once."""
    ring = builder.create_ring(4, 1.0, 1.0)
    doubled = union(ring, ring)
    builder.translate(doubled, (0.0, 1.0, 0.0))
    assert_allclose(builder.position(ring[0]), [1.0, 1.0, 0.0], atol=1e-12)


def test_bend_zero_amount_is_identity(builder: MeshBuilder) -> None:
    ring = builder.create_ring(8, 0.2, 0.2, (0.0, 0.0, 0.5))
    before = builder.positions_of(ring)
    builder.bend(ring, 0.0, (0.0, 0.0, 0.0), 1.0)
    assert_allclose(builder.positions_of(ring), before)


def test_bend_full_distance_moves_by_amount(builder: MeshBuilder) -> None:
    """origin + max_length along scale_axis moves exactly amount along apply_axis."""
    tip = builder.add_vertices([[0.0, 0.0, 2.0]])
    root = builder.add_vertices([[0.0, 0.0, 1.0]])
    behind = builder.add_vertices([[0.0, 0.0, 0.0]])
    builder.bend(union(tip, root, behind), 0.3, (0.0, 0.0, 1.0), 1.0, 2, 1)

    assert_allclose(builder.position(tip[0]), [0.0, 0.3, 2.0])
    assert_allclose(builder.position(root[0]), [0.0, 0.0, 1.0])
    assert_allclose(builder.position(behind[0]), [0.0, 0.0, 0.0])


def test_bend_quartic_falloff(builder: MeshBuilder) -> None:
    half = builder.add_vertices([[0.0, 0.0, 0.5]])
    builder.bend(half, 1.0, (0.0, 0.0, 0.0), 1.0)
    assert builder.position(half[0])[1] == pytest.approx(0.5**4)


def test_bend_invalid_arguments(caplog: pytest.LogCaptureFixture) -> None:
    lenient = MeshBuilder()
    verts = lenient.add_vertices([[0.0, 0.0, 1.0]])
    with caplog.at_level(logging.WARNING):
        lenient.bend(verts, 1.0, (0.0, 0.0, 0.0), 0.0)
        lenient.bend(verts, 1.0, (0.0, 0.0, 0.0), 1.0, scale_axis=5)
    assert_allclose(lenient.position(verts[0]), [0.0, 0.0, 1.0])

    strict = MeshBuilder(strict=True)
    verts = strict.add_vertices([[0.0, 0.0, 1.0]])
    with pytest.raises(DegenerateVector):
        strict.bend(verts, 1.0, (0.0, 0.0, 0.0), -1.0)
    with pytest.raises(MeshError):
        strict.bend(verts, 1.0, (0.0, 0.0, 0.0), 1.0, apply_axis=3)


# ---------------------------------------------------------------------------
# Ring splines
# ---------------------------------------------------------------------------


def test_capped_ring_spline_is_watertight(builder: MeshBuilder) -> None:
    """An 8 x 10 capped ring spline has 8 * 10 + 2 vertices and no open edges."""
    tube = builder.create_ring_spline(
        8,
        10,
        TUBE_POS,
        TUBE_SCALE,
        end_pole_offset=(0.0, 0.0, 0.05),
        begin_pole_offset=(0.0, 0.0, -0.05),
    )
    assert builder.vertex_count == 82
    assert len(tube.rings) == 10
    assert len(tube.all) == 82
    assert tube.start_pole is not None and tube.end_pole is not None
    assert is_watertight(builder.triangles)


def test_ring_spline_first_ring_matches_samples(builder: MeshBuilder) -> None:
    tube = builder.create_ring_spline(8, 4, TUBE_POS, TUBE_SCALE)
    first = builder.positions_of(tube.first_ring)
    assert_allclose(first.mean(axis=0), TUBE_POS[0], atol=1e-12)
    assert first[:, 0].max() == pytest.approx(0.1)


def test_uncapped_ring_spline_is_open(builder: MeshBuilder) -> None:
    tube = builder.create_ring_spline(
        6, 5, TUBE_POS, TUBE_SCALE, fill_end=False, fill_start=False
    )
    assert tube.start_pole is None and tube.end_pole is None
    assert builder.vertex_count == 30
    assert not is_watertight(builder.triangles)


def test_ring_spline_zero_rings_degrades(
    builder: MeshBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        tube = builder.create_ring_spline(8, 0, TUBE_POS, TUBE_SCALE)
    assert tube.rings == ()
    assert builder.vertex_count == 0


def test_ring_chain_uses_explicit_samples(builder: MeshBuilder) -> None:
    centres = [[0.0, 0.0, 0.0], [0.0, 1.0, 1.0]]
    radii = [[1.0, 1.0, 1.0], [0.5, 0.25, 1.0]]
    chain = builder.create_ring_chain(4, centres, radii, fill_end=False, fill_start=False)
    last = builder.positions_of(chain.last_ring)
    assert_allclose(last[0], [0.5, 1.0, 1.0], atol=1e-12)
    assert_allclose(last[1], [0.0, 1.25, 1.0], atol=1e-12)


def test_ring_chain_rejects_mismatched_inputs(builder: MeshBuilder) -> None:
    with pytest.raises(ValueError):
        builder.create_ring_chain(4, [[0.0, 0.0, 0.0]], [])


# ---------------------------------------------------------------------------
# Handles, attributes and freezing
# ---------------------------------------------------------------------------


def test_handle_from_other_builder_is_rejected(builder: MeshBuilder) -> None:
    other = MeshBuilder()
    ring = other.create_ring(4, 1.0, 1.0)
    with pytest.raises(StaleHandleError):
        builder.translate(ring, (1.0, 0.0, 0.0))
    with pytest.raises(StaleHandleError):
        builder.create_ring(4, 1.0, 1.0) + ring


def test_frozen_builder_rejects_edits(builder: MeshBuilder) -> None:
    ring = builder.create_ring(4, 1.0, 1.0)
    builder.freeze()
    assert builder.frozen
    with pytest.raises(StaleHandleError):
        builder.translate(ring, (1.0, 0.0, 0.0))
    with pytest.raises(StaleHandleError):
        builder.create_ring(4, 1.0, 1.0)
    with pytest.raises(StaleHandleError):
        builder.freeze()


def test_subset_bounds_checked(builder: MeshBuilder) -> None:
    builder.create_ring(4, 1.0, 1.0)
    assert list(builder.subset([0, 3])) == [0, 3]
    with pytest.raises(IndexError):
        builder.subset([4])


def test_add_triangles_bounds_checked(builder: MeshBuilder) -> None:
    builder.add_vertices(np.zeros((3, 3)))
    builder.add_triangles([[0, 1, 2]])
    assert builder.triangle_count == 1
    with pytest.raises(IndexError):
        builder.add_triangles([[0, 1, 3]])


def test_freeze_produces_readonly_buffers(builder: MeshBuilder) -> None:
    ring = builder.create_ring(4, 1.0, 1.0)
    builder.fill_ring_pole(ring)
    builder.assign_label(ring, 3)
    builder.assign_pivot(ring, (0.0, 1.0, 0.0))
    buffers = builder.freeze(metadata={"run_id": "abc"})

    assert buffers.positions.dtype == np.float32
    assert buffers.indices.dtype == np.uint32
    assert buffers.indices.shape == (4, 3)
    assert buffers.labels.dtype == np.int32
    assert buffers.labels.tolist() == [3, 3, 3, 3, -1]
    assert_allclose(buffers.pivots[0], [0.0, 1.0, 0.0])
    assert buffers.metadata["run_id"] == "abc"
    with pytest.raises(ValueError):
        buffers.positions[0, 0] = 1.0


def test_flat_layout(builder: MeshBuilder) -> None:
    ring = builder.create_ring(4, 1.0, 1.0)
    builder.fill_ring_pole(ring)
    positions, indices, colors = builder.freeze().flat()
    assert positions.shape == (15,)
    assert indices.shape == (12,)
    assert colors.shape == (15,)


def test_to_torch_tensors(builder: MeshBuilder) -> None:
    ring = builder.create_ring(4, 1.0, 1.0)
    builder.fill_ring_pole(ring)
    tensors = builder.freeze().to_torch()

    assert tensors["verts"].shape == (5, 3)
    assert tensors["verts"].dtype == torch.float32
    assert tensors["faces"].dtype == torch.long
    assert tensors["labels"].tolist() == [-1] * 5
    assert int(tensors["faces"].max()) == 4


def test_growth_beyond_initial_capacity() -> None:
    builder = MeshBuilder(initial_capacity=2)
    ring = builder.create_ring(16, 1.0, 1.0)
    builder.extrude_ring(ring, (0.0, 0.0, 1.0))
    assert builder.vertex_count == 32
    assert_allclose(builder.position(31)[2], 1.0)

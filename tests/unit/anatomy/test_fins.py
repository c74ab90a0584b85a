"""Unit tests for paired, caudal and median fin builders."""

from __future__ import annotations

import logging

import numpy as np
import pytest
from numpy.testing import assert_allclose

from aquasculpt.anatomy import (
    PartLabel,
    build_anal_fin,
    build_caudal_fin,
    build_dorsal_fin,
    build_pectoral_fin,
    build_pelvic_fin,
    build_torso,
)
from aquasculpt.anatomy.fins import PAIRED_FIN_RING_VERTS, PAIRED_FIN_RINGS
from aquasculpt.mesh import MeshBuilder

MOUNT = np.array([0.0, 0.035, 0.8])


@pytest.fixture
def torso_builder():
    builder = MeshBuilder()
    torso = build_torso(
        builder,
        length=0.8,
        height=0.25,
        width=0.3,
        arch=0.05,
        pectoral_shift=0.15,
        pectoral_angle=-0.3,
        pelvic_shift=0.45,
        pelvic_angle=-1.0,
    )
    return builder, torso


def _labels(builder: MeshBuilder, part) -> set[int]:
    return set(builder.labels[part.as_array()].tolist())


# ---------------------------------------------------------------------------
# Paired fins
# ---------------------------------------------------------------------------


def test_pectoral_fin_grafted_on_mount(torso_builder) -> None:
    builder, torso = torso_builder
    point = torso.pectoral_info.right
    fin = build_pectoral_fin(builder, point, length=0.25, width=1.0)

    assert len(fin) == PAIRED_FIN_RING_VERTS * PAIRED_FIN_RINGS + 2
    assert _labels(builder, fin) == {PartLabel.PECTORAL}
    assert_allclose(builder.pivots[fin[0]], point.position)
    # the fin grows outward along the mount normal
    offsets = builder.positions_of(fin) - point.position
    assert (offsets @ point.normal).max() > 0.2


def test_pelvic_fins_mirror_each_other(torso_builder) -> None:
    builder, torso = torso_builder
    left = build_pelvic_fin(builder, torso.pelvic_info.left, length=0.2, width=1.0, left=True)
    right = build_pelvic_fin(
        builder, torso.pelvic_info.right, length=0.2, width=1.0, left=False
    )
    assert _labels(builder, left) == _labels(builder, right) == {PartLabel.PELVIC}
    left_c = builder.centroid(left)
    right_c = builder.centroid(right)
    assert left_c[0] == pytest.approx(-right_c[0], abs=1e-9)
    assert left_c[1] == pytest.approx(right_c[1], abs=1e-9)
    assert left_c[2] == pytest.approx(right_c[2], abs=1e-9)


# ---------------------------------------------------------------------------
# Caudal fin
# ---------------------------------------------------------------------------


def _caudal(builder: MeshBuilder, curve: float):
    return build_caudal_fin(
        builder, mount=MOUNT, length=0.6, width=0.4, curve=curve, body_length=0.8
    )


def test_caudal_fin_counts_and_labels() -> None:
    builder = MeshBuilder()
    fin = _caudal(builder, 0.1)
    assert len(fin) == 8 * 5 + 2
    assert _labels(builder, fin) == {PartLabel.CAUDAL}
    assert len({tuple(p) for p in builder.pivots.tolist()}) == 1


def test_straight_caudal_fin_is_mirror_symmetric() -> None:
    """With no swish the two lobes mirror each other across the mount's Y."""
    builder = MeshBuilder()
    fin = _caudal(builder, 0.0)
    local = builder.positions_of(fin) - MOUNT
    mirrored = local * np.array([1.0, -1.0, 1.0])
    dist = np.linalg.norm(mirrored[:, None, :] - local[None, :, :], axis=2)
    assert dist.min(axis=1).max() < 1e-9


def test_caudal_curve_bends_lobes() -> None:
    straight = MeshBuilder()
    _caudal(straight, 0.0)
    curved = MeshBuilder()
    _caudal(curved, 0.2)
    assert not np.allclose(straight.positions, curved.positions)


# ---------------------------------------------------------------------------
# Median fins
# ---------------------------------------------------------------------------


def test_dorsal_fin_sits_on_the_back(torso_builder) -> None:
    builder, torso = torso_builder
    fin = build_dorsal_fin(
        builder, torso.pos_spline, torso.scale_spline, length=0.4, width=0.08, shift=0.3
    )
    assert len(fin) == 6 * 4 + 2
    assert _labels(builder, fin) == {PartLabel.MEDIAN_FIN}
    spine_y = torso.pos_spline.get_point(0.3)[1]
    assert builder.centroid(fin)[1] > spine_y + torso.scale_spline.get_point(0.3)[1] * 0.5


def test_anal_fin_hangs_below_the_belly(torso_builder) -> None:
    builder, torso = torso_builder
    fin = build_anal_fin(
        builder, torso.pos_spline, torso.scale_spline, length=0.2, width=0.06, shift=0.65
    )
    assert len(fin) == 6 * 2 + 2
    assert _labels(builder, fin) == {PartLabel.MEDIAN_FIN}
    assert builder.centroid(fin)[1] < torso.pos_spline.get_point(0.65)[1]


def test_anal_fin_past_limit_warns(
    torso_builder, caplog: pytest.LogCaptureFixture
) -> None:
    builder, torso = torso_builder
    with caplog.at_level(logging.WARNING):
        fin = build_anal_fin(
            builder,
            torso.pos_spline,
            torso.scale_spline,
            length=0.2,
            width=0.06,
            shift=0.95,
        )
    assert len(fin) == 6 * 2 + 2
    assert "no room" in caplog.text

"""Fin builders: paired (pectoral, pelvic), caudal and median (dorsal, anal) fins.

Paired fins are modelled along +Z at the origin and grafted onto the torso
with the frame of a :class:`~aquasculpt.mesh.surface.SurfacePoint`. The
caudal fin is modelled along +Z, turned into the tail silhouette and moved to
the tail mount. Median fins are swept directly in world space through ring
centres read off the torso splines so their base sits in the skin.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike

from aquasculpt.mesh import (
    CatmullRomSpline3D,
    MeshBuilder,
    SurfacePoint,
    VertexSet,
    orient_feature,
    union,
)

from .labels import AnalFinStyle, CaudalStyle, DorsalStyle, PartLabel

logger = logging.getLogger(__name__)

PAIRED_FIN_RING_VERTS: int = 6
PAIRED_FIN_RINGS: int = 4
PELVIC_KNEE_DEGREES: float = 30.0

CAUDAL_RING_VERTS: int = 8
CAUDAL_PINCH_DROP: float = 0.44
CAUDAL_ROLL_DEGREES: float = 5.0
CAUDAL_BEND_SCALE: float = 1.5

MEDIAN_FIN_RING_VERTS: int = 6
MEDIAN_FIN_THICKNESS: float = 0.05

# Ring-to-ring height ratios of the dorsal ridge and the X roll of each ring.
DORSAL_RING_SCALES: tuple[float, ...] = (1.0, 0.8, 1.2, 1.05)
DORSAL_RING_ROLLS: tuple[float, ...] = (0.0, 10.0, 15.0, 25.0)

ANAL_FIN_FLARE: float = 3.0
ANAL_FIN_MAX_END: float = 0.9


def _paired_fin_scale(width: float) -> np.ndarray:
    return np.array(
        [
            [0.02 * width, 0.01, 1.0],
            [0.02 * width, 0.01, 1.0],
            [0.07 * width * 1.1, 0.01, 1.0],
            [0.04 * width * 1.1, 0.01, 1.0],
        ]
    )


def build_pectoral_fin(
    builder: MeshBuilder, point: SurfacePoint, *, length: float, width: float
) -> VertexSet:
    """Build one pectoral fin paddle and graft it onto *point*.

    Args:
        builder: Target builder.
        point: Mount sample on the torso skin.
        length: Fin length.
        width: Fin width factor.

    Returns:
        Every vertex of the fin.
    """
    pos_ctrl = np.array(
        [
            [0.0, 0.0, 0.0],
            [0.0, 0.0, length * 0.5],
            [0.0, 0.03 - length * 0.075, length * 0.75],
            [0.0, length * 0.3, length],
        ]
    )
    fin = builder.create_ring_spline(
        PAIRED_FIN_RING_VERTS,
        PAIRED_FIN_RINGS,
        pos_ctrl,
        _paired_fin_scale(width),
        end_pole_offset=(0.0, 0.0, 0.03),
        begin_pole_offset=(0.0, 0.0, 0.0),
    )
    orient_feature(builder, fin.all, point)
    builder.assign_label(fin.all, PartLabel.PECTORAL)
    builder.assign_pivot(fin.all, point.position)
    return fin.all


def build_pelvic_fin(
    builder: MeshBuilder,
    point: SurfacePoint,
    *,
    length: float,
    width: float,
    left: bool,
) -> VertexSet:
    """Build one pelvic fin with a bent "knee" and graft it onto *point*.

    The last two rings and the end pole are turned 30 degrees about Y around
    their own centroid, then the whole fin is rolled 90 degrees about Z. Both
    turns are mirrored between the left and right fin.

    Args:
        builder: Target builder.
        point: Mount sample on the torso skin.
        length: Fin length.
        width: Fin width factor.
        left: Build the left (-X) fin; otherwise the right one.

    Returns:
        Every vertex of the fin.
    """
    pos_ctrl = np.array(
        [
            [0.0, 0.0, 0.0],
            [0.0, 0.0, length * 0.5],
            [0.0, 0.03, length * 0.75],
            [0.0, 0.0, length],
        ]
    )
    fin = builder.create_ring_spline(
        PAIRED_FIN_RING_VERTS,
        PAIRED_FIN_RINGS,
        pos_ctrl,
        _paired_fin_scale(width),
        end_pole_offset=(0.0, 0.0, 0.03 * length),
        begin_pole_offset=(0.0, 0.0, 0.0),
    )

    sign = -1.0 if left else 1.0
    knee = union(*fin.rings[-2:], *(p for p in (fin.end_pole,) if p is not None))
    builder.rotate_around_point(
        knee, builder.centroid(knee), (0.0, sign * PELVIC_KNEE_DEGREES, 0.0)
    )
    builder.rotate_around_point(fin.all, (0.0, 0.0, 0.0), (0.0, 0.0, sign * 90.0))

    orient_feature(builder, fin.all, point)
    builder.assign_label(fin.all, PartLabel.PELVIC)
    builder.assign_pivot(fin.all, point.position)
    return fin.all


def build_caudal_fin(
    builder: MeshBuilder,
    *,
    mount: ArrayLike,
    length: float,
    width: float,
    curve: float,
    body_length: float,
    style: CaudalStyle = CaudalStyle.VBUTT,
) -> VertexSet:
    """Build the tail fin and attach it at *mount*.

    The fin is one capped chain of five flat rings: root, root thickness, a
    narrowed and dropped pinch, and a mirror image of the first two. The
    front pair (with the start cap) and the back pair (with the end cap) are
    rolled and bent in opposite directions, which splits the tail into two
    lobes with an S-shaped swish.

    Args:
        builder: Target builder.
        mount: Tail root on the torso.
        length: Tail length.
        width: Tail spread; the chain's rings are ``width / 4`` apart.
        curve: Swish strength.
        body_length: Torso length, used to centre the tail on the mount.
        style: Recorded tail style.

    Returns:
        Every vertex of the fin.
    """
    step = width / 4.0
    centres = np.array(
        [
            [0.0, 0.0, 0.0],
            [0.0, 0.0, step],
            [0.0, -CAUDAL_PINCH_DROP, step * 2.0],
            [0.0, 0.0, step * 3.0],
            [0.0, 0.0, step * 4.0],
        ]
    )
    radii = np.array(
        [
            [0.05, 1.0, 1.0],
            [0.05, 1.0, 1.0],
            [0.05, 0.5, 1.0],
            [0.05, 1.0, 1.0],
            [0.05, 1.0, 1.0],
        ]
    )
    chain = builder.create_ring_chain(CAUDAL_RING_VERTS, centres, radii)
    rings = chain.rings
    front = union(rings[0], *(p for p in (chain.start_pole,) if p is not None), rings[1])
    back = union(rings[3], rings[4], *(p for p in (chain.end_pole,) if p is not None))
    everything = chain.all

    origin = (0.0, 0.0, 0.0)
    builder.translate(everything, (0.0, 0.0, -2.0 * step))
    builder.rotate_around_point(back, origin, (CAUDAL_ROLL_DEGREES, 0.0, 0.0))
    builder.rotate_around_point(front, origin, (-CAUDAL_ROLL_DEGREES, 0.0, 0.0))
    builder.translate(everything, (0.0, -body_length * 0.3 + length * 0.4, 0.0))
    builder.scale_around_point(everything, origin, (0.5, length * 0.5, 0.5))
    builder.rotate_around_point(everything, origin, (90.0, 0.0, 0.0))

    amount = CAUDAL_BEND_SCALE * curve
    builder.bend(front, amount, origin, length * 0.9, scale_axis=2, apply_axis=1)
    builder.bend(back, -amount, origin, length * 0.9, scale_axis=2, apply_axis=1)

    builder.translate(everything, mount)
    builder.assign_label(everything, PartLabel.CAUDAL)
    root = builder.subset((rings[0][-1], rings[-1][-1]))
    builder.assign_pivot(everything, builder.centroid(root))

    logger.debug(
        "Caudal fin: %d vertices, length=%.3f curve=%.3f style=%s",
        len(everything),
        length,
        curve,
        style.value,
    )
    return everything


def _median_ring_centres(
    pos_spline: CatmullRomSpline3D,
    scale_spline: CatmullRomSpline3D,
    ts: list[float],
    lift: float,
    dorsal: bool,
) -> np.ndarray:
    """Ring centres on the back (dorsal) or belly of the torso.

    The centre sits on the skin (spine +/- body Y radius) pushed outward by
    *lift*, the fin radius minus how deep the fin is embedded.
    """
    centres = []
    for t in ts:
        p = pos_spline.get_point(t)
        s = scale_spline.get_point(t)
        if dorsal:
            y = p[1] + s[1] + lift
        else:
            y = p[1] - s[1] - lift
        centres.append([p[0], y, p[2]])
    return np.array(centres)


def build_dorsal_fin(
    builder: MeshBuilder,
    pos_spline: CatmullRomSpline3D,
    scale_spline: CatmullRomSpline3D,
    *,
    length: float,
    width: float,
    shift: float,
    style: DorsalStyle = DorsalStyle.SWEPT,
) -> VertexSet:
    """Build the dorsal ridge along the torso's back.

    Four rings are swept from *shift* toward the tail. Their length is capped
    at the end of the body but never shorter than a small multiple of
    *width*. Ring heights follow :data:`DORSAL_RING_SCALES` and each later
    ring is rolled back by :data:`DORSAL_RING_ROLLS` about its own centre.

    Args:
        builder: Target builder.
        pos_spline: Torso spine.
        scale_spline: Torso radii.
        length: Fin length as a fraction of the spine.
        width: Fin height at the root ring (twice the ring's Y radius).
        shift: Start of the fin as a fraction of the spine.
        style: Recorded dorsal style.

    Returns:
        Every vertex of the fin.
    """
    fin_radius = width / 2.0
    embed = width * 0.25

    span = min(shift + length, 1.0) - shift
    span = max(span, width * (7.0 / 6.0) * 0.15)
    step = span / 3.0
    ts = [shift + step * k for k in range(4)]

    centres = _median_ring_centres(
        pos_spline, scale_spline, ts, fin_radius - embed, dorsal=True
    )
    heights = np.cumprod(DORSAL_RING_SCALES) * fin_radius
    radii = np.column_stack(
        [np.full(4, MEDIAN_FIN_THICKNESS), heights, np.ones(4)]
    )
    fin = builder.create_ring_chain(MEDIAN_FIN_RING_VERTS, centres, radii)

    tip = union(fin.rings[3], *(p for p in (fin.end_pole,) if p is not None))
    for subset, centre, roll in (
        (fin.rings[1], centres[1], DORSAL_RING_ROLLS[1]),
        (fin.rings[2], centres[2], DORSAL_RING_ROLLS[2]),
        (tip, centres[3], DORSAL_RING_ROLLS[3]),
    ):
        builder.rotate_around_point(subset, centre, (roll, 0.0, 0.0))

    builder.assign_label(fin.all, PartLabel.MEDIAN_FIN)
    builder.assign_pivot(fin.all, builder.centroid(fin.all))
    logger.debug("Dorsal fin: span=%.3f style=%s", span, style.value)
    return fin.all


def build_anal_fin(
    builder: MeshBuilder,
    pos_spline: CatmullRomSpline3D,
    scale_spline: CatmullRomSpline3D,
    *,
    length: float,
    width: float,
    shift: float,
    style: AnalFinStyle = AnalFinStyle.SPIKY,
) -> VertexSet:
    """Build the anal fin under the torso's belly.

    Two rings are swept from *shift*; the fin may not run past 90% of the
    body. The second ring is stretched downward by :data:`ANAL_FIN_FLARE`
    about a point on its top edge so the fin flares away from the body while
    its base stays in the skin.

    Args:
        builder: Target builder.
        pos_spline: Torso spine.
        scale_spline: Torso radii.
        length: Fin length as a fraction of the spine.
        width: Fin height at the root ring (twice the ring's Y radius).
        shift: Start of the fin as a fraction of the spine.
        style: Recorded anal fin style.

    Returns:
        Every vertex of the fin.
    """
    fin_radius = width * 0.5
    embed = width * 0.2

    span = min(shift + length, ANAL_FIN_MAX_END) - shift
    if span <= 0.0:
        logger.warning(
            "Anal fin at shift %.3f has no room before %.2f of the body; "
            "building a flat fin",
            shift,
            ANAL_FIN_MAX_END,
        )

    centres = _median_ring_centres(
        pos_spline, scale_spline, [shift, shift + span], fin_radius - embed, dorsal=False
    )
    radii = np.array(
        [[MEDIAN_FIN_THICKNESS, fin_radius, 1.0], [MEDIAN_FIN_THICKNESS, fin_radius, 1.0]]
    )
    fin = builder.create_ring_chain(
        MEDIAN_FIN_RING_VERTS, centres, radii, fill_end=False
    )

    anchor = centres[1] + np.array([0.0, fin_radius, 0.0])
    builder.scale_around_point(fin.rings[1], anchor, (1.0, ANAL_FIN_FLARE, 1.0))
    end_pole = builder.fill_ring_pole(fin.rings[1], (0.0, 0.0, 0.0), True)

    everything = union(fin.all, end_pole)
    builder.assign_label(everything, PartLabel.MEDIAN_FIN)
    builder.assign_pivot(everything, builder.centroid(everything))
    logger.debug("Anal fin: span=%.3f style=%s", span, style.value)
    return everything


__all__ = [
    "build_anal_fin",
    "build_caudal_fin",
    "build_dorsal_fin",
    "build_pectoral_fin",
    "build_pelvic_fin",
]

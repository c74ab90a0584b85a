"""Mouth seam: closes an open ring with a slit and two protruding lips."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike

from .builder import MeshBuilder, Ring, VertexSet, union
from .errors import InvalidRingLength
from .vectors import normalize, vec3

logger = logging.getLogger(__name__)

SEAM_COLOR: tuple[float, float, float] = (0.1, 0.0, 0.0)

# Mouth axes in the head's local frame.
_FORWARD = np.array([0.0, 0.0, 1.0])
_UP = np.array([0.0, 1.0, 0.0])
_LIP_TILT = 0.2


def fill_ring_mouth(
    builder: MeshBuilder,
    ring: Ring,
    stick_out: float,
    top_lip_size: ArrayLike,
    top_lip_offset: ArrayLike,
    bottom_lip_size: ArrayLike,
    bottom_lip_offset: ArrayLike,
) -> VertexSet:
    """Close *ring* with a horizontal slit and extruded upper/lower lips.

    The corners of the mouth are ``ring[0]`` and ``ring[n // 2]``. New slit
    vertices are laid on the straight line between them (in XZ, at the
    corners' mean Y), and the upper and lower arcs are stitched to the slit.
    Each half is then extruded forward (tilted up or down by 0.2), sized about
    its centroid, shifted and capped.

    Args:
        builder: Builder that owns *ring*.
        ring: Open end loop of the head; must have an even vertex count.
        stick_out: Extrusion distance of both lips.
        top_lip_size: Per-axis scale of the upper lip about its centroid.
        top_lip_offset: Translation of the upper lip.
        bottom_lip_size: Per-axis scale of the lower lip about its centroid.
        bottom_lip_offset: Translation of the lower lip.

    Returns:
        Slit, lip and cap vertices; an empty handle when *ring* is odd.

    Raises:
        InvalidRingLength: If *ring* is odd and the builder is strict.
    """
    if not isinstance(ring, Ring):
        ring = Ring(ring.indices, ring.owner)
    builder.validate(ring)
    n = len(ring)
    if not ring.is_even:
        if builder.strict:
            raise InvalidRingLength(
                f"fill_ring_mouth requires an even, non-empty ring; got {n} vertices"
            )
        logger.error("fill_ring_mouth requires an even number of vertices, got %d", n)
        return VertexSet((), builder.builder_id)

    half = n // 2
    right_corner = ring[0]
    left_corner = ring[half]
    right_pos = builder.position(right_corner)
    left_pos = builder.position(left_corner)
    seam_y = (right_pos[1] + left_pos[1]) / 2.0

    seam_points = []
    for i in range(1, half):
        t = i / half
        x = right_pos[0] * (1.0 - t) + left_pos[0] * t
        z = right_pos[2] * (1.0 - t) + left_pos[2] * t
        seam_points.append((x, seam_y, z))
    seam = builder.add_vertices(np.array(seam_points).reshape(-1, 3), color=SEAM_COLOR)
    slit = (right_corner, *seam.indices, left_corner)

    triangles = []
    for i in range(half):
        _stitch(triangles, ring[i], ring[i + 1], slit[i], slit[i + 1])
    for i in range(half):
        _stitch(
            triangles,
            ring[half + i],
            ring[(half + i + 1) % n],
            slit[half - i],
            slit[half - i - 1],
        )
    builder.add_triangles(triangles)

    owner = builder.builder_id
    top_loop = Ring(
        tuple(ring[i] for i in range(half + 1))
        + tuple(slit[i] for i in range(half - 1, 0, -1)),
        owner,
    )
    bottom_loop = Ring(
        tuple(ring[(half + i) % n] for i in range(half + 1))
        + tuple(slit[i] for i in range(1, half)),
        owner,
    )

    top_lip = _extrude_lip(
        builder, top_loop, _LIP_TILT, stick_out, top_lip_size, top_lip_offset
    )
    bottom_lip = _extrude_lip(
        builder, bottom_loop, -_LIP_TILT, stick_out, bottom_lip_size, bottom_lip_offset
    )
    top_cap = builder.fill_ring_pole(top_lip, (0.0, 0.0, 0.0), True)
    bottom_cap = builder.fill_ring_pole(bottom_lip, (0.0, 0.0, 0.0), True)

    logger.debug("Mouth closed ring of %d with %d slit vertices", n, len(seam))
    return union(seam, top_lip, bottom_lip, top_cap, bottom_cap)


def _stitch(
    triangles: list[tuple[int, int, int]],
    r_cur: int,
    r_next: int,
    s_cur: int,
    s_next: int,
) -> None:
    """Bridge one arc edge to one slit edge, skipping triangles collapsed at a corner."""
    if r_cur != s_cur:
        triangles.append((r_cur, s_cur, r_next))
    if r_next != s_next:
        triangles.append((r_next, s_cur, s_next))


def _extrude_lip(
    builder: MeshBuilder,
    loop: Ring,
    tilt: float,
    stick_out: float,
    size: ArrayLike,
    offset: ArrayLike,
) -> Ring:
    direction = normalize(_FORWARD + _UP * tilt)
    lip = builder.extrude_ring(loop, direction * stick_out)
    builder.scale_around_point(lip, builder.centroid(lip), vec3(size))
    builder.translate(lip, offset)
    return lip


__all__ = ["SEAM_COLOR", "fill_ring_mouth"]

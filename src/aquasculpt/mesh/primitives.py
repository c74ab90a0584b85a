"""Small closed primitives built on top of the kernel (eye sphere, subdivided box)."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike

from .builder import MeshBuilder, VertexSet
from .vectors import vec3

SPHERE_COLOR: tuple[float, float, float] = (0.8, 0.2, 0.1)

_SQRT2 = math.sqrt(2.0)


def sphere(
    builder: MeshBuilder,
    offset: ArrayLike = (0.0, 0.0, 0.0),
    color: Sequence[float] | None = None,
    size: float = 1.0,
) -> VertexSet:
    """Emit a capped 8x3 ring-spline blob centred near *offset*.

    The blob is a short tube along +Z (about 0.18 long, radius up to 0.12)
    with a pole at each end, so it is closed. Used for eyes.

    Args:
        builder: Target builder.
        offset: Translation of the whole primitive.
        color: Vertex color; reddish when omitted.
        size: Uniform scale applied about *offset*.

    Returns:
        Handle over every created vertex (rings, start pole, end pole).
    """
    centre = vec3(offset)
    base = 0.0625 * _SQRT2
    pos_ctrl = np.array(
        [
            [0.0, 0.0, -base],
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 0.13 * _SQRT2 - base],
        ]
    ) + centre
    scale_ctrl = [
        [0.08, 0.08, 1.0],
        [0.12, 0.12, 1.0],
        [0.04, 0.04, 1.0],
    ]
    blob = builder.create_ring_spline(
        8,
        3,
        pos_ctrl,
        scale_ctrl,
        end_pole_offset=(0.0, 0.0, 0.04),
        begin_pole_offset=(0.0, 0.0, -0.04),
        color=SPHERE_COLOR if color is None else color,
    )
    if size != 1.0:
        builder.scale_around_point(blob.all, centre, (size, size, size))
    return blob.all


def create_subdiv_box(
    builder: MeshBuilder,
    subdivisions: tuple[int, int, int],
    size: tuple[float, float, float],
) -> VertexSet:
    """Emit an axis-aligned box centred on the origin with gridded faces.

    Each of the six faces is an independent ``(u_sub + 1) x (v_sub + 1)``
    vertex grid; edges along the box seams are duplicated, not shared. Faces
    are wound outward and colored by the absolute value of their normal.

    Args:
        builder: Target builder.
        subdivisions: Quads along (X, Y, Z).
        size: Full extent along (X, Y, Z).

    Returns:
        Handle over all created vertices, face by face.
    """
    sub = [max(int(s), 1) for s in subdivisions]
    extent = [float(s) for s in size]
    created = VertexSet((), builder.builder_id)

    # (u axis, v axis, w axis) per face pair.
    for u_axis, v_axis, w_axis in ((0, 1, 2), (2, 1, 0), (0, 2, 1)):
        for w_sign in (1.0, -1.0):
            created = created + _box_face(
                builder, u_axis, v_axis, w_axis, w_sign, sub, extent
            )
    return created


def _box_face(
    builder: MeshBuilder,
    u_axis: int,
    v_axis: int,
    w_axis: int,
    w_sign: float,
    sub: list[int],
    extent: list[float],
) -> VertexSet:
    u_sub, v_sub = sub[u_axis], sub[v_axis]
    normal = np.zeros(3)
    normal[w_axis] = w_sign

    points = []
    for j in range(v_sub + 1):
        for i in range(u_sub + 1):
            p = np.zeros(3)
            p[u_axis] = (i / u_sub - 0.5) * extent[u_axis]
            p[v_axis] = (j / v_sub - 0.5) * extent[v_axis]
            p[w_axis] = w_sign * extent[w_axis] / 2.0
            points.append(p)

    # Quad (v1, v2 = +u, v3 = +v) wound (v1, v3, v2) faces along v x u.
    u_dir = np.eye(3)[u_axis]
    v_dir = np.eye(3)[v_axis]
    outward = float(np.dot(np.cross(v_dir, u_dir), normal)) > 0.0

    face = builder.add_vertices(np.array(points), color=np.abs(normal))
    base = face[0]
    row = u_sub + 1
    triangles = []
    for j in range(v_sub):
        for i in range(u_sub):
            v1 = base + j * row + i
            v2 = v1 + 1
            v3 = v1 + row
            v4 = v3 + 1
            if outward:
                triangles.extend([(v1, v3, v2), (v2, v3, v4)])
            else:
                triangles.extend([(v1, v2, v3), (v2, v4, v3)])
    builder.add_triangles(triangles)
    return face


__all__ = ["SPHERE_COLOR", "create_subdiv_box", "sphere"]

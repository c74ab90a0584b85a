"""Surface tangent frames on a swept tube and grafting of features onto them.

A tube built by :meth:`MeshBuilder.create_ring_spline` is described by a
position spline (its spine) and a scale spline (its elliptical radii). Points
on its skin are addressed by a fraction ``shift`` along the spine and an
``angle`` around it. :func:`sample_feature_info` returns a mirrored pair of
such points together with a local frame, and :func:`orient_feature` carries a
feature modelled around the origin (+Z out of the skin) onto one of them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .builder import MeshBuilder, VertexSet
from .spline import CatmullRomSpline3D
from .vectors import cross, normalize, orthonormal_basis

# Forward step used to estimate slope and spine tangent.
DEFAULT_DELTA: float = 0.01


@dataclass(frozen=True)
class SurfacePoint:
    """A point on a tube's skin with its local frame.

    Attributes:
        position: Point on (or inset toward) the surface.
        normal: Outward unit normal, tilted by the local taper.
        tangent: Unit spine tangent at the sample.
        up: Unit tangent running around the ring at the sample.
    """

    position: np.ndarray
    normal: np.ndarray
    tangent: np.ndarray
    up: np.ndarray


@dataclass(frozen=True)
class FeatureInfo:
    """Mirrored pair of surface samples (left is the -X side)."""

    left: SurfacePoint
    right: SurfacePoint

    def sides(self) -> tuple[tuple[str, SurfacePoint], tuple[str, SurfacePoint]]:
        return (("left", self.left), ("right", self.right))


def _surface_offset(scale: np.ndarray, angle: float, side: float) -> np.ndarray:
    return np.array(
        [side * scale[0] * math.cos(angle), scale[1] * math.sin(angle), 0.0]
    )


def _sample_side(
    spine0: np.ndarray,
    spine1: np.ndarray,
    scale0: np.ndarray,
    scale1: np.ndarray,
    spine_tangent: np.ndarray,
    angle: float,
    side: float,
    inset: float,
    strict: bool,
) -> SurfacePoint:
    p0 = spine0 + _surface_offset(scale0, angle, side) * inset
    p1 = spine1 + _surface_offset(scale1, angle, side) * inset
    slope = normalize(p1 - p0, strict=strict)
    radial = normalize(p0 - spine0, strict=strict)
    up = normalize(cross(radial, spine_tangent), strict=strict)
    normal = normalize(cross(slope, up), strict=strict)
    return SurfacePoint(position=p0, normal=normal, tangent=spine_tangent, up=up)


def sample_feature_info(
    pos_spline: CatmullRomSpline3D,
    scale_spline: CatmullRomSpline3D,
    shift: float,
    angle: float,
    delta: float = DEFAULT_DELTA,
    inset: float = 1.0,
    *,
    strict: bool = False,
) -> FeatureInfo:
    """Sample the left/right skin points of a tube at (*shift*, *angle*).

    The surface point P0 is the spine point at *shift* offset by
    ``(sx * cos(angle), sy * sin(angle), 0)`` (X mirrored for the left side),
    and P1 is the same construction at ``min(shift + delta, 1)``. Because P1
    uses the scale sampled there, a tapering tube tilts the normal toward its
    narrow end.

    Args:
        pos_spline: Spine of the tube.
        scale_spline: Radii of the tube (X/Y components used).
        shift: Fraction along the spine, in [0, 1].
        angle: Angle around the spine in radians; 0 is the +/-X flank,
            positive values move toward +Y.
        delta: Forward step for slope and tangent estimation.
        inset: Multiplier on the radial offset; values below 1 sink the
            sample point slightly beneath the skin.
        strict: Raise :class:`DegenerateVector` on a zero-length slope or
            tangent instead of logging a warning. Sampling at shift 1 has no
            forward step and is degenerate.

    Returns:
        :class:`FeatureInfo` with mirrored samples.
    """
    next_shift = min(shift + delta, 1.0)
    spine0 = pos_spline.get_point(shift)
    spine1 = pos_spline.get_point(next_shift)
    scale0 = scale_spline.get_point(shift)
    scale1 = scale_spline.get_point(next_shift)
    spine_tangent = normalize(spine1 - spine0, strict=strict)

    left = _sample_side(
        spine0, spine1, scale0, scale1, spine_tangent, angle, -1.0, inset, strict
    )
    right = _sample_side(
        spine0, spine1, scale0, scale1, spine_tangent, angle, 1.0, inset, strict
    )
    return FeatureInfo(left=left, right=right)


def orient_feature(
    builder: MeshBuilder, subset: VertexSet, point: SurfacePoint
) -> np.ndarray:
    """Graft *subset* (modelled about the origin, +Z outward) onto *point*.

    The subset is remapped through ``orthonormal_basis(point.normal,
    point.tangent)`` about the origin, then translated to ``point.position``.

    Returns:
        The (3, 3) basis that was applied, columns X/Y/Z.
    """
    basis = orthonormal_basis(point.normal, point.tangent, strict=builder.strict)
    builder.apply_matrix_transform(subset, basis, (0.0, 0.0, 0.0))
    builder.translate(subset, point.position)
    return basis


__all__ = [
    "DEFAULT_DELTA",
    "FeatureInfo",
    "SurfacePoint",
    "orient_feature",
    "sample_feature_info",
]

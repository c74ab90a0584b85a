"""Arc-length parameterized Catmull-Rom spline through 3D control points."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike

from .errors import InvalidSplineControlPoints

logger = logging.getLogger(__name__)

# Sub-steps per segment used to approximate arc length.
ARC_LENGTH_RESOLUTION: int = 10


def _hermite_weights(t: float, derivative: bool) -> tuple[float, float, float, float]:
    """Cubic Hermite basis (h00, h10, h01, h11) or its derivative at *t*."""
    t2 = t * t
    if derivative:
        return (6 * t2 - 6 * t, 3 * t2 - 4 * t + 1, -6 * t2 + 6 * t, 3 * t2 - 2 * t)
    t3 = t2 * t
    return (2 * t3 - 3 * t2 + 1, t3 - 2 * t2 + t, -2 * t3 + 3 * t2, t3 - t2)


class CatmullRomSpline3D:
    """Catmull-Rom curve through control points, traversed at near-uniform speed.

    Queries take a *global* normalized parameter ``t`` in [0, 1]. The
    parameter is mapped through cached per-segment arc lengths, so equal
    steps in ``t`` cover roughly equal distances along the curve regardless
    of how the control points are spaced. End segments reuse their endpoint
    as the missing neighbour (clamped tangents, no wrap-around).

    Args:
        points: Sequence of at least two (x, y, z) control points.
        alpha: Tension. 0.0 gives uniform Catmull-Rom tangents, 0.5 the
            softer centripetal-like variant. Tangents are scaled by
            ``(1 - alpha) / 2``.
        strict: Raise instead of warning when every control point coincides.

    Raises:
        InvalidSplineControlPoints: If fewer than two points are given, the
            points are not 3-vectors, or (strict only) the curve has zero length.

    Example::

        path = CatmullRomSpline3D([[0, 0, 0], [0, 0, 1], [0, 0, 2]], alpha=0.5)
        mid = path.get_point(0.5)
    """

    def __init__(
        self, points: ArrayLike, alpha: float = 0.0, *, strict: bool = False
    ) -> None:
        try:
            pts = np.asarray(points, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidSplineControlPoints(
                "Control points must be a sequence of (x, y, z) triples"
            ) from exc
        if pts.ndim != 2 or pts.shape[0] < 2 or pts.shape[1] != 3:
            raise InvalidSplineControlPoints(
                "CatmullRomSpline3D requires at least 2 control points, each with "
                f"3 components (x, y, z); got shape {pts.shape}"
            )
        self.points: np.ndarray = pts
        self.alpha = float(alpha)
        self._tension = (1.0 - self.alpha) / 2.0
        self._segment_lengths: np.ndarray = np.zeros(len(pts) - 1)
        self._total_length: float = 0.0
        self._calculate_arc_lengths()

        if self._total_length <= 0.0:
            if strict:
                raise InvalidSplineControlPoints(
                    "All spline control points coincide; the curve has zero length"
                )
            logger.warning(
                "Spline with %d coincident control points has zero length", len(pts)
            )

    @property
    def segment_count(self) -> int:
        return len(self.points) - 1

    @property
    def segment_lengths(self) -> np.ndarray:
        """Approximate arc length of each segment (copy)."""
        return self._segment_lengths.copy()

    def get_total_length(self) -> float:
        """Approximate arc length of the whole curve."""
        return self._total_length

    def _neighbours(
        self, i: int
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """The four control points (p0, p1, p2, p3) driving segment *i*."""
        pts = self.points
        p1 = pts[i]
        p2 = pts[i + 1]
        p0 = p1 if i == 0 else pts[i - 1]
        p3 = p2 if i == self.segment_count - 1 else pts[i + 2]
        return p0, p1, p2, p3

    def _interpolate(self, i: int, t_local: float, derivative: bool) -> np.ndarray:
        """Evaluate the raw Hermite form of segment *i* at local parameter *t_local*."""
        p0, p1, p2, p3 = self._neighbours(i)
        m1 = self._tension * (p2 - p0)
        m2 = self._tension * (p3 - p1)
        c0, c1, c2, c3 = _hermite_weights(t_local, derivative)
        return c0 * p1 + c1 * m1 + c2 * p2 + c3 * m2

    def _calculate_arc_lengths(self) -> None:
        lengths = np.zeros(self.segment_count)
        steps = np.arange(1, ARC_LENGTH_RESOLUTION + 1) / ARC_LENGTH_RESOLUTION
        for i in range(self.segment_count):
            last = self.points[i]
            total = 0.0
            for t in steps:
                current = self._interpolate(i, float(t), derivative=False)
                total += float(np.linalg.norm(current - last))
                last = current
            lengths[i] = total
        self._segment_lengths = lengths
        self._total_length = float(lengths.sum())

    def _locate(self, t: float) -> tuple[int, float]:
        """Map global parameter *t* to (segment index, local parameter)."""
        last = self.segment_count - 1
        if t <= 0.0:
            return 0, 0.0
        if t >= 1.0:
            return last, 1.0
        if self._total_length <= 0.0:
            return 0, 0.0

        remaining = t * self._total_length
        for i in range(last):
            seg_len = self._segment_lengths[i]
            if remaining < seg_len:
                return i, remaining / seg_len
            remaining -= seg_len

        seg_len = self._segment_lengths[last]
        if seg_len <= 0.0:
            return last, 1.0
        return last, min(max(remaining / seg_len, 0.0), 1.0)

    def get_point(self, t: float) -> np.ndarray:
        """Point on the curve at global normalized parameter *t*.

        Args:
            t: Position along the whole curve; values outside [0, 1] clamp.

        Returns:
            (3,) float64 array.
        """
        i, t_local = self._locate(float(t))
        return self._interpolate(i, t_local, derivative=False)

    def get_tangent(self, t: float) -> np.ndarray:
        """Unnormalized derivative of the segment's Hermite form at *t*."""
        i, t_local = self._locate(float(t))
        return self._interpolate(i, t_local, derivative=True)

    def get_points(self, ts: ArrayLike) -> np.ndarray:
        """Evaluate :meth:`get_point` for each parameter in *ts*; returns (K, 3)."""
        return np.array([self.get_point(float(t)) for t in np.ravel(ts)]).reshape(-1, 3)


__all__ = ["ARC_LENGTH_RESOLUTION", "CatmullRomSpline3D"]

"""Ring / extrude / pole mesh-sculpting kernel.

A :class:`MeshBuilder` owns the growing vertex and triangle buffers of one
generation pass. Every primitive appends geometry and returns a handle
(:class:`VertexSet`, :class:`Ring` or :class:`RingSpline`) naming the vertices
it created. Later edits (scale, rotate, translate, bend, matrix remap, further
extrusions) take those handles as their working set and touch nothing else.

Winding convention: triangles are counter-clockwise when viewed from the
outside. For a ring created in the XY plane and extruded toward +Z the
bridging faces point away from the ring's axis, the start pole (not reversed)
faces -Z and the end pole (reversed) faces +Z.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, overload

import numpy as np
from numpy.typing import ArrayLike

from .errors import DegenerateVector, InvalidRingLength, MeshError, StaleHandleError
from .spline import CatmullRomSpline3D
from .vectors import apply_matrix_transform, rotation_matrix, vec3

if TYPE_CHECKING:
    import torch

logger = logging.getLogger(__name__)

# Debug colors (RGB in [0, 1]).
RING_COLOR: tuple[float, float, float] = (1.0, 0.0, 0.0)
POLE_COLOR: tuple[float, float, float] = (0.0, 0.0, 1.0)

# Tension used for every ring-spline path.
RING_SPLINE_ALPHA: float = 0.5

UNLABELLED: int = -1

_builder_ids = itertools.count(1)


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VertexSet:
    """Read-only, ordered view of vertex indices created by one builder.

    Attributes:
        indices: Vertex indices in creation order.
        owner: Identifier of the :class:`MeshBuilder` that produced them.
    """

    indices: tuple[int, ...] = ()
    owner: int = 0

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    @overload
    def __getitem__(self, key: int) -> int: ...

    @overload
    def __getitem__(self, key: slice) -> VertexSet: ...

    def __getitem__(self, key: int | slice) -> int | VertexSet:
        if isinstance(key, slice):
            return VertexSet(self.indices[key], self.owner)
        return self.indices[key]

    def __add__(self, other: VertexSet) -> VertexSet:
        if not isinstance(other, VertexSet):
            return NotImplemented
        if self.owner and other.owner and self.owner != other.owner:
            raise StaleHandleError("Cannot combine handles from different builders")
        return VertexSet(self.indices + other.indices, self.owner or other.owner)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.indices, dtype=np.int64)


@dataclass(frozen=True)
class Ring(VertexSet):
    """A closed loop of vertices forming one tube cross-section."""

    @property
    def is_even(self) -> bool:
        """True when the ring can be split into two halves (required by the mouth)."""
        return len(self.indices) > 0 and len(self.indices) % 2 == 0


@dataclass(frozen=True)
class RingSpline:
    """Result of :meth:`MeshBuilder.create_ring_spline`.

    Attributes:
        rings: Rings in path order; all share length and parallel ordering.
        start_pole: Pole capping the first ring, if requested.
        end_pole: Pole capping the last ring, if requested.
        all: Every created vertex: rings in order, then start pole, then end pole.
    """

    rings: tuple[Ring, ...]
    start_pole: VertexSet | None
    end_pole: VertexSet | None
    all: VertexSet

    @property
    def first_ring(self) -> Ring:
        return self.rings[0]

    @property
    def last_ring(self) -> Ring:
        return self.rings[-1]


def union(*sets: VertexSet) -> VertexSet:
    """Concatenate handles (in argument order) into one :class:`VertexSet`."""
    result = VertexSet()
    for s in sets:
        result = result + s
    return result


# ---------------------------------------------------------------------------
# Frozen output
# ---------------------------------------------------------------------------


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class MeshBuffers:
    """Immutable result of one generation pass.

    Attributes:
        positions: (N, 3) float32 vertex positions.
        indices: (T, 3) uint32 triangle vertex indices, CCW from outside.
        colors: (N, 3) float32 debug vertex colors.
        labels: (N,) int32 part label per vertex (-1 when unlabelled).
        pivots: (N, 3) float32 animation pivot per vertex.
    """

    positions: np.ndarray
    indices: np.ndarray
    colors: np.ndarray
    labels: np.ndarray
    pivots: np.ndarray
    metadata: dict[str, object] = field(default_factory=dict, compare=False)

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])

    def flat(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Flat (positions, indices, colors) arrays: 3 floats/vertex, 3 ints/triangle."""
        return (
            self.positions.reshape(-1),
            self.indices.reshape(-1),
            self.colors.reshape(-1),
        )

    def to_torch(self, device: str | None = None) -> dict[str, torch.Tensor]:
        """Copy buffers into tensors for upload by a torch-based renderer.

        Faces are int64 as expected by mesh structures in the torch ecosystem.

        Args:
            device: Optional torch device string (e.g. ``"cuda"``).

        Returns:
            Dict with ``verts`` (N, 3) float32, ``faces`` (T, 3) int64,
            ``colors`` (N, 3) float32, ``labels`` (N,) int64 and
            ``pivots`` (N, 3) float32.
        """
        import torch

        return {
            "verts": torch.tensor(self.positions, dtype=torch.float32, device=device),
            "faces": torch.tensor(
                self.indices.astype(np.int64), dtype=torch.long, device=device
            ),
            "colors": torch.tensor(self.colors, dtype=torch.float32, device=device),
            "labels": torch.tensor(
                self.labels.astype(np.int64), dtype=torch.long, device=device
            ),
            "pivots": torch.tensor(self.pivots, dtype=torch.float32, device=device),
        }


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class MeshBuilder:
    """Owns the position, color, label, pivot and index storage of one mesh build.

    Args:
        strict: When True, malformed or degenerate input raises the matching
            :class:`~aquasculpt.mesh.errors.MeshError` subclass. When False
            (default) the problem is logged and the operation degrades to an
            empty handle or an identity edit.
        initial_capacity: Number of vertex slots to preallocate.

    Example::

        builder = MeshBuilder()
        tube = builder.create_ring_spline(
            8, 10, [[0, 0, 0], [0, 0, 1]], [[0.2, 0.2, 1], [0.1, 0.1, 1]],
            end_pole_offset=(0, 0, 0.05), begin_pole_offset=(0, 0, -0.05),
        )
        buffers = builder.freeze()
    """

    def __init__(self, *, strict: bool = False, initial_capacity: int = 256) -> None:
        self.strict = strict
        self._id = next(_builder_ids)
        capacity = max(int(initial_capacity), 1)
        self._positions = np.zeros((capacity, 3), dtype=np.float64)
        self._colors = np.zeros((capacity, 3), dtype=np.float64)
        self._labels = np.full(capacity, UNLABELLED, dtype=np.int32)
        self._pivots = np.zeros((capacity, 3), dtype=np.float64)
        self._count = 0
        self._indices: list[int] = []
        self._frozen = False

    # -- introspection ------------------------------------------------------

    @property
    def builder_id(self) -> int:
        return self._id

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def vertex_count(self) -> int:
        return self._count

    @property
    def triangle_count(self) -> int:
        return len(self._indices) // 3

    @property
    def positions(self) -> np.ndarray:
        """Read-only (N, 3) view of the current positions."""
        view = self._positions[: self._count]
        view.flags.writeable = False
        return view

    @property
    def colors(self) -> np.ndarray:
        view = self._colors[: self._count]
        view.flags.writeable = False
        return view

    @property
    def labels(self) -> np.ndarray:
        view = self._labels[: self._count]
        view.flags.writeable = False
        return view

    @property
    def pivots(self) -> np.ndarray:
        view = self._pivots[: self._count]
        view.flags.writeable = False
        return view

    @property
    def triangles(self) -> np.ndarray:
        """(T, 3) array copy of the triangles emitted so far."""
        return np.asarray(self._indices, dtype=np.int64).reshape(-1, 3)

    def position(self, index: int) -> np.ndarray:
        """Copy of the position of vertex *index*."""
        return self._positions[index].copy()

    def positions_of(self, subset: VertexSet) -> np.ndarray:
        """(K, 3) copy of the positions of *subset*, in handle order."""
        self._check(subset)
        return self._positions[subset.as_array()].copy()

    def centroid(self, subset: VertexSet) -> np.ndarray:
        """Mean position of *subset*; the origin for an empty handle."""
        self._check(subset)
        if len(subset) == 0:
            return np.zeros(3)
        return self._positions[subset.as_array()].mean(axis=0)

    def subset(self, indices: Iterable[int]) -> VertexSet:
        """Wrap existing vertex indices of this builder in a handle.

        Raises:
            IndexError: If any index does not name an existing vertex.
        """
        idx = tuple(int(i) for i in indices)
        for i in idx:
            if i < 0 or i >= self._count:
                raise IndexError(f"Vertex index {i} out of range [0, {self._count})")
        return VertexSet(idx, self._id)

    # -- internals ----------------------------------------------------------

    def validate(self, subset: VertexSet) -> None:
        """Raise :class:`StaleHandleError` unless *subset* is usable with this builder."""
        self._check(subset)

    def _ensure_open(self) -> None:
        if self._frozen:
            raise StaleHandleError("MeshBuilder has been frozen; start a new builder")

    def _check(self, subset: VertexSet) -> None:
        self._ensure_open()
        if len(subset) and subset.owner != self._id:
            raise StaleHandleError(
                f"Handle belongs to builder {subset.owner}, not builder {self._id}"
            )

    def _unique(self, subset: VertexSet) -> np.ndarray:
        self._check(subset)
        return np.unique(subset.as_array())

    def _degenerate(self, exc_type: type[MeshError], message: str, *args: object) -> None:
        """Raise in strict mode, otherwise log a warning."""
        if self.strict:
            raise exc_type(message % args)
        logger.warning(message, *args)

    def _grow(self, needed: int) -> None:
        capacity = self._positions.shape[0]
        if needed <= capacity:
            return
        new_capacity = max(needed, capacity * 2)
        extra = new_capacity - capacity
        self._positions = np.vstack([self._positions, np.zeros((extra, 3))])
        self._colors = np.vstack([self._colors, np.zeros((extra, 3))])
        self._labels = np.concatenate(
            [self._labels, np.full(extra, UNLABELLED, dtype=np.int32)]
        )
        self._pivots = np.vstack([self._pivots, np.zeros((extra, 3))])

    def _append_vertices(
        self, points: np.ndarray, color: Sequence[float] | None, default: Sequence[float]
    ) -> tuple[int, ...]:
        self._ensure_open()
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        start = self._count
        stop = start + len(points)
        self._grow(stop)
        self._positions[start:stop] = points
        self._colors[start:stop] = vec3(default if color is None else color)
        self._count = stop
        return tuple(range(start, stop))

    def _append_triangles(self, triangles: Iterable[tuple[int, int, int]]) -> None:
        for a, b, c in triangles:
            self._indices.extend((a, b, c))

    # -- primitives ---------------------------------------------------------

    def add_vertices(
        self, points: ArrayLike, color: Sequence[float] | None = None
    ) -> VertexSet:
        """Append raw (K, 3) points without emitting triangles."""
        return VertexSet(self._append_vertices(points, color, RING_COLOR), self._id)

    def add_triangles(self, triangles: ArrayLike) -> None:
        """Append raw (T, 3) triangles over existing vertices.

        Raises:
            IndexError: If a triangle references a vertex that does not exist.
        """
        self._ensure_open()
        tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
        if tris.size and (tris.min() < 0 or tris.max() >= self._count):
            raise IndexError(
                f"Triangle indices must lie in [0, {self._count}), got "
                f"[{tris.min()}, {tris.max()}]"
            )
        self._indices.extend(int(i) for i in tris.reshape(-1))

    def create_ring(
        self,
        n_verts: int,
        radius_x: float,
        radius_y: float,
        translate: ArrayLike = (0.0, 0.0, 0.0),
        color: Sequence[float] | None = None,
    ) -> Ring:
        """Emit *n_verts* vertices on an ellipse in the XY plane.

        Vertices advance counter-clockwise about +Z starting on +X; the ellipse
        is centred on *translate*.

        Args:
            n_verts: Vertex count, at least 3.
            radius_x: Semi-axis along X.
            radius_y: Semi-axis along Y.
            translate: Centre of the ring.
            color: Vertex color; red when omitted.

        Returns:
            The new ring (empty if *n_verts* < 3 in lenient mode).

        Raises:
            InvalidRingLength: If *n_verts* < 3 and the builder is strict.
        """
        self._ensure_open()
        if n_verts < 3:
            self._degenerate(
                InvalidRingLength, "create_ring needs at least 3 vertices, got %d", n_verts
            )
            return Ring((), self._id)
        centre = vec3(translate)
        angles = np.arange(n_verts) * (2.0 * math.pi / n_verts)
        points = np.column_stack(
            [
                np.cos(angles) * radius_x + centre[0],
                np.sin(angles) * radius_y + centre[1],
                np.full(n_verts, centre[2]),
            ]
        )
        return Ring(self._append_vertices(points, color, RING_COLOR), self._id)

    def extrude_ring(
        self,
        ring: VertexSet,
        offset: ArrayLike,
        color: Sequence[float] | None = None,
    ) -> Ring:
        """Copy *ring* translated by *offset* and bridge old and new with triangles.

        Args:
            ring: Source loop.
            offset: Translation applied to every copied vertex.
            color: Color of the new vertices; red when omitted.

        Returns:
            The new ring; ``result[i]`` was copied from ``ring[i]``.
        """
        self._check(ring)
        n = len(ring)
        if n == 0:
            return Ring((), self._id)
        src = ring.as_array()
        new = self._append_vertices(self._positions[src] + vec3(offset), color, RING_COLOR)
        triangles = []
        for i in range(n):
            j = (i + 1) % n
            cur, nxt = ring[i], ring[j]
            cur_ext, nxt_ext = new[i], new[j]
            triangles.append((cur, nxt, cur_ext))
            triangles.append((nxt, nxt_ext, cur_ext))
        self._append_triangles(triangles)
        return Ring(new, self._id)

    def fill_ring_pole(
        self,
        ring: VertexSet,
        offset: ArrayLike = (0.0, 0.0, 0.0),
        reverse: bool = False,
        color: Sequence[float] | None = None,
    ) -> VertexSet:
        """Cap *ring* with a fan to a new pole vertex at its centroid plus *offset*.

        Args:
            ring: Loop to close.
            offset: Displacement of the pole from the ring centroid.
            reverse: Walk the ring backwards; use False for the start of a tube
                and True for its end so both caps face outward.
            color: Pole color; blue when omitted.

        Returns:
            Handle holding the single pole vertex (empty for an empty ring).
        """
        self._check(ring)
        n = len(ring)
        if n == 0:
            self._degenerate(InvalidRingLength, "fill_ring_pole got an empty ring")
            return VertexSet((), self._id)
        pole_pos = self._positions[ring.as_array()].mean(axis=0) + vec3(offset)
        (pole,) = self._append_vertices(pole_pos, color, POLE_COLOR)
        triangles = []
        for i in range(n):
            nxt = ring[i - 1] if reverse else ring[(i + 1) % n]
            triangles.append((ring[i], pole, nxt))
        self._append_triangles(triangles)
        return VertexSet((pole,), self._id)

    def fill_ring_fan(self, ring: VertexSet, reverse: bool = False) -> VertexSet:
        """Triangulate *ring* as a fan anchored on its first vertex.

        No vertex is created. ``reverse`` is accepted for call-site symmetry
        with :meth:`fill_ring_pole` but both directions currently emit the
        same winding ``(ring[0], ring[i + 1], ring[i])``.

        Returns:
            An empty handle.
        """
        self._check(ring)
        n = len(ring)
        anchor = ring[0] if n else 0
        triangles = []
        # The i = n - 1 triangle wraps back onto the anchor and is degenerate.
        for i in range(1, n):
            triangles.append((anchor, ring[(i + 1) % n], ring[i]))
        self._append_triangles(triangles)
        return VertexSet((), self._id)

    # -- affine edits -------------------------------------------------------

    def scale_around_point(
        self, subset: VertexSet, origin: ArrayLike, scale: ArrayLike
    ) -> None:
        """Scale *subset* per axis about *origin*: ``(p - origin) * scale + origin``."""
        idx = self._unique(subset)
        if idx.size == 0:
            return
        pivot = vec3(origin)
        self._positions[idx] = (self._positions[idx] - pivot) * vec3(scale) + pivot

    def rotate_around_point(
        self, subset: VertexSet, origin: ArrayLike, rotation: ArrayLike
    ) -> None:
        """Rotate *subset* about *origin* by Euler angles in degrees (X, then Y, then Z)."""
        idx = self._unique(subset)
        if idx.size == 0:
            return
        pivot = vec3(origin)
        matrix = rotation_matrix(rotation)
        self._positions[idx] = (self._positions[idx] - pivot) @ matrix.T + pivot

    def translate(self, subset: VertexSet, offset: ArrayLike) -> None:
        idx = self._unique(subset)
        self._positions[idx] += vec3(offset)

    def apply_matrix_transform(
        self,
        subset: VertexSet,
        basis: ArrayLike,
        origin: ArrayLike = (0.0, 0.0, 0.0),
    ) -> None:
        """Remap *subset* through a basis whose columns are the new axes."""
        self._check(subset)
        apply_matrix_transform(self._positions, subset.indices, basis, origin)

    def bend(
        self,
        subset: VertexSet,
        amount: float,
        origin: ArrayLike,
        max_length: float,
        scale_axis: int = 2,
        apply_axis: int = 1,
    ) -> None:
        """One-sided quartic sway.

        Each distinct vertex is displaced along *apply_axis* by
        ``amount * clamp(d / max_length, 0, 1) ** 4`` where ``d`` is its signed
        distance from *origin* along *scale_axis*. Vertices behind the origin do
        not move; vertices at or beyond ``max_length`` move by the full amount.

        Args:
            subset: Vertices to deform.
            amount: Displacement at full distance.
            origin: Root of the bend.
            max_length: Distance at which the full amount is reached.
            scale_axis: Axis (0, 1, 2) measuring distance.
            apply_axis: Axis (0, 1, 2) receiving the displacement.
        """
        idx = self._unique(subset)
        if scale_axis not in (0, 1, 2) or apply_axis not in (0, 1, 2):
            self._degenerate(
                MeshError, "bend axes must be 0, 1 or 2 (got %r, %r)", scale_axis, apply_axis
            )
            return
        if max_length <= 0.0:
            self._degenerate(
                DegenerateVector, "bend max_length must be positive, got %r", max_length
            )
            return
        if idx.size == 0 or amount == 0.0:
            return
        dist = self._positions[idx, scale_axis] - vec3(origin)[scale_axis]
        weight = np.clip(dist / max_length, 0.0, 1.0) ** 4
        self._positions[idx, apply_axis] += amount * weight

    # -- composite ----------------------------------------------------------

    def create_ring_spline(
        self,
        n_verts: int,
        n_rings: int,
        pos_ctrl_pts: ArrayLike,
        scale_ctrl_pts: ArrayLike,
        end_pole_offset: ArrayLike = (0.0, 0.0, 0.0),
        begin_pole_offset: ArrayLike = (0.0, 0.0, 0.0),
        color: Sequence[float] | None = None,
        fill_end: bool = True,
        fill_start: bool = True,
        endpoint: bool = False,
    ) -> RingSpline:
        """Sweep elliptical rings along a position spline, sized by a scale spline.

        Both splines are sampled at ``t = i / n_rings`` (``i / (n_rings - 1)``
        with *endpoint*). The first ring is created directly; every later ring
        is extruded from its predecessor by the change in position, then scaled
        about the new spine point by the ratio of consecutive scale samples.

        Args:
            n_verts: Vertices per ring.
            n_rings: Number of rings along the path.
            pos_ctrl_pts: Control points of the spine.
            scale_ctrl_pts: Control points of the (radius_x, radius_y, _) profile.
            end_pole_offset: Offset of the end pole from the last ring centroid.
            begin_pole_offset: Offset of the start pole from the first ring centroid.
            color: Color for all created vertices (poles included).
            fill_end: Cap the last ring.
            fill_start: Cap the first ring.
            endpoint: Include ``t = 1`` as the final sample.

        Returns:
            :class:`RingSpline` handle.
        """
        self._ensure_open()
        pos_path = CatmullRomSpline3D(pos_ctrl_pts, RING_SPLINE_ALPHA, strict=self.strict)
        scale_path = CatmullRomSpline3D(
            scale_ctrl_pts, RING_SPLINE_ALPHA, strict=self.strict
        )

        if n_rings < 1:
            self._degenerate(
                InvalidRingLength, "create_ring_spline needs at least one ring, got %d", n_rings
            )
            return RingSpline((), None, None, VertexSet((), self._id))

        denom = (n_rings - 1) if endpoint and n_rings > 1 else n_rings
        ts = np.arange(n_rings) / denom
        centres = pos_path.get_points(np.maximum(ts, 0.0))
        radii = scale_path.get_points(np.minimum(ts, 1.0))
        return self.create_ring_chain(
            n_verts,
            centres,
            radii,
            end_pole_offset=end_pole_offset,
            begin_pole_offset=begin_pole_offset,
            color=color,
            fill_end=fill_end,
            fill_start=fill_start,
        )

    def create_ring_chain(
        self,
        n_verts: int,
        centres: ArrayLike,
        radii: ArrayLike,
        end_pole_offset: ArrayLike = (0.0, 0.0, 0.0),
        begin_pole_offset: ArrayLike = (0.0, 0.0, 0.0),
        color: Sequence[float] | None = None,
        fill_end: bool = True,
        fill_start: bool = True,
    ) -> RingSpline:
        """Sweep elliptical rings through explicit centres and radii.

        The first ring is created at ``centres[0]`` with radii ``radii[0][:2]``.
        Ring ``i`` is extruded from ring ``i - 1`` by ``centres[i] -
        centres[i - 1]`` and scaled about ``centres[i]`` by
        ``radii[i] / radii[i - 1]``. This is the sweep behind
        :meth:`create_ring_spline`; call it directly when the samples are
        computed rather than interpolated.

        Args:
            n_verts: Vertices per ring.
            centres: (K, 3) ring centres.
            radii: (K, 3) ring radii; only X and Y are used for the shape.
            end_pole_offset: Offset of the end pole from the last ring centroid.
            begin_pole_offset: Offset of the start pole from the first ring centroid.
            color: Color for all created vertices (poles included).
            fill_end: Cap the last ring.
            fill_start: Cap the first ring.

        Returns:
            :class:`RingSpline` handle.
        """
        self._ensure_open()
        centres = np.asarray(centres, dtype=np.float64).reshape(-1, 3)
        radii = np.asarray(radii, dtype=np.float64).reshape(-1, 3)
        if len(centres) == 0 or len(centres) != len(radii):
            raise ValueError(
                f"centres and radii must be non-empty and equal length, got "
                f"{len(centres)} and {len(radii)}"
            )

        rings: list[Ring] = []
        for i, (pos, scale) in enumerate(zip(centres, radii, strict=True)):
            if i == 0:
                ring = self.create_ring(n_verts, scale[0], scale[1], pos, color)
            else:
                ring = self.extrude_ring(rings[-1], pos - centres[i - 1], color)
                self.scale_around_point(ring, pos, self._scale_ratio(scale, radii[i - 1]))
            rings.append(ring)

        start_pole = end_pole = None
        if fill_start:
            start_pole = self.fill_ring_pole(rings[0], begin_pole_offset, False, color)
        if fill_end:
            end_pole = self.fill_ring_pole(rings[-1], end_pole_offset, True, color)

        everything = union(
            *rings,
            *(p for p in (start_pole, end_pole) if p is not None),
        )
        return RingSpline(tuple(rings), start_pole, end_pole, everything)

    def _scale_ratio(self, scale: np.ndarray, prev_scale: np.ndarray) -> np.ndarray:
        ratio = np.ones(3)
        nonzero = np.abs(prev_scale) > 1e-12
        ratio[nonzero] = scale[nonzero] / prev_scale[nonzero]
        if not nonzero.all():
            self._degenerate(
                DegenerateVector,
                "ring spline scale collapsed to zero (%s); keeping previous size",
                prev_scale.tolist(),
            )
        return ratio

    # -- per-vertex attributes ---------------------------------------------

    def assign_label(self, subset: VertexSet, label: int) -> None:
        idx = self._unique(subset)
        self._labels[idx] = int(label)

    def assign_pivot(self, subset: VertexSet, point: ArrayLike) -> None:
        idx = self._unique(subset)
        self._pivots[idx] = vec3(point)

    def set_color(self, subset: VertexSet, color: Sequence[float]) -> None:
        idx = self._unique(subset)
        self._colors[idx] = vec3(color)

    # -- hand-off -----------------------------------------------------------

    def freeze(self, metadata: dict[str, object] | None = None) -> MeshBuffers:
        """Finish the pass and return read-only buffers.

        After this call every mutating method raises :class:`StaleHandleError`.
        """
        self._ensure_open()
        n = self._count
        buffers = MeshBuffers(
            positions=_readonly(self._positions[:n].astype(np.float32)),
            indices=_readonly(np.asarray(self._indices, dtype=np.uint32).reshape(-1, 3)),
            colors=_readonly(self._colors[:n].astype(np.float32)),
            labels=_readonly(self._labels[:n].copy()),
            pivots=_readonly(self._pivots[:n].astype(np.float32)),
            metadata=dict(metadata or {}),
        )
        self._frozen = True
        logger.debug(
            "Froze builder %d: %d vertices, %d triangles",
            self._id,
            buffers.vertex_count,
            buffers.triangle_count,
        )
        return buffers


__all__ = [
    "POLE_COLOR",
    "RING_COLOR",
    "UNLABELLED",
    "MeshBuffers",
    "MeshBuilder",
    "Ring",
    "RingSpline",
    "VertexSet",
    "union",
]

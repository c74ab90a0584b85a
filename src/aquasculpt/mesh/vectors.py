"""3D vector algebra and basis transforms on numpy arrays.

Vectors are accepted as any length-3 array-like (tuple, list, ndarray) and
returned as float64 ndarrays of shape (3,).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np
from numpy.typing import ArrayLike

from .errors import DegenerateVector

logger = logging.getLogger(__name__)

# Smallest length treated as non-zero by normalize().
EPSILON: float = 1e-12

# |dot(forward, up_hint)| above this switches orthonormal_basis to a fallback axis.
_PARALLEL_THRESHOLD: float = 0.99


def vec3(v: ArrayLike) -> np.ndarray:
    """Coerce *v* to a float64 array of shape (3,).

    Raises:
        ValueError: If *v* does not hold exactly three components.
    """
    arr = np.asarray(v, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {arr.shape}")
    return arr


def add(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    return vec3(a) + vec3(b)


def subtract(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    return vec3(a) - vec3(b)


def scale(v: ArrayLike, s: float) -> np.ndarray:
    return vec3(v) * float(s)


def dot(a: ArrayLike, b: ArrayLike) -> float:
    return float(np.dot(vec3(a), vec3(b)))


def cross(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    return np.cross(vec3(a), vec3(b))


def length(v: ArrayLike) -> float:
    return float(np.linalg.norm(vec3(v)))


def normalize(v: ArrayLike, *, strict: bool = False) -> np.ndarray:
    """Return *v* scaled to unit length.

    A zero-length input cannot be normalized. By default this logs a warning
    and returns the zero vector so callers can keep going; with ``strict=True``
    it raises instead.

    Args:
        v: Input vector.
        strict: Raise :class:`DegenerateVector` instead of returning the zero
            vector sentinel.

    Returns:
        Unit vector, or ``[0, 0, 0]`` for degenerate input.

    Raises:
        DegenerateVector: If *v* has (near) zero length and *strict* is set.
    """
    arr = vec3(v)
    norm = float(np.linalg.norm(arr))
    if not np.isfinite(norm) or norm <= EPSILON:
        if strict:
            raise DegenerateVector(f"Cannot normalize zero-length vector {arr.tolist()}")
        logger.warning("normalize() got a zero-length vector %s", arr.tolist())
        return np.zeros(3)
    return arr / norm


def orthonormal_basis(
    forward: ArrayLike, up_hint: ArrayLike, *, strict: bool = False
) -> np.ndarray:
    """Build a right-handed orthonormal basis from a forward and an up hint.

    Z is ``forward`` normalized. Y is the component of ``up_hint``
    perpendicular to Z (Gram-Schmidt), normalized. X is ``Y x Z``. The inputs
    need not be orthogonal. When ``up_hint`` is nearly parallel to
    ``forward`` a world axis is substituted for it.

    Args:
        forward: Direction that becomes the local +Z axis.
        up_hint: Direction the local +Y axis should lean toward.
        strict: Propagated to :func:`normalize`.

    Returns:
        (3, 3) matrix whose columns are the X, Y, Z axes in the parent frame.
        The identity is returned (with a warning) if *forward* is degenerate.
    """
    z = normalize(forward, strict=strict)
    if not z.any():
        return np.eye(3)

    up = vec3(up_hint)
    up_len = float(np.linalg.norm(up))
    if up_len <= EPSILON or abs(float(np.dot(z, up / up_len))) > _PARALLEL_THRESHOLD:
        up = np.array([1.0, 0.0, 0.0]) if abs(z[0]) < 0.9 else np.array([0.0, 1.0, 0.0])

    y = normalize(up - np.dot(up, z) * z, strict=strict)
    x = np.cross(y, z)
    return np.column_stack([x, y, z])


def rotation_matrix(degrees: ArrayLike) -> np.ndarray:
    """Rotation matrix for Euler angles applied X first, then Y, then Z.

    Args:
        degrees: (rx, ry, rz) in degrees.

    Returns:
        (3, 3) matrix ``Rz @ Ry @ Rx`` acting on column vectors.
    """
    rx, ry, rz = np.radians(vec3(degrees))
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)
    rot_x = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    rot_y = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rot_z = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rot_z @ rot_y @ rot_x


def apply_matrix_transform(
    positions: np.ndarray,
    indices: Iterable[int],
    basis: ArrayLike,
    origin: ArrayLike,
) -> None:
    """Remap indexed vertices through a 3x3 basis about *origin*, in place.

    Each vertex is moved into origin-relative space, multiplied by *basis*
    (columns are the new X/Y/Z axes expressed in the parent frame) and moved
    back. Repeated indices are transformed once.

    Args:
        positions: (N, 3) float array, modified in place.
        indices: Vertex indices to transform.
        basis: (3, 3) matrix with axes as columns.
        origin: Pivot point.
    """
    idx = np.unique(np.fromiter(indices, dtype=np.int64))
    if idx.size == 0:
        return
    matrix = np.asarray(basis, dtype=np.float64).reshape(3, 3)
    pivot = vec3(origin)
    local = positions[idx] - pivot
    positions[idx] = local @ matrix.T + pivot


__all__ = [
    "EPSILON",
    "add",
    "apply_matrix_transform",
    "cross",
    "dot",
    "length",
    "normalize",
    "orthonormal_basis",
    "rotation_matrix",
    "scale",
    "subtract",
    "vec3",
]

"""Typed errors raised by the sculpting kernel in strict mode."""


class MeshError(ValueError):
    """Base class for all kernel errors."""


class InvalidRingLength(MeshError):
    """A ring has too few vertices, or an odd count where an even one is required."""


class DegenerateVector(MeshError):
    """A zero-length vector, zero scale component or non-positive length was supplied."""


class InvalidSplineControlPoints(MeshError):
    """Spline control points are too few, not 3-vectors, or all coincident."""


class StaleHandleError(MeshError):
    """A vertex handle was used with a builder that did not create it, or after freeze."""


__all__ = [
    "DegenerateVector",
    "InvalidRingLength",
    "InvalidSplineControlPoints",
    "MeshError",
    "StaleHandleError",
]

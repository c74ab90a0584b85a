"""Ring/extrude/pole mesh-sculpting kernel and its geometric helpers."""

from .builder import (
    POLE_COLOR,
    RING_COLOR,
    UNLABELLED,
    MeshBuffers,
    MeshBuilder,
    Ring,
    RingSpline,
    VertexSet,
    union,
)
from .errors import (
    DegenerateVector,
    InvalidRingLength,
    InvalidSplineControlPoints,
    MeshError,
    StaleHandleError,
)
from .mouth import fill_ring_mouth
from .primitives import create_subdiv_box, sphere
from .spline import CatmullRomSpline3D
from .surface import FeatureInfo, SurfacePoint, orient_feature, sample_feature_info
from .validation import (
    MeshSummary,
    degenerate_triangles,
    edge_face_counts,
    is_watertight,
    summarize_mesh,
)
from .vectors import normalize, orthonormal_basis, rotation_matrix

__all__ = [
    "POLE_COLOR",
    "RING_COLOR",
    "UNLABELLED",
    "CatmullRomSpline3D",
    "DegenerateVector",
    "FeatureInfo",
    "InvalidRingLength",
    "InvalidSplineControlPoints",
    "MeshBuffers",
    "MeshBuilder",
    "MeshError",
    "MeshSummary",
    "Ring",
    "RingSpline",
    "StaleHandleError",
    "SurfacePoint",
    "VertexSet",
    "create_subdiv_box",
    "degenerate_triangles",
    "edge_face_counts",
    "fill_ring_mouth",
    "is_watertight",
    "normalize",
    "orient_feature",
    "orthonormal_basis",
    "rotation_matrix",
    "sample_feature_info",
    "sphere",
    "summarize_mesh",
    "union",
]

"""Torso tube and the attachment data every other part hangs from."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from aquasculpt.mesh import (
    CatmullRomSpline3D,
    FeatureInfo,
    MeshBuilder,
    RingSpline,
    sample_feature_info,
)
from aquasculpt.mesh.builder import RING_SPLINE_ALPHA

from .labels import PartLabel

logger = logging.getLogger(__name__)

TORSO_RING_VERTS: int = 8
TORSO_RINGS: int = 10

# Paired fins are mounted slightly beneath the skin.
FIN_MOUNT_INSET: float = 0.9

# Height of the tail root above the spine's origin.
CAUDAL_MOUNT_HEIGHT: float = 0.035


@dataclass(frozen=True)
class Torso:
    """Torso geometry plus everything downstream parts need from it.

    Attributes:
        mesh: Ring-spline handle of the torso tube.
        pos_ctrl_pts: (4, 3) spine control points.
        scale_ctrl_pts: (4, 3) radius control points.
        pos_spline: Spline through ``pos_ctrl_pts`` (alpha 0.5).
        scale_spline: Spline through ``scale_ctrl_pts`` (alpha 0.5).
        caudal_mount: Root of the tail fin.
        head_mount: Attachment point of the head.
        neck_scale: Torso radii at the head end (scale spline at t = 0).
        pectoral_info: Mirrored surface samples for the pectoral fins.
        pelvic_info: Mirrored surface samples for the pelvic fins.
    """

    mesh: RingSpline
    pos_ctrl_pts: np.ndarray
    scale_ctrl_pts: np.ndarray
    pos_spline: CatmullRomSpline3D
    scale_spline: CatmullRomSpline3D
    caudal_mount: np.ndarray
    head_mount: np.ndarray
    neck_scale: np.ndarray
    pectoral_info: FeatureInfo
    pelvic_info: FeatureInfo


def torso_control_points(
    length: float, height: float, width: float, arch: float
) -> tuple[np.ndarray, np.ndarray]:
    """Spine and radius control points for a torso of the given proportions.

    The spine starts at the head end, dipped by *arch*, and rises slightly
    toward the tail. The radius profile peaks around 40% of the length.
    """
    pos_ctrl = np.array(
        [
            [0.0, -arch, 0.0],
            [0.0, 0.02 - arch * 0.5, length * 0.4],
            [0.0, 0.03, length * 0.7],
            [0.0, CAUDAL_MOUNT_HEIGHT, length],
        ]
    )
    scale_ctrl = np.array(
        [
            [width * 0.3, height * 0.5, 1.0],
            [width * 0.45, height, 1.0],
            [width * 0.35, height * 0.52, 1.0],
            [width * 0.2, height * 0.25, 1.0],
        ]
    )
    return pos_ctrl, scale_ctrl


def build_torso(
    builder: MeshBuilder,
    *,
    length: float,
    height: float,
    width: float,
    arch: float,
    pectoral_shift: float,
    pectoral_angle: float,
    pelvic_shift: float,
    pelvic_angle: float,
) -> Torso:
    """Build the torso tube and sample the paired-fin mounts on its skin.

    Args:
        builder: Target builder.
        length: Body length along +Z.
        height: Peak body height (Y radius at the widest ring).
        width: Body width scale (X radius factor).
        arch: Downward dip of the spine at the head end.
        pectoral_shift: Pectoral mount fraction along the spine.
        pectoral_angle: Pectoral mount angle around the spine (radians).
        pelvic_shift: Pelvic mount fraction along the spine.
        pelvic_angle: Pelvic mount angle around the spine (radians).

    Returns:
        :class:`Torso` describing the tube and its mounts.
    """
    pos_ctrl, scale_ctrl = torso_control_points(length, height, width, arch)
    mesh = builder.create_ring_spline(
        TORSO_RING_VERTS,
        TORSO_RINGS,
        pos_ctrl,
        scale_ctrl,
        end_pole_offset=(0.0, 0.0, length * 0.05),
        begin_pole_offset=(0.0, 0.0, -0.025),
    )
    builder.assign_label(mesh.all, PartLabel.BODY)
    builder.assign_pivot(mesh.all, builder.centroid(mesh.all))

    pos_spline = CatmullRomSpline3D(pos_ctrl, RING_SPLINE_ALPHA, strict=builder.strict)
    scale_spline = CatmullRomSpline3D(
        scale_ctrl, RING_SPLINE_ALPHA, strict=builder.strict
    )

    pectoral_info = sample_feature_info(
        pos_spline,
        scale_spline,
        pectoral_shift,
        pectoral_angle,
        inset=FIN_MOUNT_INSET,
        strict=builder.strict,
    )
    pelvic_info = sample_feature_info(
        pos_spline,
        scale_spline,
        pelvic_shift,
        pelvic_angle,
        inset=FIN_MOUNT_INSET,
        strict=builder.strict,
    )

    logger.debug(
        "Torso: %d vertices, length=%.3f height=%.3f width=%.3f arch=%.3f",
        len(mesh.all),
        length,
        height,
        width,
        arch,
    )
    return Torso(
        mesh=mesh,
        pos_ctrl_pts=pos_ctrl,
        scale_ctrl_pts=scale_ctrl,
        pos_spline=pos_spline,
        scale_spline=scale_spline,
        caudal_mount=np.array([0.0, CAUDAL_MOUNT_HEIGHT, length]),
        head_mount=np.array([0.0, -arch, 0.0]),
        neck_scale=scale_spline.get_point(0.0),
        pectoral_info=pectoral_info,
        pelvic_info=pelvic_info,
    )


__all__ = [
    "FIN_MOUNT_INSET",
    "TORSO_RINGS",
    "TORSO_RING_VERTS",
    "Torso",
    "build_torso",
    "torso_control_points",
]

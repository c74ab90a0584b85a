"""Head tube with grafted eyes and a seamed mouth."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from aquasculpt.mesh import (
    CatmullRomSpline3D,
    MeshBuilder,
    RingSpline,
    VertexSet,
    fill_ring_mouth,
    orient_feature,
    sample_feature_info,
    sphere,
    union,
)
from aquasculpt.mesh.builder import RING_SPLINE_ALPHA
from aquasculpt.mesh.vectors import vec3

from .labels import EyeStyle, PartLabel

logger = logging.getLogger(__name__)

# Must stay even so the mouth can split the last ring.
HEAD_RING_VERTS: int = 8
HEAD_RINGS: int = 20

# Applied to the configured head size before building (flattened, narrow head).
HEAD_SHAPE: tuple[float, float, float] = (0.1, 0.2, 1.0)

HEAD_COLOR: tuple[float, float, float] = (0.1, 0.5, 0.1)
EYE_COLOR: tuple[float, float, float] = (0.1, 0.1, 0.5)

EYE_SHIFT: float = 0.4
EYE_ANGLE: float = 0.5

TOP_LIP_SIZE = (0.4, 0.5, 1.0)
TOP_LIP_OFFSET = (0.0, 0.01, -0.01)
BOTTOM_LIP_SIZE = (0.65, 0.2, 1.0)
BOTTOM_LIP_OFFSET = (0.0, -0.025, -0.01)


@dataclass(frozen=True)
class Head:
    """Handles of everything the head stage created.

    Attributes:
        mesh: Uncapped ring-spline of the head tube.
        left_eye: Eye on the -X side (before the 180 degree turn).
        right_eye: Eye on the +X side (before the 180 degree turn).
        mouth: Slit, lips and lip caps.
        style: Eye style the head was requested with.
    """

    mesh: RingSpline
    left_eye: VertexSet
    right_eye: VertexSet
    mouth: VertexSet
    style: EyeStyle

    @property
    def all(self) -> VertexSet:
        return union(self.mesh.all, self.left_eye, self.right_eye, self.mouth)


def head_control_points(
    neck_scale: ArrayLike, head_size: np.ndarray, mouth_tilt: float
) -> tuple[np.ndarray, np.ndarray]:
    """Spine and radius control points running from the neck to the snout.

    Args:
        neck_scale: Torso radii where the head attaches.
        head_size: Shaped head size (after :data:`HEAD_SHAPE`).
        mouth_tilt: Vertical offset of the snout.
    """
    neck = vec3(neck_scale)
    pos_ctrl = np.array(
        [
            [0.0, 0.0, 0.0],
            [0.0, 0.0, head_size[2] * 0.15],
            [0.0, mouth_tilt, head_size[2] * 0.5],
        ]
    )
    scale_ctrl = np.array(
        [
            [neck[0], neck[1], 1.0],
            [
                head_size[0] * 0.3 + neck[0] * 0.7,
                head_size[1] * 0.3 + neck[1] * 0.7,
                1.0,
            ],
            [head_size[0], head_size[1], 1.0],
        ]
    )
    return pos_ctrl, scale_ctrl


def build_head(
    builder: MeshBuilder,
    *,
    head_mount: ArrayLike,
    neck_scale: ArrayLike,
    size: ArrayLike,
    eye_scale: float,
    mouth_tilt: float = 0.0,
    eye_style: EyeStyle = EyeStyle.BUBBLY,
) -> Head:
    """Build the head facing -Z from *head_mount*.

    The head is modelled along +Z from the neck, eyes are grafted onto its
    skin and the open snout ring is closed with :func:`fill_ring_mouth`.
    Everything is then turned 180 degrees about Y and moved to *head_mount*.

    Args:
        builder: Target builder.
        head_mount: Attachment point on the torso.
        neck_scale: Torso radii at the attachment point.
        size: Raw head size (x, y, z); X and Y are shaped by :data:`HEAD_SHAPE`.
        eye_scale: Uniform scale of each eye.
        mouth_tilt: Vertical offset of the snout.
        eye_style: Recorded eye style.

    Returns:
        :class:`Head` with handles for the tube, eyes and mouth.
    """
    head_size = vec3(size) * np.array(HEAD_SHAPE)
    pos_ctrl, scale_ctrl = head_control_points(neck_scale, head_size, mouth_tilt)

    mesh = builder.create_ring_spline(
        HEAD_RING_VERTS,
        HEAD_RINGS,
        pos_ctrl,
        scale_ctrl,
        end_pole_offset=(0.0, 0.0, head_size[2] * 0.05),
        begin_pole_offset=(0.0, 0.0, 0.0),
        color=HEAD_COLOR,
        fill_end=False,
        fill_start=False,
    )
    builder.assign_label(mesh.all, PartLabel.HEAD)

    pos_spline = CatmullRomSpline3D(pos_ctrl, RING_SPLINE_ALPHA, strict=builder.strict)
    scale_spline = CatmullRomSpline3D(
        scale_ctrl, RING_SPLINE_ALPHA, strict=builder.strict
    )
    eye_info = sample_feature_info(
        pos_spline, scale_spline, EYE_SHIFT, EYE_ANGLE, strict=builder.strict
    )

    eyes = []
    for _, point in eye_info.sides():
        eye = sphere(builder, (0.0, 0.0, 0.0), EYE_COLOR)
        builder.scale_around_point(eye, (0.0, 0.0, 0.0), (eye_scale, eye_scale, eye_scale))
        # lay the pole axis along the skin before grafting
        builder.rotate_around_point(eye, (0.0, 0.0, 0.0), (90.0, 0.0, 0.0))
        orient_feature(builder, eye, point)
        builder.assign_label(eye, PartLabel.EYE)
        eyes.append(eye)
    left_eye, right_eye = eyes

    mouth = fill_ring_mouth(
        builder,
        mesh.last_ring,
        head_size[2] * 0.1,
        TOP_LIP_SIZE,
        TOP_LIP_OFFSET,
        BOTTOM_LIP_SIZE,
        BOTTOM_LIP_OFFSET,
    )
    builder.assign_label(mouth, PartLabel.MOUTH)

    head = Head(
        mesh=mesh, left_eye=left_eye, right_eye=right_eye, mouth=mouth, style=eye_style
    )
    everything = head.all
    builder.rotate_around_point(everything, (0.0, 0.0, 0.0), (0.0, 180.0, 0.0))
    builder.translate(everything, head_mount)

    for part in (mesh.all, left_eye, right_eye, mouth):
        builder.assign_pivot(part, builder.centroid(part))

    logger.debug(
        "Head: %d vertices (%d eye, %d mouth), style=%s",
        len(everything),
        len(left_eye) + len(right_eye),
        len(mouth),
        eye_style.value,
    )
    return head


__all__ = ["HEAD_RINGS", "HEAD_RING_VERTS", "HEAD_SHAPE", "Head", "build_head"]

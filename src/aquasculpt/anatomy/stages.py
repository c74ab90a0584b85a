"""Assembly stages: each adds one group of parts to the shared builder.

Stage order matters. TorsoStage produces the mounts and splines that every
later stage reads from ``context.torso``:

1. TorsoStage      -> ``torso``, ``parts["body"]``
2. PairedFinStage  -> ``parts["pectoral_left"|"pectoral_right"|"pelvic_left"|"pelvic_right"]``
3. HeadStage       -> ``head``
4. CaudalStage     -> ``parts["caudal"]``
5. MedianFinStage  -> ``parts["dorsal"]``, ``parts["anal"]``

Stages read their parameters from ``context.config`` (the effective config
for this pass) rather than holding their own copy, so per-instance jitter
applied by the pipeline reaches every stage.
"""

from __future__ import annotations

import logging

from aquasculpt.mesh import MeshBuilder

from .body import Torso, build_torso
from .context import AssemblyContext
from .fins import (
    build_anal_fin,
    build_caudal_fin,
    build_dorsal_fin,
    build_pectoral_fin,
    build_pelvic_fin,
)
from .head import build_head
from .labels import AnalFinStyle, CaudalStyle, DorsalStyle, EyeStyle

logger = logging.getLogger(__name__)


def _inputs(context: AssemblyContext) -> tuple[object, MeshBuilder]:
    config = context.get("config")
    builder = context.get("builder")
    if not isinstance(builder, MeshBuilder):
        raise TypeError(
            f"AssemblyContext.builder must be a MeshBuilder, got {type(builder).__name__}"
        )
    return config, builder


def _torso(context: AssemblyContext) -> Torso:
    torso = context.get("torso")
    if not isinstance(torso, Torso):
        raise TypeError(
            f"AssemblyContext.torso must be a Torso, got {type(torso).__name__}"
        )
    return torso


class TorsoStage:
    """Stage 1: sweeps the torso tube and samples the paired-fin mounts."""

    def run(self, context: AssemblyContext) -> AssemblyContext:
        config, builder = _inputs(context)
        body = config.body  # type: ignore[attr-defined]
        pectoral = config.pectoral  # type: ignore[attr-defined]
        pelvic = config.pelvic  # type: ignore[attr-defined]

        torso = build_torso(
            builder,
            length=body.length,
            height=body.height,
            width=body.width,
            arch=body.arch,
            pectoral_shift=pectoral.shift,
            pectoral_angle=pectoral.angle,
            pelvic_shift=pelvic.shift,
            pelvic_angle=pelvic.angle,
        )
        context.torso = torso
        context.parts["body"] = torso.mesh.all
        return context


class PairedFinStage:
    """Stage 2: pectoral and pelvic fins, one per side."""

    def run(self, context: AssemblyContext) -> AssemblyContext:
        config, builder = _inputs(context)
        torso = _torso(context)
        pectoral = config.pectoral  # type: ignore[attr-defined]
        pelvic = config.pelvic  # type: ignore[attr-defined]

        for side, point in torso.pectoral_info.sides():
            context.parts[f"pectoral_{side}"] = build_pectoral_fin(
                builder, point, length=pectoral.length, width=pectoral.width
            )
        for side, point in torso.pelvic_info.sides():
            context.parts[f"pelvic_{side}"] = build_pelvic_fin(
                builder,
                point,
                length=pelvic.length,
                width=pelvic.width,
                left=side == "left",
            )
        return context


class HeadStage:
    """Stage 3: head tube, eyes and mouth, attached at the torso's head mount."""

    def run(self, context: AssemblyContext) -> AssemblyContext:
        config, builder = _inputs(context)
        torso = _torso(context)
        head = config.head  # type: ignore[attr-defined]

        context.head = build_head(
            builder,
            head_mount=torso.head_mount,
            neck_scale=torso.neck_scale,
            size=head.size,
            eye_scale=head.eye_scale,
            mouth_tilt=head.mouth_tilt,
            eye_style=EyeStyle(head.eye_style),
        )
        return context


class CaudalStage:
    """Stage 4: tail fin at the torso's caudal mount."""

    def run(self, context: AssemblyContext) -> AssemblyContext:
        config, builder = _inputs(context)
        torso = _torso(context)
        caudal = config.caudal  # type: ignore[attr-defined]

        context.parts["caudal"] = build_caudal_fin(
            builder,
            mount=torso.caudal_mount,
            length=caudal.length,
            width=caudal.width,
            curve=caudal.curve,
            body_length=config.body.length,  # type: ignore[attr-defined]
            style=CaudalStyle(caudal.style),
        )
        return context


class MedianFinStage:
    """Stage 5: dorsal ridge on the back and anal fin under the belly."""

    def run(self, context: AssemblyContext) -> AssemblyContext:
        config, builder = _inputs(context)
        torso = _torso(context)
        dorsal = config.dorsal  # type: ignore[attr-defined]
        anal = config.anal  # type: ignore[attr-defined]

        context.parts["dorsal"] = build_dorsal_fin(
            builder,
            torso.pos_spline,
            torso.scale_spline,
            length=dorsal.length,
            width=dorsal.width,
            shift=dorsal.shift,
            style=DorsalStyle(dorsal.style),
        )
        context.parts["anal"] = build_anal_fin(
            builder,
            torso.pos_spline,
            torso.scale_spline,
            length=anal.length,
            width=anal.width,
            shift=anal.shift,
            style=AnalFinStyle(anal.style),
        )
        return context


__all__ = [
    "CaudalStage",
    "HeadStage",
    "MedianFinStage",
    "PairedFinStage",
    "TorsoStage",
]

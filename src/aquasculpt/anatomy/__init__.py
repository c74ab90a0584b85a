"""Creature anatomy: part builders and the assembly stages that run them.

Import boundary: this package builds on ``aquasculpt.mesh`` only and never
imports from ``aquasculpt.engine``.
"""

from .body import Torso, build_torso
from .context import AssemblyContext, Stage
from .fins import (
    build_anal_fin,
    build_caudal_fin,
    build_dorsal_fin,
    build_pectoral_fin,
    build_pelvic_fin,
)
from .head import Head, build_head
from .labels import AnalFinStyle, CaudalStyle, DorsalStyle, EyeStyle, PartLabel
from .stages import CaudalStage, HeadStage, MedianFinStage, PairedFinStage, TorsoStage

__all__ = [
    "AnalFinStyle",
    "AssemblyContext",
    "CaudalStage",
    "CaudalStyle",
    "DorsalStyle",
    "EyeStyle",
    "Head",
    "HeadStage",
    "MedianFinStage",
    "PairedFinStage",
    "PartLabel",
    "Stage",
    "Torso",
    "TorsoStage",
    "build_anal_fin",
    "build_caudal_fin",
    "build_dorsal_fin",
    "build_head",
    "build_pectoral_fin",
    "build_pelvic_fin",
    "build_torso",
]

"""Per-vertex part labels and the style enums carried by the creature config."""

from __future__ import annotations

import enum


class PartLabel(enum.IntEnum):
    """Anatomical part a vertex belongs to, consumed by animation shaders.

    Vertices never assigned a part keep ``UNLABELLED`` (-1).
    """

    UNLABELLED = -1
    BODY = 0
    PELVIC = 1
    HEAD = 2
    EYE = 3
    MOUTH = 4
    MEDIAN_FIN = 5
    PECTORAL = 6
    CAUDAL = 7


class EyeStyle(enum.Enum):
    """Eye style. Recorded on the mesh; every style currently builds the same eye."""

    BULGE = "bulge"
    GOOGLY = "googly"
    CHEEKS = "cheeks"
    BUBBLY = "bubbly"


class CaudalStyle(enum.Enum):
    """Tail style. Recorded on the mesh; every style currently builds the same tail."""

    DROOPY = "droopy"
    VSLOPE = "vslope"
    FEATHERY = "feathery"
    VBUTT = "vbutt"
    BUTTERFLY = "butterfly"


class DorsalStyle(enum.Enum):
    MANE = "mane"
    PUNK = "punk"
    SWEPT = "swept"


class AnalFinStyle(enum.Enum):
    SPIKY = "spiky"
    FEATHERY = "feathery"


__all__ = ["AnalFinStyle", "CaudalStyle", "DorsalStyle", "EyeStyle", "PartLabel"]

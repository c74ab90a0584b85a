"""AquaSculpt: procedural fish mesh generation from ring/extrude/pole primitives."""

from aquasculpt.engine import CreatureConfig, generate_creature, load_config
from aquasculpt.mesh import MeshBuffers, MeshBuilder

__version__ = "0.1.0"

__all__ = [
    "CreatureConfig",
    "MeshBuffers",
    "MeshBuilder",
    "__version__",
    "generate_creature",
    "load_config",
]

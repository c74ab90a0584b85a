"""Typed lifecycle events emitted while a creature is generated.

Two tiers:
- Generation lifecycle: PipelineStart, PipelineComplete, PipelineFailed
- Stage lifecycle: StageStart, StageComplete

Every event is a frozen dataclass stamped with its construction time. Events
are how the pipeline talks to observers; observers never reach back into the
builder.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Event:
    """Base class for all generation events.

    Subscribing to ``Event`` on an :class:`~aquasculpt.engine.observers.EventBus`
    receives every concrete event type.

    Attributes:
        timestamp: Unix timestamp (seconds) at event construction time.
    """

    timestamp: float = field(default_factory=time.time)


# ---------------------------------------------------------------------------
# Generation lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PipelineStart(Event):
    """Emitted before the first stage runs.

    Attributes:
        run_id: Identifier of this generation run.
        config: The effective ``CreatureConfig`` (after jitter). Typed as
            ``object`` so this module stays free of config imports.
    """

    run_id: str = ""
    config: object = field(default=None, compare=False)


@dataclass(frozen=True)
class PipelineComplete(Event):
    """Emitted once every stage has run and the mesh is frozen.

    Attributes:
        run_id: Identifier of this generation run.
        elapsed_seconds: Wall-clock time for the whole run.
        vertex_count: Vertices in the frozen mesh.
        triangle_count: Triangles in the frozen mesh.
        context: Final ``AssemblyContext`` holding the frozen ``buffers``.
    """

    run_id: str = ""
    elapsed_seconds: float = 0.0
    vertex_count: int = 0
    triangle_count: int = 0
    context: object = field(default=None, compare=False)


@dataclass(frozen=True)
class PipelineFailed(Event):
    """Emitted when a stage raises; the exception is re-raised afterwards.

    Attributes:
        run_id: Identifier of this generation run.
        error: String form of the exception.
        elapsed_seconds: Wall-clock time before the failure.
    """

    run_id: str = ""
    error: str = ""
    elapsed_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Stage lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StageStart(Event):
    """Emitted immediately before a stage runs.

    Attributes:
        stage_name: Class name of the stage.
        stage_index: Zero-based position in the stage list.
    """

    stage_name: str = ""
    stage_index: int = 0


@dataclass(frozen=True)
class StageComplete(Event):
    """Emitted after a stage returns.

    Attributes:
        stage_name: Class name of the stage.
        stage_index: Zero-based position in the stage list.
        elapsed_seconds: Wall-clock time for this stage.
        summary: Geometry added by the stage
            (``{"vertices_added": 82, "triangles_added": 160}``).
        context: The ``AssemblyContext`` after this stage.
    """

    stage_name: str = ""
    stage_index: int = 0
    elapsed_seconds: float = 0.0
    summary: dict[str, object] = field(default_factory=dict)
    context: object = field(default=None, compare=False)


__all__ = [
    "Event",
    "PipelineComplete",
    "PipelineFailed",
    "PipelineStart",
    "StageComplete",
    "StageStart",
]

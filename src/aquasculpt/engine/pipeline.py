"""SculptPipeline orchestrator: the single entrypoint for generating a creature.

SculptPipeline jitters the config, creates one :class:`MeshBuilder`, runs the
assembly stages in order, emits lifecycle events via an EventBus and freezes
the builder into ``context.buffers``. When the config names an output
directory the serialized config is written there before any stage runs.

:func:`build_stages` constructs the standard five assembly stages and
:func:`generate_creature` wraps the whole thing for library callers.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np

from aquasculpt.anatomy import (
    AssemblyContext,
    CaudalStage,
    HeadStage,
    MedianFinStage,
    PairedFinStage,
    Stage,
    TorsoStage,
)
from aquasculpt.engine.config import CreatureConfig, jitter_config, serialize_config
from aquasculpt.engine.events import (
    Event,
    PipelineComplete,
    PipelineFailed,
    PipelineStart,
    StageComplete,
    StageStart,
)
from aquasculpt.engine.observers import EventBus, Observer
from aquasculpt.mesh import MeshBuffers, MeshBuilder

logger = logging.getLogger(__name__)

STAGE_NAMES: dict[str, type] = {
    "torso": TorsoStage,
    "paired_fins": PairedFinStage,
    "head": HeadStage,
    "caudal": CaudalStage,
    "median_fins": MedianFinStage,
}


class SculptPipeline:
    """Runs assembly stages against one shared mesh builder.

    ``run()``:

    1. Writes ``config.yaml`` into ``config.output_dir`` (skipped when the
       output directory is empty).
    2. Applies per-instance jitter using *rng*.
    3. Emits PipelineStart, then StageStart/StageComplete around each stage.
    4. Freezes the builder into ``context.buffers`` and emits
       PipelineComplete; a stage exception emits PipelineFailed and is
       re-raised.

    Observers only watch; removing them all produces the same mesh.

    Example::

        config = load_config(cli_overrides={"seed": 7, "jitter": 0.1})
        pipeline = SculptPipeline(build_stages(config), config)
        buffers = pipeline.run().buffers

    Args:
        stages: Ordered stage instances.
        config: Frozen base config for this run.
        observers: Optional observers, each subscribed to every event.
        rng: Jitter generator. Defaults to ``np.random.default_rng(config.seed)``.
    """

    def __init__(
        self,
        stages: list[Stage],
        config: CreatureConfig,
        observers: list[Observer] | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._stages = list(stages)
        self._config = config
        self._rng = rng if rng is not None else np.random.default_rng(config.seed)
        self._bus = EventBus()

        if observers:
            for observer in observers:
                self._bus.subscribe(Event, observer)

    def add_observer(self, observer: Observer, event_type: type[Event] = Event) -> None:
        """Subscribe *observer* to *event_type* events (all events by default)."""
        self._bus.subscribe(event_type, observer)

    def remove_observer(
        self, observer: Observer, event_type: type[Event] = Event
    ) -> None:
        """Unsubscribe *observer* from *event_type*; a no-op if not subscribed."""
        self._bus.unsubscribe(event_type, observer)

    def run(self) -> AssemblyContext:
        """Execute all stages and return the final context.

        Returns:
            The :class:`AssemblyContext` with ``buffers`` set to the frozen mesh.

        Raises:
            Exception: Re-raises whatever a stage raised, after emitting
                ``PipelineFailed``.
        """
        pipeline_start = time.monotonic()
        run_id = self._config.run_id

        if self._config.output_dir:
            output_dir = Path(self._config.output_dir).expanduser()
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / "config.yaml").write_text(
                serialize_config(self._config), encoding="utf-8"
            )

        effective = jitter_config(self._config, self._rng)
        builder = MeshBuilder(strict=effective.strict)
        context = AssemblyContext(config=effective, builder=builder)

        self._bus.emit(PipelineStart(run_id=run_id, config=effective))

        try:
            for i, stage in enumerate(self._stages):
                stage_name = type(stage).__name__
                self._bus.emit(StageStart(stage_name=stage_name, stage_index=i))
                verts_before = builder.vertex_count
                tris_before = builder.triangle_count
                stage_start = time.monotonic()
                context = stage.run(context)
                elapsed = time.monotonic() - stage_start
                context.stage_timing[stage_name] = elapsed
                summary = {
                    "vertices_added": builder.vertex_count - verts_before,
                    "triangles_added": builder.triangle_count - tris_before,
                }
                logger.debug("%s: %s in %.3fs", stage_name, summary, elapsed)
                self._bus.emit(
                    StageComplete(
                        stage_name=stage_name,
                        stage_index=i,
                        elapsed_seconds=elapsed,
                        summary=summary,
                        context=context,
                    )
                )
            buffers = builder.freeze(metadata={"run_id": run_id})
            context.buffers = buffers
        except Exception as exc:
            self._bus.emit(
                PipelineFailed(
                    run_id=run_id,
                    error=str(exc),
                    elapsed_seconds=time.monotonic() - pipeline_start,
                )
            )
            raise

        self._bus.emit(
            PipelineComplete(
                run_id=run_id,
                elapsed_seconds=time.monotonic() - pipeline_start,
                vertex_count=buffers.vertex_count,
                triangle_count=buffers.triangle_count,
                context=context,
            )
        )
        return context


# ---------------------------------------------------------------------------
# Stage factory
# ---------------------------------------------------------------------------


def build_stages(config: CreatureConfig) -> list[Stage]:
    """Construct the assembly stages for *config*.

    Order: Torso -> PairedFin -> Head -> Caudal -> MedianFin. When
    ``config.stop_after`` names a stage the list ends there.

    Args:
        config: Frozen creature config.

    Returns:
        Ordered list of stage instances.

    Raises:
        ValueError: If ``config.stop_after`` is not a known stage name.
    """
    stages: list[Stage] = [cls() for cls in STAGE_NAMES.values()]

    if config.stop_after is None:
        return stages
    target_cls = STAGE_NAMES.get(config.stop_after)
    if target_cls is None:
        raise ValueError(
            f"Unknown stop_after stage {config.stop_after!r}. "
            f"Valid values: {list(STAGE_NAMES)}"
        )
    for i, stage in enumerate(stages):
        if isinstance(stage, target_cls):
            return stages[: i + 1]
    return stages


def generate_creature(
    config: CreatureConfig | None = None,
    rng: np.random.Generator | None = None,
    observers: list[Observer] | None = None,
) -> MeshBuffers:
    """Generate one creature mesh.

    Args:
        config: Creature config; defaults to ``CreatureConfig()``, which has
            no output directory and so writes nothing to disk.
        rng: Optional jitter generator (see :class:`SculptPipeline`).
        observers: Optional observers.

    Returns:
        The frozen :class:`MeshBuffers`.
    """
    config = config if config is not None else CreatureConfig()
    context = SculptPipeline(build_stages(config), config, observers, rng).run()
    return context.get("buffers")  # type: ignore[return-value]


__all__ = ["STAGE_NAMES", "SculptPipeline", "build_stages", "generate_creature"]

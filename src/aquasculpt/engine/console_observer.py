"""ConsoleObserver: stage-level progress lines on stderr."""

from __future__ import annotations

import sys

from aquasculpt.engine.events import (
    Event,
    PipelineComplete,
    PipelineFailed,
    PipelineStart,
    StageComplete,
)


class ConsoleObserver:
    """Writes human-readable progress to stderr, keeping stdout clean.

    Lines look like ``[1/5] TorsoStage... done (3.2ms)``; with *verbose* the
    vertex and triangle counts each stage added are appended.

    Args:
        verbose: Append per-stage geometry counts.
        total_stages: Number of stages, for the ``[i/N]`` prefix.
    """

    def __init__(self, verbose: bool = False, total_stages: int = 5) -> None:
        self._verbose = verbose
        self._total_stages = total_stages
        self._output_dir: str = ""

    def on_event(self, event: Event) -> None:
        if isinstance(event, PipelineStart):
            config = event.config
            if config is not None and hasattr(config, "output_dir"):
                self._output_dir = config.output_dir  # type: ignore[union-attr]

        elif isinstance(event, StageComplete):
            line = (
                f"[{event.stage_index + 1}/{self._total_stages}] "
                f"{event.stage_name}... done ({event.elapsed_seconds * 1000:.1f}ms)"
            )
            if self._verbose and event.summary:
                line += (
                    f" +{event.summary.get('vertices_added', 0)} verts"
                    f" +{event.summary.get('triangles_added', 0)} tris"
                )
            sys.stderr.write(line + "\n")
            sys.stderr.flush()

        elif isinstance(event, PipelineComplete):
            target = f" -> {self._output_dir}" if self._output_dir else ""
            sys.stderr.write(
                f"Creature complete: {event.vertex_count} vertices, "
                f"{event.triangle_count} triangles{target}\n"
            )
            sys.stderr.flush()

        elif isinstance(event, PipelineFailed):
            sys.stderr.write(
                f"Generation FAILED after {event.elapsed_seconds:.3f}s: {event.error}\n"
            )
            sys.stderr.flush()


__all__ = ["ConsoleObserver"]

"""Observer assembly for the generation engine.

:func:`build_observers` turns CLI-level choices into the observer list passed
to :class:`~aquasculpt.engine.pipeline.SculptPipeline`, so the CLI holds no
observer wiring of its own.
"""

from __future__ import annotations

from pathlib import Path

from aquasculpt.engine.config import CreatureConfig
from aquasculpt.engine.console_observer import ConsoleObserver
from aquasculpt.engine.export_observer import MeshExportObserver
from aquasculpt.engine.observers import Observer
from aquasculpt.engine.timing import TimingObserver

__all__ = ["build_observers"]


def build_observers(
    config: CreatureConfig,
    *,
    verbose: bool = False,
    total_stages: int = 5,
    formats: tuple[str, ...] = ("h5",),
    preview: bool = False,
) -> list[Observer]:
    """Assemble console, timing and export observers for one run.

    Timing and export observers are only added when ``config.output_dir`` is
    set, since both write files there.

    Args:
        config: Creature config (its ``output_dir`` receives the files).
        verbose: Verbose console output.
        total_stages: Number of stages, for the console progress prefix.
        formats: Export formats for :class:`MeshExportObserver`.
        preview: Also render ``preview.png``.

    Returns:
        Observer list ready for the pipeline.
    """
    observers: list[Observer] = [
        ConsoleObserver(verbose=verbose, total_stages=total_stages),
    ]
    if not config.output_dir:
        return observers

    output_dir = Path(config.output_dir)
    observers.append(TimingObserver(output_path=output_dir / "timing.txt"))
    if formats or preview:
        observers.append(
            MeshExportObserver(output_dir=output_dir, formats=formats, preview=preview)
        )
    return observers

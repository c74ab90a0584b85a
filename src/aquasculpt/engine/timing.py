"""Timing observer for per-stage and total generation wall-clock time."""

from __future__ import annotations

import logging
from pathlib import Path

from aquasculpt.engine.events import (
    Event,
    PipelineComplete,
    PipelineFailed,
    PipelineStart,
    StageComplete,
)

logger = logging.getLogger(__name__)


class TimingObserver:
    """Builds a per-stage timing report from lifecycle events.

    Args:
        output_path: If set, the report is written here when the run ends.

    Example::

        observer = TimingObserver(output_path="/tmp/timing.txt")
        SculptPipeline(stages, config, observers=[observer]).run()
        print(observer.report())
    """

    def __init__(self, output_path: str | Path | None = None) -> None:
        self._output_path = Path(output_path) if output_path is not None else None
        self.stage_times: dict[str, float] = {}
        self.total_time: float | None = None
        self.run_id: str = ""
        self._failed: bool = False

    def on_event(self, event: Event) -> None:
        """Record timing data carried by *event*."""
        if isinstance(event, PipelineStart):
            self.run_id = event.run_id
        elif isinstance(event, StageComplete):
            self.stage_times[event.stage_name] = event.elapsed_seconds
        elif isinstance(event, PipelineComplete):
            self.total_time = event.elapsed_seconds
            self._failed = False
            self._finalize()
        elif isinstance(event, PipelineFailed):
            self.total_time = event.elapsed_seconds
            self._failed = True
            self._finalize()

    def report(self) -> str:
        """Return a formatted multi-line timing report.

        One row per stage with elapsed milliseconds and share of the total,
        then a total row. A failed run gets a trailing note.
        """
        lines: list[str] = [f"Timing report: {self.run_id}", "=" * 50]

        total = self.total_time if self.total_time and self.total_time > 0 else None

        for stage_name, elapsed in self.stage_times.items():
            pct = f" ({elapsed / total * 100:5.1f}%)" if total else ""
            lines.append(f"  {stage_name:<30s} {elapsed * 1000:8.2f}ms{pct}")

        lines.append("-" * 50)
        if total is not None:
            lines.append(f"  {'TOTAL':<30s} {total * 1000:8.2f}ms")
        else:
            lines.append(f"  {'TOTAL':<30s}       N/A")

        if self._failed:
            lines.append("")
            lines.append("  ** Generation FAILED: partial timing report **")

        return "\n".join(lines)

    def _finalize(self) -> None:
        report_text = self.report()
        logger.info("\n%s", report_text)

        if self._output_path is not None:
            self._output_path.parent.mkdir(parents=True, exist_ok=True)
            self._output_path.write_text(report_text, encoding="utf-8")


__all__ = ["TimingObserver"]

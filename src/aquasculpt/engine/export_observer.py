"""Export observer: writes the frozen mesh to disk when generation completes."""

from __future__ import annotations

import logging
from pathlib import Path

from aquasculpt.engine.config import CreatureConfig, serialize_config
from aquasculpt.engine.events import Event, PipelineComplete, PipelineStart
from aquasculpt.io import write_mesh_h5, write_obj
from aquasculpt.mesh import MeshBuffers

logger = logging.getLogger(__name__)

EXPORT_FORMATS: tuple[str, ...] = ("h5", "obj")


class MeshExportObserver:
    """Writes ``mesh.h5`` and/or ``mesh.obj`` (and optionally ``preview.png``).

    Captures the effective (jittered) config on PipelineStart and stores its
    YAML inside the HDF5 file on PipelineComplete, so the exact creature
    parameters travel with the mesh.

    Args:
        output_dir: Directory the files are written into.
        formats: Any of ``"h5"`` and ``"obj"``.
        preview: Also render a matplotlib preview image.

    Raises:
        ValueError: If *formats* names an unknown format.
    """

    def __init__(
        self,
        output_dir: str | Path,
        formats: tuple[str, ...] = ("h5",),
        preview: bool = False,
    ) -> None:
        unknown = set(formats) - set(EXPORT_FORMATS)
        if unknown:
            raise ValueError(
                f"Unknown export format(s) {sorted(unknown)}. "
                f"Valid formats: {list(EXPORT_FORMATS)}"
            )
        self._output_dir = Path(output_dir).expanduser()
        self._formats = tuple(formats)
        self._preview = preview
        self._config_yaml: str | None = None
        self.written: list[Path] = []

    def on_event(self, event: Event) -> None:
        if isinstance(event, PipelineStart):
            if isinstance(event.config, CreatureConfig):
                self._config_yaml = serialize_config(event.config)
        elif isinstance(event, PipelineComplete):
            self._export(event)

    def _export(self, event: PipelineComplete) -> None:
        buffers = getattr(event.context, "buffers", None)
        if not isinstance(buffers, MeshBuffers):
            logger.warning("PipelineComplete carried no mesh buffers; nothing exported")
            return

        if "h5" in self._formats:
            self.written.append(
                write_mesh_h5(
                    self._output_dir / "mesh.h5",
                    buffers,
                    run_id=event.run_id,
                    config_yaml=self._config_yaml,
                )
            )
        if "obj" in self._formats:
            self.written.append(write_obj(self._output_dir / "mesh.obj", buffers))
        if self._preview:
            from aquasculpt.visualization import save_preview

            self.written.append(
                save_preview(
                    buffers, self._output_dir / "preview.png", title=event.run_id
                )
            )


__all__ = ["EXPORT_FORMATS", "MeshExportObserver"]

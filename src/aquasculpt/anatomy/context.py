"""Stage Protocol and AssemblyContext: the data contract between assembly stages.

These types live beside the part builders, not in ``aquasculpt.engine``, so
that stages never import the engine. The engine re-exports them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class Stage(Protocol):
    """Structural protocol for all assembly stages.

    Any class with a ``run(context: AssemblyContext) -> AssemblyContext``
    method is a Stage; no inheritance required.

    Example::

        class NoseStage:
            def run(self, context: AssemblyContext) -> AssemblyContext:
                builder = context.get("builder")
                context.parts["nose"] = sphere(builder, (0.0, 0.0, -0.1))
                return context
    """

    def run(self, context: AssemblyContext) -> AssemblyContext:
        """Add this stage's geometry to ``context.builder`` and return the context.

        Args:
            context: Accumulated assembly state from prior stages.

        Returns:
            The same context object with this stage's outputs populated.
        """
        ...


@dataclass
class AssemblyContext:
    """Typed accumulator for one creature's generation pass.

    Fields are None until the producing stage (or the pipeline) has set
    them. Use :meth:`get` to read a field with a clear error if it is
    missing.

    Attributes:
        config: Effective (jittered) creature config for this pass.
            Type: ``CreatureConfig``. Set by the pipeline.
        builder: Mesh builder shared by all stages. Type: ``MeshBuilder``.
            Set by the pipeline.
        torso: Torso tube plus mounts, splines and fin packets.
            Type: ``Torso``. Set by TorsoStage.
        head: Head, eye and mouth handles. Type: ``Head``. Set by HeadStage.
        parts: Vertex handles of the remaining parts keyed by name
            (``pectoral_left``, ``pelvic_right``, ``caudal``, ``dorsal``,
            ``anal`` ...). Type: ``dict[str, VertexSet]``.
        buffers: Frozen output mesh. Type: ``MeshBuffers``. Set by the
            pipeline after the last stage.
        stage_timing: Wall-clock seconds per stage, keyed by stage class name.
    """

    config: object | None = None
    builder: object | None = None
    torso: object | None = None
    head: object | None = None
    parts: dict[str, object] = field(default_factory=dict)
    buffers: object | None = None
    stage_timing: dict[str, float] = field(default_factory=dict)

    def get(self, field_name: str) -> object:
        """Return the value of a field, raising ValueError if it is None.

        Args:
            field_name: Name of the AssemblyContext field to retrieve.

        Returns:
            The field value (guaranteed non-None).

        Raises:
            ValueError: If the field is None, meaning the producing stage has
                not run yet.
            AttributeError: If ``field_name`` is not a field of this dataclass.
        """
        value = getattr(self, field_name)
        if value is None:
            raise ValueError(
                f"AssemblyContext.{field_name} is None: the stage that produces "
                f"'{field_name}' has not run yet. Check stage ordering."
            )
        return value


__all__ = ["AssemblyContext", "Stage"]

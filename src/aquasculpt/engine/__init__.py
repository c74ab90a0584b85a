"""Generation engine: config, events, observers and the pipeline orchestrator.

Import boundary: engine/ may import from ``aquasculpt.mesh`` and
``aquasculpt.anatomy``, never the reverse. ``Stage`` and ``AssemblyContext``
are defined in ``aquasculpt.anatomy.context`` and re-exported here.
"""

from aquasculpt.anatomy.context import AssemblyContext, Stage
from aquasculpt.engine.config import (
    AnalConfig,
    BodyConfig,
    CaudalConfig,
    CreatureConfig,
    DorsalConfig,
    HeadConfig,
    PairedFinConfig,
    PectoralConfig,
    PelvicConfig,
    jitter_config,
    load_config,
    serialize_config,
)
from aquasculpt.engine.console_observer import ConsoleObserver
from aquasculpt.engine.events import (
    Event,
    PipelineComplete,
    PipelineFailed,
    PipelineStart,
    StageComplete,
    StageStart,
)
from aquasculpt.engine.export_observer import MeshExportObserver
from aquasculpt.engine.observer_factory import build_observers
from aquasculpt.engine.observers import EventBus, Observer
from aquasculpt.engine.pipeline import SculptPipeline, build_stages, generate_creature
from aquasculpt.engine.timing import TimingObserver

__all__ = [
    "AnalConfig",
    "AssemblyContext",
    "BodyConfig",
    "CaudalConfig",
    "ConsoleObserver",
    "CreatureConfig",
    "DorsalConfig",
    "Event",
    "EventBus",
    "HeadConfig",
    "MeshExportObserver",
    "Observer",
    "PairedFinConfig",
    "PectoralConfig",
    "PelvicConfig",
    "PipelineComplete",
    "PipelineFailed",
    "PipelineStart",
    "SculptPipeline",
    "Stage",
    "StageComplete",
    "StageStart",
    "TimingObserver",
    "build_observers",
    "build_stages",
    "generate_creature",
    "jitter_config",
    "load_config",
    "serialize_config",
]

"""Unit tests for SculptPipeline orchestration and generate_creature."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import yaml

from aquasculpt.anatomy import AssemblyContext, PartLabel, TorsoStage
from aquasculpt.engine.config import CreatureConfig, load_config
from aquasculpt.engine.events import (
    Event,
    PipelineComplete,
    PipelineFailed,
    PipelineStart,
    StageComplete,
    StageStart,
)
from aquasculpt.engine.pipeline import SculptPipeline, build_stages, generate_creature
from aquasculpt.mesh import MeshBuffers, summarize_mesh


class Recorder:
    def __init__(self) -> None:
        self.received: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.received.append(event)


class FailingStage:
    def run(self, context: AssemblyContext) -> AssemblyContext:
        raise RuntimeError("stage exploded")


# ---------------------------------------------------------------------------
# Event sequence
# ---------------------------------------------------------------------------


def test_event_order_for_full_run() -> None:
    config = CreatureConfig()
    recorder = Recorder()
    SculptPipeline(build_stages(config), config, observers=[recorder]).run()

    kinds = [type(e) for e in recorder.received]
    assert kinds[0] is PipelineStart
    assert kinds[-1] is PipelineComplete
    assert kinds[1:-1] == [StageStart, StageComplete] * 5

    names = [e.stage_name for e in recorder.received if isinstance(e, StageComplete)]
    assert names == [
        "TorsoStage",
        "PairedFinStage",
        "HeadStage",
        "CaudalStage",
        "MedianFinStage",
    ]


def test_stage_summaries_add_up() -> None:
    config = CreatureConfig()
    recorder = Recorder()
    context = SculptPipeline(build_stages(config), config, observers=[recorder]).run()

    completes = [e for e in recorder.received if isinstance(e, StageComplete)]
    assert completes[0].summary["vertices_added"] == 82
    total = sum(int(e.summary["vertices_added"]) for e in completes)
    final = recorder.received[-1]
    assert isinstance(final, PipelineComplete)
    assert total == final.vertex_count == 501
    assert final.context is context
    assert set(context.stage_timing) == {e.stage_name for e in completes}


def test_run_freezes_buffers() -> None:
    config = CreatureConfig(run_id="run_buf")
    context = SculptPipeline(build_stages(config), config).run()
    buffers = context.get("buffers")
    assert isinstance(buffers, MeshBuffers)
    assert buffers.metadata["run_id"] == "run_buf"
    assert not buffers.positions.flags.writeable


def test_observers_do_not_change_the_mesh() -> None:
    config = CreatureConfig(seed=3, jitter=0.1)
    quiet = SculptPipeline(build_stages(config), config).run().get("buffers")
    watched = (
        SculptPipeline(build_stages(config), config, observers=[Recorder()])
        .run()
        .get("buffers")
    )
    assert np.array_equal(quiet.positions, watched.positions)
    assert np.array_equal(quiet.indices, watched.indices)


def test_add_and_remove_observer() -> None:
    config = CreatureConfig(stop_after="torso")
    pipeline = SculptPipeline(build_stages(config), config)
    recorder = Recorder()
    pipeline.add_observer(recorder, StageComplete)
    pipeline.run()
    assert len(recorder.received) == 1

    pipeline.remove_observer(recorder, StageComplete)
    pipeline.run()
    assert len(recorder.received) == 1


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------


def test_failure_emits_pipeline_failed_and_reraises() -> None:
    config = CreatureConfig()
    recorder = Recorder()
    pipeline = SculptPipeline([TorsoStage(), FailingStage()], config, [recorder])

    with pytest.raises(RuntimeError, match="stage exploded"):
        pipeline.run()

    last = recorder.received[-1]
    assert isinstance(last, PipelineFailed)
    assert last.error == "stage exploded"
    assert not any(isinstance(e, PipelineComplete) for e in recorder.received)


# ---------------------------------------------------------------------------
# Artifacts and jitter
# ---------------------------------------------------------------------------


def test_config_yaml_written_when_output_dir_set(tmp_path: Path) -> None:
    config = load_config(
        cli_overrides={"output_dir": str(tmp_path / "out"), "seed": "11"},
        run_id="run_cfg",
    )
    SculptPipeline(build_stages(config), config).run()

    written = yaml.safe_load((tmp_path / "out" / "config.yaml").read_text())
    assert written["run_id"] == "run_cfg"
    assert written["seed"] == 11


def test_nothing_written_without_output_dir(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    generate_creature(CreatureConfig(stop_after="torso"))
    assert list(tmp_path.iterdir()) == []


def test_pipeline_start_carries_jittered_config() -> None:
    config = CreatureConfig(seed=5, jitter=0.2)
    recorder = Recorder()
    SculptPipeline(build_stages(config), config, observers=[recorder]).run()
    start = recorder.received[0]
    assert isinstance(start, PipelineStart)
    assert isinstance(start.config, CreatureConfig)
    assert start.config.body.length != config.body.length


def test_same_seed_same_mesh() -> None:
    config = CreatureConfig(seed=9, jitter=0.15)
    a = generate_creature(config)
    b = generate_creature(config)
    assert np.array_equal(a.positions, b.positions)
    c = generate_creature(config, rng=np.random.default_rng(10))
    assert not np.array_equal(a.positions, c.positions)


# ---------------------------------------------------------------------------
# generate_creature
# ---------------------------------------------------------------------------


def test_generate_creature_default_mesh() -> None:
    buffers = generate_creature()
    summary = summarize_mesh(buffers)
    assert summary.vertex_count == 501
    assert summary.all_finite
    assert PartLabel.UNLABELLED not in summary.label_counts
    assert summary.label_counts[PartLabel.BODY] == 82


def test_generate_creature_stop_after() -> None:
    buffers = generate_creature(CreatureConfig(stop_after="paired_fins"))
    assert buffers.vertex_count == 82 + 4 * 26
    assert set(np.unique(buffers.labels).tolist()) == {
        PartLabel.BODY,
        PartLabel.PECTORAL,
        PartLabel.PELVIC,
    }

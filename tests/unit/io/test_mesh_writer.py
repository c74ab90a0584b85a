"""Unit tests for the HDF5 and OBJ mesh writers."""

from __future__ import annotations

import hashlib
from pathlib import Path

import h5py
import numpy as np
import pytest
from numpy.testing import assert_array_equal

from aquasculpt.anatomy import PartLabel
from aquasculpt.io import read_mesh_h5, write_mesh_h5, write_obj
from aquasculpt.mesh import MeshBuffers, MeshBuilder, sphere


@pytest.fixture
def buffers() -> MeshBuffers:
    builder = MeshBuilder()
    ball = sphere(builder, (1.0, 2.0, 3.0), (0.2, 0.4, 0.6))
    builder.assign_label(ball, PartLabel.EYE)
    builder.assign_pivot(ball, builder.centroid(ball))
    return builder.freeze()


# ---------------------------------------------------------------------------
# HDF5
# ---------------------------------------------------------------------------


def test_h5_layout(tmp_path: Path, buffers: MeshBuffers) -> None:
    path = write_mesh_h5(tmp_path / "sub" / "mesh.h5", buffers, run_id="run_a")
    with h5py.File(path, "r") as f:
        grp = f["mesh"]
        assert grp["positions"].dtype == np.float32
        assert grp["indices"].dtype == np.uint32
        assert grp["labels"].dtype == np.int32
        assert grp["pivots"].shape == (buffers.vertex_count, 3)
        assert "config_yaml" not in f.attrs


def test_h5_round_trip(tmp_path: Path, buffers: MeshBuffers) -> None:
    config_yaml = "body:\n  length: 0.8\n"
    path = write_mesh_h5(
        tmp_path / "mesh.h5", buffers, run_id="run_a", config_yaml=config_yaml
    )
    loaded, attrs = read_mesh_h5(path)

    assert_array_equal(loaded.positions, buffers.positions)
    assert_array_equal(loaded.indices, buffers.indices)
    assert_array_equal(loaded.colors, buffers.colors)
    assert_array_equal(loaded.labels, buffers.labels)
    assert_array_equal(loaded.pivots, buffers.pivots)
    assert not loaded.positions.flags.writeable

    assert attrs["run_id"] == "run_a"
    assert attrs["vertex_count"] == 26
    assert attrs["triangle_count"] == buffers.triangle_count
    assert attrs["config_yaml"] == config_yaml
    assert attrs["config_hash"] == hashlib.md5(config_yaml.encode()).hexdigest()
    assert "T" in attrs["run_timestamp"]
    assert loaded.metadata == attrs


def test_h5_overwrites_existing(tmp_path: Path, buffers: MeshBuffers) -> None:
    path = tmp_path / "mesh.h5"
    write_mesh_h5(path, buffers, run_id="first")
    write_mesh_h5(path, buffers, run_id="second")
    assert read_mesh_h5(path)[1]["run_id"] == "second"


def test_read_without_mesh_group_raises(tmp_path: Path) -> None:
    path = tmp_path / "empty.h5"
    with h5py.File(path, "w") as f:
        f.attrs["run_id"] = "x"
    with pytest.raises(KeyError):
        read_mesh_h5(path)


# ---------------------------------------------------------------------------
# OBJ
# ---------------------------------------------------------------------------


def test_obj_lines(tmp_path: Path, buffers: MeshBuffers) -> None:
    path = write_obj(tmp_path / "mesh.obj", buffers)
    lines = path.read_text().splitlines()

    assert lines[0].startswith("# aquasculpt mesh: 26 vertices")
    vertex_lines = [ln for ln in lines if ln.startswith("v ")]
    face_lines = [ln for ln in lines if ln.startswith("f ")]
    assert len(vertex_lines) == buffers.vertex_count
    assert len(face_lines) == buffers.triangle_count

    first = vertex_lines[0].split()
    assert len(first) == 7
    assert [float(v) for v in first[4:]] == pytest.approx([0.2, 0.4, 0.6], abs=1e-4)

    face_ids = np.array([[int(v) for v in ln.split()[1:]] for ln in face_lines])
    assert face_ids.min() == 1
    assert face_ids.max() == buffers.vertex_count
    assert_array_equal(face_ids - 1, buffers.indices.astype(np.int64))

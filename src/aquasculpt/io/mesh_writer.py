"""HDF5 and Wavefront OBJ writers for frozen creature meshes.

The HDF5 layout under ``/mesh/`` is::

    positions   (N, 3)  float32
    indices     (T, 3)  uint32
    colors      (N, 3)  float32
    labels      (N,)    int32
    pivots      (N, 3)  float32

Root attributes hold ``run_id``, ``run_timestamp`` (UTC ISO-8601),
``vertex_count``, ``triangle_count`` and, when given, the serialized config
YAML (``config_yaml``) and its MD5 (``config_hash``).
"""

from __future__ import annotations

import hashlib
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

import h5py
import numpy as np

from aquasculpt.mesh import MeshBuffers

logger = logging.getLogger(__name__)

_DATASETS: dict[str, str] = {
    "positions": "float32",
    "indices": "uint32",
    "colors": "float32",
    "labels": "int32",
    "pivots": "float32",
}

__all__ = ["read_mesh_h5", "write_mesh_h5", "write_obj"]


def write_mesh_h5(
    path: str | Path,
    buffers: MeshBuffers,
    *,
    run_id: str = "",
    config_yaml: str | None = None,
) -> Path:
    """Write *buffers* to an HDF5 file, replacing any existing file.

    Args:
        path: Destination ``.h5`` path; parent directories are created.
        buffers: Frozen mesh to write.
        run_id: Run identifier stored as a root attribute.
        config_yaml: Serialized config stored with the mesh.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with h5py.File(path, "w") as f:
        grp = f.create_group("mesh")
        for name, dtype in _DATASETS.items():
            data = np.asarray(getattr(buffers, name), dtype=dtype)
            grp.create_dataset(name, data=data, compression="gzip")

        f.attrs["run_id"] = run_id
        f.attrs["run_timestamp"] = datetime.now(tz=UTC).isoformat()
        f.attrs["vertex_count"] = buffers.vertex_count
        f.attrs["triangle_count"] = buffers.triangle_count
        if config_yaml is not None:
            f.attrs["config_yaml"] = config_yaml
            f.attrs["config_hash"] = hashlib.md5(
                config_yaml.encode("utf-8")
            ).hexdigest()

    logger.info(
        "Wrote mesh (%d vertices, %d triangles) to %s",
        buffers.vertex_count,
        buffers.triangle_count,
        path,
    )
    return path


def read_mesh_h5(path: str | Path) -> tuple[MeshBuffers, dict[str, Any]]:
    """Read a mesh written by :func:`write_mesh_h5`.

    Args:
        path: Path to the ``.h5`` file.

    Returns:
        Tuple of (buffers, attrs). ``buffers`` is a :class:`MeshBuffers` whose
        metadata holds the root attributes; ``attrs`` is the same dict.

    Raises:
        KeyError: If the file has no ``/mesh`` group or a dataset is missing.
    """
    with h5py.File(path, "r") as f:
        grp = cast(h5py.Group, f["mesh"])
        arrays = {
            name: np.asarray(cast(h5py.Dataset, grp[name])[()], dtype=dtype)
            for name, dtype in _DATASETS.items()
        }
        attrs: dict[str, Any] = {}
        for key, value in f.attrs.items():
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            elif isinstance(value, np.generic):
                value = value.item()
            attrs[key] = value

    for array in arrays.values():
        array.flags.writeable = False
    return MeshBuffers(**arrays, metadata=dict(attrs)), attrs


def write_obj(path: str | Path, buffers: MeshBuffers) -> Path:
    """Write *buffers* as a Wavefront OBJ with per-vertex colors.

    Vertex lines use the common ``v x y z r g b`` extension; face indices
    are 1-based.

    Args:
        path: Destination ``.obj`` path; parent directories are created.
        buffers: Frozen mesh to write.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"# aquasculpt mesh: {buffers.vertex_count} vertices, "
        f"{buffers.triangle_count} triangles"
    ]
    for (x, y, z), (r, g, b) in zip(buffers.positions, buffers.colors, strict=True):
        lines.append(f"v {x:.6f} {y:.6f} {z:.6f} {r:.4f} {g:.4f} {b:.4f}")
    for a, b, c in buffers.indices.astype(np.int64) + 1:
        lines.append(f"f {a} {b} {c}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Wrote OBJ to %s", path)
    return path

"""Mesh export: HDF5 and Wavefront OBJ."""

from .mesh_writer import read_mesh_h5, write_mesh_h5, write_obj

__all__ = ["read_mesh_h5", "write_mesh_h5", "write_obj"]

"""Matplotlib previews of generated meshes."""

from .plot3d import LABEL_COLORS, face_colors, plot_mesh, save_preview

__all__ = ["LABEL_COLORS", "face_colors", "plot_mesh", "save_preview"]

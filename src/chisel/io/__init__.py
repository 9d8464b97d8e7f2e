"""Mesh and toolpath writers for chisel."""

from .stl import write_stl
from .openscad import polyhedron, write_scad
from .dxf import write_layers_dxf

__all__ = ['write_stl', 'polyhedron', 'write_scad', 'write_layers_dxf']

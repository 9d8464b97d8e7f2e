"""OpenSCAD source generation.

Each function returns one OpenSCAD statement as a string; the boolean
operations nest statements, so a whole model is built by composing
calls::

    difference(polyhedron(outer), polyhedron(inner))
"""

from __future__ import annotations

from typing import Sequence

from chisel.coords import to_xyz
from chisel.mesh import Mesh


def _xy(p) -> str:
    return '[{:.3f},{:.3f}]'.format(float(p[0]), float(p[1]))


def _xyz(p) -> str:
    x, y, z = to_xyz(p) if len(p) == 4 else (p[0], p[1], p[2])
    return '[{:.3f},{:.3f},{:.3f}]'.format(float(x), float(y), float(z))


def polygon(points: Sequence[Sequence[float]]) -> str:
    """2D ``polygon`` from XY points"""
    return 'polygon(points=[{}]);'.format(','.join(_xy(p) for p in points))


def polyhedron(mesh: Mesh) -> str:
    """``polyhedron`` with the points and faces of ``mesh``"""
    return 'polyhedron(points=[{}],faces=[{}]);'.format(
        ','.join(_xyz(p) for p in mesh.points),
        ','.join('[{}]'.format(','.join(str(i) for i in face)) for face in mesh.faces))


def _block(head: str, items) -> str:
    return '{} {{{}}}'.format(head, ' '.join(items))


def difference(*items: str) -> str:
    return _block('difference()', items)


def union(*items: str) -> str:
    return _block('union()', items)


def intersection(*items: str) -> str:
    return _block('intersection()', items)


def linear_extrude(height: float, *items: str) -> str:
    return _block('linear_extrude(height={})'.format(height), items)


def write_scad(source: str, path_or_file) -> None:
    """Write OpenSCAD ``source`` to a path or an open text stream"""
    if hasattr(path_or_file, 'write'):
        path_or_file.write(source + '\n')
        return
    with open(path_or_file, 'w', encoding='utf-8') as fp:
        fp.write(source + '\n')


__all__ = [
    'polygon',
    'polyhedron',
    'difference',
    'union',
    'intersection',
    'linear_extrude',
    'write_scad',
]

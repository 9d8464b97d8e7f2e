"""Planar path helpers: lengths, areas and parallel offsets of polylines."""

from __future__ import annotations

from math import sqrt
from typing import List, Sequence

from chisel.coords import epsilon
from chisel.errors import InvalidGeometry


def polyline_length(points: Sequence[Sequence[float]]) -> float:
    """Sum of segment lengths of a polyline (XYZ, ``w`` ignored)."""

    total = 0.0
    for a, b in zip(points, points[1:]):
        dz = (b[2] - a[2]) if len(a) > 2 and len(b) > 2 else 0.0
        total += sqrt((b[0] - a[0]) ** 2 + (b[1] - a[1]) ** 2 + dz ** 2)
    return total


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    """Signed XY area enclosed by a polygon; positive when counter-clockwise.

    The polygon is closed implicitly, a repeated last point is harmless.
    """

    total = 0.0
    for a, b in zip(points, list(points[1:]) + [points[0]]):
        total += a[0] * b[1] - b[0] * a[1]
    return total / 2.0


def _normal(a, b):
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length = sqrt(dx * dx + dy * dy)
    if length < epsilon:
        return None
    return dy / length, -dx / length


def distanced_path(path: Sequence[Sequence[float]], distance: float, closed: bool = True) -> List[list]:
    """Offset an XY path by ``distance`` along its right-hand normals.

    For a counter-clockwise polygon a positive ``distance`` grows the
    polygon outwards.  Interior vertices are mitred: each one moves along
    the bisector of its two segment normals by ``distance / cos(half
    angle)``, so the offset segments stay parallel to the originals.
    Coordinates beyond XY (``z``, ``w``) are carried over unchanged.
    """

    pts = [list(p) for p in path]
    if closed and len(pts) > 1 and abs(pts[0][0] - pts[-1][0]) < epsilon \
            and abs(pts[0][1] - pts[-1][1]) < epsilon:
        pts = pts[:-1]
        repeat_first = True
    else:
        repeat_first = False
    if len(pts) < 2:
        raise InvalidGeometry('need at least 2 distinct points to offset a path')

    count = len(pts)
    result = []
    for k, p in enumerate(pts):
        if closed:
            before = _normal(pts[k - 1], p)
            after = _normal(p, pts[(k + 1) % count])
        else:
            before = _normal(pts[k - 1], p) if k > 0 else None
            after = _normal(p, pts[k + 1]) if k < count - 1 else None
        normals = [n for n in (before, after) if n is not None]
        if not normals:
            raise InvalidGeometry('cannot offset around repeated point {}'.format(p))
        nx = sum(n[0] for n in normals)
        ny = sum(n[1] for n in normals)
        length = sqrt(nx * nx + ny * ny)
        if length < epsilon:
            # path folds back on itself; fall back to the incoming normal
            nx, ny = normals[0]
            scale = distance
        else:
            nx, ny = nx / length, ny / length
            cos_half = nx * normals[0][0] + ny * normals[0][1]
            scale = distance / cos_half
        q = list(p)
        q[0] = p[0] + nx * scale
        q[1] = p[1] + ny * scale
        result.append(q)
    if repeat_first:
        result.append(list(result[0]))
    return result


__all__ = ['polyline_length', 'polygon_area', 'distanced_path']

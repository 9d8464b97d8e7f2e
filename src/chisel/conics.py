"""Exact conic sections built from rational Bezier and B-spline curves.

Circular arcs are rational quadratic Bezier curves whose middle control
point sits on the intersection of the end tangents with weight
``cos(sweep/2)``.  Arcs wider than 90 degrees are split into equal
pieces joined as a :class:`~chisel.curves.CompositeBezierCurve`.  Full
circles use the classic nine point rational quadratic B-spline, and
ellipses are circles under a non-uniform scale.  Angles are in degrees,
counter-clockwise in the XY plane.
"""

from math import cos, sin, radians, sqrt, ceil

from chisel.coords import point, weighted, isgoodnum
from chisel.curves import (
    BezierCurve,
    BSplineCurve,
    CompositeBezierCurve,
)
from chisel.errors import InvalidGeometry
from chisel.xform import Scale, Translation, compose

CIRCLE_KNOTS = (0.0, 0.0, 0.0, 0.25, 0.25, 0.5, 0.5, 0.75, 0.75, 1.0, 1.0, 1.0)


def _check_radius(r):
    if not isgoodnum(r) or r <= 0:
        raise InvalidGeometry('radius must be a positive number, got {}'.format(r))


def _arc_segment(r, a0, a1):
    """rational quadratic Bezier for a sweep of at most 90 degrees"""
    half = (a1 - a0) / 2.0
    mid = a0 + half
    w = cos(half)
    p0 = point(r*cos(a0), r*sin(a0))
    p2 = point(r*cos(a1), r*sin(a1))
    m = r / w
    p1 = weighted(point(m*cos(mid), m*sin(mid)), w)
    return BezierCurve([p0, p1, p2])


def arc(radius, start=0.0, end=90.0, center=None):
    """Exact circular arc from ``start`` to ``end`` degrees"""
    _check_radius(radius)
    sweep = end - start
    if sweep == 0 or abs(sweep) > 360:
        raise InvalidGeometry('arc sweep must be in (0, 360] degrees, got {}'.format(sweep))
    pieces = max(1, int(ceil(abs(sweep) / 90.0 - 1e-9)))
    step = radians(sweep) / pieces
    a0 = radians(start)
    segments = [_arc_segment(radius, a0 + k*step, a0 + (k+1)*step) for k in range(pieces)]
    curve = segments[0] if pieces == 1 else CompositeBezierCurve(segments)
    if center is not None:
        curve = curve.transform(Translation(center))
    return curve


def circle(radius, center=None):
    """Full circle as a rational clamped quadratic B-spline starting on +X"""
    _check_radius(radius)
    w = sqrt(2.0) / 2.0
    corners = [(1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1), (1, 0)]
    points = []
    for k, (x, y) in enumerate(corners):
        p = point(radius*x, radius*y)
        points.append(weighted(p, w) if k % 2 else p)
    curve = BSplineCurve(points, CIRCLE_KNOTS, 2)
    if center is not None:
        curve = curve.transform(Translation(center))
    return curve


def ellipse(rx, ry, center=None):
    """Full axis-aligned ellipse with semi-axes ``rx`` and ``ry``"""
    _check_radius(rx)
    _check_radius(ry)
    m = Scale(rx, ry, 1.0)
    if center is not None:
        m = compose(m, Translation(center))
    return circle(1.0).transform(m)


def parabola(a, x_from, x_to):
    """Exact arc of ``y = a*x**2`` between ``x_from`` and ``x_to``"""
    if not x_to > x_from:
        raise InvalidGeometry('parabola needs x_to > x_from, got [{}, {}]'.format(x_from, x_to))
    return BezierCurve([point(x_from, a*x_from*x_from),
                        point((x_from + x_to) / 2.0, a*x_from*x_to),
                        point(x_to, a*x_to*x_to)])


__all__ = ['arc', 'circle', 'ellipse', 'parabola', 'CIRCLE_KNOTS']

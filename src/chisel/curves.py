"""Parametric curves for chisel.

Every curve is an immutable value parameterized over ``t`` in ``[0, 1]``
and shares one evaluation contract:

* ``evaluate(t)`` returns a projected point ``[x, y, z, 1]``; a ``t``
  outside ``[0, 1]`` raises :class:`~chisel.errors.InvalidParameter`.
* ``weighted_evaluate(t)`` returns the homogeneous point, which carries
  a rational weight for :class:`WeightedCurve`.
* ``sample(n)`` returns ``n`` ordered points (see :func:`resolve_points`).
* ``is_closed()`` reports whether both ends meet.
* ``transform(matrix)`` returns a new curve of a compatible variant.
* ``cut(start, end)`` returns the sub-curve over ``[start, end]``.

Bezier and B-spline evaluation happens in homogeneous 4-space with a
single projection at the end, so rational curves need no special case.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Callable, List, Optional, Sequence

from chisel.coords import (
    homo,
    isgoodnum,
    lerp,
    lerp4,
    resolve_axis,
    vclose,
    vect,
    vstr,
    weighted,
)
from chisel.errors import InvalidGeometry, InvalidParameter
from chisel.paths import polyline_length
from chisel.rangetree import RangeTree
from chisel.xform import apply


def resolve_points(n: int, fn: Callable[[float], object], *,
                   drop_first: bool = False, drop_last: bool = False) -> list:
    """Map ``n`` evenly spaced parameters in ``[0, 1]`` through ``fn``.

    By default the closed interval is used, ``0, 1/(n-1), ..., 1``.
    ``drop_first`` samples ``(0, 1]`` in steps of ``1/n``, ``drop_last``
    samples ``[0, 1)`` in steps of ``1/n``, and both together sample the
    open interval in steps of ``1/(n+1)``.
    """

    if not isinstance(n, int) or isinstance(n, bool):
        raise InvalidGeometry('number of points must be an integer, got {}'.format(n))
    if drop_first and drop_last:
        if n < 1:
            raise InvalidGeometry('need at least 1 point, got {}'.format(n))
        return [fn(i / (n + 1)) for i in range(1, n + 1)]
    if drop_first:
        if n < 1:
            raise InvalidGeometry('need at least 1 point, got {}'.format(n))
        return [fn(i / n) for i in range(1, n + 1)]
    if drop_last:
        if n < 1:
            raise InvalidGeometry('need at least 1 point, got {}'.format(n))
        return [fn(i / n) for i in range(n)]
    if n < 2:
        raise InvalidGeometry('need at least 2 points to span [0, 1], got {}'.format(n))
    return [fn(i / (n - 1)) for i in range(n)]


def check_parameter(t, name: str = 't') -> float:
    """Return ``t`` as a float, raising ``InvalidParameter`` outside ``[0, 1]``."""

    if not isgoodnum(t):
        raise InvalidParameter('{} must be a number, got {!r}'.format(name, t))
    if not 0.0 <= t <= 1.0:
        raise InvalidParameter('{}={} lies outside [0, 1]'.format(name, t))
    return float(t)


def remap(start: float, end: float, t: float) -> float:
    """Map ``t`` in ``[0, 1]`` onto ``[start, end]``, exact at both ends."""

    return start * (1.0 - t) + end * t


def _as_point(p) -> list:
    if not isinstance(p, (list, tuple)) or not 2 <= len(p) <= 4:
        raise InvalidGeometry('bad control point: {!r}'.format(p))
    if not all(isgoodnum(c) for c in p):
        raise InvalidGeometry('control point coordinates must be finite numbers: {!r}'.format(p))
    q = vect(list(p))
    if q[3] == 0:
        raise InvalidGeometry('control point has zero weight: {}'.format(vstr(q)))
    return q


def de_casteljau(points: Sequence[Sequence[float]], t: float) -> list:
    """Evaluate Bezier control points at ``t`` in homogeneous space.

    Repeatedly interpolates neighbouring points over a single working
    buffer until one point remains; the result is not projected.
    """

    buf = [list(p) for p in points]
    n = len(buf)
    for r in range(1, n):
        for i in range(n - r):
            buf[i] = lerp4(buf[i], buf[i + 1], t)
    return buf[0]


class Curve:
    """Base class for all curve variants."""

    def evaluate(self, t) -> list:
        return self._evaluate(check_parameter(t))

    def weighted_evaluate(self, t) -> list:
        return self.evaluate(t)

    def _evaluate(self, t: float) -> list:
        raise NotImplementedError

    def __call__(self, t) -> list:
        return self.evaluate(t)

    @property
    def handle(self) -> 'Curve':
        """The curve object that identifies this curve as a shared edge."""
        return self

    def sample(self, n: int, *, drop_first: bool = False, drop_last: bool = False) -> List[list]:
        return resolve_points(n, self.evaluate, drop_first=drop_first, drop_last=drop_last)

    def is_closed(self) -> bool:
        return vclose(self.evaluate(0.0), self.evaluate(1.0))

    def length(self, samples: int = 64) -> float:
        """Approximate arc length from a ``samples``-point polyline."""
        return polyline_length(self.sample(samples))

    def transform(self, m) -> 'Curve':
        raise NotImplementedError

    def cut(self, start: float, end: float) -> 'Curve':
        """The part of this curve over ``[start, end]``.

        Cutting the same span twice returns the same object, so patches
        cut from a common parent share their cut boundary curves.
        """
        if start == 0 and end == 1:
            return self
        cuts = self.__dict__.setdefault('_cuts', {})
        key = (start, end)
        curve = cuts.get(key)
        if curve is None:
            curve = cuts[key] = CutCurve(self, start, end)
        return curve


class BezierCurve(Curve):
    """Bezier curve over two or more (possibly weighted) control points."""

    def __init__(self, points: Sequence[Sequence[float]]):
        if len(points) < 2:
            raise InvalidGeometry('Bezier curve needs at least 2 control points, got {}'.format(len(points)))
        self.points = tuple(_as_point(p) for p in points)

    def __repr__(self):
        return 'BezierCurve({})'.format(', '.join(vstr(p) for p in self.points))

    @property
    def degree(self) -> int:
        return len(self.points) - 1

    def weighted_evaluate(self, t) -> list:
        return de_casteljau(self.points, check_parameter(t))

    def _evaluate(self, t: float) -> list:
        return homo(de_casteljau(self.points, t))

    def transform(self, m) -> 'BezierCurve':
        return BezierCurve(apply(m, self.points))


def line(start, end) -> BezierCurve:
    """Straight segment from ``start`` to ``end``"""
    return BezierCurve([start, end])


class CompositeBezierCurve(Curve):
    """Chain of Bezier segments with shared endpoints.

    ``[0, 1]`` is split into one equal sub-interval per segment.
    """

    def __init__(self, segments: Sequence):
        if not segments:
            raise InvalidGeometry('composite curve needs at least one segment')
        segs = [s if isinstance(s, BezierCurve) else BezierCurve(s) for s in segments]
        for k, (a, b) in enumerate(zip(segs, segs[1:])):
            if not vclose(a.points[-1], b.points[0]):
                raise InvalidGeometry('segment {} ends at {} but segment {} starts at {}'.format(
                    k, vstr(homo(a.points[-1])), k + 1, vstr(homo(b.points[0]))))
        self.segments = tuple(segs)

    @classmethod
    def from_points(cls, points: Sequence, degree: int = 3) -> 'CompositeBezierCurve':
        """Split a point run into degree-``degree`` segments sharing endpoints"""
        if degree < 1 or (len(points) - 1) % degree != 0 or len(points) < degree + 1:
            raise InvalidGeometry('{} points cannot be split into degree {} segments'.format(
                len(points), degree))
        return cls([points[k:k + degree + 1] for k in range(0, len(points) - 1, degree)])

    def _locate(self, t: float):
        n = len(self.segments)
        idx = min(int(t * n), n - 1)
        return self.segments[idx], t * n - idx

    def weighted_evaluate(self, t) -> list:
        seg, local = self._locate(check_parameter(t))
        return de_casteljau(seg.points, min(local, 1.0))

    def _evaluate(self, t: float) -> list:
        seg, local = self._locate(t)
        return homo(de_casteljau(seg.points, min(local, 1.0)))

    def transform(self, m) -> 'CompositeBezierCurve':
        return CompositeBezierCurve([s.transform(m) for s in self.segments])


def _check_knots(knots: Sequence[float], count: int, order: int) -> None:
    if not isinstance(order, int) or isinstance(order, bool) or order <= 0:
        raise InvalidGeometry('B-spline order must be a positive integer, got {}'.format(order))
    if count <= order:
        raise InvalidGeometry('B-spline of order {} needs more than {} control points, got {}'.format(
            order, order, count))
    if len(knots) != count + order + 1:
        raise InvalidGeometry('knot vector must have {} entries, got {}'.format(
            count + order + 1, len(knots)))
    for a, b in zip(knots, knots[1:]):
        if b < a:
            raise InvalidGeometry('knot vector must be non-decreasing: {} follows {}'.format(b, a))
    if knots[0] != 0 or knots[-1] != 1:
        raise InvalidGeometry('knot vector must run from 0 to 1, got [{}, {}]'.format(
            knots[0], knots[-1]))


def clamped_knots(count: int, order: int) -> List[float]:
    """Knot vector repeating each boundary knot ``order+1`` times"""
    interior = count - order - 1
    if interior < 0:
        raise InvalidGeometry('B-spline of order {} needs more than {} control points, got {}'.format(
            order, order, count))
    return ([0.0] * (order + 1)
            + [i / (interior + 1) for i in range(1, interior + 1)]
            + [1.0] * (order + 1))


def uniform_knots(count: int, order: int) -> List[float]:
    """Equally spaced knot vector over ``[0, 1]``"""
    total = count + order
    return [i / total for i in range(total + 1)]


class BSplineCurve(Curve):
    """B-spline (NURBS when control points carry weights) of a given order.

    ``order`` is the polynomial degree: ``len(knots)`` must equal
    ``len(points) + order + 1``.  At construction every control point is
    paired with the support ``[knots[i], knots[i+order+1]]`` of its basis
    function; evaluation selects the ``order+1`` pairs whose supports
    cover the parameter and reduces them pairwise, de Boor style.
    """

    def __init__(self, points: Sequence[Sequence[float]], knots: Sequence[float], order: int):
        _check_knots(knots, len(points), order)
        self.points = tuple(_as_point(p) for p in points)
        self.knots = tuple(float(k) for k in knots)
        self.order = order
        self._spans = tuple(((self.knots[i], self.knots[i + order + 1]), p)
                            for i, p in enumerate(self.points))
        self._lo = self.knots[order]
        self._hi = self.knots[len(self.points)]
        if not self._hi > self._lo:
            raise InvalidGeometry('B-spline has an empty effective span [{}, {}]'.format(
                self._lo, self._hi))

    def __repr__(self):
        return 'BSplineCurve(order={}, points={}, knots={})'.format(
            self.order, len(self.points), list(self.knots))

    def _window(self, u: float):
        n = len(self.points)
        k = bisect_right(self.knots, u) - 1
        k = max(self.order, min(k, n - 1))
        # the last span may sit on repeated knots; step back to a real one
        while k > self.order and self.knots[k] == self.knots[k + 1]:
            k -= 1
        return self._spans[k - self.order:k + 1]

    def _de_boor(self, t: float) -> list:
        u = remap(self._lo, self._hi, t)
        buf = [(lo, hi, list(p)) for (lo, hi), p in self._window(u)]
        n = len(buf)
        for r in range(1, n):
            for i in range(n - r):
                _, a_hi, a = buf[i]
                b_lo, _, b = buf[i + 1]
                denom = a_hi - b_lo
                alpha = (u - b_lo) / denom if denom > 0 else 0.0
                buf[i] = (b_lo, a_hi, lerp4(a, b, alpha))
        return buf[0][2]

    def weighted_evaluate(self, t) -> list:
        return self._de_boor(check_parameter(t))

    def _evaluate(self, t: float) -> list:
        return homo(self._de_boor(t))

    def transform(self, m) -> 'BSplineCurve':
        return BSplineCurve(apply(m, self.points), self.knots, self.order)


def _weigh(points, weights):
    if weights is None:
        return list(points)
    if len(weights) != len(points):
        raise InvalidGeometry('need one weight per control point')
    return [weighted(_as_point(p), w) for p, w in zip(points, weights)]


def clamped_bspline(points: Sequence, order: int = 3, weights: Optional[Sequence[float]] = None) -> BSplineCurve:
    """B-spline interpolating its first and last control points"""
    return BSplineCurve(_weigh(points, weights), clamped_knots(len(points), order), order)


def uniform_bspline(points: Sequence, order: int = 3, weights: Optional[Sequence[float]] = None) -> BSplineCurve:
    """B-spline with equally spaced knots over its whole domain"""
    return BSplineCurve(_weigh(points, weights), uniform_knots(len(points), order), order)


def _segment_interpolator(p0, p1, lo, hi):
    span = hi - lo

    def interpolate(t):
        return lerp(p0, p1, (t - lo) / span)
    return interpolate


class UniformCurve(Curve):
    """Polyline reparametrized so that ``t`` advances uniformly.

    With ``axis=None`` ``t`` is the fraction of accumulated length; with
    an axis (``'x'``, ``'y'``, ``'z'``) ``t`` is the fraction of progress
    along that coordinate, which must then be strictly monotonic.
    Segment lookup goes through a :class:`~chisel.rangetree.RangeTree`.
    """

    def __init__(self, points: Sequence[Sequence[float]], axis=None):
        pts = [homo(_as_point(p)) for p in points]
        if len(pts) < 2:
            raise InvalidGeometry('uniform curve needs at least 2 points, got {}'.format(len(pts)))
        self.axis = None if axis is None else resolve_axis(axis)
        self._build(pts, self._fractions(pts))

    @classmethod
    def from_curve(cls, curve: Curve, samples: int, axis=None) -> 'UniformCurve':
        return cls(curve.sample(samples), axis=axis)

    def _fractions(self, pts) -> List[float]:
        if self.axis is None:
            steps = [polyline_length([a, b]) for a, b in zip(pts, pts[1:])]
        else:
            steps = [b[self.axis] - a[self.axis] for a, b in zip(pts, pts[1:])]
            increasing = all(s > 0 for s in steps)
            decreasing = all(s < 0 for s in steps)
            if not (increasing or decreasing):
                raise InvalidGeometry('polyline is not strictly monotonic along axis {}'.format(
                    'xyz'[self.axis]))
        total = sum(steps)
        if total == 0:
            raise InvalidGeometry('cannot reparametrize a polyline of zero length')
        fractions = [0.0]
        acc = 0.0
        for s in steps[:-1]:
            acc += s
            fractions.append(acc / total)
        fractions.append(1.0)
        return fractions

    def _build(self, pts, fractions) -> None:
        self.points = tuple(pts)
        self.fractions = tuple(fractions)
        records = [(lo, hi, _segment_interpolator(p0, p1, lo, hi))
                   for p0, p1, lo, hi in zip(pts, pts[1:], fractions, fractions[1:])
                   if hi > lo]
        self._tree = RangeTree(records)

    def _evaluate(self, t: float) -> list:
        return self._tree.lookup(t)

    def transform(self, m) -> 'UniformCurve':
        curve = UniformCurve.__new__(UniformCurve)
        curve.axis = self.axis
        curve._build([homo(p) for p in apply(m, self.points)], self.fractions)
        return curve


class ConstantCurve(Curve):
    """Degenerate curve that is a single point for every ``t``"""

    def __init__(self, p):
        self.point = homo(_as_point(p))

    def _evaluate(self, t: float) -> list:
        return list(self.point)

    def is_closed(self) -> bool:
        return True

    def transform(self, m) -> 'ConstantCurve':
        return ConstantCurve(m.mul(self.point))


class CutCurve(Curve):
    """The part of ``curve`` over ``[start, end]``, reparametrized to ``[0, 1]``"""

    def __init__(self, curve: Curve, start: float, end: float):
        if not isinstance(curve, Curve):
            raise InvalidGeometry('can only cut curves, got {!r}'.format(curve))
        if not (isgoodnum(start) and isgoodnum(end)):
            raise InvalidGeometry('cut bounds must be numbers, got [{}, {}]'.format(start, end))
        if not 0 <= start < end <= 1:
            raise InvalidGeometry('cut bounds must satisfy 0 <= start < end <= 1, got [{}, {}]'.format(
                start, end))
        self.curve = curve
        self.start = float(start)
        self.end = float(end)

    def __repr__(self):
        return 'CutCurve({!r}, {}, {})'.format(self.curve, self.start, self.end)

    def weighted_evaluate(self, t) -> list:
        return self.curve.weighted_evaluate(remap(self.start, self.end, check_parameter(t)))

    def _evaluate(self, t: float) -> list:
        return self.curve.evaluate(remap(self.start, self.end, t))

    def cut(self, start: float, end: float) -> Curve:
        if start == 0 and end == 1:
            return self
        if not 0 <= start < end <= 1:
            raise InvalidGeometry('cut bounds must satisfy 0 <= start < end <= 1, got [{}, {}]'.format(
                start, end))
        return self.curve.cut(remap(self.start, self.end, start), remap(self.start, self.end, end))

    def transform(self, m) -> 'CutCurve':
        return CutCurve(self.curve.transform(m), self.start, self.end)


class WeightedCurve(Curve):
    """A curve paired with the rational weight its points carry in a patch.

    Evaluation is that of the wrapped curve; ``weighted_evaluate`` lifts
    the point to ``[x*w, y*w, z*w, w]``.  The wrapper is transparent to
    edge matching: its ``handle`` is the wrapped curve's handle.
    """

    def __init__(self, curve: Curve, weight: float):
        if not isinstance(curve, Curve):
            raise InvalidGeometry('can only weight curves, got {!r}'.format(curve))
        if not isgoodnum(weight) or weight <= 0:
            raise InvalidGeometry('rational weight must be a positive number, got {}'.format(weight))
        self.curve = curve
        self.weight = float(weight)

    def __repr__(self):
        return 'WeightedCurve({!r}, {})'.format(self.curve, self.weight)

    @property
    def handle(self) -> Curve:
        return self.curve.handle

    def weighted_evaluate(self, t) -> list:
        return weighted(self.curve.evaluate(t), self.weight)

    def _evaluate(self, t: float) -> list:
        return self.curve.evaluate(t)

    def is_closed(self) -> bool:
        return self.curve.is_closed()

    def transform(self, m) -> 'WeightedCurve':
        return WeightedCurve(self.curve.transform(m), self.weight)


__all__ = [
    'resolve_points',
    'check_parameter',
    'remap',
    'de_casteljau',
    'Curve',
    'BezierCurve',
    'line',
    'CompositeBezierCurve',
    'BSplineCurve',
    'clamped_knots',
    'uniform_knots',
    'clamped_bspline',
    'uniform_bspline',
    'UniformCurve',
    'ConstantCurve',
    'CutCurve',
    'WeightedCurve',
]

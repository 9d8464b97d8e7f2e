"""Two-parameter patches built from families of curves.

A patch maps ``(i, j)`` in ``[0, 1]^2`` to a point.  Patches are
immutable values; cutting, transforming and reparametrizing return new
patches.  Each patch exposes its four boundary curves through
``perimeter()``, tagged with the direction the patch varies in along
them: the ``j=0`` and ``j=1`` edges are ``'i'`` edges, the ``i=0`` and
``i=1`` edges are ``'j'`` edges.  Boundary curve *objects* are what
:mod:`chisel.stitch` matches on, so patches return the very curve
objects they were built from wherever they can.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from chisel.coords import vclose
from chisel.curves import (
    BezierCurve,
    BSplineCurve,
    Curve,
    UniformCurve,
    WeightedCurve,
    check_parameter,
    clamped_knots,
    remap,
    resolve_points,
)
from chisel.errors import InvalidGeometry
from chisel.mesh import Mesh, grid_faces

I_DIRECTION = 'i'
J_DIRECTION = 'j'

#: perimeter positions, walking around the patch
J0, I1, J1, I0 = 'j0', 'i1', 'j1', 'i0'

FAMILIES = ('bezier', 'bspline')


@dataclass(frozen=True)
class Edge:
    """One boundary curve of a patch.

    ``direction`` is the parameter the patch varies in along the curve,
    ``at`` names the boundary (``'j0'``, ``'i1'``, ``'j1'``, ``'i0'``).
    """

    curve: Curve
    direction: str
    at: str

    @property
    def handle(self) -> Curve:
        return self.curve.handle


def _check_range(lo, hi, name):
    if not 0 <= lo < hi <= 1:
        raise InvalidGeometry('{} range must satisfy 0 <= from < to <= 1, got [{}, {}]'.format(
            name, lo, hi))


class Patch:
    """Base class for patches."""

    def evaluate(self, i, j) -> list:
        return self._evaluate(check_parameter(i, 'i'), check_parameter(j, 'j'))

    def _evaluate(self, i: float, j: float) -> list:
        raise NotImplementedError

    def __call__(self, i, j) -> list:
        return self.evaluate(i, j)

    def perimeter(self) -> List[Edge]:
        raise NotImplementedError

    def edge(self, at: str) -> Edge:
        for e in self.perimeter():
            if e.at == at:
                return e
        raise InvalidGeometry('no edge named {!r}'.format(at))

    def slice(self, i, n: int) -> List[list]:
        """The ``n``-point polyline across ``j`` at fixed ``i``"""
        i = check_parameter(i, 'i')
        return resolve_points(n, lambda j: self._evaluate(i, j))

    def triangle_mesh(self, i_count: int, j_count: int) -> Mesh:
        """Tessellate a regular ``i_count x j_count`` grid of samples"""
        faces = grid_faces(i_count, j_count)
        points = [p for i in resolve_points(i_count, float) for p in self.slice(i, j_count)]
        return Mesh(tuple(points), tuple(faces))

    def cut(self, i_from=0.0, i_to=1.0, j_from=0.0, j_to=1.0) -> 'Patch':
        if (i_from, i_to, j_from, j_to) == (0, 1, 0, 1):
            return self
        return CutPatch(self, i_from, i_to, j_from, j_to)

    def iso_curve(self, direction: str, at) -> 'IsoCurve':
        """The curve varying in ``direction`` with the other parameter at ``at``.

        Iso-curves are interned per patch, so every cut of this patch
        that ends at ``at`` sees the same boundary object.
        """
        curves = self.__dict__.setdefault('_iso_curves', {})
        key = (direction, at)
        curve = curves.get(key)
        if curve is None:
            curve = curves[key] = IsoCurve(self, direction, at)
        return curve

    def transform(self, m) -> 'Patch':
        raise NotImplementedError


class IsoCurve(Curve):
    """Curve traced on a patch with one parameter held fixed.

    ``direction`` is the parameter that varies along the curve.
    """

    def __init__(self, patch: Patch, direction: str, at: float):
        if direction not in (I_DIRECTION, J_DIRECTION):
            raise InvalidGeometry('bad iso-curve direction {!r}'.format(direction))
        self.patch = patch
        self.direction = direction
        self.at = check_parameter(at, direction == I_DIRECTION and 'j' or 'i')

    def _evaluate(self, t: float) -> list:
        if self.direction == I_DIRECTION:
            return self.patch.evaluate(t, self.at)
        return self.patch.evaluate(self.at, t)

    def transform(self, m) -> 'IsoCurve':
        return IsoCurve(self.patch.transform(m), self.direction, self.at)


class TensorProductPatch(Patch):
    """Patch swept by a slice curve through a family of control curves.

    Evaluating at ``i`` evaluates every control curve at ``i``; those
    points (weighted, for :class:`~chisel.curves.WeightedCurve` members)
    are the control points of a Bezier or clamped B-spline slice curve,
    which is then evaluated at ``j``.  The first and last control curves
    are the ``j=0`` and ``j=1`` edges.

    The ``i=0`` and ``i=1`` edges are slices of the patch unless ``i0``
    or ``i1`` supply a curve to use instead.  Passing the same curve as
    ``i1`` of one patch and ``i0`` of the next lets them stitch in ``j``.
    """

    def __init__(self, curves: Sequence[Curve], family: str = 'bezier', order: int = 3,
                 i0: Optional[Curve] = None, i1: Optional[Curve] = None):
        if len(curves) < 2:
            raise InvalidGeometry('tensor product patch needs at least 2 control curves, got {}'.format(
                len(curves)))
        for c in curves:
            if not isinstance(c, Curve):
                raise InvalidGeometry('patch control curves must be curves, got {!r}'.format(c))
        if family not in FAMILIES:
            raise InvalidGeometry('slice family must be one of {}, got {!r}'.format(FAMILIES, family))
        self.curves = tuple(curves)
        self.family = family
        self.order = min(order, len(curves) - 1)
        if self.order < 1:
            raise InvalidGeometry('B-spline slice order must be positive, got {}'.format(order))
        self._knots = clamped_knots(len(curves), self.order) if family == 'bspline' else None
        self.i0 = self._end_curve(i0, 0.0, 'i0')
        self.i1 = self._end_curve(i1, 1.0, 'i1')
        self._perimeter = [
            Edge(self.curves[0].handle, I_DIRECTION, J0),
            Edge(self.i1.handle, J_DIRECTION, I1),
            Edge(self.curves[-1].handle, I_DIRECTION, J1),
            Edge(self.i0.handle, J_DIRECTION, I0),
        ]

    def _end_curve(self, curve, i, name):
        """``curve`` checked against the slice at ``i``, or that slice"""
        sliced = self.slice_curve(i)
        if curve is None:
            return sliced
        if not isinstance(curve, Curve):
            raise InvalidGeometry('{} boundary must be a curve, got {!r}'.format(name, curve))
        for j in resolve_points(5, float):
            if not vclose(curve.evaluate(j), sliced.evaluate(j)):
                raise InvalidGeometry('{} boundary curve does not match the patch at j={}'.format(name, j))
        return curve

    def __repr__(self):
        return 'TensorProductPatch({} curves, family={!r})'.format(len(self.curves), self.family)

    @property
    def rational(self) -> bool:
        return any(isinstance(c, WeightedCurve) for c in self.curves)

    def slice_curve(self, i) -> Curve:
        """The curve across ``j`` at fixed ``i``"""
        i = check_parameter(i, 'i')
        points = [c.weighted_evaluate(i) for c in self.curves]
        if self.family == 'bezier':
            return BezierCurve(points)
        return BSplineCurve(points, self._knots, self.order)

    def _evaluate(self, i: float, j: float) -> list:
        return self.slice_curve(i).evaluate(j)

    def slice(self, i, n: int) -> List[list]:
        return self.slice_curve(i).sample(n)

    def perimeter(self) -> List[Edge]:
        return list(self._perimeter)

    def transform(self, m) -> 'TensorProductPatch':
        return TensorProductPatch([c.transform(m) for c in self.curves], self.family, self.order,
                                  self.i0.transform(m), self.i1.transform(m))

    def reparametrize(self, axis='z', samples: int = 64,
                      cache: Optional[Dict[int, Curve]] = None) -> 'TensorProductPatch':
        """Rebuild each control curve as an axis-uniform polyline.

        After this ``i`` maps linearly onto the ``axis`` coordinate of
        every control curve, so patches whose control curves share an
        axis range slice into planar polylines.  Pass the same ``cache``
        when reparametrizing several patches so that shared control
        curves stay shared.
        """

        if cache is None:
            cache = {}

        def _uniform(curve):
            key = id(curve.handle)
            if key not in cache:
                cache[key] = UniformCurve.from_curve(curve.handle, samples, axis=axis)
            return cache[key]

        curves = []
        for c in self.curves:
            if isinstance(c, WeightedCurve):
                curves.append(WeightedCurve(_uniform(c), c.weight))
            else:
                curves.append(_uniform(c))
        return TensorProductPatch(curves, self.family, self.order, self.i0, self.i1)


def bezier_patch(curves: Sequence[Curve], **kw) -> TensorProductPatch:
    return TensorProductPatch(curves, 'bezier', **kw)


def bspline_patch(curves: Sequence[Curve], order: int = 3, **kw) -> TensorProductPatch:
    return TensorProductPatch(curves, 'bspline', order, **kw)


class CutPatch(Patch):
    """``patch`` restricted to ``[i_from, i_to] x [j_from, j_to]``"""

    def __init__(self, patch: Patch, i_from=0.0, i_to=1.0, j_from=0.0, j_to=1.0):
        if not isinstance(patch, Patch):
            raise InvalidGeometry('can only cut patches, got {!r}'.format(patch))
        _check_range(i_from, i_to, 'i')
        _check_range(j_from, j_to, 'j')
        self.patch = patch
        self.i_range = (float(i_from), float(i_to))
        self.j_range = (float(j_from), float(j_to))
        self._perimeter = [
            Edge(self._boundary(J0, J_DIRECTION, self.j_range[0], self.i_range), I_DIRECTION, J0),
            Edge(self._boundary(I1, I_DIRECTION, self.i_range[1], self.j_range), J_DIRECTION, I1),
            Edge(self._boundary(J1, J_DIRECTION, self.j_range[1], self.i_range), I_DIRECTION, J1),
            Edge(self._boundary(I0, I_DIRECTION, self.i_range[0], self.j_range), J_DIRECTION, I0),
        ]

    def _boundary(self, at: str, fixed: str, value: float, span: Tuple[float, float]) -> Curve:
        # reuse the parent's boundary curve when this edge lies on it
        if value in (0.0, 1.0) and at[1] == str(int(value)):
            return self.patch.edge(at).curve.cut(*span)
        varying = J_DIRECTION if fixed == I_DIRECTION else I_DIRECTION
        return self.patch.iso_curve(varying, value).cut(*span)

    def __repr__(self):
        return 'CutPatch({!r}, i={}, j={})'.format(self.patch, self.i_range, self.j_range)

    def _evaluate(self, i: float, j: float) -> list:
        return self.patch.evaluate(remap(*self.i_range, i), remap(*self.j_range, j))

    def perimeter(self) -> List[Edge]:
        return list(self._perimeter)

    def cut(self, i_from=0.0, i_to=1.0, j_from=0.0, j_to=1.0) -> Patch:
        if (i_from, i_to, j_from, j_to) == (0, 1, 0, 1):
            return self
        _check_range(i_from, i_to, 'i')
        _check_range(j_from, j_to, 'j')
        return CutPatch(self.patch,
                        remap(*self.i_range, i_from), remap(*self.i_range, i_to),
                        remap(*self.j_range, j_from), remap(*self.j_range, j_to))

    def transform(self, m) -> 'CutPatch':
        return CutPatch(self.patch.transform(m), *self.i_range, *self.j_range)


__all__ = [
    'I_DIRECTION',
    'J_DIRECTION',
    'J0', 'I1', 'J1', 'I0',
    'Edge',
    'Patch',
    'IsoCurve',
    'TensorProductPatch',
    'bezier_patch',
    'bspline_patch',
    'CutPatch',
]

import math

import pytest

from chisel.conics import arc, circle, ellipse, parabola
from chisel.curves import BezierCurve, BSplineCurve, CompositeBezierCurve, resolve_points
from chisel.errors import InvalidGeometry


def _radius(p, center=(0, 0)):
    return math.hypot(p[0] - center[0], p[1] - center[1])


class TestArc:
    def test_quarter_arc_is_single_bezier(self):
        curve = arc(2.0, 0, 90)
        assert isinstance(curve, BezierCurve)
        for t in resolve_points(11, float):
            assert _radius(curve.evaluate(t)) == pytest.approx(2.0)
        assert curve.evaluate(0)[:2] == pytest.approx([2.0, 0.0])
        assert curve.evaluate(1)[:2] == pytest.approx([0.0, 2.0], abs=1e-12)

    def test_wide_arc_is_composite(self):
        curve = arc(1.0, 0, 270)
        assert isinstance(curve, CompositeBezierCurve)
        assert len(curve.segments) == 3
        for t in resolve_points(31, float):
            assert _radius(curve.evaluate(t)) == pytest.approx(1.0)
        assert curve.evaluate(1)[:2] == pytest.approx([0.0, -1.0], abs=1e-12)

    def test_centered(self):
        curve = arc(1.0, 90, 180, center=[5, 5, 0])
        for t in resolve_points(5, float):
            assert _radius(curve.evaluate(t), (5, 5)) == pytest.approx(1.0)

    @pytest.mark.parametrize('radius, start, end', [(0, 0, 90), (-1, 0, 90), (1, 0, 0), (1, 0, 400)])
    def test_bad_arc(self, radius, start, end):
        with pytest.raises(InvalidGeometry):
            arc(radius, start, end)


class TestCircle:
    def test_circle_is_exact(self):
        curve = circle(3.0)
        assert isinstance(curve, BSplineCurve)
        for t in resolve_points(37, float):
            assert _radius(curve.evaluate(t)) == pytest.approx(3.0)
        assert curve.is_closed()

    def test_quarter_points(self):
        curve = circle(1.0)
        assert curve.evaluate(0.25)[:2] == pytest.approx([0.0, 1.0], abs=1e-12)
        assert curve.evaluate(0.5)[:2] == pytest.approx([-1.0, 0.0], abs=1e-12)

    def test_centered_circle(self):
        curve = circle(1.0, center=[2, -1, 0])
        for t in resolve_points(9, float):
            assert _radius(curve.evaluate(t), (2, -1)) == pytest.approx(1.0)


def test_ellipse():
    curve = ellipse(4.0, 2.0, center=[1, 1, 0])
    for t in resolve_points(25, float):
        x, y = curve.evaluate(t)[:2]
        assert ((x - 1) / 4.0) ** 2 + ((y - 1) / 2.0) ** 2 == pytest.approx(1.0)
    assert curve.evaluate(0)[:2] == pytest.approx([5.0, 1.0])


def test_parabola():
    curve = parabola(0.5, -2.0, 3.0)
    for t in resolve_points(11, float):
        x, y = curve.evaluate(t)[:2]
        assert y == pytest.approx(0.5 * x * x)
    with pytest.raises(InvalidGeometry):
        parabola(1.0, 2.0, 1.0)

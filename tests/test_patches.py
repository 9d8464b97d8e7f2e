import pytest

from chisel.coords import dist, homo, point
from chisel.curves import BezierCurve, UniformCurve, WeightedCurve, line, resolve_points
from chisel.errors import InvalidGeometry, InvalidParameter
from chisel.patches import (
    I0,
    I1,
    J0,
    J1,
    CutPatch,
    IsoCurve,
    TensorProductPatch,
    bezier_patch,
    bspline_patch,
)
from chisel.xform import Translation


def _same(p, q, tol=1e-9):
    assert dist(homo(p), homo(q)) <= tol


def _plane():
    """unit square in the XZ plane: i runs up z, j runs along x"""
    return TensorProductPatch([line(point(0, 0, 0), point(0, 0, 1)),
                               line(point(1, 0, 0), point(1, 0, 1))])


def _wavy():
    return TensorProductPatch([
        line(point(0, 0, 0), point(0, 0, 2)),
        BezierCurve([point(1, 1, 0), point(1, 3, 1), point(1, 1, 2)]),
        line(point(2, 0, 0), point(2, 0, 2)),
    ])


class TestTensorProduct:
    def test_corners(self):
        patch = _plane()
        _same(patch.evaluate(0, 0), point(0, 0, 0))
        _same(patch.evaluate(1, 0), point(0, 0, 1))
        _same(patch.evaluate(0, 1), point(1, 0, 0))
        _same(patch.evaluate(1, 1), point(1, 0, 1))
        _same(patch(0.5, 0.25), point(0.25, 0, 0.5))

    def test_parameters_checked(self):
        with pytest.raises(InvalidParameter):
            _plane().evaluate(1.2, 0)
        with pytest.raises(InvalidParameter):
            _plane().evaluate(0, -1)

    def test_needs_two_curves(self):
        with pytest.raises(InvalidGeometry):
            TensorProductPatch([line(point(0, 0), point(1, 0))])
        with pytest.raises(InvalidGeometry):
            TensorProductPatch([line(point(0, 0), point(1, 0)), 'curve'])
        with pytest.raises(InvalidGeometry):
            TensorProductPatch([line(point(0, 0), point(1, 0))] * 2, family='nurbs')

    def test_bspline_family(self):
        curves = [line(point(k, 0, 0), point(k, 0, 1)) for k in range(5)]
        patch = bspline_patch(curves, order=3)
        _same(patch.evaluate(0, 0), point(0, 0, 0))
        _same(patch.evaluate(1, 1), point(4, 0, 1))
        _same(patch.evaluate(0.5, 0.5), point(2, 0, 0.5))
        # order is capped by the number of control curves
        assert bspline_patch(curves[:2], order=3).order == 1

    def test_rational_weights(self):
        left = line(point(0, 0, 0), point(0, 0, 1))
        mid = line(point(1, 1, 0), point(1, 1, 1))
        right = line(point(2, 0, 0), point(2, 0, 1))
        plain = bezier_patch([left, mid, right])
        heavy = bezier_patch([left, WeightedCurve(mid, 3.0), right])
        assert heavy.rational and not plain.rational
        assert heavy.evaluate(0.5, 0.5)[1] > plain.evaluate(0.5, 0.5)[1]
        _same(heavy.evaluate(0.5, 0.5), point(1, 0.75, 0.5))

    def test_perimeter_reuses_control_curves(self):
        left = line(point(0, 0, 0), point(0, 0, 1))
        right = line(point(1, 0, 0), point(1, 0, 1))
        patch = TensorProductPatch([WeightedCurve(left, 2.0), right])
        edges = {e.at: e for e in patch.perimeter()}
        assert edges[J0].curve is left
        assert edges[J1].curve is right
        assert edges[J0].direction == 'i'
        assert edges[I0].direction == 'j' and edges[I1].direction == 'j'
        _same(edges[I1].curve.evaluate(1), point(1, 0, 1))
        assert patch.perimeter() == patch.perimeter()

    def test_explicit_end_curves(self):
        left = line(point(0, 0, 0), point(0, 0, 1))
        right = line(point(1, 0, 0), point(1, 0, 1))
        top = line(point(0, 0, 1), point(1, 0, 1))
        patch = TensorProductPatch([left, right], i1=top)
        assert patch.edge(I1).curve is top
        assert patch.i1 is top
        assert patch.edge(I0).curve is not top
        assert patch.reparametrize().i1 is top
        moved = patch.transform(Translation([0, 2, 0]))
        _same(moved.edge(I1).curve.evaluate(0), point(0, 2, 1))
        with pytest.raises(InvalidGeometry):
            TensorProductPatch([left, right], i0=top)
        with pytest.raises(InvalidGeometry):
            TensorProductPatch([left, right], i0='bottom')

    def test_slice(self):
        pts = _plane().slice(0.5, 3)
        assert len(pts) == 3
        _same(pts[1], point(0.5, 0, 0.5))

    def test_transform(self):
        moved = _plane().transform(Translation([0, 2, 0]))
        _same(moved.evaluate(1, 1), point(1, 2, 1))


class TestTriangleMesh:
    @pytest.mark.parametrize('i_count, j_count', [(2, 2), (4, 3), (7, 5)])
    def test_index_validity(self, i_count, j_count):
        mesh = _wavy().triangle_mesh(i_count, j_count)
        assert len(mesh.points) == i_count * j_count
        assert len(mesh.faces) == 2 * (i_count - 1) * (j_count - 1)
        assert all(0 <= k < i_count * j_count for face in mesh.faces for k in face)

    def test_deterministic_topology(self):
        assert _wavy().triangle_mesh(5, 4).faces == _plane().triangle_mesh(5, 4).faces

    def test_points_are_row_major(self):
        mesh = _plane().triangle_mesh(3, 2)
        _same(mesh.points[0], point(0, 0, 0))
        _same(mesh.points[1], point(1, 0, 0))
        _same(mesh.points[2], point(0, 0, 0.5))
        _same(mesh.points[-1], point(1, 0, 1))


class TestCutPatch:
    def test_full_cut_is_identity(self):
        patch = _plane()
        assert patch.cut() is patch
        assert patch.cut(0, 1, 0, 1) is patch

    def test_cut_remaps(self):
        cut = _plane().cut(0.5, 1.0, 0.0, 0.5)
        assert isinstance(cut, CutPatch)
        _same(cut.evaluate(0, 0), point(0, 0, 0.5))
        _same(cut.evaluate(1, 1), point(0.5, 0, 1))

    def test_cut_of_cut_flattens(self):
        patch = _plane()
        twice = patch.cut(0.0, 0.5, 0.0, 1.0).cut(0.5, 1.0, 0.0, 0.5)
        assert twice.patch is patch
        assert twice.i_range == pytest.approx((0.25, 0.5))
        assert twice.j_range == pytest.approx((0.0, 0.5))

    def test_boundary_edges_keep_identity(self):
        left = line(point(0, 0, 0), point(0, 0, 1))
        right = line(point(1, 0, 0), point(1, 0, 1))
        patch = TensorProductPatch([left, right])
        lower = patch.cut(0.0, 0.5)
        edges = {e.at: e for e in lower.perimeter()}
        assert edges[J0].curve.curve is left
        assert isinstance(edges[I1].curve, IsoCurve)
        # cutting only along j keeps the full-height control curve
        narrow = patch.cut(0, 1, 0.0, 0.5)
        assert narrow.edge(J0).curve is left
        _same(narrow.edge(J1).curve.evaluate(1), point(0.5, 0, 1))

    def test_siblings_share_cut_boundaries(self):
        patch = _plane()
        lower, upper = patch.cut(0.0, 0.5, 0.0, 0.5), patch.cut(0.5, 1.0, 0.0, 0.5)
        assert lower.edge(I1).curve is upper.edge(I0).curve
        left, right = patch.cut(0, 1, 0.0, 0.5), patch.cut(0, 1, 0.5, 1.0)
        assert left.edge(J1).curve is right.edge(J0).curve
        assert patch.iso_curve('j', 0.5) is patch.iso_curve('j', 0.5)

    def test_bad_ranges(self):
        with pytest.raises(InvalidGeometry):
            _plane().cut(0.5, 0.5)
        with pytest.raises(InvalidGeometry):
            _plane().cut(0, 1, 0.8, 0.2)

    def test_transform(self):
        cut = _plane().cut(0.0, 0.5).transform(Translation([0, 0, 1]))
        _same(cut.evaluate(1, 0), point(0, 0, 1.5))


class TestReparametrize:
    def test_axis_uniform(self):
        bent = BezierCurve([point(0, 0, 0), point(0, 0, 0.1), point(0, 0, 2)])
        straight = line(point(1, 0, 0), point(1, 0, 2))
        patch = TensorProductPatch([bent, straight]).reparametrize('z', samples=65)
        assert all(isinstance(c, UniformCurve) for c in patch.curves)
        for i in resolve_points(5, float):
            for p in patch.slice(i, 3):
                assert p[2] == pytest.approx(2 * i, abs=1e-9)

    def test_shared_curves_stay_shared(self):
        shared = line(point(1, 0, 0), point(1, 0, 2))
        a = TensorProductPatch([line(point(0, 0, 0), point(0, 0, 2)), shared])
        b = TensorProductPatch([shared, line(point(2, 0, 0), point(2, 0, 2))])
        cache = {}
        ra = a.reparametrize(cache=cache)
        rb = b.reparametrize(cache=cache)
        assert ra.edge(J1).curve is rb.edge(J0).curve

    def test_weights_survive(self):
        mid = WeightedCurve(line(point(1, 1, 0), point(1, 1, 2)), 3.0)
        patch = TensorProductPatch([line(point(0, 0, 0), point(0, 0, 2)), mid,
                                    line(point(2, 0, 0), point(2, 0, 2))])
        again = patch.reparametrize()
        assert isinstance(again.curves[1], WeightedCurve)
        assert again.curves[1].weight == 3.0


def test_iso_curve():
    patch = _plane()
    along_i = IsoCurve(patch, 'i', 0.25)
    _same(along_i.evaluate(1), point(0.25, 0, 1))
    along_j = IsoCurve(patch, 'j', 0.5)
    _same(along_j.evaluate(1), point(1, 0, 0.5))
    with pytest.raises(InvalidGeometry):
        IsoCurve(patch, 'k', 0.5)

import io

from chisel.coords import point
from chisel.io.openscad import (
    difference,
    intersection,
    linear_extrude,
    polygon,
    polyhedron,
    union,
    write_scad,
)
from chisel.mesh import Mesh


def _tetra():
    return Mesh([point(0, 0, 0), point(1, 0, 0), point(0, 1, 0), point(0, 0, 1)],
                [(0, 2, 1), (0, 1, 3), (1, 2, 3), (0, 3, 2)])


def test_polygon():
    assert polygon([(0, 0), (1, 0), (0.5, 2)]) == \
        'polygon(points=[[0.000,0.000],[1.000,0.000],[0.500,2.000]]);'


def test_polyhedron():
    text = polyhedron(_tetra())
    assert text.startswith('polyhedron(points=[[0.000,0.000,0.000],[1.000,0.000,0.000],')
    assert text.endswith('faces=[[0,2,1],[0,1,3],[1,2,3],[0,3,2]]);')


def test_booleans_nest():
    a = polygon([(0, 0), (2, 0), (0, 2)])
    b = polygon([(0, 0), (1, 0), (0, 1)])
    assert difference(a, b) == 'difference() {' + a + ' ' + b + '}'
    assert union(a).startswith('union() {polygon(')
    assert intersection(a, b).startswith('intersection() {')
    assert linear_extrude(5, difference(a, b)) == 'linear_extrude(height=5) {' + difference(a, b) + '}'


def test_write_scad(tmp_path):
    source = union(polyhedron(_tetra()))
    path = tmp_path / 'tetra.scad'
    write_scad(source, path)
    assert path.read_text() == source + '\n'
    buf = io.StringIO()
    write_scad(source, buf)
    assert buf.getvalue() == source + '\n'

import io
import struct

from chisel.coords import point
from chisel.io.stl import ascii_stl, write_stl
from chisel.layers import flat_panel
from chisel.mesh import Mesh


def _triangle():
    return Mesh([point(0, 0), point(1, 0), point(0, 1)], [(0, 1, 2)])


def test_write_stl_binary(tmp_path):
    path = tmp_path / 'tri.stl'
    write_stl(_triangle(), path, binary=True, name='test')

    data = path.read_bytes()
    assert len(data) == 80 + 4 + 50  # header + count + one triangle
    assert data[0:4] == b'test'
    count = struct.unpack('<I', data[80:84])[0]
    assert count == 1
    normal = struct.unpack('<3f', data[84:96])
    assert normal == (0.0, 0.0, 1.0)


def test_write_stl_binary_stream():
    outer, _ = flat_panel(40, 250, 10)
    mesh = outer.triangle_mesh(5, 3)
    buf = io.BytesIO()
    write_stl(mesh, buf)
    assert len(buf.getvalue()) == 84 + 50 * len(mesh)
    assert len(mesh) == 16


def test_write_stl_ascii():
    buf = io.StringIO()
    write_stl(_triangle(), buf, binary=False, name='ascii_test')

    text = buf.getvalue()
    assert 'solid ascii_test' in text
    assert 'facet normal' in text
    assert 'vertex 1.000000e+00 0.000000e+00 0.000000e+00' in text
    assert text.strip().endswith('endsolid ascii_test')


def test_ascii_stl_matches_file(tmp_path):
    path = tmp_path / 'tri.stl'
    write_stl(_triangle(), path, binary=False)
    assert path.read_text() == ascii_stl(_triangle())
    assert ascii_stl(_triangle()).count('endfacet') == 1

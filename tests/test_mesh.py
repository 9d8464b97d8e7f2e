import pytest

from chisel.coords import point
from chisel.errors import InvalidGeometry
from chisel.io.openscad import polyhedron
from chisel.mesh import Mesh, grid_faces, mesh_view, triangle_normal


@pytest.mark.parametrize('rows, cols', [(2, 2), (3, 5), (10, 4)])
def test_grid_faces_index_validity(rows, cols):
    faces = grid_faces(rows, cols)
    assert len(faces) == 2 * (rows - 1) * (cols - 1)
    assert all(0 <= i < rows * cols for face in faces for i in face)


def test_grid_faces_winding():
    assert grid_faces(2, 2) == [(0, 1, 2), (2, 1, 3)]


def test_grid_faces_needs_cells():
    with pytest.raises(InvalidGeometry):
        grid_faces(1, 5)


def test_mesh_rejects_bad_faces():
    pts = [point(0, 0), point(1, 0), point(0, 1)]
    with pytest.raises(InvalidGeometry):
        Mesh(pts, [(0, 1, 3)])
    with pytest.raises(InvalidGeometry):
        Mesh(pts, [(0, 1)])


def test_merge_offsets_indices():
    a = Mesh([point(0, 0), point(1, 0), point(0, 1)], [(0, 1, 2)])
    b = Mesh([point(0, 0, 1), point(1, 0, 1), point(0, 1, 1)], [(0, 1, 2)])
    merged = Mesh.merge([a, b])
    assert len(merged.points) == 6
    assert merged.faces == ((0, 1, 2), (3, 4, 5))
    assert len(merged) == 2


def test_triangle_normal():
    assert triangle_normal((0, 0, 0), (1, 0, 0), (0, 1, 0)) == (0.0, 0.0, 1.0)
    assert triangle_normal((0, 0, 0), (1, 0, 0), (2, 0, 0)) is None


def test_mesh_view():
    mesh = Mesh([point(0, 0), point(1, 0), point(0, 1), point(2, 0)], [(0, 1, 2), (0, 1, 3)])
    tris = list(mesh_view(mesh))
    assert len(tris) == 2
    normal, v0, v1, v2 = tris[0]
    assert normal == (0.0, 0.0, 1.0)
    assert v2 == (0.0, 1.0, 0.0)
    assert tris[1][0] == (0.0, 0.0, 0.0)
    assert len(list(mesh_view(mesh, skip_degenerate=True))) == 1


def _square(z):
    return [point(0, 0, z), point(1, 0, z), point(1, 1, z), point(0, 1, z)]


class TestFromSlices:
    def test_counts(self):
        mesh = Mesh.from_slices([_square(0), _square(1), _square(2)])
        assert len(mesh.points) == 12
        assert len(mesh.faces) == 2 * 4 * 2 + 2 * 2
        assert all(0 <= i < 12 for face in mesh.faces for i in face)

    def test_closed_and_consistently_wound(self):
        mesh = Mesh.from_slices([_square(0), _square(1), _square(3)])
        edges = [(f[k], f[(k + 1) % 3]) for f in mesh.faces for k in range(3)]
        assert len(set(edges)) == len(edges)
        assert all((b, a) in set(edges) for a, b in edges)

    def test_caps(self):
        mesh = Mesh.from_slices([_square(0), _square(1)])
        assert mesh.faces[:2] == ((0, 1, 2), (0, 2, 3))
        assert mesh.faces[2:4] == ((7, 6, 5), (7, 5, 4))
        bottom = [p[:3] for p in (mesh.points[i] for i in mesh.faces[0])]
        assert triangle_normal(*bottom) == (0.0, 0.0, 1.0)

    def test_polyhedron_text(self):
        text = polyhedron(Mesh.from_slices([_square(0), _square(1)]))
        assert text.startswith('polyhedron(points=[[0.000,0.000,0.000],')
        assert 'faces=[[0,1,2],[0,2,3],[7,6,5],[7,5,4],[1,0,5],' in text

    @pytest.mark.parametrize('slices', [
        [],
        [[point(0, 0), point(1, 0), point(0, 1)]],
        [[point(0, 0), point(1, 0)], [point(0, 0, 1), point(1, 0, 1)]],
        [_square(0), _square(1)[:3]],
    ])
    def test_bad_slices(self, slices):
        with pytest.raises(InvalidGeometry):
            Mesh.from_slices(slices)

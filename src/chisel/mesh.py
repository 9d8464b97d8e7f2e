"""Indexed triangle meshes and triangulated views of them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

from chisel.coords import cross, epsilon, mag, to_xyz
from chisel.errors import InvalidGeometry

Vec3 = Tuple[float, float, float]
Face = Tuple[int, int, int]
TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]


@dataclass(frozen=True)
class Mesh:
    """Points plus triangular faces indexing into them.

    Every face index must be smaller than ``len(points)``.
    """

    points: Tuple[list, ...]
    faces: Tuple[Face, ...]

    def __post_init__(self):
        object.__setattr__(self, 'points', tuple(self.points))
        object.__setattr__(self, 'faces', tuple(tuple(f) for f in self.faces))
        count = len(self.points)
        for face in self.faces:
            if len(face) != 3:
                raise InvalidGeometry('mesh faces must be triangles, got {}'.format(face))
            for idx in face:
                if not 0 <= idx < count:
                    raise InvalidGeometry('face {} indexes past {} points'.format(face, count))

    @classmethod
    def merge(cls, meshes: Iterable['Mesh']) -> 'Mesh':
        """Concatenate meshes, offsetting face indices; seams are not welded."""
        points: List[list] = []
        faces: List[Face] = []
        for m in meshes:
            offset = len(points)
            points.extend(m.points)
            faces.extend((a + offset, b + offset, c + offset) for a, b, c in m.faces)
        return cls(tuple(points), tuple(faces))

    @classmethod
    def from_slices(cls, slices: Sequence[Sequence[list]]) -> 'Mesh':
        """Closed solid through stacked polygons of equal point count.

        Consecutive polygons are joined by two triangles per side and
        both end polygons are capped.  Caps are fanned from their first
        point, so end polygons must be convex.
        Slices running counter-clockwise seen from above give faces that
        wind clockwise seen from outside, the order OpenSCAD expects.
        """
        if len(slices) < 2:
            raise InvalidGeometry('need at least 2 slices to extrude between, got {}'.format(len(slices)))
        k = len(slices[0])
        if k < 3:
            raise InvalidGeometry('slices need at least 3 points, got {}'.format(k))
        for s in slices:
            if len(s) != k:
                raise InvalidGeometry('slices must share a point count, got {} and {}'.format(k, len(s)))
        n = len(slices)
        points = [list(p) for s in slices for p in s]
        faces: List[Face] = [(0, idx, idx + 1) for idx in range(1, k - 1)]
        top = list(reversed(range(k * (n - 1), k * n)))
        faces.extend((top[0], top[idx], top[idx + 1]) for idx in range(1, k - 1))
        for level in range(n - 1):
            offset = level * k
            for idx in range(k):
                nxt = (idx + 1) % k
                faces.append((offset + nxt, offset + idx, offset + nxt + k))
                faces.append((offset + nxt + k, offset + idx, offset + idx + k))
        return cls(tuple(points), tuple(faces))

    def __len__(self):
        return len(self.faces)


def grid_faces(rows: int, cols: int) -> List[Face]:
    """Faces of a row-major ``rows x cols`` point grid.

    Each cell with corners ``a=(r,c)``, ``b=(r,c+1)``, ``c=(r+1,c+1)``,
    ``d=(r+1,c)`` becomes ``[a, b, d]`` and ``[d, b, c]``.
    """

    if rows < 2 or cols < 2:
        raise InvalidGeometry('mesh grid needs at least 2x2 points, got {}x{}'.format(rows, cols))
    faces: List[Face] = []
    for r in range(rows - 1):
        for col in range(cols - 1):
            a = r * cols + col
            b = a + 1
            d = a + cols
            c = d + 1
            faces.append((a, b, d))
            faces.append((d, b, c))
    return faces


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3 | None:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    ax, ay, az = v1[0] - v0[0], v1[1] - v0[1], v1[2] - v0[2]
    bx, by, bz = v2[0] - v0[0], v2[1] - v0[1], v2[2] - v0[2]
    n = cross([ax, ay, az, 1.0], [bx, by, bz, 1.0])
    length = mag(n)
    if length <= epsilon * epsilon:
        return None
    return (n[0] / length, n[1] / length, n[2] / length)


def mesh_view(mesh: Mesh, *, skip_degenerate: bool = False) -> Iterator[TriTuple]:
    """Yield triangles of ``mesh`` as ``(normal, v0, v1, v2)``.

    Degenerate faces get a zero normal unless ``skip_degenerate`` drops them.
    """

    verts: Sequence[Vec3] = [to_xyz(p) for p in mesh.points]
    for i0, i1, i2 in mesh.faces:
        v0, v1, v2 = verts[i0], verts[i1], verts[i2]
        normal = triangle_normal(v0, v1, v2)
        if normal is None:
            if skip_degenerate:
                continue
            normal = (0.0, 0.0, 0.0)
        yield normal, v0, v1, v2


__all__ = ['Mesh', 'grid_faces', 'triangle_normal', 'mesh_view']

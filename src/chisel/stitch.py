"""Stitching patches into one composite surface along shared edges.

Patches are folded one at a time into a :class:`StitchAccumulator`.  For
each direction family the two edges of a patch tagged with that
direction are the two ends of the patch inside a *path*, a chain of
patches joined across those edges.  Ends are matched by curve identity
(the :attr:`~chisel.curves.Curve.handle` of the edge), never by value:
two patches are stitched only when they were built from the very same
curve object.

Joining two patches across an ``'i'`` edge requires both to sample that
edge with the same number of points, so the new patch inherits the
``i`` resolution of the patch it joins (likewise for ``'j'``).  When a
patch's two ends meet the same path the path closes into a ring.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from chisel.errors import InvalidGeometry
from chisel.mesh import Mesh
from chisel.patches import I_DIRECTION, J_DIRECTION, Edge, Patch

logger = logging.getLogger(__name__)

DIRECTIONS = (I_DIRECTION, J_DIRECTION)


@dataclass(frozen=True)
class Seam:
    """A curve shared by two member patches"""

    curve: object
    direction: str
    patches: Tuple[int, int]


@dataclass
class StitchPath:
    """Chain of member patches joined across edges of one direction"""

    direction: str
    members: List[int] = field(default_factory=list)
    closed: bool = False

    def __len__(self):
        return len(self.members)


class _End(NamedTuple):
    path: StitchPath
    edge: Edge
    member: int


def _check_count(n, name):
    if not isinstance(n, int) or isinstance(n, bool) or n < 2:
        raise InvalidGeometry('{} resolution must be an integer >= 2, got {!r}'.format(name, n))
    return n


class StitchAccumulator:
    """Incrementally joins patches, tracking paths and mesh resolutions.

    ``i`` and ``j`` are the default resolutions used for a patch whose
    edges match nothing already folded in.
    """

    def __init__(self, i: int = 10, j: int = 10):
        self.defaults = {I_DIRECTION: _check_count(i, 'i'), J_DIRECTION: _check_count(j, 'j')}
        self.patches: List[Patch] = []
        self.resolutions: List[Dict[str, int]] = []
        self.paths: List[StitchPath] = []
        self.seams: List[Seam] = []
        self._open: Dict[str, Dict[int, _End]] = {d: {} for d in DIRECTIONS}

    def __len__(self):
        return len(self.patches)

    def fold(self, patch: Patch, i: Optional[int] = None, j: Optional[int] = None) -> int:
        """Add ``patch``; returns its member index"""
        if not isinstance(patch, Patch):
            raise InvalidGeometry('can only stitch patches, got {!r}'.format(patch))
        index = len(self.patches)
        counts = {
            I_DIRECTION: self.defaults[I_DIRECTION] if i is None else _check_count(i, 'i'),
            J_DIRECTION: self.defaults[J_DIRECTION] if j is None else _check_count(j, 'j'),
        }
        self.patches.append(patch)
        self.resolutions.append(counts)
        edges = patch.perimeter()
        for d in DIRECTIONS:
            ends = sorted((e for e in edges if e.direction == d), key=lambda e: e.at)
            if len(ends) != 2:
                raise InvalidGeometry('patch {} has {} edges tagged {!r}, expected 2'.format(
                    index, len(ends), d))
            self._join(index, d, ends[0], ends[1])
        logger.debug('folded patch %d, resolution i=%d j=%d', index,
                     counts[I_DIRECTION], counts[J_DIRECTION])
        return index

    def _join(self, index: int, d: str, a: Edge, b: Edge) -> None:
        open_ends = self._open[d]
        counts = self.resolutions[index]
        if a.handle is b.handle:
            # both ends on one curve: the patch wraps around onto itself
            self.paths.append(StitchPath(d, [index], closed=True))
            self.seams.append(Seam(a.handle, d, (index, index)))
            return
        ma = open_ends.get(id(a.handle))
        mb = open_ends.get(id(b.handle))
        if ma is None and mb is None:
            path = StitchPath(d, [index])
            self.paths.append(path)
            open_ends[id(a.handle)] = _End(path, a, index)
            open_ends[id(b.handle)] = _End(path, b, index)
            return

        first = ma if ma is not None else mb
        counts[d] = self.resolutions[first.member][d]
        path = first.path
        path.members.append(index)
        for match, edge in ((ma, a), (mb, b)):
            if match is not None:
                del open_ends[id(edge.handle)]
                self.seams.append(Seam(edge.handle, d, (match.member, index)))

        if ma is not None and mb is not None:
            if ma.path is mb.path:
                path.closed = True
                logger.debug('closed %s path of %d patches', d, len(path))
                return
            other = mb.path
            for member in other.members:
                self.resolutions[member][d] = counts[d]
            path.members.extend(other.members)
            self.paths.remove(other)
            for key, end in list(open_ends.items()):
                if end.path is other:
                    open_ends[key] = end._replace(path=path)
            return

        free = b if ma is not None else a
        open_ends[id(free.handle)] = _End(path, free, index)

    def open_seams(self, direction: Optional[str] = None) -> List[Edge]:
        """Unmatched ends of paths that already join two or more patches"""
        return [end.edge for d, end in self._ends(direction) if len(end.path) > 1]

    def boundary_edges(self, direction: Optional[str] = None) -> List[Edge]:
        """Unmatched ends of single-patch paths"""
        return [end.edge for d, end in self._ends(direction) if len(end.path) == 1]

    def _ends(self, direction):
        for d in DIRECTIONS:
            if direction is None or d == direction:
                for end in self._open[d].values():
                    yield d, end

    def result(self) -> 'StitchedPatch':
        return StitchedPatch(
            self.patches,
            [(r[I_DIRECTION], r[J_DIRECTION]) for r in self.resolutions],
            self.seams,
            self.open_seams() + self.boundary_edges())


class StitchedPatch:
    """Member patches glued along shared edges, each with its own resolution"""

    def __init__(self, patches: Sequence[Patch], resolutions: Sequence[Tuple[int, int]],
                 seams: Sequence[Seam] = (), boundary: Sequence[Edge] = ()):
        if len(patches) != len(resolutions):
            raise InvalidGeometry('need one resolution per stitched patch')
        if not patches:
            raise InvalidGeometry('nothing to stitch')
        self.patches = tuple(patches)
        self.resolutions = tuple(tuple(r) for r in resolutions)
        self.seams = tuple(seams)
        self._boundary = tuple(boundary)
        self._seam_map = {id(s.curve): s for s in self.seams}

    def __len__(self):
        return len(self.patches)

    def seam_for(self, curve) -> Optional[Seam]:
        """The seam running along ``curve``, if any"""
        return self._seam_map.get(id(curve.handle))

    def perimeter(self) -> List[Edge]:
        return list(self._boundary)

    def _tessellate(self, member):
        patch, (i, j) = member
        return patch.triangle_mesh(i, j)

    def triangle_mesh(self, workers: Optional[int] = None) -> Mesh:
        """Tessellate every member and merge the meshes in member order"""
        members = list(zip(self.patches, self.resolutions))
        if workers and workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                meshes = list(pool.map(self._tessellate, members))
        else:
            meshes = [self._tessellate(m) for m in members]
        return Mesh.merge(meshes)


def stitch(patches: Sequence[Patch], i: int = 10, j: int = 10) -> StitchedPatch:
    """Fold ``patches`` into a fresh accumulator and return the composite"""
    acc = StitchAccumulator(i, j)
    for patch in patches:
        acc.fold(patch)
    return acc.result()


__all__ = ['Seam', 'StitchPath', 'StitchAccumulator', 'StitchedPatch', 'stitch']

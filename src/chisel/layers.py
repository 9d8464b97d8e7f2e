"""Slicing two-skin sandwich panels into printable layers.

The outer and inner skins are patches whose ``i`` parameter runs up the
build height and whose ``j`` parameter runs across the panel.  Every
layer samples both skins at one height and connects them with an infill
polyline, giving three tracks (outer skin, inner skin, infill) that
:class:`~chisel.gcode.PrintDescriptor` turns into G-code.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from chisel.config import PanelConfig, PrintConfig
from chisel.coords import lerp, point
from chisel.corrugations import (
    BOTTOM,
    TOP,
    Corrugation,
    check_distribution,
    modulate,
    opposite,
    sine_corrugations,
    uniform_corrugations,
)
from chisel.curves import UniformCurve, line, resolve_points
from chisel.errors import InvalidToolpath
from chisel.gcode import SEGMENT_KINDS, TRAVEL, PrintDescriptor
from chisel.paths import distanced_path, polygon_area
from chisel.patches import Patch, TensorProductPatch
from chisel.rangetree import RangeTree

logger = logging.getLogger(__name__)

Z_DIGITS = 3


@dataclass(frozen=True)
class LayerSlice:
    """One planar polyline at height ``z``"""

    z: float
    polyline: Tuple[Tuple[float, float], ...]

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> 'LayerSlice':
        """Build from 3D points, all of which must share one rounded ``z``"""
        if not points:
            raise InvalidToolpath('cannot build a layer slice from no points')
        z = round(points[0][2], Z_DIGITS)
        for p in points:
            if round(p[2], Z_DIGITS) != z:
                raise InvalidToolpath('layer slice is not planar: z={} and z={}'.format(
                    points[0][2], p[2]))
        return cls(float(points[0][2]), tuple((float(p[0]), float(p[1])) for p in points))

    def at(self, z: float) -> 'LayerSlice':
        return replace(self, z=float(z))


@dataclass(frozen=True)
class Track:
    """Slices printed one per layer with shared settings.

    ``connection`` is how the head reaches the first point of the
    track from wherever the previous segment ended.
    """

    name: str
    slices: Tuple[LayerSlice, ...]
    connection: str = TRAVEL
    alternate: bool = False
    line_width: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'slices', tuple(self.slices))
        if self.connection not in SEGMENT_KINDS:
            raise InvalidToolpath('bad connection {!r} for track {}'.format(self.connection, self.name))


def horizontal_infill(outer_points, inner_points, distribution: Sequence[Corrugation],
                      connecting_distance: float = 0.02) -> List[list]:
    """Zig-zag between two skin polylines following ``distribution``

    Each entry picks the point at fraction ``t`` of the length of its
    skin (``TOP`` is the outer skin) and moves it ``connecting_distance``
    of the way towards the matching point on the other skin.
    """
    outer = UniformCurve(outer_points)
    inner = UniformCurve(inner_points)
    result = []
    for c in distribution:
        p_outer = outer.evaluate(c.t)
        p_inner = inner.evaluate(c.t)
        if c.side == TOP:
            result.append(lerp(p_outer, p_inner, connecting_distance))
        elif c.side == BOTTOM:
            result.append(lerp(p_inner, p_outer, connecting_distance))
        else:
            raise InvalidToolpath('unknown corrugation side {!r}'.format(c.side))
    return result


def _blend(lower, upper, lo, hi):
    span = hi - lo

    def interpolate(t):
        f = (t - lo) / span
        return [lerp(a, b, f) for a, b in zip(lower, upper)]
    return interpolate


class RibIndex:
    """Vertical ribs between two skins, queried by height.

    ``heights`` places anchors up the panel: at each anchor the infill
    follows ``distribution``, mirrored between the skins where the
    anchor's side is ``BOTTOM``.  Between anchors the rib polyline is a
    linear blend of its two neighbours, looked up in a range tree.
    """

    def __init__(self, outer: Patch, inner: Patch, heights: Sequence[Corrugation],
                 distribution: Sequence[Corrugation], resolution: int = 2,
                 connecting_distance: float = 0.02):
        check_distribution(heights)
        flipped = [Corrugation(opposite(c.side), c.t) for c in distribution]
        anchors = []
        for h in heights:
            across = distribution if h.side == TOP else flipped
            anchors.append(horizontal_infill(outer.slice(h.t, resolution), inner.slice(h.t, resolution),
                                             across, connecting_distance))
        records = [(h0.t, h1.t, _blend(a0, a1, h0.t, h1.t))
                   for h0, h1, a0, a1 in zip(heights, heights[1:], anchors, anchors[1:])
                   if h1.t > h0.t]
        self.heights = tuple(heights)
        self._tree = RangeTree(records)

    def __len__(self):
        return len(self.heights)

    def lookup(self, t: float) -> List[list]:
        return self._tree.lookup(t)


def _distribution_fn(panel: PanelConfig) -> Callable[[float], List[Corrugation]]:
    if panel.infill == 'sine':
        base = sine_corrugations(panel.sine_amplitude, panel.sine_frequency,
                                 panel.sine_resolution or 2 * panel.corrugations)
    else:
        base = uniform_corrugations(panel.corrugations)
    if not panel.phase_amplitude:
        return lambda t: base
    return lambda t: modulate(base, t, panel.phase_amplitude, panel.phase_frequency)


def _slice_one(outer, inner, t, resolution, infill_fn):
    outer_pts = outer.slice(t, resolution)
    inner_pts = inner.slice(t, resolution)
    z = outer_pts[0][2]
    infill = [(p[0], p[1]) for p in infill_fn(t, outer_pts, inner_pts)]
    return (LayerSlice.from_points(outer_pts), LayerSlice.from_points(inner_pts),
            LayerSlice(z, tuple(infill)))


def slice_layers(outer: Patch, inner: Patch, layers: int, resolution: int = 2,
                 infill_fn=None, workers: Optional[int] = None):
    """Slice both skins at ``layers`` heights ``1/layers, 2/layers, ..., 1``

    ``infill_fn(t, outer_points, inner_points)`` returns the infill
    points of the layer at height ``t``; it defaults to a uniform seven
    corrugation zig-zag.  Returns ``(outer, inner, infill)`` lists of
    :class:`LayerSlice`.
    """
    if infill_fn is None:
        distribution = uniform_corrugations(7)

        def infill_fn(t, outer_pts, inner_pts):
            return horizontal_infill(outer_pts, inner_pts, distribution)

    heights = resolve_points(layers, float, drop_first=True)

    def work(t):
        return _slice_one(outer, inner, t, resolution, infill_fn)

    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(work, heights))
    else:
        results = [work(t) for t in heights]
    logger.debug('sliced %d layers at resolution %d', len(results), resolution)
    return tuple(list(track) for track in zip(*results))


def flat_panel(width: float, height: float, thickness: float) -> Tuple[TensorProductPatch, TensorProductPatch]:
    """Outer (``y=0``) and inner (``y=thickness``) skins of a flat panel

    ``i`` runs up ``z`` from 0 to ``height`` and ``j`` runs along ``x``
    from 0 to ``width``.
    """
    def skin(y):
        return TensorProductPatch([line(point(0, y, 0), point(0, y, height)),
                                   line(point(width, y, 0), point(width, y, height))])
    return skin(0.0), skin(thickness)


def skirt_polyline(outer: LayerSlice, inner: LayerSlice, distance: float) -> List[Tuple[float, float]]:
    """Closed loop ``distance`` outside the outline of both skins"""
    outline = list(outer.polyline) + list(reversed(inner.polyline))
    if polygon_area(outline) < 0:
        outline.reverse()
    loop = distanced_path(outline + [outline[0]], distance)
    return [(p[0], p[1]) for p in loop]


def panel_descriptor(outer: Patch, inner: Patch, panel: PanelConfig,
                     config: Optional[PrintConfig] = None, *,
                     workers: Optional[int] = None) -> PrintDescriptor:
    """Slice a two-skin panel into an outer, inner and infill track"""
    config = config or PrintConfig()
    if panel.infill == 'ribs':
        index = RibIndex(outer, inner, uniform_corrugations(panel.ribs or panel.corrugations),
                         uniform_corrugations(panel.corrugations), panel.resolution,
                         panel.connecting_distance)

        def infill_fn(t, outer_pts, inner_pts):
            z = outer_pts[0][2]
            return [(p[0], p[1], z) for p in index.lookup(t)]
    else:
        distribution_at = _distribution_fn(panel)

        def infill_fn(t, outer_pts, inner_pts):
            return horizontal_infill(outer_pts, inner_pts, distribution_at(t), panel.connecting_distance)

    outer_slices, inner_slices, infill_slices = slice_layers(
        outer, inner, panel.layers, panel.resolution, infill_fn, workers=workers)

    if config.first_layer_height is not None:
        for slices in (outer_slices, inner_slices, infill_slices):
            slices[0] = slices[0].at(config.first_layer_height)

    skirt = config.skirt_polyline
    if skirt is None and panel.skirt:
        skirt = skirt_polyline(outer_slices[0], inner_slices[0], config.skirt_distance or 3.0)

    tracks = [
        Track('outer', outer_slices, connection=TRAVEL),
        Track('inner', inner_slices, connection=TRAVEL),
        Track('infill', infill_slices, connection=TRAVEL, alternate=True),
    ]
    logger.info('panel descriptor: %d layers, infill %s', panel.layers, panel.infill)
    return PrintDescriptor(tracks, config, skirt_polyline=skirt)


__all__ = [
    'LayerSlice',
    'Track',
    'horizontal_infill',
    'RibIndex',
    'slice_layers',
    'flat_panel',
    'skirt_polyline',
    'panel_descriptor',
]

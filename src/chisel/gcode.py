"""G-code emission from a geometry-free print descriptor.

A :class:`PrintDescriptor` holds any number of *tracks*, each an ordered
sequence of layer slices with the same length, plus a
:class:`~chisel.config.PrintConfig`.  Emission is a single pass::

    header -> layer 0 .. layer N -> footer

Every layer is a list of :class:`Segment` values.  A ``print`` segment
extrudes along its polyline (one ``G1`` per point pair), a ``travel``
segment moves without extruding (``G0``), and a ``none`` segment emits
nothing because the previous segment already ends where the next one
starts.  Extrusion is absolute (``M82``): every ``E`` value is the
running total of filament fed so far.

Layer heights are checked against ``height_range`` as each layer is
reached; a height outside the range raises
:class:`~chisel.errors.InvalidToolpath` before any of that layer's
G-code is produced.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from math import pi, sqrt
from typing import Iterator, List, Optional, Sequence, Tuple

from chisel.config import PrintConfig
from chisel.errors import InvalidToolpath

logger = logging.getLogger(__name__)

PRINT = 'print'
TRAVEL = 'travel'
NONE = 'none'
SEGMENT_KINDS = (PRINT, TRAVEL, NONE)

HEADER = ('M82', 'G21', 'G90')
FOOTER = ('M107', 'M104 S0', 'M140 S0', 'G28 X0', 'M84')

Point2 = Tuple[float, float]


@dataclass(frozen=True)
class Segment:
    kind: str
    points: Tuple[Point2, ...]
    line_width: Optional[float] = None

    def __post_init__(self):
        if self.kind not in SEGMENT_KINDS:
            raise InvalidToolpath('segment kind must be one of {}, got {!r}'.format(
                SEGMENT_KINDS, self.kind))
        object.__setattr__(self, 'points', tuple((float(p[0]), float(p[1])) for p in self.points))


@dataclass(frozen=True)
class Layer:
    index: int
    z: float
    segments: Tuple[Segment, ...]

    @property
    def start(self) -> Optional[Point2]:
        for seg in self.segments:
            if seg.points:
                return seg.points[0]
        return None


class PrintDescriptor:
    """Tracks of layer slices plus the settings used to print them.

    Each track needs ``name``, ``slices`` (objects with ``z`` and
    ``polyline``), ``connection`` (a segment kind used to reach the
    track's first point), ``alternate`` (reverse every other layer) and
    ``line_width`` (``None`` for the configured default).
    """

    def __init__(self, tracks: Sequence, config: Optional[PrintConfig] = None,
                 skirt_polyline: Optional[Sequence[Point2]] = None):
        self.tracks = tuple(tracks)
        self.config = config or PrintConfig()
        if skirt_polyline is None:
            skirt_polyline = self.config.skirt_polyline
        self.skirt_polyline = None if skirt_polyline is None else tuple(
            (float(p[0]), float(p[1])) for p in skirt_polyline)
        if not self.tracks:
            raise InvalidToolpath('print descriptor needs at least one track')
        counts = {len(t.slices) for t in self.tracks}
        if len(counts) != 1:
            raise InvalidToolpath('tracks disagree on layer count: {}'.format(
                ', '.join('{}={}'.format(t.name, len(t.slices)) for t in self.tracks)))
        for t in self.tracks:
            if t.connection not in SEGMENT_KINDS:
                raise InvalidToolpath('track {} has bad connection {!r}'.format(t.name, t.connection))

    @property
    def height_range(self) -> Optional[Tuple[float, float]]:
        return self.config.height_range

    def __len__(self):
        return len(self.tracks[0].slices)

    def layers(self) -> Iterator[Layer]:
        """Assemble the segments of every layer, in print order"""
        for k in range(len(self)):
            slices = [t.slices[k] for t in self.tracks]
            z = slices[0].z
            for t, s in zip(self.tracks, slices):
                if round(s.z, 3) != round(z, 3):
                    raise InvalidToolpath('layer {}: track {} is at z={} but {} is at z={}'.format(
                        k, t.name, s.z, self.tracks[0].name, z))
            segments: List[Segment] = []
            if k == 0 and self.skirt_polyline:
                segments.append(Segment(PRINT, self.skirt_polyline))
            for t, s in zip(self.tracks, slices):
                points = list(s.polyline)
                if t.alternate and k % 2:
                    points.reverse()
                if not points:
                    continue
                if segments and segments[-1].points:
                    segments.append(Segment(t.connection, (segments[-1].points[-1], points[0])))
                segments.append(Segment(PRINT, points, t.line_width))
            yield Layer(k, z, tuple(segments))


def _ramp(start, end, k, ramp_layers):
    if start is None or not ramp_layers:
        return end
    return start + (end - start) * min(k, ramp_layers) / ramp_layers


def _feed(speed: float) -> int:
    return int(round(speed * 60))


def _temp(t) -> str:
    return 'S{}'.format(int(round(t)))


def _move(code: str, feed: int, x: float, y: float, z: Optional[float] = None,
          e: Optional[float] = None) -> str:
    words = ['{} F{} X{:.3f} Y{:.3f}'.format(code, feed, x, y)]
    if z is not None:
        words.append('Z{:.3f}'.format(z))
    if e is not None:
        words.append('E{:.5f}'.format(e))
    return ' '.join(words)


def header(config: PrintConfig) -> List[str]:
    lines = list(HEADER)
    if config.bed_temp is not None:
        lines.append('M190 ' + _temp(config.bed_temp))
    if config.print_temp is not None:
        start = config.start_print_temp if config.start_print_temp is not None else config.print_temp
        lines.append('M109 ' + _temp(start))
    lines.extend(['G28', 'G92 E0', 'M107'])
    return lines


def extrusion(length: float, layer_height: float, line_width: float, config: PrintConfig) -> float:
    """Filament length needed to lay down ``length`` mm of track"""
    area = pi * (config.filament_diameter / 2.0) ** 2
    return length * layer_height * line_width / area * config.extrusion_rate


def iter_gcode(descriptor: PrintDescriptor) -> Iterator[str]:
    """Yield G-code lines for ``descriptor``, one layer at a time"""
    config = descriptor.config
    height_range = descriptor.height_range
    yield from header(config)

    e = 0.0
    prev_z = 0.0
    temp = None
    fan_on = False
    position = None
    for layer in descriptor.layers():
        height = layer.z - prev_z
        if round(height, 6) <= 0:
            raise InvalidToolpath('layer {} at z={} does not rise above the previous layer at z={}'.format(
                layer.index, layer.z, prev_z))
        if height_range is not None and not height_range[0] <= round(height, 6) <= height_range[1]:
            raise InvalidToolpath('layer {} height {:.5f} lies outside [{}, {}]'.format(
                layer.index, height, height_range[0], height_range[1]))
        speed = _ramp(config.start_speed, config.speed, layer.index, config.ramp_layers)
        feed = _feed(speed)
        travel = _feed(speed * config.travel_speed_ratio)

        if config.print_temp is not None:
            t = int(round(_ramp(config.start_print_temp, config.print_temp,
                                layer.index, config.ramp_layers)))
            if temp is not None and t != temp:
                yield 'M104 ' + _temp(t)
            temp = t
        if not fan_on and config.fan_speed_ratio is not None and layer.index >= config.fan_start_layer:
            yield 'M106 S{}'.format(int(255 * config.fan_speed_ratio))
            fan_on = True

        start = layer.start
        if start is not None:
            yield _move('G0', travel, start[0], start[1], z=layer.z)
            position = start
        for seg in layer.segments:
            if seg.kind == NONE or not seg.points:
                continue
            width = seg.line_width or config.line_width
            pts = list(seg.points)
            if position is None or pts[0] != position:
                yield _move('G0', travel, pts[0][0], pts[0][1])
            for (x0, y0), (x1, y1) in zip(pts, pts[1:]):
                if seg.kind == PRINT:
                    e += extrusion(sqrt((x1 - x0) ** 2 + (y1 - y0) ** 2), height, width, config)
                    yield _move('G1', feed, x1, y1, e=e)
                else:
                    yield _move('G0', travel, x1, y1)
            position = pts[-1]
        logger.debug('layer %d at z=%.3f, filament %.3f', layer.index, layer.z, e)
        prev_z = layer.z

    yield from FOOTER


def generate_gcode(descriptor: PrintDescriptor) -> str:
    """The complete G-code text; raises before returning anything on failure"""
    text = '\n'.join(iter_gcode(descriptor)) + '\n'
    logger.info('generated %d layers of G-code', len(descriptor))
    return text


def write_gcode(descriptor: PrintDescriptor, sink) -> None:
    """Generate G-code and write it to ``sink`` in one go.

    ``sink`` is an open text stream or a filesystem path.  Paths are
    written through a temporary file in the same directory which then
    replaces the target, so the target never holds partial output.
    """
    text = generate_gcode(descriptor)
    if hasattr(sink, 'write'):
        sink.write(text)
        return
    path = os.fspath(sink)
    d = os.path.dirname(os.path.abspath(path)) or '.'
    fd, tmp = tempfile.mkstemp(dir=d, suffix='.tmp', text=True)
    try:
        with os.fdopen(fd, 'w', encoding='ascii', newline='\n') as out:
            out.write(text)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)
    logger.info('wrote %s', path)


__all__ = [
    'PRINT',
    'TRAVEL',
    'NONE',
    'HEADER',
    'FOOTER',
    'Segment',
    'Layer',
    'PrintDescriptor',
    'header',
    'extrusion',
    'iter_gcode',
    'generate_gcode',
    'write_gcode',
]

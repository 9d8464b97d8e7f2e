"""DXF preview of sliced layers, one DXF layer per track."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

import ezdxf

from chisel.errors import InvalidToolpath

logger = logging.getLogger(__name__)

# ACI colors cycled over tracks: white, red, yellow, green, cyan, blue, magenta
_COLORS = (7, 1, 2, 3, 4, 5, 6)
SKIRT_LAYER = 'SKIRT'


def layers_document(tracks: Sequence, layers: Optional[Iterable[int]] = None, *,
                    spacing: float = 0.0, skirt_polyline=None):
    """Build an ezdxf document holding the selected layers of ``tracks``

    Every track gets its own DXF layer named after it.  With a non-zero
    ``spacing`` the n-th selected layer is shifted ``n * spacing`` along
    Y so stacked layers can be told apart.
    """
    if not tracks:
        raise InvalidToolpath('nothing to preview')
    count = len(tracks[0].slices)
    indices = list(range(count)) if layers is None else list(layers)
    for k in indices:
        if not 0 <= k < count:
            raise InvalidToolpath('layer {} out of range, have {} layers'.format(k, count))

    doc = ezdxf.new(dxfversion='R2010', setup=False)
    doc.header['$MEASUREMENT'] = 1  # metric
    doc.header['$INSUNITS'] = 4  # millimeters
    for n, track in enumerate(tracks):
        doc.layers.new(track.name.upper(), dxfattribs={'color': _COLORS[n % len(_COLORS)]})
    msp = doc.modelspace()

    for n, k in enumerate(indices):
        dy = n * spacing
        for track in tracks:
            polyline = track.slices[k].polyline
            if len(polyline) < 2:
                continue
            msp.add_lwpolyline([(x, y + dy) for x, y in polyline],
                               dxfattribs={'layer': track.name.upper(),
                                           'elevation': track.slices[k].z})
    if skirt_polyline and 0 in indices:
        doc.layers.new(SKIRT_LAYER, dxfattribs={'color': 8})
        msp.add_lwpolyline(list(skirt_polyline), dxfattribs={'layer': SKIRT_LAYER})
    return doc


def write_layers_dxf(descriptor, path, layers: Optional[Iterable[int]] = None, *,
                     spacing: float = 0.0) -> Path:
    """Write the selected layers of a print descriptor to ``path``"""
    path = Path(path)
    doc = layers_document(descriptor.tracks, layers, spacing=spacing,
                          skirt_polyline=descriptor.skirt_polyline)
    doc.saveas(path)
    logger.info('wrote layer preview %s', path)
    return path


__all__ = ['layers_document', 'write_layers_dxf']

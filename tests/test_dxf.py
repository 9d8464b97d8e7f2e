import ezdxf
import pytest

from chisel.config import PanelConfig, PrintConfig
from chisel.errors import InvalidToolpath
from chisel.io.dxf import SKIRT_LAYER, layers_document, write_layers_dxf
from chisel.layers import flat_panel, panel_descriptor


def _descriptor(**print_options):
    outer, inner = flat_panel(40, 20, 10)
    panel = PanelConfig(width=40, height=20, thickness=10, layers=4, corrugations=3)
    return panel_descriptor(outer, inner, panel, PrintConfig(**print_options))


def test_layers_document():
    d = _descriptor()
    doc = layers_document(d.tracks)
    for name in ('OUTER', 'INNER', 'INFILL'):
        assert name in doc.layers
    polylines = doc.modelspace().query('LWPOLYLINE')
    assert len(polylines) == 3 * 4


def test_selected_layers_with_spacing():
    d = _descriptor()
    doc = layers_document(d.tracks, [1, 3], spacing=50)
    polylines = doc.modelspace().query('LWPOLYLINE[layer=="OUTER"]')
    assert len(polylines) == 2
    first, second = polylines
    assert first.dxf.elevation == pytest.approx(10)
    assert second.dxf.elevation == pytest.approx(20)
    assert [p[1] for p in first.get_points('xy')] == pytest.approx([0, 0])
    assert [p[1] for p in second.get_points('xy')] == pytest.approx([50, 50])


def test_out_of_range_layer():
    with pytest.raises(InvalidToolpath):
        layers_document(_descriptor().tracks, [4])


def test_write_with_skirt(tmp_path):
    d = _descriptor(skirt_polyline=[(-3, -3), (43, -3), (43, 13), (-3, 13), (-3, -3)])
    path = write_layers_dxf(d, tmp_path / 'preview.dxf', [0])
    assert path.exists()
    doc = ezdxf.readfile(str(path))
    assert SKIRT_LAYER in doc.layers
    infill = doc.modelspace().query('LWPOLYLINE[layer=="INFILL"]')
    assert len(infill) == 1
    assert len(infill[0]) == 7

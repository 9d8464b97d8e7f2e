import pytest

from chisel.config import PanelConfig, PrintConfig
from chisel.corrugations import BOTTOM, TOP, Corrugation, uniform_corrugations
from chisel.errors import InvalidToolpath
from chisel.gcode import TRAVEL
from chisel.layers import (
    LayerSlice,
    RibIndex,
    Track,
    flat_panel,
    horizontal_infill,
    panel_descriptor,
    skirt_polyline,
    slice_layers,
)

OUTER = [(0, 0, 0), (40, 0, 0)]
INNER = [(0, 10, 0), (40, 10, 0)]


def _xy(points):
    return [(round(p[0], 9), round(p[1], 9)) for p in points]


class TestLayerSlice:
    def test_from_points(self):
        s = LayerSlice.from_points([(0, 0, 2.0), (1, 0, 2.0004), (2, 1, 1.9996)])
        assert s.z == 2.0
        assert s.polyline == ((0.0, 0.0), (1.0, 0.0), (2.0, 1.0))

    def test_not_planar(self):
        with pytest.raises(InvalidToolpath):
            LayerSlice.from_points([(0, 0, 2.0), (1, 0, 2.1)])

    def test_empty(self):
        with pytest.raises(InvalidToolpath):
            LayerSlice.from_points([])

    def test_at(self):
        s = LayerSlice(1.0, ((0.0, 0.0), (1.0, 1.0)))
        moved = s.at(0.25)
        assert moved.z == 0.25
        assert moved.polyline == s.polyline
        assert s.z == 1.0


def test_track_rejects_bad_connection():
    with pytest.raises(InvalidToolpath):
        Track('outer', [], connection='teleport')
    assert Track('outer', []).connection == TRAVEL


class TestHorizontalInfill:
    def test_single_corrugation(self):
        pts = horizontal_infill(OUTER, INNER, uniform_corrugations(1))
        assert _xy(pts) == [(0, 0.2), (20, 9.8), (40, 0.2)]

    def test_no_connecting_distance(self):
        pts = horizontal_infill(OUTER, INNER, uniform_corrugations(2), connecting_distance=0)
        assert _xy(pts) == [(0, 0), (10, 10), (20, 0), (30, 10), (40, 0)]

    def test_follows_length_of_each_skin(self):
        # a bent outer skin is sampled by arc length, not by x
        outer = [(0, 0, 0), (10, 0, 0), (10, 30, 0)]
        inner = [(0, 10, 0), (40, 10, 0)]
        pts = horizontal_infill(outer, inner, [Corrugation(TOP, 0.5), Corrugation(BOTTOM, 0.5)], 0)
        assert _xy(pts) == [(10, 10), (20, 10)]

    def test_bad_side(self):
        with pytest.raises(InvalidToolpath):
            horizontal_infill(OUTER, INNER, [Corrugation('middle', 0.0)])


class TestFlatPanel:
    def test_skins(self):
        outer, inner = flat_panel(40, 250, 10)
        assert outer(0.5, 0.25)[:3] == pytest.approx([10, 0, 125])
        assert inner(1.0, 1.0)[:3] == pytest.approx([40, 10, 250])


class TestSliceLayers:
    def test_heights_and_counts(self):
        outer, inner = flat_panel(40, 250, 10)
        outer_slices, inner_slices, infill = slice_layers(outer, inner, 4, resolution=3)
        assert [s.z for s in outer_slices] == pytest.approx([62.5, 125, 187.5, 250])
        assert [s.z for s in inner_slices] == [s.z for s in outer_slices]
        assert [s.z for s in infill] == [s.z for s in outer_slices]
        assert _xy(outer_slices[0].polyline) == [(0, 0), (20, 0), (40, 0)]
        assert _xy(inner_slices[2].polyline) == [(0, 10), (20, 10), (40, 10)]
        assert len(infill[0].polyline) == 15

    def test_custom_infill(self):
        outer, inner = flat_panel(40, 250, 10)

        def straight_across(t, outer_pts, inner_pts):
            return [outer_pts[0], inner_pts[0]]

        _, _, infill = slice_layers(outer, inner, 2, infill_fn=straight_across)
        assert _xy(infill[1].polyline) == [(0, 0), (0, 10)]

    def test_parallel_matches_serial(self):
        outer, inner = flat_panel(40, 100, 10)
        serial = slice_layers(outer, inner, 12)
        parallel = slice_layers(outer, inner, 12, workers=3)
        assert parallel == serial


class TestRibIndex:
    def test_blends_between_anchors(self):
        outer, inner = flat_panel(40, 250, 10)
        index = RibIndex(outer, inner, uniform_corrugations(1), uniform_corrugations(1))
        assert len(index) == 3
        mid = index.lookup(0.25)
        assert _xy(mid) == [(0, 5), (20, 5), (40, 5)]
        assert mid[0][2] == pytest.approx(62.5)
        assert _xy(index.lookup(0.5)) == [(0, 9.8), (20, 0.2), (40, 9.8)]
        assert _xy(index.lookup(1.0)) == [(0, 0.2), (20, 9.8), (40, 0.2)]

    def test_rejects_bad_heights(self):
        outer, inner = flat_panel(40, 250, 10)
        with pytest.raises(InvalidToolpath):
            RibIndex(outer, inner, [Corrugation(TOP, 0.0)], uniform_corrugations(1))


def test_skirt_surrounds_both_skins():
    outer = LayerSlice(0.2, ((0.0, 0.0), (40.0, 0.0)))
    inner = LayerSlice(0.2, ((0.0, 10.0), (40.0, 10.0)))
    loop = skirt_polyline(outer, inner, 3.0)
    xs = [p[0] for p in loop]
    ys = [p[1] for p in loop]
    assert min(xs) == pytest.approx(-3)
    assert max(xs) == pytest.approx(43)
    assert min(ys) == pytest.approx(-3)
    assert max(ys) == pytest.approx(13)


class TestPanelDescriptor:
    def test_tracks(self):
        outer, inner = flat_panel(40, 250, 10)
        panel = PanelConfig(width=40, height=250, thickness=10, layers=10)
        descriptor = panel_descriptor(outer, inner, panel)
        assert [t.name for t in descriptor.tracks] == ['outer', 'inner', 'infill']
        assert [t.alternate for t in descriptor.tracks] == [False, False, True]
        assert len(descriptor) == 10
        assert descriptor.skirt_polyline is None

    def test_first_layer_height(self):
        outer, inner = flat_panel(40, 250, 10)
        panel = PanelConfig(width=40, height=250, thickness=10, layers=1000)
        descriptor = panel_descriptor(outer, inner, panel, PrintConfig(first_layer_height=0.3))
        assert all(t.slices[0].z == 0.3 for t in descriptor.tracks)
        assert descriptor.tracks[0].slices[1].z == pytest.approx(0.5)

    def test_skirt_from_panel(self):
        outer, inner = flat_panel(40, 250, 10)
        panel = PanelConfig(width=40, height=250, thickness=10, layers=5, skirt=True)
        descriptor = panel_descriptor(outer, inner, panel, PrintConfig(skirt_distance=2.0))
        xs = [p[0] for p in descriptor.skirt_polyline]
        assert min(xs) == pytest.approx(-2)

    def test_sine_infill(self):
        outer, inner = flat_panel(40, 250, 10)
        panel = PanelConfig(width=40, height=250, thickness=10, layers=3, infill='sine',
                            sine_resolution=10)
        descriptor = panel_descriptor(outer, inner, panel)
        assert len(descriptor.tracks[2].slices[0].polyline) == 11

    def test_ribs(self):
        outer, inner = flat_panel(40, 250, 10)
        panel = PanelConfig(width=40, height=250, thickness=10, layers=4, infill='ribs', ribs=2)
        descriptor = panel_descriptor(outer, inner, panel, workers=2)
        infill = descriptor.tracks[2].slices
        assert len(infill[0].polyline) == 15
        assert [s.z for s in infill] == [s.z for s in descriptor.tracks[0].slices]

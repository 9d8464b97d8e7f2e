import struct
import textwrap

import ezdxf
import pytest

from chisel.cli import build_parser, main

CONFIG = """
    panel:
      width: 40
      height: 20
      thickness: 10
      corrugations: 3
      layers: 100
    print:
      height_range: [0.1, 0.3]
      first_layer_height: 0.25
"""


@pytest.fixture
def config(tmp_path):
    path = tmp_path / 'panel.yaml'
    path.write_text(textwrap.dedent(CONFIG))
    return path


def test_parser_requires_action():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_gcode_to_file(config, tmp_path, capsys):
    out = tmp_path / 'panel.gcode'
    assert main(['gcode', str(config), '-o', str(out), '-j', '2']) == 0
    text = out.read_text()
    assert text.startswith('M82\nG21\nG90\n')
    assert text.endswith('M84\n')
    assert 'Wrote 100 layers' in capsys.readouterr().out


def test_gcode_to_stdout(config, capsys):
    assert main(['gcode', str(config)]) == 0
    out = capsys.readouterr().out
    assert out.startswith('M82\n')
    assert 'Z0.250' in out


def test_gcode_height_error(tmp_path, capsys):
    path = tmp_path / 'bad.yaml'
    path.write_text(textwrap.dedent(CONFIG).replace('layers: 100', 'layers: 10'))
    out = tmp_path / 'panel.gcode'
    assert main(['gcode', str(path), '-o', str(out)]) == 2
    assert 'Error:' in capsys.readouterr().err
    assert not out.exists()


def test_missing_config(tmp_path, capsys):
    assert main(['gcode', str(tmp_path / 'absent.yaml')]) == 1
    assert 'absent.yaml' in capsys.readouterr().err


def test_mesh_stl(config, tmp_path):
    out = tmp_path / 'skins.stl'
    assert main(['mesh', str(config), '-o', str(out), '--i-count', '4', '--j-count', '3']) == 0
    data = out.read_bytes()
    count = struct.unpack('<I', data[80:84])[0]
    assert count == 2 * (2 * 3 * 2)
    assert len(data) == 84 + 50 * count


def test_mesh_scad_from_suffix(config, tmp_path):
    out = tmp_path / 'skins.scad'
    assert main(['mesh', str(config), '-o', str(out)]) == 0
    text = out.read_text()
    assert text.startswith('union() {polyhedron(')
    assert text.count('polyhedron(') == 2


def test_preview(config, tmp_path):
    out = tmp_path / 'layers.dxf'
    assert main(['preview', str(config), '-o', str(out), '-l', '0', '-l', '99', '--spacing', '30']) == 0
    doc = ezdxf.readfile(str(out))
    assert len(doc.modelspace().query('LWPOLYLINE')) == 6

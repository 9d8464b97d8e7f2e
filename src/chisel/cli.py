"""
Command line front end for chisel.

Usage:
    python -m chisel gcode CONFIG.yaml -o panel.gcode
    python -m chisel mesh CONFIG.yaml -o skins.stl [--format stl|scad]
    python -m chisel preview CONFIG.yaml -o layers.dxf [--layer N ...]

CONFIG.yaml holds a ``panel:`` section describing a flat two-skin panel
and an optional ``print:`` section with printer settings.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from chisel.config import load_config
from chisel.errors import InvalidGeometry, InvalidToolpath
from chisel.gcode import write_gcode
from chisel.io.dxf import write_layers_dxf
from chisel.io.openscad import polyhedron, union, write_scad
from chisel.io.stl import write_stl
from chisel.layers import flat_panel, panel_descriptor
from chisel.mesh import Mesh

logger = logging.getLogger(__name__)


def _panel(args):
    panel, config = load_config(args.config)
    outer, inner = flat_panel(panel.width, panel.height, panel.thickness)
    return panel, config, outer, inner


def cmd_gcode(args) -> int:
    """Slice the panel and write G-code."""
    panel, config, outer, inner = _panel(args)
    descriptor = panel_descriptor(outer, inner, panel, config, workers=args.workers)
    output = args.output
    if output == '-':
        write_gcode(descriptor, sys.stdout)
    else:
        write_gcode(descriptor, Path(output))
        print(f"Wrote {len(descriptor)} layers to {output}")
    return 0


def cmd_mesh(args) -> int:
    """Tessellate both skins and write STL or OpenSCAD."""
    panel, _, outer, inner = _panel(args)
    j_count = args.j_count or panel.resolution
    meshes = [skin.triangle_mesh(args.i_count, j_count) for skin in (outer, inner)]
    output = Path(args.output)
    fmt = args.format or ('scad' if output.suffix.lower() == '.scad' else 'stl')
    if fmt == 'scad':
        write_scad(union(*(polyhedron(m) for m in meshes)), output)
    else:
        write_stl(Mesh.merge(meshes), output, binary=not args.ascii)
    print(f"Wrote {sum(len(m) for m in meshes)} triangles to {output}")
    return 0


def cmd_preview(args) -> int:
    """Write selected layers to a DXF file."""
    panel, config, outer, inner = _panel(args)
    descriptor = panel_descriptor(outer, inner, panel, config, workers=args.workers)
    path = write_layers_dxf(descriptor, args.output, args.layer, spacing=args.spacing)
    print(f"Wrote layer preview to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m chisel',
        description='Sandwich-panel toolpaths from parametric patches',
    )
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='More logging (repeat for debug output)')
    subparsers = parser.add_subparsers(dest='action', required=True)

    gcode_parser = subparsers.add_parser('gcode', help='Generate G-code for a panel')
    gcode_parser.add_argument('config', help='YAML configuration file')
    gcode_parser.add_argument('-o', '--output', default='-', metavar='FILE',
                              help='G-code output file (default: stdout)')
    gcode_parser.add_argument('-j', '--workers', type=int, default=None,
                              help='Slice layers on this many threads')
    gcode_parser.set_defaults(func=cmd_gcode)

    mesh_parser = subparsers.add_parser('mesh', help='Tessellate the panel skins')
    mesh_parser.add_argument('config', help='YAML configuration file')
    mesh_parser.add_argument('-o', '--output', required=True, metavar='FILE',
                             help='Output file (STL or SCAD)')
    mesh_parser.add_argument('--format', choices=('stl', 'scad'),
                             help='Output format (default: from the file suffix)')
    mesh_parser.add_argument('--ascii', action='store_true', help='Write ASCII rather than binary STL')
    mesh_parser.add_argument('--i-count', type=int, default=20, help='Samples up the panel')
    mesh_parser.add_argument('--j-count', type=int, default=None,
                             help='Samples across the panel (default: panel resolution)')
    mesh_parser.set_defaults(func=cmd_mesh)

    preview_parser = subparsers.add_parser('preview', help='Write sliced layers as DXF')
    preview_parser.add_argument('config', help='YAML configuration file')
    preview_parser.add_argument('-o', '--output', required=True, metavar='FILE', help='DXF output file')
    preview_parser.add_argument('-l', '--layer', type=int, action='append',
                                help='Layer index to include (can be repeated; default: all)')
    preview_parser.add_argument('--spacing', type=float, default=0.0,
                                help='Y offset between consecutive previewed layers')
    preview_parser.add_argument('-j', '--workers', type=int, default=None,
                                help='Slice layers on this many threads')
    preview_parser.set_defaults(func=cmd_preview)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')
    try:
        return args.func(args)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (InvalidGeometry, InvalidToolpath) as exc:
        logger.debug('generation failed', exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())

"""Print and panel configuration, optionally loaded from YAML.

A configuration file has two sections::

    panel:
      width: 40
      height: 250
      thickness: 10
      corrugations: 7
      layers: 1250
    print:
      line_width: 0.45
      height_range: [0.1, 0.3]
      first_layer_height: 0.25

Unknown keys are rejected rather than ignored so that typos surface
before any G-code is generated.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

import yaml

from chisel.coords import isgoodnum
from chisel.errors import InvalidToolpath

INFILL_MODES = ('corrugated', 'sine', 'ribs')


def _check_keys(cls, data: Mapping[str, Any], section: str) -> None:
    if not isinstance(data, Mapping):
        raise InvalidToolpath(f"{section} configuration must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidToolpath(f"unknown {section} option(s): {', '.join(unknown)}")


def _positive(name: str, value, *, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if not isgoodnum(value) or value <= 0:
        raise InvalidToolpath(f"{name} must be a positive number, got {value!r}")


@dataclass(frozen=True)
class PrintConfig:
    """Printer settings consumed by the G-code emitter.

    Options left at ``None`` disable the behaviour they control: no
    ``bed_temp`` means no bed heating command, no ``ramp_layers`` means
    no speed or temperature ramp, no ``fan_speed_ratio`` means the fan
    stays off.  Speeds are in mm/s, lengths in mm, temperatures in C.
    """

    skirt_polyline: Optional[Tuple[Tuple[float, float], ...]] = None
    skirt_distance: Optional[float] = None
    height_range: Optional[Tuple[float, float]] = None
    extrusion_rate: float = 1.0
    filament_diameter: float = 1.75
    line_width: float = 0.45
    speed: float = 30
    start_speed: Optional[float] = None
    travel_speed_ratio: float = 1.5
    ramp_layers: Optional[int] = None
    print_temp: Optional[float] = None
    start_print_temp: Optional[float] = None
    bed_temp: Optional[float] = None
    fan_speed_ratio: Optional[float] = None
    fan_start_layer: int = 1
    first_layer_height: Optional[float] = None

    def __post_init__(self):
        for name in ('extrusion_rate', 'filament_diameter', 'line_width', 'speed', 'travel_speed_ratio'):
            _positive(name, getattr(self, name))
        for name in ('start_speed', 'first_layer_height', 'skirt_distance'):
            _positive(name, getattr(self, name), allow_none=True)
        if self.height_range is not None:
            hr = tuple(self.height_range)
            if len(hr) != 2 or not all(isgoodnum(h) for h in hr) or not 0 < hr[0] <= hr[1]:
                raise InvalidToolpath(f"height_range must be [min, max] with 0 < min <= max, got {self.height_range!r}")
            object.__setattr__(self, 'height_range', (float(hr[0]), float(hr[1])))
        if self.skirt_polyline is not None:
            skirt = tuple((float(p[0]), float(p[1])) for p in self.skirt_polyline)
            if len(skirt) < 2:
                raise InvalidToolpath('skirt polyline needs at least 2 points')
            object.__setattr__(self, 'skirt_polyline', skirt)
        if self.ramp_layers is not None and (not isinstance(self.ramp_layers, int) or self.ramp_layers < 0):
            raise InvalidToolpath(f"ramp_layers must be a non-negative integer, got {self.ramp_layers!r}")
        if not isinstance(self.fan_start_layer, int) or self.fan_start_layer < 0:
            raise InvalidToolpath(f"fan_start_layer must be a non-negative integer, got {self.fan_start_layer!r}")
        if self.fan_speed_ratio is not None and not (isgoodnum(self.fan_speed_ratio)
                                                     and 0 <= self.fan_speed_ratio <= 1):
            raise InvalidToolpath(f"fan_speed_ratio must lie in [0, 1], got {self.fan_speed_ratio!r}")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "PrintConfig":
        data = data or {}
        _check_keys(cls, data, 'print')
        return cls(**data)

    def replace(self, **changes) -> "PrintConfig":
        return replace(self, **changes)


@dataclass(frozen=True)
class PanelConfig:
    """Geometry of a flat two-skin panel and how it is sliced."""

    width: float
    height: float
    thickness: float
    corrugations: int = 7
    layers: int = 100
    resolution: int = 2
    connecting_distance: float = 0.02
    infill: str = 'corrugated'
    sine_amplitude: float = 0.5
    sine_frequency: float = 1.0
    sine_resolution: Optional[int] = None
    phase_amplitude: float = 0.0
    phase_frequency: float = 1.0
    ribs: Optional[int] = None
    skirt: bool = False

    def __post_init__(self):
        for name in ('width', 'height', 'thickness'):
            _positive(name, getattr(self, name))
        for name in ('corrugations', 'layers'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise InvalidToolpath(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.resolution, int) or self.resolution < 2:
            raise InvalidToolpath(f"resolution must be an integer >= 2, got {self.resolution!r}")
        if not isgoodnum(self.connecting_distance) or not 0 <= self.connecting_distance < 0.5:
            raise InvalidToolpath(f"connecting_distance must lie in [0, 0.5), got {self.connecting_distance!r}")
        if self.infill not in INFILL_MODES:
            raise InvalidToolpath(f"infill must be one of {', '.join(INFILL_MODES)}, got {self.infill!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PanelConfig":
        _check_keys(cls, data, 'panel')
        try:
            return cls(**data)
        except TypeError as exc:
            raise InvalidToolpath(f"incomplete panel configuration: {exc}") from exc


def load_config(path: Path | str) -> Tuple[PanelConfig, PrintConfig]:
    """Read ``panel:`` and ``print:`` sections from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"configuration not found: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, Mapping):
        raise InvalidToolpath(f"{path}: expected a mapping at the top level")
    _reject_extra_sections(data, ('panel', 'print'), path)
    if 'panel' not in data:
        raise InvalidToolpath(f"{path}: missing panel section")
    return PanelConfig.from_mapping(data['panel']), PrintConfig.from_mapping(data.get('print'))


def _reject_extra_sections(data: Mapping[str, Any], allowed: Sequence[str], path: Path) -> None:
    extra = sorted(set(data) - set(allowed))
    if extra:
        raise InvalidToolpath(f"{path}: unknown section(s): {', '.join(extra)}")


__all__ = ['INFILL_MODES', 'PrintConfig', 'PanelConfig', 'load_config']

"""Corrugation distributions across a sandwich panel cross section.

A distribution is a list of :class:`Corrugation` entries, each naming the
skin (``TOP`` or ``BOTTOM``) an infill line touches and the fraction
``t`` along the cross section where it touches it.  Consecutive entries
alternate sides, so joining them draws the zig-zag of a corrugated core.
"""

from __future__ import annotations

from collections import namedtuple
from math import pi, sin
from typing import List, Sequence

from chisel.coords import isgoodnum
from chisel.errors import InvalidToolpath

TOP = 'top'
BOTTOM = 'bottom'

Corrugation = namedtuple('Corrugation', ['side', 't'])


def _side(k):
    return TOP if k % 2 == 0 else BOTTOM


def opposite(side: str) -> str:
    """The other skin"""
    if side == TOP:
        return BOTTOM
    if side == BOTTOM:
        return TOP
    raise InvalidToolpath('unknown corrugation side {!r}'.format(side))


def _clamp(t, lo=0.0, hi=1.0):
    return max(lo, min(hi, t))


def _check_count(n, name='corrugations'):
    if not isinstance(n, int) or isinstance(n, bool) or n < 1:
        raise InvalidToolpath('{} must be a positive integer, got {!r}'.format(name, n))


def uniform_corrugations(n: int) -> List[Corrugation]:
    """``2n+1`` evenly spaced entries over ``[0, 1]``, starting on top"""
    _check_count(n)
    steps = 2 * n
    return [Corrugation(_side(k), k / steps) for k in range(steps + 1)]


def cutoff_corrugations(start: float, end: float, n: int) -> List[Corrugation]:
    """``2n+1`` evenly spaced entries confined to ``[start, end]``

    The first and last entries sit exactly on ``start`` and ``end``.
    """
    _check_count(n)
    if not (isgoodnum(start) and isgoodnum(end)) or not 0 <= start < end <= 1:
        raise InvalidToolpath('corrugation interval must satisfy 0 <= start < end <= 1, got [{}, {}]'.format(
            start, end))
    steps = 2 * n
    step = (end - start) / steps
    result = [Corrugation(_side(k), _clamp(start + k * step, start, end)) for k in range(steps + 1)]
    result[0] = Corrugation(result[0].side, float(start))
    result[-1] = Corrugation(result[-1].side, float(end))
    return result


def sine_corrugations(amplitude: float, frequency: float, resolution: int) -> List[Corrugation]:
    """``resolution+1`` entries whose spacing follows a sine wave

    Entry ``k`` sits at ``x + amplitude/(2 pi f) * sin(2 pi f x)`` with
    ``x = k/resolution``.  With ``amplitude`` below 1 the positions stay
    strictly increasing, and ``0`` and ``1`` are kept.
    """
    _check_count(resolution, 'resolution')
    if not isgoodnum(amplitude) or not 0 <= amplitude < 1:
        raise InvalidToolpath('sine amplitude must lie in [0, 1), got {!r}'.format(amplitude))
    if not isgoodnum(frequency) or frequency <= 0:
        raise InvalidToolpath('sine frequency must be positive, got {!r}'.format(frequency))
    w = 2 * pi * frequency
    result = []
    for k in range(resolution + 1):
        x = k / resolution
        result.append(Corrugation(_side(k), _clamp(x + amplitude / w * sin(w * x))))
    result[0] = Corrugation(result[0].side, 0.0)
    result[-1] = Corrugation(result[-1].side, 1.0)
    return result


def modulate(distribution: Sequence[Corrugation], height_t: float,
             amplitude: float, frequency: float) -> List[Corrugation]:
    """Shift every entry by ``amplitude * sin(2 pi f height_t)``, clamped to ``[0, 1]``"""
    if not isgoodnum(height_t):
        raise InvalidToolpath('modulation height must be a number, got {!r}'.format(height_t))
    offset = amplitude * sin(2 * pi * frequency * height_t)
    return [Corrugation(c.side, _clamp(c.t + offset)) for c in distribution]


def check_distribution(distribution: Sequence[Corrugation]) -> None:
    """Raise ``InvalidToolpath`` unless ``t`` is non-decreasing in ``[0, 1]``
    and sides alternate."""
    if len(distribution) < 2:
        raise InvalidToolpath('a corrugation distribution needs at least 2 entries')
    for c in distribution:
        opposite(c.side)
        if not 0 <= c.t <= 1:
            raise InvalidToolpath('corrugation at t={} lies outside [0, 1]'.format(c.t))
    for a, b in zip(distribution, distribution[1:]):
        if b.t < a.t:
            raise InvalidToolpath('corrugation t decreases from {} to {}'.format(a.t, b.t))
        if a.side == b.side:
            raise InvalidToolpath('consecutive corrugations both touch the {} skin at t={}'.format(
                a.side, b.t))


__all__ = [
    'TOP',
    'BOTTOM',
    'Corrugation',
    'opposite',
    'uniform_corrugations',
    'cutoff_corrugations',
    'sine_corrugations',
    'modulate',
    'check_distribution',
]

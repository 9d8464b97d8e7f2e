## balanced range trees over disjoint parameter intervals
## Copyright (c) chisel contributors

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""balanced range trees for piecewise parameter lookup

A ``RangeTree`` is built once from a list of ``(lo, hi, fn)`` records,
where ``[lo, hi]`` are disjoint closed parameter intervals and ``fn`` is
an interpolation closure.  ``lookup(t, *args)`` finds the interval
holding ``t`` in O(log n) and returns ``fn(t, *args)``.

The tree is a median split of the records sorted by ``lo``: each node
holds the median record, records below it go left and records above
it go right.  Where two neighbouring intervals share an endpoint the
record found first on the way down wins, which is harmless for the
continuous piecewise functions chisel stores here.
"""

from chisel.errors import InvalidGeometry


class _Node:
    __slots__ = ('lo', 'hi', 'fn', 'left', 'right')

    def __init__(self, lo, hi, fn, left, right):
        self.lo = lo
        self.hi = hi
        self.fn = fn
        self.left = left
        self.right = right


def _build(records, start, end):
    """build a subtree over ``records[start:end]``"""
    if start >= end:
        return None
    mid = (start + end) // 2
    lo, hi, fn = records[mid]
    return _Node(lo, hi, fn,
                 _build(records, start, mid),
                 _build(records, mid + 1, end))


class RangeTree:
    """Static balanced search tree mapping parameter ranges to closures"""

    def __init__(self, records):
        records = sorted(records, key=lambda r: r[0])
        if not records:
            raise InvalidGeometry('range tree needs at least one range')
        for lo, hi, fn in records:
            if hi < lo:
                raise InvalidGeometry('bad range [{}, {}] in range tree'.format(lo, hi))
            if not callable(fn):
                raise InvalidGeometry('range tree entries need a callable interpolator')
        for (_, prev_hi, _), (lo, _, _) in zip(records, records[1:]):
            if lo < prev_hi:
                raise InvalidGeometry('overlapping ranges in range tree at {}'.format(lo))
        self._size = len(records)
        self.lo = records[0][0]
        self.hi = records[-1][1]
        self._root = _build(records, 0, len(records))

    def __len__(self):
        return self._size

    def depth(self):
        """depth of the tree, 1 for a single record"""
        def _depth(node):
            if node is None:
                return 0
            return 1 + max(_depth(node.left), _depth(node.right))
        return _depth(self._root)

    def find(self, t):
        """return ``(lo, hi, fn)`` of the range holding ``t``"""
        ## comparisons against NaN are all false, so reject it up front
        if not self.lo <= t <= self.hi:
            raise InvalidGeometry('parameter {} lies outside [{}, {}]'.format(
                t, self.lo, self.hi))
        node = self._root
        while node is not None:
            if t < node.lo:
                node = node.left
            elif t > node.hi:
                node = node.right
            else:
                return node.lo, node.hi, node.fn
        raise InvalidGeometry('parameter {} is not covered by any range in [{}, {}]'.format(
            t, self.lo, self.hi))

    def lookup(self, t, *args):
        """invoke the interpolator of the range holding ``t``"""
        _, _, fn = self.find(t)
        return fn(t, *args)


__all__ = ['RangeTree']

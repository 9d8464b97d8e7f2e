## matrix transformation operations for 3D homogeneous coordinates
## in chisel

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

from math import cos, sin, pi

import chisel.coords as coords
from chisel.errors import InvalidGeometry

## a matrix is represented as a list of four four-vectors, which are
## rows.  Vectors are plain lists, so M.mul(x) always means Mx with x
## a column vector.  Because control points of rational curves are
## stored pre-multiplied by their weight, an affine matrix applied to
## a weighted control point transforms the curve correctly without
## unweighting first.


class Matrix:
    """4x4 transformation matrix class for transforming homogeneous 3D coordinates"""

    def __init__(self, a=False, trans=False):
        self.m = [[1, 0, 0, 0],
                  [0, 1, 0, 0],
                  [0, 0, 1, 0],
                  [0, 0, 0, 1]]
        self.trans = False

        if isinstance(a, Matrix):
            for i in range(4):
                self.setrow(i, list(a.getrow(i)))

        elif isinstance(a, (tuple, list)):
            if len(a) == 4 and all(isinstance(r, (tuple, list)) and len(r) == 4 for r in a):
                for i in range(4):
                    for j in range(4):
                        self._store(i, j, a[i][j])
            elif len(a) == 16:
                for i in range(4):
                    for j in range(4):
                        self._store(i, j, a[i*4+j])
            else:
                raise InvalidGeometry('bad thing used in attempt to initialize matrix: {}'.format(a))
        elif a is not False:
            raise InvalidGeometry('bad thing used in attempt to initialize matrix: {}'.format(a))
        self.trans = trans

    def _store(self, i, j, x):
        if not coords.isgoodnum(x):
            raise InvalidGeometry('bad element in matrix initialization: {}'.format(x))
        self.m[i][j] = x

    def __repr__(self):
        return "Matrix({},{},{},{},{})".format(self.m[0], self.m[1],
                                               self.m[2], self.m[3], self.trans)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return all(self.getrow(i) == other.getrow(i) for i in range(4))

    #return value indexed by i,j
    def get(self, i, j):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise InvalidGeometry('bad index passed to get: {},{}'.format(i, j))
        if self.trans:
            return self.m[j][i]
        return self.m[i][j]

    def getrow(self, i):
        if i < 0 or i > 3:
            raise InvalidGeometry('bad row passed to getrow: {}'.format(i))
        if self.trans:
            return [self.m[0][i],
                    self.m[1][i],
                    self.m[2][i],
                    self.m[3][i]]
        return list(self.m[i])

    def getcol(self, j):
        if j < 0 or j > 3:
            raise InvalidGeometry('bad column passed to getcol: {}'.format(j))
        if not self.trans:
            return [self.m[0][j],
                    self.m[1][j],
                    self.m[2][j],
                    self.m[3][j]]
        return list(self.m[j])

    def setrow(self, i, x):
        if i < 0 or i > 3:
            raise InvalidGeometry('bad row index passed to setrow: {}'.format(i))
        for j in range(4):
            if self.trans:
                self._store(j, i, x[j])
            else:
                self._store(i, j, x[j])

    def transpose(self):
        """return a new, transposed matrix"""
        return Matrix(self, trans=True)

    def isaffine(self):
        """true if the homogeneous last row is ``(0, 0, 0, 1)``"""
        return self.getrow(3) == [0, 0, 0, 1]

    # matrix multiply.  If x is a matrix, compute MX.  If x is a
    # vector, compute Mx. If x is a scalar, compute xM.
    def mul(self, x):
        if isinstance(x, Matrix):
            result = Matrix()
            for i in range(4):
                row = self.getrow(i)
                result.setrow(i, [sum(row[k]*x.get(k, j) for k in range(4))
                                  for j in range(4)])
            return result
        elif isinstance(x, (list, tuple)) and len(x) == 4:
            return [sum(r*c for r, c in zip(self.getrow(i), x)) for i in range(4)]
        elif coords.isgoodnum(x):
            result = Matrix()
            for i in range(4):
                result.setrow(i, coords.scale4(self.getrow(i), x))
            return result

        raise InvalidGeometry('bad thing passed to mul(): {}'.format(x))


def compose(*matrices):
    """Compose transforms so that the first argument is applied first"""
    result = Matrix()
    for m in matrices:
        result = m.mul(result)
    return result


def apply(m, points):
    """Transform a sequence of points, returning new lists"""
    return [m.mul(p) for p in points]


# return the generalized 4x4 arbitrary axis rotation matrix; angle is
# in degrees and right-handed about the axis
def Rotation(axis, angle, inverse=False):
    m = coords.mag(axis)
    if m < coords.epsilon:
        raise InvalidGeometry('zero-length rotation axis not allowed')
    u = coords.scale3(axis, 1.0/m)

    if inverse:
        angle *= -1.0
    rad = (angle % 360.0)*pi/180.0

    ux = u[0]
    uy = u[1]
    uz = u[2]

    cang = cos(rad)
    cmin = 1.0-cang
    sang = sin(rad)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux*ux*cmin, ux*uy*cmin-uz*sang, ux*uz*cmin+uy*sang, 0],
         [uy*ux*cmin+uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang, 0],
         [uz*ux*cmin-uy*sang, uz*uy*cmin+ux*sang, cang+uz*uz*cmin, 0],
         [0, 0, 0, 1]]

    return Matrix(R)

def Translation(delta, inverse=False):
    if inverse:
        delta = [-c for c in delta]
    dx = delta[0]
    dy = delta[1]
    dz = delta[2] if len(delta) > 2 else 0
    T = [[1, 0, 0, dx],
         [0, 1, 0, dy],
         [0, 0, 1, dz],
         [0, 0, 0, 1]]
    return Matrix(T)

def Scale(x, y=False, z=False, inverse=False):
    if coords.isgoodnum(x):
        sx = x
        if coords.isgoodnum(y) and coords.isgoodnum(z):
            sy = y
            sz = z
        else:
            sy = sz = x
    elif isinstance(x, (list, tuple)) and len(x) >= 3:
        sx, sy, sz = x[0], x[1], x[2]
    else:
        raise InvalidGeometry('bad scaling values passed to Scale')

    if inverse:
        if 0 in (sx, sy, sz):
            raise InvalidGeometry('cannot invert a degenerate scale')
        sx = 1.0/sx
        sy = 1.0/sy
        sz = 1.0/sz

    S = [[sx, 0, 0, 0],
         [0, sy, 0, 0],
         [0, 0, sz, 0],
         [0, 0, 0, 1.0]]
    return Matrix(S)

# mirror about the plane through the origin normal to the given axis;
# a flip is its own inverse
def Flip(axis):
    idx = coords.resolve_axis(axis)
    diag = [1, 1, 1]
    diag[idx] = -1
    return Scale(diag[0], diag[1], diag[2])


__all__ = ['Matrix', 'compose', 'apply', 'Rotation', 'Translation', 'Scale', 'Flip']

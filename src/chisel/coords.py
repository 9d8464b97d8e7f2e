## homogeneous coordinate operations for chisel
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

"""homogeneous points and vectors for **chisel**

Points and vectors are lists of four numbers, ``[x, y, z, w]``.  For
ordinary geometry ``w`` is 1.  The ``w`` coordinate doubles as the
rational weight of a NURBS control point: a control point ``p`` with
weight ``w`` is stored pre-multiplied as ``[x*w, y*w, z*w, w]`` (see
``weighted()``), curve evaluation interpolates in that 4-space, and the
result is projected back to the ``w=1`` hyperplane once with
``homo()``.

Functions with a ``4`` suffix operate on all four components; the rest
treat their arguments as 3 vectors and return points with ``w=1``.
Nothing here mutates its arguments.
"""

from math import isfinite, sqrt

from chisel.errors import InvalidGeometry

## constants
epsilon = 0.000005

X_INDEX = 0
Y_INDEX = 1
Z_INDEX = 2

axis_index = {'x': X_INDEX,
              'y': Y_INDEX,
              'z': Z_INDEX}


## operations on scalars
## -----------------------

def isgoodnum(n):
    """ determine if an argument is actually a finite scalar number, and
    not boolean, NaN or infinite
    """
    if isinstance(n, bool):
        return False
    return isinstance(n, int) or (isinstance(n, float) and isfinite(n))

def close(a, b):
    """ are two scalars the same within epsilon
    """
    return abs(a-b) < epsilon

def resolve_axis(axis):
    """Turn ``'x'``, ``'y'``, ``'z'`` or an index 0-2 into a coordinate index"""
    if isinstance(axis, str) and axis.lower() in axis_index:
        return axis_index[axis.lower()]
    if isgoodnum(axis) and axis in (X_INDEX, Y_INDEX, Z_INDEX):
        return int(axis)
    raise InvalidGeometry('bad axis specification: {}'.format(axis))


## constructors
## ------------

def vect(a=False, b=False, c=False, d=False):
    """Convenience function for making a homogeneous coordinates 4 vector
from practically anything
    """
    r = [0, 0, 0, 1]
    if isgoodnum(a):
        r[0] = a
        if isgoodnum(b):
            r[1] = b
            if isgoodnum(c):
                r[2] = c
                if isgoodnum(d):
                    r[3] = d
    elif isinstance(a, (tuple, list)):
        for i in range(min(4, len(a))):
            x = a[i]
            if isgoodnum(x):
                r[i] = x
    return r

def point(x=False, y=False, z=False, w=False):
    """Make a point; like ``vect()``, but ``w`` must be non-zero."""
    p = vect(x, y, z, w)
    if p[3] == 0:
        raise InvalidGeometry('points must have a non-zero w coordinate: {}'.format(p))
    return p

def ispoint(x):
    """ is the argument a 4-list of numbers with non-zero w? """
    return isinstance(x, list) and len(x) == 4 and \
        all(isgoodnum(c) for c in x) and x[3] != 0

def weighted(p, w):
    """Return the homogeneous control point for ``p`` with rational weight ``w``

    The Euclidean position of the result is unchanged.
    """
    if w == 0:
        raise InvalidGeometry('rational weight must be non-zero')
    p = homo(p)
    return [p[0]*w, p[1]*w, p[2]*w, w]


## R^3 -> R^3 functions: ignore w component
## ------------------------------------------------
def add(a, b):
    """ 3 vector, `a + b`"""
    return [a[0]+b[0], a[1]+b[1], a[2]+b[2], 1.0]

def sub(a, b):
    """ 3 vector, `a - b`"""
    return [a[0]-b[0], a[1]-b[1], a[2]-b[2], 1.0]

def scale3(a, c):
    """ 3 vector, vector ``a`` times scalar ``c``, `a * c`"""
    return [a[0]*c, a[1]*c, a[2]*c, 1.0]

def cross(a, b):
    """Compute the cross product of a x b, assuming that both
    fall into the w=1 hyperplane
    """
    return [a[1]*b[2] - a[2]*b[1],
            a[2]*b[0] - a[0]*b[2],
            a[0]*b[1] - a[1]*b[0],
            1.0]

def lerp(a, b, t):
    """ 3 vector linear interpolation, `a + t(b - a)`"""
    return [a[0] + t*(b[0]-a[0]),
            a[1] + t*(b[1]-a[1]),
            a[2] + t*(b[2]-a[2]),
            1.0]

def unit(a):
    """ scale 3 vector ``a`` to unit length """
    m = mag(a)
    if m < epsilon:
        raise InvalidGeometry('cannot normalize zero-length vector {}'.format(a))
    return scale3(a, 1.0/m)


## R^4 -> R^4 functions: operate on w component
def add4(a, b):
    """ 4 vector `a + b`"""
    return [a[0]+b[0], a[1]+b[1], a[2]+b[2], a[3]+b[3]]

def sub4(a, b):
    """ 4 vector `a - b`"""
    return [a[0]-b[0], a[1]-b[1], a[2]-b[2], a[3]-b[3]]

def scale4(a, c):
    """ 4 vector ``a`` times scalar ``c``"""
    return [a[0]*c, a[1]*c, a[2]*c, a[3]*c]

def lerp4(a, b, t):
    """ 4 vector linear interpolation, used by de Casteljau and de Boor """
    s = 1.0 - t
    return [a[0]*s + b[0]*t,
            a[1]*s + b[1]*t,
            a[2]*s + b[2]*t,
            a[3]*s + b[3]*t]

def lincomb(points, coefficients):
    """ 4 vector linear combination, `sum(c_i * p_i)` """
    if len(points) != len(coefficients):
        raise InvalidGeometry('linear combination needs one coefficient per point')
    r = [0.0, 0.0, 0.0, 0.0]
    for p, c in zip(points, coefficients):
        r[0] += p[0]*c
        r[1] += p[1]*c
        r[2] += p[2]*c
        r[3] += p[3]*c
    return r

## Homogenize, or project back to the w=1 plane by scaling all values
## by w
def homo(a):
    """Homogenize, or project back to the w=1 plane by scaling all values by w"""
    if a[3] == 0:
        raise InvalidGeometry('cannot project vector with w=0: {}'.format(a))
    if a[3] == 1:
        return [a[0], a[1], a[2], 1]
    return [a[0]/a[3],
            a[1]/a[3],
            a[2]/a[3],
            1]


## R^3 -> R functions -- ignore w component
## ----------------------------------------
def dot(a, b):
    """ 3 vector ``a`` dot ``b`` """
    return a[0]*b[0]+a[1]*b[1]+a[2]*b[2]

def mag(a):
    """ compute the magnitude of 3 vector ``a``"""
    return sqrt(a[0]*a[0]+a[1]*a[1]+a[2]*a[2])

def dist(a, b):
    """ compute the euclidean distance between two 3 vector points ``a`` and ``b``"""
    return mag(sub(a, b))

def vclose(a, b):
    """ are two points the same to within epsilon, after projection """
    return close(dist(homo(a), homo(b)), 0)

def project(a, b):
    """ project 3 vector ``a`` onto 3 vector ``b`` """
    d = dot(b, b)
    if d < epsilon*epsilon:
        raise InvalidGeometry('cannot project onto zero-length vector')
    return scale3(b, dot(a, b)/d)


## misc
## ----

def to_xyz(p):
    """Return the projected XYZ components of a point as a tuple"""
    p = homo(p)
    return (float(p[0]), float(p[1]), float(p[2]))

def vstr(a, digits=3):
    """ short string form of a point, for error messages """
    if isinstance(a, list) and len(a) == 4:
        return '[{}]'.format(', '.join('{:.{}f}'.format(float(c), digits) for c in a))
    return str(a)


__all__ = [
    'epsilon', 'X_INDEX', 'Y_INDEX', 'Z_INDEX', 'axis_index',
    'isgoodnum', 'close', 'resolve_axis',
    'vect', 'point', 'ispoint', 'weighted',
    'add', 'sub', 'scale3', 'cross', 'lerp', 'unit',
    'add4', 'sub4', 'scale4', 'lerp4', 'lincomb', 'homo',
    'dot', 'mag', 'dist', 'vclose', 'project',
    'to_xyz', 'vstr',
]

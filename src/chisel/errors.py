"""Exception types raised by chisel.

All of them are ``ValueError`` subclasses: every failure in chisel is a
violated precondition on deterministic geometric or toolpath input, never a
transient condition worth retrying.
"""


class InvalidGeometry(ValueError):
    """A curve, patch or mesh contract was violated."""


class InvalidParameter(InvalidGeometry):
    """A curve or patch was evaluated outside of its ``[0, 1]`` domain."""


class InvalidToolpath(ValueError):
    """A layer slice, print configuration or G-code precondition failed."""


__all__ = ['InvalidGeometry', 'InvalidParameter', 'InvalidToolpath']

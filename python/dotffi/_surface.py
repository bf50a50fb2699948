"""Built-in native surface.

Every function here is written against cffi data (pointers, lengths, function
pointers) rather than Python objects, because each one is exported as a C
function pointer by ``_native.BuiltinLibrary``.  The only state is the
allocator's table of live text buffers.
"""

import math

import numpy as np

from ._logging import logger
from ._native import ffi
from .exceptions import ForeignBufferError, InvalidArgumentError

_INT_BITS = 8 * ffi.sizeof("int")
_INT_SPAN = 1 << _INT_BITS
_INT_MIN = -(1 << (_INT_BITS - 1))

# Monte Carlo draws per chunk (pairs of float64)
MONTE_CARLO_CHUNK = 1 << 20


def wrap_int(value):
    """Wrap a Python int to the range of C ``int`` (two's complement)."""
    return (value - _INT_MIN) % _INT_SPAN + _INT_MIN


def monte_carlo_pi(iterations, rng=None):
    """Estimate pi from ``iterations`` uniform draws in the unit square.

    Parameters
    ----------
    iterations : int
        Number of (x, y) pairs.  Must be positive.
    rng : numpy.random.Generator, int or None
        Anything with a ``random(size)`` method drawing from [0, 1), or a
        seed for a fresh ``default_rng``.

    Returns
    -------
    float
        ``4 * inside / iterations``.
    """
    iterations = int(iterations)
    if iterations <= 0:
        raise InvalidArgumentError(
            f"iterations must be positive, got {iterations}"
        )

    if not hasattr(rng, "random"):
        rng = np.random.default_rng(rng)
    inside = 0
    remaining = iterations
    while remaining > 0:
        n = min(remaining, MONTE_CARLO_CHUNK)
        xy = rng.random((n, 2))
        inside += int(np.count_nonzero(np.square(xy).sum(axis=1) <= 1.0))
        remaining -= n

    return 4.0 * inside / iterations


class NativeSurface:
    """The seven surface functions plus the allocator behind owned text."""

    def __init__(self, seed=None):
        self._seed = seed
        # address -> owning cdata; dropping the entry frees the memory
        self._live = {}

    def live_allocations(self):
        return len(self._live)

    # -- scalars / values --------------------------------------------------

    def add_numbers(self, a, b):
        return wrap_int(a + b)

    def create_point(self, x, y):
        p = ffi.new("Point*")
        p.x = x
        p.y = y
        p.distance = math.sqrt(float(x) * x + float(y) * y)
        return p[0]

    # -- owned text --------------------------------------------------------

    def reverse_string(self, text):
        if text == ffi.NULL:
            return ffi.NULL

        data = ffi.string(text)
        n = len(data)
        # zero-filled, so the terminator is already in place
        buf = ffi.new("char[]", n + 1)
        ffi.memmove(buf, data[::-1], n)

        ptr = ffi.cast("char*", buf)
        address = int(ffi.cast("uintptr_t", ptr))
        self._live[address] = buf
        logger.debug(
            "Allocated text buffer",
            extra={"scope": "alloc", "address": hex(address), "size": n + 1},
        )
        return ptr

    def free_string(self, ptr):
        if ptr == ffi.NULL:
            return

        address = int(ffi.cast("uintptr_t", ptr))
        buf = self._live.pop(address, None)
        if buf is None:
            raise ForeignBufferError(
                f"Buffer at {hex(address)} was not allocated by this surface "
                "or has already been released"
            )
        logger.debug(
            "Released text buffer",
            extra={"scope": "alloc", "address": hex(address), "size": len(buf)},
        )

    # -- borrowed arrays ---------------------------------------------------

    def process_array(self, arr, length):
        if length == 0:
            return
        view = np.frombuffer(ffi.buffer(arr, length * ffi.sizeof("int")), dtype=np.intc)
        # integer arrays wrap on overflow, like C int
        view *= 2

    def process_with_callback(self, arr, length, callback):
        if length == 0:
            return
        if callback == ffi.NULL:
            raise InvalidArgumentError("callback must not be NULL")
        for i in range(length):
            callback(arr[i])

    # -- randomized --------------------------------------------------------

    def compute_pi_monte_carlo(self, iterations):
        # a fresh generator per call keeps seeded results reproducible
        return monte_carlo_pi(iterations, np.random.default_rng(self._seed))

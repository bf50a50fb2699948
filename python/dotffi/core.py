"""Core native-surface operations."""

import collections
import operator

import numpy as np
from ._native import BuiltinLibrary, ffi, lib
from ._buffer import (
    OwnedText,
    as_length,
    numpy_to_int_ptr,
    sequence_to_intc,
    text_from_owned,
)
from ._surface import monte_carlo_pi
from .exceptions import InvalidArgumentError

_INT_INFO = np.iinfo(np.intc)

Point = collections.namedtuple("Point", ["x", "y", "distance"])
Point.__doc__ = "Point(x, y, distance): copy of the native ``Point`` struct."

# Mirrors the C layout of Point (field order and alignment)
POINT_DTYPE = np.dtype(
    [("x", np.intc), ("y", np.intc), ("distance", np.float64)],
    align=True,
)


def _check_int(name, value):
    try:
        value = operator.index(value)
    except TypeError:
        raise InvalidArgumentError(
            f"{name} must be an integer, got {type(value).__name__}"
        ) from None
    if not _INT_INFO.min <= value <= _INT_INFO.max:
        raise InvalidArgumentError(
            f"{name}={value} does not fit in a C int "
            f"[{_INT_INFO.min}, {_INT_INFO.max}]"
        )
    return value


def _encode_text(text):
    """Return (bytes, decode) for text crossing as a ``const char*``."""
    if isinstance(text, str):
        try:
            data = text.encode("latin-1")
        except UnicodeEncodeError:
            raise InvalidArgumentError(
                "str text must only contain Latin-1 characters; "
                "pass bytes to reverse other encodings byte-wise"
            ) from None
        decode = "latin-1"
    elif isinstance(text, (bytes, bytearray, memoryview)):
        data = bytes(text)
        decode = None
    else:
        raise InvalidArgumentError(
            f"text must be str, bytes or None, got {type(text).__name__}"
        )
    if b"\0" in data:
        raise InvalidArgumentError(
            "text must not contain NUL bytes (it crosses as a null-terminated string)"
        )
    return data, decode


def add(a, b):
    """Add two C ints.

    Parameters
    ----------
    a, b : int
        Operands; each must fit in a C ``int``.

    Returns
    -------
    int
        ``a + b``, wrapped to the C ``int`` range on overflow.
    """
    return int(lib.add_numbers(_check_int("a", a), _check_int("b", b)))


def reverse_owned(text):
    """Reverse text into a new native buffer and take ownership of it.

    Parameters
    ----------
    text : str, bytes or None
        Text to reverse.  ``str`` must be Latin-1 encodable.

    Returns
    -------
    OwnedText or None
        Guard over the native buffer, or None if ``text`` is None.  The
        caller must call ``release()`` (or use it as a context manager).
    """
    if text is None:
        ptr = lib.reverse_string(ffi.NULL)
        return None if ptr == ffi.NULL else OwnedText(ptr, lib.free_string)

    data, decode = _encode_text(text)
    ptr = lib.reverse_string(data)
    if ptr == ffi.NULL:
        raise RuntimeError("reverse_string returned NULL for non-NULL input")
    return OwnedText(ptr, lib.free_string, decode)


def reverse(text):
    """Reverse text through the native surface.

    The native buffer is copied and released before returning.

    Parameters
    ----------
    text : str, bytes or None
        Text to reverse.

    Returns
    -------
    str, bytes or None
        Reversed text of the same kind as the input; None for None.
        An empty input gives an empty result, never None.
    """
    if text is None:
        return text_from_owned(lib.reverse_string(ffi.NULL), lib.free_string)

    data, decode = _encode_text(text)
    out = text_from_owned(lib.reverse_string(data), lib.free_string)
    if out is None:
        raise RuntimeError("reverse_string returned NULL for non-NULL input")
    return out.decode(decode) if decode else out


def release(owned):
    """Hand an owned text buffer back to the surface.

    None is a no-op.  Releasing the same buffer twice raises
    ``BufferReleasedError``.
    """
    if owned is None:
        return
    if not isinstance(owned, OwnedText):
        raise InvalidArgumentError(
            f"Expected OwnedText or None, got {type(owned).__name__}"
        )
    owned.release()


def double_in_place(values, length=None):
    """Double the first ``length`` elements of ``values`` in place.

    Parameters
    ----------
    values : np.ndarray or mutable sequence of int
        A writable, C-contiguous 1-D ``np.intc`` array (borrowed by the
        native call directly), or a mutable sequence such as a list (staged
        through an ``intc`` array and written back).
    length : int or None
        Number of leading elements to double, in ``[0, len(values)]``.
        Default: all of them.  Elements at or past ``length`` are untouched.

    Notes
    -----
    Results that overflow a C ``int`` wrap around.
    """
    if isinstance(values, np.ndarray):
        ptr, _ = numpy_to_int_ptr(values)
        n = as_length(values, length)
        lib.process_array(ptr, n)
        return

    n = as_length(values, length)
    staged = sequence_to_intc([values[i] for i in range(n)])
    lib.process_array(ffi.cast("int*", staged.ctypes.data), n)
    for i in range(n):
        values[i] = int(staged[i])


def make_point(x, y):
    """Build a point and its distance from the origin.

    Parameters
    ----------
    x, y : int
        Coordinates; each must fit in a C ``int``.

    Returns
    -------
    Point
        ``Point(x, y, sqrt(x**2 + y**2))``.
    """
    p = lib.create_point(_check_int("x", x), _check_int("y", y))
    return Point(int(p.x), int(p.y), float(p.distance))


def for_each(values, callback, length=None):
    """Call ``callback(value)`` for each of the first ``length`` elements.

    Values are passed in index order through a C function pointer, and the
    native call returns only after every element was visited.

    If ``callback`` raises, it is not called again for the remaining
    elements and the first exception is re-raised once the native call
    has returned.

    Parameters
    ----------
    values : sequence of int or np.ndarray
        Elements to visit; each must fit in a C ``int``.
    callback : callable
        Called with one ``int``; its return value is ignored.
    length : int or None
        Number of leading elements to visit.  Default: all of them.
    """
    if not callable(callback):
        raise InvalidArgumentError(
            f"callback must be callable, got {type(callback).__name__}"
        )
    n = as_length(values, length)
    staged = sequence_to_intc(values[:n])

    errors = []

    def trampoline(value):
        if errors:
            return
        try:
            callback(value)
        except BaseException as exc:
            errors.append(exc)

    c_callback = ffi.callback("callback_fn", trampoline)
    lib.process_with_callback(ffi.cast("int*", staged.ctypes.data), n, c_callback)

    if errors:
        raise errors[0]


def estimate_pi(iterations, rng=None):
    """Estimate pi by Monte Carlo sampling of the unit square.

    Parameters
    ----------
    iterations : int
        Number of sample pairs.  Must be positive.
    rng : np.random.Generator, int or None
        Random source or seed.  If None, the loaded surface's
        ``compute_pi_monte_carlo`` is called.  If given, the draws come
        from this source, so results are reproducible.

    Returns
    -------
    float
        Estimate of pi; its error shrinks roughly as ``1/sqrt(iterations)``.
    """
    iterations = _check_int("iterations", iterations)
    if iterations <= 0:
        raise InvalidArgumentError(f"iterations must be positive, got {iterations}")

    if rng is not None:
        return monte_carlo_pi(iterations, rng)
    return float(lib.compute_pi_monte_carlo(iterations))


def live_allocations():
    """Number of text buffers handed out and not yet released.

    Returns None when an external library is loaded, since its allocator
    cannot be inspected.
    """
    if isinstance(lib, BuiltinLibrary):
        return lib.live_allocations()
    return None

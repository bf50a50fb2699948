"""Owned-text and int-array interop with the native surface."""

import operator
import warnings
import weakref

import numpy as np
from ._native import ffi
from .exceptions import BufferReleasedError, InvalidArgumentError


def text_from_owned(ptr, release):
    """Copy a surface-owned ``char*`` into Python bytes, then release it.

    The buffer is released even if the copy raises, so ownership never leaks
    back to the caller.  A NULL pointer gives None and releases nothing.
    """
    if ptr == ffi.NULL:
        return None
    try:
        return ffi.string(ptr)
    finally:
        release(ptr)


def _release_dropped(ptr, release):
    warnings.warn(
        "OwnedText was garbage-collected without release(); releasing its buffer",
        ResourceWarning,
    )
    release(ptr)


class OwnedText:
    """Ownership of one text buffer returned by ``reverse_string``.

    The guard is the only handle on the buffer.  ``read()`` copies the bytes
    out; ``release()`` hands the buffer back to the surface's ``free_string``
    and invalidates the guard, after which both raise ``BufferReleasedError``.
    Used as a context manager it releases on exit if not already released.
    A guard garbage-collected while still owning its buffer releases it and
    emits a ``ResourceWarning``.
    """

    __slots__ = ("_ptr", "_release", "_decode", "_finalizer", "__weakref__")

    def __init__(self, ptr, release, decode=None):
        self._ptr = ptr
        self._release = release
        self._decode = decode
        self._finalizer = weakref.finalize(self, _release_dropped, ptr, release)
        # the process releases everything at exit anyway
        self._finalizer.atexit = False

    @property
    def released(self):
        return self._ptr is None

    def _check(self, action):
        if self._ptr is None:
            raise BufferReleasedError(f"Cannot {action} a text buffer after release")

    def read(self):
        """Return a copy of the buffer contents (``str`` if the input was)."""
        self._check("read")
        data = ffi.string(self._ptr)
        return data.decode(self._decode) if self._decode else data

    def release(self):
        self._check("release")
        ptr, self._ptr = self._ptr, None
        self._finalizer.detach()
        self._release(ptr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._ptr is not None:
            self.release()
        return False

    def __repr__(self):
        if self._ptr is None:
            return "<OwnedText released>"
        return f"<OwnedText {self.read()!r}>"


def as_length(values, length):
    """Validate a caller-supplied length against the sequence it describes."""
    size = len(values)
    if length is None:
        return size
    length = int(length)
    if length < 0 or length > size:
        raise InvalidArgumentError(
            f"length must be in [0, {size}], got {length}"
        )
    return length


def numpy_to_int_ptr(arr):
    """Convert a writable, C-contiguous ``intc`` array to a cffi ``int*``.

    The array is borrowed, not copied, so in-place changes made through the
    pointer show up in ``arr``.  Returns (pointer, length).
    """
    if arr.ndim != 1 or arr.dtype != np.intc:
        raise InvalidArgumentError(
            f"Expected a 1-D {np.dtype(np.intc).name} array, "
            f"got {arr.ndim}-D {arr.dtype.name}"
        )
    if not arr.flags.c_contiguous:
        raise InvalidArgumentError("Array must be C-contiguous")
    if not arr.flags.writeable:
        raise InvalidArgumentError("Array must be writable")
    ptr = ffi.cast("int*", arr.ctypes.data)
    return ptr, len(arr)


def sequence_to_intc(values):
    """Copy an integer sequence into a fresh contiguous ``intc`` array.

    Values outside the range of C ``int`` raise ``InvalidArgumentError``.
    """
    info = np.iinfo(np.intc)
    if isinstance(values, np.ndarray):
        if values.dtype.kind not in "iu":
            raise InvalidArgumentError(
                f"Expected an integer array, got {values.dtype.name}"
            )
        wide = values
    else:
        try:
            wide = np.array([operator.index(v) for v in values], dtype=np.int64)
        except (OverflowError, TypeError) as exc:
            raise InvalidArgumentError(f"Expected a sequence of integers: {exc}") from None
    if wide.ndim != 1:
        raise InvalidArgumentError(f"Expected a 1-D sequence, got {wide.ndim}-D")
    if wide.size and (int(wide.min()) < info.min or int(wide.max()) > info.max):
        raise InvalidArgumentError(
            f"Values must fit in a C int [{info.min}, {info.max}]"
        )
    return np.ascontiguousarray(wide, dtype=np.intc)

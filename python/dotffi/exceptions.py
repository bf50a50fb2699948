"""
dotffi exceptions.

    DotffiError (base)
    ├── InvalidArgumentError - Argument cannot cross the boundary as given
    ├── OwnershipError - Owned-buffer pairing contract broken
    │   ├── BufferReleasedError - Buffer used or released after release
    │   └── ForeignBufferError - Released buffer not owned by the allocator
    └── LibraryNotFoundError - Configured native library is missing

Each subclass also inherits the builtin exception a caller would expect
(``ValueError`` for bad arguments, ``RuntimeError`` for state errors), so
``except ValueError`` works as well as ``except dotffi.DotffiError``.
"""

__all__ = [
    "DotffiError",
    "InvalidArgumentError",
    "OwnershipError",
    "BufferReleasedError",
    "ForeignBufferError",
    "LibraryNotFoundError",
]


class DotffiError(Exception):
    """Base class for all dotffi errors."""


class InvalidArgumentError(DotffiError, ValueError):
    """
    Invalid argument for a native call.

    Raised for values the C signature cannot represent or that break a
    documented precondition:
    - integers outside the range of C ``int``
    - lengths larger than the sequence they describe
    - non-positive Monte Carlo iteration counts
    - text with embedded NUL bytes or characters outside Latin-1
    """


class OwnershipError(DotffiError, RuntimeError):
    """The alloc/release pairing for an owned buffer was broken."""


class BufferReleasedError(OwnershipError):
    """An owned text buffer was read or released after its release."""


class ForeignBufferError(OwnershipError):
    """
    Release of a buffer the allocator does not own.

    Either the pointer never came from ``reverse_string`` or it has already
    been passed to ``free_string``.
    """


class LibraryNotFoundError(DotffiError, RuntimeError):
    """The external native library path does not exist."""

"""dotffi: a small C-ABI native surface and its Python API."""

__version__ = "0.1.0"

from .core import (
    POINT_DTYPE,
    Point,
    add,
    double_in_place,
    estimate_pi,
    for_each,
    live_allocations,
    make_point,
    release,
    reverse,
    reverse_owned,
)
from ._buffer import OwnedText
from ._logging import setup_logging
from .exceptions import (
    BufferReleasedError,
    DotffiError,
    ForeignBufferError,
    InvalidArgumentError,
    LibraryNotFoundError,
    OwnershipError,
)

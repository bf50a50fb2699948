"""Native surface declarations and loader (cffi)."""

import os
import cffi

from ._logging import logger
from .exceptions import InvalidArgumentError, LibraryNotFoundError

ffi = cffi.FFI()

# C declarations for the native surface
ffi.cdef("""
    /* Value aggregate returned by copy */
    typedef struct {
        int x;
        int y;
        double distance;
    } Point;

    typedef void (*callback_fn)(int);

    int add_numbers(int a, int b);
    char* reverse_string(const char* input);
    void process_array(int* arr, size_t len);
    Point create_point(int x, int y);
    void process_with_callback(int* arr, size_t len, callback_fn callback);
    void free_string(char* str);
    double compute_pi_monte_carlo(int iterations);

    /* Whole surface as one table, handed to C hosts */
    typedef struct {
        int (*add_numbers)(int a, int b);
        char* (*reverse_string)(const char* input);
        void (*process_array)(int* arr, size_t len);
        Point (*create_point)(int x, int y);
        void (*process_with_callback)(int* arr, size_t len, callback_fn callback);
        void (*free_string)(char* str);
        double (*compute_pi_monte_carlo)(int iterations);
    } dotffi_surface;
""")

EXPORTS = (
    "add_numbers",
    "reverse_string",
    "process_array",
    "create_point",
    "process_with_callback",
    "free_string",
    "compute_pi_monte_carlo",
)

# Value returned across the boundary when the Python side raised
_ERROR_RESULTS = {
    "compute_pi_monte_carlo": float("nan"),
}


def _report_boundary_error(exc_type, exc_value, tb):
    logger.error(
        "Native call rejected: %s",
        exc_value,
        exc_info=(exc_type, exc_value, tb),
        extra={"scope": "boundary"},
    )


class BuiltinLibrary:
    """The built-in surface exported as C function pointers.

    Each exported name is a callable ``<cdata 'T(*)(...)'>`` trampoline, so
    ``lib.add_numbers(1, 2)`` goes through the C calling convention exactly as
    a function from ``ffi.dlopen`` would.  ``table`` is a ``dotffi_surface*``
    holding the same pointers, for handing the whole surface to a C host.
    """

    def __init__(self, surface):
        self.surface = surface
        self.table = ffi.new("dotffi_surface*")
        for name in EXPORTS:
            fn = ffi.callback(
                ffi.typeof(getattr(self.table, name)),
                getattr(surface, name),
                error=_ERROR_RESULTS.get(name),
                onerror=_report_boundary_error,
            )
            setattr(self.table, name, fn)
            # Keeps the trampoline alive as long as the library
            setattr(self, name, fn)

    def live_allocations(self):
        return self.surface.live_allocations()

    def __repr__(self):
        return f"<BuiltinLibrary live_allocations={self.live_allocations()}>"


def _seed_from_env():
    raw = os.environ.get("DOTFFI_SEED")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgumentError(
            f"DOTFFI_SEED must be an integer, got {raw!r}"
        ) from None


def load(path=None, seed=None):
    """Load a backend for the native surface.

    Parameters
    ----------
    path : str or None
        Shared library exporting the seven surface symbols.  If None, falls
        back to ``DOTFFI_LIBRARY``; if that is unset too, the built-in surface
        is used.
    seed : int or None
        Seed for the built-in surface's Monte Carlo draws.  If None, falls
        back to ``DOTFFI_SEED``.  Ignored for external libraries.

    Returns
    -------
    BuiltinLibrary or cffi library
        Object exposing the surface functions as attributes.
    """
    if path is None:
        path = os.environ.get("DOTFFI_LIBRARY") or None

    if path is not None:
        if not os.path.exists(path):
            raise LibraryNotFoundError(
                f"Native library not found at {path}. "
                "Unset DOTFFI_LIBRARY to use the built-in surface."
            )
        logger.info("Loading external native library", extra={"scope": "load", "path": path})
        return ffi.dlopen(path)

    from ._surface import NativeSurface

    if seed is None:
        seed = _seed_from_env()
    logger.debug("Using built-in native surface", extra={"scope": "load", "seed": seed})
    return BuiltinLibrary(NativeSurface(seed=seed))


lib = load()

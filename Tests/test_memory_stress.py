"""Allocation stress tests for owned text buffers.

Verifies that every buffer handed out by reverse_string is released exactly
once along all public paths, and that repeated cycles do not leak.
"""

import tracemalloc

import pytest

import dotffi
from dotffi._native import lib


def test_repeated_reverse_no_leak():
    """Run reverse 5000x and verify the allocator ends where it started and
    Python-side memory growth stays small."""
    text = "the quick brown fox jumps over the lazy dog"

    # Warm up
    dotffi.reverse(text)
    before = dotffi.live_allocations()

    tracemalloc.start()
    snapshot_before = tracemalloc.take_snapshot()

    for _ in range(5000):
        assert dotffi.reverse(text) == text[::-1]

    snapshot_after = tracemalloc.take_snapshot()
    tracemalloc.stop()

    assert dotffi.live_allocations() == before

    stats = snapshot_after.compare_to(snapshot_before, "lineno")
    total_growth_mb = sum(s.size_diff for s in stats if s.size_diff > 0) / (1024 * 1024)
    assert total_growth_mb < 10.0, (
        f"Python memory grew by {total_growth_mb:.1f} MB over 5000 reverse calls"
    )


def test_many_outstanding_buffers():
    """Hold many owned buffers at once, then release them in reverse order."""
    before = dotffi.live_allocations()
    owned = [dotffi.reverse_owned(f"item-{i}") for i in range(1000)]
    assert dotffi.live_allocations() == before + 1000

    for i in reversed(range(1000)):
        assert owned[i].read() == f"item-{i}"[::-1]
        dotffi.release(owned[i])

    assert dotffi.live_allocations() == before


def test_raw_alloc_free_cycle():
    before = lib.live_allocations()
    for i in range(2000):
        ptr = lib.reverse_string(str(i).encode())
        lib.free_string(ptr)
    assert lib.live_allocations() == before


def test_exception_inside_context_still_releases():
    before = dotffi.live_allocations()
    with pytest.raises(ZeroDivisionError):
        with dotffi.reverse_owned("oops"):
            1 / 0
    assert dotffi.live_allocations() == before


def test_large_array_doubling():
    import numpy as np

    values = np.arange(2_000_000, dtype=np.intc)
    dotffi.double_in_place(values)
    assert values[-1] == 2 * 1_999_999
    assert values[0] == 0


def test_dropped_guard_releases_with_warning():
    """A guard collected without release() returns its buffer and warns."""
    import gc

    before = dotffi.live_allocations()
    with pytest.warns(ResourceWarning, match="without release"):
        owned = dotffi.reverse_owned("dropped")
        del owned
        gc.collect()
    assert dotffi.live_allocations() == before


def test_released_guard_does_not_warn(recwarn):
    import gc

    owned = dotffi.reverse_owned("kept")
    owned.release()
    del owned
    gc.collect()
    assert not [w for w in recwarn if issubclass(w.category, ResourceWarning)]

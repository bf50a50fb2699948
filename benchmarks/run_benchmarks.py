#!/usr/bin/env python3
"""dotffi benchmark suite: per-element cost of the checked API vs raw calls.

Each operation is swept over ``SIZES``.  The report gives the best time per
element at each size, so fixed call overhead shows up as a cost that shrinks
with size while per-element work stays flat.
"""

import argparse
import json
import os
import platform
import time
from datetime import datetime, timezone
from pathlib import Path

import numpy as np

# Workload sizes: text length, array length, Monte Carlo iterations
SIZES = [1_000, 100_000, 1_000_000]

# Python callbacks are slow enough that larger sizes add nothing
CALLBACK_LIMIT = 100_000


def _api_operations(df):
    return {
        "reverse":         lambda n: df.reverse("x" * n),
        "double_in_place": lambda n: df.double_in_place(np.ones(n, dtype=np.intc)),
        "for_each":        lambda n: df.for_each(np.ones(n, dtype=np.intc), lambda v: None),
        "estimate_pi":     lambda n: df.estimate_pi(n),
    }


def _raw_operations(ffi, lib):
    noop = ffi.callback("callback_fn", lambda v: None)

    def reverse(n):
        lib.free_string(lib.reverse_string(b"x" * n))

    def double(n):
        arr = np.ones(n, dtype=np.intc)
        lib.process_array(ffi.cast("int*", arr.ctypes.data), n)

    def for_each(n):
        arr = np.ones(n, dtype=np.intc)
        lib.process_with_callback(ffi.cast("int*", arr.ctypes.data), n, noop)

    return {
        "reverse":         reverse,
        "double_in_place": double,
        "for_each":        for_each,
        "estimate_pi":     lambda n: lib.compute_pi_monte_carlo(n),
    }


def _sizes_for(name):
    if name == "for_each":
        return [n for n in SIZES if n <= CALLBACK_LIMIT]
    return SIZES


def ns_per_element(fn, n, repeat):
    """Best of ``repeat`` runs of ``fn(n)``, in nanoseconds per element."""
    fn(n)
    best = min(_elapsed(fn, n) for _ in range(repeat))
    return round(best * 1e9 / n, 2)


def _elapsed(fn, n):
    start = time.perf_counter()
    fn(n)
    return time.perf_counter() - start


def sweep(api_ops, raw_ops, repeat):
    """Time every operation at every size on both paths.

    Returns ``{operation: {size: {"api": ns, "raw": ns}}}``.
    """
    report = {}
    for name, api_fn in api_ops.items():
        rows = report.setdefault(name, {})
        for n in _sizes_for(name):
            print(f"  {name:16s} | {n:>9d} ...", end="", flush=True)
            rows[n] = {
                "api": ns_per_element(api_fn, n, repeat),
                "raw": ns_per_element(raw_ops[name], n, repeat),
            }
            print(f"  {rows[n]['api']:9.2f} / {rows[n]['raw']:9.2f} ns/elem")
    return report


def print_summary(report):
    print()
    print("dotffi per-element cost (ns)")
    print("============================")
    print(f"{'Operation':16s} | {'Size':>9s} | {'API':>9s} | {'Raw':>9s} | {'Overhead':>8s}")
    print(f"{'-'*16}-+-{'-'*9}-+-{'-'*9}-+-{'-'*9}-+-{'-'*8}")
    for name, rows in report.items():
        for n, row in rows.items():
            ratio = row["api"] / row["raw"] if row["raw"] else float("nan")
            print(f"{name:16s} | {n:>9d} | {row['api']:9.2f} | {row['raw']:9.2f} | {ratio:7.2f}x")
    print()


def main():
    parser = argparse.ArgumentParser(description="dotffi benchmark suite")
    parser.add_argument(
        "--repeat", type=int, default=5,
        help="Timed runs per operation and size; the best is kept (default: 5)",
    )
    args = parser.parse_args()

    import dotffi
    from dotffi._native import ffi, lib

    backend = type(lib).__name__
    print(f"dotffi {dotffi.__version__} ({backend}), best of {args.repeat}:")
    report = sweep(_api_operations(dotffi), _raw_operations(ffi, lib), args.repeat)

    out = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "machine": platform.machine(),
        "cpu_count": os.cpu_count(),
        "python_version": platform.python_version(),
        "dotffi_version": dotffi.__version__,
        "backend": backend,
        "ns_per_element": {
            name: {str(n): row for n, row in rows.items()}
            for name, rows in report.items()
        },
    }

    results_dir = Path(__file__).resolve().parent / "results"
    results_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    out_path = results_dir / f"bench_{ts}.json"
    with open(out_path, "w") as f:
        json.dump(out, f, indent=2)
    print(f"\nResults written to {out_path}")

    print_summary(report)


if __name__ == "__main__":
    main()

"""Interval lookup kernels for break sequences.

Both kernels return, for each point, the index of the interval of the break
sequence the point belongs to, clamping points outside the sequence to the
first or last non-degenerate interval.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

F = TypeVar("F", bound=Callable[..., Any])

if TYPE_CHECKING:
    # During type-checking, make the decorator a no-op that preserves types.
    def nb_jit(*args: object, **kwargs: object) -> Callable[[F], F]:
        def decorator(func: F) -> F:
            return func

        return decorator
else:
    # At runtime, use the real Numba decorator.
    nb_jit = nb.jit  # type: ignore[attr-defined]


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _lookup_sorted_impl(
    breaks: npt.NDArray[np.float64],
    pts: npt.NDArray[np.float64],
) -> npt.NDArray[np.int64]:
    """Find interval indices by binary search in a non-decreasing sequence.

    For each point returns the last index ``i`` with ``breaks[i] <= x``.
    Points below ``breaks[0]`` get the index of the last repeat of the first
    break; points at or above ``breaks[-1]`` get the index of the last break
    strictly smaller than ``breaks[-1]``.

    Args:
        breaks (npt.NDArray[np.float64]): Non-decreasing break sequence with at
            least 2 entries.
        pts (npt.NDArray[np.float64]): Points (1D array) to locate.

    Returns:
        npt.NDArray[np.int64]: Interval index for each point.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    n = breaks.size
    first = breaks[0]
    last = breaks[n - 1]

    lowest = np.int64(np.sum(breaks == first) - 1)
    highest = np.int64(n - np.sum(breaks == last) - 1)
    if highest < lowest:
        highest = lowest

    ind = (np.searchsorted(breaks, pts, side="right") - 1).astype(np.int64)
    for i in range(pts.size):
        if pts[i] >= last:
            ind[i] = highest
        elif ind[i] < lowest:
            ind[i] = lowest
        elif ind[i] > highest:
            ind[i] = highest
    return ind


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _lookup_evenly_spaced_impl(
    breaks: npt.NDArray[np.float64],
    pts: npt.NDArray[np.float64],
) -> npt.NDArray[np.int64]:
    """Find interval indices arithmetically in an evenly spaced sequence.

    The index is the scaled coordinate rounded down and clamped to
    ``[0, n-2]``. A single correction step against the stored breaks absorbs
    floating-point rounding, so the result matches `_lookup_sorted_impl`.

    Args:
        breaks (npt.NDArray[np.float64]): Strictly increasing, evenly spaced
            break sequence with at least 2 entries.
        pts (npt.NDArray[np.float64]): Points (1D array) to locate.

    Returns:
        npt.NDArray[np.int64]: Interval index for each point.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    n = breaks.size
    last_interval = n - 2
    a = breaks[0]
    scale = (n - 1) / (breaks[n - 1] - a)

    ind = np.empty(pts.size, dtype=np.int64)
    for i in range(pts.size):
        x = pts[i]
        v = (x - a) * scale
        if not v >= 0.0:
            j = 0
        elif v >= last_interval:
            j = last_interval
        else:
            j = int(v)

        if j < last_interval and x >= breaks[j + 1]:
            j += 1
        elif j > 0 and x < breaks[j]:
            j -= 1
        ind[i] = j
    return ind


def _warmup_numba_functions() -> None:
    """Precompile the lookup kernels with float64 signatures."""
    breaks_dummy = np.array([0.0, 0.5, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.25, 1.0], dtype=np.float64)

    _lookup_sorted_impl(breaks_dummy, pts_dummy)
    _lookup_evenly_spaced_impl(breaks_dummy, pts_dummy)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_lookup_evenly_spaced_impl",
    "_lookup_sorted_impl",
]

"""Validated break sequences and interval lookup."""

import functools

import numpy as np
from numpy import typing as npt

from ._basis_utils import _normalize_points_1D
from ._breaks_impl import _lookup_evenly_spaced_impl, _lookup_sorted_impl
from .errors import InvalidBreaks
from .tolerance import get_evenly_spaced_tolerance


def lookup(breaks: npt.ArrayLike, x: npt.ArrayLike) -> npt.NDArray[np.int_]:
    """Locate the interval of a non-decreasing sequence containing each point.

    Returns, for each point, the index ``i`` such that
    ``breaks[i] <= x < breaks[i+1]``. Points equal to (or beyond) the last
    break are assigned the last interval of non-zero length, so that
    right-boundary points stay inside a valid interval. Points below the first
    break are assigned the first interval of non-zero length.

    Args:
        breaks (npt.ArrayLike): Non-decreasing sequence with at least 2 entries.
            Repeated values are allowed.
        x (npt.ArrayLike): Query points (scalar, vector or column vector).

    Returns:
        npt.NDArray[np.int_]: 1D array of interval indices, one per point.

    Raises:
        InvalidBreaks: If `breaks` is not a non-decreasing 1D sequence with at
            least 2 entries.
        ShapeError: If `x` has rank greater than 1.

    Example:
        >>> lookup([0.0, 1.0, 2.0, 3.0], [-1.0, 0.0, 1.5, 3.0])
        array([0, 0, 1, 2])
        >>> lookup([0.0, 0.0, 0.0, 1.0, 2.0, 2.0, 2.0], [0.0, 2.0])
        array([2, 3])
    """
    table = np.ascontiguousarray(breaks, dtype=np.float64)
    if table.ndim != 1 or table.size < 2:  # noqa: PLR2004
        raise InvalidBreaks("breaks must be a 1D sequence with at least 2 elements")
    if np.any(np.diff(table) < 0.0):
        raise InvalidBreaks("breaks must be non-decreasing")

    pts = _normalize_points_1D(x)
    return _lookup_sorted_impl(table, pts).astype(np.int_)


class BreakSequence:
    """A validated, sorted sequence of breakpoints.

    When the breakpoints are evenly spaced, `evenly_spaced_count` is the number
    of breakpoints and the stored values are exactly
    ``numpy.linspace(first, last, evenly_spaced_count)``; interval lookup then
    takes constant time per point.

    Attributes:
        _breaks (npt.NDArray[np.float64]): The breakpoints.
        _evenly_spaced_count (int): Number of breakpoints if evenly spaced, 0 otherwise.
    """

    _breaks: npt.NDArray[np.float64]
    _evenly_spaced_count: int

    def __init__(
        self,
        breaks: npt.ArrayLike,
        evenly_spaced_count: int = 0,
        strictly_increasing: bool = False,
    ) -> None:
        """Initialize a break sequence.

        Args:
            breaks (npt.ArrayLike): Breakpoints. Must be sorted, contain at least
                2 entries, and span a non-empty interval.
            evenly_spaced_count (int): If positive, the breakpoints are claimed
                to be evenly spaced. With exactly two breakpoints, they are
                expanded to that many evenly spaced points; with more, the claim
                is verified and the count becomes the number of breakpoints.
                Defaults to 0 (irregular).
            strictly_increasing (bool): Whether repeated breakpoints are
                rejected. Defaults to False.

        Raises:
            InvalidBreaks: If any of the conditions above is violated.
        """
        values = BreakSequence._validate_input(breaks, evenly_spaced_count, strictly_increasing)

        if values.size == 2:  # noqa: PLR2004
            count = evenly_spaced_count if evenly_spaced_count > 0 else 2
            values = np.linspace(values[0], values[1], count)
        elif evenly_spaced_count > 0:
            count = values.size
            values = np.linspace(values[0], values[-1], count)
        else:
            count = 0

        values.flags.writeable = False
        self._breaks = values
        self._evenly_spaced_count = int(count)

    @staticmethod
    def _validate_input(
        breaks: npt.ArrayLike,
        evenly_spaced_count: int,
        strictly_increasing: bool,
    ) -> npt.NDArray[np.float64]:
        """Validate the breakpoints and return them as a float64 array.

        Args:
            breaks (npt.ArrayLike): Breakpoints to validate.
            evenly_spaced_count (int): Claimed number of evenly spaced breakpoints.
            strictly_increasing (bool): Whether repeated breakpoints are rejected.

        Returns:
            npt.NDArray[np.float64]: A fresh copy of the breakpoints.

        Raises:
            InvalidBreaks: If the breakpoints are invalid.
        """
        values = np.array(breaks, dtype=np.float64)

        if values.ndim != 1:
            raise InvalidBreaks("breaks must be a 1D sequence")
        if values.size < 2:  # noqa: PLR2004
            raise InvalidBreaks("breaks must have at least 2 elements")
        if not np.all(np.isfinite(values)):
            raise InvalidBreaks("breaks must be finite")

        gaps = np.diff(values)
        if strictly_increasing and np.any(gaps <= 0.0):
            raise InvalidBreaks("breaks must be strictly increasing")
        if np.any(gaps < 0.0):
            raise InvalidBreaks("breaks must be non-decreasing")
        if values[-1] <= values[0]:
            raise InvalidBreaks("breaks must span an interval of non-zero length")

        if evenly_spaced_count < 0 or evenly_spaced_count == 1:
            raise InvalidBreaks("evenly_spaced_count must be 0 or at least 2")

        if evenly_spaced_count > 0 and values.size > 2:  # noqa: PLR2004
            tol = get_evenly_spaced_tolerance(values)
            if np.any(np.abs(np.diff(gaps)) > tol):
                raise InvalidBreaks("breaks are not evenly spaced")

        return values

    @property
    def breaks(self) -> npt.NDArray[np.float64]:
        """Get the (read-only) breakpoints.

        Returns:
            npt.NDArray[np.float64]: The breakpoints.
        """
        return self._breaks

    @property
    def evenly_spaced_count(self) -> int:
        """Get the number of evenly spaced breakpoints, or 0 if irregular.

        Returns:
            int: The count.
        """
        return self._evenly_spaced_count

    @property
    def is_evenly_spaced(self) -> bool:
        """Whether constant-time interval lookup is available."""
        return self._evenly_spaced_count > 0

    @functools.cached_property
    def domain(self) -> tuple[float, float]:
        """Get the first and last breakpoints.

        Returns:
            tuple[float, float]: The interval spanned by the breakpoints.
        """
        return float(self._breaks[0]), float(self._breaks[-1])

    def __len__(self) -> int:
        return int(self._breaks.size)

    def __repr__(self) -> str:
        a, b = self.domain
        kind = "evenly spaced" if self.is_evenly_spaced else "irregular"
        return f"BreakSequence({len(self)} {kind} breaks on [{a}, {b}])"

    def lookup(self, x: npt.ArrayLike) -> npt.NDArray[np.int_]:
        """Locate the interval containing each point.

        Same contract as :func:`lookup`. Evenly spaced sequences use
        constant-time arithmetic instead of binary search.

        Args:
            x (npt.ArrayLike): Query points (scalar, vector or column vector).

        Returns:
            npt.NDArray[np.int_]: 1D array of interval indices, one per point.

        Raises:
            ShapeError: If `x` has rank greater than 1.
        """
        pts = _normalize_points_1D(x)
        if self.is_evenly_spaced:
            return _lookup_evenly_spaced_impl(self._breaks, pts).astype(np.int_)
        return _lookup_sorted_impl(self._breaks, pts).astype(np.int_)


__all__ = ["BreakSequence", "lookup"]

"""Tests for break sequences and interval lookup."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import pytest

from basismatrices.breaks import BreakSequence, lookup
from basismatrices.errors import InvalidBreaks, ShapeError


class TestLookup:
    """Test the module-level lookup on arbitrary non-decreasing sequences."""

    def test_distinct_breaks(self) -> None:
        """Test interior points, the left boundary and the right boundary."""
        ind = lookup([0.0, 1.0, 2.0, 3.0], [0.0, 0.5, 1.0, 2.9, 3.0])
        nptest.assert_array_equal(ind, [0, 0, 1, 2, 2])

    def test_out_of_range_clamps(self) -> None:
        """Test that points outside the breaks go to the first/last interval."""
        ind = lookup([0.0, 1.0, 2.0, 3.0], [-10.0, 10.0])
        nptest.assert_array_equal(ind, [0, 2])

    def test_repeated_boundaries(self) -> None:
        """Test that repeated end values select the non-degenerate intervals."""
        breaks = [0.0, 0.0, 0.0, 1.0, 2.0, 2.0, 2.0]
        ind = lookup(breaks, [-1.0, 0.0, 0.5, 1.0, 2.0, 3.0])
        nptest.assert_array_equal(ind, [2, 2, 2, 3, 3, 3])

    def test_repeated_interior_break(self) -> None:
        """Test that an interior repeated break maps to its last copy."""
        ind = lookup([0.0, 1.0, 1.0, 2.0], [0.5, 1.0, 1.5])
        nptest.assert_array_equal(ind, [0, 2, 2])

    def test_scalar_and_column_points(self) -> None:
        """Test that scalars and column vectors are accepted."""
        nptest.assert_array_equal(lookup([0.0, 1.0, 2.0], 1.5), [1])
        nptest.assert_array_equal(lookup([0.0, 1.0, 2.0], [[0.5], [1.5]]), [0, 1])

    def test_rank_2_points_raise(self) -> None:
        """Test that matrices of points are rejected."""
        with pytest.raises(ShapeError):
            lookup([0.0, 1.0, 2.0], np.zeros((2, 2)))

    @pytest.mark.parametrize("breaks", [[1.0], [2.0, 1.0], [[0.0, 1.0]]])
    def test_invalid_breaks_raise(self, breaks: list[float]) -> None:
        """Test that invalid sequences are rejected."""
        with pytest.raises(InvalidBreaks):
            lookup(breaks, [0.5])

    def test_interval_contract_random(self) -> None:
        """Test breaks[i] <= x < breaks[i+1] (or i is the last interval)."""
        rng = np.random.default_rng(1234)
        breaks = np.sort(rng.uniform(-3.0, 5.0, size=17))
        x = np.concatenate([rng.uniform(breaks[0], breaks[-1], size=200), breaks])
        ind = lookup(breaks, x)

        assert np.all(breaks[ind] <= x)
        assert np.all((x < breaks[ind + 1]) | (ind == breaks.size - 2))


class TestBreakSequenceInit:
    """Test BreakSequence construction and validation."""

    def test_irregular(self) -> None:
        """Test an irregular sequence is stored as given."""
        seq = BreakSequence([0.0, 0.3, 1.0])
        nptest.assert_array_equal(seq.breaks, [0.0, 0.3, 1.0])
        assert seq.evenly_spaced_count == 0
        assert not seq.is_evenly_spaced
        assert len(seq) == 3  # noqa: PLR2004

    def test_two_points_expand(self) -> None:
        """Test that two points with a count expand to a linspace."""
        seq = BreakSequence([0.0, 1.0], 5)
        nptest.assert_array_equal(seq.breaks, np.linspace(0.0, 1.0, 5))
        assert seq.evenly_spaced_count == 5  # noqa: PLR2004

    def test_two_points_are_evenly_spaced(self) -> None:
        """Test that two points without a count are trivially evenly spaced."""
        seq = BreakSequence([-1.0, 2.0])
        assert seq.evenly_spaced_count == 2  # noqa: PLR2004
        assert seq.domain == (-1.0, 2.0)

    def test_evenly_spaced_snaps_to_linspace(self) -> None:
        """Test that claimed even spacing stores the exact linspace."""
        breaks = np.arange(11) * 0.1
        seq = BreakSequence(breaks, 11)
        nptest.assert_array_equal(seq.breaks, np.linspace(0.0, 1.0, 11))

    def test_count_follows_number_of_breaks(self) -> None:
        """Test that the count is the number of breaks when more than two are given."""
        seq = BreakSequence([0.0, 0.5, 1.0, 1.5], 2)
        assert seq.evenly_spaced_count == 4  # noqa: PLR2004

    def test_not_evenly_spaced_raises(self) -> None:
        """Test that a false even spacing claim is rejected."""
        with pytest.raises(InvalidBreaks, match="not evenly spaced"):
            BreakSequence([0.0, 0.2, 0.5, 1.0], 4)

    @pytest.mark.parametrize(
        ("breaks", "match"),
        [
            ([1.0], "at least 2"),
            ([[0.0, 1.0]], "1D"),
            ([0.0, 2.0, 1.0], "non-decreasing"),
            ([1.0, 1.0], "non-zero length"),
            ([0.0, np.nan, 1.0], "finite"),
            ([0.0, np.inf], "finite"),
        ],
    )
    def test_invalid_breaks(self, breaks: list[float], match: str) -> None:
        """Test the validation of the breakpoints."""
        with pytest.raises(InvalidBreaks, match=match):
            BreakSequence(breaks)

    @pytest.mark.parametrize("count", [-1, 1])
    def test_invalid_count(self, count: int) -> None:
        """Test that a count of 1 or negative is rejected."""
        with pytest.raises(InvalidBreaks, match="evenly_spaced_count"):
            BreakSequence([0.0, 1.0], count)

    def test_strictly_increasing(self) -> None:
        """Test that repeated breaks are only rejected when requested."""
        BreakSequence([0.0, 1.0, 1.0, 2.0])
        with pytest.raises(InvalidBreaks, match="strictly increasing"):
            BreakSequence([0.0, 1.0, 1.0, 2.0], strictly_increasing=True)

    def test_breaks_are_read_only(self) -> None:
        """Test that the stored breaks cannot be modified."""
        source = np.array([0.0, 0.5, 2.0])
        seq = BreakSequence(source)
        source[0] = -1.0
        assert seq.breaks[0] == 0.0
        with pytest.raises(ValueError, match="read-only"):
            seq.breaks[0] = 1.0

    def test_repr(self) -> None:
        """Test the string representation."""
        expected = "BreakSequence(3 evenly spaced breaks on [0.0, 1.0])"
        assert repr(BreakSequence([0.0, 1.0], 3)) == expected


class TestBreakSequenceLookup:
    """Test the lookup of a BreakSequence, in particular its evenly spaced fast path."""

    @pytest.mark.parametrize(
        ("a", "b", "n"), [(0.0, 1.0, 11), (-3.7, 12.1, 37), (1e3, 1e3 + 0.3, 4)]
    )
    def test_fast_path_matches_binary_search(self, a: float, b: float, n: int) -> None:
        """Test the arithmetic lookup against the binary search."""
        seq = BreakSequence([a, b], n)
        rng = np.random.default_rng(7)
        span = b - a
        x = np.concatenate(
            [
                seq.breaks,
                np.nextafter(seq.breaks, -np.inf),
                np.nextafter(seq.breaks, np.inf),
                rng.uniform(a - 0.1 * span, b + 0.1 * span, size=500),
            ]
        )
        nptest.assert_array_equal(seq.lookup(x), lookup(seq.breaks, x))

    def test_irregular_lookup(self) -> None:
        """Test the binary search path."""
        seq = BreakSequence([0.0, 0.1, 0.5, 2.0])
        nptest.assert_array_equal(seq.lookup([0.05, 0.1, 1.0, 2.0, 5.0]), [0, 1, 2, 2, 2])

    def test_right_boundary_in_last_interval(self) -> None:
        """Test that the right end maps to the last interval."""
        seq = BreakSequence([0.0, 1.0], 6)
        nptest.assert_array_equal(seq.lookup(1.0), [4])

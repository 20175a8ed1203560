"""Piecewise-linear basis evaluation and derivative/integral operators."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt
import scipy.sparse as sps

from .banded import BandedSparse
from .breaks import BreakSequence
from .errors import InvalidOrder


def _check_linear_order(seq: BreakSequence, order: int) -> None:
    """Check that `order` derivatives leave at least two breakpoints.

    Raises:
        InvalidOrder: If ``order > len(seq) - 2``.
    """
    if order > len(seq) - 2:
        raise InvalidOrder(
            f"cannot take {order} derivatives of a linear basis with {len(seq)} breakpoints"
        )


def _tabulate_linear_basis_impl(
    seq: BreakSequence, pts: npt.NDArray[np.float64]
) -> BandedSparse:
    """Evaluate the hat functions of `seq` at `pts`.

    Each point gets weights ``(1 - z, z)`` on the two breakpoints delimiting
    its interval, where ``z`` is its relative position in the interval.

    Args:
        seq (BreakSequence): Strictly increasing breakpoints.
        pts (npt.NDArray[np.float64]): Points (1D array).

    Returns:
        BandedSparse: Matrix of shape ``(len(pts), len(seq))`` and bandwidth 2.
    """
    breaks = seq.breaks
    ind = seq.lookup(pts)
    left = breaks[ind]
    z = (pts - left) / (breaks[ind + 1] - left)
    return BandedSparse(np.column_stack((1.0 - z, z)), ind, breaks.size)


def _child_sequence(seq: BreakSequence, new_breaks: npt.NDArray[np.float64]) -> BreakSequence:
    """Wrap the breakpoints of a derived basis, keeping the evenly spaced fast path."""
    if seq.is_evenly_spaced:
        return BreakSequence(new_breaks[[0, -1]], new_breaks.size)
    return BreakSequence(new_breaks, strictly_increasing=True)


def _derivative_op_linear_impl(
    seq: BreakSequence, order: int
) -> tuple[list[sps.csr_matrix], BreakSequence]:
    """Build the operators mapping nodal values to derivatives or integrals.

    For ``order > 0``, step ``i`` maps values on the current breakpoints to
    slopes on their midpoints; for ``order < 0``, step ``i`` maps values to the
    antiderivative on an extended set of breakpoints, normalized to vanish at
    the original left endpoint. Operators are cumulative: ``ops[i]`` maps the
    original values to the result of ``i + 1`` steps.

    Args:
        seq (BreakSequence): Strictly increasing breakpoints.
        order (int): Number of derivatives (negative for integrals).

    Returns:
        tuple[list[sps.csr_matrix], BreakSequence]: The ``|order|`` cumulative
        operators and the breakpoints of the resulting linear basis.

    Raises:
        InvalidOrder: If fewer than 2 breakpoints would remain.
    """
    _check_linear_order(seq, order)

    breaks = seq.breaks
    new_breaks = breaks
    ops: list[sps.csr_matrix] = []

    for _ in range(order):
        n = new_breaks.size
        inv_gap = 1.0 / np.diff(new_breaks)
        step = sps.diags([-inv_gap, inv_gap], [0, 1], shape=(n - 1, n), format="csr")
        ops.append(step if not ops else sps.csr_matrix(step @ ops[-1]))
        new_breaks = 0.5 * (new_breaks[:-1] + new_breaks[1:])

    prev: npt.NDArray[np.float64] | None = None
    for _ in range(-order):
        new_breaks = np.concatenate(
            (
                [1.5 * new_breaks[0] - 0.5 * new_breaks[1]],
                0.5 * (new_breaks[:-1] + new_breaks[1:]),
                [1.5 * new_breaks[-1] - 0.5 * new_breaks[-2]],
            )
        )
        widths = np.diff(new_breaks)
        step = np.tril(np.broadcast_to(widths, (new_breaks.size, widths.size)), -1)
        op = step if prev is None else step @ prev

        # Value of the antiderivative at the original left endpoint.
        at_left = _tabulate_linear_basis_impl(
            BreakSequence(new_breaks, strictly_increasing=True), breaks[:1]
        )
        prev = op - at_left @ op
        ops.append(sps.csr_matrix(prev))

    return ops, _child_sequence(seq, new_breaks)


def _evalbase_linear_impl(
    seq: BreakSequence, pts: npt.NDArray[np.float64], order: int
) -> BandedSparse | sps.csr_matrix:
    """Evaluate the linear basis (or a derivative/integral of it) at `pts`.

    Args:
        seq (BreakSequence): Strictly increasing breakpoints.
        pts (npt.NDArray[np.float64]): Points (1D array).
        order (int): Derivative order (negative for integrals).

    Returns:
        BandedSparse | sps.csr_matrix: A banded matrix for ``order == 0``,
        otherwise the CSR matrix of shape ``(len(pts), len(seq))`` mapping
        nodal values to the derivative/integral at `pts`.
    """
    if order == 0:
        return _tabulate_linear_basis_impl(seq, pts)

    ops, new_seq = _derivative_op_linear_impl(seq, order)
    return sps.csr_matrix(_tabulate_linear_basis_impl(new_seq, pts) @ ops[-1])

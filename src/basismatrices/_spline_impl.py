"""B-spline basis evaluation and derivative/integral operators.

Splines of order ``k`` are piecewise polynomials of degree ``k`` on the
breakpoints, with ``k - 1`` continuous derivatives at simple breakpoints.
Their knot vector is the break sequence with each boundary repeated ``k``
additional times.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt
import scipy.sparse as sps

from .banded import BandedSparse
from .errors import InvalidOrder
from .tolerance import get_strict_tolerance

if TYPE_CHECKING:
    from .breaks import BreakSequence

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
def _cox_de_boor_level_impl(
    augbreaks: npt.NDArray[np.float64],
    pts: npt.NDArray[np.float64],
    knot_ids: npt.NDArray[np.int64],
    degree: int,
    basis: npt.NDArray[np.float64],
) -> None:
    """Raise the degree of the B-spline values stored in `basis` by one.

    On entry, ``basis[p, :degree]`` holds the ``degree`` nonzero B-splines of
    degree ``degree - 1`` at ``pts[p]``; on exit ``basis[p, :degree + 1]``
    holds the nonzero B-splines of degree ``degree``. Results are written
    in place.

    Args:
        augbreaks (npt.NDArray[np.float64]): Augmented knot sequence.
        pts (npt.NDArray[np.float64]): Points (1D array).
        knot_ids (npt.NDArray[np.int64]): Knot interval of each point in `augbreaks`.
        degree (int): Degree reached after this step (at least 1).
        basis (npt.NDArray[np.float64]): Working buffer of shape
            ``(len(pts), max_degree + 1)``.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    for pt_id in range(pts.size):
        pt = pts[pt_id]
        knot_id = knot_ids[pt_id]
        for col in range(degree, 0, -1):
            k0 = augbreaks[knot_id + col - degree]
            k1 = augbreaks[knot_id + col]
            temp = basis[pt_id, col - 1] / (k1 - k0)
            basis[pt_id, col] += (pt - k0) * temp
            basis[pt_id, col - 1] = (k1 - pt) * temp


def _augment_breaks(
    breaks: npt.NDArray[np.float64], repeats: int
) -> npt.NDArray[np.float64]:
    """Pad `breaks` with `repeats` copies of each boundary value."""
    return np.concatenate(
        (np.full(repeats, breaks[0]), breaks, np.full(repeats, breaks[-1]))
    )


def _num_spline_basis(seq: BreakSequence, k: int) -> int:
    return len(seq) + k - 1


def _nodes_spline_impl(seq: BreakSequence, k: int) -> npt.NDArray[np.float64]:
    """Compute the Greville abscissae of the spline basis.

    Each node is the average of ``k`` consecutive knots; the first and last
    nodes are snapped to the domain boundaries. For ``k == 0`` (piecewise
    constants) the nodes are the interval midpoints.

    Args:
        seq (BreakSequence): Breakpoints.
        k (int): Spline order.

    Returns:
        npt.NDArray[np.float64]: The ``len(seq) + k - 1`` nodes.
    """
    breaks = seq.breaks
    if k == 0:
        return 0.5 * (breaks[:-1] + breaks[1:])

    n = _num_spline_basis(seq, k)
    csum = np.cumsum(_augment_breaks(breaks, k))
    x = (csum[k : n + k] - csum[:n]) / k
    x[0] = breaks[0]
    x[-1] = breaks[-1]
    return x


def _derivative_op_spline_impl(
    seq: BreakSequence, k: int, order: int
) -> list[sps.csr_matrix]:
    """Build the operators mapping spline coefficients to derivative/integral coefficients.

    For ``order > 0``, step ``i`` is the bidiagonal operator with entries
    ``∓(k + 1 - i) / gap`` from degree ``k - i + 1`` coefficients to degree
    ``k - i`` coefficients. For ``order < 0``, step ``i`` is the strictly
    lower-triangular operator mapping degree ``k + i - 1`` coefficients to the
    coefficients of the antiderivative vanishing at the left boundary.
    Operators are cumulative: ``ops[i]`` applies ``i + 1`` steps.

    Args:
        seq (BreakSequence): Breakpoints.
        k (int): Spline order.
        order (int): Number of derivatives (negative for integrals).

    Returns:
        list[sps.csr_matrix]: The ``|order|`` cumulative operators.

    Raises:
        InvalidOrder: If ``order > k``.
    """
    if order > k:
        raise InvalidOrder(f"order of differentiation ({order}) can't be greater than k ({k})")

    breaks = seq.breaks
    n = _num_spline_basis(seq, k)
    tol = get_strict_tolerance(breaks.dtype)
    ops: list[sps.csr_matrix] = []

    if order > 0:
        augbreaks = _augment_breaks(breaks, k - 1)
        for i in range(1, order + 1):
            gaps = augbreaks[k : n + k - i] - augbreaks[i - 1 : n - 1]
            temp = np.zeros_like(gaps)
            np.divide(k + 1 - i, gaps, out=temp, where=gaps > tol)
            step = sps.diags([-temp, temp], [0, 1], shape=(n - i, n - i + 1), format="csr")
            ops.append(step if not ops else sps.csr_matrix(step @ ops[-1]))

    for i in range(1, -order + 1):
        degree = k + i - 1
        knots = _augment_breaks(breaks, degree)
        n_cur = n + i - 1
        temp = (knots[degree + 1 : degree + 1 + n_cur] - knots[:n_cur]) / (degree + 1)
        step = np.tril(np.broadcast_to(temp, (n_cur + 1, n_cur)), -1)
        ops.append(sps.csr_matrix(step if not ops else step @ ops[-1]))

    return ops


def _check_spline_orders(k: int, orders: npt.NDArray[np.int_]) -> None:
    """Check that every requested order can be evaluated.

    Raises:
        InvalidOrder: If any order is not smaller than `k`.
    """
    if np.any(orders >= k):
        raise InvalidOrder(
            f"order of differentiation must be less than k ({k}), got {orders.tolist()}"
        )


def _evalbase_spline_impl(
    seq: BreakSequence,
    k: int,
    pts: npt.NDArray[np.float64],
    orders: npt.NDArray[np.int_],
) -> list[BandedSparse | sps.csr_matrix]:
    """Evaluate the spline basis for several derivative/integral orders in one pass.

    A single Cox-de Boor recursion raises the degree from 0 to
    ``k - min(orders)``. Whenever the current degree equals ``k - o`` for a
    requested order ``o``, the working buffer is copied into a banded matrix,
    which is then mapped back to the order ``k`` coefficients with the
    derivative (``o > 0``) or integral (``o < 0``) operator.

    Args:
        seq (BreakSequence): Breakpoints.
        k (int): Spline order.
        pts (npt.NDArray[np.float64]): Points (1D array).
        orders (npt.NDArray[np.int_]): Requested orders, all smaller than `k`.

    Returns:
        list[BandedSparse | sps.csr_matrix]: One matrix of shape
        ``(len(pts), len(seq) + k - 1)`` per requested order: banded for
        order 0, CSR otherwise.

    Raises:
        InvalidOrder: If any order is not smaller than `k`.
    """
    _check_spline_orders(k, orders)

    min_order = int(orders.min())
    max_order = int(orders.max())
    max_degree = k - min_order
    n = _num_spline_basis(seq, k)

    derivative_ops = _derivative_op_spline_impl(seq, k, max_order) if max_order > 0 else []
    integral_ops = _derivative_op_spline_impl(seq, k, min_order) if min_order < 0 else []

    augbreaks = _augment_breaks(seq.breaks, max_degree)
    # Interval indices in `augbreaks` are those in the breaks shifted by the padding.
    first_cols = seq.lookup(pts)
    knot_ids = (first_cols + max_degree).astype(np.int64)

    basis = np.zeros((pts.size, max_degree + 1), dtype=np.float64)
    basis[:, 0] = 1.0

    wanted = {int(order) for order in orders}
    snapshots: dict[int, BandedSparse] = {}
    for degree in range(max_degree + 1):
        if degree > 0:
            _cox_de_boor_level_impl(augbreaks, pts, knot_ids, degree, basis)
        order = k - degree
        if order in wanted:
            snapshots[order] = BandedSparse(basis[:, : degree + 1], first_cols, n - order)

    out: list[BandedSparse | sps.csr_matrix] = []
    for o in orders:
        order = int(o)
        B = snapshots[order]
        if order > 0:
            out.append(sps.csr_matrix(B @ derivative_ops[order - 1]))
        elif order < 0:
            out.append(sps.csr_matrix(B @ integral_ops[-order - 1]))
        else:
            out.append(B)
    return out


def _warmup_numba_functions() -> None:
    """Precompile the Cox-de Boor kernel with float64 signatures."""
    augbreaks_dummy = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.5], dtype=np.float64)
    knot_ids_dummy = np.array([2], dtype=np.int64)
    basis_dummy = np.zeros((1, 3), dtype=np.float64)
    basis_dummy[:, 0] = 1.0

    _cox_de_boor_level_impl(augbreaks_dummy, pts_dummy, knot_ids_dummy, 1, basis_dummy)
    _cox_de_boor_level_impl(augbreaks_dummy, pts_dummy, knot_ids_dummy, 2, basis_dummy)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()

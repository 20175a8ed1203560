"""Chebyshev polynomial basis on an interval."""

from __future__ import annotations

from collections.abc import Callable
from typing import cast

import numpy as np
import numpy.typing as npt
from numpy.polynomial import chebyshev

from .errors import InvalidOrder


def _to_reference(
    pts: npt.NDArray[np.float64], a: float, b: float
) -> npt.NDArray[np.float64]:
    """Map points from ``[a, b]`` to ``[-1, 1]``."""
    return 2.0 * (pts - a) / (b - a) - 1.0


def _nodes_cheb_impl(n: int, a: float, b: float) -> npt.NDArray[np.float64]:
    """Gauss-Chebyshev nodes (roots of ``T_n``) mapped to ``[a, b]``, ascending."""
    theta = np.pi * (2.0 * np.arange(n) + 1.0) / (2.0 * n)
    return 0.5 * (a + b) - 0.5 * (b - a) * np.cos(theta)


def _tabulate_cheb_basis_impl(
    n: int, a: float, b: float, pts: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Evaluate ``T_0, ..., T_{n-1}`` at `pts`; dense array of shape ``(len(pts), n)``."""
    return chebyshev.chebvander(_to_reference(pts, a, b), n - 1)


def _check_cheb_order(n: int, order: int) -> None:
    """Raise InvalidOrder if `order` derivatives would leave no basis function."""
    if order >= n:
        raise InvalidOrder(f"cannot take {order} derivatives of a Chebyshev basis of size {n}")


def _derivative_op_cheb_impl(
    n: int, a: float, b: float, order: int
) -> list[npt.NDArray[np.float64]]:
    """Build cumulative coefficient-space derivative/integral operators.

    ``ops[i]`` maps the ``n`` Chebyshev coefficients of a function to those of
    its ``i + 1``-th derivative (``order > 0``), or of its ``i + 1``-th
    antiderivative vanishing at `a` (``order < 0``).

    Raises:
        InvalidOrder: If ``order >= n``.
    """
    _check_cheb_order(n, order)

    identity = np.eye(n)
    if order > 0:
        chebder = cast(Callable[..., npt.NDArray[np.float64]], chebyshev.chebder)
        return [chebder(identity, m=i, scl=2.0 / (b - a)) for i in range(1, order + 1)]

    chebint = cast(Callable[..., npt.NDArray[np.float64]], chebyshev.chebint)
    return [chebint(identity, m=i, lbnd=-1.0, scl=0.5 * (b - a)) for i in range(1, -order + 1)]


def _evalbase_cheb_impl(
    n: int, a: float, b: float, pts: npt.NDArray[np.float64], order: int
) -> npt.NDArray[np.float64]:
    """Evaluate the Chebyshev basis (or a derivative/integral of it) at `pts`.

    Returns:
        npt.NDArray[np.float64]: Dense array of shape ``(len(pts), n)``.
    """
    if order == 0:
        return _tabulate_cheb_basis_impl(n, a, b, pts)

    ops = _derivative_op_cheb_impl(n, a, b, order)
    return _tabulate_cheb_basis_impl(n - order, a, b, pts) @ ops[-1]

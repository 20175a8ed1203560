"""One-dimensional basis parameters and the operations defined on them.

The basis families form a closed set (:class:`BasisFamily`). Each parameter
class only holds validated, immutable data; :func:`nodes`, :func:`evalbase`
and :func:`derivative_op` dispatch on the family tag.
"""

from __future__ import annotations

import functools
import logging
from enum import Enum
from typing import Any, TypeAlias

import numpy as np
import scipy.sparse as sps
from numpy import typing as npt

from ._basis_utils import _normalize_orders_1D, _normalize_points_1D
from ._cheb_impl import (
    _check_cheb_order,
    _derivative_op_cheb_impl,
    _evalbase_cheb_impl,
    _nodes_cheb_impl,
)
from ._linear_impl import _check_linear_order, _derivative_op_linear_impl, _evalbase_linear_impl
from ._spline_impl import (
    _check_spline_orders,
    _derivative_op_spline_impl,
    _evalbase_spline_impl,
    _nodes_spline_impl,
)
from .banded import BandedSparse
from .breaks import BreakSequence
from .errors import InvalidBreaks, InvalidOrder

logger = logging.getLogger(__name__)


class BasisFamily(Enum):
    """Enumeration of the supported one-dimensional basis families.

    Attributes:
        LINEAR (BasisFamily): Piecewise-linear (hat) functions on breakpoints.
        SPLINE (BasisFamily): B-splines of order ``k`` on breakpoints.
        CHEBYSHEV (BasisFamily): Chebyshev polynomials on an interval.
    """

    LINEAR = "linear"
    SPLINE = "spline"
    CHEBYSHEV = "chebyshev"


class LinParams:
    """Parameters of a piecewise-linear basis.

    There is one hat function per breakpoint.

    Attributes:
        _breaks (BreakSequence): Strictly increasing breakpoints.
    """

    _breaks: BreakSequence

    def __init__(self, breaks: npt.ArrayLike, evenly_spaced_count: int = 0) -> None:
        """Initialize piecewise-linear basis parameters.

        Args:
            breaks (npt.ArrayLike): Strictly increasing breakpoints (at least 2).
            evenly_spaced_count (int): If positive, the breakpoints are evenly
                spaced; two breakpoints are then expanded to this many. Defaults to 0.

        Raises:
            InvalidBreaks: If the breakpoints are invalid.
        """
        self._breaks = BreakSequence(breaks, evenly_spaced_count, strictly_increasing=True)

    @classmethod
    def from_bounds(cls, n: int, a: float, b: float) -> LinParams:
        """Create `n` evenly spaced breakpoints on ``[a, b]``."""
        return cls([a, b], n)

    @classmethod
    def _from_sequence(cls, seq: BreakSequence) -> LinParams:
        params = cls.__new__(cls)
        params._breaks = seq
        return params

    @property
    def family(self) -> BasisFamily:
        """The basis family tag."""
        return BasisFamily.LINEAR

    @property
    def break_sequence(self) -> BreakSequence:
        """The validated breakpoints."""
        return self._breaks

    @property
    def breaks(self) -> npt.NDArray[np.float64]:
        """The breakpoints as a read-only array."""
        return self._breaks.breaks

    @property
    def evenly_spaced_count(self) -> int:
        """Number of evenly spaced breakpoints, 0 if irregular."""
        return self._breaks.evenly_spaced_count

    @property
    def size(self) -> int:
        """Number of basis functions."""
        return len(self._breaks)

    @property
    def bounds(self) -> tuple[float, float]:
        """The domain ``(a, b)``."""
        return self._breaks.domain

    @property
    def a(self) -> float:
        """Left end of the domain."""
        return self.bounds[0]

    @property
    def b(self) -> float:
        """Right end of the domain."""
        return self.bounds[1]

    def __repr__(self) -> str:
        return f"LinParams(size={self.size}, bounds={self.bounds})"


class SplineParams:
    """Parameters of a B-spline basis.

    The order `k` is the polynomial degree of every piece (``k = 3`` gives
    cubic splines). The basis has ``len(breaks) + k - 1`` functions.

    Attributes:
        _breaks (BreakSequence): Non-decreasing breakpoints.
        _k (int): Spline order.
    """

    _breaks: BreakSequence
    _k: int

    def __init__(self, breaks: npt.ArrayLike, evenly_spaced_count: int = 0, k: int = 3) -> None:
        """Initialize B-spline basis parameters.

        Args:
            breaks (npt.ArrayLike): Non-decreasing breakpoints (at least 2).
            evenly_spaced_count (int): If positive, the breakpoints are evenly
                spaced; two breakpoints are then expanded to this many. Defaults to 0.
            k (int): Spline order. Must be non-negative. Defaults to 3 (cubic).

        Raises:
            InvalidOrder: If `k` is negative.
            InvalidBreaks: If the breakpoints are invalid.
        """
        if int(k) != k or k < 0:
            raise InvalidOrder("spline order k must be a non-negative integer")
        self._breaks = BreakSequence(breaks, evenly_spaced_count)
        self._k = int(k)

    @classmethod
    def from_bounds(cls, n: int, a: float, b: float, k: int = 3) -> SplineParams:
        """Create a spline basis of order `k` with `n` evenly spaced breakpoints on ``[a, b]``."""
        return cls([a, b], n, k)

    @classmethod
    def _from_sequence(cls, seq: BreakSequence, k: int) -> SplineParams:
        params = cls.__new__(cls)
        params._breaks = seq
        params._k = k
        return params

    @property
    def family(self) -> BasisFamily:
        """The basis family tag."""
        return BasisFamily.SPLINE

    @property
    def break_sequence(self) -> BreakSequence:
        """The validated breakpoints."""
        return self._breaks

    @property
    def breaks(self) -> npt.NDArray[np.float64]:
        """The breakpoints as a read-only array."""
        return self._breaks.breaks

    @property
    def evenly_spaced_count(self) -> int:
        """Number of evenly spaced breakpoints, 0 if irregular."""
        return self._breaks.evenly_spaced_count

    @property
    def k(self) -> int:
        """The spline order."""
        return self._k

    @property
    def size(self) -> int:
        """Number of basis functions."""
        return len(self._breaks) + self._k - 1

    @functools.cached_property
    def greville_nodes(self) -> npt.NDArray[np.float64]:
        """The Greville abscissae as a read-only array, computed on first access."""
        x = _nodes_spline_impl(self._breaks, self._k)
        x.flags.writeable = False
        return x

    @property
    def bounds(self) -> tuple[float, float]:
        """The domain ``(a, b)``."""
        return self._breaks.domain

    @property
    def a(self) -> float:
        """Left end of the domain."""
        return self.bounds[0]

    @property
    def b(self) -> float:
        """Right end of the domain."""
        return self.bounds[1]

    def __repr__(self) -> str:
        return f"SplineParams(k={self._k}, size={self.size}, bounds={self.bounds})"


class ChebParams:
    """Parameters of a Chebyshev polynomial basis ``T_0, ..., T_{n-1}`` on ``[a, b]``.

    Attributes:
        _n (int): Number of basis functions.
        _a (float): Left end of the domain.
        _b (float): Right end of the domain.
    """

    _n: int
    _a: float
    _b: float

    def __init__(self, n: int, a: float, b: float) -> None:
        """Initialize Chebyshev basis parameters.

        Args:
            n (int): Number of basis functions. Must be at least 1.
            a (float): Left end of the domain.
            b (float): Right end of the domain. Must be greater than `a`.

        Raises:
            InvalidOrder: If `n` is smaller than 1.
            InvalidBreaks: If ``a >= b``.
        """
        if int(n) != n or n < 1:
            raise InvalidOrder("n must be a positive integer")
        if not float(a) < float(b):
            raise InvalidBreaks("a must be less than b")
        self._n = int(n)
        self._a = float(a)
        self._b = float(b)

    @property
    def family(self) -> BasisFamily:
        """The basis family tag."""
        return BasisFamily.CHEBYSHEV

    @property
    def size(self) -> int:
        """Number of basis functions."""
        return self._n

    @property
    def bounds(self) -> tuple[float, float]:
        """The domain ``(a, b)``."""
        return self._a, self._b

    @property
    def a(self) -> float:
        """Left end of the domain."""
        return self._a

    @property
    def b(self) -> float:
        """Right end of the domain."""
        return self._b

    def __repr__(self) -> str:
        return f"ChebParams(size={self._n}, bounds={self.bounds})"


BasisParams: TypeAlias = LinParams | SplineParams | ChebParams

BasisEvaluation: TypeAlias = BandedSparse | sps.csr_matrix | npt.NDArray[np.float64]


def construct_params(family: BasisFamily | str, *args: Any, **kwargs: Any) -> BasisParams:
    """Construct the parameters of a one-dimensional basis.

    Args:
        family (BasisFamily | str): The basis family, or its value
            ("linear", "spline" or "chebyshev").
        *args (Any): Positional arguments of the family's parameter class.
        **kwargs (Any): Keyword arguments of the family's parameter class.

    Returns:
        BasisParams: The validated parameters.

    Raises:
        ValueError: If `family` is unknown.
        InvalidBreaks: If the breakpoints are invalid.
        InvalidOrder: If a spline order or basis size is invalid.

    Example:
        >>> construct_params("linear", [0.0, 1.0], 5).breaks
        array([0.  , 0.25, 0.5 , 0.75, 1.  ])
    """
    match BasisFamily(family):
        case BasisFamily.LINEAR:
            return LinParams(*args, **kwargs)
        case BasisFamily.SPLINE:
            return SplineParams(*args, **kwargs)
        case BasisFamily.CHEBYSHEV:
            return ChebParams(*args, **kwargs)


def nodes(params: BasisParams) -> npt.NDArray[np.float64]:
    """Get the interpolation nodes of a one-dimensional basis.

    - Linear: the breakpoints.
    - Spline: the Greville abscissae (``k - 1`` more nodes than breakpoints).
    - Chebyshev: the Gauss-Chebyshev nodes.

    Args:
        params (BasisParams): Basis parameters.

    Returns:
        npt.NDArray[np.float64]: ``params.size`` nodes in ascending order.
    """
    match params.family:
        case BasisFamily.LINEAR:
            return params.breaks.copy()
        case BasisFamily.SPLINE:
            return params.greville_nodes.copy()
        case BasisFamily.CHEBYSHEV:
            return _nodes_cheb_impl(params.size, params.a, params.b)
        case _:
            raise ValueError(f"Unknown basis family {params.family!r}")


def _check_orders(params: BasisParams, orders: npt.NDArray[np.int_]) -> None:
    """Validate all requested orders before anything is evaluated."""
    match params.family:
        case BasisFamily.LINEAR:
            _check_linear_order(params.break_sequence, int(orders.max()))
        case BasisFamily.SPLINE:
            _check_spline_orders(params.k, orders)
        case BasisFamily.CHEBYSHEV:
            _check_cheb_order(params.size, int(orders.max()))


def evalbase(
    params: BasisParams,
    x: npt.ArrayLike | None = None,
    order: int | npt.ArrayLike = 0,
) -> BasisEvaluation | list[BasisEvaluation]:
    """Evaluate a one-dimensional basis, or its derivatives/integrals, at given points.

    Args:
        params (BasisParams): Basis parameters.
        x (npt.ArrayLike | None): Evaluation points (scalar, vector or column
            vector). Defaults to ``nodes(params)``.
        order (int | npt.ArrayLike): Derivative order, or a sequence of orders.
            Negative orders evaluate integrals (antiderivatives vanishing at the
            left end of the domain). Defaults to 0.

    Returns:
        BasisEvaluation | list[BasisEvaluation]: For each order, a matrix of
        shape ``(len(x), params.size)`` whose product with a coefficient
        vector evaluates the (differentiated/integrated) function. Linear and
        spline bases give a :class:`BandedSparse` for order 0 and a CSR matrix
        otherwise; Chebyshev bases give dense arrays. A single matrix is
        returned for a scalar `order`, a list otherwise.

    Raises:
        InvalidOrder: If an order is out of range for the basis (for splines,
            every order must be smaller than ``k``).
        ShapeError: If `x` has rank greater than 1.

    Example:
        >>> evalbase(LinParams([0.0, 1.0, 2.0]), [0.5]).toarray()
        array([[0.5, 0.5, 0. ]])
    """
    orders, is_scalar = _normalize_orders_1D(order)
    pts = nodes(params) if x is None else _normalize_points_1D(x)
    _check_orders(params, orders)

    logger.debug("evalbase %r at %d points, orders %s", params, pts.size, orders.tolist())

    out: list[BasisEvaluation]
    match params.family:
        case BasisFamily.LINEAR:
            out = [_evalbase_linear_impl(params.break_sequence, pts, int(o)) for o in orders]
        case BasisFamily.SPLINE:
            out = _evalbase_spline_impl(params.break_sequence, params.k, pts, orders)
        case BasisFamily.CHEBYSHEV:
            out = [
                _evalbase_cheb_impl(params.size, params.a, params.b, pts, int(o)) for o in orders
            ]
        case _:
            raise ValueError(f"Unknown basis family {params.family!r}")

    return out[0] if is_scalar else out


def derivative_op(
    params: BasisParams, order: int = 1
) -> tuple[list[sps.csr_matrix] | list[npt.NDArray[np.float64]], BasisParams]:
    """Build the operators differentiating (or integrating) functions in a basis.

    ``ops[i]`` maps the coefficients of a function in `params` to the
    coefficients of its ``i + 1``-th derivative (or antiderivative, for
    negative `order`) in the returned basis. For linear bases the
    coefficients are nodal values.

    Args:
        params (BasisParams): Basis parameters.
        order (int): Number of derivatives; negative values integrate.
            Defaults to 1.

    Returns:
        tuple[list[sps.csr_matrix] | list[npt.NDArray[np.float64]], BasisParams]:
        The ``|order|`` cumulative operators and the parameters of the basis
        the result lives in (same family; spline order ``k - order``).

    Raises:
        InvalidOrder: If `order` is out of range: more than ``len(breaks) - 2``
            for linear bases, more than ``k`` for splines, at least ``n`` for
            Chebyshev bases.
    """
    order = int(order)
    match params.family:
        case BasisFamily.LINEAR:
            ops, seq = _derivative_op_linear_impl(params.break_sequence, order)
            return ops, LinParams._from_sequence(seq)
        case BasisFamily.SPLINE:
            spline_ops = _derivative_op_spline_impl(params.break_sequence, params.k, order)
            return spline_ops, SplineParams._from_sequence(params.break_sequence, params.k - order)
        case BasisFamily.CHEBYSHEV:
            cheb_ops = _derivative_op_cheb_impl(params.size, params.a, params.b, order)
            return cheb_ops, ChebParams(params.size - order, params.a, params.b)
        case _:
            raise ValueError(f"Unknown basis family {params.family!r}")


__all__ = [
    "BasisEvaluation",
    "BasisFamily",
    "BasisParams",
    "ChebParams",
    "LinParams",
    "SplineParams",
    "construct_params",
    "derivative_op",
    "evalbase",
    "nodes",
]

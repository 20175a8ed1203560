"""Multi-dimensional basis matrices and conversions between their representations.

A :class:`BasisMatrix` stores the evaluation of a :class:`~basismatrices.Basis`
for one or several combinations of derivative orders, in one of three
representations:

- ``TENSOR``: one matrix per dimension, evaluated at that dimension's points
  of a tensor grid. Dimension ``d`` has as many rows as grid points along ``d``.
- ``DIRECT``: one matrix per dimension, every one with a row per evaluation
  point. Row ``p`` of every dimension refers to the same point.
- ``EXPANDED``: a single matrix per order combination, the row-wise
  Kronecker product of the ``DIRECT`` matrices. Its columns follow the
  numbering of the basis functions (C order).

Representations can only be converted forward, ``TENSOR`` to ``DIRECT`` to
``EXPANDED``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import TypeAlias

import numpy as np
import numpy.typing as npt
import scipy.sparse as sps

from ._basis_utils import _normalize_orders_multidim
from .banded import BandedSparse, row_kron
from .basis import Basis
from .errors import DimensionMismatch, ShapeError
from .lattice import PointsLattice, _cartesian_row_indices
from .params import BasisEvaluation, _check_orders, evalbase

logger = logging.getLogger(__name__)


class BasisRepresentation(Enum):
    """Storage strategies of a multi-dimensional basis matrix.

    Attributes:
        TENSOR (BasisRepresentation): One matrix per dimension on a tensor grid.
        DIRECT (BasisRepresentation): One matrix per dimension, one row per point.
        EXPANDED (BasisRepresentation): Full tensor-product matrix.
    """

    TENSOR = "tensor"
    DIRECT = "direct"
    EXPANDED = "expanded"

    @property
    def rank(self) -> int:
        """Position in the ``TENSOR -> DIRECT -> EXPANDED`` chain."""
        return _REPRESENTATION_RANKS[self]


_REPRESENTATION_RANKS = {
    BasisRepresentation.TENSOR: 0,
    BasisRepresentation.DIRECT: 1,
    BasisRepresentation.EXPANDED: 2,
}

ExpandedValue: TypeAlias = sps.csr_matrix | npt.NDArray[np.float64]
BasisMatrixValue: TypeAlias = tuple[BasisEvaluation, ...] | ExpandedValue

PointsInput: TypeAlias = PointsLattice | tuple[npt.ArrayLike, ...] | npt.ArrayLike | None


class BasisMatrix:
    """Evaluation of a multi-dimensional basis for several order combinations.

    ``order[i]`` is the combination of derivative orders (one per dimension)
    of ``values[i]``. For the ``TENSOR`` and ``DIRECT`` representations
    ``values[i]`` is a tuple with one matrix per dimension; for ``EXPANDED``
    it is a single matrix.

    Attributes:
        _representation (BasisRepresentation): Storage strategy.
        _order (npt.NDArray[np.int_]): Orders, shape ``(r, ndim)``.
        _values (tuple[BasisMatrixValue, ...]): One entry per row of `_order`.
    """

    _representation: BasisRepresentation
    _order: npt.NDArray[np.int_]
    _values: tuple[BasisMatrixValue, ...]

    def __init__(
        self,
        representation: BasisRepresentation | str,
        order: npt.ArrayLike,
        values: Sequence[BasisMatrixValue],
    ) -> None:
        """Initialize a basis matrix.

        Args:
            representation (BasisRepresentation | str): Storage strategy.
            order (npt.ArrayLike): Order combinations, shape ``(r, ndim)``.
            values (Sequence[BasisMatrixValue]): One entry per order combination.

        Raises:
            DimensionMismatch: If `order` is not 2D, or if the number of
                entries (or, per entry, of dimensions) does not match it.
        """
        representation = BasisRepresentation(representation)
        order_arr = np.array(order, dtype=np.int_)
        if order_arr.ndim != 2:  # noqa: PLR2004
            raise DimensionMismatch("order must be a 2D array (one row per order combination)")
        if order_arr.shape[0] != len(values):
            raise DimensionMismatch(
                f"{order_arr.shape[0]} order combinations but {len(values)} values"
            )
        if representation is not BasisRepresentation.EXPANDED:
            ndim = order_arr.shape[1]
            if any(len(v) != ndim for v in values):  # type: ignore[arg-type]
                raise DimensionMismatch(f"every entry must hold {ndim} matrices")
            values = [tuple(v) for v in values]  # type: ignore[arg-type]

        order_arr.flags.writeable = False
        self._representation = representation
        self._order = order_arr
        self._values = tuple(values)

    @property
    def representation(self) -> BasisRepresentation:
        """The storage strategy."""
        return self._representation

    @property
    def order(self) -> npt.NDArray[np.int_]:
        """The order combinations (read-only), shape ``(r, ndim)``."""
        return self._order

    @property
    def values(self) -> tuple[BasisMatrixValue, ...]:
        """The stored matrices, one entry per order combination."""
        return self._values

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        return int(self._order.shape[1])

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (
            f"BasisMatrix(representation={self._representation.value}, "
            f"order={self._order.tolist()})"
        )

    def get(self, order: int | npt.ArrayLike) -> BasisMatrixValue:
        """Get the entry stored for an order combination.

        Args:
            order (int | npt.ArrayLike): Order of every dimension (an int for
                the same order everywhere).

        Returns:
            BasisMatrixValue: The stored entry.

        Raises:
            KeyError: If the combination was not evaluated.
        """
        wanted = _normalize_orders_multidim(order, self.ndim)[0]
        matches = np.flatnonzero(np.all(self._order == wanted, axis=1))
        if matches.size == 0:
            raise KeyError(f"order {wanted.tolist()} was not evaluated")
        return self._values[int(matches[0])]


def _take_rows(mat: BasisEvaluation, rows: npt.NDArray[np.int_]) -> BasisEvaluation:
    """Select (and repeat) rows of a matrix, keeping its type."""
    if isinstance(mat, BandedSparse):
        return mat.take_rows(rows)
    if sps.issparse(mat):
        return sps.csr_matrix(mat)[rows]
    return np.asarray(mat)[rows]


def _parse_points(
    basis: Basis, x: PointsInput
) -> tuple[tuple[npt.NDArray[np.float64], ...], bool]:
    """Split evaluation points per dimension.

    Returns:
        tuple[tuple[npt.NDArray[np.float64], ...], bool]: The points of every
        dimension and whether they form a tensor grid.

    Raises:
        DimensionMismatch: If the points do not have one coordinate per dimension.
        ShapeError: If scattered points are not given as a 2D array, or if a
            list of arrays is given.
    """
    if x is None:
        return basis.lattice().pts_per_dir, True

    if isinstance(x, tuple):
        x = PointsLattice(x)
    if isinstance(x, PointsLattice):
        if x.dim != basis.ndim:
            raise DimensionMismatch(f"points have {x.dim} dimensions, basis has {basis.ndim}")
        return x.pts_per_dir, True

    if isinstance(x, list) and any(isinstance(item, np.ndarray) for item in x):
        raise ShapeError(
            "ambiguous points: pass a tuple of 1D arrays for a tensor grid "
            "or a 2D array for scattered points"
        )

    pts = np.asarray(x, dtype=np.float64)
    if pts.ndim <= 1 and basis.ndim == 1:
        pts = pts.reshape(-1, 1)
    if pts.ndim != 2:  # noqa: PLR2004
        raise ShapeError(f"scattered points must be a 2D array of shape (m, {basis.ndim})")
    if pts.shape[1] != basis.ndim:
        raise DimensionMismatch(f"points have {pts.shape[1]} coordinates, basis has {basis.ndim}")
    return tuple(np.ascontiguousarray(pts[:, d]) for d in range(basis.ndim)), False


def evaluate(
    basis: Basis,
    representation: BasisRepresentation | str = BasisRepresentation.DIRECT,
    x: PointsInput = None,
    order: int | npt.ArrayLike = 0,
) -> BasisMatrix:
    """Evaluate a multi-dimensional basis.

    Every dimension is evaluated once, for all the distinct orders it is
    requested at; the results are then converted to `representation`.

    Args:
        basis (Basis): The basis.
        representation (BasisRepresentation | str): Target representation.
            Defaults to ``DIRECT``.
        x (PointsInput): Evaluation points: ``None`` for the grid of basis
            nodes, a :class:`PointsLattice` or a tuple of 1D arrays for a
            tensor grid, or an array of shape ``(m, ndim)`` of scattered
            points (a 1D array when ``ndim == 1``). A list of numpy arrays is
            rejected as ambiguous. Defaults to None.
        order (int | npt.ArrayLike): An int (same order in every dimension),
            a sequence of ``ndim`` orders, or an array of shape ``(r, ndim)``
            with one order combination per row. Defaults to 0.

    Returns:
        BasisMatrix: The evaluation, with one entry per order combination.

    Raises:
        DimensionMismatch: If `order` or `x` do not match the basis dimension.
        ShapeError: If ``TENSOR`` is requested for scattered points.
        InvalidOrder: If an order is out of range for some dimension.

    Example:
        >>> basis = Basis(LinParams([0.0, 1.0]), LinParams([0.0, 1.0]))
        >>> evaluate(basis, "expanded", [[0.5, 0.5]]).values[0].toarray()
        array([[0.25, 0.25, 0.25, 0.25]])
    """
    representation = BasisRepresentation(representation)
    orders = _normalize_orders_multidim(order, basis.ndim)
    pts_per_dim, is_grid = _parse_points(basis, x)
    if representation is BasisRepresentation.TENSOR and not is_grid:
        raise ShapeError("the tensor representation needs points on a tensor grid")

    unique_per_dim = [np.unique(orders[:, d]) for d in range(basis.ndim)]
    for params, unique in zip(basis.params, unique_per_dim, strict=True):
        _check_orders(params, unique)

    logger.debug(
        "evaluating %r at %s points (%s), %d order combinations",
        basis,
        "x".join(str(p.size) for p in pts_per_dim) if is_grid else pts_per_dim[0].size,
        "grid" if is_grid else "scattered",
        orders.shape[0],
    )

    per_dim: list[dict[int, BasisEvaluation]] = []
    for params, pts, unique in zip(basis.params, pts_per_dim, unique_per_dim, strict=True):
        mats = evalbase(params, pts, unique)
        per_dim.append({int(o): mat for o, mat in zip(unique, mats, strict=True)})

    values = [tuple(per_dim[d][int(row[d])] for d in range(basis.ndim)) for row in orders]
    source = BasisRepresentation.TENSOR if is_grid else BasisRepresentation.DIRECT
    return convert(BasisMatrix(source, orders, values), representation)


def _select_rows(bm: BasisMatrix, order: int | npt.ArrayLike | None) -> BasisMatrix:
    """Restrict `bm` to the requested order combinations.

    Raises:
        DimensionMismatch: If a combination uses an order not evaluated in some dimension.
    """
    if order is None:
        return bm

    wanted = _normalize_orders_multidim(order, bm.ndim)
    if bm.representation is BasisRepresentation.EXPANDED:
        values = []
        for row in wanted:
            matches = np.flatnonzero(np.all(bm.order == row, axis=1))
            if matches.size == 0:
                raise DimensionMismatch(f"order combination {row.tolist()} was not evaluated")
            values.append(bm.values[int(matches[0])])
        return BasisMatrix(bm.representation, wanted, values)

    # Per-dimension entries can be recombined freely.
    available: list[dict[int, BasisEvaluation]] = [{} for _ in range(bm.ndim)]
    for row, entry in zip(bm.order, bm.values, strict=True):
        for d in range(bm.ndim):
            available[d].setdefault(int(row[d]), entry[d])  # type: ignore[index]

    values = []
    for row in wanted:
        missing = [d for d in range(bm.ndim) if int(row[d]) not in available[d]]
        if missing:
            raise DimensionMismatch(
                f"order combination {row.tolist()} not available in dimension(s) {missing}"
            )
        values.append(tuple(available[d][int(row[d])] for d in range(bm.ndim)))
    return BasisMatrix(bm.representation, wanted, values)


def _tensor_to_direct(bm: BasisMatrix) -> BasisMatrix:
    """Expand every dimension's rows to the points of the C-ordered grid."""
    first = bm.values[0]
    sizes = tuple(int(mat.shape[0]) for mat in first)  # type: ignore[union-attr]
    rows = [_cartesian_row_indices(sizes, d) for d in range(bm.ndim)]
    values = [
        tuple(_take_rows(mat, rows[d]) for d, mat in enumerate(entry))  # type: ignore[arg-type]
        for entry in bm.values
    ]
    return BasisMatrix(BasisRepresentation.DIRECT, bm.order, values)


def _direct_to_expanded(bm: BasisMatrix) -> BasisMatrix:
    """Form the row-wise Kronecker product of every entry."""
    values = [row_kron(*entry) for entry in bm.values]  # type: ignore[misc]
    return BasisMatrix(BasisRepresentation.EXPANDED, bm.order, values)


def convert(
    bm: BasisMatrix,
    target: BasisRepresentation | str,
    order: int | npt.ArrayLike | None = None,
) -> BasisMatrix:
    """Convert a basis matrix to another representation.

    Args:
        bm (BasisMatrix): The basis matrix.
        target (BasisRepresentation | str): Target representation. It cannot
            precede the representation of `bm` in the
            ``TENSOR -> DIRECT -> EXPANDED`` chain.
        order (int | npt.ArrayLike | None): Order combinations to keep, as in
            :func:`evaluate`. For ``TENSOR`` and ``DIRECT`` sources, a
            combination may mix orders coming from different stored
            combinations. Defaults to None (keep all).

    Returns:
        BasisMatrix: The converted basis matrix (`bm` itself if nothing changes).

    Raises:
        ValueError: If the conversion goes backward.
        DimensionMismatch: If a requested combination is not available.
    """
    target = BasisRepresentation(target)
    if target.rank < bm.representation.rank:
        raise ValueError(
            f"cannot convert from {bm.representation.value} to {target.value} representation"
        )

    out = _select_rows(bm, order)
    if out.representation is not target:
        logger.debug(
            "converting %d order combinations from %s to %s",
            len(out),
            out.representation.value,
            target.value,
        )
    if out.representation is BasisRepresentation.TENSOR and target.rank > 0:
        out = _tensor_to_direct(out)
    if out.representation is BasisRepresentation.DIRECT and target.rank > 1:  # noqa: PLR2004
        out = _direct_to_expanded(out)
    return out


__all__ = [
    "BasisMatrix",
    "BasisRepresentation",
    "convert",
    "evaluate",
]

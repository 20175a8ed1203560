"""Compact storage for basis evaluations with a fixed number of nonzeros per row.

Every row of a piecewise-polynomial basis evaluation has a bounded, contiguous
run of nonzero columns. :class:`BandedSparse` stores exactly that run for each
row. Conversion to a general scipy sparse matrix is one-directional.
"""

from __future__ import annotations

import functools

import numpy as np
import scipy.sparse as sps
from numpy import typing as npt

from .errors import DimensionMismatch


class BandedSparse:
    """An ``m x n`` matrix whose row ``i`` stores `bandwidth` contiguous columns.

    The stored columns of row ``i`` are ``offsets[i], ..., offsets[i] + bandwidth - 1``.
    Values are kept in a flat row-major array of length ``m * bandwidth``.

    Attributes:
        _values (npt.NDArray[np.float64]): Flat array of stored values.
        _offsets (npt.NDArray[np.int_]): First stored column of every row.
        _n_cols (int): Total number of columns.
        _bandwidth (int): Number of stored columns per row.
    """

    _values: npt.NDArray[np.float64]
    _offsets: npt.NDArray[np.int_]
    _n_cols: int
    _bandwidth: int

    def __init__(self, values: npt.ArrayLike, offsets: npt.ArrayLike, n_cols: int) -> None:
        """Initialize a banded sparse matrix.

        Args:
            values (npt.ArrayLike): Stored values, shape ``(m, bandwidth)``.
            offsets (npt.ArrayLike): First stored column of each row, shape ``(m,)``.
            n_cols (int): Total number of columns.

        Raises:
            DimensionMismatch: If `values` is not 2D or its number of rows differs
                from the number of offsets.
            ValueError: If a row's stored columns fall outside ``[0, n_cols)``.
        """
        vals = np.array(values, dtype=np.float64)
        offs = np.array(offsets, dtype=np.int_)

        if vals.ndim != 2 or offs.ndim != 1:  # noqa: PLR2004
            raise DimensionMismatch("values must be 2D and offsets 1D")
        if vals.shape[0] != offs.size:
            raise DimensionMismatch(
                f"values has {vals.shape[0]} rows but {offs.size} offsets were given"
            )

        bandwidth = int(vals.shape[1])
        if offs.size > 0 and (np.min(offs) < 0 or np.max(offs) + bandwidth > n_cols):
            raise ValueError(
                f"offsets must lie in [0, {n_cols - bandwidth}] for bandwidth {bandwidth}"
            )

        self._values = np.ascontiguousarray(vals).reshape(-1)
        self._values.flags.writeable = False
        offs.flags.writeable = False
        self._offsets = offs
        self._n_cols = int(n_cols)
        self._bandwidth = bandwidth

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return int(self._offsets.size)

    @property
    def n_cols(self) -> int:
        """Number of columns."""
        return self._n_cols

    @property
    def shape(self) -> tuple[int, int]:
        """Shape ``(n_rows, n_cols)`` of the matrix."""
        return self.n_rows, self._n_cols

    @property
    def bandwidth(self) -> int:
        """Number of stored columns per row."""
        return self._bandwidth

    @property
    def nnz(self) -> int:
        """Number of stored values (explicit zeros included)."""
        return int(self._values.size)

    @property
    def dtype(self) -> np.dtype[np.float64]:
        """Data type of the stored values."""
        return self._values.dtype

    @property
    def values(self) -> npt.NDArray[np.float64]:
        """Stored values as a read-only ``(n_rows, bandwidth)`` view."""
        return self._values.reshape(self.n_rows, self._bandwidth)

    @property
    def offsets(self) -> npt.NDArray[np.int_]:
        """First stored column of every row (read-only)."""
        return self._offsets

    @functools.cached_property
    def column_indices(self) -> npt.NDArray[np.int_]:
        """Column index of every stored value, shape ``(n_rows, bandwidth)``."""
        return self._offsets[:, np.newaxis] + np.arange(self._bandwidth)

    def __repr__(self) -> str:
        m, n = self.shape
        return f"BandedSparse(shape=({m}, {n}), bandwidth={self._bandwidth})"

    def to_coo_triplets(
        self,
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Export the stored entries as ``(rows, cols, values)`` triplets.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.int_], npt.NDArray[np.float64]]:
            Row indices, column indices and values, each of length `nnz`.
        """
        rows = np.repeat(np.arange(self.n_rows), self._bandwidth)
        return rows, self.column_indices.reshape(-1), self._values.copy()

    def to_sparse(self, fmt: str = "csr") -> sps.spmatrix:
        """Materialize as a general scipy sparse matrix.

        Args:
            fmt (str): Target scipy sparse format. Defaults to "csr".

        Returns:
            sps.spmatrix: The same matrix in the requested format.
        """
        indptr = np.arange(self.n_rows + 1) * self._bandwidth
        out = sps.csr_matrix(
            (self._values.copy(), self.column_indices.reshape(-1), indptr),
            shape=self.shape,
        )
        return out.asformat(fmt)

    def toarray(self) -> npt.NDArray[np.float64]:
        """Materialize as a dense array."""
        out = np.zeros(self.shape, dtype=np.float64)
        np.put_along_axis(out, self.column_indices, self.values, axis=1)
        return out

    def take_rows(self, rows: npt.ArrayLike) -> BandedSparse:
        """Build the matrix made of the selected rows (repetitions allowed).

        Args:
            rows (npt.ArrayLike): Row indices.

        Returns:
            BandedSparse: A new matrix with ``len(rows)`` rows.
        """
        rows = np.asarray(rows, dtype=np.int_)
        return BandedSparse(self.values[rows], self._offsets[rows], self._n_cols)

    def __matmul__(self, other: object) -> npt.NDArray[np.float64] | sps.spmatrix:
        """Multiply by a dense vector/matrix or a sparse matrix on the right.

        Args:
            other (object): Dense array with ``n_cols`` rows, a scipy sparse
                matrix or another :class:`BandedSparse`.

        Returns:
            npt.NDArray[np.float64] | sps.spmatrix: Dense result for dense
            operands, CSR matrix for sparse operands.

        Raises:
            DimensionMismatch: If the inner dimensions differ.
        """
        if isinstance(other, BandedSparse):
            other = other.to_sparse()
        if sps.issparse(other):
            if other.shape[0] != self._n_cols:
                raise DimensionMismatch(
                    f"cannot multiply {self.shape} by sparse matrix of shape {other.shape}"
                )
            return sps.csr_matrix(self.to_sparse() @ other)

        arr = np.asarray(other, dtype=np.float64)
        if arr.ndim == 0 or arr.shape[0] != self._n_cols:
            raise DimensionMismatch(f"cannot multiply {self.shape} by array of shape {arr.shape}")
        gathered = arr[self.column_indices]
        if arr.ndim == 1:
            return np.einsum("pw,pw->p", self.values, gathered)
        return np.einsum("pw,pw...->p...", self.values, gathered)


def _padded_rows(
    mat: BandedSparse | sps.spmatrix | npt.ArrayLike,
) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64], int]:
    """Express any matrix as fixed-width per-row (columns, values) arrays.

    Rows with fewer entries than the widest row are padded with zero values
    at column 0.

    Returns:
        tuple[npt.NDArray[np.int_], npt.NDArray[np.float64], int]: Column
        indices and values, both of shape ``(m, width)``, and the number of
        columns of the matrix.
    """
    if isinstance(mat, BandedSparse):
        return mat.column_indices, mat.values, mat.n_cols

    if sps.issparse(mat):
        csr = sps.csr_matrix(mat, dtype=np.float64)
        csr.sum_duplicates()
        m, n = csr.shape
        counts = np.diff(csr.indptr)
        width = int(counts.max()) if m > 0 else 0
        rows = np.repeat(np.arange(m), counts)
        pos = np.arange(csr.nnz) - np.repeat(csr.indptr[:-1], counts)
        cols = np.zeros((m, width), dtype=np.int_)
        vals = np.zeros((m, width), dtype=np.float64)
        cols[rows, pos] = csr.indices
        vals[rows, pos] = csr.data
        return cols, vals, n

    arr = np.asarray(mat, dtype=np.float64)
    m, n = arr.shape
    return np.broadcast_to(np.arange(n), (m, n)), arr, n


def row_kron(
    *matrices: BandedSparse | sps.spmatrix | npt.ArrayLike,
) -> sps.csr_matrix | npt.NDArray[np.float64]:
    """Row-wise Kronecker product.

    Row ``i`` of the result is ``kron(A[i], B[i], ...)``: the column index of
    the last factor varies fastest. Products are accumulated from the last
    factor to the first.

    Args:
        *matrices (BandedSparse | sps.spmatrix | npt.ArrayLike): Matrices with
            the same number of rows.

    Returns:
        sps.csr_matrix | npt.NDArray[np.float64]: Dense array when every factor
        is dense, CSR matrix otherwise. Its number of columns is the product
        of the factors' column counts.

    Raises:
        ValueError: If no matrix is given.
        DimensionMismatch: If the factors have different numbers of rows.

    Example:
        >>> row_kron(np.array([[1.0, 2.0]]), np.array([[1.0, 10.0]]))
        array([[ 1., 10.,  2., 20.]])
    """
    if len(matrices) == 0:
        raise ValueError("row_kron needs at least one matrix")

    matrices = tuple(
        mat if isinstance(mat, BandedSparse) or sps.issparse(mat) else np.asarray(mat, np.float64)
        for mat in matrices
    )
    n_rows = {int(mat.shape[0]) for mat in matrices}
    if len(n_rows) != 1:
        raise DimensionMismatch(f"all factors must have the same number of rows, got {n_rows}")
    (m,) = n_rows

    if all(not isinstance(mat, BandedSparse) and not sps.issparse(mat) for mat in matrices):
        acc = np.asarray(matrices[-1], dtype=np.float64)
        for mat in reversed(matrices[:-1]):
            left = np.asarray(mat, dtype=np.float64)
            acc = np.einsum("pi,pj->pij", left, acc).reshape(m, -1)
        return acc

    acc_cols, acc_vals, acc_n = _padded_rows(matrices[-1])
    for mat in reversed(matrices[:-1]):
        cols, vals, n = _padded_rows(mat)
        acc_cols = (cols[:, :, np.newaxis] * acc_n + acc_cols[:, np.newaxis, :]).reshape(m, -1)
        acc_vals = np.einsum("pi,pj->pij", vals, acc_vals).reshape(m, -1)
        acc_n *= n

    rows = np.repeat(np.arange(m), acc_cols.shape[1])
    out = sps.csr_matrix(
        (acc_vals.reshape(-1), (rows, acc_cols.reshape(-1))),
        shape=(m, acc_n),
    )
    out.eliminate_zeros()
    return out


__all__ = ["BandedSparse", "row_kron"]

"""Functions expressed in a tensor-product basis."""

from __future__ import annotations

import logging

import numpy as np
import scipy.sparse as sps
import scipy.sparse.linalg as spla
from numpy import typing as npt

from .basis import Basis
from .basis_matrix import BasisRepresentation, PointsInput, evaluate
from .errors import DimensionMismatch
from .params import BasisParams
from .tolerance import get_strict_tolerance

logger = logging.getLogger(__name__)


def _solve(
    mat: sps.csr_matrix | npt.NDArray[np.float64], rhs: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Solve ``mat @ c = rhs`` exactly if `mat` is square, in the least-squares sense otherwise.

    `rhs` has shape ``(m, n_cols)``; the result has shape ``(mat.shape[1], n_cols)``.
    """
    m, n = mat.shape
    if not sps.issparse(mat):
        if m == n:
            return np.linalg.solve(mat, rhs)
        return np.linalg.lstsq(mat, rhs, rcond=None)[0]

    if m == n:
        sol = spla.spsolve(sps.csc_matrix(mat), rhs)
        return np.asarray(sol, dtype=np.float64).reshape(n, -1)

    tol = get_strict_tolerance()
    cols = [
        spla.lsqr(mat, rhs[:, j], atol=tol, btol=tol, iter_lim=10 * n)[0]
        for j in range(rhs.shape[1])
    ]
    return np.column_stack(cols)


class Interpoland:
    """A (possibly vector-valued) function given by its coefficients in a basis.

    Coefficients are ordered like the basis functions of `basis` (C order).
    Each column of the coefficient array is one component of the function.
    """

    def __init__(self, basis: Basis | BasisParams, coefs: npt.ArrayLike) -> None:
        """Initialize the function.

        Args:
            basis (Basis | BasisParams): The basis, or the parameters of a
                one-dimensional basis.
            coefs (npt.ArrayLike): The coefficients, shape ``(basis.size,)`` or
                ``(basis.size, n_components)``.

        Raises:
            ValueError: If `coefs` does not have one row per basis function.
        """
        self._basis = basis if isinstance(basis, Basis) else Basis(basis)

        coefs = np.atleast_1d(np.asarray(coefs, dtype=np.float64))
        num_basis = self._basis.size
        if coefs.shape[0] != num_basis:
            raise ValueError(
                "The coefficients must have one row per basis function. "
                f"Got shape {coefs.shape} for {num_basis} basis functions."
            )

        self._is_scalar = coefs.ndim == 1
        self._coefs = coefs.reshape(num_basis, -1)

    @classmethod
    def fit(
        cls, basis: Basis | BasisParams, y: npt.ArrayLike, x: PointsInput = None
    ) -> Interpoland:
        """Fit coefficients to values at some points.

        Interpolates when there are as many points as basis functions, and
        solves in the least-squares sense otherwise.

        Args:
            basis (Basis | BasisParams): The basis.
            y (npt.ArrayLike): Function values, shape ``(m,)`` or
                ``(m, n_components)``.
            x (PointsInput): Points, as in :func:`evaluate`. Defaults to the
                grid of basis nodes.

        Returns:
            Interpoland: The fitted function.

        Raises:
            DimensionMismatch: If `y` does not have a row per point.
        """
        basis = basis if isinstance(basis, Basis) else Basis(basis)
        mat = evaluate(basis, BasisRepresentation.EXPANDED, x).values[0]

        y = np.asarray(y, dtype=np.float64)
        if y.shape[0] != mat.shape[0]:
            raise DimensionMismatch(f"got {y.shape[0]} values for {mat.shape[0]} points")

        logger.debug("fitting %d coefficients to %d values", mat.shape[1], mat.shape[0])
        coefs = _solve(mat, y.reshape(y.shape[0], -1))
        return cls(basis, coefs[:, 0] if y.ndim == 1 else coefs)

    @property
    def basis(self) -> Basis:
        """The basis."""
        return self._basis

    @property
    def coefs(self) -> npt.NDArray[np.float64]:
        """The coefficients, shape ``(basis.size,)`` or ``(basis.size, n_components)``."""
        return self._coefs[:, 0] if self._is_scalar else self._coefs

    def __repr__(self) -> str:
        return f"Interpoland({self._basis!r}, n_components={self._coefs.shape[1]})"

    def __call__(
        self, x: PointsInput = None, order: int | npt.ArrayLike = 0
    ) -> npt.NDArray[np.float64] | list[npt.NDArray[np.float64]]:
        """Evaluate the function, or its derivatives/integrals, at some points.

        Args:
            x (PointsInput): Points, as in :func:`evaluate`. Defaults to the
                grid of basis nodes.
            order (int | npt.ArrayLike): Orders, as in :func:`evaluate`.
                Defaults to 0.

        Returns:
            npt.NDArray[np.float64] | list[npt.NDArray[np.float64]]: Values of
            shape ``(m,)`` (or ``(m, n_components)``), one array per order
            combination if `order` is 2D.
        """
        bm = evaluate(self._basis, BasisRepresentation.EXPANDED, x, order)
        out = []
        for mat in bm.values:
            vals = np.asarray(mat @ self._coefs)
            out.append(vals[:, 0] if self._is_scalar else vals)

        if np.ndim(order) < 2:  # noqa: PLR2004
            return out[0]
        return out


__all__ = ["Interpoland"]

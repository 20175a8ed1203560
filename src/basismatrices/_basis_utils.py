"""Utility functions for normalizing evaluation inputs."""

import numpy as np
from numpy import typing as npt

from .errors import DimensionMismatch, InvalidOrder, ShapeError


def _normalize_points_1D(pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize points to a 1D float64 array for basis function evaluation.

    Scalars become arrays with a single element. Column vectors of shape
    ``(m, 1)`` are flattened; any other higher-rank input is rejected.

    Args:
        pts (npt.ArrayLike): Evaluation points.

    Returns:
        npt.NDArray[np.float64]: A contiguous 1D array of points.

    Raises:
        ShapeError: If `pts` is not a scalar, a vector or a column vector.
    """
    pts = np.asarray(pts, dtype=np.float64)

    if pts.ndim == 0:
        pts = pts.reshape(1)
    elif pts.ndim == 2 and pts.shape[1] == 1:  # noqa: PLR2004
        pts = pts[:, 0]
    elif pts.ndim != 1:
        raise ShapeError(f"x must be a 1D array or a column vector, got shape {pts.shape}")

    return np.ascontiguousarray(pts)


def _normalize_orders_1D(order: int | npt.ArrayLike) -> tuple[npt.NDArray[np.int_], bool]:
    """Normalize requested derivative orders for a single dimension.

    Args:
        order (int | npt.ArrayLike): A single order or a sequence of orders.
            Negative values denote integrals.

    Returns:
        tuple[npt.NDArray[np.int_], bool]: The orders as a 1D integer array and
        whether a single scalar order was requested.

    Raises:
        InvalidOrder: If the orders are not integers or the sequence is empty.
    """
    arr = np.asarray(order)
    if arr.dtype.kind not in "iu":
        raise InvalidOrder(f"orders must be integers, got dtype {arr.dtype}")
    is_scalar = arr.ndim == 0
    arr = arr.reshape(-1).astype(np.int_)
    if arr.size == 0:
        raise InvalidOrder("at least one order must be requested")
    return arr, is_scalar


def _normalize_orders_multidim(order: int | npt.ArrayLike, ndim: int) -> npt.NDArray[np.int_]:
    """Normalize multidimensional order requests to a 2D integer array.

    Args:
        order (int | npt.ArrayLike): An integer (same order in every dimension),
            a sequence of length `ndim` (one combination) or an array of shape
            ``(r, ndim)`` (one combination per row).
        ndim (int): Number of dimensions of the basis.

    Returns:
        npt.NDArray[np.int_]: Array of shape ``(r, ndim)``.

    Raises:
        InvalidOrder: If the orders are not integers.
        DimensionMismatch: If the number of columns is not `ndim`.
    """
    arr = np.asarray(order)
    if arr.dtype.kind not in "iu":
        raise InvalidOrder(f"orders must be integers, got dtype {arr.dtype}")

    if arr.ndim == 0:
        return np.full((1, ndim), int(arr), dtype=np.int_)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[1] != ndim or arr.shape[0] == 0:  # noqa: PLR2004
        raise DimensionMismatch(
            f"order must have {ndim} columns (one per dimension), got shape {np.shape(order)}"
        )
    return arr.astype(np.int_)

"""Tensor-product grids of evaluation points."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

import numpy as np
import numpy.typing as npt

from ._basis_utils import _normalize_points_1D
from .errors import DimensionMismatch


def _cartesian_row_indices(sizes: tuple[int, ...], dim: int) -> npt.NDArray[np.int_]:
    """Index along `dim` of every point of a C-ordered grid with `sizes` points per dimension."""
    inner = int(np.prod(sizes[dim + 1 :], dtype=np.int_))
    outer = int(np.prod(sizes[:dim], dtype=np.int_))
    return np.repeat(np.tile(np.arange(sizes[dim]), outer), inner)


class PointsLattice:
    """Cartesian grid given by one vector of points per dimension."""

    def __init__(self, pts_per_dir: Iterable[npt.ArrayLike]) -> None:
        """Initialize the points lattice.

        Args:
            pts_per_dir (Iterable[npt.ArrayLike]): The points per dimension
                (scalars, vectors or column vectors).

        Raises:
            DimensionMismatch: If the lattice has no dimension.
            ShapeError: If some points are not a vector.
            ValueError: If some dimension has no points.
        """
        self._pts_per_dir: tuple[npt.NDArray[np.float64], ...] = tuple(
            _normalize_points_1D(pts) for pts in pts_per_dir
        )
        self._validate_pts_per_dir()

    def _validate_pts_per_dir(self) -> None:
        """Validate the points per dimension."""
        if self.dim < 1:
            raise DimensionMismatch("Points lattice must have at least 1 dimension")
        for pts in self._pts_per_dir:
            if pts.shape[0] == 0:
                raise ValueError("All dimensions must have at least 1 point")

    @property
    def dim(self) -> int:
        """Get the dimension of the points lattice."""
        return len(self._pts_per_dir)

    @property
    def pts_per_dir(self) -> tuple[npt.NDArray[np.float64], ...]:
        """Get the points per dimension."""
        return self._pts_per_dir

    @property
    def n_pts_per_dir(self) -> tuple[int, ...]:
        """Get the number of points per dimension."""
        return tuple(int(pts.size) for pts in self._pts_per_dir)

    @property
    def n_pts(self) -> int:
        """Get the total number of points in the lattice."""
        return int(np.prod(self.n_pts_per_dir))

    def __repr__(self) -> str:
        return f"PointsLattice(n_pts_per_dir={self.n_pts_per_dir})"

    def get_all_points(self, order: Literal["C", "F"] = "C") -> npt.NDArray[np.float64]:
        """Get all points in the points lattice.

        Args:
            order (Literal["C", "F"]): The order of the points. Defaults to "C".
                "C" means the last index varies fastest, "F" means the first index varies fastest.

        Returns:
            npt.NDArray[np.float64]: The dim-dimensional points in the lattice.
            It has shape: (n_pts, dim).
        """
        tp_coords = np.meshgrid(*self._pts_per_dir, indexing="ij")
        if order == "C":  # Last index varies fastest
            return np.stack([c.reshape(-1) for c in tp_coords], axis=1)
        # First index varies fastest
        return np.stack([c.reshape(-1, order="F") for c in tp_coords], axis=1)

    def get_row_indices(self, dim: int) -> npt.NDArray[np.int_]:
        """Get, for every lattice point in C order, its index along dimension `dim`.

        Args:
            dim (int): The dimension.

        Returns:
            npt.NDArray[np.int_]: Array of length `n_pts`.
        """
        return _cartesian_row_indices(self.n_pts_per_dir, dim)


__all__ = ["PointsLattice"]

"""Multi-dimensional tensor-product bases."""

from __future__ import annotations

import functools
from collections.abc import Iterator
from typing import overload

import numpy as np
import numpy.typing as npt

from .errors import DimensionMismatch
from .lattice import PointsLattice
from .params import BasisParams, ChebParams, LinParams, SplineParams, nodes


class Basis:
    """Tensor product of one-dimensional bases.

    Dimension ``d`` of the basis is described by ``params[d]``. Basis
    functions are numbered in C order: the index of the last dimension varies
    fastest.

    Attributes:
        _params (tuple[BasisParams, ...]): Parameters of every dimension.
    """

    _params: tuple[BasisParams, ...]

    def __init__(self, *params: BasisParams | Basis) -> None:
        """Initialize a tensor-product basis.

        Args:
            *params (BasisParams | Basis): One-dimensional parameters, or other
                bases whose dimensions are appended in order.

        Raises:
            DimensionMismatch: If no dimension is given.
            TypeError: If an argument is neither basis parameters nor a basis.
        """
        flat: list[BasisParams] = []
        for p in params:
            if isinstance(p, Basis):
                flat.extend(p.params)
            elif isinstance(p, (LinParams, SplineParams, ChebParams)):
                flat.append(p)
            else:
                raise TypeError(f"Expected basis parameters or a Basis, got {type(p).__name__}")

        if not flat:
            raise DimensionMismatch("A basis needs at least 1 dimension")
        self._params = tuple(flat)

    @property
    def params(self) -> tuple[BasisParams, ...]:
        """Parameters of every dimension."""
        return self._params

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        return len(self._params)

    @functools.cached_property
    def sizes(self) -> tuple[int, ...]:
        """Number of basis functions along each dimension."""
        return tuple(p.size for p in self._params)

    @property
    def size(self) -> int:
        """Total number of basis functions."""
        return int(np.prod(self.sizes))

    @functools.cached_property
    def domain(self) -> npt.NDArray[np.float64]:
        """Bounds of every dimension as a read-only array of shape ``(ndim, 2)``."""
        out = np.array([p.bounds for p in self._params], dtype=np.float64)
        out.flags.writeable = False
        return out

    def __len__(self) -> int:
        return self.ndim

    def __iter__(self) -> Iterator[BasisParams]:
        return iter(self._params)

    @overload
    def __getitem__(self, index: int) -> BasisParams: ...

    @overload
    def __getitem__(self, index: slice) -> Basis: ...

    def __getitem__(self, index: int | slice) -> BasisParams | Basis:
        if isinstance(index, slice):
            return Basis(*self._params[index])
        return self._params[index]

    def __repr__(self) -> str:
        inner = ", ".join(repr(p) for p in self._params)
        return f"Basis({inner})"

    def lattice(self) -> PointsLattice:
        """Get the lattice of interpolation nodes of the basis."""
        return PointsLattice(nodes(p) for p in self._params)

    def nodes(self) -> tuple[npt.NDArray[np.float64], tuple[npt.NDArray[np.float64], ...]]:
        """Get the interpolation nodes of the basis.

        Returns:
            tuple[npt.NDArray[np.float64], tuple[npt.NDArray[np.float64], ...]]:
            The full grid of nodes, of shape ``(size, ndim)`` in C order, and
            the nodes of every dimension.

        Example:
            >>> grid, per_dim = Basis(LinParams([0.0, 1.0]), LinParams([0.0, 2.0, 3.0])).nodes()
            >>> grid[:3]
            array([[0., 0.],
                   [0., 2.],
                   [0., 3.]])
        """
        lattice = self.lattice()
        return lattice.get_all_points(), lattice.pts_per_dir


__all__ = ["Basis"]

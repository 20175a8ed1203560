"""Tests for multi-dimensional basis matrices and their representations."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import pytest
import scipy.sparse as sps

from basismatrices import (
    BandedSparse,
    Basis,
    BasisMatrix,
    BasisRepresentation,
    ChebParams,
    DimensionMismatch,
    InvalidOrder,
    LinParams,
    PointsLattice,
    ShapeError,
    SplineParams,
    convert,
    evalbase,
    evaluate,
)


def _dense(mat: object) -> np.ndarray:
    if isinstance(mat, BandedSparse) or sps.issparse(mat):
        return mat.toarray()  # type: ignore[union-attr]
    return np.asarray(mat)


@pytest.fixture
def basis_2d() -> Basis:
    """Two-dimensional basis mixing a spline and a linear dimension."""
    return Basis(SplineParams([0.0, 0.5, 1.5, 2.0], 0, 2), LinParams([-1.0, 1.0], 4))


@pytest.fixture
def basis_3d() -> Basis:
    """Three-dimensional basis with every family."""
    return Basis(
        SplineParams([0.0, 1.0], 4, 3),
        LinParams([0.0, 0.4, 1.0]),
        ChebParams(3, -1.0, 1.0),
    )


class TestBasisMatrixInit:
    """Test the BasisMatrix container."""

    def test_properties(self) -> None:
        """Test representation, orders and values."""
        mats = (np.eye(2), np.eye(3))
        bm = BasisMatrix("tensor", [[0, 0]], [mats])
        assert bm.representation is BasisRepresentation.TENSOR
        assert bm.ndim == 2  # noqa: PLR2004
        assert len(bm) == 1
        nptest.assert_array_equal(bm.order, [[0, 0]])
        assert bm.get(0)[0] is mats[0]
        assert repr(bm) == "BasisMatrix(representation=tensor, order=[[0, 0]])"

    def test_order_is_read_only(self) -> None:
        """Test that the stored orders cannot be modified."""
        bm = BasisMatrix("expanded", [[0]], [np.eye(2)])
        with pytest.raises(ValueError, match="read-only"):
            bm.order[0, 0] = 1

    def test_mismatched_lengths(self) -> None:
        """Test that there must be an entry per order combination."""
        with pytest.raises(DimensionMismatch):
            BasisMatrix("direct", [[0, 0], [1, 0]], [(np.eye(2), np.eye(2))])
        with pytest.raises(DimensionMismatch):
            BasisMatrix("direct", [[0, 0]], [(np.eye(2),)])
        with pytest.raises(DimensionMismatch):
            BasisMatrix("direct", [0, 0], [(np.eye(2),)])

    def test_get_missing_order(self) -> None:
        """Test that unknown combinations raise KeyError."""
        bm = BasisMatrix("expanded", [[0, 0]], [np.eye(2)])
        with pytest.raises(KeyError):
            bm.get([1, 0])


class TestEvaluate:
    """Test the evaluation of multi-dimensional bases."""

    def test_tensor(self, basis_2d: Basis) -> None:
        """Test that the tensor representation holds per-dimension evaluations."""
        x0 = np.array([0.1, 0.7, 2.0])
        x1 = np.array([-1.0, 0.0])
        bm = evaluate(basis_2d, BasisRepresentation.TENSOR, (x0, x1), order=0)

        assert bm.representation is BasisRepresentation.TENSOR
        nptest.assert_array_equal(bm.order, [[0, 0]])
        m0, m1 = bm.values[0]
        nptest.assert_allclose(_dense(m0), evalbase(basis_2d[0], x0).toarray())
        nptest.assert_allclose(_dense(m1), evalbase(basis_2d[1], x1).toarray())

    def test_default_points_are_nodes(self, basis_2d: Basis) -> None:
        """Test that the default expanded matrix at the nodes is square and invertible."""
        bm = evaluate(basis_2d, "expanded")
        mat = bm.values[0]
        assert mat.shape == (basis_2d.size, basis_2d.size)
        assert np.linalg.matrix_rank(_dense(mat)) == basis_2d.size

    def test_expanded_is_kron_of_tensor(self, basis_2d: Basis) -> None:
        """Test Expanded == kron(Tensor_0, Tensor_1) on a grid."""
        lattice = PointsLattice([np.linspace(0.0, 2.0, 5), np.linspace(-1.0, 1.0, 3)])
        tensor = evaluate(basis_2d, "tensor", lattice)
        expanded = evaluate(basis_2d, "expanded", lattice)

        t0, t1 = (_dense(m) for m in tensor.values[0])
        nptest.assert_allclose(_dense(expanded.values[0]), np.kron(t0, t1), atol=1e-15)

    def test_expanded_is_kron_in_3d(self, basis_3d: Basis) -> None:
        """Test the Kronecker structure for three dimensions and nonzero orders."""
        pts = (np.array([0.2, 0.9]), np.array([0.1, 0.5, 0.6]), np.array([-0.3, 0.8]))
        orders = [[1, 0, 2], [-1, 1, 0]]
        tensor = evaluate(basis_3d, "tensor", pts, orders)
        expanded = evaluate(basis_3d, "expanded", pts, orders)

        for entry, full in zip(tensor.values, expanded.values, strict=True):
            t0, t1, t2 = (_dense(m) for m in entry)
            nptest.assert_allclose(_dense(full), np.kron(t0, np.kron(t1, t2)), atol=1e-12)

    def test_direct_rows_follow_grid(self, basis_2d: Basis) -> None:
        """Test that direct matrices repeat tensor rows in C order."""
        x0 = np.array([0.1, 0.7, 2.0])
        x1 = np.array([-1.0, 0.0])
        tensor = evaluate(basis_2d, "tensor", (x0, x1))
        direct = evaluate(basis_2d, "direct", (x0, x1))

        t0, t1 = (_dense(m) for m in tensor.values[0])
        d0, d1 = (_dense(m) for m in direct.values[0])
        nptest.assert_allclose(d0, np.repeat(t0, 2, axis=0))
        nptest.assert_allclose(d1, np.tile(t1, (3, 1)))

    def test_scattered_points(self, basis_2d: Basis) -> None:
        """Test that scattered points evaluate every dimension at its coordinate."""
        pts = np.array([[0.1, -0.5], [1.9, 0.9], [0.5, 0.0]])
        bm = evaluate(basis_2d, "direct", pts)
        d0, d1 = bm.values[0]
        nptest.assert_allclose(_dense(d0), evalbase(basis_2d[0], pts[:, 0]).toarray())
        nptest.assert_allclose(_dense(d1), evalbase(basis_2d[1], pts[:, 1]).toarray())

        expanded = evaluate(basis_2d, "expanded", pts)
        grid_values = evaluate(basis_2d, "expanded", (pts[:1, 0], pts[:1, 1])).values[0]
        nptest.assert_allclose(
            _dense(expanded.values[0])[:1], _dense(grid_values), atol=1e-15
        )

    def test_one_dimensional_points(self) -> None:
        """Test that a vector of points is accepted for a one-dimensional basis."""
        params = SplineParams([0.0, 1.0], 5, 3)
        bm = evaluate(Basis(params), "expanded", np.array([0.1, 0.4]))
        nptest.assert_allclose(
            _dense(bm.values[0]), evalbase(params, [0.1, 0.4]).toarray(), atol=1e-15
        )

    def test_all_dense_stays_dense(self) -> None:
        """Test that a Chebyshev-only basis gives dense expanded matrices."""
        basis = Basis(ChebParams(3, 0.0, 1.0), ChebParams(2, 0.0, 1.0))
        bm = evaluate(basis, "expanded")
        assert isinstance(bm.values[0], np.ndarray)
        assert bm.values[0].shape == (6, 6)

    def test_mixed_is_sparse(self, basis_3d: Basis) -> None:
        """Test that sparse factors give CSR expanded matrices."""
        bm = evaluate(basis_3d, "expanded")
        assert sps.issparse(bm.values[0])
        assert bm.values[0].format == "csr"

    def test_order_forms(self, basis_2d: Basis) -> None:
        """Test scalar, vector and matrix order requests."""
        assert evaluate(basis_2d, order=1).order.tolist() == [[1, 1]]
        assert evaluate(basis_2d, order=[1, 0]).order.tolist() == [[1, 0]]
        bm = evaluate(basis_2d, order=[[0, 0], [1, 0], [0, 1]])
        assert bm.order.tolist() == [[0, 0], [1, 0], [0, 1]]
        assert len(bm) == 3  # noqa: PLR2004

    def test_shared_per_dimension_evaluations(self, basis_2d: Basis) -> None:
        """Test that an order is evaluated once per dimension."""
        bm = evaluate(basis_2d, "tensor", order=[[0, 0], [1, 0]])
        assert bm.values[0][1] is bm.values[1][1]

    def test_invalid_order_shape(self, basis_2d: Basis) -> None:
        """Test that orders must have a column per dimension."""
        with pytest.raises(DimensionMismatch):
            evaluate(basis_2d, order=[0, 0, 0])
        with pytest.raises(DimensionMismatch):
            evaluate(basis_2d, order=np.zeros((2, 2, 2), dtype=int))

    def test_invalid_order_value(self, basis_2d: Basis) -> None:
        """Test that orders are validated for every dimension."""
        with pytest.raises(InvalidOrder):
            evaluate(basis_2d, order=[2, 0])

    def test_tensor_needs_grid(self, basis_2d: Basis) -> None:
        """Test that scattered points cannot be stored as a tensor."""
        with pytest.raises(ShapeError):
            evaluate(basis_2d, "tensor", np.zeros((3, 2)))

    def test_points_dimension_mismatch(self, basis_2d: Basis) -> None:
        """Test that points must have a coordinate per dimension."""
        with pytest.raises(DimensionMismatch):
            evaluate(basis_2d, "direct", np.zeros((3, 3)))
        with pytest.raises(DimensionMismatch):
            evaluate(basis_2d, "tensor", (np.zeros(2),))
        with pytest.raises(ShapeError):
            evaluate(basis_2d, "direct", np.zeros(3))

    def test_list_of_arrays_is_rejected(self, basis_2d: Basis) -> None:
        """Test that a list of per-dimension arrays is neither a grid nor scattered points."""
        xs, ys = np.array([0.1, 0.9]), np.array([0.2, 0.8])
        with pytest.raises(ShapeError, match="ambiguous points"):
            evaluate(basis_2d, "direct", [xs, ys])
        grid = evaluate(basis_2d, "expanded", (xs, ys)).values[0]
        scattered = evaluate(basis_2d, "expanded", np.column_stack([xs, ys])).values[0]
        assert grid.shape[0] == 4  # noqa: PLR2004
        assert scattered.shape[0] == 2  # noqa: PLR2004


class TestConvert:
    """Test conversions between representations."""

    def test_forward_chain(self, basis_2d: Basis) -> None:
        """Test that tensor -> direct -> expanded equals a direct expanded evaluation."""
        pts = (np.linspace(0.0, 2.0, 4), np.linspace(-1.0, 1.0, 3))
        tensor = evaluate(basis_2d, "tensor", pts, [[0, 0], [1, 1]])
        direct = convert(tensor, "direct")
        expanded = convert(direct, BasisRepresentation.EXPANDED)
        reference = evaluate(basis_2d, "expanded", pts, [[0, 0], [1, 1]])

        assert direct.representation is BasisRepresentation.DIRECT
        for got, want in zip(expanded.values, reference.values, strict=True):
            nptest.assert_allclose(_dense(got), _dense(want))

    def test_same_representation(self, basis_2d: Basis) -> None:
        """Test that converting to the same representation returns the input."""
        bm = evaluate(basis_2d, "direct")
        assert convert(bm, "direct") is bm

    @pytest.mark.parametrize(
        ("source", "target"),
        [("direct", "tensor"), ("expanded", "direct"), ("expanded", "tensor")],
    )
    def test_backward_raises(self, basis_2d: Basis, source: str, target: str) -> None:
        """Test that representations cannot be converted backward."""
        bm = evaluate(basis_2d, source)
        with pytest.raises(ValueError, match="cannot convert"):
            convert(bm, target)

    def test_select_orders(self, basis_2d: Basis) -> None:
        """Test that orders can be recombined from per-dimension evaluations."""
        tensor = evaluate(basis_2d, "tensor", order=[[0, 0], [1, 1]])
        mixed = convert(tensor, "expanded", order=[[1, 0], [0, 1]])
        reference = evaluate(basis_2d, "expanded", order=[[1, 0], [0, 1]])

        nptest.assert_array_equal(mixed.order, [[1, 0], [0, 1]])
        for got, want in zip(mixed.values, reference.values, strict=True):
            nptest.assert_allclose(_dense(got), _dense(want))

    def test_select_missing_order(self, basis_2d: Basis) -> None:
        """Test that unavailable per-dimension orders are reported."""
        tensor = evaluate(basis_2d, "tensor", order=[[0, 0], [1, 0]])
        with pytest.raises(DimensionMismatch, match="dimension"):
            convert(tensor, "direct", order=[0, 1])

    def test_select_from_expanded(self, basis_2d: Basis) -> None:
        """Test that expanded matrices can only select stored combinations."""
        bm = evaluate(basis_2d, "expanded", order=[[0, 0], [1, 1]])
        selected = convert(bm, "expanded", order=[1, 1])
        assert selected.values[0] is bm.values[1]
        with pytest.raises(DimensionMismatch):
            convert(bm, "expanded", order=[1, 0])

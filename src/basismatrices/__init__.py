"""Public API surface for basismatrices.

Defines package metadata and exported interfaces.
"""

from typing import Final

# Private API imports (accessible but not in __all__)
# Users can access private functions via: basismatrices._spline_impl._function_name, etc.
from . import (
    _basis_utils,  # noqa: F401
    _breaks_impl,  # noqa: F401
    _cheb_impl,  # noqa: F401
    _linear_impl,  # noqa: F401
    _spline_impl,  # noqa: F401
)

# Public API imports
from .banded import BandedSparse, row_kron
from .basis import Basis
from .basis_matrix import BasisMatrix, BasisRepresentation, convert, evaluate
from .breaks import BreakSequence, lookup
from .errors import (
    BasisMatricesError,
    DimensionMismatch,
    InvalidBreaks,
    InvalidOrder,
    ShapeError,
)
from .interp import Interpoland
from .lattice import PointsLattice
from .params import (
    BasisFamily,
    BasisParams,
    ChebParams,
    LinParams,
    SplineParams,
    construct_params,
    derivative_op,
    evalbase,
    nodes,
)
from .tolerance import (
    get_conservative_tolerance,
    get_default_tolerance,
    get_evenly_spaced_tolerance,
    get_machine_epsilon,
    get_strict_tolerance,
)

# Package metadata
__version__: Final[str] = "0.1.0"
__license__: Final[str] = "MIT"
__author__: Final[str] = "basismatrices developers"

# Public interface: only functions/classes that don't start with _
__all__ = [
    "BandedSparse",
    "Basis",
    "BasisFamily",
    "BasisMatricesError",
    "BasisMatrix",
    "BasisParams",
    "BasisRepresentation",
    "BreakSequence",
    "ChebParams",
    "DimensionMismatch",
    "Interpoland",
    "InvalidBreaks",
    "InvalidOrder",
    "LinParams",
    "PointsLattice",
    "ShapeError",
    "SplineParams",
    "__author__",
    "__license__",
    "__version__",
    "construct_params",
    "convert",
    "derivative_op",
    "evalbase",
    "evaluate",
    "get_conservative_tolerance",
    "get_default_tolerance",
    "get_evenly_spaced_tolerance",
    "get_machine_epsilon",
    "get_strict_tolerance",
    "lookup",
    "nodes",
    "row_kron",
]

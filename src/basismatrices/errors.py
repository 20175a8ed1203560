"""Exception types raised by basismatrices.

All exceptions derive from ``ValueError`` so that callers checking for the
usual numpy-style argument errors keep working.
"""


class BasisMatricesError(ValueError):
    """Base class for all basismatrices errors."""


class InvalidBreaks(BasisMatricesError):
    """Breakpoints are unsorted, too few, or not evenly spaced as claimed."""


class InvalidOrder(BasisMatricesError):
    """A spline order or a derivative/integral order is out of range."""


class ShapeError(BasisMatricesError):
    """Evaluation points do not have the required rank."""


class DimensionMismatch(BasisMatricesError):
    """Per-dimension inputs or order requests are incompatible with a basis."""


__all__ = [
    "BasisMatricesError",
    "DimensionMismatch",
    "InvalidBreaks",
    "InvalidOrder",
    "ShapeError",
]

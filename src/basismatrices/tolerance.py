"""Tolerances for floating-point comparisons of breakpoints and basis values."""

from functools import cache
from typing import Any, NamedTuple, cast

import numpy as np
from numpy import typing as npt

# Relative spacing error accepted when a break sequence is declared evenly spaced.
EVENLY_SPACED_RTOL: float = 5e-15


@cache
def _float_dtype_from_name(name: str) -> np.dtype[np.floating[Any]]:
    """Return the floating dtype named `name`.

    Args:
        name (str): Canonical NumPy dtype name (e.g., "float64").

    Returns:
        np.dtype[np.floating[Any]]: The floating-point dtype.

    Raises:
        ValueError: If `name` does not denote a floating-point dtype.
    """
    dtype_obj = np.dtype(name)
    if dtype_obj.kind != "f":
        raise ValueError(f"Unsupported dtype: {name}")
    return cast(np.dtype[np.floating[Any]], dtype_obj)


class _Presets(NamedTuple):
    """Tolerance values for single and double (or wider) precision."""

    float32: float
    float64: float


_PRESETS = {
    "default": _Presets(1e-6, 1e-12),
    "strict": _Presets(1e-7, 1e-15),
    "conservative": _Presets(1e-5, 1e-10),
}


def _lookup_preset(dtype: npt.DTypeLike, preset: str) -> float:
    dtype_obj = _float_dtype_from_name(np.dtype(dtype).name)
    values = _PRESETS[preset]
    return values.float32 if dtype_obj.itemsize <= 4 else values.float64  # noqa: PLR2004


def get_default_tolerance(dtype: npt.DTypeLike = np.float64) -> float:
    """Get the tolerance used to compare basis values.

    Args:
        dtype (npt.DTypeLike): Floating-point dtype. Defaults to float64.

    Returns:
        float: Tolerance for the given dtype.

    Raises:
        ValueError: If dtype is not a floating-point type.

    Example:
        >>> get_default_tolerance("float64")
        1e-12
    """
    return _lookup_preset(dtype, "default")


def get_strict_tolerance(dtype: npt.DTypeLike = np.float64) -> float:
    """Get the tolerance below which two breakpoints are considered equal.

    Args:
        dtype (npt.DTypeLike): Floating-point dtype. Defaults to float64.

    Returns:
        float: Strict tolerance for the given dtype.

    Raises:
        ValueError: If dtype is not a floating-point type.
    """
    return _lookup_preset(dtype, "strict")


def get_conservative_tolerance(dtype: npt.DTypeLike = np.float64) -> float:
    """Get a loose tolerance for quantities built from chained operators.

    Args:
        dtype (npt.DTypeLike): Floating-point dtype. Defaults to float64.

    Returns:
        float: Conservative tolerance for the given dtype.

    Raises:
        ValueError: If dtype is not a floating-point type.
    """
    return _lookup_preset(dtype, "conservative")


def get_machine_epsilon(dtype: npt.DTypeLike = np.float64) -> float:
    """Get machine epsilon for a given floating-point dtype.

    Args:
        dtype (npt.DTypeLike): Floating-point dtype. Defaults to float64.

    Returns:
        float: Machine epsilon for the given dtype.

    Raises:
        ValueError: If dtype is not a floating-point type.
    """
    return float(np.finfo(_float_dtype_from_name(np.dtype(dtype).name)).eps)


def get_evenly_spaced_tolerance(breaks: npt.ArrayLike) -> float:
    """Get the maximum second difference allowed in an evenly spaced break sequence.

    The tolerance scales with the magnitude of the breakpoints:
    ``EVENLY_SPACED_RTOL * mean(|breaks|)``.

    Args:
        breaks (npt.ArrayLike): Breakpoints.

    Returns:
        float: Absolute tolerance on ``|diff(diff(breaks))|``.
    """
    return EVENLY_SPACED_RTOL * float(np.mean(np.abs(np.asarray(breaks, dtype=np.float64))))


__all__ = [
    "EVENLY_SPACED_RTOL",
    "get_conservative_tolerance",
    "get_default_tolerance",
    "get_evenly_spaced_tolerance",
    "get_machine_epsilon",
    "get_strict_tolerance",
]

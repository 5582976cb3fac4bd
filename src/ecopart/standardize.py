"""
Row- or column-relative rescaling of a site-by-species matrix.

`axis` selects where the aggregate is computed: "rows" gives one mean/sd/sum/max
per sample unit, "columns" one per variable.
"""
from __future__ import annotations
from typing import Literal, Optional
import numpy as np
import pandas as pd

from .errors import DegenerateAxisError
from .transform import _values, _wrap
from .validators import ensure_nonnegative

Axis = Literal["rows", "columns"]

_NP_AXIS = {"rows": 1, "columns": 0}


def _np_axis(axis: str) -> int:
    try:
        return _NP_AXIS[axis]
    except KeyError:
        raise ValueError(f"axis must be 'rows' or 'columns', got {axis!r}") from None


def _check_divisor(df: pd.DataFrame, divisor: np.ndarray, axis: str, quantity: str) -> None:
    labels = df.index if axis == "rows" else df.columns
    bad = ~np.isfinite(divisor) | (divisor == 0)
    if np.any(bad):
        raise DegenerateAxisError(axis, labels[int(np.argmax(bad))], quantity)


def z_score(df: pd.DataFrame, axis: Axis = "columns") -> pd.DataFrame:
    """
    (x - mean) / sd along the axis, sd with ddof=1.

    Raises:
        DegenerateAxisError: If a slice is constant or has a single value
    """
    ax = _np_axis(axis)
    X = _values(df, "z_score")
    mu = X.mean(axis=ax, keepdims=True)
    n = X.shape[ax]
    sd = X.std(axis=ax, ddof=1, keepdims=True) if n > 1 else np.full_like(mu, np.nan)
    _check_divisor(df, sd.ravel(), axis, "standard deviation")
    return _wrap((X - mu) / sd, df)


def total_standardize(df: pd.DataFrame, axis: Axis = "rows") -> pd.DataFrame:
    """x / sum along the axis; each slice sums to 1 afterwards."""
    ax = _np_axis(axis)
    X = _values(df, "total_standardize")
    total = X.sum(axis=ax, keepdims=True)
    _check_divisor(df, total.ravel(), axis, "sum")
    return _wrap(X / total, df)


def max_standardize(df: pd.DataFrame, axis: Axis = "columns") -> pd.DataFrame:
    """x / max along the axis."""
    ax = _np_axis(axis)
    X = _values(df, "max_standardize")
    mx = X.max(axis=ax, keepdims=True)
    _check_divisor(df, mx.ravel(), axis, "maximum")
    return _wrap(X / mx, df)


def hellinger(df: pd.DataFrame, axis: Axis = "rows") -> pd.DataFrame:
    """
    Hellinger transform for nonnegative composition/count-like data:
    square root of the total-standardized values. Returns values in [0, 1].
    """
    _values(df, "hellinger")
    ensure_nonnegative(df, "Hellinger transform needs values >= 0")
    H = np.sqrt(total_standardize(df, axis).to_numpy())
    return _wrap(H, df)


def wisconsin(df: pd.DataFrame) -> pd.DataFrame:
    """
    Wisconsin double standardization: species divided by their column maximum,
    then sites divided by their row total.
    """
    return total_standardize(max_standardize(df, axis="columns"), axis="rows")


STANDARDIZATIONS = {
    "standardize": (z_score, "columns"),
    "total": (total_standardize, "rows"),
    "max": (max_standardize, "columns"),
    "hellinger": (hellinger, "rows"),
}


def standardize(df: pd.DataFrame, method: str, axis: Optional[Axis] = None) -> pd.DataFrame:
    """
    Dispatch by method name with each method's conventional default axis.

    Methods: "standardize" (z-score), "total", "max", "hellinger", "wisconsin".
    """
    if method == "wisconsin":
        if axis is not None:
            raise ValueError("wisconsin has a fixed axis order and takes no axis")
        return wisconsin(df)
    try:
        func, default_axis = STANDARDIZATIONS[method]
    except KeyError:
        raise ValueError(
            f"Unknown standardization method: {method!r}. "
            f"Expected one of {sorted(STANDARDIZATIONS) + ['wisconsin']}"
        ) from None
    return func(df, axis or default_axis)

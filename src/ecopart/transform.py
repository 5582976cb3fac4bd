"""
Element-wise transformations of a site-by-species matrix.

Each function maps every cell independently and returns a DataFrame with the
same index and columns. Inputs must be complete (impute or filter first).
"""
from __future__ import annotations
import math
import numpy as np
import pandas as pd

from .errors import DomainError
from .validators import assert_complete, first_cell


def _values(df: pd.DataFrame, operation: str) -> np.ndarray:
    assert_complete(df, operation)
    return df.to_numpy(dtype=float, copy=True)


def _check_domain(df: pd.DataFrame, X: np.ndarray, bad: np.ndarray, requirement: str) -> None:
    cell = first_cell(df, bad)
    if cell is not None:
        i, j = df.index.get_loc(cell[0]), df.columns.get_loc(cell[1])
        raise DomainError(cell[0], cell[1], X[i, j], requirement)


def _wrap(values: np.ndarray, like: pd.DataFrame) -> pd.DataFrame:
    return pd.DataFrame(values, index=like.index, columns=like.columns)


def presence_absence(df: pd.DataFrame) -> pd.DataFrame:
    """
    Clamp abundances to 1: cells > 1 become 1, every other cell is kept as is.

    Zeros and negative values pass through unchanged. Use
    presence_absence_binary for a strict 0/1 indicator.
    """
    X = _values(df, "presence_absence")
    X[X > 1] = 1.0
    return _wrap(X, df)


def presence_absence_binary(df: pd.DataFrame) -> pd.DataFrame:
    """Strict presence indicator: 1 where the value is > 0, else 0."""
    X = _values(df, "presence_absence_binary")
    return _wrap((X > 0).astype(float), df)


def log_transform(df: pd.DataFrame, base: float = 10) -> pd.DataFrame:
    """
    log_base(x) + 1 for x > 0; zeros stay zero (Anderson et al. 2006).

    Raises:
        ValueError: If base is not a positive real different from 1
        DomainError: On negative values
    """
    if not (np.isfinite(base) and base > 0 and base != 1):
        raise ValueError(f"Log base must be a positive real different from 1, got {base}")
    X = _values(df, "log_transform")
    _check_domain(df, X, X < 0, "log transform needs values >= 0")
    out = np.zeros_like(X)
    pos = X > 0
    out[pos] = np.log(X[pos]) / math.log(base) + 1.0
    return _wrap(out, df)


def square_root(df: pd.DataFrame) -> pd.DataFrame:
    X = _values(df, "square_root")
    _check_domain(df, X, X < 0, "square root needs values >= 0")
    return _wrap(np.sqrt(X), df)


def power_transform(df: pd.DataFrame, exponent: float) -> pd.DataFrame:
    """
    x ** exponent, typically with exponent in (0, 1).

    Negative values are only allowed with an integer exponent.
    """
    if not np.isfinite(exponent):
        raise ValueError(f"Exponent must be finite, got {exponent}")
    X = _values(df, "power_transform")
    if float(exponent) != int(exponent):
        _check_domain(df, X, X < 0, f"non-integer exponent {exponent} needs values >= 0")
    return _wrap(np.power(X, exponent), df)


def arcsine_sqrt(df: pd.DataFrame) -> pd.DataFrame:
    """
    (2 / pi) * asin(sqrt(x)) for proportions; maps [0, 1] onto [0, 1].
    """
    X = _values(df, "arcsine_sqrt")
    _check_domain(df, X, (X < 0) | (X > 1), "arcsine square root needs 0 <= value <= 1")
    return _wrap(2.0 * np.arcsin(np.sqrt(X)) / np.pi, df)


TRANSFORMS = {
    "clamp": presence_absence,
    "pa": presence_absence_binary,
    "log": log_transform,
    "sqrt": square_root,
    "power": power_transform,
    "arcsine": arcsine_sqrt,
}

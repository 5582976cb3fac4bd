from __future__ import annotations
import pandas as pd

from .errors import EmptyColumnError

_IMPUTE_METHODS = ("median", "mean")


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-column summary statistics ignoring missing cells.

    Args:
        df: Site-by-variable matrix, missing cells as NaN

    Returns:
        DataFrame indexed by the input's columns with
        mean, median, std (ddof=1), n_missing, n_present

    Raises:
        EmptyColumnError: If a column has no present values
    """
    present = df.notna().sum(axis=0)
    for col, n in present.items():
        if n == 0:
            raise EmptyColumnError(col)
    return pd.DataFrame({
        "mean": df.mean(axis=0, skipna=True),
        "median": df.median(axis=0, skipna=True),
        "std": df.std(axis=0, ddof=1, skipna=True),
        "n_missing": df.isna().sum(axis=0).astype(int),
        "n_present": present.astype(int),
    }, index=df.columns)


def missing_fraction(df: pd.DataFrame) -> pd.Series:
    """Fraction of missing cells in each column."""
    if len(df.index) == 0:
        return pd.Series(0.0, index=df.columns)
    return df.isna().sum(axis=0) / len(df.index)


def impute_missing(df: pd.DataFrame, method: str = "median") -> pd.DataFrame:
    """
    Replace missing cells with a column statistic computed over present values.

    Args:
        df: Input DataFrame
        method: "median" (even counts average the two middle values) or "mean"

    Returns:
        DataFrame with missing values filled; present cells unchanged

    Raises:
        ValueError: If the method is unknown
        EmptyColumnError: If a column with missing cells has no present values
    """
    if method not in _IMPUTE_METHODS:
        raise ValueError(f"Unknown imputation method: {method!r}. Expected one of {_IMPUTE_METHODS}")
    df = df.copy()
    for col in df.columns[df.isna().any(axis=0)]:
        s = df[col]
        if s.notna().sum() == 0:
            raise EmptyColumnError(col)
        fill = s.median() if method == "median" else s.mean()
        df[col] = s.fillna(fill)
    return df


def filter_by_sufficiency(df: pd.DataFrame,
                          max_missing_fraction: float,
                          *,
                          reference: pd.DataFrame | None = None) -> pd.DataFrame:
    """
    Drop columns whose fraction of missing cells is >= max_missing_fraction.

    Args:
        df: Matrix to filter (may already be imputed)
        max_missing_fraction: Threshold in [0, 1]
        reference: Original, pre-imputation matrix on which the missing
            fractions are computed; defaults to df itself

    Returns:
        DataFrame with insufficient columns removed, rows and column order preserved
    """
    if not 0.0 <= max_missing_fraction <= 1.0:
        raise ValueError(f"max_missing_fraction must lie in [0, 1], got {max_missing_fraction}")
    ref = df if reference is None else reference
    missing = [c for c in df.columns if c not in ref.columns]
    if missing:
        raise KeyError(f"Columns not found in reference matrix: {missing[:10]}")
    frac = missing_fraction(ref)
    keep = [c for c in df.columns if frac[c] < max_missing_fraction]
    return df.loc[:, keep].copy()


def filter_by_occurrence(df: pd.DataFrame, min_sites: int) -> pd.DataFrame:
    """
    Drop species present (value > 0) in fewer than min_sites sample units.
    """
    if min_sites < 0:
        raise ValueError(f"min_sites must be non-negative, got {min_sites}")
    occurrences = (df > 0).sum(axis=0)
    return df.loc[:, occurrences >= min_sites].copy()

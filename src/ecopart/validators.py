from __future__ import annotations
import numpy as np
import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema, Check

from .errors import DomainError, MissingValueError

# any column name, values coercible to float, missing allowed
schema_matrix = DataFrameSchema(
    columns={".*": Column(float, nullable=True, coerce=True, regex=True)},
    index=pa.Index(unique=True),
    unique_column_names=True,
)

schema_complete = DataFrameSchema(
    columns={".*": Column(float, Check(np.isfinite, element_wise=True), nullable=False, coerce=True, regex=True)},
    index=pa.Index(unique=True),
    unique_column_names=True,
)


def assert_community_matrix(df: pd.DataFrame) -> pd.DataFrame:
    """Validate labels and numeric content; returns the float-coerced frame."""
    return schema_matrix.validate(df, lazy=True)


def first_cell(df: pd.DataFrame, mask: np.ndarray):
    """(row label, column label) of the first True cell of mask in row-major order, or None."""
    hits = np.argwhere(mask)
    if len(hits) == 0:
        return None
    i, j = hits[0]
    return df.index[i], df.columns[j]


def assert_complete(df: pd.DataFrame, operation: str = "operation") -> None:
    """Raise MissingValueError naming the first missing cell."""
    cell = first_cell(df, df.isna().to_numpy())
    if cell is not None:
        raise MissingValueError(cell[0], cell[1], operation)


def ensure_nonnegative(df: pd.DataFrame, requirement: str = "values must be >= 0") -> pd.DataFrame:
    """Raise DomainError on the first negative cell; returns df unchanged otherwise."""
    X = df.to_numpy(dtype=float)
    cell = first_cell(df, X < 0)
    if cell is not None:
        raise DomainError(cell[0], cell[1], df.loc[cell[0], cell[1]], requirement)
    return df

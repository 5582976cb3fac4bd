from __future__ import annotations
from pathlib import Path
import pandas as pd

from .config import KEYS, MISSING_MARKERS, RAW_ENV_CSV, RAW_SPECIES_CSV
from .validators import assert_community_matrix

_SEP_BY_SUFFIX = {".csv": ",", ".tsv": "\t", ".tab": "\t", ".txt": "\t"}


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize column names by stripping whitespace, replacing spaces with underscores,
    and removing special characters.

    Args:
        df: Input DataFrame

    Returns:
        DataFrame with normalized column names
    """
    df = df.copy()
    df.columns = (
        df.columns
        .astype(str)
        .str.strip()
        .str.replace(r"\s+", "_", regex=True)
        .str.replace(r"[^0-9A-Za-z_.]", "", regex=True)
    )
    return df


def harmonize_ids(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize sample-unit labels by converting them to stripped strings.

    Args:
        df: Input DataFrame indexed by sample unit

    Returns:
        DataFrame with a string index named after KEYS[0]
    """
    df = df.copy()
    df.index = df.index.astype(str).str.strip()
    df.index.name = KEYS[0]
    return df


def _infer_sep(path: Path) -> str:
    try:
        return _SEP_BY_SUFFIX[path.suffix.lower()]
    except KeyError:
        raise ValueError(
            f"Cannot infer delimiter for {path.name!r}; pass sep explicitly "
            f"(known suffixes: {sorted(_SEP_BY_SUFFIX)})"
        ) from None


def read_matrix(path: str | Path,
                *,
                sep: str | None = None,
                index_col: int | str = 0,
                numeric: bool = True) -> pd.DataFrame:
    """
    Read a delimited site-by-variable table.

    The first column (or `index_col`) holds the sample-unit labels. Empty
    fields and the markers in MISSING_MARKERS load as NaN, never as zero.

    Args:
        path: Path to the delimited text file
        sep: Field delimiter; inferred from the suffix when None
        index_col: Column holding the row labels
        numeric: Require every variable to be numeric (species tables);
            set False for environmental tables with categorical columns

    Returns:
        DataFrame indexed by sample unit

    Raises:
        ValueError: On duplicate row/column labels
        pandera.errors.SchemaErrors: If numeric and a variable holds non-numeric values
    """
    path = Path(path)
    df = pd.read_csv(
        path,
        sep=sep or _infer_sep(path),
        index_col=index_col,
        na_values=MISSING_MARKERS,
        keep_default_na=True,
        skipinitialspace=True,
    )
    df = normalize_columns(df)
    df = harmonize_ids(df)

    if not df.index.is_unique:
        dups = df.index[df.index.duplicated()].unique()
        raise ValueError(f"{path.name} has duplicate sample units (first 10): {dups[:10].tolist()}")
    if not df.columns.is_unique:
        dups = df.columns[df.columns.duplicated()].unique()
        raise ValueError(f"{path.name} has duplicate variables (first 10): {dups[:10].tolist()}")

    if numeric:
        df = assert_community_matrix(df)
    return df


def read_species_raw(path: str | Path | None = None) -> pd.DataFrame:
    return read_matrix(path or RAW_SPECIES_CSV)


def read_env_raw(path: str | Path | None = None) -> pd.DataFrame:
    return read_matrix(path or RAW_ENV_CSV, numeric=False)

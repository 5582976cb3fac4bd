from __future__ import annotations
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union
import pandas as pd

from .config import (
    DEFAULT_IMPUTE_METHOD, DEFAULT_MAX_MISSING_FRACTION, DEFAULT_PERMUTATIONS,
)
from .dataframe_ops import align_blocks_by_index, build_predictor_groups
from .ingest import read_env_raw, read_species_raw
from .reporting import print_partition_report
from .screening import filter_by_sufficiency, impute_missing, summarize
from .standardize import STANDARDIZATIONS, standardize
from .transform import TRANSFORMS
from .varpart import VarianceFractionSet, partition_variance, significance_table

Step = Union[str, tuple]


def screen_matrix(df: pd.DataFrame,
                  *,
                  impute: str = DEFAULT_IMPUTE_METHOD,
                  max_missing_fraction: float = DEFAULT_MAX_MISSING_FRACTION,
                  verbose: bool = False) -> pd.DataFrame:
    """
    Drop insufficiently sampled columns (judged on the original matrix),
    then impute the remaining missing cells.
    """
    kept = filter_by_sufficiency(df, max_missing_fraction, reference=df)
    dropped = [c for c in df.columns if c not in kept.columns]
    if verbose:
        print(f"Screening: {df.shape[0]} sample units x {df.shape[1]} variables")
        if dropped:
            print(f"  dropped {len(dropped)} columns with >= {max_missing_fraction:.0%} missing: {dropped}")
        if kept.shape[1]:
            stats = summarize(kept)
            print(f"  {int(stats['n_missing'].sum())} missing cells imputed by column {impute}")
    if kept.shape[1] == 0:
        print("Warning: no columns left after the sufficiency filter")
        return kept
    return impute_missing(kept, impute)


def _apply_step(df: pd.DataFrame, step: Step) -> pd.DataFrame:
    name, kwargs = (step, {}) if isinstance(step, str) else (step[0], dict(step[1]))
    if name in TRANSFORMS:
        return TRANSFORMS[name](df, **kwargs)
    if name in STANDARDIZATIONS or name == "wisconsin":
        return standardize(df, name, **kwargs)
    raise ValueError(f"Unknown step {name!r}. Transforms: {sorted(TRANSFORMS)}, "
                     f"standardizations: {sorted(STANDARDIZATIONS) + ['wisconsin']}")


def prepare_community(df: pd.DataFrame, steps: Sequence[Step] = ("hellinger",)) -> pd.DataFrame:
    """
    Apply named transformation / standardization steps in order.

    A step is a name ("sqrt", "hellinger", ...) or a (name, kwargs) pair,
    e.g. ("log", {"base": 2}) or ("standardize", {"axis": "rows"}).
    """
    out = df
    for step in steps:
        out = _apply_step(out, step)
    return out


def run_partition(species: pd.DataFrame,
                  env: pd.DataFrame,
                  groups: Mapping[str, Sequence[str]],
                  *,
                  steps: Sequence[Step] = ("hellinger",),
                  permutations: int = DEFAULT_PERMUTATIONS,
                  seed: int | None = None,
                  verbose: bool = False) -> tuple[VarianceFractionSet, Optional[pd.DataFrame]]:
    """
    Transform the community matrix and partition its variation among the
    named predictor groups of env, testing every testable fraction.

    Returns:
        (partition, significance table); the table is None when permutations is 0
    """
    species, env = align_blocks_by_index([species, env], how="inner")
    if verbose:
        print(f"Partitioning {species.shape[1]} species over {species.shape[0]} shared sample units")
    response = prepare_community(species, steps)
    predictor_groups = build_predictor_groups(env, groups)
    partition = partition_variance(response, predictor_groups, verbose=verbose)
    significance = significance_table(partition, permutations, seed=seed) if permutations else None
    if verbose:
        print_partition_report(partition, significance)
    return partition, significance


def run_from_files(groups: Mapping[str, Sequence[str]],
                   species_path: str | Path | None = None,
                   env_path: str | Path | None = None,
                   **kwargs) -> tuple[VarianceFractionSet, Optional[pd.DataFrame]]:
    # ---- Species ----
    species = read_species_raw(species_path)
    species = screen_matrix(species, verbose=kwargs.get("verbose", False))

    # ---- Environment ----
    env = read_env_raw(env_path)
    wanted = [c for cols in groups.values() for c in cols]
    env = env.loc[:, wanted].copy()
    numeric = env.select_dtypes(include="number").columns
    env[numeric] = impute_missing(env[numeric], DEFAULT_IMPUTE_METHOD)
    env = env.dropna()

    return run_partition(species, env, groups, **kwargs)

"""
Variance partitioning of community composition among predictor groups.

Adjusted R² values of RDA models fitted on every union of predictor groups are
combined by inclusion-exclusion into individual fractions. For two groups
A and B:

    rA, rB, rAB = adjR2(A), adjR2(B), adjR2(A + B)
    shared-A-B  = rA + rB - rAB
    unique-A    = rA - shared-A-B          (= rAB - rB)
    unique-B    = rB - shared-A-B          (= rAB - rA)
    residual    = 1 - rAB

With N groups, writing R(U) for the adjusted R² of the union U and W for all
groups, h(V) = R(W) - R(W minus V) is the variance lost when the groups in V
are dropped, and the fraction shared exactly by the groups in S is the Möbius
inversion f(S) = sum over T in S of (-1)^(|S|-|T|) h(T).

Fractions coming from a direct fit (each union model, and each unique fraction
as a partial RDA conditioned on the other groups) are testable by permutation;
shared fractions and the residual are obtained only by subtraction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Callable, Dict, Hashable, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .config import DEFAULT_PERMUTATIONS, PARTITION_RTOL
from .dataframe_ops import PredictorGroup, as_predictor_groups, assert_same_index
from .errors import NotTestableError, PartitionInvariantError
from .ordination import OrdinationResult, fit_rda
from .significance import PermutationTestResult, permutation_test

__all__ = [
    "VarianceFractionSet",
    "fractions_from_adjusted_r2",
    "partition_variance",
    "test_fraction",
    "significance_table",
]

MIN_GROUPS, MAX_GROUPS = 2, 4

# agreement required between a partial-RDA adjusted R² and the unique fraction
# derived by subtraction
_PARTIAL_ATOL = 1e-8


def combined_id(names: Iterable[str]) -> str:
    return "+".join(names)


def fraction_id(names: Sequence[str]) -> str:
    if len(names) == 1:
        return f"unique-{names[0]}"
    return "shared-" + "-".join(names)


@dataclass(eq=False)
class VarianceFractionSet:
    """
    Result of a variance partitioning.

    Attributes:
        groups: Predictor group names, in the order given
        fractions: Individual fractions (unique-*, shared-*, residual); sum to 1
        combined: Adjusted R² of each directly fitted union of groups (A, B, A+B, ...)
        testable: Testability flag for every id in combined and fractions
        models: Fitted OrdinationResult for each testable id, when fitted here
        n_samples: Number of sample units, when fitted here
    """
    groups: tuple
    fractions: pd.Series
    combined: pd.Series
    testable: pd.Series
    models: Dict[str, OrdinationResult] = field(default_factory=dict, repr=False)
    n_samples: Optional[int] = None

    @property
    def total_explained(self) -> float:
        return float(self.combined[combined_id(self.groups)])

    def table(self) -> pd.DataFrame:
        """Combined and individual fractions with their testability."""
        kind = ["combined"] * len(self.combined) + ["individual"] * len(self.fractions)
        values = pd.concat([self.combined, self.fractions])
        return pd.DataFrame({
            "kind": kind,
            "adj_r2": values.to_numpy(),
            "testable": self.testable.reindex(values.index).to_numpy(),
        }, index=values.index)


def _key(names) -> frozenset:
    if isinstance(names, str):
        return frozenset(n.strip() for n in names.split("+"))
    return frozenset(names)


def _check_groups(names: Sequence[str]) -> None:
    if not MIN_GROUPS <= len(names) <= MAX_GROUPS:
        raise ValueError(f"Variance partitioning needs {MIN_GROUPS} to {MAX_GROUPS} groups, got {len(names)}")
    if len(set(names)) != len(names):
        raise ValueError(f"Group names must be unique, got {list(names)}")
    bad = [n for n in names if "+" in n]
    if bad:
        raise ValueError(f"Group names may not contain '+': {bad}")


def fractions_from_adjusted_r2(adj_r2: Mapping[Hashable, float],
                               group_names: Sequence[str]) -> VarianceFractionSet:
    """
    Combine adjusted R² values of all group unions into variance fractions.

    Args:
        adj_r2: Adjusted R² per union of groups. Keys are tuples/frozensets of
            group names or strings like "A+B"; every non-empty union is required.
        group_names: Group names in reporting order

    Returns:
        VarianceFractionSet without fitted models

    Raises:
        KeyError: If a union is missing
        PartitionInvariantError: If a value is not finite or the fractions do
            not sum to 1 within PARTITION_RTOL
    """
    names = tuple(group_names)
    _check_groups(names)
    R = {_key(k): float(v) for k, v in adj_r2.items()}

    unions = [c for size in range(1, len(names) + 1) for c in combinations(names, size)]
    missing = [combined_id(c) for c in unions if frozenset(c) not in R]
    if missing:
        raise KeyError(f"Adjusted R² missing for unions: {missing}")
    for c in unions:
        if not np.isfinite(R[frozenset(c)]):
            raise PartitionInvariantError(
                f"Adjusted R² of {combined_id(c)!r} is not finite ({R[frozenset(c)]}); "
                "the model has too many predictors for the number of sample units"
            )

    W = frozenset(names)
    R[frozenset()] = 0.0

    def h(V: frozenset) -> float:
        return R[W] - R[W - V]

    fractions = {}
    for S in unions:
        fractions[fraction_id(S)] = sum(
            (-1) ** (len(S) - k) * h(frozenset(T))
            for k in range(0, len(S) + 1)
            for T in combinations(S, k)
        )
    fractions["residual"] = 1.0 - R[W]

    total = float(sum(fractions.values()))
    if not np.isclose(total, 1.0, rtol=PARTITION_RTOL, atol=0.0):
        raise PartitionInvariantError(f"Variance fractions sum to {total!r}, not 1", total=total)

    combined = pd.Series({combined_id(c): R[frozenset(c)] for c in unions}, name="adj_r2")
    fractions = pd.Series(fractions, name="adj_r2")
    testable = pd.Series(
        {**{k: True for k in combined.index},
         **{k: k.startswith("unique-") for k in fractions.index}},
        name="testable",
    )
    return VarianceFractionSet(groups=names, fractions=fractions, combined=combined, testable=testable)


def partition_variance(species: pd.DataFrame,
                       groups,
                       *,
                       fit: Callable[..., OrdinationResult] = fit_rda,
                       verbose: bool = False) -> VarianceFractionSet:
    """
    Partition the variation of a (transformed) community matrix among 2-4
    predictor groups.

    Args:
        species: Site-by-species response, complete and already transformed
        groups: Sequence of PredictorGroup, or mapping name -> DataFrame,
            all indexed like species
        fit: Ordination routine, called as fit(species, X) for union models and
            fit(species, X, conditioning=Z) for unique fractions
        verbose: Print each fitted model

    Returns:
        VarianceFractionSet with the fitted model of every testable fraction

    Raises:
        PartitionInvariantError: If fractions do not sum to 1, an adjusted R²
            is not finite, or a partial model disagrees with its unique fraction
    """
    groups = as_predictor_groups(groups)
    names = [g.name for g in groups]
    _check_groups(names)

    seen: dict = {}
    for g in groups:
        assert_same_index(species, g.data)
        for c in g.data.columns:
            if c in seen:
                raise ValueError(f"Column {c!r} is in both group {seen[c]!r} and group {g.name!r}")
            seen[c] = g.name

    def _union(members: Sequence[PredictorGroup]) -> pd.DataFrame:
        return pd.concat([g.data for g in members], axis=1)

    models: Dict[str, OrdinationResult] = {}
    adj = {}
    for size in range(1, len(groups) + 1):
        for members in combinations(groups, size):
            key = combined_id(g.name for g in members)
            res = fit(species, _union(members))
            models[key] = res
            adj[key] = res.adj_r2
            if verbose:
                print(f"Fitted [{key}]: R2={res.r2:.4f}, adjR2={res.adj_r2:.4f}, rank={res.rank}")

    vfs = fractions_from_adjusted_r2(adj, names)

    for g in groups:
        others = [o for o in groups if o is not g]
        fid = fraction_id([g.name])
        res = fit(species, g.data, conditioning=_union(others))
        if not np.isclose(res.adj_r2, vfs.fractions[fid], rtol=0.0, atol=_PARTIAL_ATOL):
            raise PartitionInvariantError(
                f"Partial model for {fid!r} gives adjusted R² {res.adj_r2!r}, "
                f"but the fraction derived from the union models is {vfs.fractions[fid]!r}"
            )
        models[fid] = res
        if verbose:
            print(f"Fitted [{g.name} | {combined_id(o.name for o in others)}]: adjR2={res.adj_r2:.4f}")

    vfs.models = models
    vfs.n_samples = len(species.index)
    return vfs


def test_fraction(partition: VarianceFractionSet,
                  fraction: str,
                  permutations: int = DEFAULT_PERMUTATIONS,
                  *,
                  seed: Optional[int] = None) -> PermutationTestResult:
    """
    Permutation test of one testable fraction (a union model or a unique fraction).

    Raises:
        KeyError: If the fraction id is unknown
        ValueError: If the fraction's model has no constrained rank
        NotTestableError: For shared fractions and the residual, or when no
            fitted model is attached
    """
    if fraction not in partition.testable.index:
        raise KeyError(f"Unknown fraction {fraction!r}. Available: {list(partition.testable.index)}")
    if not partition.testable[fraction]:
        raise NotTestableError(fraction)
    model = partition.models.get(fraction)
    if model is None:
        raise NotTestableError(fraction, "no fitted model is attached to this partition")
    return permutation_test(model, permutations, seed=seed)


test_fraction.__test__ = False  # keep pytest from collecting it


def significance_table(partition: VarianceFractionSet,
                       permutations: int = DEFAULT_PERMUTATIONS,
                       *,
                       seed: Optional[int] = None) -> pd.DataFrame:
    """
    Test every testable fraction; one row per fraction with F, p and df.

    A fraction whose model has no constrained rank (constant or aliased
    predictors) gets F and p_value NaN and df_model 0.
    """
    rng = np.random.default_rng(seed)
    rows = {}
    for fid in partition.testable.index[partition.testable.to_numpy(dtype=bool)]:
        model = partition.models.get(fid)
        if model is None:
            raise NotTestableError(fid, "no fitted model is attached to this partition")
        if model.rank == 0:
            rows[fid] = {
                "adj_r2": model.adj_r2,
                "F": np.nan,
                "p_value": np.nan,
                "df_model": 0,
                "df_residual": model.df_residual,
                "n_perm": 0,
            }
            continue
        res = permutation_test(model, permutations, rng=rng)
        rows[fid] = {
            "adj_r2": model.adj_r2,
            "F": res.statistic,
            "p_value": res.p_value,
            "df_model": res.df_model,
            "df_residual": res.df_residual,
            "n_perm": res.n_perm,
        }
    return pd.DataFrame.from_dict(rows, orient="index")

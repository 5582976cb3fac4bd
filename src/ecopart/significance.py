"""
Permutation tests for fitted constrained ordinations.

The statistic is vegan's pseudo-F,

    F = (constrained inertia / m) / (residual inertia / (n - m - p - 1)),

with m the rank of the constraints and p the rank of the conditioning
variables. Under the null, rows of the response (residuals of the conditioning
model for partial fits) are exchangeable, so the response rows are permuted
and F recomputed. p = (#{F* >= F} + 1) / (B + 1).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import DEFAULT_PERMUTATIONS
from .ordination import OrdinationResult, _project

__all__ = ["PermutationTestResult", "pseudo_f", "permutation_test", "plot_permutation_null"]

_EPS = np.sqrt(np.finfo(float).eps)


@dataclass
class PermutationTestResult:
    statistic: float
    p_value: float
    df_model: int
    df_residual: int
    n_perm: int
    method: str = "permutation_pseudo_F"
    null_distribution: Optional[np.ndarray] = field(default=None, repr=False)


def pseudo_f(Y: np.ndarray, X: np.ndarray, df_model: int, df_residual: int) -> float:
    fitted = _project(X, Y)
    ss_fit = float(np.sum(fitted * fitted))
    ss_res = float(np.sum(Y * Y)) - ss_fit
    if ss_res <= 0:
        return float("inf")
    return (ss_fit / df_model) / (ss_res / df_residual)


def permutation_test(result: OrdinationResult,
                     permutations: int = DEFAULT_PERMUTATIONS,
                     *,
                     seed: Optional[int] = None,
                     rng: Optional[np.random.Generator] = None) -> PermutationTestResult:
    """
    Test the constrained component of a fitted model against row permutations.

    Args:
        result: Output of fit_rda / fit_cca
        permutations: Number of permutations
        seed: Seed for a fresh generator when rng is not given
        rng: numpy Generator to draw permutations from

    Raises:
        ValueError: If the model has no constrained rank or no residual degrees of freedom
    """
    if permutations < 1:
        raise ValueError(f"permutations must be >= 1, got {permutations}")
    df_model = result.rank
    df_resid = result.df_residual
    if df_model <= 0:
        raise ValueError("Model has no constrained component to test (rank 0)")
    if df_resid <= 0:
        raise ValueError(f"Model leaves no residual degrees of freedom (n={result.n_samples}, "
                         f"rank={df_model}, conditioning rank={result.conditioning_rank})")
    if rng is None:
        rng = np.random.default_rng(seed)

    Y, X = result.Y_model, result.X_model
    F_obs = pseudo_f(Y, X, df_model, df_resid)

    F_null = np.empty(permutations)
    for b in range(permutations):
        perm = rng.permutation(Y.shape[0])
        F_null[b] = pseudo_f(Y[perm], X, df_model, df_resid)

    count_ge = int(np.sum(F_null >= F_obs - _EPS)) + 1  # include observed
    return PermutationTestResult(
        statistic=float(F_obs),
        p_value=count_ge / (permutations + 1),
        df_model=int(df_model),
        df_residual=int(df_resid),
        n_perm=int(permutations),
        null_distribution=F_null,
    )


def plot_permutation_null(test: PermutationTestResult, *, ax=None, title: Optional[str] = None):
    """
    Histogram of the permutation null distribution with the observed pseudo-F.

    Returns
    -------
    (fig, ax, info) where info holds F_obs, p_value, df and n_perm
    """
    import matplotlib.pyplot as plt

    if test.null_distribution is None:
        raise ValueError("Test result carries no null distribution")
    F_null = test.null_distribution

    created_fig = False
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(8, 5))
        created_fig = True
    else:
        fig = ax.figure

    bins = max(10, int(np.sqrt(len(F_null))))
    ax.hist(F_null, bins=bins, color="#cbd5e1", edgecolor="#94a3b8", alpha=0.9, label="Permutation null")
    ax.axvline(test.statistic, color="#ef4444", lw=2, label=f"Observed F = {test.statistic:.3f}")

    ttl = title or "Pseudo-F null distribution"
    subtitle = f"p={test.p_value:.3f}, df=({test.df_model},{test.df_residual}), perms={test.n_perm}"
    ax.set_title(ttl + "\n" + subtitle)
    ax.set_xlabel("Pseudo-F under H0 (permuted rows)")
    ax.set_ylabel("Frequency")
    ax.legend(loc="upper right")

    if created_fig:
        fig.tight_layout()

    info = {
        "F_obs": float(test.statistic),
        "p_value": float(test.p_value),
        "df_model": int(test.df_model),
        "df_residual": int(test.df_residual),
        "n_perm": int(test.n_perm),
    }
    return fig, ax, info

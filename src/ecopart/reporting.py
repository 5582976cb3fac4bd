"""
Tables and plots for screening and variance partitioning results.
"""
from __future__ import annotations
from typing import Optional, Sequence
import pandas as pd

from .varpart import VarianceFractionSet


def fraction_table(partition: VarianceFractionSet) -> pd.DataFrame:
    """partition.table() with the share of each fraction in percent."""
    out = partition.table()
    out["percent"] = 100.0 * out["adj_r2"]
    return out


def print_partition_report(partition: VarianceFractionSet,
                           significance: Optional[pd.DataFrame] = None) -> None:
    table = fraction_table(partition)
    n = f", n={partition.n_samples}" if partition.n_samples is not None else ""
    print(f"\n=== Variance partitioning ({', '.join(partition.groups)}{n}) ===")
    print(f"{'Fraction':<24} {'Adj. R2':>10} {'Testable':>9} {'p-value':>9}")
    print("-" * 56)
    for kind in ("combined", "individual"):
        for fid, row in table[table["kind"] == kind].iterrows():
            p = ""
            if significance is not None and fid in significance.index:
                p = f"{significance.loc[fid, 'p_value']:.3f}"
            print(f"{fid:<24} {row['adj_r2']:>10.4f} {str(bool(row['testable'])):>9} {p:>9}")
        print("-" * 56)
    negative = partition.fractions[partition.fractions < 0]
    if len(negative):
        print(f"Note: negative fractions ({', '.join(negative.index)}) are reported as is; "
              "read them as zero explained variance.")


def plot_fractions(partition: VarianceFractionSet, *, ax=None, title: Optional[str] = None):
    """
    Bar chart of the individual fractions, testable ones highlighted.

    Returns
    -------
    (fig, ax, info) where info maps fraction id -> value
    """
    import matplotlib.pyplot as plt

    created_fig = False
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(8, 5))
        created_fig = True
    else:
        fig = ax.figure

    fr = partition.fractions
    colors = ["#ef4444" if partition.testable[f] else "#94a3b8" for f in fr.index]
    ax.bar(range(len(fr)), fr.to_numpy(), color=colors, edgecolor="#374151")
    ax.set_xticks(range(len(fr)))
    ax.set_xticklabels(fr.index, rotation=30, ha="right")
    ax.axhline(0, color="#374151", lw=0.8)
    ax.set_ylabel("Adjusted R²")
    ax.set_title(title or f"Variance partitioning: {' / '.join(partition.groups)}")

    if created_fig:
        fig.tight_layout()
    return fig, ax, fr.to_dict()


def plot_column_distributions(before: pd.DataFrame,
                              after: pd.DataFrame,
                              columns: Optional[Sequence] = None,
                              *,
                              bins: int = 20):
    """
    Histograms of selected columns before and after a transformation.

    Returns
    -------
    (fig, axes, info) where info maps column -> (skew before, skew after)
    """
    import matplotlib.pyplot as plt

    cols = list(columns) if columns is not None else list(before.columns[:4])
    absent = [c for c in cols if c not in before.columns or c not in after.columns]
    if absent:
        raise KeyError(f"Columns not found in both frames: {absent}")

    fig, axes = plt.subplots(2, len(cols), figsize=(3.5 * len(cols), 6), squeeze=False)
    info = {}
    for j, c in enumerate(cols):
        axes[0, j].hist(before[c].dropna(), bins=bins, color="#cbd5e1", edgecolor="#94a3b8")
        axes[0, j].set_title(f"{c} (raw)")
        axes[1, j].hist(after[c].dropna(), bins=bins, color="#fecaca", edgecolor="#ef4444")
        axes[1, j].set_title(f"{c} (transformed)")
        info[c] = (float(before[c].skew()), float(after[c].skew()))
    axes[0, 0].set_ylabel("Frequency")
    axes[1, 0].set_ylabel("Frequency")
    fig.tight_layout()
    return fig, axes, info

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from ecopart.ordination import fit_rda
from ecopart.reporting import fraction_table, plot_column_distributions, plot_fractions
from ecopart.significance import permutation_test, plot_permutation_null
from ecopart.standardize import hellinger
from ecopart.varpart import fractions_from_adjusted_r2


def _partition():
    return fractions_from_adjusted_r2({"A": 0.30, "B": 0.25, "A+B": 0.40}, ["A", "B"])


def _counts(n=20, seed=5):
    rng = np.random.default_rng(seed)
    return pd.DataFrame(rng.poisson(3.0, size=(n, 3)) + 1.0,
                        index=[f"S{i}" for i in range(n)], columns=["sp0", "sp1", "sp2"])


def test_fraction_table_percent():
    table = fraction_table(_partition())
    assert table.loc["unique-A", "percent"] == pytest.approx(15.0)
    assert table.loc["residual", "percent"] == pytest.approx(60.0)


def test_plot_fractions_one_bar_per_fraction():
    vfs = _partition()
    fig, ax, info = plot_fractions(vfs, title="A vs B")
    assert len(ax.patches) == len(vfs.fractions)
    assert set(info) == set(vfs.fractions.index)
    assert info["shared-A-B"] == pytest.approx(0.15)
    assert ax.get_title() == "A vs B"
    plt.close(fig)


def test_plot_fractions_on_given_axes():
    fig, ax = plt.subplots()
    fig2, ax2, _ = plot_fractions(_partition(), ax=ax)
    assert fig2 is fig and ax2 is ax
    plt.close(fig)


def test_plot_permutation_null():
    counts = _counts()
    env = pd.DataFrame({"g": np.linspace(0, 1, 20)}, index=counts.index)
    test = permutation_test(fit_rda(hellinger(counts), env), permutations=29, seed=2)
    fig, ax, info = plot_permutation_null(test)
    assert set(info) == {"F_obs", "p_value", "df_model", "df_residual", "n_perm"}
    assert info["n_perm"] == 29
    assert info["df_model"] == 1
    assert f"p={test.p_value:.3f}" in ax.get_title()
    plt.close(fig)


def test_plot_permutation_null_needs_distribution():
    counts = _counts()
    env = pd.DataFrame({"g": np.linspace(0, 1, 20)}, index=counts.index)
    test = permutation_test(fit_rda(hellinger(counts), env), permutations=9, seed=2)
    test.null_distribution = None
    with pytest.raises(ValueError):
        plot_permutation_null(test)


def test_plot_column_distributions():
    before = _counts()
    after = hellinger(before)
    fig, axes, info = plot_column_distributions(before, after, ["sp0", "sp2"], bins=5)
    assert axes.shape == (2, 2)
    assert list(info) == ["sp0", "sp2"]
    assert all(len(pair) == 2 for pair in info.values())
    plt.close(fig)

    with pytest.raises(KeyError):
        plot_column_distributions(before, after, ["sp9"])

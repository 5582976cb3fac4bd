# tests/test_screening.py
import numpy as np
import pandas as pd
import pytest

from ecopart.errors import EmptyColumnError
from ecopart.screening import (
    filter_by_occurrence, filter_by_sufficiency, impute_missing, missing_fraction, summarize,
)


def _scenario():
    return pd.DataFrame(
        [[1, 2, np.nan], [3, np.nan, 6], [5, 4, 7]],
        index=["S1", "S2", "S3"], columns=["col1", "col2", "col3"],
    )


def test_summarize_ignores_missing():
    stats = summarize(_scenario())
    assert list(stats.index) == ["col1", "col2", "col3"]
    assert stats.loc["col1", "mean"] == 3.0
    assert stats.loc["col2", "median"] == 3.0
    assert stats.loc["col3", "median"] == 6.5
    assert stats.loc["col1", "std"] == pytest.approx(2.0)
    assert stats.loc["col2", "n_missing"] == 1
    assert stats.loc["col2", "n_present"] == 2


def test_summarize_rejects_empty_column():
    df = pd.DataFrame({"a": [1.0, 2.0], "b": [np.nan, np.nan]})
    with pytest.raises(EmptyColumnError) as exc:
        summarize(df)
    assert exc.value.column == "b"


def test_impute_median_scenario():
    out = impute_missing(_scenario(), "median")
    expected = np.array([[1, 2, 6.5], [3, 3, 6], [5, 4, 7]], dtype=float)
    assert np.allclose(out.to_numpy(), expected)
    assert list(out.index) == ["S1", "S2", "S3"]


def test_impute_mean_leaves_present_cells_and_input_alone():
    df = pd.DataFrame({"a": [1.0, np.nan, 4.0, 7.0]})
    out = impute_missing(df, "mean")
    assert out.loc[1, "a"] == 4.0
    assert out.loc[3, "a"] == 7.0
    assert np.isnan(df.loc[1, "a"])


def test_impute_even_count_median_averages_middle_values():
    df = pd.DataFrame({"a": [1.0, 2.0, 10.0, 20.0, np.nan]})
    assert impute_missing(df).loc[4, "a"] == 6.0


def test_impute_rejects_unknown_method_and_empty_column():
    with pytest.raises(ValueError):
        impute_missing(_scenario(), "mode")
    with pytest.raises(EmptyColumnError):
        impute_missing(pd.DataFrame({"a": [np.nan, np.nan]}))


def test_filter_by_sufficiency_threshold_is_inclusive():
    df = pd.DataFrame({
        "keep": [1.0, np.nan, 3.0, 4.0],       # 25% missing
        "drop": [1.0, np.nan, np.nan, 4.0],    # 50% missing
        "full": [1.0, 2.0, 3.0, 4.0],
    })
    out = filter_by_sufficiency(df, 0.5)
    assert list(out.columns) == ["keep", "full"]
    assert out.shape[0] == 4


def test_filter_by_sufficiency_uses_reference_matrix():
    original = pd.DataFrame({"a": [1.0, np.nan, np.nan, 4.0], "b": [1.0, 2.0, 3.0, 4.0]})
    imputed = impute_missing(original)
    out = filter_by_sufficiency(imputed, 0.5, reference=original)
    assert list(out.columns) == ["b"]
    # without the reference the imputed matrix looks complete
    assert list(filter_by_sufficiency(imputed, 0.5).columns) == ["a", "b"]


def test_filter_by_sufficiency_rejects_bad_threshold():
    with pytest.raises(ValueError):
        filter_by_sufficiency(_scenario(), 1.5)


def test_missing_fraction():
    frac = missing_fraction(_scenario())
    assert frac["col1"] == 0.0
    assert frac["col2"] == pytest.approx(1 / 3)


def test_filter_by_occurrence_drops_rare_species():
    df = pd.DataFrame({"common": [1, 2, 3], "rare": [0, 0, 5], "absent": [0, 0, 0]})
    out = filter_by_occurrence(df, min_sites=2)
    assert list(out.columns) == ["common"]

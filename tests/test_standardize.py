import numpy as np
import pandas as pd
import pytest

from ecopart.errors import DegenerateAxisError, DomainError, MissingValueError
from ecopart.standardize import (
    hellinger, max_standardize, standardize, total_standardize, wisconsin, z_score,
)


def _abund():
    return pd.DataFrame(
        [[0, 2, 8], [4, 0, 1], [3, 5, 2], [1, 1, 6]],
        index=["S1", "S2", "S3", "S4"], columns=["sp1", "sp2", "sp3"],
    )


def test_total_standardize_columns_sum_to_one():
    out = total_standardize(_abund(), axis="columns")
    assert np.allclose(out.sum(axis=0), 1.0, atol=1e-9)
    assert out.shape == _abund().shape


def test_total_standardize_rows_default():
    out = total_standardize(_abund())
    assert np.allclose(out.sum(axis=1), 1.0, atol=1e-9)


def test_z_score_each_slice_has_mean_zero_sd_one():
    for axis, ax in (("columns", 0), ("rows", 1)):
        Z = z_score(_abund(), axis=axis)
        assert np.allclose(Z.mean(axis=ax), 0, atol=1e-9)
        assert np.allclose(Z.std(axis=ax, ddof=1), 1, atol=1e-9)


def test_z_score_rejects_constant_column():
    df = pd.DataFrame({"a": [1.0, 2.0, 3.0], "flat": [5.0, 5.0, 5.0]})
    with pytest.raises(DegenerateAxisError) as exc:
        z_score(df)
    assert exc.value.label == "flat"


def test_total_standardize_rejects_zero_row():
    df = pd.DataFrame([[1.0, 2.0], [0.0, 0.0]], index=["S1", "S2"])
    with pytest.raises(DegenerateAxisError) as exc:
        total_standardize(df, axis="rows")
    assert exc.value.label == "S2"


def test_max_standardize():
    out = max_standardize(_abund(), axis="columns")
    assert np.allclose(out.max(axis=0), 1.0)
    assert out.loc["S2", "sp1"] == 1.0
    assert out.loc["S1", "sp2"] == pytest.approx(0.4)


def test_hellinger_rows_have_unit_norm_and_range():
    H = hellinger(_abund())
    assert H.shape == _abund().shape
    assert np.allclose((H ** 2).sum(axis=1), 1.0)
    assert (H.values >= 0).all() and (H.values <= 1 + 1e-12).all()
    assert np.allclose(H, np.sqrt(total_standardize(_abund(), axis="rows")))


def test_hellinger_rejects_negative():
    with pytest.raises(DomainError):
        hellinger(pd.DataFrame([[-1.0, 2.0]]))


def test_wisconsin_is_max_then_total():
    expected = total_standardize(max_standardize(_abund(), "columns"), "rows")
    out = wisconsin(_abund())
    assert np.allclose(out, expected)
    assert np.allclose(out.sum(axis=1), 1.0)


def test_standardize_dispatch_and_errors():
    assert np.allclose(standardize(_abund(), "hellinger"), hellinger(_abund()))
    assert np.allclose(standardize(_abund(), "total", "columns").sum(axis=0), 1.0)
    assert np.allclose(standardize(_abund(), "wisconsin"), wisconsin(_abund()))
    with pytest.raises(ValueError):
        standardize(_abund(), "chi.square")
    with pytest.raises(ValueError):
        z_score(_abund(), axis="diagonal")


def test_standardize_requires_complete_matrix():
    df = _abund().astype(float)
    df.loc["S3", "sp2"] = np.nan
    with pytest.raises(MissingValueError):
        total_standardize(df)

import numpy as np
import pandas as pd
import pytest

from ecopart.errors import DomainError, MissingValueError
from ecopart.transform import (
    arcsine_sqrt, log_transform, power_transform, presence_absence,
    presence_absence_binary, square_root,
)


def _counts():
    return pd.DataFrame([[0, 2, 8], [4, 0, 1]], index=["S1", "S2"], columns=list("ABC"))


def test_presence_absence_clamps_above_one_only():
    df = pd.DataFrame([[0.0, 0.5, 3.0], [-2.0, 1.0, 7.0]], columns=list("ABC"))
    out = presence_absence(df)
    assert out.to_numpy().tolist() == [[0.0, 0.5, 1.0], [-2.0, 1.0, 1.0]]


def test_presence_absence_is_idempotent():
    df = pd.DataFrame([[0.0, 0.5, 3.0], [-2.0, 1.0, 7.0]], columns=list("ABC"))
    once = presence_absence(df)
    assert once.equals(presence_absence(once))
    strict = presence_absence_binary(df)
    assert strict.equals(presence_absence_binary(strict))


def test_presence_absence_binary_is_zero_one():
    out = presence_absence_binary(pd.DataFrame([[0.0, 0.5, 3.0], [-2.0, 1.0, 0.0]]))
    assert out.to_numpy().tolist() == [[0.0, 1.0, 1.0], [0.0, 1.0, 0.0]]


def test_transforms_preserve_shape_and_labels():
    df = _counts()
    for func in (presence_absence, presence_absence_binary, log_transform, square_root):
        out = func(df)
        assert out.shape == df.shape
        assert list(out.index) == list(df.index)
        assert list(out.columns) == list(df.columns)


def test_log_transform_values():
    df = pd.DataFrame({"a": [0.0, 1.0, 10.0, 100.0]})
    assert np.allclose(log_transform(df, base=10)["a"], [0.0, 1.0, 2.0, 3.0])
    assert np.allclose(log_transform(df, base=2)["a"][:2], [0.0, 1.0])


def test_log_transform_rejects_bad_base_and_negative_values():
    with pytest.raises(ValueError):
        log_transform(_counts(), base=1)
    with pytest.raises(ValueError):
        log_transform(_counts(), base=-2)
    with pytest.raises(DomainError):
        log_transform(pd.DataFrame({"a": [1.0, -1.0]}))


def test_square_root_identifies_failing_cell():
    df = pd.DataFrame([[4.0, 9.0], [1.0, -1.0]], index=["S1", "S2"], columns=["x", "y"])
    with pytest.raises(DomainError) as exc:
        square_root(df)
    assert exc.value.row == "S2"
    assert exc.value.column == "y"
    assert np.allclose(square_root(df.abs()).to_numpy(), [[2.0, 3.0], [1.0, 1.0]])


def test_power_transform():
    df = pd.DataFrame({"a": [4.0, 16.0]})
    assert np.allclose(power_transform(df, 0.5)["a"], [2.0, 4.0])
    neg = pd.DataFrame({"a": [-2.0, 3.0]})
    assert np.allclose(power_transform(neg, 2)["a"], [4.0, 9.0])
    with pytest.raises(DomainError):
        power_transform(neg, 0.5)


def test_arcsine_sqrt_endpoints():
    out = arcsine_sqrt(pd.DataFrame({"p": [0.0, 0.5, 1.0]}))
    assert out.loc[0, "p"] == 0.0
    assert out.loc[2, "p"] == 1.0
    assert out.loc[1, "p"] == pytest.approx(0.5)
    with pytest.raises(DomainError):
        arcsine_sqrt(pd.DataFrame({"p": [0.2, 1.5]}))


def test_transforms_require_complete_matrix():
    df = pd.DataFrame([[1.0, np.nan]], index=["S1"], columns=["a", "b"])
    with pytest.raises(MissingValueError) as exc:
        square_root(df)
    assert (exc.value.row, exc.value.column) == ("S1", "b")

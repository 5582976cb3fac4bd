import numpy as np
import pandera as pa
import pytest

from ecopart.ingest import normalize_columns, read_matrix
import pandas as pd


def test_read_matrix_maps_empty_and_markers_to_missing(tmp_path):
    path = tmp_path / "species.csv"
    path.write_text("site,sp a,sp_b,sp_c\nS1,1,,0\nS2,NA,3,0\n S3 ,2,4,.\n")
    df = read_matrix(path)
    assert list(df.columns) == ["sp_a", "sp_b", "sp_c"]
    assert list(df.index) == ["S1", "S2", "S3"]
    assert df.index.name == "site_id"
    assert np.isnan(df.loc["S1", "sp_b"])
    assert np.isnan(df.loc["S2", "sp_a"])
    assert np.isnan(df.loc["S3", "sp_c"])
    # zeros stay zeros
    assert df.loc["S1", "sp_c"] == 0.0


def test_read_matrix_tab_separated(tmp_path):
    path = tmp_path / "env.tsv"
    path.write_text("site\tdepth\thabitat\nS1\t2.5\tpool\nS2\t4.0\triffle\n")
    df = read_matrix(path, numeric=False)
    assert df.loc["S2", "depth"] == 4.0
    assert df.loc["S1", "habitat"] == "pool"


def test_read_matrix_rejects_duplicate_sites(tmp_path):
    path = tmp_path / "dup.csv"
    path.write_text("site,a\nS1,1\nS1,2\n")
    with pytest.raises(ValueError):
        read_matrix(path)


def test_read_matrix_rejects_non_numeric(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("site,a\nS1,1\nS2,lots\n")
    with pytest.raises(pa.errors.SchemaErrors):
        read_matrix(path)


def test_read_matrix_needs_known_suffix(tmp_path):
    path = tmp_path / "data.dat"
    path.write_text("site,a\nS1,1\n")
    with pytest.raises(ValueError):
        read_matrix(path)
    assert read_matrix(path, sep=",").loc["S1", "a"] == 1.0


def test_normalize_columns():
    df = pd.DataFrame({" Baetis sp. ": [1], "pH(units)": [7]})
    assert list(normalize_columns(df).columns) == ["Baetis_sp.", "pHunits"]

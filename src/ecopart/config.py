from __future__ import annotations
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
DATA = ROOT / "data"
RAW = DATA / "raw"
PROC = DATA / "processed"

# raw delimited files (adjust to yours)
RAW_SPECIES_CSV = RAW / "species.csv"
RAW_ENV_CSV = RAW / "environment.csv"

# name of the sample-unit label column
KEYS = ["site_id"]

# textual markers read as missing, never as zero
MISSING_MARKERS = ["", "NA", "na", "NaN", "nan", ".", "-"]

# screening / transformation defaults
DEFAULT_MAX_MISSING_FRACTION = 0.5
DEFAULT_IMPUTE_METHOD = "median"
DEFAULT_LOG_BASE = 10

# ordination / partitioning
DEFAULT_PERMUTATIONS = 999
PARTITION_RTOL = 1e-9
EIGEN_TOL = 1e-10  # constrained eigenvalues below this fraction of the largest are dropped
RANK_TOL = 1e-7  # predictor directions below this fraction of the predictors' scale are aliased

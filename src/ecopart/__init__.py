"""
ecopart - screening, transformation and variance partitioning of
site-by-species community matrices.

Modules:
- screening: summary statistics, imputation, sufficiency filtering
- transform / standardize: element-wise transforms and row/column standardizations
- ordination / significance: RDA, partial RDA, CCA and permutation tests
- varpart: variance partitioning among predictor groups
- reporting / pipeline: tables, plots and end-to-end runs
"""

from .errors import (
    EcopartError, EmptyColumnError, MissingValueError, DomainError,
    DegenerateAxisError, PartitionInvariantError, NotTestableError,
)
from .screening import summarize, impute_missing, missing_fraction, filter_by_sufficiency, filter_by_occurrence
from .transform import (
    presence_absence, presence_absence_binary, log_transform, square_root,
    power_transform, arcsine_sqrt,
)
from .standardize import z_score, total_standardize, max_standardize, hellinger, wisconsin, standardize
from .dataframe_ops import PredictorGroup, build_predictor_groups, align_blocks_by_index
from .ordination import OrdinationResult, fit_rda, fit_cca, adjusted_r2
from .significance import PermutationTestResult, permutation_test
from .varpart import VarianceFractionSet, fractions_from_adjusted_r2, partition_variance, test_fraction

__all__ = [
    # Errors
    "EcopartError", "EmptyColumnError", "MissingValueError", "DomainError",
    "DegenerateAxisError", "PartitionInvariantError", "NotTestableError",

    # Screening
    "summarize", "impute_missing", "missing_fraction", "filter_by_sufficiency", "filter_by_occurrence",

    # Transformations
    "presence_absence", "presence_absence_binary", "log_transform", "square_root",
    "power_transform", "arcsine_sqrt",

    # Standardizations
    "z_score", "total_standardize", "max_standardize", "hellinger", "wisconsin", "standardize",

    # Ordination and partitioning
    "PredictorGroup", "build_predictor_groups", "align_blocks_by_index",
    "OrdinationResult", "fit_rda", "fit_cca", "adjusted_r2",
    "PermutationTestResult", "permutation_test",
    "VarianceFractionSet", "fractions_from_adjusted_r2", "partition_variance", "test_fraction",
]

__version__ = "0.1.0"

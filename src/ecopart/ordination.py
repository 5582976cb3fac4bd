"""
Constrained ordination (RDA, partial RDA, CCA) of a site-by-species matrix.

The computations follow vegan's rda.default / cca.default: centre the
response, regress it on the (centred) constraints, and take the SVD of the
fitted values. Only the pieces needed for variance partitioning and
permutation testing are kept: inertia components, adjusted R², eigenvalues
and a set of scores for plotting.

Names follow vegan where possible so results are easy to check against R.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from .config import EIGEN_TOL, RANK_TOL
from .dataframe_ops import PredictorGroup, assert_same_index
from .validators import assert_complete, ensure_nonnegative

Predictors = Union[pd.DataFrame, PredictorGroup, str, Sequence[str]]

__all__ = [
    "OrdinationResult",
    "model_matrix",
    "parse_formula",
    "adjusted_r2",
    "fit_rda",
    "fit_cca",
]


@dataclass(eq=False)
class OrdinationResult:
    method: str
    r2: float
    adj_r2: float
    eigenvalues: pd.Series           # constrained axes, RDA1.. / CCA1..
    site_scores: pd.DataFrame        # linear-combination site scores
    species_scores: pd.DataFrame
    biplot_scores: pd.DataFrame      # predictor correlations with the site scores
    total_inertia: float
    constrained_inertia: float
    conditional_inertia: float
    rank: int                        # rank of the constraints after partialling
    conditioning_rank: int
    n_samples: int
    # response (after removing conditioning effects) and constraints used in the fit;
    # kept for permutation tests
    Y_model: np.ndarray = field(repr=False)
    X_model: np.ndarray = field(repr=False)

    @property
    def unconstrained_inertia(self) -> float:
        return self.total_inertia - self.constrained_inertia - self.conditional_inertia

    @property
    def df_residual(self) -> int:
        return self.n_samples - self.rank - self.conditioning_rank - 1

    def summary(self) -> pd.DataFrame:
        """Inertia table in the layout vegan prints for a fitted model."""
        rows = {"Total": self.total_inertia}
        if self.conditioning_rank:
            rows["Conditional"] = self.conditional_inertia
        rows["Constrained"] = self.constrained_inertia
        rows["Unconstrained"] = self.unconstrained_inertia
        out = pd.DataFrame({"Inertia": pd.Series(rows)})
        out["Proportion"] = out["Inertia"] / self.total_inertia
        out["Rank"] = pd.Series({"Conditional": self.conditioning_rank, "Constrained": self.rank})
        return out

    def __repr__(self):
        cond = f", conditioning_rank={self.conditioning_rank}" if self.conditioning_rank else ""
        return (
            f"OrdinationResult(method='{self.method}', n={self.n_samples}, rank={self.rank}{cond}, "
            f"R2={self.r2:.4f}, adjR2={self.adj_r2:.4f}, axes={len(self.eigenvalues)})"
        )


# ------------------------------ Model matrices ------------------------------

def model_matrix(df: pd.DataFrame) -> pd.DataFrame:
    """
    Numeric design matrix from a predictor table.

    Numeric and boolean columns are cast to float; other columns are treated as
    factors and expanded to treatment-coded dummies (first level dropped).
    """
    parts = []
    for col in df.columns:
        s = df[col]
        if pd.api.types.is_numeric_dtype(s):
            parts.append(s.astype(float).rename(col))
        else:
            parts.append(pd.get_dummies(s.astype("category"), prefix=str(col),
                                        drop_first=True, dtype=float))
    if not parts:
        raise ValueError("Predictor table has no columns")
    return pd.concat(parts, axis=1)


def parse_formula(formula: str, env: pd.DataFrame) -> pd.DataFrame:
    """
    Select predictor columns from env with a formula like '~ depth + pH'.

    Only additive main effects are supported; '.' stands for every column of env.
    """
    lhs, sep, rhs = formula.partition("~")
    if not sep or lhs.strip():
        raise ValueError(f"Formula must be one-sided, like '~ a + b'; got {formula!r}")
    terms = [t.strip() for t in rhs.split("+") if t.strip()]
    if not terms:
        raise ValueError(f"Formula has no terms: {formula!r}")
    cols: list = []
    for t in terms:
        if t == ".":
            cols.extend(c for c in env.columns if c not in cols)
        elif t in env.columns:
            if t not in cols:
                cols.append(t)
        else:
            raise KeyError(f"Formula term {t!r} not found. Available: {list(env.columns)[:20]}...")
    return env.loc[:, cols]


def _resolve(predictors: Predictors, env: Optional[pd.DataFrame]) -> pd.DataFrame:
    if isinstance(predictors, PredictorGroup):
        return predictors.data
    if isinstance(predictors, pd.DataFrame):
        return predictors
    if env is None:
        raise ValueError("env must be given when predictors are a formula or column names")
    if isinstance(predictors, str):
        return parse_formula(predictors, env)
    return env.loc[:, list(predictors)]


def _design(response: pd.DataFrame, predictors: Predictors, env, what: str) -> pd.DataFrame:
    X = _resolve(predictors, env)
    assert_complete(X, f"fit ({what})")
    assert_same_index(response, X)
    return model_matrix(X)

# ------------------------------ Linear algebra ------------------------------

def _center(X: np.ndarray, weights: Optional[np.ndarray] = None) -> np.ndarray:
    mu = np.average(X, axis=0, weights=weights)
    return X - mu


def _project(X: np.ndarray, Y: np.ndarray) -> np.ndarray:
    """Fitted values of the least-squares regression of Y on X (no intercept)."""
    if X.shape[1] == 0 or not np.any(X):
        return np.zeros_like(Y)
    model = LinearRegression(fit_intercept=False)
    model.fit(X, Y)
    return model.predict(X).reshape(Y.shape)


def _scale(X: np.ndarray) -> float:
    return float(np.linalg.norm(X, 2)) if X.size else 0.0


def _basis(X: np.ndarray, scale: Optional[float] = None) -> np.ndarray:
    """
    Columns spanning the column space of X.

    Directions with singular value below RANK_TOL * scale are aliased and
    dropped. scale defaults to the largest singular value of X; pass the scale
    of the un-residualized predictors so that noise left after partialling
    does not count as rank.
    """
    if X.size == 0:
        return X.reshape(X.shape[0], 0)
    u, s, _ = np.linalg.svd(X, full_matrices=False)
    if scale is None:
        scale = s[0]
    if scale <= 0:
        return u[:, :0]
    keep = s > RANK_TOL * scale
    return u[:, keep] * s[keep]


def _rank(X: np.ndarray, scale: Optional[float] = None) -> int:
    return _basis(X, scale).shape[1]


def _drop_aliased(Xr: np.ndarray, X: np.ndarray) -> np.ndarray:
    """Zero the residualized columns that the conditioning variables explain entirely."""
    out = Xr.copy()
    aliased = np.linalg.norm(Xr, axis=0) <= RANK_TOL * np.linalg.norm(X, axis=0)
    out[:, aliased] = 0.0
    return out


def adjusted_r2(r2: float, n: int, m: int) -> float:
    """
    Ezekiel's adjustment 1 - (1 - R²)(n - 1)/(n - m - 1).

    Negative values are returned as they are; NaN when m >= n - 1.
    """
    if n - m - 1 <= 0:
        return float("nan")
    return 1.0 - (1.0 - r2) * (n - 1) / (n - m - 1)


def _axes(fitted: np.ndarray, rank: int, scale: float, prefix: str):
    u, s, vt = np.linalg.svd(fitted, full_matrices=False)
    eig = s * s / scale
    if len(eig) and eig[0] > 0:
        k = min(rank, int(np.sum(eig > EIGEN_TOL * eig[0])))
    else:
        k = 0
    names = [f"{prefix}{i + 1}" for i in range(k)]
    return u[:, :k], s[:k], vt[:k].T, eig[:k], names


def _biplot(X: np.ndarray, u: np.ndarray, columns, names) -> pd.DataFrame:
    if u.shape[1] == 0:
        return pd.DataFrame(index=columns, columns=names, dtype=float)
    with np.errstate(invalid="ignore", divide="ignore"):
        corr = np.corrcoef(X, u, rowvar=False)[: X.shape[1], X.shape[1]:]
    return pd.DataFrame(corr, index=columns, columns=names)

# ------------------------------ RDA ------------------------------

def fit_rda(response: pd.DataFrame,
            predictors: Predictors,
            *,
            conditioning: Optional[Predictors] = None,
            env: Optional[pd.DataFrame] = None) -> OrdinationResult:
    """
    Redundancy analysis of response on predictors, optionally partialling out
    a conditioning table (partial RDA).

    Args:
        response: Site-by-species matrix (usually transformed, e.g. Hellinger)
        predictors: DataFrame, PredictorGroup, a formula such as '~ a + b'
            or a list of column names (the last two need env)
        conditioning: Covariables whose effect is removed first
        env: Table the formula / column names refer to

    Returns:
        OrdinationResult. For a partial model adj_r2 is
        adjR2(conditioning + predictors) - adjR2(conditioning).
    """
    assert_complete(response, "fit_rda")
    n = len(response.index)
    if n < 3:
        raise ValueError(f"RDA needs at least 3 sample units, got {n}")

    Yc = _center(response.to_numpy(dtype=float))
    tot = float(np.sum(Yc * Yc)) / (n - 1)
    if tot <= 0:
        raise ValueError("Response matrix has zero total variance")

    design = _design(response, predictors, env, "predictors")
    Xc = _center(design.to_numpy(dtype=float))

    if conditioning is not None:
        Zc = _center(_design(response, conditioning, env, "conditioning").to_numpy(dtype=float))
        p = _rank(Zc)
        Y_fit_Z = _project(Zc, Yc)
        Yr = Yc - Y_fit_Z
        Xr = _drop_aliased(Xc - _project(Zc, Xc), Xc)
        cond = float(np.sum(Y_fit_Z * Y_fit_Z)) / (n - 1)
    else:
        p, Yr, Xr, cond = 0, Yc, Xc, 0.0

    # aliased directions are judged against the predictors before partialling
    Xb = _basis(Xr, _scale(Xc))
    m = Xb.shape[1]
    fitted = _project(Xb, Yr)
    constr = float(np.sum(fitted * fitted)) / (n - 1)

    u, s, v, eig, names = _axes(fitted, m, n - 1, "RDA")

    r2 = constr / tot
    if conditioning is None:
        adj = adjusted_r2(r2, n, m)
    else:
        adj = adjusted_r2(r2 + cond / tot, n, m + p) - adjusted_r2(cond / tot, n, p)

    return OrdinationResult(
        method="rda" if conditioning is None else "partial rda",
        r2=float(r2),
        adj_r2=float(adj),
        eigenvalues=pd.Series(eig, index=names, name="eigenvalue"),
        site_scores=pd.DataFrame(u, index=response.index, columns=names),
        species_scores=pd.DataFrame(v * s / np.sqrt(n - 1), index=response.columns, columns=names),
        biplot_scores=_biplot(Xr, u, design.columns, names),
        total_inertia=tot,
        constrained_inertia=constr,
        conditional_inertia=cond,
        rank=m,
        conditioning_rank=p,
        n_samples=n,
        Y_model=Yr,
        X_model=Xb,
    )

# ------------------------------ CCA ------------------------------

def fit_cca(response: pd.DataFrame,
            predictors: Predictors,
            *,
            env: Optional[pd.DataFrame] = None) -> OrdinationResult:
    """
    Canonical correspondence analysis of an abundance table.

    Inertia is the mean-square contingency coefficient of the table. adj_r2
    is left as NaN: the Ezekiel adjustment does not apply to chi-square
    inertia.
    """
    assert_complete(response, "fit_cca")
    ensure_nonnegative(response, "CCA needs non-negative abundances")
    n = len(response.index)

    x = response.to_numpy(dtype=float)
    grand = x.sum()
    if grand <= 0:
        raise ValueError("CCA needs a table with a positive total")
    P = x / grand
    row_sums = P.sum(axis=1)
    col_sums = P.sum(axis=0)
    if np.any(row_sums <= 0):
        raise ValueError(f"There were sample units with no tally: {list(response.index[row_sums <= 0])[:10]}")
    if np.any(col_sums <= 0):
        raise ValueError(f"There were species with no tally: {list(response.columns[col_sums <= 0])[:10]}")

    # chi-square contributions
    rc = np.outer(row_sums, col_sums)
    x_bar = (P - rc) / np.sqrt(rc)
    tot = float(np.sum(x_bar * x_bar))

    design = _design(response, predictors, env, "predictors")
    Xw = _center(design.to_numpy(dtype=float), weights=row_sums) * np.sqrt(row_sums)[:, None]

    Xb = _basis(Xw)
    m = Xb.shape[1]
    fitted = _project(Xb, x_bar)
    constr = float(np.sum(fitted * fitted))

    u_raw, s, v, eig, names = _axes(fitted, m, 1.0, "CCA")
    u = u_raw / np.sqrt(row_sums)[:, None]
    species = v / np.sqrt(col_sums)[:, None]

    return OrdinationResult(
        method="cca",
        r2=constr / tot,
        adj_r2=float("nan"),
        eigenvalues=pd.Series(eig, index=names, name="eigenvalue"),
        site_scores=pd.DataFrame(u, index=response.index, columns=names),
        species_scores=pd.DataFrame(species, index=response.columns, columns=names),
        biplot_scores=_biplot(Xw, u_raw, design.columns, names),
        total_inertia=tot,
        constrained_inertia=constr,
        conditional_inertia=0.0,
        rank=m,
        conditioning_rank=0,
        n_samples=n,
        Y_model=x_bar,
        X_model=Xb,
    )

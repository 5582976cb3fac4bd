from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Optional, Sequence
import pandas as pd

# -------------------------------
# Predictor groups
# -------------------------------


@dataclass(frozen=True, eq=False)
class PredictorGroup:
    """A named set of predictor columns, indexed by sample unit."""
    name: str
    data: pd.DataFrame

    def __post_init__(self):
        if not self.name:
            raise ValueError("Predictor group name must be non-empty")
        if self.data.shape[1] == 0:
            raise ValueError(f"Predictor group {self.name!r} has no columns")


def build_predictor_groups(env: pd.DataFrame,
                           groups: Mapping[str, Sequence[str]]) -> list[PredictorGroup]:
    """
    Split an environmental table into disjoint, named predictor groups.

    Args:
        env: Site-by-predictor table
        groups: Ordered mapping of group name -> column names

    Returns:
        List of PredictorGroup in the mapping's order

    Raises:
        KeyError: If a column is not in env
        ValueError: If a column appears in more than one group
    """
    seen: dict[str, str] = {}
    out = []
    for name, cols in groups.items():
        cols = list(cols)
        absent = [c for c in cols if c not in env.columns]
        if absent:
            raise KeyError(f"Columns of group {name!r} not found: {absent}. Available: {list(env.columns)[:20]}...")
        for c in cols:
            if c in seen:
                raise ValueError(f"Column {c!r} is in both group {seen[c]!r} and group {name!r}")
            seen[c] = name
        out.append(PredictorGroup(name, env.loc[:, cols].copy()))
    return out


def as_predictor_groups(groups) -> list[PredictorGroup]:
    """Accept a sequence of PredictorGroup or a mapping name -> DataFrame."""
    if isinstance(groups, Mapping):
        return [PredictorGroup(str(k), v) for k, v in groups.items()]
    return list(groups)

# -------------------------------
# Align in index
# -------------------------------

JoinHow = Literal["inner", "outer", "left"]


def _target_index(blocks: list[pd.DataFrame], how: JoinHow, anchor: Optional[int]) -> pd.Index:
    if how == "inner":
        idx = blocks[0].index
        for b in blocks[1:]:
            idx = idx.intersection(b.index, sort=False)
        return idx
    elif how == "outer":
        idx = blocks[0].index
        for b in blocks[1:]:
            idx = idx.union(b.index, sort=False)
        return idx
    elif how == "left":
        if anchor is None:
            raise ValueError("anchor must be provided for how='left' (0-based index of blocks)")
        return blocks[anchor].index
    else:
        raise ValueError(f"Unsupported how={how}")


def align_blocks_by_index(
    blocks: Iterable[pd.DataFrame],
    how: JoinHow = "inner",
    anchor: Optional[int] = None,
) -> list[pd.DataFrame]:
    """
    Reindex each block to a common sample-unit index (inner/outer/left).
    Returns new DataFrames; originals untouched.
    """
    blocks = list(blocks)
    for i, b in enumerate(blocks):
        assert_unique_index(b, name=f"block {i}")
    tgt = _target_index(blocks, how=how, anchor=anchor)
    return [b.reindex(tgt) for b in blocks]

# -------------------------------
# Validation / Safety
# -------------------------------

def assert_same_index(a: pd.DataFrame, b: pd.DataFrame) -> None:
    if not a.index.equals(b.index):
        raise ValueError(
            "Index mismatch between frames. "
            "Check that both are indexed by the same sample units, "
            "in the same order (see align_blocks_by_index)."
        )


def assert_unique_index(df: pd.DataFrame, name: str = "frame") -> None:
    if not df.index.is_unique:
        dups = df.index[df.index.duplicated()].unique()
        raise ValueError(f"{name} has duplicate index values (first 10): {dups[:10].tolist()}")

"""Assemble per-variable results into a ranked summary."""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

from .uplift import NwoeTable
from .woe import WoeTable

Table = Union[WoeTable, NwoeTable]

BINARY_STAT_COLUMNS = ["iv_se", "iv_ci_lower", "iv_ci_upper", "gini"]


@dataclass(frozen=True, eq=False)
class VariableResult:
    """Outcome of processing one variable: a table, or the reason it failed."""

    variable: str
    table: Optional[Table] = None
    error: Optional[str] = None
    stats: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.table is not None


@dataclass(frozen=True, eq=False)
class Summary:
    """
    Ranked summary plus the bin-level table of every successful variable.

    Attributes:
    ----------
    frame : pd.DataFrame
        One row per requested variable, ranked variables first.
    tables : dict
        Variable name to WoeTable (or NwoeTable for uplift runs).
    """

    frame: pd.DataFrame
    tables: dict[str, Table]

    def __len__(self) -> int:
        return len(self.frame)


def summarize(results: list[VariableResult], uplift: bool = False) -> Summary:
    """
    Rank variables by adjusted IV (or adjusted NIV for uplift runs).

    Rank 1 is the highest adjusted score. Ties keep the input order. Failed
    variables are listed after the ranked ones with no score or rank and the
    failure reason in ``error``.
    """
    score_col, adj_col = ("niv", "adj_niv") if uplift else ("iv", "adj_iv")
    stat_cols = [] if uplift else BINARY_STAT_COLUMNS

    rows = []
    for result in results:
        row: dict[str, Any] = {"variable": result.variable}
        if result.ok:
            row[score_col] = result.table.score
            row[adj_col] = result.table.adj_score
            row["penalty"] = result.table.penalty
            row["n_bins"] = result.table.n_bins
        else:
            row.update({score_col: np.nan, adj_col: np.nan, "penalty": np.nan, "n_bins": 0})
        for col in stat_cols:
            row[col] = result.stats.get(col, np.nan)
        row["error"] = result.error
        rows.append(row)

    ranked = sorted(
        (i for i, r in enumerate(results) if r.ok), key=lambda i: -rows[i][adj_col]
    )
    failed = [i for i, r in enumerate(results) if not r.ok]

    columns = ["variable", score_col, adj_col, "penalty", "n_bins", *stat_cols, "rank", "error"]
    ordered = [rows[i] for i in ranked + failed]
    frame = pd.DataFrame(ordered, columns=columns)
    frame["rank"] = pd.array(
        list(range(1, len(ranked) + 1)) + [pd.NA] * len(failed), dtype="Int64"
    )
    frame["n_bins"] = frame["n_bins"].astype(int)
    # None marks success whether or not other rows failed
    frame["error"] = pd.Series(
        [e if isinstance(e, str) else None for e in frame["error"]],
        index=frame.index,
        dtype=object,
    )

    tables = {r.variable: r.table for r in results if r.ok}
    return Summary(frame=frame.reset_index(drop=True), tables=tables)


__all__ = ["VariableResult", "Summary", "summarize"]

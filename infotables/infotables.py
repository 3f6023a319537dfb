"""infotables.py."""

import os
import time
from collections.abc import Mapping
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from .binning import bin_variable, is_categorical_series
from .config import DEFAULT_CONFIG, InfoConfig
from .exceptions import (
    VARIABLE_ERRORS,
    DegenerateOutcomeError,
    InsufficientGroupError,
    SchemaMismatchError,
)
from .logging_config import logger
from .summary import Summary, Table, VariableResult, summarize
from .uplift import compute_nwoe
from .validation import validate, validate_uplift
from .woe import apply_penalties, compute_woe, iv_confidence_interval, iv_standard_error

DataLike = Union[pd.DataFrame, Mapping]


@dataclass(frozen=True, eq=False)
class InfoTables:
    """
    Result of :func:`create_infotables`.

    Attributes:
    ----------
    summary : pd.DataFrame
        Ranked summary, one row per requested variable.
    tables : dict
        Variable name to WoeTable, or NwoeTable for uplift runs.
    uplift : bool
        Whether a treatment column was supplied.
    config : InfoConfig
        Configuration used for the run.
    """

    summary: pd.DataFrame
    tables: dict[str, Table]
    uplift: bool
    config: InfoConfig

    def get_table(self, variable: str) -> pd.DataFrame:
        """Get the bin-level table of a variable as a DataFrame."""
        if variable not in self.tables:
            raise KeyError(self._missing_reason(variable))
        return self.tables[variable].frame.copy()

    def woe_pattern(self, variable: str) -> list[tuple[str, float]]:
        """Ordered ``(bin label, WOE)`` pairs (NWOE for uplift runs) for plotting."""
        if variable not in self.tables:
            raise KeyError(self._missing_reason(variable))
        return self.tables[variable].pattern()

    def transform(self, data: DataLike) -> pd.DataFrame:
        """
        Replace each value by the WOE (NWOE for uplift runs) of its bin.

        Unseen categories and missing values without a training missing bin
        become NaN.
        """
        data = _as_frame(data)
        missing = [v for v in self.tables if v not in data.columns]
        if missing:
            raise SchemaMismatchError(f"Columns missing from data: {missing}")

        woe_df = pd.DataFrame(index=data.index)
        for variable, table in self.tables.items():
            codes = table.bin_table.assign(data[variable])
            values = table.frame[table.value_column].to_numpy(dtype=float)
            woe_df[variable] = np.where(codes >= 0, values[codes], np.nan)
        return woe_df

    def _missing_reason(self, variable: str) -> str:
        rows = self.summary.loc[self.summary["variable"] == variable, "error"]
        if len(rows) and rows.iloc[0]:
            return f"Variable '{variable}' failed: {rows.iloc[0]}"
        return f"Variable '{variable}' not found in results"


def _as_frame(data: DataLike) -> pd.DataFrame:
    if isinstance(data, pd.DataFrame):
        return data
    return pd.DataFrame(data)


def _check_binary(data: pd.DataFrame, column: str, role: str, dataset: str) -> None:
    if column not in data.columns:
        raise SchemaMismatchError(f"{role} column '{column}' not found in {dataset} data")
    series = data[column]
    if series.isna().any():
        raise ValueError(f"{role} column '{column}' has missing values in {dataset} data")
    unique_values = set(pd.unique(series).tolist())
    if not unique_values.issubset({0, 1}):
        raise ValueError(
            f"{role} column '{column}' must be binary (0/1). "
            f"Found values: {sorted(unique_values, key=str)[:10]}"
        )


def _check_outcome(data: pd.DataFrame, y: str, trt: Optional[str], dataset: str) -> None:
    """Checks whose failure invalidates every variable of the run."""
    _check_binary(data, y, "Outcome", dataset)
    if data[y].nunique() < 2:
        raise DegenerateOutcomeError(
            f"Outcome column '{y}' has a single class in {dataset} data"
        )
    if trt is None:
        return

    _check_binary(data, trt, "Treatment", dataset)
    if data[trt].nunique() < 2:
        raise InsufficientGroupError(
            f"Treatment column '{trt}' has a single group in {dataset} data"
        )
    for arm, label in ((1, "treatment"), (0, "control")):
        if data.loc[data[trt] == arm, y].nunique() < 2:
            raise DegenerateOutcomeError(
                f"Outcome column '{y}' has a single class within the {label} "
                f"group of {dataset} data"
            )


def _check_schema(data: pd.DataFrame, valid: pd.DataFrame, variables: list[str]) -> None:
    missing = [v for v in variables if v not in valid.columns]
    if missing:
        raise SchemaMismatchError(f"Columns missing from validation data: {missing}")

    for variable in variables:
        train_col, valid_col = data[variable], valid[variable]
        if train_col.isna().all() or valid_col.isna().all():
            continue
        if is_categorical_series(train_col) != is_categorical_series(valid_col):
            raise SchemaMismatchError(
                f"Variable '{variable}' has incompatible types: "
                f"{train_col.dtype} in training, {valid_col.dtype} in validation"
            )


def _gini(outcome: np.ndarray, woe: np.ndarray) -> float:
    try:
        return float(2 * roc_auc_score(outcome, woe) - 1)
    except ValueError:
        return np.nan


def _process_variable(
    variable: str,
    values: pd.Series,
    outcome: np.ndarray,
    treatment: Optional[np.ndarray],
    valid_values: Optional[pd.Series],
    valid_outcome: Optional[np.ndarray],
    valid_treatment: Optional[np.ndarray],
    config: InfoConfig,
) -> VariableResult:
    """Bin, score and penalize one variable; per-variable errors are recorded."""
    logger.debug(f"Processing variable '{variable}'")
    try:
        bin_table = bin_variable(values, config.bins, name=variable)
        codes = bin_table.assign(values)
        stability = None
        stats: dict[str, Any] = {}

        if treatment is None:
            table = compute_woe(
                bin_table, values, outcome, smoothing=config.smoothing, codes=codes
            )
            if valid_values is not None:
                stability = validate(
                    table, valid_values, valid_outcome, smoothing=config.smoothing
                )
            iv_se = iv_standard_error(table)
            ci_lower, ci_upper = iv_confidence_interval(table.iv, iv_se, config.alpha)
            stats = {
                "iv_se": iv_se,
                "iv_ci_lower": ci_lower,
                "iv_ci_upper": ci_upper,
                "gini": _gini(outcome, table.frame["woe"].to_numpy()[codes]),
            }
        else:
            table = compute_nwoe(
                bin_table,
                values,
                outcome,
                treatment,
                smoothing=config.smoothing,
                codes=codes,
            )
            if valid_values is not None:
                stability = validate_uplift(
                    table,
                    valid_values,
                    valid_outcome,
                    valid_treatment,
                    smoothing=config.smoothing,
                )

        table = apply_penalties(table, stability, config)
    except VARIABLE_ERRORS as e:
        logger.warning(f"Variable '{variable}' skipped: {type(e).__name__}: {e}")
        return VariableResult(variable=variable, error=f"{type(e).__name__}: {e}")

    return VariableResult(variable=variable, table=table, stats=stats)


def _resolve_n_jobs(n_jobs: Optional[int], n_tasks: int) -> int:
    if n_jobs is None or n_jobs == 0:
        return 1
    if n_jobs < 0:
        n_jobs = os.cpu_count() or 1
    return max(1, min(n_jobs, n_tasks))


def create_infotables(
    data: DataLike,
    y: str,
    valid: Optional[DataLike] = None,
    trt: Optional[str] = None,
    bins: Optional[int] = None,
    variables: Optional[list[str]] = None,
    config: Optional[InfoConfig] = None,
    n_jobs: Optional[int] = 1,
) -> InfoTables:
    """
    Create WOE (or NWOE) tables and a ranked IV (or NIV) summary.

    Parameters
    ----------
    data : pd.DataFrame or mapping
        Training data, column name to values.
    y : str
        Name of the binary 0/1 outcome column.
    valid : pd.DataFrame or mapping, optional
        Validation data with the same schema. Enables the instability
        penalty in AdjIV/AdjNIV.
    trt : str, optional
        Name of the binary treatment column (1 = test group, 0 = control).
        Switches to uplift mode (NWOE/NIV).
    bins : int, optional
        Target number of bins, overrides ``config.bins`` (default 10).
    variables : list of str, optional
        Variables to screen. Defaults to every column except ``y`` and ``trt``.
    config : InfoConfig, optional
        Smoothing and penalty settings.
    n_jobs : int, default=1
        Worker processes for per-variable fan-out; -1 uses all cores.

    Returns:
    -------
    InfoTables

    Raises:
    ------
    SchemaMismatchError
        If columns are missing or have incompatible types across datasets.
    DegenerateOutcomeError
        If the outcome has a single class in the training or validation data,
        or within a treatment arm.
    InsufficientGroupError
        If the treatment column has a single group.
    ValueError
        If the outcome or treatment column is not binary 0/1.
    """
    start_time = time.time()
    config = config or DEFAULT_CONFIG
    if bins is not None:
        config = config.replace(bins=bins)

    data = _as_frame(data)
    _check_outcome(data, y, trt, "training")

    reserved = {y} if trt is None else {y, trt}
    if variables is None:
        variables = [c for c in data.columns if c not in reserved]
    else:
        variables = list(variables)
        absent = [v for v in variables if v not in data.columns]
        if absent:
            raise SchemaMismatchError(f"Variables not found in training data: {absent}")
        overlap = [v for v in variables if v in reserved]
        if overlap:
            raise ValueError(f"Outcome/treatment columns cannot be screened: {overlap}")

    if valid is not None:
        valid = _as_frame(valid)
        _check_outcome(valid, y, trt, "validation")
        _check_schema(data, valid, variables)

    logger.info(
        f"Binning {len(variables)} variables on {len(data)} records "
        f"(bins={config.bins}, uplift={trt is not None}, validation={valid is not None})"
    )

    outcome = data[y].to_numpy(dtype=int)
    treatment = data[trt].to_numpy(dtype=int) if trt is not None else None
    valid_outcome = valid[y].to_numpy(dtype=int) if valid is not None else None
    valid_treatment = (
        valid[trt].to_numpy(dtype=int) if valid is not None and trt is not None else None
    )

    tasks = [
        (
            variable,
            data[variable],
            outcome,
            treatment,
            valid[variable] if valid is not None else None,
            valid_outcome,
            valid_treatment,
            config,
        )
        for variable in variables
    ]

    n_workers = _resolve_n_jobs(n_jobs, len(tasks))
    if n_workers == 1:
        results = [_process_variable(*task) for task in tasks]
    else:
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            results = list(executor.map(_process_variable, *zip(*tasks)))

    summary = summarize(results, uplift=trt is not None)

    n_failed = sum(not r.ok for r in results)
    running_time = time.time() - start_time
    logger.info(
        f"Binning finished: {len(results) - n_failed} variables scored, "
        f"{n_failed} failed in {running_time:.2f}s"
    )

    return InfoTables(
        summary=summary.frame,
        tables=summary.tables,
        uplift=trt is not None,
        config=config,
    )


__all__ = ["InfoTables", "create_infotables"]

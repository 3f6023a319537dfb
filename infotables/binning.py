"""
binning.py.

Equal-frequency binning of numeric and categorical variables. A variable is
turned into a :class:`BinTable`, an ordered sequence of bins that partitions
its training values; the same table is later applied unchanged to other data
(validation sets, scoring) through :meth:`BinTable.assign`.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

from .exceptions import InsufficientDataError

MISSING_LABEL = "NA"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6g}"


@dataclass(frozen=True)
class NumericRange:
    """Right-closed value range ``(lower, upper]`` of a numeric bin."""

    lower: float
    upper: float
    observed_min: float
    observed_max: float

    @property
    def label(self) -> str:
        return f"[{_format_number(self.observed_min)}, {_format_number(self.observed_max)}]"


@dataclass(frozen=True)
class CategorySet:
    """Set of category levels assigned to a bin."""

    categories: tuple

    @property
    def label(self) -> str:
        return ", ".join(str(c) for c in self.categories)


@dataclass(frozen=True)
class MissingBin:
    """Bin holding the missing values of a variable."""

    @property
    def label(self) -> str:
        return MISSING_LABEL


Bin = Union[NumericRange, CategorySet, MissingBin]


@dataclass(frozen=True, eq=False)
class BinTable:
    """
    Ordered bins of one variable learned on training data.

    Attributes:
    ----------
    variable : str
        Variable name.
    bins : tuple of Bin
        Bins in order: ascending ranges (numeric) or first-seen categories,
        the missing bin always last.
    counts : np.ndarray
        Number of training records per bin.
    is_categorical : bool
        Whether the variable was binned by category.
    cuts : np.ndarray
        Upper bounds of all numeric bins except the last (empty for
        categorical variables).
    """

    variable: str
    bins: tuple
    counts: np.ndarray
    is_categorical: bool
    cuts: np.ndarray = field(default_factory=lambda: np.array([], dtype=float))

    def __len__(self) -> int:
        return len(self.bins)

    @property
    def labels(self) -> list[str]:
        return [b.label for b in self.bins]

    @property
    def n_records(self) -> int:
        return int(self.counts.sum())

    @property
    def has_missing(self) -> bool:
        return bool(self.bins) and isinstance(self.bins[-1], MissingBin)

    @property
    def missing_index(self) -> Optional[int]:
        return len(self.bins) - 1 if self.has_missing else None

    def assign(self, values: Any, unmatched_to_missing: bool = False) -> np.ndarray:
        """
        Map values onto bin indices.

        Numeric values outside the training range fall into the first or last
        range bin. Missing values go to the missing bin; unseen categories get
        ``-1``. With ``unmatched_to_missing=True``, values that would get
        ``-1`` (unseen categories, or missing values when training had none)
        are sent to the missing bin instead when one exists.

        Returns:
        -------
        np.ndarray
            Integer bin index per value, ``-1`` for unmatched values.
        """
        series = pd.Series(values).reset_index(drop=True)
        mask_missing = series.isna().to_numpy()
        codes = np.full(len(series), -1, dtype=int)
        missing_index = self.missing_index

        if self.is_categorical:
            lookup = {}
            for i, b in enumerate(self.bins):
                if isinstance(b, CategorySet):
                    for category in b.categories:
                        lookup[category] = i
            present = series[~mask_missing].astype(object)
            codes[~mask_missing] = present.map(lookup).fillna(-1).astype(int).to_numpy()
        else:
            numeric = series.to_numpy(dtype=float, na_value=np.nan)
            codes[~mask_missing] = np.searchsorted(
                self.cuts, numeric[~mask_missing], side="left"
            )

        if missing_index is not None:
            codes[mask_missing] = missing_index
            if unmatched_to_missing:
                codes[codes == -1] = missing_index
        return codes


def is_categorical_series(values: Any) -> bool:
    """Categorical unless the dtype is numeric; booleans count as categorical."""
    series = pd.Series(values)
    return pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(
        series
    )


def _numeric_cuts(sorted_values: np.ndarray, target_bins: int) -> np.ndarray:
    """
    Cut points for equal-frequency groups.

    The cut of group k is the sorted value at position ``ceil(n*k/b) - 1``
    (inverted-CDF quantile). Integer arithmetic keeps the positions exact so
    that untied data splits into groups of floor(n/b) or ceil(n/b) records.
    """
    n = len(sorted_values)
    distinct = np.unique(sorted_values)
    if len(distinct) <= target_bins:
        return distinct[:-1]

    positions = [-(-n * k // target_bins) - 1 for k in range(1, target_bins)]
    cuts = np.unique(sorted_values[positions])
    # Ties at the top would leave an empty last bin
    return cuts[cuts < sorted_values[-1]]


def bin_variable(
    values: Any,
    target_bins: int = 10,
    is_categorical: Optional[bool] = None,
    name: Optional[str] = None,
) -> BinTable:
    """
    Bin a variable into ordered, mutually exclusive groups.

    Parameters
    ----------
    values : array-like
        Raw values, one per record. Missing values (``pd.isna``) form their
        own bin.
    target_bins : int, default=10
        Target number of equal-frequency bins for numeric values. Ties can
        collapse adjacent bins, so fewer bins is expected.
    is_categorical : bool, optional
        Force categorical or numeric treatment. Inferred from the dtype if None.
    name : str, optional
        Variable name, defaults to the Series name.

    Returns:
    -------
    BinTable

    Raises:
    ------
    InsufficientDataError
        If there are no non-missing values.
    """
    if target_bins < 1:
        raise ValueError(f"target_bins must be >= 1, got {target_bins}")

    series = pd.Series(values).reset_index(drop=True)
    if name is None:
        name = str(series.name) if series.name is not None else "variable"
    if is_categorical is None:
        is_categorical = is_categorical_series(series)

    mask_missing = series.isna().to_numpy()
    n_missing = int(mask_missing.sum())
    if n_missing == len(series):
        raise InsufficientDataError(
            f"Variable '{name}' has no non-missing values for binning"
        )

    present = series[~mask_missing]
    if is_categorical:
        present = present.astype(object)
    bins: list = []
    counts: list[int] = []
    cuts = np.array([], dtype=float)

    if is_categorical:
        categories = list(pd.unique(present))
        lookup = {category: i for i, category in enumerate(categories)}
        codes = present.map(lookup).to_numpy(dtype=int)
        bins.extend(CategorySet((category,)) for category in categories)
        counts.extend(np.bincount(codes, minlength=len(categories)).tolist())
    else:
        numeric = np.sort(present.to_numpy(dtype=float))
        cuts = _numeric_cuts(numeric, target_bins)
        codes = np.searchsorted(cuts, numeric, side="left")
        edges = np.concatenate([[-np.inf], cuts, [np.inf]])
        for i in range(len(cuts) + 1):
            members = numeric[codes == i]
            bins.append(
                NumericRange(
                    lower=float(edges[i]),
                    upper=float(edges[i + 1]),
                    observed_min=float(members[0]),
                    observed_max=float(members[-1]),
                )
            )
            counts.append(len(members))

    if n_missing:
        bins.append(MissingBin())
        counts.append(n_missing)

    return BinTable(
        variable=name,
        bins=tuple(bins),
        counts=np.asarray(counts, dtype=int),
        is_categorical=bool(is_categorical),
        cuts=np.asarray(cuts, dtype=float),
    )


__all__ = [
    "NumericRange",
    "CategorySet",
    "MissingBin",
    "Bin",
    "BinTable",
    "bin_variable",
    "is_categorical_series",
    "MISSING_LABEL",
]

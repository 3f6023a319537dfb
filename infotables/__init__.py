"""
infotables: Weight of Evidence and Information Value tables for variable screening.

This package bins every predictor of a dataset into equal-frequency groups,
computes WOE and IV per bin, and ranks variables by penalized IV, with
optional external cross-validation and uplift (net WOE / net IV) analysis.

Features:
- create_infotables: ranked summary and bin-level tables for a whole dataset
- bin_variable: equal-frequency binning with a separate missing bin
- compute_woe / compute_nwoe: WOE/IV and NWOE/NIV for one binned variable
- validate / validate_uplift: train/validation stability penalties
"""

from .binning import BinTable, CategorySet, MissingBin, NumericRange, bin_variable
from .config import InfoConfig
from .exceptions import (
    DegenerateOutcomeError,
    InfoTablesError,
    InsufficientDataError,
    InsufficientGroupError,
    SchemaMismatchError,
)
from .infotables import InfoTables, create_infotables
from .summary import Summary, VariableResult, summarize
from .uplift import NwoeTable, compute_nwoe
from .validation import Stability, validate, validate_uplift
from .woe import WoeTable, apply_penalties, compute_woe

__version__ = "0.1.0"

__all__ = [
    "create_infotables",
    "InfoTables",
    "InfoConfig",
    "bin_variable",
    "BinTable",
    "NumericRange",
    "CategorySet",
    "MissingBin",
    "compute_woe",
    "apply_penalties",
    "WoeTable",
    "compute_nwoe",
    "NwoeTable",
    "validate",
    "validate_uplift",
    "Stability",
    "summarize",
    "Summary",
    "VariableResult",
    "InfoTablesError",
    "InsufficientDataError",
    "DegenerateOutcomeError",
    "InsufficientGroupError",
    "SchemaMismatchError",
]

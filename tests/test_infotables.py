"""Tests for the create_infotables driver."""

import numpy as np
import pandas as pd
import pytest

from infotables import (
    DegenerateOutcomeError,
    InfoConfig,
    InsufficientGroupError,
    NwoeTable,
    SchemaMismatchError,
    WoeTable,
    create_infotables,
)

VARIABLES = ["N_OPEN_ACTS", "INCOME", "REGION", "NOISE"]


class TestBinaryRun:
    """Test cases for binary-outcome screening."""

    def test_summary_and_tables(self, train_data):
        """Every variable gets a table and a ranked summary row."""
        train = train_data.drop(columns="TREATMENT")
        result = create_infotables(train, y="PURCHASE")
        summary = result.summary

        assert not result.uplift
        assert sorted(summary["variable"]) == sorted(VARIABLES)
        assert summary["rank"].tolist() == [1, 2, 3, 4]
        assert summary["variable"].iloc[0] == "N_OPEN_ACTS"
        assert summary["error"].isna().all()
        assert all(isinstance(t, WoeTable) for t in result.tables.values())
        assert {"iv", "adj_iv", "iv_se", "iv_ci_lower", "iv_ci_upper", "gini"} <= set(
            summary.columns
        )
        assert (summary["adj_iv"] <= summary["iv"]).all()

    def test_step_scenario(self, step_data):
        """Two equal-frequency bins on the step data separate the outcome."""
        result = create_infotables(step_data, y="y", bins=2)
        table = result.get_table("x")

        assert table["bin"].tolist() == ["[1, 4]", "[5, 8]"]
        assert table["woe"].iloc[0] > 0
        assert table["woe"].iloc[1] < 0
        assert result.summary.loc[0, "iv"] > 0
        assert result.summary.loc[0, "gini"] == pytest.approx(1.0)

    def test_variables_subset(self, train_data):
        """Only the requested variables are screened, in any order."""
        result = create_infotables(
            train_data, y="PURCHASE", variables=["NOISE", "REGION"]
        )

        assert set(result.summary["variable"]) == {"NOISE", "REGION"}
        assert set(result.tables) == {"NOISE", "REGION"}
        # TREATMENT is an ordinary variable when trt is not given
        default_run = create_infotables(train_data, y="PURCHASE")
        assert "TREATMENT" in default_run.tables

    def test_bins_parameter(self, train_data):
        """More target bins give more bins, bounded by distinct values."""
        few = create_infotables(train_data, y="PURCHASE", variables=["NOISE"], bins=5)
        many = create_infotables(train_data, y="PURCHASE", variables=["NOISE"], bins=20)

        assert few.summary.loc[0, "n_bins"] == 5
        assert many.summary.loc[0, "n_bins"] == 20
        assert many.config.bins == 20

    def test_mapping_input(self, step_data):
        """Plain column mappings are accepted."""
        result = create_infotables(step_data.to_dict(orient="list"), y="y", bins=2)

        assert result.summary.loc[0, "variable"] == "x"

    def test_validation_penalizes(self, train_data, valid_data):
        """Cross-validation adds an instability penalty."""
        plain = create_infotables(train_data, y="PURCHASE", variables=VARIABLES)
        validated = create_infotables(
            train_data, y="PURCHASE", valid=valid_data, variables=VARIABLES
        )

        merged = plain.summary.merge(validated.summary, on="variable")
        assert (merged["penalty_y"] >= merged["penalty_x"]).all()
        assert (merged["iv_x"] == merged["iv_y"]).all()

    def test_self_validation_matches_plain_run(self, train_data):
        """Validating against the training data leaves AdjIV unchanged."""
        plain = create_infotables(train_data, y="PURCHASE", variables=VARIABLES)
        validated = create_infotables(
            train_data, y="PURCHASE", valid=train_data, variables=VARIABLES
        )

        pd.testing.assert_frame_equal(plain.summary, validated.summary)

    def test_config_penalty(self, train_data):
        """Penalty weights flow from the config."""
        config = InfoConfig(bin_penalty=0.0)
        result = create_infotables(
            train_data, y="PURCHASE", variables=VARIABLES, config=config
        )

        assert (result.summary["penalty"] == 0).all()
        assert (result.summary["adj_iv"] == result.summary["iv"]).all()

    def test_woe_pattern_and_transform(self, train_data):
        """Patterns and transforms use the fitted tables."""
        result = create_infotables(train_data, y="PURCHASE", variables=VARIABLES)
        pattern = result.woe_pattern("REGION")

        assert len(pattern) == 4
        assert {label for label, _ in pattern} == {"north", "south", "east", "west"}

        woe_df = result.transform(train_data)
        assert list(woe_df.columns) == VARIABLES
        assert woe_df.index.equals(train_data.index)
        assert not woe_df.isna().any().any()
        lookup = dict(pattern)
        assert woe_df["REGION"].iloc[0] == pytest.approx(lookup[train_data["REGION"].iloc[0]])

        new = pd.DataFrame(
            {
                "N_OPEN_ACTS": [0],
                "INCOME": [np.nan],
                "REGION": ["mars"],
                "NOISE": [0.0],
            }
        )
        transformed = result.transform(new)
        assert np.isnan(transformed.loc[0, "REGION"])
        assert not np.isnan(transformed.loc[0, "INCOME"])

    def test_transform_missing_column(self, train_data):
        """Transforming data without a screened column fails."""
        result = create_infotables(train_data, y="PURCHASE", variables=["NOISE"])

        with pytest.raises(SchemaMismatchError):
            result.transform(train_data.drop(columns="NOISE"))

    def test_parallel_matches_sequential(self, train_data, valid_data):
        """Process fan-out gives the same summary as a sequential run."""
        sequential = create_infotables(
            train_data, y="PURCHASE", valid=valid_data, variables=VARIABLES
        )
        parallel = create_infotables(
            train_data, y="PURCHASE", valid=valid_data, variables=VARIABLES, n_jobs=2
        )

        pd.testing.assert_frame_equal(sequential.summary, parallel.summary)


class TestErrorPolicy:
    """Per-variable errors are recorded, global errors abort."""

    def test_variable_failure_is_recorded(self, train_data):
        """An all-missing variable is listed with its failure reason."""
        data = train_data.assign(EMPTY=np.nan)
        result = create_infotables(data, y="PURCHASE", variables=["EMPTY", "NOISE"])
        summary = result.summary

        assert summary["variable"].tolist() == ["NOISE", "EMPTY"]
        assert summary.loc[1, "error"].startswith("InsufficientDataError")
        assert pd.isna(summary.loc[1, "rank"])
        assert "EMPTY" not in result.tables
        with pytest.raises(KeyError, match="failed"):
            result.get_table("EMPTY")

    def test_variable_without_shared_bins_is_recorded(self, train_data):
        """A variable that mirrors the treatment arm fails alone in uplift runs."""
        data = train_data.assign(
            ARM=np.where(train_data["TREATMENT"] == 1, "T", "C")
        )
        result = create_infotables(
            data, y="PURCHASE", trt="TREATMENT", variables=["ARM", "N_OPEN_ACTS"]
        )
        summary = result.summary

        assert summary["variable"].tolist() == ["N_OPEN_ACTS", "ARM"]
        assert summary.loc[1, "error"].startswith("InsufficientGroupError")
        assert pd.isna(summary.loc[1, "rank"])
        assert summary.loc[0, "rank"] == 1
        assert summary.loc[0, "error"] is None

    def test_unmatched_validation_variable_is_recorded(self, train_data, valid_data):
        """Validation records outside every training bin fail only that variable."""
        data = train_data.assign(GRADE=np.where(train_data["NOISE"] > 0, "a", "b"))
        valid = valid_data.assign(GRADE="zz")
        result = create_infotables(
            data, y="PURCHASE", valid=valid, variables=["GRADE", "NOISE"]
        )
        summary = result.summary

        assert summary["variable"].tolist() == ["NOISE", "GRADE"]
        assert summary.loc[1, "error"].startswith("DegenerateOutcomeError")
        assert pd.isna(summary.loc[1, "rank"])
        assert summary.loc[0, "rank"] == 1
        assert summary.loc[0, "error"] is None

    def test_single_class_arm_aborts(self, train_data):
        """An arm holding a single outcome class aborts the uplift run."""
        data = train_data.copy()
        data.loc[data["TREATMENT"] == 0, "PURCHASE"] = 0

        with pytest.raises(DegenerateOutcomeError, match="control"):
            create_infotables(data, y="PURCHASE", trt="TREATMENT")

    def test_single_class_outcome_aborts(self, step_data):
        """A single-class outcome aborts the run."""
        with pytest.raises(DegenerateOutcomeError):
            create_infotables(step_data.assign(y=1), y="y")

    def test_single_class_validation_outcome_aborts(self, train_data, valid_data):
        """A single-class validation outcome aborts the run."""
        with pytest.raises(DegenerateOutcomeError):
            create_infotables(
                train_data, y="PURCHASE", valid=valid_data.assign(PURCHASE=0)
            )

    def test_non_binary_outcome(self, step_data):
        """Outcomes must be 0/1."""
        with pytest.raises(ValueError, match="binary"):
            create_infotables(step_data.assign(y=[0, 1, 2, 0, 1, 2, 0, 1]), y="y")

    def test_missing_outcome_values(self, step_data):
        """Outcomes with missing values are rejected."""
        with pytest.raises(ValueError, match="missing"):
            create_infotables(
                step_data.assign(y=[1, 0, np.nan, 1, 0, 1, 0, 1]), y="y"
            )

    def test_missing_outcome_column(self, step_data):
        """An absent outcome column is a schema error."""
        with pytest.raises(SchemaMismatchError):
            create_infotables(step_data, y="target")

    def test_unknown_variable(self, step_data):
        """Requesting an absent variable is a schema error."""
        with pytest.raises(SchemaMismatchError):
            create_infotables(step_data, y="y", variables=["x", "z"])

    def test_validation_missing_column(self, train_data, valid_data):
        """Validation data must contain every screened variable."""
        with pytest.raises(SchemaMismatchError):
            create_infotables(
                train_data, y="PURCHASE", valid=valid_data.drop(columns="INCOME")
            )

    def test_validation_type_mismatch(self, train_data, valid_data):
        """A numeric variable cannot be categorical in validation."""
        valid = valid_data.assign(NOISE=valid_data["NOISE"].astype(str))
        with pytest.raises(SchemaMismatchError):
            create_infotables(train_data, y="PURCHASE", valid=valid)

    def test_single_treatment_group_aborts(self, train_data):
        """A treatment column with one group aborts the run."""
        with pytest.raises(InsufficientGroupError):
            create_infotables(train_data.assign(TREATMENT=1), y="PURCHASE", trt="TREATMENT")


class TestUpliftRun:
    """Test cases for uplift screening."""

    def test_uplift_summary(self, train_data, valid_data):
        """Uplift runs rank by adjusted NIV and return NWOE tables."""
        result = create_infotables(
            train_data, y="PURCHASE", trt="TREATMENT", valid=valid_data
        )
        summary = result.summary

        assert result.uplift
        assert sorted(summary["variable"]) == sorted(VARIABLES)
        assert {"niv", "adj_niv"} <= set(summary.columns)
        assert "iv" not in summary.columns
        assert all(isinstance(t, NwoeTable) for t in result.tables.values())
        assert summary["adj_niv"].is_monotonic_decreasing

        table = result.get_table("REGION")
        assert {"nwoe", "niv", "niv_cum", "penalty", "penalty_cum"} <= set(table.columns)

        pattern = dict(result.woe_pattern("REGION"))
        woe_df = result.transform(train_data)
        assert woe_df["REGION"].iloc[0] == pytest.approx(pattern[train_data["REGION"].iloc[0]])

    def test_excluded_bin_does_not_fail_variable(self):
        """A bin seen in one arm only is excluded without failing the variable."""
        data = pd.DataFrame(
            {
                "grade": ["a", "a", "a", "a", "b", "b", "b", "b", "c", "c"],
                "trt": [1, 1, 0, 0, 1, 1, 0, 0, 1, 1],
                "y": [1, 0, 1, 0, 1, 1, 0, 1, 0, 1],
            }
        )
        result = create_infotables(data, y="y", trt="trt")

        assert result.summary.loc[0, "error"] is None
        assert result.tables["grade"].excluded_bins == ["c"]

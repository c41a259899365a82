"""Tests for rubric aggregation and validation."""
import pytest

from ilearn.grading.rubric import (
    criterion_max_points, rubric_total, selected_points, toggled_points, top_level_selections, validate_rubric,
)

from conftest import SAMPLE_RUBRIC


class TestTotals:
    def test_rubric_total_sums_best_levels(self):
        assert rubric_total(SAMPLE_RUBRIC) == 25

    def test_empty_rubric_is_worth_nothing(self):
        assert rubric_total([]) == 0
        assert rubric_total(None) == 0

    def test_criterion_without_levels(self):
        assert criterion_max_points({"name": "Empty", "levels": []}) == 0

    def test_levels_need_not_be_sorted(self):
        criterion = {"name": "C", "levels": [{"label": "Low", "points": 1}, {"label": "High", "points": 7}]}
        assert criterion_max_points(criterion) == 7


class TestSelections:
    def test_selected_points(self):
        assert selected_points(SAMPLE_RUBRIC, {"Thesis": "Fair", "Evidence": "Strong"}) == 20

    def test_missing_selection_counts_zero(self):
        assert selected_points(SAMPLE_RUBRIC, {"Thesis": "Excellent"}) == 10

    def test_unknown_criterion(self):
        with pytest.raises(ValueError, match="Unknown rubric criterion"):
            selected_points(SAMPLE_RUBRIC, {"Style": "Excellent"})

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="no level"):
            selected_points(SAMPLE_RUBRIC, {"Thesis": "Superb"})

    def test_toggled_points(self):
        assert toggled_points(SAMPLE_RUBRIC, ["Evidence"]) == 15
        assert toggled_points(SAMPLE_RUBRIC, []) == 0

    def test_toggled_unknown(self):
        with pytest.raises(ValueError):
            toggled_points(SAMPLE_RUBRIC, ["Nope"])

    def test_top_level_selections_match_toggles(self):
        selections = top_level_selections(SAMPLE_RUBRIC, ["Thesis", "Evidence"])
        assert selections == {"Thesis": "Excellent", "Evidence": "Strong"}
        assert selected_points(SAMPLE_RUBRIC, selections) == toggled_points(SAMPLE_RUBRIC, ["Thesis", "Evidence"])


class TestValidation:
    def test_valid(self):
        assert validate_rubric(SAMPLE_RUBRIC) == (True, "Valid rubric")

    @pytest.mark.parametrize(
        "criteria, message",
        [
            ([], "at least one criterion"),
            ([{"name": "", "levels": [{"label": "A", "points": 1}]}], "must have a name"),
            (
                [
                    {"name": "A", "levels": [{"label": "x", "points": 1}]},
                    {"name": "A", "levels": [{"label": "y", "points": 1}]},
                ],
                "Duplicate criterion",
            ),
            ([{"name": "A", "levels": []}], "at least one performance level"),
            ([{"name": "A", "levels": [{"label": "x", "points": -1}]}], "non-negative"),
            ([{"name": "A", "levels": [{"label": "x", "points": 1}, {"label": "x", "points": 2}]}], "duplicate level"),
        ],
    )
    def test_invalid(self, criteria, message):
        ok, error = validate_rubric(criteria)
        assert not ok
        assert message in error

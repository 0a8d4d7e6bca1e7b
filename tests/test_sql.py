"""Tests for the partial-update SET fragment builder."""
import pytest

from jobly.errors import BadRequestError
from jobly.sql import SqlFragment, sql_for_partial_update


class TestPartialUpdate:

    data = {"school": "Springboard", "track": "SE"}

    def test_no_data_raises(self):
        with pytest.raises(BadRequestError):
            sql_for_partial_update({}, {})

    def test_no_data_raises_regardless_of_map(self):
        with pytest.raises(BadRequestError, match="No data"):
            sql_for_partial_update({}, {"school": "Bootcamp"})

    def test_keys_without_mapping(self):
        result = sql_for_partial_update(self.data, {})
        assert result == SqlFragment("school=$1, track=$2", ["Springboard", "SE"])

    def test_keys_renamed_by_mapping(self):
        result = sql_for_partial_update(self.data, {"school": "Bootcamp", "track": "Career Track"})
        assert result.clause == "Bootcamp=$1, Career Track=$2"
        assert result.params == ["Springboard", "SE"]

    def test_partial_mapping_falls_back_to_key(self):
        result = sql_for_partial_update(
            {"firstName": "Aliya", "email": "a@b.com", "isAdmin": True},
            {"firstName": "first_name", "isAdmin": "is_admin"},
        )
        assert result.clause == "first_name=$1, email=$2, is_admin=$3"
        assert result.params == ["Aliya", "a@b.com", True]

    def test_mapping_is_optional(self):
        assert sql_for_partial_update({"title": "new"}) == ("title=$1", ["new"])

    def test_accepts_ordered_pairs(self):
        result = sql_for_partial_update([("track", "SE"), ("school", "Springboard")])
        assert result == ("track=$1, school=$2", ["SE", "Springboard"])

    def test_placeholder_matches_param_position(self):
        data = {f"col{i}": i * 10 for i in range(1, 8)}
        clause, params = sql_for_partial_update(data)
        for n, fragment in enumerate(clause.split(", "), start=1):
            assert fragment.endswith(f"=${n}")
            assert params[n - 1] == n * 10
        assert len(params) == len(data)

    def test_start_offsets_placeholders(self):
        result = sql_for_partial_update(self.data, start=3)
        assert result.clause == "school=$3, track=$4"

    def test_allowed_keys_pass(self):
        result = sql_for_partial_update(self.data, allowed={"school", "track", "cohort"})
        assert result.clause == "school=$1, track=$2"

    def test_keys_outside_allow_list_rejected(self):
        with pytest.raises(BadRequestError, match="track"):
            sql_for_partial_update(self.data, allowed={"school"})

    def test_same_input_same_output(self):
        first = sql_for_partial_update(self.data, {"school": "Bootcamp"})
        second = sql_for_partial_update(self.data, {"school": "Bootcamp"})
        assert first == second
        assert first.clause == "Bootcamp=$1, track=$2"

    def test_input_not_mutated(self):
        data = dict(self.data)
        sql_for_partial_update(data, {"school": "Bootcamp"})
        assert data == self.data

"""Tests for the search filter WHERE fragment builder."""
from jobly.query import COMPANY_FILTERS, JOB_FILTERS, like_pattern, sql_for_filters


class TestJobFilters:

    def test_min_and_max(self):
        result = sql_for_filters({"minSalary": 800, "maxSalary": 900}, JOB_FILTERS)
        assert result.clause == "salary>=$1 AND salary<=$2"
        assert result.params == [800, 900]

    def test_unknown_key_dropped(self):
        result = sql_for_filters({"minSalary": 800, "bogus": "x"}, JOB_FILTERS)
        assert result.clause == "salary>=$1"
        assert result.params == [800]

    def test_title_is_parameterized(self):
        result = sql_for_filters({"title": "engineer"}, JOB_FILTERS)
        assert result.clause == "title ILIKE $1"
        assert result.params == ["%engineer%"]

    def test_all_keys_follow_input_order(self):
        result = sql_for_filters([("maxSalary", 900), ("title", "dev"), ("minSalary", 100)], JOB_FILTERS)
        assert result.clause == "salary<=$1 AND title ILIKE $2 AND salary>=$3"
        assert result.params == [900, "%dev%", 100]

    def test_inverted_range_is_not_an_error(self):
        result = sql_for_filters({"minSalary": 900, "maxSalary": 100}, JOB_FILTERS)
        assert result.params == [900, 100]

    def test_wildcards_in_title_match_literally(self):
        result = sql_for_filters({"title": "50%"}, JOB_FILTERS)
        assert result.clause == "title ILIKE $1"
        assert result.params == ["%50\\%%"]

    def test_company_keys_are_not_job_keys(self):
        result = sql_for_filters({"minEmployees": 5, "name": "llc"}, JOB_FILTERS)
        assert result == ("", [])


class TestCompanyFilters:

    def test_name_only(self):
        result = sql_for_filters({"name": "llc"}, COMPANY_FILTERS)
        assert result.clause == "name ILIKE $1"
        assert result.params == ["%llc%"]

    def test_name_and_bounds(self):
        result = sql_for_filters({"name": "llc", "minEmployees": 800, "maxEmployees": 900}, COMPANY_FILTERS)
        assert result.clause == "name ILIKE $1 AND num_employees>=$2 AND num_employees<=$3"
        assert result.params == ["%llc%", 800, 900]

    def test_bound_after_unknown_key_keeps_numbering(self):
        result = sql_for_filters(
            {"handle": "baker-santos", "numEmployees": 225, "maxEmployees": 300},
            COMPANY_FILTERS,
        )
        assert result.clause == "num_employees<=$1"
        assert result.params == [300]

    def test_nothing_recognized(self):
        result = sql_for_filters({"description": "x", "logoUrl": "/logos/logo3.png"}, COMPANY_FILTERS)
        assert result.clause == ""
        assert result.params == []

    def test_empty_criteria(self):
        assert sql_for_filters({}, COMPANY_FILTERS) == ("", [])

    def test_injection_attempt_stays_in_params(self):
        evil = "x' OR '1'='1"
        result = sql_for_filters({"name": evil}, COMPANY_FILTERS)
        assert evil not in result.clause
        assert result.params == ["%x' OR '1'='1%"]

    def test_start_offsets_placeholders(self):
        result = sql_for_filters({"minEmployees": 1, "maxEmployees": 2}, COMPANY_FILTERS, start=4)
        assert result.clause == "num_employees>=$4 AND num_employees<=$5"

    def test_same_input_same_output(self):
        criteria = {"name": "llc", "minEmployees": 800}
        assert sql_for_filters(criteria, COMPANY_FILTERS) == sql_for_filters(criteria, COMPANY_FILTERS)


class TestLikePattern:

    def test_plain_value(self):
        assert like_pattern("llc") == "%llc%"

    def test_wildcards_escaped(self):
        assert like_pattern("50%_off") == "%50\\%\\_off%"

    def test_backslash_escaped(self):
        assert like_pattern("a\\b") == "%a\\\\b%"

"""Translate search filters from query strings into ``WHERE`` fragments."""
from typing import NamedTuple

from jobly.sql import Pairs, SqlFragment, ordered_pairs


class FilterSpec(NamedTuple):
    """The filter keys an entity recognizes and the columns they apply to."""

    text_key: str
    text_column: str
    min_key: str
    max_key: str
    numeric_column: str


COMPANY_FILTERS = FilterSpec(
    text_key="name",
    text_column="name",
    min_key="minEmployees",
    max_key="maxEmployees",
    numeric_column="num_employees",
)

JOB_FILTERS = FilterSpec(
    text_key="title",
    text_column="title",
    min_key="minSalary",
    max_key="maxSalary",
    numeric_column="salary",
)


def like_pattern(value: str) -> str:
    """Wrap ``value`` for a substring ILIKE, matching LIKE wildcards literally."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# PUBLIC_INTERFACE
def sql_for_filters(criteria: Pairs, filters: FilterSpec, start: int = 1) -> SqlFragment:
    """
    Build the ``WHERE`` body for a search.

    Recognized keys become predicates joined with AND, in the order given:

        >>> sql_for_filters({"minSalary": 800, "maxSalary": 900}, JOB_FILTERS)
        SqlFragment(clause='salary>=$1 AND salary<=$2', params=[800, 900])

    Other keys are dropped. With nothing recognized the clause is "" and the
    caller must leave out the WHERE keyword. An inverted min/max range is
    accepted and just matches no rows.

    The text value is matched as ``%value%``, but ``%``, ``_`` and ``\\`` inside
    it are backslash-escaped first (see ``like_pattern``), so ``"50%"`` only
    matches names containing a literal ``50%``.
    """
    cols = []
    params = []

    for key, value in ordered_pairs(criteria):
        if key == filters.min_key:
            op, param = ">=", value
        elif key == filters.max_key:
            op, param = "<=", value
        elif key == filters.text_key:
            op, param = None, like_pattern(str(value))
        else:
            continue

        params.append(param)
        idx = start + len(params) - 1
        if op is None:
            cols.append(f"{filters.text_column} ILIKE ${idx}")
        else:
            cols.append(f"{filters.numeric_column}{op}${idx}")

    return SqlFragment(" AND ".join(cols), params)

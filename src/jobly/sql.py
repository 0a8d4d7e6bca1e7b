"""
SQL fragment helpers.

Fragments are clause bodies without their keyword (no ``SET``/``WHERE``) plus
the positional parameters they bind. Placeholders are ``$1``, ``$2``, ... and
placeholder ``$n`` always binds ``params[n - 1 - (start - 1)]``, so callers can
append further parameters (e.g. the row id) after the fragment's own.
"""
from typing import Any, Collection, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from jobly.errors import BadRequestError

Pairs = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class SqlFragment(NamedTuple):
    clause: str
    params: List[Any]


def ordered_pairs(data: Pairs) -> List[Tuple[str, Any]]:
    """Freeze ``data`` into an explicit list of (key, value) pairs."""
    if isinstance(data, Mapping):
        return list(data.items())
    return [(key, value) for key, value in data]


# PUBLIC_INTERFACE
def sql_for_partial_update(
    data: Pairs,
    js_to_sql: Optional[Mapping[str, str]] = None,
    allowed: Optional[Collection[str]] = None,
    start: int = 1,
) -> SqlFragment:
    """
    Build the ``SET`` body for a partial update.

        >>> sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
        SqlFragment(clause='first_name=$1, age=$2', params=['Aliya', 32])

    Column names are written into the clause as-is. They must come from a
    developer-controlled allow-list; pass ``allowed`` to have it checked here.

    Raises BadRequestError if ``data`` is empty or holds keys outside ``allowed``.
    """
    pairs = ordered_pairs(data)
    if not pairs:
        raise BadRequestError("No data")

    if allowed is not None:
        unknown = [key for key, _ in pairs if key not in allowed]
        if unknown:
            raise BadRequestError(f"Cannot update field(s): {', '.join(unknown)}")

    js_to_sql = js_to_sql or {}
    cols = [f"{js_to_sql.get(key, key)}=${idx}" for idx, (key, _) in enumerate(pairs, start=start)]

    return SqlFragment(", ".join(cols), [value for _, value in pairs])

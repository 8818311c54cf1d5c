"""SQL statement helpers: classification, placeholder rendering, identifiers."""

import re
from typing import Any, Callable, Iterable, Mapping, Optional

from simple_database.models.query import StatementKind, StatementType

PLACEHOLDER_PATTERN = re.compile(r"(?<![:\w]):(\w+)")

READ_STATEMENT_TYPES = {StatementType.SELECT}
WRITE_STATEMENT_TYPES = {
    StatementType.INSERT,
    StatementType.UPDATE,
    StatementType.REPLACE,
    StatementType.DELETE,
    StatementType.OTHER,
}


def _normalize_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    # Accept both {"id": 1} and {":id": 1}
    return {str(key).lstrip(":"): value for key, value in (params or {}).items()}


def render_placeholders(
    sql: str,
    params: Optional[Mapping[str, Any]],
    render: Callable[[Any], str],
) -> str:
    """
    Replace each ``:name`` placeholder found in params with ``render(value)``.

    Placeholders without a matching parameter are left as they are, and a
    ``::`` cast is never mistaken for a placeholder.
    """
    values = _normalize_params(params)
    if not values:
        return sql

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in values:
            return match.group(0)
        return render(values[name])

    return PLACEHOLDER_PATTERN.sub(_substitute, sql)


def _display_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    return f"'{value}'"


def resolve_query(sql: str, params: Optional[Mapping[str, Any]]) -> str:
    """
    Build a human readable query with parameter values inlined.

    Values are wrapped in single quotes without any escaping. The result is
    meant for log lines and error messages only and must never be sent to
    the database.

    Args:
        sql: SQL text with :name placeholders
        params: Placeholder values

    Returns:
        SQL text with placeholders replaced
    """
    return render_placeholders(sql, params, _display_literal)


def get_first_word(sql: str) -> Optional[str]:
    """Return the first whitespace delimited token, or None for blank input."""
    words = sql.split()
    return words[0] if words else None


def get_statement_type(sql: str) -> StatementType:
    """Detect the statement type from its leading keyword."""
    first_word = (get_first_word(sql) or "").upper()
    try:
        return StatementType(first_word)
    except ValueError:
        return StatementType.OTHER


def classify_statement(sql: str) -> StatementKind:
    """
    Classify a statement as READ or WRITE.

    Raises:
        UnknownStatementKindError: If the statement type belongs to neither set
    """
    statement_type = get_statement_type(sql)
    if statement_type in READ_STATEMENT_TYPES:
        return StatementKind.READ
    if statement_type in WRITE_STATEMENT_TYPES:
        return StatementKind.WRITE

    from simple_database.exceptions import UnknownStatementKindError

    raise UnknownStatementKindError(statement_type.value)


def is_select(sql: Optional[str]) -> bool:
    """Check if a statement starts with SELECT, ignoring case and leading whitespace."""
    if not sql:
        return False
    return sql.strip()[:6].upper() == "SELECT"


def quote_identifier(identifier: str) -> str:
    """
    Backtick-quote an identifier, quoting each segment of a dotted name.

    >>> quote_identifier("users.id")
    '`users`.`id`'
    """
    segments = str(identifier).split(".")
    return ".".join("`" + segment.replace("`", "``") + "`" for segment in segments)


def placeholder_name(key: str) -> str:
    """Map a column key to a bind parameter name (``users.id`` -> ``users_id``)."""
    return re.sub(r"\W", "_", str(key))


def bind_names(keys: Iterable[str]) -> list[str]:
    """
    Map column keys to distinct bind parameter names, in order.

    A name already taken by an earlier key gets a positional suffix:

    >>> bind_names(["a_b", "a.b"])
    ['a_b', 'a_b_1']
    """
    names: list[str] = []
    taken: set[str] = set()
    for index, key in enumerate(keys):
        name = placeholder_name(key)
        if name in taken:
            name = f"{name}_{index}"
            while name in taken:
                name = f"{name}_"
        taken.add(name)
        names.append(name)
    return names

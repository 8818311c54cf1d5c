"""Utility modules for simple_database."""

from simple_database.utils.serialization import (
    convert_row_to_json_safe,
    convert_rows_to_json_safe,
    dumps,
)
from simple_database.utils.statements import (
    bind_names,
    classify_statement,
    get_first_word,
    get_statement_type,
    is_select,
    placeholder_name,
    quote_identifier,
    render_placeholders,
    resolve_query,
)

__all__ = [
    "bind_names",
    "classify_statement",
    "convert_row_to_json_safe",
    "convert_rows_to_json_safe",
    "dumps",
    "get_first_word",
    "get_statement_type",
    "is_select",
    "placeholder_name",
    "quote_identifier",
    "render_placeholders",
    "resolve_query",
]

"""Typed result accessors built on QueryExecutor."""

from typing import Any, Mapping, Optional

from simple_database.core.executor import QueryExecutor
from simple_database.exceptions import NoRecordsFoundError
from simple_database.models.query import FetchMode


class ResultAccessors:
    """Fetch a column, a row, all rows or one column of all rows."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    def get_column(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        column_index: int = 0,
        optional: bool = False,
    ) -> Any:
        """
        Get one value from the first row.

        Args:
            sql: SQL query
            params: Query parameters
            column_index: Position of the column in the row
            optional: Return None instead of raising when nothing matches

        Returns:
            The value, or None for an optional lookup with no rows

        Raises:
            NoRecordsFoundError: If no rows matched and optional is False
            QueryExecutionError: If the query failed
        """
        statement = self.executor.execute(sql, params)

        if statement.row_count() < 1:
            if optional:
                return None
            raise NoRecordsFoundError(sql, params)

        return statement.fetch_column(column_index)

    def get_row(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        optional: bool = False,
        fetch_mode: FetchMode = FetchMode.ASSOC,
    ) -> Any:
        """
        Get the first row.

        Raises:
            NoRecordsFoundError: If no rows matched and optional is False
            QueryExecutionError: If the query failed
        """
        statement = self.executor.execute(sql, params)

        if statement.row_count() < 1:
            if optional:
                return None
            raise NoRecordsFoundError(sql, params)

        return statement.fetch(fetch_mode)

    def get_all(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        fetch_mode: FetchMode = FetchMode.ASSOC,
    ) -> list[Any]:
        """Get every row; an empty result gives an empty list."""
        statement = self.executor.execute(sql, params)
        return statement.fetch_all(fetch_mode)

    def get_column_from_all_rows(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        column_index: int = 0,
    ) -> list[Any]:
        """Get one column of every row, in row order."""
        return [
            row[column_index] for row in self.get_all(sql, params, FetchMode.NUM)
        ]

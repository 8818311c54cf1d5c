"""INSERT / REPLACE / DELETE builders and table maintenance statements."""

import logging
from typing import Any, Mapping, Sequence

from simple_database.adapters.base import DriverStatement
from simple_database.core.accessors import ResultAccessors
from simple_database.core.executor import QueryExecutor
from simple_database.models.query import FetchMode
from simple_database.utils.statements import bind_names, quote_identifier

logger = logging.getLogger(__name__)


class MutationHelpers:
    """Builds and runs write statements from plain mappings."""

    def __init__(self, executor: QueryExecutor, accessors: ResultAccessors):
        self.executor = executor
        self.accessors = accessors

    # ------------------------------------------------------------------
    # Statement building
    # ------------------------------------------------------------------

    @staticmethod
    def _keys(fields: Mapping[str, Any]) -> str:
        return ",".join(quote_identifier(key) for key in fields)

    @staticmethod
    def _bind(fields: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
        placeholders = []
        params = {}
        for name, value in zip(bind_names(fields), fields.values()):
            placeholders.append(f":{name}")
            params[name] = value
        return ",".join(placeholders), params

    def _values(self, rows: Sequence[Mapping[str, Any]]) -> tuple[str, list[str]]:
        if not rows:
            raise ValueError("at least one row required")

        keys = list(rows[0].keys())
        tuples = []
        for index, row in enumerate(rows):
            if set(row.keys()) != set(keys):
                raise ValueError(
                    f"Row {index} has keys {sorted(row.keys())}, "
                    f"expected {sorted(keys)}"
                )
            tuples.append(",".join(self.quote(row[key]) for key in keys))
        return self._keys(keys), tuples

    def quote(self, value: Any) -> str:
        """Render a value as a literal (NULL, joined list, or quoted scalar)."""
        return self.executor.quote(value)

    # ------------------------------------------------------------------
    # Insert / replace / delete
    # ------------------------------------------------------------------

    def insert(self, table: str, fields: Mapping[str, Any]) -> str:
        """
        Insert one row with bound values.

        Args:
            table: Table name
            fields: Column name to value; dotted names are qualified identifiers

        Returns:
            Identifier assigned by the database
        """
        placeholders, params = self._bind(fields)
        sql = (
            f"INSERT INTO {quote_identifier(table)} ({self._keys(fields)}) "
            f"VALUES ({placeholders});"
        )
        self.executor.execute(sql, params)
        return self.executor.last_insert_id()

    def insert_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        """
        Insert many rows in one statement with literal values.

        Raises:
            ValueError: If rows is empty or the rows' keys differ
        """
        keys, tuples = self._values(rows)
        values = "),(".join(tuples)
        sql = f"INSERT INTO {quote_identifier(table)} ({keys}) VALUES ({values});"
        self.executor.execute_statement(sql)
        logger.debug(f"Inserted {len(tuples)} rows into {table}")
        return True

    def replace(self, table: str, fields: Mapping[str, Any]) -> bool:
        """Insert or replace one row by primary/unique key."""
        placeholders, params = self._bind(fields)
        sql = (
            f"REPLACE INTO {quote_identifier(table)} ({self._keys(fields)}) "
            f"VALUES ({placeholders});"
        )
        self.executor.execute(sql, params)
        return True

    def replace_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        """
        Insert or replace many rows in one statement.

        Raises:
            ValueError: If rows is empty or the rows' keys differ
        """
        keys, tuples = self._values(rows)
        values = "),(".join(tuples)
        sql = f"REPLACE INTO {quote_identifier(table)} ({keys}) VALUES ({values});"
        self.executor.execute_statement(sql)
        return True

    def delete(self, table: str, row: Mapping[str, Any]) -> bool:
        """Delete rows matching every column of row."""
        return self.delete_multiple(table, [row])

    def delete_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        """
        Delete rows matching any of the given full-row tuples.

        Raises:
            ValueError: If rows is empty or the rows' keys differ
        """
        keys, tuples = self._values(rows)
        values = "(" + "),(".join(tuples) + ")"
        sql = f"DELETE FROM {quote_identifier(table)} WHERE ({keys}) IN ({values});"
        self.executor.execute_statement(sql)
        return True

    # ------------------------------------------------------------------
    # Table maintenance
    # ------------------------------------------------------------------

    def truncate_table(self, table: str) -> DriverStatement:
        return self.executor.execute(f"TRUNCATE {quote_identifier(table)};")

    def drop_table(self, table: str) -> None:
        self.executor.execute(f"DROP TABLE {quote_identifier(table)};")

    def rename_table(self, current_name: str, new_name: str) -> None:
        self.executor.execute(
            f"RENAME TABLE {quote_identifier(current_name)} TO {quote_identifier(new_name)}"
        )

    def duplicate_table(self, table: str, new_table: str, with_data: bool = False) -> None:
        """
        Create new_table with table's structure, optionally copying its rows.

        The source table is never modified. When copying, new_table is
        truncated first so an existing copy is refreshed, not appended to.
        """
        self.executor.execute(
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(new_table)} "
            f"LIKE {quote_identifier(table)};"
        )
        if with_data:
            self.truncate_table(new_table)
            self.executor.execute(
                f"INSERT INTO {quote_identifier(new_table)} "
                f"SELECT * FROM {quote_identifier(table)};"
            )

    def disable_foreign_key_checks(self) -> None:
        self.executor.execute("SET foreign_key_checks = 0;")

    def enable_foreign_key_checks(self) -> None:
        self.executor.execute("SET foreign_key_checks = 1;")

    def list_tables_starts_with(self, prefix: str) -> list[str]:
        """List table names beginning with prefix (LIKE wildcards apply)."""
        return self.accessors.get_all(
            "SHOW TABLES LIKE :pattern;", {"pattern": f"{prefix}%"}, FetchMode.COLUMN
        )

    def list_all_tables(self) -> list[str]:
        return self.list_tables_starts_with("")

    def list_tables_not_starting_with(self, prefix: str) -> list[str]:
        return [name for name in self.list_all_tables() if not name.startswith(prefix)]

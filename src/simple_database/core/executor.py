"""Query execution with read/write routing, logging and reconnect retries."""

import logging
import time
from typing import Any, Callable, Mapping, Optional

from simple_database.adapters.base import DriverConnection, DriverStatement
from simple_database.core.connection import ConnectionProvider
from simple_database.exceptions import (
    ConnectionLostError,
    DriverError,
    QueryExecutionError,
)
from simple_database.models.query import ErrorInfo, Statement
from simple_database.utils.serialization import dumps
from simple_database.utils.statements import render_placeholders, resolve_query

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0

# (result, None) on success, (None, error_info) on a reported failure
Attempt = tuple[Any, Optional[ErrorInfo]]


def _literal_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class QueryExecutor:
    """Executes SQL on the connection the provider picks for it."""

    def __init__(
        self,
        provider: ConnectionProvider,
        logger: Optional[logging.Logger] = None,
        query_logger: Optional[logging.Logger] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        """
        Initialize query executor.

        Args:
            provider: Source of write/read connections
            logger: Logger for debug and error lines (default: module logger)
            query_logger: Optional logger receiving every resolved query at INFO
            max_retries: Default reconnect attempts per statement
            retry_delay: Seconds to sleep before each reconnect attempt
        """
        self.provider = provider
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.query_logger = query_logger
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def set_query_logger(self, query_logger: Optional[logging.Logger]) -> None:
        self.query_logger = query_logger

    @staticmethod
    def resolve_query(sql: str, params: Optional[Mapping[str, Any]]) -> str:
        """Human readable query for logs; never sent to the database."""
        return resolve_query(sql, params)

    def execute(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> DriverStatement:
        """
        Prepare and execute a statement with bound parameters.

        Args:
            sql: SQL text with :name placeholders
            params: Placeholder values
            retries: Reconnect attempts on a dropped connection
                (default: max_retries)

        Returns:
            The executed statement, ready to fetch from

        Raises:
            QueryExecutionError: If the driver reports a failure or the
                retry budget runs out
        """
        query = Statement(sql=sql, params=dict(params or {}))

        def _attempt(connection: DriverConnection) -> Attempt:
            statement = connection.prepare(query.sql)
            self._log_query(query)
            if statement.execute(query.params):
                return statement, None
            return None, statement.error_info()

        return self._run(query, retries, _attempt)

    def execute_statement(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> None:
        """
        Execute a statement directly, without prepare/bind.

        Placeholders are replaced by driver-quoted literals before sending.
        Meant for statements whose values are already inlined (multi-row
        inserts, deletes by row tuples).

        Raises:
            QueryExecutionError: If the driver reports a failure or the
                retry budget runs out
        """
        query = Statement(sql=sql, params=dict(params or {}))

        def _attempt(connection: DriverConnection) -> Attempt:
            self._log_query(query)
            inlined = render_placeholders(
                query.sql,
                query.params,
                lambda value: self._quote_with(connection, value),
            )
            if connection.exec(inlined) is not None:
                return True, None
            return None, connection.error_info()

        self._run(query, retries, _attempt)

    def _run(
        self,
        query: Statement,
        retries: Optional[int],
        attempt: Callable[[DriverConnection], Attempt],
    ) -> Any:
        remaining = self.max_retries if retries is None else retries

        while True:
            connection = self.provider.get_connection(query.sql)

            try:
                outcome, error_info = attempt(connection)
                if outcome is not None:
                    return outcome
            except ConnectionLostError as e:
                error_info = e.error_info
                if remaining > 0:
                    self.logger.warning(
                        f"Connection lost while executing {query.sql}, "
                        f"retrying ({remaining} attempts left)"
                    )
                    time.sleep(self.retry_delay)
                    if self.provider.reconnect(connection):
                        remaining -= 1
                        continue
            except DriverError as e:
                error_info = e.error_info

            self._log_query_error(query, error_info)
            raise QueryExecutionError(query.sql, query.params, error_info)

    def quote(self, value: Any) -> str:
        """
        Render a value as a SQL literal using the write connection.

        None becomes NULL, booleans become 1 or 0 and bytes become a hex
        literal (``X'..'``). Lists, tuples and sets are comma-joined into one
        quoted string.
        """
        return self._quote_with(self.provider.get_write_connection(), value)

    @staticmethod
    def _quote_with(connection: DriverConnection, value: Any) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (bytes, bytearray, memoryview)):
            return f"X'{bytes(value).hex()}'"
        if isinstance(value, (list, tuple, set, frozenset)):
            return connection.quote(",".join(_literal_text(item) for item in value))
        return connection.quote(str(value))

    def last_insert_id(self) -> str:
        """Identifier of the latest insert, read from the write connection."""
        return self.provider.get_write_connection().last_insert_id()

    def _log_query(self, query: Statement) -> None:
        self.logger.debug(f"Executing {query.sql} with params {dumps(query.params)}")
        if self.query_logger is not None:
            self.query_logger.info(query.resolved)

    def _log_query_error(self, query: Statement, error_info: ErrorInfo) -> None:
        self.logger.error(
            f"Could not execute query {query.sql} "
            f"with parameters {dumps(query.params)}: "
            f"{error_info.format()}."
        )

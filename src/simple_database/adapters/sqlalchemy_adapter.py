"""Driver adapter over a SQLAlchemy connection."""

import logging
from typing import Any, Mapping, NamedTuple, Optional

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import (
    DBAPIError,
    PendingRollbackError,
    ResourceClosedError,
    SQLAlchemyError,
    StatementError,
)

from simple_database.adapters.base import DriverConnection, DriverStatement
from simple_database.exceptions import ConnectionLostError, DriverError
from simple_database.models.query import ErrorInfo, FetchMode
from simple_database.utils.statements import get_first_word

logger = logging.getLogger(__name__)

DEFAULT_SQLSTATE = "HY000"
# SQLSTATE for a placeholder without a bound value
INVALID_PARAMETER_SQLSTATE = "HY093"
# MySQL server status flag reported in every OK packet
SERVER_STATUS_IN_TRANS = 1

TRANSACTION_START_WORDS = {"START", "BEGIN"}
TRANSACTION_END_WORDS = {"COMMIT", "ROLLBACK"}


def error_info_from_exception(exc: SQLAlchemyError) -> ErrorInfo:
    """
    Build an ErrorInfo triple from a SQLAlchemy exception.

    PyMySQL and mysqlclient put ``(code, message)`` in the DBAPI exception
    args; psycopg exposes ``sqlstate`` / ``pgcode``; sqlite3 exposes
    ``sqlite_errorcode``.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        orig = exc.orig
        args = getattr(orig, "args", ())
        sqlstate = (
            getattr(orig, "sqlstate", None)
            or getattr(orig, "pgcode", None)
            or DEFAULT_SQLSTATE
        )
        driver_code = getattr(orig, "sqlite_errorcode", None)
        message = str(orig)
        if args and isinstance(args[0], int):
            driver_code = args[0]
            message = str(args[1]) if len(args) > 1 else message
        return ErrorInfo(sqlstate=sqlstate, driver_code=driver_code, message=message)

    message = str(exc.orig) if isinstance(exc, StatementError) and exc.orig else str(exc)
    sqlstate = (
        INVALID_PARAMETER_SQLSTATE if "bind parameter" in message else DEFAULT_SQLSTATE
    )
    return ErrorInfo(sqlstate=sqlstate, message=message)


def is_connection_lost(exc: SQLAlchemyError) -> bool:
    """Check if an exception means the session is gone rather than the SQL failed."""
    if isinstance(exc, DBAPIError):
        return bool(exc.connection_invalidated)
    return isinstance(exc, (PendingRollbackError, ResourceClosedError))


class ExecutedResult(NamedTuple):
    """Fully buffered outcome of one execution."""

    keys: list[str]
    rows: list[tuple]
    row_count: int
    returns_rows: bool


class SQLAlchemyStatement(DriverStatement):
    """Prepared text() statement; rows are buffered on execute()."""

    def __init__(self, connection: "SQLAlchemyConnection", sql: str):
        self.sql = sql
        self._connection = connection
        self._keys: list[str] = []
        self._rows: list[tuple] = []
        self._position = 0
        self._row_count = 0
        self._error_info = ErrorInfo()

    def execute(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        try:
            result = self._connection.run(self.sql, params, bind=True)
        except DriverError as exc:
            self._error_info = exc.error_info
            raise

        self._keys = result.keys
        self._rows = result.rows
        self._row_count = result.row_count
        self._position = 0
        return True

    def row_count(self) -> int:
        return self._row_count

    def _shape(self, row: tuple, mode: FetchMode) -> Any:
        if mode == FetchMode.ASSOC:
            return dict(zip(self._keys, row))
        if mode == FetchMode.COLUMN:
            return row[0]
        return tuple(row)

    def fetch(self, mode: FetchMode = FetchMode.ASSOC) -> Any:
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return self._shape(row, mode)

    def fetch_all(self, mode: FetchMode = FetchMode.ASSOC) -> list[Any]:
        remaining = self._rows[self._position :]
        self._position = len(self._rows)
        return [self._shape(row, mode) for row in remaining]

    def error_info(self) -> ErrorInfo:
        return self._error_info


class SQLAlchemyConnection(DriverConnection):
    """
    Driver adapter around one SQLAlchemy ``Connection``.

    The connection runs in AUTOCOMMIT isolation so that textual
    ``START TRANSACTION`` / ``COMMIT`` / ``ROLLBACK`` statements control
    server transactions directly, the same way a plain client session does.
    """

    def __init__(self, connection: Connection):
        self._connection = connection
        self._error_info = ErrorInfo()
        self._last_insert_id: Optional[Any] = None
        self._transaction_open = False

    @classmethod
    def connect(cls, engine: Engine) -> "SQLAlchemyConnection":
        """
        Check out a connection from the engine and wrap it.

        Connection errors propagate to the caller.
        """
        connection = engine.connect()
        connection.execution_options(isolation_level="AUTOCOMMIT")
        logger.debug(f"Opened {engine.dialect.name} connection")
        return cls(connection)

    @property
    def dialect_name(self) -> str:
        """Get the SQLAlchemy dialect name."""
        return self._connection.dialect.name

    @property
    def dbapi_connection(self) -> Any:
        """Get the raw DB-API connection."""
        return self._connection.connection.dbapi_connection

    def run(
        self, sql: str, params: Optional[Mapping[str, Any]], bind: bool
    ) -> ExecutedResult:
        """
        Execute SQL and buffer the whole result.

        Args:
            sql: SQL text
            params: Bound values (ignored when bind is False)
            bind: Parse :name placeholders and bind params; otherwise the
                text goes to the DBAPI cursor untouched

        Raises:
            ConnectionLostError: If the connection dropped
            DriverError: For any other SQLAlchemy or DBAPI failure
        """
        try:
            if bind:
                result = self._connection.execute(text(sql), dict(params or {}))
            else:
                result = self._connection.exec_driver_sql(
                    sql, execution_options={"no_parameters": True}
                )

            if result.returns_rows:
                keys = list(result.keys())
                rows = [tuple(row) for row in result.fetchall()]
                executed = ExecutedResult(keys, rows, len(rows), True)
            else:
                executed = ExecutedResult([], [], result.rowcount, False)
                if result.lastrowid:
                    self._last_insert_id = result.lastrowid
                result.close()
        except SQLAlchemyError as exc:
            self._error_info = error_info_from_exception(exc)
            if is_connection_lost(exc):
                raise ConnectionLostError(self._error_info) from exc
            raise DriverError(self._error_info) from exc

        self._track_transaction(sql)
        return executed

    def _track_transaction(self, sql: str) -> None:
        first_word = (get_first_word(sql) or "").upper().rstrip(";")
        if first_word in TRANSACTION_START_WORDS:
            self._transaction_open = True
        elif first_word in TRANSACTION_END_WORDS:
            self._transaction_open = False

    def prepare(self, sql: str) -> SQLAlchemyStatement:
        return SQLAlchemyStatement(self, sql)

    def exec(self, sql: str) -> Optional[int]:
        return self.run(sql, None, bind=False).row_count

    def quote(self, value: str) -> str:
        """
        Quote a string literal.

        PyMySQL connections quote natively; other drivers get standard SQL
        quote doubling, plus backslash escaping when the dialect needs it.
        """
        value = str(value)
        try:
            escape = getattr(self.dbapi_connection, "escape", None)
        except SQLAlchemyError:
            escape = None
        if callable(escape):
            return escape(value)

        escaped = value.replace("'", "''")
        if getattr(self._connection.dialect, "_backslash_escapes", False):
            escaped = escaped.replace("\\", "\\\\")
        return f"'{escaped}'"

    def last_insert_id(self) -> str:
        if self._last_insert_id is None:
            return "0"
        return str(self._last_insert_id)

    def in_transaction(self) -> bool:
        try:
            dbapi_connection = self.dbapi_connection
        except SQLAlchemyError:
            return self._transaction_open

        # sqlite3 reports it directly
        state = getattr(dbapi_connection, "in_transaction", None)
        if isinstance(state, bool):
            return state

        # PyMySQL keeps the last server status flags
        status = getattr(dbapi_connection, "server_status", None)
        if isinstance(status, int):
            return bool(status & SERVER_STATUS_IN_TRANS)

        return self._transaction_open

    def error_info(self) -> ErrorInfo:
        return self._error_info

    def close(self) -> None:
        try:
            self._connection.close()
        except SQLAlchemyError as e:
            # Closing a connection the server already dropped
            logger.debug(f"Ignoring error while closing connection: {e}")

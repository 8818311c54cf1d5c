"""Exception hierarchy for simple_database."""

from typing import Any, Mapping, Optional

from simple_database.models.query import ErrorInfo
from simple_database.utils.serialization import dumps
from simple_database.utils.statements import resolve_query


class SimpleDatabaseError(Exception):
    """Base class for every error raised by this package."""


class DriverError(SimpleDatabaseError):
    """
    Failure reported by a driver adapter.

    Adapters raise this for logical failures (constraint violations,
    syntax errors, deadlocks, missing bind values).
    """

    def __init__(self, error_info: ErrorInfo):
        super().__init__(error_info.format())
        self.error_info = error_info


class ConnectionLostError(DriverError):
    """Transport level failure: the connection dropped mid-call."""


class QueryExecutionError(SimpleDatabaseError):
    """A statement could not be executed."""

    MESSAGE = "Could not execute query {sql} with parameters {params}: {info}"
    CODE = 500

    def __init__(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]],
        error_info: ErrorInfo,
    ):
        self.sql = sql
        self.params = dict(params or {})
        self.error_info = error_info
        self.code = self.CODE
        super().__init__(
            self.MESSAGE.format(
                sql=sql, params=dumps(self.params), info=error_info.format()
            )
        )

    @property
    def resolved_query(self) -> str:
        return resolve_query(self.sql, self.params)


class ConstraintError(SimpleDatabaseError):
    """A statement ran but its result broke the caller's expectations."""

    def __init__(self, message: str, sql: str, params: Optional[Mapping[str, Any]]):
        super().__init__(message)
        self.sql = sql
        self.params = dict(params or {})

    @property
    def resolved_query(self) -> str:
        return resolve_query(self.sql, self.params)


class NoRecordsFoundError(ConstraintError):
    """A required row or column lookup matched nothing."""

    MESSAGE = "No records were found using SQL: {resolved}"

    def __init__(self, sql: str, params: Optional[Mapping[str, Any]] = None):
        super().__init__(
            self.MESSAGE.format(resolved=resolve_query(sql, params or {})),
            sql,
            params,
        )


class UnknownStatementKindError(SimpleDatabaseError):
    """A statement type could not be classified as read or write."""

    def __init__(self, statement_type: str):
        super().__init__(f"Unknown statement type: {statement_type}")
        self.statement_type = statement_type

"""Pytest configuration and shared fixtures for simple_database tests"""

import logging
from typing import Any, Mapping, Optional
from unittest.mock import MagicMock

import pytest

from simple_database import ConnectionProvider, SimpleDatabase
from simple_database.adapters.base import DriverConnection, DriverStatement
from simple_database.exceptions import ConnectionLostError
from simple_database.models.query import ErrorInfo, FetchMode

PROBE_SQL = "SELECT 1"

SERVER_GONE = ErrorInfo(
    sqlstate="HY000", driver_code=2006, message="MySQL server has gone away"
)
SYNTAX_ERROR = ErrorInfo(
    sqlstate="42000", driver_code=1064, message="You have an error in your SQL syntax"
)


# ==================== Driver Doubles ====================


class FakeStatement(DriverStatement):
    """In-memory statement serving rows registered on its connection."""

    def __init__(self, connection: "FakeConnection", sql: str):
        self.sql = sql
        self._connection = connection
        self._rows: list[dict[str, Any]] = []
        self._position = 0
        self._error_info = ErrorInfo()

    def execute(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        if self.sql == PROBE_SQL and not self._connection.alive:
            raise ConnectionLostError(SERVER_GONE)

        if self.sql != PROBE_SQL:
            self._connection.executed.append((self.sql, dict(params or {})))
            outcome = self._connection.next_outcome()
            if outcome is False:
                self._error_info = self._connection.failure_info
                self._connection.last_error = self._connection.failure_info
                return False
            if isinstance(outcome, Exception):
                self._connection.last_error = getattr(outcome, "error_info", ErrorInfo())
                raise outcome

        rows = self._connection.rows.get(self.sql, [{"1": 1}] if self.sql == PROBE_SQL else [])
        self._rows = [dict(row) for row in rows]
        self._position = 0
        self._connection.track_transaction(self.sql)
        return True

    def row_count(self) -> int:
        return len(self._rows)

    def _shape(self, row: dict[str, Any], mode: FetchMode) -> Any:
        if mode == FetchMode.ASSOC:
            return row
        if mode == FetchMode.COLUMN:
            return next(iter(row.values()))
        return tuple(row.values())

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


class FakeConnection(DriverConnection):
    """
    In-memory connection.

    rows maps exact SQL text to the rows a SELECT returns. outcomes is a
    queue consumed by each non-probe execution: False reports a failure
    status, an exception instance is raised, anything else succeeds.
    """

    def __init__(
        self,
        name: str = "write",
        rows: Optional[dict[str, list[dict[str, Any]]]] = None,
        outcomes: Optional[list[Any]] = None,
        alive: bool = True,
    ):
        self.name = name
        self.rows = rows if rows is not None else {}
        self.outcomes = list(outcomes or [])
        self.alive = alive
        self.executed: list[tuple[str, dict[str, Any]]] = []
        self.direct: list[str] = []
        self.closed = False
        self.inserted_id = "0"
        self.transaction_open = False
        self.failure_info = SYNTAX_ERROR
        self.last_error = ErrorInfo()

    def __repr__(self) -> str:
        return f"FakeConnection({self.name!r})"

    def next_outcome(self) -> Any:
        return self.outcomes.pop(0) if self.outcomes else True

    def track_transaction(self, sql: str) -> None:
        word = sql.split()[0].upper() if sql.split() else ""
        if word in ("START", "BEGIN"):
            self.transaction_open = True
        elif word in ("COMMIT", "ROLLBACK"):
            self.transaction_open = False

    def prepare(self, sql: str) -> FakeStatement:
        return FakeStatement(self, sql)

    def exec(self, sql: str) -> Optional[int]:
        self.direct.append(sql)
        outcome = self.next_outcome()
        if outcome is False:
            self.last_error = self.failure_info
            return None
        if isinstance(outcome, Exception):
            self.last_error = getattr(outcome, "error_info", ErrorInfo())
            raise outcome
        self.track_transaction(sql)
        return 1

    def quote(self, value: str) -> str:
        return "'" + str(value).replace("'", "''") + "'"

    def last_insert_id(self) -> str:
        return self.inserted_id

    def in_transaction(self) -> bool:
        return self.transaction_open

    def error_info(self) -> ErrorInfo:
        return self.last_error

    def close(self) -> None:
        self.closed = True


class FakeFactory:
    """
    Connection factory producing FakeConnections that share one row store.

    outcomes and alive seed every connection created; tweak created
    connections directly for per-handle behaviour.
    """

    def __init__(
        self,
        name: str,
        rows: Optional[dict[str, list[dict[str, Any]]]] = None,
        outcomes: Optional[list[Any]] = None,
        alive: bool = True,
    ):
        self.name = name
        self.rows = rows if rows is not None else {}
        self.outcomes = list(outcomes or [])
        self.alive = alive
        self.created: list[FakeConnection] = []

    @property
    def calls(self) -> int:
        return len(self.created)

    def __call__(self) -> FakeConnection:
        connection = FakeConnection(
            name=f"{self.name}-{len(self.created) + 1}",
            rows=self.rows,
            outcomes=self.outcomes,
            alive=self.alive,
        )
        self.created.append(connection)
        return connection


# ==================== Fixtures ====================


@pytest.fixture
def fake_factory():
    """FakeFactory class, for tests that build their own factories"""
    return FakeFactory


@pytest.fixture
def fake_connection():
    """FakeConnection class, for tests that build connections directly"""
    return FakeConnection


@pytest.fixture
def write_factory() -> FakeFactory:
    """Factory for write connections"""
    return FakeFactory("write")


@pytest.fixture
def read_factory(write_factory: FakeFactory) -> FakeFactory:
    """Factory for read connections sharing the write factory's rows"""
    return FakeFactory("read", rows=write_factory.rows)


@pytest.fixture
def provider(write_factory: FakeFactory) -> ConnectionProvider:
    """Provider without a read replica"""
    return ConnectionProvider(write_factory)


@pytest.fixture
def split_provider(
    write_factory: FakeFactory, read_factory: FakeFactory
) -> ConnectionProvider:
    """Provider with separate write and read connections"""
    return ConnectionProvider(write_factory, read_factory)


@pytest.fixture
def sleep(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace the retry sleep so tests never block"""
    mock_sleep = MagicMock()
    monkeypatch.setattr("simple_database.core.executor.time.sleep", mock_sleep)
    return mock_sleep


@pytest.fixture
def db_logger() -> MagicMock:
    """Mock logger injected into the database helper"""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def db(provider: ConnectionProvider, db_logger: MagicMock, sleep: MagicMock) -> SimpleDatabase:
    """Database helper over fake connections"""
    return SimpleDatabase(provider, logger=db_logger, retry_delay=0.5)


@pytest.fixture
def write_connection(db: SimpleDatabase) -> FakeConnection:
    """The write connection behind the db fixture"""
    return db.provider.get_write_connection()


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "integration: Integration tests against a real SQLAlchemy engine"
    )
    config.addinivalue_line("markers", "mysql: MySQL-specific tests")

"""Thin database access helper with read/write splitting and reconnect retries."""

from simple_database.adapters import create_connection_factory
from simple_database.core import (
    ConnectionProvider,
    ErrorCodeCheck,
    MutationHelpers,
    ProbeQueryCheck,
    QueryExecutor,
    ResultAccessors,
    TransactionHelper,
)
from simple_database.database import SimpleDatabase
from simple_database.exceptions import (
    ConnectionLostError,
    ConstraintError,
    DriverError,
    NoRecordsFoundError,
    QueryExecutionError,
    SimpleDatabaseError,
    UnknownStatementKindError,
)
from simple_database.models import DatabaseConfig, ErrorInfo, FetchMode
from simple_database.repository import BaseRepository

__version__ = "0.1.0"

__all__ = [
    "BaseRepository",
    "ConnectionLostError",
    "ConnectionProvider",
    "ConstraintError",
    "DatabaseConfig",
    "DriverError",
    "ErrorCodeCheck",
    "ErrorInfo",
    "FetchMode",
    "MutationHelpers",
    "NoRecordsFoundError",
    "ProbeQueryCheck",
    "QueryExecutionError",
    "QueryExecutor",
    "ResultAccessors",
    "SimpleDatabase",
    "SimpleDatabaseError",
    "TransactionHelper",
    "create_connection_factory",
    "__version__",
]

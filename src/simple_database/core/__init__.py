"""Core database operations layer."""

from .accessors import ResultAccessors
from .connection import (
    ConnectionProvider,
    ErrorCodeCheck,
    LivenessCheck,
    ProbeQueryCheck,
)
from .executor import QueryExecutor
from .mutations import MutationHelpers
from .transactions import TransactionHelper

__all__ = [
    "ConnectionProvider",
    "ErrorCodeCheck",
    "LivenessCheck",
    "MutationHelpers",
    "ProbeQueryCheck",
    "QueryExecutor",
    "ResultAccessors",
    "TransactionHelper",
]

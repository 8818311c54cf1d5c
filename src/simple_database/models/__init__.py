"""Pydantic models and enums shared across the package."""

from .config import DatabaseConfig
from .query import ErrorInfo, FetchMode, Scalar, Statement, StatementKind, StatementType

__all__ = [
    "DatabaseConfig",
    "ErrorInfo",
    "FetchMode",
    "Scalar",
    "Statement",
    "StatementKind",
    "StatementType",
]

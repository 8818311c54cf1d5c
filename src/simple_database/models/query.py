"""Statement, fetch mode and driver error models."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Scalar = Union[str, int, float, bool, None]


class FetchMode(str, Enum):
    """Shape in which rows are handed back to the caller."""

    ASSOC = "assoc"  # dict keyed by column name
    NUM = "num"  # tuple in column order
    COLUMN = "column"  # first column value only


class StatementType(str, Enum):
    """Leading keyword of a SQL statement."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    REPLACE = "REPLACE"
    OTHER = "OTHER"


class StatementKind(str, Enum):
    """Whether a statement only reads or may write."""

    READ = "READ"
    WRITE = "WRITE"


class ErrorInfo(BaseModel):
    """Error descriptor surfaced by the driver on failure."""

    model_config = ConfigDict(frozen=True)

    sqlstate: str = Field(default="HY000", description="SQLSTATE-like error code")
    driver_code: Optional[Union[int, str]] = Field(
        None, description="Driver specific error code"
    )
    message: Optional[str] = Field(None, description="Human readable message")

    def format(self) -> str:
        """Render as ``state/code - message`` for log lines and exceptions."""
        code = "" if self.driver_code is None else self.driver_code
        return f"{self.sqlstate}/{code} - {self.message or '(blank)'}"


class Statement(BaseModel):
    """SQL text plus its named parameters, built per call."""

    model_config = ConfigDict(frozen=True)

    sql: str = Field(..., description="SQL text using :name placeholders")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Placeholder name to value mapping"
    )

    @property
    def resolved(self) -> str:
        """Human readable form with placeholders replaced, for logging only."""
        from simple_database.utils.statements import resolve_query

        return resolve_query(self.sql, self.params)

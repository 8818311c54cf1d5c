"""Driver interface the rest of the package talks to.

A driver adapter wraps one live database session. The executor only needs
prepare/execute/fetch, direct execution, literal quoting, the last insert id
and transaction state; everything else stays inside the adapter.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

from simple_database.models.query import ErrorInfo, FetchMode


class DriverStatement(ABC):
    """A prepared statement; after execute() it yields rows."""

    sql: str

    @abstractmethod
    def execute(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Execute the statement with bound parameters.

        Args:
            params: Values for the :name placeholders

        Returns:
            True on success, False when the driver reports a failure status
            (details in error_info())

        Raises:
            ConnectionLostError: If the connection dropped
            DriverError: For other driver failures
        """
        ...

    @abstractmethod
    def row_count(self) -> int:
        """Rows returned (reads) or affected (writes) by the last execute()."""
        ...

    @abstractmethod
    def fetch(self, mode: FetchMode = FetchMode.ASSOC) -> Any:
        """Next row shaped per mode, or None when exhausted."""
        ...

    @abstractmethod
    def fetch_all(self, mode: FetchMode = FetchMode.ASSOC) -> list[Any]:
        """All remaining rows shaped per mode."""
        ...

    def fetch_column(self, column_index: int = 0) -> Any:
        """Value at column_index of the next row, or None when exhausted."""
        row = self.fetch(FetchMode.NUM)
        if row is None:
            return None
        return row[column_index]

    @abstractmethod
    def error_info(self) -> ErrorInfo:
        """Error details for the last failed execute()."""
        ...


class DriverConnection(ABC):
    """A live database session."""

    @abstractmethod
    def prepare(self, sql: str) -> DriverStatement:
        """Prepare a statement for execution."""
        ...

    @abstractmethod
    def exec(self, sql: str) -> Optional[int]:
        """
        Execute SQL directly, without binding.

        Returns:
            Affected row count, or None when the driver reports a failure
            status (details in error_info())

        Raises:
            ConnectionLostError: If the connection dropped
            DriverError: For other driver failures
        """
        ...

    @abstractmethod
    def quote(self, value: str) -> str:
        """Quote a string as a SQL literal for this connection's dialect."""
        ...

    @abstractmethod
    def last_insert_id(self) -> str:
        """Identifier assigned by the most recent insert on this connection."""
        ...

    @abstractmethod
    def in_transaction(self) -> bool:
        """Driver-reported transaction state."""
        ...

    @abstractmethod
    def error_info(self) -> ErrorInfo:
        """Error details for the last failed call on this connection."""
        ...

    def close(self) -> None:
        """Close the session. Safe to call on a dead or closed connection."""
        return None


# Zero-argument callable returning a fresh connection
ConnectionFactory = Callable[[], DriverConnection]

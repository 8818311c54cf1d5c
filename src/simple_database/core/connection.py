"""Write/read connection management with reconnect support."""

import logging
import threading
from typing import Iterable, Optional, Protocol, runtime_checkable

from simple_database.adapters.base import ConnectionFactory, DriverConnection
from simple_database.exceptions import DriverError
from simple_database.utils.statements import is_select

logger = logging.getLogger(__name__)

# MySQL client errors: CR_SERVER_GONE_ERROR, CR_SERVER_LOST
SERVER_GONE_ERROR_CODES = frozenset({2006, 2013})


@runtime_checkable
class LivenessCheck(Protocol):
    """Strategy deciding whether a connection is dead."""

    def is_disconnected(self, connection: DriverConnection) -> bool:
        ...


class ProbeQueryCheck:
    """
    Issue a trivial round-trip query; any driver error means disconnected.

    Works with every driver, at the cost of one extra query per check.
    """

    def __init__(self, probe_sql: str = "SELECT 1"):
        self.probe_sql = probe_sql

    def is_disconnected(self, connection: DriverConnection) -> bool:
        try:
            statement = connection.prepare(self.probe_sql)
            if not statement.execute({}):
                return True
            statement.fetch_all()
        except DriverError as e:
            logger.debug(f"Liveness probe failed: {e}")
            return True
        return False


class ErrorCodeCheck:
    """
    Compare the driver's last reported error code against "server has gone
    away" codes. No round trip, but only meaningful after a failure.
    """

    def __init__(self, codes: Iterable[int] = SERVER_GONE_ERROR_CODES):
        self.codes = frozenset(codes)

    def is_disconnected(self, connection: DriverConnection) -> bool:
        return connection.error_info().driver_code in self.codes


class ConnectionProvider:
    """
    Lazily creates and memoizes a write connection and an optional read one.

    SELECT statements go to the read connection, everything else to the
    write connection. Without a read factory, reads share the write
    connection.

    Handle creation and replacement are serialized with a lock so two
    threads never replace the same dead handle twice. Statement execution
    is not serialized: share a provider between threads only if the
    underlying driver connection tolerates it.
    """

    def __init__(
        self,
        write_factory: ConnectionFactory,
        read_factory: Optional[ConnectionFactory] = None,
        liveness_check: Optional[LivenessCheck] = None,
    ):
        """
        Initialize connection provider.

        Args:
            write_factory: Zero-argument callable returning a write connection
            read_factory: Zero-argument callable returning a read connection
            liveness_check: Disconnection strategy (default: ProbeQueryCheck)
        """
        self.write_factory = write_factory
        self.read_factory = read_factory
        self.liveness_check = liveness_check or ProbeQueryCheck()
        self._write_connection: Optional[DriverConnection] = None
        self._read_connection: Optional[DriverConnection] = None
        self._lock = threading.RLock()

    @property
    def has_read_factory(self) -> bool:
        return self.read_factory is not None

    def get_connection(self, sql: Optional[str] = None) -> DriverConnection:
        """
        Pick the connection for a statement.

        Args:
            sql: Statement text; SELECTs are routed to the read connection

        Returns:
            Read or write connection
        """
        if is_select(sql):
            return self.get_read_connection()
        return self.get_write_connection()

    def get_write_connection(self) -> DriverConnection:
        with self._lock:
            if self._write_connection is None:
                self._write_connection = self.write_factory()
            return self._write_connection

    def get_read_connection(self) -> DriverConnection:
        if not self.has_read_factory:
            return self.get_write_connection()

        with self._lock:
            if self._read_connection is None:
                self._read_connection = self.read_factory()
            return self._read_connection

    def is_disconnected(self, connection: DriverConnection) -> bool:
        return self.liveness_check.is_disconnected(connection)

    def reconnect(self, connection: DriverConnection) -> bool:
        """
        Replace a dead connection with a fresh one from its factory.

        Args:
            connection: Connection that failed

        Returns:
            False if the connection is still alive (nothing done); True if it
            was dead. A dead connection that is no longer memoized (stale
            reference) is not replaced but still returns True.
        """
        if not self.is_disconnected(connection):
            return False

        with self._lock:
            replaced = False
            if self._write_connection is not None and self._write_connection is connection:
                self._write_connection = self.write_factory()
                replaced = True
                logger.info("Reconnected write connection")

            if (
                self.read_factory is not None
                and self._read_connection is not None
                and self._read_connection is connection
            ):
                self._read_connection = self.read_factory()
                replaced = True
                logger.info("Reconnected read connection")

        if replaced:
            connection.close()
        else:
            logger.warning("Disconnected connection is no longer in use; nothing replaced")
        return True

    def close(self) -> None:
        """Close every memoized connection."""
        with self._lock:
            connections = [self._write_connection, self._read_connection]
            self._write_connection = None
            self._read_connection = None

        closed = set()
        for connection in connections:
            if connection is not None and id(connection) not in closed:
                connection.close()
                closed.add(id(connection))

    def __enter__(self) -> "ConnectionProvider":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

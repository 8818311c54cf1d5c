"""SimpleDatabase: one object exposing execution, accessors, mutations and transactions."""

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

from simple_database.adapters import create_connection_factory
from simple_database.adapters.base import DriverStatement
from simple_database.core import (
    ConnectionProvider,
    LivenessCheck,
    MutationHelpers,
    QueryExecutor,
    ResultAccessors,
    TransactionHelper,
)
from simple_database.core.executor import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY
from simple_database.models.config import DatabaseConfig
from simple_database.models.query import FetchMode
from simple_database.utils.statements import resolve_query

QUERY_LOGGER_NAME = "simple_database.queries"

T = TypeVar("T")


class SimpleDatabase:
    """
    Database access helper over a write connection and an optional read one.

    Example:
        db = SimpleDatabase.from_config(DatabaseConfig.from_env())
        user_id = db.insert("users", {"name": "alice"})
        user = db.get_row("SELECT * FROM users WHERE id = :id", {"id": user_id})
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        logger: Optional[logging.Logger] = None,
        query_logger: Optional[logging.Logger] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        """
        Initialize database helper.

        Args:
            provider: Write/read connection provider
            logger: Logger for debug and error lines
            query_logger: Optional logger receiving every resolved query
            max_retries: Reconnect attempts per statement
            retry_delay: Seconds between reconnect attempts
        """
        self.provider = provider
        self.executor = QueryExecutor(
            provider,
            logger=logger,
            query_logger=query_logger,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )
        self.accessors = ResultAccessors(self.executor)
        self.mutations = MutationHelpers(self.executor, self.accessors)
        self.transactions = TransactionHelper(self.executor)

    @classmethod
    def from_config(
        cls,
        config: DatabaseConfig,
        logger: Optional[logging.Logger] = None,
        query_logger: Optional[logging.Logger] = None,
        liveness_check: Optional[LivenessCheck] = None,
    ) -> "SimpleDatabase":
        """
        Build a database helper with SQLAlchemy-backed connection factories.

        Args:
            config: Database configuration
            logger: Logger for debug and error lines
            query_logger: Logger for resolved queries; defaults to the
                ``simple_database.queries`` logger when config.log_queries is set
            liveness_check: Disconnection strategy for the provider
        """
        write_factory = create_connection_factory(
            config.write_url, echo=config.echo_sql, pool_pre_ping=config.pool_pre_ping
        )
        read_factory = None
        if config.read_url is not None:
            read_factory = create_connection_factory(
                config.read_url,
                echo=config.echo_sql,
                pool_pre_ping=config.pool_pre_ping,
            )

        if query_logger is None and config.log_queries:
            query_logger = logging.getLogger(QUERY_LOGGER_NAME)

        provider = ConnectionProvider(write_factory, read_factory, liveness_check)
        replica = "with" if provider.has_read_factory else "without"
        logging.getLogger(__name__).info(
            f"Configured {config.dialect} database {replica} read replica"
        )
        return cls(
            provider,
            logger=logger,
            query_logger=query_logger,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_query(sql: str, params: Optional[Mapping[str, Any]]) -> str:
        return resolve_query(sql, params)

    def set_query_logger(self, query_logger: Optional[logging.Logger]) -> None:
        self.executor.set_query_logger(query_logger)

    def execute(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> DriverStatement:
        return self.executor.execute(sql, params, retries)

    def execute_statement(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> None:
        self.executor.execute_statement(sql, params, retries)

    def get_last_insert_id(self) -> str:
        return self.executor.last_insert_id()

    def quote(self, value: Any) -> str:
        return self.executor.quote(value)

    # ------------------------------------------------------------------
    # Result accessors
    # ------------------------------------------------------------------

    def get_column(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        column_index: int = 0,
        optional: bool = False,
    ) -> Any:
        return self.accessors.get_column(sql, params, column_index, optional)

    def get_row(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        optional: bool = False,
        fetch_mode: FetchMode = FetchMode.ASSOC,
    ) -> Any:
        return self.accessors.get_row(sql, params, optional, fetch_mode)

    def get_all(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        fetch_mode: FetchMode = FetchMode.ASSOC,
    ) -> list[Any]:
        return self.accessors.get_all(sql, params, fetch_mode)

    def get_column_from_all_rows(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        column_index: int = 0,
    ) -> list[Any]:
        return self.accessors.get_column_from_all_rows(sql, params, column_index)

    # ------------------------------------------------------------------
    # Mutations and table maintenance
    # ------------------------------------------------------------------

    def insert(self, table: str, fields: Mapping[str, Any]) -> str:
        return self.mutations.insert(table, fields)

    def insert_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        return self.mutations.insert_multiple(table, rows)

    def replace(self, table: str, fields: Mapping[str, Any]) -> bool:
        return self.mutations.replace(table, fields)

    def replace_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        return self.mutations.replace_multiple(table, rows)

    def delete(self, table: str, row: Mapping[str, Any]) -> bool:
        return self.mutations.delete(table, row)

    def delete_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> bool:
        return self.mutations.delete_multiple(table, rows)

    def truncate_table(self, table: str) -> DriverStatement:
        return self.mutations.truncate_table(table)

    def drop_table(self, table: str) -> None:
        self.mutations.drop_table(table)

    def rename_table(self, current_name: str, new_name: str) -> None:
        self.mutations.rename_table(current_name, new_name)

    def duplicate_table(self, table: str, new_table: str, with_data: bool = False) -> None:
        self.mutations.duplicate_table(table, new_table, with_data)

    def disable_foreign_key_checks(self) -> None:
        self.mutations.disable_foreign_key_checks()

    def enable_foreign_key_checks(self) -> None:
        self.mutations.enable_foreign_key_checks()

    def list_tables_starts_with(self, prefix: str) -> list[str]:
        return self.mutations.list_tables_starts_with(prefix)

    def list_all_tables(self) -> list[str]:
        return self.mutations.list_all_tables()

    def list_tables_not_starting_with(self, prefix: str) -> list[str]:
        return self.mutations.list_tables_not_starting_with(prefix)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def start_transaction(self) -> DriverStatement:
        return self.transactions.start_transaction()

    def commit_transaction(self) -> DriverStatement:
        return self.transactions.commit_transaction()

    def rollback_transaction(self) -> DriverStatement:
        return self.transactions.rollback_transaction()

    def in_transaction(self) -> bool:
        return self.transactions.in_transaction()

    def run_in_transaction(self, action: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return self.transactions.run_in_transaction(action, *args, **kwargs)

    def transaction(self) -> AbstractContextManager[None]:
        return self.transactions.transaction()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the write and read connections and dispose engines."""
        self.provider.close()
        for factory in (self.provider.write_factory, self.provider.read_factory):
            dispose = getattr(factory, "dispose", None)
            if callable(dispose):
                dispose()

    def __enter__(self) -> "SimpleDatabase":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

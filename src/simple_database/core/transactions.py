"""Transaction statements and transactional execution."""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from simple_database.adapters.base import DriverStatement
from simple_database.core.executor import QueryExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionHelper:
    """
    Start, commit and roll back transactions on the write connection.

    Transactions are connection scoped and not reentrant: nesting
    run_in_transaction() on one connection is unsupported.
    """

    START_SQL = "START TRANSACTION"
    COMMIT_SQL = "COMMIT"
    ROLLBACK_SQL = "ROLLBACK"

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    def start_transaction(self) -> DriverStatement:
        return self.executor.execute(self.START_SQL)

    def commit_transaction(self) -> DriverStatement:
        return self.executor.execute(self.COMMIT_SQL)

    def rollback_transaction(self) -> DriverStatement:
        return self.executor.execute(self.ROLLBACK_SQL)

    def in_transaction(self) -> bool:
        return self.executor.provider.get_write_connection().in_transaction()

    def run_in_transaction(self, action: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run action inside a transaction.

        Commits when action returns; on any exception rolls back and
        re-raises the original exception. If the rollback itself fails,
        that error propagates instead.

        Args:
            action: Callable to run
            *args: Positional arguments for action
            **kwargs: Keyword arguments for action

        Returns:
            Whatever action returned
        """
        try:
            self.start_transaction()
            result = action(*args, **kwargs)
            self.commit_transaction()
        except Exception:
            logger.debug("Rolling back transaction")
            self.rollback_transaction()
            raise

        return result

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager form of run_in_transaction()."""
        try:
            self.start_transaction()
            yield
            self.commit_transaction()
        except Exception:
            logger.debug("Rolling back transaction")
            self.rollback_transaction()
            raise

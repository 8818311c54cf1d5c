"""Base class for repositories turning rows into domain objects."""

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Optional, TypeVar

from simple_database.database import SimpleDatabase
from simple_database.utils.statements import bind_names, quote_identifier

T = TypeVar("T")


class BaseRepository(ABC, Generic[T]):
    """
    Row-to-object factory with simple equality search and paging.

    Subclasses implement from_row() and build their lookups on the
    protected helpers:

        class UserRepository(BaseRepository[User]):
            def from_row(self, row):
                return User(**row)

            def get_by_id(self, user_id):
                return self.get_by_parameters(
                    "SELECT * FROM users WHERE id = :id", {"id": user_id}
                )
    """

    def __init__(self, db: SimpleDatabase):
        self.db = db

    @abstractmethod
    def from_row(self, row: dict[str, Any]) -> T:
        """Build one object from an associative row."""
        ...

    def get_by_parameters(
        self, sql: str, parameters: Mapping[str, Any], optional: bool = False
    ) -> Optional[T]:
        """
        Fetch the first matching row as an object.

        Returns:
            The object, or None for an optional lookup with no rows

        Raises:
            NoRecordsFoundError: If nothing matched and optional is False
        """
        row = self.db.get_row(sql, parameters, optional)
        if row is None:
            return None
        return self.from_row(row)

    def get_all_by_parameters(self, sql: str, parameters: Mapping[str, Any]) -> list[T]:
        return [self.from_row(row) for row in self.db.get_all(sql, parameters)]

    @staticmethod
    def _where(parameters: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
        if not parameters:
            return "1=1", {}

        terms = []
        params = {}
        for name, (key, value) in zip(bind_names(parameters), parameters.items()):
            terms.append(f"({quote_identifier(key)} = :{name})")
            params[name] = value
        return " AND ".join(terms), params

    def get_search_results_by_parameters(
        self,
        table: str,
        parameters: Mapping[str, Any],
        order: str,
        page: int,
        limit: int,
    ) -> list[T]:
        """
        Page through rows whose columns equal the given values.

        Args:
            table: Table name
            parameters: Column name to required value; empty matches all rows
            order: ORDER BY expression, inserted verbatim
            page: 1-based page number
            limit: Rows per page

        Raises:
            ValueError: If page or limit is below 1
        """
        if page < 1 or limit < 1:
            raise ValueError(f"page and limit must be positive, got {page} and {limit}")

        offset = (page - 1) * limit
        where, params = self._where(parameters)
        sql = (
            f"SELECT * FROM {quote_identifier(table)} WHERE {where} "
            f"ORDER BY {order} LIMIT {offset},{limit};"
        )
        return self.get_all_by_parameters(sql, params)

    def get_search_results_count_by_parameters(
        self, table: str, parameters: Mapping[str, Any]
    ) -> int:
        """Count rows whose columns equal the given values."""
        where, params = self._where(parameters)
        sql = f"SELECT COUNT(*) FROM {quote_identifier(table)} WHERE {where};"
        return int(self.db.get_column(sql, params))

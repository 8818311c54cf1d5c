"""Tests for BaseRepository"""

from typing import Any

import pytest
from pydantic import BaseModel

from simple_database.exceptions import NoRecordsFoundError
from simple_database.repository import BaseRepository

BY_ID_SQL = "SELECT * FROM users WHERE id = :id"
SEARCH_SQL = "SELECT * FROM `users` WHERE (`role` = :role) ORDER BY id DESC LIMIT 20,10;"


class User(BaseModel):
    id: int
    name: str


class UserRepository(BaseRepository[User]):
    def from_row(self, row: dict[str, Any]) -> User:
        return User(**row)


@pytest.fixture
def repository(db) -> UserRepository:
    return UserRepository(db)


class TestLookups:
    """Test row to object lookups."""

    def test_get_by_parameters(self, repository, write_factory):
        """Test the first row is turned into an object."""
        write_factory.rows[BY_ID_SQL] = [{"id": 1, "name": "alice"}]
        assert repository.get_by_parameters(BY_ID_SQL, {"id": 1}) == User(id=1, name="alice")

    def test_get_by_parameters_missing(self, repository):
        """Test a required lookup without rows raises."""
        with pytest.raises(NoRecordsFoundError):
            repository.get_by_parameters(BY_ID_SQL, {"id": 1})

    def test_get_by_parameters_optional(self, repository):
        """Test an optional lookup without rows returns None."""
        assert repository.get_by_parameters(BY_ID_SQL, {"id": 1}, optional=True) is None

    def test_get_all_by_parameters(self, repository, write_factory):
        """Test every row is turned into an object."""
        write_factory.rows["SELECT * FROM users"] = [
            {"id": 1, "name": "alice"},
            {"id": 2, "name": "bob"},
        ]
        users = repository.get_all_by_parameters("SELECT * FROM users", {})
        assert [user.name for user in users] == ["alice", "bob"]


class TestSearch:
    """Test parameter search and paging."""

    def test_search_builds_paged_query(self, repository, write_factory, write_connection):
        """Test the search query with WHERE, ORDER BY and LIMIT offset."""
        write_factory.rows[SEARCH_SQL] = [{"id": 21, "name": "carol"}]

        users = repository.get_search_results_by_parameters(
            "users", {"role": "admin"}, "id DESC", page=3, limit=10
        )

        assert users == [User(id=21, name="carol")]
        assert write_connection.executed == [(SEARCH_SQL, {"role": "admin"})]

    def test_search_several_parameters(self, repository, write_connection):
        """Test several parameters are joined with AND."""
        repository.get_search_results_by_parameters(
            "users", {"role": "admin", "u.active": 1}, "name", page=1, limit=5
        )

        assert write_connection.executed == [
            (
                "SELECT * FROM `users` WHERE (`role` = :role) AND (`u`.`active` = :u_active) "
                "ORDER BY name LIMIT 0,5;",
                {"role": "admin", "u_active": 1},
            )
        ]

    def test_search_colliding_bind_names(self, repository, write_connection):
        """Test keys mapping to the same bind name keep both values."""
        repository.get_search_results_by_parameters(
            "users", {"a_b": 1, "a.b": 2}, "id", page=1, limit=5
        )

        assert write_connection.executed == [
            (
                "SELECT * FROM `users` WHERE (`a_b` = :a_b) AND (`a`.`b` = :a_b_1) "
                "ORDER BY id LIMIT 0,5;",
                {"a_b": 1, "a_b_1": 2},
            )
        ]

    def test_search_without_parameters(self, repository, write_connection):
        """Test an empty parameter mapping matches every row."""
        repository.get_search_results_by_parameters("users", {}, "id", page=1, limit=25)

        assert write_connection.executed == [
            ("SELECT * FROM `users` WHERE 1=1 ORDER BY id LIMIT 0,25;", {})
        ]

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0)])
    def test_invalid_paging(self, repository, page, limit):
        """Test page and limit below 1 are rejected."""
        with pytest.raises(ValueError):
            repository.get_search_results_by_parameters("users", {}, "id", page, limit)

    def test_count(self, repository, write_factory, write_connection):
        """Test the count query returns an int."""
        count_sql = "SELECT COUNT(*) FROM `users` WHERE (`role` = :role);"
        write_factory.rows[count_sql] = [{"COUNT(*)": "42"}]

        assert repository.get_search_results_count_by_parameters("users", {"role": "admin"}) == 42
        assert write_connection.executed == [(count_sql, {"role": "admin"})]

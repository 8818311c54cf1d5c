"""Tests for the SimpleDatabase facade and its wiring from configuration"""

import logging
from unittest.mock import MagicMock

import pytest

from simple_database import SimpleDatabase
from simple_database.adapters import EngineConnectionFactory, detect_dialect
from simple_database.core.connection import ErrorCodeCheck
from simple_database.models.config import DatabaseConfig


class TestFromConfig:
    """Test building the facade from DatabaseConfig."""

    def test_write_only(self):
        """Test a config without read_url builds a write-only provider."""
        db = SimpleDatabase.from_config(DatabaseConfig(write_url="sqlite://", max_retries=5))

        assert isinstance(db.provider.write_factory, EngineConnectionFactory)
        assert db.provider.read_factory is None
        assert db.executor.max_retries == 5
        assert db.executor.retry_delay == 1.0
        assert db.executor.query_logger is None

    def test_read_replica(self):
        """Test read_url gets its own engine factory with the same options."""
        config = DatabaseConfig(
            write_url="mysql+pymysql://u:p@primary/app",
            read_url="mysql+pymysql://u:p@replica/app",
            echo_sql=True,
        )
        db = SimpleDatabase.from_config(config)

        assert db.provider.read_factory.url == "mysql+pymysql://u:p@replica/app"
        assert db.provider.read_factory.echo is True

    def test_logs_replica_state(self, caplog):
        """Test the configured dialect and replica state are logged."""
        with caplog.at_level(logging.INFO, logger="simple_database.database"):
            SimpleDatabase.from_config(DatabaseConfig(write_url="sqlite://"))
            SimpleDatabase.from_config(
                DatabaseConfig(write_url="sqlite://", read_url="sqlite://")
            )

        assert "Configured sqlite database without read replica" in caplog.text
        assert "Configured sqlite database with read replica" in caplog.text

    def test_engines_created_lazily(self):
        """Test no engine is created until a connection is needed."""
        config = DatabaseConfig(write_url="mysql+pymysql://u:p@primary/app")
        db = SimpleDatabase.from_config(config)

        assert db.provider.write_factory._engine is None

    def test_log_queries_uses_queries_logger(self):
        """Test log_queries attaches the simple_database.queries logger."""
        config = DatabaseConfig(write_url="sqlite://", log_queries=True)
        db = SimpleDatabase.from_config(config)

        assert db.executor.query_logger is logging.getLogger("simple_database.queries")

    def test_explicit_loggers(self):
        """Test explicit loggers win over the configured defaults."""
        logger = MagicMock(spec=logging.Logger)
        query_logger = MagicMock(spec=logging.Logger)
        config = DatabaseConfig(write_url="sqlite://", log_queries=True)

        db = SimpleDatabase.from_config(config, logger=logger, query_logger=query_logger)

        assert db.executor.logger is logger
        assert db.executor.query_logger is query_logger

    def test_liveness_check(self):
        """Test a custom liveness check reaches the provider."""
        check = ErrorCodeCheck()
        db = SimpleDatabase.from_config(DatabaseConfig(write_url="sqlite://"), liveness_check=check)
        assert db.provider.liveness_check is check


class TestFacade:
    """Test facade level helpers."""

    def test_get_last_insert_id(self, db, write_connection):
        """Test the last insert id comes from the write connection."""
        write_connection.inserted_id = "8"
        assert db.get_last_insert_id() == "8"

    def test_resolve_query(self):
        """Test resolve_query is available on the class."""
        assert SimpleDatabase.resolve_query("SELECT :a", {"a": None}) == "SELECT NULL"

    def test_set_query_logger(self, db):
        """Test a query logger attached later receives resolved queries."""
        query_logger = MagicMock(spec=logging.Logger)
        db.set_query_logger(query_logger)

        db.execute("DELETE FROM t WHERE id = :id", {"id": 1})

        query_logger.info.assert_called_once_with("DELETE FROM t WHERE id = '1'")

    def test_execute_statement(self, db, write_connection):
        """Test direct execution through the facade."""
        db.execute_statement("DELETE FROM t")
        assert write_connection.direct == ["DELETE FROM t"]

    def test_context_manager_closes(self, provider):
        """Test leaving the with block closes connections."""
        with SimpleDatabase(provider) as db:
            connection = db.provider.get_write_connection()
        assert connection.closed is True

    def test_close_disposes_factories(self, provider, write_factory):
        """Test close disposes factories that own engines."""
        write_factory.dispose = MagicMock()
        SimpleDatabase(provider).close()
        write_factory.dispose.assert_called_once_with()


class TestDetectDialect:
    """Test dialect detection from URLs."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("mysql+pymysql://u:p@h/db", "mysql"),
            ("mariadb+pymysql://u:p@h/db", "mariadb"),
            ("sqlite:///tmp/app.db", "sqlite"),
        ],
    )
    def test_detect(self, url, expected):
        """Test the dialect is read from the URL."""
        assert detect_dialect(url) == expected

    def test_invalid(self):
        """Test an unparseable URL raises ValueError."""
        with pytest.raises(ValueError, match="Failed to detect dialect"):
            detect_dialect("::not a url::")

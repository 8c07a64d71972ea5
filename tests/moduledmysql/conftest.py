# tests/moduledmysql/conftest.py
"""Shared fixtures: a Database wired to a fake mysql-connector connection."""

from unittest.mock import patch

import pytest

from fakes import FakeConnection
from moduledmysql import ConnectionConfig, Database, Repository


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def database(fake_connection):
    with patch("moduledmysql.connection.mysql.connector.connect",
               return_value=fake_connection) as connect:
        db = Database(ConnectionConfig(database="test_db", username="tester", password="secret"))
        db.connect_mock = connect
        yield db


@pytest.fixture
def repository(database):
    return Repository(database)

"""Pytest configuration for mysqlconn tests

Unit tests replace ``mysql.connector.connect`` with an in-memory fake so the
result shaping, guards and lifecycle can be checked without a server. The
fake connection hands out scripted cursors in the order they were queued.
"""

import logging
from collections import deque

import mysql.connector
import pytest

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeCursor:
    """Buffered cursor returning a scripted result."""

    def __init__(self, columns=None, rows=None, rowcount=None, error=None):
        self.description = None if columns is None else [(name, 253, None, None, None, None, 1, 0, 45)
                                                         for name in columns]
        self._rows = list(rows or [])
        self.rowcount = len(self._rows) if rowcount is None else rowcount
        self._error = error
        self.executed = []
        self.closed = False

    def execute(self, operation, params=None):
        self.executed.append((operation, params))
        if self._error is not None:
            raise self._error

    def fetchone(self):
        if not self._rows:
            return None
        return self._rows.pop(0)

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        self.closed = True


class FakeConnection:
    """Stand-in for a mysql.connector connection."""

    def __init__(self, **kwargs):
        self.connect_args = kwargs
        self.close_calls = 0
        self.connected = True
        self.cursor_kwargs = []
        self.cursors = []
        self._queued = deque()

    def queue(self, columns=None, rows=None, rowcount=None, error=None) -> FakeCursor:
        cursor = FakeCursor(columns, rows, rowcount, error)
        self._queued.append(cursor)
        return cursor

    def cursor(self, **kwargs):
        self.cursor_kwargs.append(kwargs)
        cursor = self._queued.popleft() if self._queued else FakeCursor(rowcount=0)
        self.cursors.append(cursor)
        return cursor

    def is_connected(self):
        return self.connected

    def close(self):
        self.close_calls += 1
        self.connected = False

    @property
    def last_executed(self):
        return self.cursors[-1].executed[-1]


@pytest.fixture
def fake_driver(monkeypatch):
    """Patch mysql.connector.connect; yields the list of opened fake connections"""
    connections = []

    def connect(**kwargs):
        connection = FakeConnection(**kwargs)
        connections.append(connection)
        return connection

    monkeypatch.setattr(mysql.connector, 'connect', connect)
    yield connections


@pytest.fixture
def sql(fake_driver):
    """Open MySQLConn on a fake connection"""
    from mysqlconn import MySQLConn

    conn = MySQLConn("Data Source=localhost; user id=app; password=secret; database=shop")
    yield conn
    conn.close()


@pytest.fixture
def fake_connection(sql, fake_driver):
    """The fake connection behind the ``sql`` fixture"""
    return fake_driver[-1]


def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line(
        "markers", "mysql: mark test as MySQL-specific"
    )
    config.addinivalue_line(
        "markers", "live: mark test as requiring a running MySQL server"
    )

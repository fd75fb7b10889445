# src/mysqlconn/errors.py
"""Exceptions raised by the MySQL convenience layer.

Errors produced by the driver while executing, binding parameters or bulk
loading are never wrapped; they reach the caller as ``mysql.connector.Error``
subclasses, exported here as :data:`DriverError` for convenience.
"""

from mysql.connector.errors import Error as DriverError


class Error(Exception):
    """Base class for errors raised by this package itself."""
    pass


class ConfigurationError(Error, ValueError):
    """Missing, empty or malformed connection parameters."""
    pass


class ConnectionError(Error):
    """The driver could not open the connection."""
    pass


class DisposedError(Error):
    """Operation invoked on a connection wrapper that has been closed."""
    pass


class StateError(Error):
    """Operation invoked without an open connection or without query text."""
    pass


class DuplicateParameterError(Error, KeyError):
    """A parameter with the same name is already bound."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Parameter {self.name!r} has already been added"


__all__ = [
    'Error',
    'ConfigurationError',
    'ConnectionError',
    'DisposedError',
    'StateError',
    'DuplicateParameterError',
    'DriverError',
]

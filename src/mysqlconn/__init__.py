# src/mysqlconn/__init__.py
"""
Convenience layer over mysql-connector-python.

This package wraps a single MySQL connection and returns query results as
native Python values instead of cursors:
- MySQLConn: connection wrapper with scalar, record, column and multi-record
  queries, named parameters and bulk file loading
- MySQLConnectionConfig: connection configuration built from fields, an
  ADO.NET style connection string or a mysql:// URL
- Errors raised by the wrapper; driver errors are passed through unchanged
"""

from .config import MySQLConnectionConfig, compose_connection_string
from .connection import MySQLConn, Record
from .converters import to_text
from .errors import (
    Error,
    ConfigurationError,
    ConnectionError,
    DisposedError,
    StateError,
    DuplicateParameterError,
    DriverError,
)

__version__ = "1.0.0"

__all__ = [
    # Connection
    'MySQLConn',
    'Record',

    # Configuration
    'MySQLConnectionConfig',
    'compose_connection_string',

    # Conversion
    'to_text',

    # Errors
    'Error',
    'ConfigurationError',
    'ConnectionError',
    'DisposedError',
    'StateError',
    'DuplicateParameterError',
    'DriverError',
]

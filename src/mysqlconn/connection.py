# src/mysqlconn/connection.py
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

import mysql.connector
from mysql.connector.errors import Error as MySQLError

from .config import MySQLConnectionConfig
from .converters import to_text
from .errors import (
    ConfigurationError,
    ConnectionError,
    DisposedError,
    DuplicateParameterError,
    StateError,
)

Record = Dict[str, Optional[str]]

T = TypeVar('T')


def format_table_name(table_name: str) -> str:
    """Quote a table name, optionally schema-qualified, with backticks."""
    if not table_name or not table_name.strip():
        raise ValueError("Table name must not be empty")
    parts = []
    for part in table_name.split('.'):
        part = part.strip().strip('`')
        if not part:
            raise ValueError(f"Invalid table name: {table_name!r}")
        parts.append('`' + part.replace('`', '``') + '`')
    return '.'.join(parts)


class MySQLConn:
    """One MySQL connection with query methods returning native Python values.

    The connection is opened when the object is created and closed by
    :meth:`close`, so the object is meant to be used as a context manager::

        with MySQLConn("Data Source=localhost; user id=app; password=secret; database=shop") as sql:
            sql.query = "SELECT name FROM users WHERE id = %(id)s"
            sql.add_param('id', 1)
            name = sql.select_scalar()

    Query text uses the driver's named placeholders (``%(name)s``); the names
    of the parameters added with :meth:`add_param` or :meth:`update_param`
    must match them. All values come back as strings, SQL NULL as ``None``.

    Instances are not thread-safe; use one per thread.
    """

    def __init__(self, connection_string: Optional[str] = None, *,
                 server: Optional[str] = None,
                 database: Optional[str] = None,
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 options: str = '',
                 connection_config: Optional[MySQLConnectionConfig] = None):
        """Open a connection.

        Args:
            connection_string: Full connection string (``key=value; ...`` or
                ``mysql://`` URL).
            server: MySQL server address, used with ``database``, ``username``
                and ``password`` when no connection string is given.
            database: Name of the database to connect to.
            username: User to connect as.
            password: Password of that user.
            options: Extra ``key=value; ...`` connection options.
            connection_config: Ready configuration, instead of the above.

        Raises:
            ConfigurationError: Required connection parameters are missing.
            ConnectionError: The driver could not open the connection.
        """
        self._disposed = False
        self._connection = None
        self._parameters: Dict[str, Any] = {}
        self.query: str = ''
        self.logger = logging.getLogger(__name__)

        discrete = bool(options) or any(value is not None for value in (server, database, username, password))
        if sum((connection_string is not None, connection_config is not None, discrete)) > 1:
            raise ConfigurationError(
                "Pass either a connection string, a connection config or discrete connection parameters"
            )

        if connection_config is not None:
            self.config = connection_config
        elif connection_string is not None:
            self.config = MySQLConnectionConfig.from_connection_string(connection_string)
        else:
            self.config = MySQLConnectionConfig.from_parameters(
                server, database, username, password, options
            )

        self._connect()

    @classmethod
    def from_parameters(cls, server: str, database: str, username: str, password: str,
                        options: str = '') -> 'MySQLConn':
        """Open a connection from discrete connection parameters."""
        return cls(server=server, database=database, username=username,
                   password=password, options=options)

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    def _connect(self) -> None:
        try:
            self._connection = mysql.connector.connect(**self.config.to_dict())
        except MySQLError as e:
            raise ConnectionError(f"Failed to connect to MySQL: {e}") from e
        except (AttributeError, TypeError, ValueError) as e:
            # The driver rejects unsupported or mistyped arguments this way
            raise ConfigurationError(f"Invalid connection arguments: {e}") from e
        self.log(logging.DEBUG, f"Connected to MySQL at {self.config.describe()}")

    def close(self) -> None:
        """Close the connection. Calling it again does nothing."""
        if self._disposed:
            return
        connection, self._connection = self._connection, None
        self._disposed = True
        if connection is not None:
            connection.close()
            self.log(logging.DEBUG, f"Disconnected from MySQL at {self.config.describe()}")

    def __enter__(self) -> 'MySQLConn':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        state = 'closed' if self._disposed else 'open'
        return f"<{type(self).__name__} {self.config.describe()} ({state})>"

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._disposed

    def is_connected(self) -> bool:
        """Ask the driver whether the connection is still alive, without reconnecting."""
        if self._disposed or self._connection is None:
            return False
        return self._connection.is_connected()

    # Parameters

    @property
    def params(self) -> Mapping[str, Any]:
        """Read-only view of the bound parameters."""
        return MappingProxyType(self._parameters)

    def add_param(self, name: str, value: Any) -> None:
        """Bind a new parameter.

        Raises:
            DuplicateParameterError: A parameter with this name is already bound.
        """
        if name in self._parameters:
            raise DuplicateParameterError(name)
        self._parameters[name] = value

    def update_param(self, name: str, value: Any) -> None:
        """Set a parameter, adding it if it is not bound yet.

        Useful to rerun the current query with one value changed.
        """
        self._parameters[name] = value

    def remove_param(self, name: str) -> None:
        self._parameters.pop(name, None)

    def clear_params(self) -> None:
        self._parameters.clear()

    # Queries

    def _check_connection(self) -> None:
        if self._disposed:
            raise DisposedError("Cannot execute query. Connection has been closed.")
        if self._connection is None:
            raise StateError("No connection opened.")

    def _check_ready_for_query(self) -> None:
        self._check_connection()
        if not self.query:
            raise StateError("Cannot execute empty query.")

    def _run(self, sql: str, params: Any, handler: Callable[[Any], T]) -> T:
        if self.config.log_queries:
            if isinstance(params, dict):
                bound = f"parameters: {sorted(params)}"
            else:
                bound = f"{len(params or ())} positional parameters"
            self.log(self.config.log_level, f"Executing query: {sql}, {bound}")
        cursor = self._connection.cursor(buffered=True)
        try:
            cursor.execute(sql, params)
            return handler(cursor)
        finally:
            cursor.close()

    def _execute(self, handler: Callable[[Any], T]) -> T:
        self._check_ready_for_query()
        params = dict(self._parameters) if self._parameters else None
        return self._run(self.query, params, handler)

    @staticmethod
    def _column_names(cursor) -> List[str]:
        return [column[0] for column in cursor.description]

    def select_scalar(self) -> Optional[str]:
        """Run a query expecting a single value (one column of one record).

        Returns:
            The first column of the first row as a string, or ``None`` when the
            query returns no rows or the value is NULL.
        """
        def handler(cursor):
            if cursor.description is None:
                return None
            row = cursor.fetchone()
            if row is None:
                return None
            return to_text(row[0])

        return self._execute(handler)

    def select_record(self) -> Optional[Record]:
        """Run a query expecting one record with any number of columns.

        Returns:
            A dict of column name to string value for the first row, or
            ``None`` when the query returns no rows.
        """
        def handler(cursor):
            if cursor.description is None:
                return None
            row = cursor.fetchone()
            if row is None:
                return None
            return dict(zip(self._column_names(cursor), map(to_text, row)))

        return self._execute(handler)

    def select_column(self) -> List[Optional[str]]:
        """Run a query and collect the first column of every row.

        Returns:
            The values as strings, ``[]`` when the query returns no rows.
        """
        def handler(cursor):
            if cursor.description is None:
                return []
            return [to_text(row[0]) for row in cursor.fetchall()]

        return self._execute(handler)

    def select_all(self) -> List[Record]:
        """Run a query returning any number of records and columns.

        Returns:
            One dict of column name to string value per row, ``[]`` when the
            query returns no rows.
        """
        def handler(cursor):
            if cursor.description is None:
                return []
            columns = self._column_names(cursor)
            return [dict(zip(columns, map(to_text, row))) for row in cursor.fetchall()]

        return self._execute(handler)

    def exec_insert(self) -> int:
        """Run an INSERT statement and return the number of affected rows."""
        return self._execute(lambda cursor: max(cursor.rowcount, 0))

    def exec_update(self) -> int:
        """Run an UPDATE statement and return the number of affected rows."""
        return self.exec_insert()

    def exec_delete(self) -> int:
        """Run a DELETE statement and return the number of affected rows."""
        return self.exec_insert()

    def load_data_infile(self, table_name: str, field_terminator: Optional[str],
                         line_terminator: Optional[str], filename: str,
                         lines_to_skip: int = 0, local: bool = False) -> int:
        """Bulk import a delimited text file with ``LOAD DATA INFILE``.

        The current query text and parameters are left untouched.

        Args:
            table_name: Table to import into, optionally ``schema.table``.
            field_terminator: Separator between fields (e.g. ``','`` for CSV),
                or ``None`` for the server default.
            line_terminator: Separator between lines, or ``None`` for the
                server default.
            filename: Path of the file to import. Without ``local`` it is read
                by the server, otherwise by the client, which requires
                ``allow_local_infile`` in the connection configuration.
            lines_to_skip: Number of leading lines to skip (e.g. a header row).
            local: Use ``LOAD DATA LOCAL INFILE``.

        Returns:
            The number of imported records.
        """
        self._check_connection()
        if lines_to_skip < 0:
            raise ValueError("lines_to_skip must not be negative")

        sql = f"LOAD DATA {'LOCAL ' if local else ''}INFILE %s INTO TABLE {format_table_name(table_name)}"
        params = [filename]
        if field_terminator is not None:
            sql += " FIELDS TERMINATED BY %s"
            params.append(field_terminator)
        if line_terminator is not None:
            sql += " LINES TERMINATED BY %s"
            params.append(line_terminator)
        if lines_to_skip:
            sql += f" IGNORE {int(lines_to_skip)} LINES"

        return self._run(sql, tuple(params), lambda cursor: max(cursor.rowcount, 0))

# src/mysqlconn/config.py
"""MySQL connection configuration

This module provides the connection configuration used by :class:`MySQLConn`.
A configuration can be built from discrete fields, from an ADO.NET style
connection string (``Data Source=...; user id=...; password=...; database=...``)
or from a ``mysql://`` URL, and is turned into keyword arguments for
``mysql.connector.connect``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple
from urllib.parse import parse_qsl, unquote, urlsplit

from mysql.connector.constants import DEFAULT_CONFIGURATION

from .errors import ConfigurationError

DEFAULT_PORT = 3306

# Normalized connection string keys (lowercase, no spaces or underscores)
_KEY_ALIASES = {
    'server': 'host',
    'host': 'host',
    'datasource': 'host',
    'address': 'host',
    'addr': 'host',
    'networkaddress': 'host',
    'userid': 'username',
    'uid': 'username',
    'user': 'username',
    'username': 'username',
    'password': 'password',
    'pwd': 'password',
    'database': 'database',
    'initialcatalog': 'database',
    'port': 'port',
    'charset': 'charset',
    'characterset': 'charset',
    'collation': 'collation',
    'connecttimeout': 'connect_timeout',
    'connectiontimeout': 'connect_timeout',
    'allowloadlocalinfile': 'allow_local_infile',
    'allowlocalinfile': 'allow_local_infile',
    'autocommit': 'autocommit',
    'sslmode': 'ssl_mode',
}

_TRUE_VALUES = ('true', 'yes', 'on', '1')
_FALSE_VALUES = ('false', 'no', 'off', '0')


def _normalize_key(key: str) -> str:
    return ''.join(key.split()).replace('_', '').lower()


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid integer value for '{key}': {value!r}")


def _parse_driver_option(key: str, option: str, value: str) -> Any:
    """Check a pass-through option against the driver's known arguments.

    Values are typed after the driver default: bool and int defaults get a
    parsed bool or int, everything else stays a string.
    """
    if option not in DEFAULT_CONFIGURATION:
        raise ConfigurationError(f"Unsupported connection option '{key}'")
    default = DEFAULT_CONFIGURATION[option]
    if isinstance(default, bool):
        return _parse_bool(key, value)
    if isinstance(default, int):
        return _parse_int(key, value)
    return value


def _iter_pairs(connection_string: str) -> Iterator[Tuple[str, str]]:
    """Split ``key=value; key=value`` pairs.

    Values may be wrapped in single or double quotes to contain ``;``; a
    doubled quote inside a quoted value stands for one quote character.
    """
    pos = 0
    length = len(connection_string)
    while pos < length:
        end = connection_string.find('=', pos)
        semicolon = connection_string.find(';', pos)
        if end == -1 or (semicolon != -1 and semicolon < end):
            chunk = connection_string[pos:semicolon if semicolon != -1 else length]
            if chunk.strip():
                raise ConfigurationError(f"Malformed connection string segment: {chunk.strip()!r}")
            if semicolon == -1:
                return
            pos = semicolon + 1
            continue

        key = connection_string[pos:end].strip()
        if not key:
            raise ConfigurationError("Connection string contains a value without a key")
        pos = end + 1
        while pos < length and connection_string[pos] in ' \t':
            pos += 1

        if pos < length and connection_string[pos] in '"\'':
            quote = connection_string[pos]
            pos += 1
            chars = []
            while True:
                if pos >= length:
                    raise ConfigurationError(f"Unterminated quoted value for '{key}'")
                char = connection_string[pos]
                if char == quote:
                    if pos + 1 < length and connection_string[pos + 1] == quote:
                        chars.append(quote)
                        pos += 2
                        continue
                    pos += 1
                    break
                chars.append(char)
                pos += 1
            value = ''.join(chars)
            semicolon = connection_string.find(';', pos)
            trailing = connection_string[pos:semicolon if semicolon != -1 else length]
            if trailing.strip():
                raise ConfigurationError(f"Unexpected text after quoted value for '{key}'")
        else:
            semicolon = connection_string.find(';', pos)
            value = connection_string[pos:semicolon if semicolon != -1 else length].strip()

        yield key, value
        pos = semicolon + 1 if semicolon != -1 else length


@dataclass
class MySQLConnectionConfig:
    """MySQL connection configuration.

    ``autocommit`` defaults to True: this layer does not manage transactions,
    so every statement is committed by the server as it runs.
    """

    host: str = 'localhost'
    port: int = DEFAULT_PORT
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    charset: str = 'utf8mb4'
    collation: Optional[str] = None
    connect_timeout: Optional[int] = None

    autocommit: bool = True
    allow_local_infile: bool = False
    ssl_disabled: Optional[bool] = None

    # Logging options
    log_queries: bool = False
    log_level: int = logging.DEBUG

    # Extra driver keyword arguments
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_parameters(cls, server: str, database: str, username: str, password: str,
                        options: str = '') -> 'MySQLConnectionConfig':
        """Build a configuration from discrete connection fields.

        The fields are composed into a connection string first, so ``options``
        uses the same ``key=value; ...`` syntax and may override defaults.

        Raises:
            ConfigurationError: If server, database, username or password is empty.
        """
        return cls.from_connection_string(
            compose_connection_string(server, database, username, password, options)
        )

    @classmethod
    def from_connection_string(cls, connection_string: str) -> 'MySQLConnectionConfig':
        """Parse an ADO.NET style connection string or a ``mysql://`` URL."""
        if not connection_string or not connection_string.strip():
            raise ConfigurationError("Invalid connection parameters for database.")

        text = connection_string.strip()
        if text.lower().startswith(('mysql://', 'mysql+mysqlconnector://')):
            return cls._from_url(text)

        config = cls()
        for key, value in _iter_pairs(text):
            config._apply(key, value)
        return config

    @classmethod
    def _from_url(cls, url: str) -> 'MySQLConnectionConfig':
        parts = urlsplit(url)
        config = cls()
        try:
            port = parts.port
        except ValueError:
            raise ConfigurationError(f"Invalid port in connection URL: {parts.netloc!r}")
        if parts.hostname:
            config.host = parts.hostname
        if port:
            config.port = port
        if parts.username:
            config.username = unquote(parts.username)
        if parts.password:
            config.password = unquote(parts.password)
        database = unquote(parts.path.lstrip('/'))
        if database:
            config.database = database
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            config._apply(key, value)
        return config

    def _apply(self, key: str, value: str) -> None:
        """Apply one connection string entry to this configuration."""
        name = _KEY_ALIASES.get(_normalize_key(key))

        if name is None:
            option = '_'.join(key.lower().split())
            self.options[option] = _parse_driver_option(key, option, value)
        elif name == 'host':
            host, sep, port = value.rpartition(':')
            if sep and host and port.isdigit() and ':' not in host:
                self.host = host
                self.port = int(port)
            else:
                self.host = value
        elif name == 'port':
            self.port = _parse_int(key, value)
        elif name == 'connect_timeout':
            self.connect_timeout = _parse_int(key, value)
        elif name in ('allow_local_infile', 'autocommit'):
            setattr(self, name, _parse_bool(key, value))
        elif name == 'ssl_mode':
            self.ssl_disabled = value.strip().lower() in ('none', 'disabled')
        else:
            setattr(self, name, value)

    def to_connection_string(self) -> str:
        """Render the configuration in the ``key=value; ...`` format."""
        parts = [f"Data Source={_quote(self.host)}", f"port={self.port}"]
        if self.username is not None:
            parts.append(f"user id={_quote(self.username)}")
        if self.password is not None:
            parts.append(f"password={_quote(self.password)}")
        if self.database is not None:
            parts.append(f"database={_quote(self.database)}")
        parts.append(f"charset={self.charset}")
        if self.connect_timeout is not None:
            parts.append(f"connect timeout={self.connect_timeout}")
        if self.allow_local_infile:
            parts.append("allow load local infile=true")
        if not self.autocommit:
            parts.append("autocommit=false")
        if self.ssl_disabled is not None:
            parts.append(f"ssl mode={'none' if self.ssl_disabled else 'preferred'}")
        for key, value in self.options.items():
            parts.append(f"{key}={_quote(str(value))}")
        return '; '.join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to ``mysql.connector.connect`` keyword arguments."""
        connection_args = {
            'host': self.host,
            'port': self.port,
            'database': self.database,
            'user': self.username,
            'password': self.password,
            'charset': self.charset,
            'collation': self.collation,
            'connection_timeout': self.connect_timeout,
            'autocommit': self.autocommit,
            'allow_local_infile': self.allow_local_infile,
            'ssl_disabled': self.ssl_disabled,
        }

        # Only include non-None values
        config_dict = {key: value for key, value in connection_args.items() if value is not None}
        config_dict.update(self.options)
        return config_dict

    def describe(self) -> str:
        """Connection target without credentials, for log messages."""
        return f"{self.username or ''}@{self.host}:{self.port}/{self.database or ''}"


def compose_connection_string(server: str, database: str, username: str, password: str,
                              options: str = '') -> str:
    """Compose discrete connection fields into a connection string."""
    if not server or not database or not username or not password:
        raise ConfigurationError("Invalid connection parameters for database.")
    return (f"Data Source={_quote(server)}; user id={_quote(username)}; "
            f"password={_quote(password)}; database={_quote(database)}; {options or ''}")


def _quote(value: str) -> str:
    if ';' in value or value[:1] in ('"', "'") or value != value.strip():
        return '"' + value.replace('"', '""') + '"'
    return value

# src/mysqlconn/__main__.py
import argparse
import json
import logging
import os
import sys

from .config import MySQLConnectionConfig
from .connection import MySQLConn
from .errors import ConfigurationError, ConnectionError, DriverError, Error

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

MODES = {
    'scalar': MySQLConn.select_scalar,
    'record': MySQLConn.select_record,
    'column': MySQLConn.select_column,
    'all': MySQLConn.select_all,
    'exec': MySQLConn.exec_insert,
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Execute a SQL query against MySQL and print the result as JSON.",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        '--connection-string',
        default=os.getenv('MYSQL_CONNECTION_STRING'),
        help='Full connection string, overrides the individual connection options\n'
             '(default: MYSQL_CONNECTION_STRING environment variable)'
    )

    # Connection parameters with defaults from environment variables
    parser.add_argument(
        '--host',
        default=os.getenv('MYSQL_HOST', 'localhost'),
        help='Database host (default: MYSQL_HOST environment variable or localhost)'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=int(os.getenv('MYSQL_PORT', 3306)),
        help='Database port (default: MYSQL_PORT environment variable or 3306)'
    )
    parser.add_argument(
        '--database',
        default=os.getenv('MYSQL_DATABASE'),
        help='Database name (default: MYSQL_DATABASE environment variable)'
    )
    parser.add_argument(
        '--user',
        default=os.getenv('MYSQL_USER', 'root'),
        help='Database user (default: MYSQL_USER environment variable or root)'
    )
    parser.add_argument(
        '--password',
        default=os.getenv('MYSQL_PASSWORD', ''),
        help='Database password (default: MYSQL_PASSWORD environment variable or empty string)'
    )
    parser.add_argument(
        '--charset',
        default=os.getenv('MYSQL_CHARSET', 'utf8mb4'),
        help='Connection charset (default: MYSQL_CHARSET environment variable or utf8mb4)'
    )

    parser.add_argument(
        '--param', '-p',
        action='append',
        default=[],
        metavar='NAME=VALUE',
        help='Bind a query parameter, referenced as %%(NAME)s in the query. May be repeated.'
    )
    parser.add_argument(
        '--mode',
        choices=sorted(MODES),
        default='all',
        help='Result shape: scalar, record, column, all (default) or exec (affected rows)'
    )

    # Positional argument for the SQL query
    parser.add_argument(
        'query',
        help='SQL query to execute. Must be enclosed in quotes.'
    )

    parser.add_argument('--log-level', default='INFO', help='Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')

    return parser.parse_args(argv)


def parse_params(pairs):
    """Turn ``NAME=VALUE`` strings into a parameter dict."""
    params = {}
    for pair in pairs:
        name, sep, value = pair.partition('=')
        if not sep or not name:
            raise ConfigurationError(f"Invalid parameter {pair!r}, expected NAME=VALUE")
        params[name] = value
    return params


def build_config(args) -> MySQLConnectionConfig:
    if args.connection_string:
        return MySQLConnectionConfig.from_connection_string(args.connection_string)
    return MySQLConnectionConfig(
        host=args.host,
        port=args.port,
        database=args.database,
        username=args.user,
        password=args.password,
        charset=args.charset,
        log_queries=True,
        log_level=logging.DEBUG,
    )


def execute_query(args, config: MySQLConnectionConfig):
    with MySQLConn(connection_config=config) as sql:
        sql.query = args.query
        for name, value in parse_params(args.param).items():
            sql.add_param(name, value)
        logger.info(f"Executing query ({args.mode}): {args.query}")
        return MODES[args.mode](sql)


def main(argv=None):
    args = parse_args(argv)

    # Set logging level
    numeric_level = getattr(logging, args.log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {args.log_level}')
    logging.getLogger().setLevel(numeric_level)

    try:
        result = execute_query(args, build_config(args))
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except ConnectionError as e:
        logger.error(f"Database connection error: {e}")
        sys.exit(1)
    except (DriverError, Error) as e:
        logger.error(f"Database query error: {e}")
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()

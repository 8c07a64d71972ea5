# src/moduledmysql/__main__.py
import argparse
import importlib
import logging
import os
import sys
from typing import List, Optional

from mysql.connector.errors import Error as MySQLError

from .config import ConnectionConfig
from .connection import Database
from .errors import ConnectionError, MappingError
from .schema import create_table, render_create_table

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="python -m moduledmysql",
        description="Print or execute CREATE TABLE statements for entity classes.",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        'entities',
        nargs='+',
        metavar='module:Class',
        help='Entity classes to process, e.g. myapp.models:User'
    )
    parser.add_argument(
        '--execute',
        action='store_true',
        help='Connect to the database and create the tables instead of only printing them'
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
    parser.add_argument('--log-level', default='INFO', help='Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')

    return parser.parse_args(argv)


def load_entity(target: str) -> type:
    """Import ``module.path:ClassName``."""
    module_name, sep, class_name = target.partition(':')
    if not sep or not module_name or not class_name:
        raise ValueError(f"Entity must be given as module:Class, got {target!r}")
    module = importlib.import_module(module_name)
    try:
        entity = getattr(module, class_name)
    except AttributeError as e:
        raise ImportError(f"Module {module_name} has no attribute {class_name}") from e
    if not isinstance(entity, type):
        raise TypeError(f"{target} is not a class")
    return entity


def create_tables(args, entities: List[type]) -> None:
    config = ConnectionConfig(
        host=args.host,
        port=args.port,
        database=args.database,
        username=args.user,
        password=args.password,
        charset=args.charset,
        log_level=logging.getLogger().level,
    )
    database = Database(config)
    try:
        database.connect()
        for entity in entities:
            print(create_table(database, entity))
    finally:
        if database.is_connected:
            database.disconnect()
            logger.info("Disconnected from database.")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Set logging level
    numeric_level = getattr(logging, args.log_level.upper(), None)
    if not isinstance(numeric_level, int):
        logger.error(f'Invalid log level: {args.log_level}')
        return 1
    logging.getLogger().setLevel(numeric_level)

    try:
        entities = [load_entity(target) for target in args.entities]
        if args.execute:
            create_tables(args, entities)
        else:
            for entity in entities:
                print(render_create_table(entity))
    except (ImportError, ValueError, TypeError) as e:
        logger.error(f"Cannot load entity class: {e}")
        return 1
    except MappingError as e:
        logger.error(f"Invalid entity mapping: {e}")
        return 1
    except ConnectionError as e:
        logger.error(f"Database connection error: {e}")
        return 1
    except MySQLError as e:
        logger.error(f"Database error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
